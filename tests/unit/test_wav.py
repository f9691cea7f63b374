"""Tests for the streaming WAV writer and the fixed-header reader."""

from __future__ import annotations

import struct
from typing import TYPE_CHECKING

import numpy as np
import pytest
import soundfile as sf
from numpy.testing import assert_allclose, assert_array_equal

from speechprep.exceptions import IOFailureError, TruncatedFileError
from speechprep.preprocessing.wav import (
    WavHeader,
    WavWriter,
    decode_wav_file,
    read_wav_header,
    write_wav_file,
)
from tests.helpers import sine_wave

if TYPE_CHECKING:
    from pathlib import Path


class TestWavHeader:
    def test_pack_is_44_bytes_little_endian(self) -> None:
        # Arrange
        header = WavHeader(sample_rate=16000, data_size=32000)

        # Act
        raw = header.pack()

        # Assert
        assert len(raw) == 44
        assert raw[0:4] == b"RIFF"
        assert raw[8:16] == b"WAVEfmt "
        assert raw[36:40] == b"data"
        assert struct.unpack_from("<I", raw, 4)[0] == 36 + 32000
        assert struct.unpack_from("<IHHIIHH", raw, 16) == (16, 1, 1, 16000, 32000, 2, 16)
        assert struct.unpack_from("<I", raw, 40)[0] == 32000

    def test_unpack_inverts_pack(self) -> None:
        header = WavHeader(sample_rate=48000, channels=2, data_size=1234 * 4)
        assert WavHeader.unpack(header.pack()) == header

    def test_derived_fields(self) -> None:
        header = WavHeader(sample_rate=22050, channels=1, bits_per_sample=16, data_size=10)
        assert header.block_align == 2
        assert header.byte_rate == 44100
        assert header.chunk_size == 46


class TestWavWriter:
    def test_header_patched_on_close(self, tmp_path: Path) -> None:
        # Arrange
        path = tmp_path / "out.wav"
        samples = np.arange(-500, 500, dtype=np.int16)

        # Act
        with WavWriter(path, sample_rate=16000) as writer:
            writer.write_samples(samples[:300])
            writer.write_samples(samples[300:])

        # Assert
        raw = path.read_bytes()
        assert len(raw) == 44 + 2000
        header = read_wav_header(path)
        assert header.data_size == 2000
        assert header.chunk_size == 2036
        assert header.sample_rate == 16000
        assert header.channels == 1
        assert header.bits_per_sample == 16
        assert_array_equal(np.frombuffer(raw, dtype="<i2", offset=44), samples)

    def test_provisional_header_has_zero_data_size(self, tmp_path: Path) -> None:
        path = tmp_path / "open.wav"
        writer = WavWriter(path, sample_rate=8000)
        try:
            writer.write_samples(np.zeros(10, dtype=np.int16))
            assert writer.data_size == 20
        finally:
            writer.close()

        assert read_wav_header(path).data_size == 20

    def test_empty_file_is_valid(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.wav"
        with WavWriter(path, sample_rate=16000):
            pass

        assert path.stat().st_size == 44
        assert read_wav_header(path).data_size == 0

    def test_close_is_idempotent(self, tmp_path: Path) -> None:
        writer = WavWriter(tmp_path / "x.wav", sample_rate=16000)
        writer.write_samples(np.ones(4, dtype=np.int16))

        first = writer.close()
        second = writer.close()

        assert writer.closed
        assert first == second

    def test_write_after_close_raises(self, tmp_path: Path) -> None:
        writer = WavWriter(tmp_path / "x.wav", sample_rate=16000)
        writer.close()

        with pytest.raises(IOFailureError, match="closed"):
            writer.write_samples(np.zeros(2, dtype=np.int16))

    def test_open_failure_raises_io_error(self, tmp_path: Path) -> None:
        with pytest.raises(IOFailureError) as exc_info:
            WavWriter(tmp_path / "missing" / "dir" / "x.wav", sample_rate=16000)
        assert exc_info.value.operation == "open"

    def test_readable_by_libsndfile(self, tmp_path: Path) -> None:
        path = tmp_path / "sf.wav"
        write_wav_file(path, sine_wave(440.0, 0.25, 24000), 24000)

        data, sr = sf.read(str(path), dtype="int16")

        assert sr == 24000
        assert len(data) == 6000


class _FailingFile:
    """File stand-in whose writes fail; close() releases the real handle."""

    def __init__(self, inner) -> None:
        self.inner = inner

    def write(self, data: bytes) -> int:
        raise OSError(28, "No space left on device")

    def seek(self, offset: int) -> int:
        return self.inner.seek(offset)

    def close(self) -> None:
        self.inner.close()


class TestWavWriterFailures:
    def test_failed_write_releases_handle(self, tmp_path: Path) -> None:
        # Arrange
        path = tmp_path / "full.wav"

        # Act
        with pytest.raises(IOFailureError) as exc_info:
            with WavWriter(path, sample_rate=16000) as writer:
                writer.write_samples(np.ones(100, dtype=np.int16))
                handle = writer._file
                writer._file = _FailingFile(handle)
                writer.write_samples(np.ones(100, dtype=np.int16))

        # Assert
        assert exc_info.value.operation == "write"
        assert writer.closed
        assert handle.closed

    def test_exception_in_block_leaves_header_unpatched(self, tmp_path: Path) -> None:
        path = tmp_path / "aborted.wav"

        with pytest.raises(RuntimeError):
            with WavWriter(path, sample_rate=16000) as writer:
                writer.write_samples(np.ones(100, dtype=np.int16))
                raise RuntimeError("stop")

        assert writer.closed
        assert read_wav_header(path).data_size == 0
        assert path.stat().st_size == 44 + 200

    def test_abort_is_idempotent(self, tmp_path: Path) -> None:
        writer = WavWriter(tmp_path / "a.wav", sample_rate=16000)

        writer.abort()
        writer.abort()
        writer.close()

        assert writer.closed

    def test_header_write_failure_removes_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def _fail(self: WavHeader) -> bytes:
            raise OSError(5, "Input/output error")

        monkeypatch.setattr(WavHeader, "pack", _fail)
        path = tmp_path / "nohdr.wav"

        with pytest.raises(IOFailureError) as exc_info:
            WavWriter(path, sample_rate=16000)

        assert exc_info.value.operation == "write"
        assert not path.exists()


class TestReadWavHeader:
    def test_short_file_raises_truncated(self, tmp_path: Path) -> None:
        path = tmp_path / "short.wav"
        path.write_bytes(b"RIFF" + b"\x00" * 20)

        with pytest.raises(TruncatedFileError) as exc_info:
            read_wav_header(path)
        assert exc_info.value.size_bytes == 24

    def test_missing_file_raises_io_error(self, tmp_path: Path) -> None:
        with pytest.raises(IOFailureError):
            read_wav_header(tmp_path / "nope.wav")


class TestDecodeWavFile:
    def test_samples_scaled_by_32768(self, tmp_path: Path) -> None:
        path = tmp_path / "a.wav"
        with WavWriter(path, sample_rate=16000) as writer:
            writer.write_samples(np.array([0, 16384, -32768], dtype=np.int16))

        audio = decode_wav_file(path)

        assert audio.dtype == np.float32
        assert_allclose(audio, [0.0, 0.5, -1.0])

    def test_header_only_gives_empty_buffer(self, tmp_path: Path) -> None:
        path = tmp_path / "h.wav"
        path.write_bytes(WavHeader(sample_rate=16000).pack())

        assert decode_wav_file(path).size == 0

    def test_odd_payload_raises_truncated(self, tmp_path: Path) -> None:
        path = tmp_path / "odd.wav"
        path.write_bytes(WavHeader(sample_rate=16000, data_size=3).pack() + b"\x01\x02\x03")

        with pytest.raises(TruncatedFileError):
            decode_wav_file(path)

    def test_shorter_than_header_raises_truncated(self, tmp_path: Path) -> None:
        path = tmp_path / "tiny.wav"
        path.write_bytes(b"\x00" * 10)

        with pytest.raises(TruncatedFileError):
            decode_wav_file(path)


class TestWriteWavFile:
    def test_data_size_is_two_bytes_per_sample(self, tmp_path: Path) -> None:
        # Arrange
        audio = sine_wave(300.0, duration=5.0, sample_rate=16000)

        # Act
        header = write_wav_file(tmp_path / "long.wav", audio, 16000)

        # Assert
        assert header.data_size == 2 * len(audio)
        assert (tmp_path / "long.wav").stat().st_size == 44 + 2 * len(audio)

    def test_written_samples_decode_within_one_step(self, tmp_path: Path) -> None:
        audio = sine_wave(440.0, duration=0.1, sample_rate=16000, amplitude=0.9)
        path = tmp_path / "rt.wav"

        write_wav_file(path, audio, 16000)
        decoded = decode_wav_file(path)

        assert_allclose(decoded, audio, atol=2.0 / 32768)

    def test_values_clamped(self, tmp_path: Path) -> None:
        path = tmp_path / "clip.wav"
        write_wav_file(path, np.array([2.0, -2.0], dtype=np.float32), 16000)

        raw = np.frombuffer(path.read_bytes(), dtype="<i2", offset=44)
        assert_array_equal(raw, [32767, -32767])

    def test_failed_write_removes_partial_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        # Arrange: the second block fails
        original = WavWriter.write_samples
        calls: list[int] = []

        def _flaky(self: WavWriter, samples: np.ndarray) -> None:
            calls.append(len(samples))
            if len(calls) == 2:
                raise IOFailureError(str(self.path), "write", "disk full")
            original(self, samples)

        monkeypatch.setattr(WavWriter, "write_samples", _flaky)
        path = tmp_path / "partial.wav"

        # Act
        with pytest.raises(IOFailureError, match="disk full"):
            write_wav_file(path, np.zeros(200_000, dtype=np.float32), 16000)

        # Assert
        assert len(calls) == 2
        assert not path.exists()
