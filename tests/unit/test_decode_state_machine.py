"""Tests for DecodeStateMachine transitions."""

from __future__ import annotations

import pytest

from speechprep._types import DecodeState
from speechprep.decode.state_machine import DecodeStateMachine
from speechprep.exceptions import InvalidTransitionError


def _machine_in(state: DecodeState) -> DecodeStateMachine:
    path = {
        DecodeState.SELECTING_TRACK: [],
        DecodeState.DECODING: [DecodeState.DECODING],
        DecodeState.DRAINING: [DecodeState.DECODING, DecodeState.DRAINING],
        DecodeState.FINISHED: [DecodeState.DECODING, DecodeState.DRAINING, DecodeState.FINISHED],
        DecodeState.FAILED: [DecodeState.FAILED],
    }[state]
    machine = DecodeStateMachine()
    for step in path:
        machine.transition(step)
    return machine


class TestDecodeStateMachine:
    def test_initial_state(self) -> None:
        machine = DecodeStateMachine()
        assert machine.state is DecodeState.SELECTING_TRACK
        assert not machine.is_terminal
        assert not machine.accepts_input

    def test_happy_path(self) -> None:
        machine = DecodeStateMachine()

        machine.transition(DecodeState.DECODING)
        assert machine.accepts_input
        machine.transition(DecodeState.DRAINING)
        assert not machine.accepts_input
        machine.transition(DecodeState.FINISHED)

        assert machine.state is DecodeState.FINISHED
        assert machine.is_terminal

    def test_decoding_may_finish_directly(self) -> None:
        machine = _machine_in(DecodeState.DECODING)
        machine.transition(DecodeState.FINISHED)
        assert machine.state is DecodeState.FINISHED

    @pytest.mark.parametrize(
        "state",
        [DecodeState.SELECTING_TRACK, DecodeState.DECODING, DecodeState.DRAINING],
    )
    def test_any_live_state_can_fail(self, state: DecodeState) -> None:
        machine = _machine_in(state)
        machine.transition(DecodeState.FAILED)
        assert machine.state is DecodeState.FAILED

    @pytest.mark.parametrize(
        ("state", "target"),
        [
            (DecodeState.SELECTING_TRACK, DecodeState.DRAINING),
            (DecodeState.SELECTING_TRACK, DecodeState.FINISHED),
            (DecodeState.DRAINING, DecodeState.DECODING),
            (DecodeState.FINISHED, DecodeState.FAILED),
            (DecodeState.FINISHED, DecodeState.DECODING),
            (DecodeState.FAILED, DecodeState.DECODING),
            (DecodeState.FAILED, DecodeState.FINISHED),
        ],
    )
    def test_invalid_transition_raises(self, state: DecodeState, target: DecodeState) -> None:
        machine = _machine_in(state)

        with pytest.raises(InvalidTransitionError) as exc_info:
            machine.transition(target)

        assert exc_info.value.from_state == state.value
        assert exc_info.value.to_state == target.value
        assert machine.state is state

    def test_fail_is_noop_when_terminal(self) -> None:
        machine = _machine_in(DecodeState.FINISHED)

        machine.fail()

        assert machine.state is DecodeState.FINISHED

    def test_fail_from_decoding(self) -> None:
        machine = _machine_in(DecodeState.DECODING)
        machine.fail()
        assert machine.state is DecodeState.FAILED
