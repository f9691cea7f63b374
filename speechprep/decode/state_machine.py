"""DecodeStateMachine — lifecycle of one extraction run.

Pure, synchronous component. The extractor calls transition() / fail() as
the decode loop progresses.

States:
    SELECTING_TRACK -> DECODING -> DRAINING -> FINISHED

Rules:
- FINISHED and FAILED are terminal: no transitions are accepted from them.
- Any non-terminal state can transition to FAILED.
- DECODING -> FINISHED is allowed for decoders that end output before
  acknowledging input end-of-stream.
- Invalid transitions raise InvalidTransitionError.
"""

from __future__ import annotations

from speechprep._types import DecodeState
from speechprep.exceptions import InvalidTransitionError

# Valid transitions: {current_state: {allowed_target_states}}
_VALID_TRANSITIONS: dict[DecodeState, frozenset[DecodeState]] = {
    DecodeState.SELECTING_TRACK: frozenset({DecodeState.DECODING, DecodeState.FAILED}),
    DecodeState.DECODING: frozenset(
        {DecodeState.DRAINING, DecodeState.FINISHED, DecodeState.FAILED}
    ),
    DecodeState.DRAINING: frozenset({DecodeState.FINISHED, DecodeState.FAILED}),
    DecodeState.FINISHED: frozenset(),
    DecodeState.FAILED: frozenset(),
}

_TERMINAL_STATES = frozenset({DecodeState.FINISHED, DecodeState.FAILED})


class DecodeStateMachine:
    """State machine for a single extraction run."""

    def __init__(self) -> None:
        self._state = DecodeState.SELECTING_TRACK

    @property
    def state(self) -> DecodeState:
        """Current state."""
        return self._state

    @property
    def is_terminal(self) -> bool:
        """True once the run has finished or failed."""
        return self._state in _TERMINAL_STATES

    @property
    def accepts_input(self) -> bool:
        """True while compressed samples may still be fed to the decoder."""
        return self._state is DecodeState.DECODING

    def transition(self, target: DecodeState) -> None:
        """Transition to the target state.

        Raises:
            InvalidTransitionError: If the transition is invalid.
        """
        if target not in _VALID_TRANSITIONS[self._state]:
            raise InvalidTransitionError(self._state.value, target.value)
        self._state = target

    def fail(self) -> None:
        """Move to FAILED unless already terminal. Never raises."""
        if not self.is_terminal:
            self._state = DecodeState.FAILED
