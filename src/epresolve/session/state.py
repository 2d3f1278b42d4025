"""
Session build state machine.

    UNCONFIGURED -> DEFAULTS_APPLIED -> PROVIDERS_REGISTERED -> PARTITIONED -> READY
                                                 |
                                                 +-> FAILED  (strict provider failed)
"""
from __future__ import annotations

import logging
from enum import Enum, unique

from epresolve.exceptions import InvalidStateTransitionError

logger = logging.getLogger(__name__)


@unique
class BuildState(str, Enum):
    """States of one session build.

    Members:
        UNCONFIGURED: Nothing resolved yet
        DEFAULTS_APPLIED: Effective provider list computed
        PROVIDERS_REGISTERED: Every provider attempted
        PARTITIONED: Graph nodes assigned to providers
        READY: Session usable (terminal)
        FAILED: Build aborted by a strict provider (terminal)
    """

    UNCONFIGURED = "unconfigured"
    DEFAULTS_APPLIED = "defaults_applied"
    PROVIDERS_REGISTERED = "providers_registered"
    PARTITIONED = "partitioned"
    READY = "ready"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (BuildState.READY, BuildState.FAILED)


_TRANSITIONS: dict[BuildState, frozenset[BuildState]] = {
    BuildState.UNCONFIGURED: frozenset([BuildState.DEFAULTS_APPLIED]),
    BuildState.DEFAULTS_APPLIED: frozenset([BuildState.PROVIDERS_REGISTERED]),
    BuildState.PROVIDERS_REGISTERED: frozenset([BuildState.PARTITIONED, BuildState.FAILED]),
    BuildState.PARTITIONED: frozenset([BuildState.READY]),
    BuildState.READY: frozenset(),
    BuildState.FAILED: frozenset(),
}


class BuildStateMachine:
    """Tracks the state of one session build.

    Not shared between builds, so not locked.
    """

    __slots__ = ("_state", "_history")

    def __init__(self) -> None:
        self._state = BuildState.UNCONFIGURED
        self._history: list[BuildState] = [BuildState.UNCONFIGURED]

    @property
    def state(self) -> BuildState:
        return self._state

    @property
    def history(self) -> tuple[BuildState, ...]:
        return tuple(self._history)

    def can_advance(self, target: BuildState) -> bool:
        return target in _TRANSITIONS[self._state]

    def advance(self, target: BuildState) -> None:
        """Move to the next state.

        Raises:
            InvalidStateTransitionError: If the transition is not allowed.
        """
        if not self.can_advance(target):
            raise InvalidStateTransitionError(self._state.value, target.value)
        logger.debug("Session build: %s -> %s", self._state.value, target.value)
        self._state = target
        self._history.append(target)
