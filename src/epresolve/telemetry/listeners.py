"""
Registration outcome listeners.

Silent fallback is the default behavior, so nothing is printed when a
provider is skipped. Listeners are the diagnostic hook: every
registration outcome is delivered to each registered callback.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable

from epresolve.models.outcome import RegistrationOutcome

logger = logging.getLogger(__name__)

OutcomeListener = Callable[[RegistrationOutcome], None]

_listeners: list[OutcomeListener] = []
_listeners_lock = threading.Lock()


def add_outcome_listener(listener: OutcomeListener) -> None:
    """Register a callback receiving every registration outcome.

    Example:
        >>> import epresolve as ep
        >>> ep.add_outcome_listener(lambda o: print(o))
    """
    with _listeners_lock:
        if listener not in _listeners:
            _listeners.append(listener)


def remove_outcome_listener(listener: OutcomeListener) -> bool:
    """Unregister a callback. Returns False if it was not registered."""
    with _listeners_lock:
        try:
            _listeners.remove(listener)
        except ValueError:
            return False
        return True


def clear_outcome_listeners() -> None:
    with _listeners_lock:
        _listeners.clear()


def dispatch(outcome: RegistrationOutcome, extra: OutcomeListener | None = None) -> None:
    """Deliver an outcome to all global listeners and an optional extra one.

    A failing listener is logged and does not affect the session build.
    """
    with _listeners_lock:
        targets = list(_listeners)
    if extra is not None:
        targets.append(extra)

    for listener in targets:
        try:
            listener(outcome)
        except Exception:
            logger.exception("Outcome listener %r raised", listener)
