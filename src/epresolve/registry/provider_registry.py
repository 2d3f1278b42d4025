"""
epresolve Provider Registry

Holds process-wide default execution providers and resolves them,
together with session-specific providers, into the effective list for
one session build. Thread-safe: one writer at a time, readers see an
immutable snapshot.
"""
from __future__ import annotations

import logging
from threading import RLock
from typing import Iterable

from epresolve.exceptions import ConfigurationError, ConfigurationOrderingError
from epresolve.models.provider_list import EffectiveProviderList, build_effective_list
from epresolve.models.provider_spec import ExecutionProviderSpec

logger = logging.getLogger(__name__)

ORDERING_CHECKS = ("warn", "error", "ignore")


def check_configuration_order(sessions_built: int, ordering_check: str) -> None:
    """Apply the ordering check when defaults change after session builds.

    Args:
        sessions_built: Sessions built under the defaults being replaced.
        ordering_check: "warn", "error" or "ignore".

    Raises:
        ConfigurationOrderingError: If sessions were built and the check
            is "error".
    """
    if sessions_built <= 0 or ordering_check == "ignore":
        return

    error = ConfigurationOrderingError(sessions_built)
    if ordering_check == "error":
        raise error
    logger.warning("%s", error.message)


class ProviderRegistry:
    """Process-wide default providers.

    Defaults are stored as an immutable tuple. ``set_global_defaults``
    replaces the tuple under a lock; ``snapshot`` and
    ``build_effective_list`` read the current tuple without blocking
    writers for longer than the read. Changes are not retroactive:
    sessions built earlier keep the list they were built with.

    Attributes:
        ordering_check: What to do when defaults change after a session
            was built ("warn", "error" or "ignore").
    """

    __slots__ = ("_lock", "_defaults", "_sessions_built", "_ordering_check")

    def __init__(
        self,
        defaults: Iterable[ExecutionProviderSpec] = (),
        *,
        ordering_check: str = "warn",
    ) -> None:
        """Initialize provider registry.

        Args:
            defaults: Initial default providers.
            ordering_check: Ordering check mode.

        Raises:
            ConfigurationError: If ordering_check is not a known mode.
        """
        if ordering_check not in ORDERING_CHECKS:
            raise ConfigurationError(
                f"Invalid ordering_check: {ordering_check!r}",
                config_key="ordering_check",
                expected=ORDERING_CHECKS,
                got=ordering_check,
            )
        self._lock = RLock()
        self._defaults: tuple[ExecutionProviderSpec, ...] = tuple(defaults)
        self._sessions_built = 0
        self._ordering_check = ordering_check

    @property
    def ordering_check(self) -> str:
        return self._ordering_check

    @property
    def sessions_built(self) -> int:
        with self._lock:
            return self._sessions_built

    def set_global_defaults(self, specs: Iterable[ExecutionProviderSpec]) -> None:
        """Replace the process-wide default providers.

        Should be called before any session is built; sessions already
        built do not observe the change.

        Args:
            specs: New default providers, in priority order.

        Raises:
            ConfigurationOrderingError: If sessions were already built
                and ordering_check is "error".
        """
        new_defaults = tuple(specs)
        with self._lock:
            check_configuration_order(self._sessions_built, self._ordering_check)
            self._defaults = new_defaults
        logger.debug(
            "Global default providers set: %s",
            [spec.kind.display_name for spec in new_defaults],
        )

    def snapshot(self) -> tuple[ExecutionProviderSpec, ...]:
        """Get the current defaults (immutable)."""
        with self._lock:
            return self._defaults

    def build_effective_list(
        self,
        session_specs: Iterable[ExecutionProviderSpec] = (),
        defaults: Iterable[ExecutionProviderSpec] | None = None,
    ) -> EffectiveProviderList:
        """Resolve defaults plus session specs into an effective list.

        Args:
            session_specs: Session-specific providers.
            defaults: Defaults to use instead of the registry snapshot.

        Returns:
            EffectiveProviderList (defaults first, first occurrence wins).
        """
        if defaults is None:
            defaults = self.snapshot()
        return build_effective_list(defaults, session_specs)

    def note_session_built(self) -> None:
        """Record that a session was built under the current defaults."""
        with self._lock:
            self._sessions_built += 1

    def clear(self) -> None:
        """Drop all defaults and forget built sessions."""
        with self._lock:
            self._defaults = ()
            self._sessions_built = 0
