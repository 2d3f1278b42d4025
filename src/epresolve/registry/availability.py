"""
epresolve Provider Availability

Answers whether the runtime was built with support for a provider kind,
before any registration is attempted.
"""
from __future__ import annotations

import logging
from typing import Mapping

from epresolve import reasons
from epresolve.enums import ProviderKind
from epresolve.reasons import Reason, make_reason
from epresolve.runtime.base import ExecutionRuntime

logger = logging.getLogger(__name__)


class ProviderAvailability:
    """Per-kind availability.

    Resolution order:
    1. CPU is always available.
    2. Explicit overrides (configuration, tests) win.
    3. Otherwise the runtime's reported provider set decides.

    The runtime's provider set is read once and cached; availability
    is a property of how the runtime was built and does not change
    during the process lifetime.

    Args:
        runtime: Runtime to query.
        overrides: Kind to availability mapping taking precedence.
    """

    __slots__ = ("_runtime", "_overrides", "_runtime_kinds")

    def __init__(
        self,
        runtime: ExecutionRuntime,
        overrides: Mapping[ProviderKind | str, bool] | None = None,
    ) -> None:
        self._runtime = runtime
        self._overrides = {ProviderKind.parse(k): bool(v) for k, v in (overrides or {}).items()}
        self._runtime_kinds: frozenset[ProviderKind] | None = None

    def _kinds(self) -> frozenset[ProviderKind]:
        if self._runtime_kinds is None:
            self._runtime_kinds = self._runtime.available_providers()
            logger.debug(
                "Runtime %s reports providers: %s",
                self._runtime.name,
                sorted(kind.display_name for kind in self._runtime_kinds),
            )
        return self._runtime_kinds

    def is_available(self, kind: ProviderKind | str) -> bool:
        """Check if the runtime supports a provider kind."""
        return self.unavailable_reason(kind) is None

    def unavailable_reason(self, kind: ProviderKind | str) -> Reason | None:
        """Reason a kind is unavailable, or None if it is available."""
        kind = ProviderKind.parse(kind)
        if kind is ProviderKind.CPU:
            return None

        override = self._overrides.get(kind)
        if override is not None:
            if override:
                return None
            return make_reason(
                reasons.DISABLED_BY_OVERRIDE,
                f"{kind.display_name} disabled by availability override",
            )

        if kind in self._kinds():
            return None
        return make_reason(
            reasons.NOT_BUILT_WITH_SUPPORT,
            f"runtime was not built with {kind.display_name} support",
        )

    def snapshot(self) -> dict[ProviderKind, bool]:
        """Availability of every kind."""
        return {kind: self.is_available(kind) for kind in ProviderKind}
