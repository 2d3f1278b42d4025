"""
epresolve Effective Provider List

Ordered, kind-unique provider sequence presented to the runtime, with
the implicit CPU fallback kept apart from the ordered entries.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Sequence

from epresolve import reasons
from epresolve.enums import ProviderKind
from epresolve.models.provider_spec import ExecutionProviderSpec
from epresolve.reasons import Reason, make_reason

logger = logging.getLogger(__name__)

ORIGIN_DEFAULT = "default"
ORIGIN_SESSION = "session"


@dataclass(frozen=True, slots=True)
class DiscardedEntry:
    """A requested spec that did not make it into the ordered list.

    Attributes:
        spec: The discarded spec.
        origin: "default" or "session".
        reason: Why it was discarded.
    """

    spec: ExecutionProviderSpec
    origin: str
    reason: Reason

    def to_dict(self) -> dict[str, Any]:
        return {
            "spec": self.spec.to_dict(),
            "origin": self.origin,
            "reason": self.reason.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class EffectiveProviderList:
    """Resolved provider order for one session build.

    Invariants:
    - ``providers`` is unique by kind and never contains CPU.
    - Defaults keep their relative order and precede session entries.
    - ``cpu_fallback`` is always present and always last in ``ordered()``.

    Attributes:
        providers: Ordered non-CPU specs.
        cpu_fallback: Spec of the implicit final CPU provider.
        discarded: Requested entries dropped while resolving.
    """

    providers: tuple[ExecutionProviderSpec, ...]
    cpu_fallback: ExecutionProviderSpec = field(
        default_factory=lambda: ExecutionProviderSpec(ProviderKind.CPU)
    )
    discarded: tuple[DiscardedEntry, ...] = ()

    def __iter__(self) -> Iterator[ExecutionProviderSpec]:
        return iter(self.providers)

    def __len__(self) -> int:
        return len(self.providers)

    def __contains__(self, kind: object) -> bool:
        try:
            kind = ProviderKind.parse(kind)  # type: ignore[arg-type]
        except ValueError:
            return False
        return any(spec.kind is kind for spec in self.providers)

    def kinds(self) -> tuple[ProviderKind, ...]:
        return tuple(spec.kind for spec in self.providers)

    def ordered(self) -> tuple[ExecutionProviderSpec, ...]:
        """Ordered specs with the CPU fallback appended."""
        return self.providers + (self.cpu_fallback,)

    def get(self, kind: ProviderKind | str) -> ExecutionProviderSpec | None:
        kind = ProviderKind.parse(kind)
        if kind is ProviderKind.CPU:
            return self.cpu_fallback
        for spec in self.providers:
            if spec.kind is kind:
                return spec
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "providers": [spec.to_dict() for spec in self.providers],
            "cpu_fallback": self.cpu_fallback.to_dict(),
            "discarded": [entry.to_dict() for entry in self.discarded],
        }


def build_effective_list(
    defaults: Iterable[ExecutionProviderSpec],
    session_specs: Iterable[ExecutionProviderSpec] = (),
) -> EffectiveProviderList:
    """Concatenate defaults and session specs into an effective list.

    Defaults come first, in their original order, and are extended (not
    overridden) by session entries. The first occurrence of a kind wins:
    later duplicates are discarded with a DUPLICATE_PROVIDER reason, so a
    provider listed both as default and per session is attempted once,
    with the default's options and policy.

    CPU entries never appear in the ordered list. The first CPU spec
    supplies the options of the implicit fallback; every CPU entry is
    recorded with a CPU_LISTED_EXPLICITLY reason.

    Args:
        defaults: Process-wide default specs.
        session_specs: Session-specific specs.

    Returns:
        EffectiveProviderList for the session build.
    """
    ordered: list[ExecutionProviderSpec] = []
    discarded: list[DiscardedEntry] = []
    seen: dict[ProviderKind, str] = {}
    cpu: ExecutionProviderSpec | None = None

    sources: Sequence[tuple[str, Iterable[ExecutionProviderSpec]]] = (
        (ORIGIN_DEFAULT, defaults),
        (ORIGIN_SESSION, session_specs),
    )
    for origin, specs in sources:
        for spec in specs:
            if spec.kind is ProviderKind.CPU:
                if cpu is None:
                    cpu = spec
                    message = "CPU is the implicit final fallback; options applied to it"
                else:
                    message = "CPU fallback options already taken from an earlier entry"
                discarded.append(DiscardedEntry(
                    spec=spec,
                    origin=origin,
                    reason=make_reason(reasons.CPU_LISTED_EXPLICITLY, message),
                ))
                continue

            first_origin = seen.get(spec.kind)
            if first_origin is not None:
                logger.debug(
                    "Discarding duplicate %s entry from %s list (first listed in %s list)",
                    spec.kind.display_name, origin, first_origin,
                )
                discarded.append(DiscardedEntry(
                    spec=spec,
                    origin=origin,
                    reason=make_reason(
                        reasons.DUPLICATE_PROVIDER,
                        f"{spec.kind.display_name} already listed in {first_origin} providers",
                    ),
                ))
                continue

            seen[spec.kind] = origin
            ordered.append(spec)

    return EffectiveProviderList(
        providers=tuple(ordered),
        cpu_fallback=cpu if cpu is not None else ExecutionProviderSpec(ProviderKind.CPU),
        discarded=tuple(discarded),
    )
