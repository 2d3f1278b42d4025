"""
RegistrationReport - Full Trace of Provider Resolution

Describes how a session's providers were resolved: which providers were
requested, which duplicates were dropped, the outcome of every
registration attempt, and how the graph was partitioned.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from epresolve.enums import ProviderKind
from epresolve.models.outcome import RegistrationOutcome
from epresolve.models.provider_list import DiscardedEntry, EffectiveProviderList
from epresolve.resolver.plan import PartitionPlan


@dataclass(frozen=True)
class RegistrationReport:
    """Full trace of one session build.

    Attributes:
        graph_name: Name of the session's graph.
        requested: Effective provider kinds, in priority order.
        discarded: Entries dropped while resolving the effective list.
        outcomes: Registration outcome per requested provider.
        providers: Providers the session runs on, CPU last.
        partition: Node count per provider.
        context: Additional context (environment, runtime).

    Example:
        ```python
        report = session.report()
        for outcome in report.outcomes:
            if not outcome.registered:
                print(outcome.kind.display_name, outcome.reason)
        if report.fully_fell_back:
            print("running on CPU only")
        ```
    """

    graph_name: str
    requested: tuple[ProviderKind, ...]
    discarded: tuple[DiscardedEntry, ...]
    outcomes: tuple[RegistrationOutcome, ...]
    providers: tuple[ProviderKind, ...]
    partition: dict[ProviderKind, int] = field(default_factory=dict)
    context: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        effective: EffectiveProviderList,
        outcomes: tuple[RegistrationOutcome, ...],
        plan: PartitionPlan,
        context: dict[str, Any] | None = None,
    ) -> "RegistrationReport":
        """Assemble a report from the artifacts of a session build."""
        registered = tuple(o.kind for o in outcomes if o.registered)
        return cls(
            graph_name=plan.graph_name,
            requested=effective.kinds(),
            discarded=effective.discarded,
            outcomes=tuple(outcomes),
            providers=registered + (ProviderKind.CPU,),
            partition=plan.counts(),
            context=dict(context or {}),
        )

    @property
    def fully_fell_back(self) -> bool:
        """True if providers were requested but none registered."""
        return bool(self.requested) and not any(o.registered for o in self.outcomes)

    @property
    def failed(self) -> tuple[RegistrationOutcome, ...]:
        """Outcomes of providers that did not register."""
        return tuple(o for o in self.outcomes if not o.registered)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "graph": self.graph_name,
            "requested": [kind.value for kind in self.requested],
            "discarded": [entry.to_dict() for entry in self.discarded],
            "outcomes": [o.to_dict() for o in self.outcomes],
            "providers": [kind.value for kind in self.providers],
            "partition": {kind.value: n for kind, n in self.partition.items()},
            "fully_fell_back": self.fully_fell_back,
            "context": self.context,
        }

    def to_json(self) -> str:
        """Serialize to JSON string.

        Returns:
            JSON representation of the report.
        """
        return json.dumps(self.to_dict(), indent=2, default=str)
