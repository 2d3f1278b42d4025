"""
PartitionPlan - Operator to Provider Assignment

Result of partitioning a graph across registered providers, including
the per-provider decisions that led to each assignment.
"""
from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from epresolve.enums import ProviderKind
from epresolve.reasons import Reason


@dataclass(frozen=True)
class CandidateDecision:
    """One provider considered for one node.

    Attributes:
        kind: Provider that was considered.
        accepted: Whether the node was placed on this provider.
        reason: Rejection reason, None when accepted.
    """

    kind: ProviderKind
    accepted: bool
    reason: Reason | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "accepted": self.accepted,
            "reason": self.reason.to_dict() if self.reason else None,
        }


@dataclass(frozen=True)
class PartitionPlan:
    """Stable assignment of every graph node to a provider.

    Node paths are slash-joined ("loop/body/add"). Iteration order of
    ``assignments`` follows a depth-first walk of the graph.

    Attributes:
        graph_name: Name of the partitioned graph.
        providers: Registered providers in priority order, CPU last.
        assignments: Node path to assigned provider.
        decisions: Node path to the candidates considered, in order.
    """

    graph_name: str
    providers: tuple[ProviderKind, ...]
    assignments: Mapping[str, ProviderKind] = field(default_factory=dict)
    decisions: Mapping[str, tuple[CandidateDecision, ...]] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "assignments", MappingProxyType(dict(self.assignments)))
        object.__setattr__(self, "decisions", MappingProxyType(dict(self.decisions)))

    def __len__(self) -> int:
        return len(self.assignments)

    def provider_for(self, node_path: str) -> ProviderKind:
        """Get the provider assigned to a node.

        Raises:
            KeyError: If the node is not in the graph.
        """
        return self.assignments[node_path]

    def nodes_for(self, kind: ProviderKind | str) -> list[str]:
        kind = ProviderKind.parse(kind)
        return [path for path, assigned in self.assignments.items() if assigned is kind]

    @property
    def fallback_nodes(self) -> list[str]:
        """Nodes that ended up on the CPU fallback."""
        return self.nodes_for(ProviderKind.CPU)

    def counts(self) -> dict[ProviderKind, int]:
        """Number of nodes per provider, in provider priority order."""
        counter = Counter(self.assignments.values())
        return {kind: counter[kind] for kind in self.providers if counter[kind]}

    def explain(self, node_path: str) -> tuple[CandidateDecision, ...]:
        """Candidates considered for a node, in priority order.

        Raises:
            KeyError: If the node is not in the graph.
        """
        return self.decisions[node_path]

    def to_dict(self) -> dict[str, Any]:
        return {
            "graph": self.graph_name,
            "providers": [kind.value for kind in self.providers],
            "assignments": {path: kind.value for path, kind in self.assignments.items()},
            "counts": {kind.value: n for kind, n in self.counts().items()},
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)
