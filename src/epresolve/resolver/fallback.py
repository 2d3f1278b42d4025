"""
epresolve Fallback Resolver

Partitions a computation graph across registered execution providers.
Each node goes to the first provider, in priority order, that declares
support for it; nodes nobody claims fall back to CPU.
"""
from __future__ import annotations

import logging
from typing import Sequence

from epresolve import reasons
from epresolve.capabilities.table import CapabilityTable
from epresolve.enums import ProviderKind
from epresolve.models.graph import Graph, OperatorNode
from epresolve.models.provider_spec import ExecutionProviderSpec
from epresolve.reasons import Reason, make_reason
from epresolve.resolver.plan import CandidateDecision, PartitionPlan

logger = logging.getLogger(__name__)


class FallbackResolver:
    """Assigns graph nodes to providers.

    Rules, applied per node in depth-first graph order:
    1. Providers are considered in registration priority order.
    2. A node inside a control-flow subgraph (a Loop/If/Scan body) is
       only eligible for providers whose spec enables ``subgraphs`` and
       whose capabilities allow subgraph placement.
    3. The first provider whose capabilities accept the node's domain
       and operator type is assigned.
    4. Otherwise the node is assigned to CPU.

    The partition depends only on the graph, the provider list and the
    capability table, so it is stable across calls. Sessions compute it
    once at build time.

    Args:
        capabilities: Capability table; built-in declarations if None.
    """

    __slots__ = ("_capabilities",)

    def __init__(self, capabilities: CapabilityTable | None = None) -> None:
        self._capabilities = capabilities or CapabilityTable()

    @property
    def capabilities(self) -> CapabilityTable:
        return self._capabilities

    def partition(
        self,
        graph: Graph,
        providers: Sequence[ExecutionProviderSpec],
    ) -> PartitionPlan:
        """Partition a graph across registered providers.

        Args:
            graph: Graph to partition.
            providers: Registered providers in priority order. CPU
                entries are ignored; CPU is always the final fallback.

        Returns:
            PartitionPlan for the graph.
        """
        ordered = [spec for spec in providers if spec.kind is not ProviderKind.CPU]
        assignments: dict[str, ProviderKind] = {}
        decisions: dict[str, tuple[CandidateDecision, ...]] = {}

        for path, node, depth in graph.walk():
            kind, considered = self._place(node, depth > 0, ordered)
            assignments[path] = kind
            decisions[path] = considered

        plan = PartitionPlan(
            graph_name=graph.name,
            providers=tuple(spec.kind for spec in ordered) + (ProviderKind.CPU,),
            assignments=assignments,
            decisions=decisions,
        )
        logger.debug(
            "Partitioned graph '%s' (%d nodes): %s",
            graph.name,
            len(plan),
            {kind.display_name: n for kind, n in plan.counts().items()},
        )
        return plan

    def _place(
        self,
        node: OperatorNode,
        nested: bool,
        providers: Sequence[ExecutionProviderSpec],
    ) -> tuple[ProviderKind, tuple[CandidateDecision, ...]]:
        considered: list[CandidateDecision] = []
        for spec in providers:
            reason = self._reject(node, nested, spec)
            if reason is None:
                considered.append(CandidateDecision(spec.kind, True))
                return spec.kind, tuple(considered)
            considered.append(CandidateDecision(spec.kind, False, reason))

        considered.append(CandidateDecision(ProviderKind.CPU, True))
        return ProviderKind.CPU, tuple(considered)

    def _reject(
        self,
        node: OperatorNode,
        nested: bool,
        spec: ExecutionProviderSpec,
    ) -> Reason | None:
        caps = self._capabilities.get(spec.kind)
        if nested and not (spec.subgraphs and caps.supports_subgraphs):
            return make_reason(
                reasons.SUBGRAPH_DISABLED,
                f"{spec.kind.display_name} does not extend into control-flow subgraphs",
            )
        return caps.check(node)
