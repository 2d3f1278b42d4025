"""
Test suite for FallbackResolver.

Tests priority order, CPU fallback and control-flow subgraph placement.
"""
import pytest

from epresolve import providers, reasons
from epresolve.enums import ProviderKind
from epresolve.resolver.fallback import FallbackResolver


class TestPlacement:
    """Each node goes to the first supporting provider."""

    def test_first_supporting_provider_wins(self, simple_graph):
        plan = FallbackResolver().partition(simple_graph, [providers.coreml(), providers.cuda()])
        assert plan.provider_for("conv") is ProviderKind.COREML
        assert plan.provider_for("relu") is ProviderKind.COREML

    def test_unsupported_falls_through_to_next(self, simple_graph):
        plan = FallbackResolver().partition(simple_graph, [providers.coreml(), providers.cuda()])
        assert plan.provider_for("normalize") is ProviderKind.CPU

    def test_no_providers_all_cpu(self, simple_graph):
        plan = FallbackResolver().partition(simple_graph, [])
        assert set(plan.assignments.values()) == {ProviderKind.CPU}
        assert plan.providers == (ProviderKind.CPU,)

    def test_cpu_specs_ignored(self, simple_graph):
        plan = FallbackResolver().partition(simple_graph, [providers.cpu(), providers.cuda()])
        assert plan.providers == (ProviderKind.CUDA, ProviderKind.CPU)

    def test_explain_lists_candidates(self, simple_graph):
        plan = FallbackResolver().partition(simple_graph, [providers.coreml(), providers.cuda()])
        decisions = plan.explain("normalize")
        assert [d.kind for d in decisions] == [ProviderKind.COREML, ProviderKind.CUDA, ProviderKind.CPU]
        assert decisions[0].reason.code == reasons.OP_TYPE_UNSUPPORTED
        assert decisions[1].reason.code == reasons.OP_TYPE_EXCLUDED
        assert decisions[2].accepted

    def test_custom_capabilities(self, simple_graph):
        from epresolve.capabilities.table import CapabilityTable, ProviderCapabilities

        table = CapabilityTable().with_overrides({
            ProviderKind.COREML: ProviderCapabilities(ProviderKind.COREML, frozenset(["Relu"])),
        })
        plan = FallbackResolver(table).partition(simple_graph, [providers.coreml()])
        assert plan.provider_for("conv") is ProviderKind.CPU
        assert plan.provider_for("relu") is ProviderKind.COREML

    def test_deterministic(self, loop_graph):
        resolver = FallbackResolver()
        specs = [providers.tensorrt(), providers.coreml(subgraphs=True)]
        assert resolver.partition(loop_graph, specs) == resolver.partition(loop_graph, specs)


class TestSubgraphPlacement:
    """Nodes inside control-flow bodies."""

    def test_subgraph_nodes_skip_provider_without_option(self, loop_graph):
        plan = FallbackResolver().partition(loop_graph, [providers.coreml()])
        assert plan.provider_for("loop/body/add") is ProviderKind.CPU
        assert plan.explain("loop/body/add")[0].reason.code == reasons.SUBGRAPH_DISABLED

    def test_unnamed_sibling_bodies_placed_separately(self):
        from epresolve.models.graph import Graph

        graph = Graph.from_dict({"nodes": [{
            "name": "if",
            "op_type": "If",
            "subgraphs": [
                {"nodes": [{"name": "x", "op_type": "Add"}]},
                {"nodes": [{"name": "x", "op_type": "StringNormalizer"}]},
            ],
        }]})
        plan = FallbackResolver().partition(graph, [providers.cuda(subgraphs=True)])
        assert len(plan) == graph.node_count() == 3
        assert plan.provider_for("if/subgraph_0/x") is ProviderKind.CUDA
        assert plan.provider_for("if/subgraph_1/x") is ProviderKind.CPU

    def test_subgraph_nodes_follow_enabled_provider(self, loop_graph):
        plan = FallbackResolver().partition(loop_graph, [providers.coreml(subgraphs=True)])
        assert plan.provider_for("loop/body/add") is ProviderKind.COREML
        assert plan.provider_for("loop/body/mul") is ProviderKind.COREML

    def test_top_level_unaffected_by_option(self, loop_graph):
        plan = FallbackResolver().partition(loop_graph, [providers.coreml()])
        assert plan.provider_for("conv") is ProviderKind.COREML

    def test_next_provider_with_subgraphs_takes_nested_nodes(self, loop_graph):
        plan = FallbackResolver().partition(
            loop_graph, [providers.coreml(), providers.cuda(subgraphs=True)]
        )
        assert plan.provider_for("conv") is ProviderKind.COREML
        assert plan.provider_for("loop/body/add") is ProviderKind.CUDA

    def test_capabilities_without_subgraph_support(self, loop_graph):
        from dataclasses import replace

        from epresolve.capabilities.table import BUILTIN_CAPABILITIES, CapabilityTable

        table = CapabilityTable().with_overrides({
            ProviderKind.COREML: replace(BUILTIN_CAPABILITIES[ProviderKind.COREML], supports_subgraphs=False),
        })
        plan = FallbackResolver(table).partition(loop_graph, [providers.coreml(subgraphs=True)])
        assert plan.provider_for("loop/body/add") is ProviderKind.CPU


class TestPartitionPlan:
    """Accessors and serialization of PartitionPlan."""

    def test_counts_and_nodes_for(self, simple_graph):
        plan = FallbackResolver().partition(simple_graph, [providers.coreml()])
        assert plan.counts() == {ProviderKind.COREML: 2, ProviderKind.CPU: 1}
        assert plan.nodes_for("coreml") == ["conv", "relu"]
        assert plan.fallback_nodes == ["normalize"]
        assert len(plan) == 3

    def test_unknown_node_raises(self, simple_graph):
        plan = FallbackResolver().partition(simple_graph, [])
        with pytest.raises(KeyError):
            plan.provider_for("missing")

    def test_assignments_read_only(self, simple_graph):
        plan = FallbackResolver().partition(simple_graph, [])
        with pytest.raises(TypeError):
            plan.assignments["conv"] = ProviderKind.CUDA

    def test_to_dict(self, loop_graph):
        import json

        plan = FallbackResolver().partition(loop_graph, [providers.coreml(subgraphs=True)])
        data = json.loads(plan.to_json())
        assert data["graph"] == "main"
        assert data["providers"] == ["coreml", "cpu"]
        assert data["assignments"]["loop/body/add"] == "coreml"
