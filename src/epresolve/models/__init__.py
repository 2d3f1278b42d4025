"""
epresolve Models

Immutable data models for provider requests, outcomes and graphs.
"""
from epresolve.models.graph import Graph, OperatorNode
from epresolve.models.outcome import RegistrationOutcome
from epresolve.models.provider_list import (
    DiscardedEntry,
    EffectiveProviderList,
    build_effective_list,
)
from epresolve.models.provider_spec import ExecutionProviderSpec

__all__ = [
    "DiscardedEntry",
    "EffectiveProviderList",
    "ExecutionProviderSpec",
    "Graph",
    "OperatorNode",
    "RegistrationOutcome",
    "build_effective_list",
]
