"""
epresolve Resolver Module

Graph partitioning across registered providers with CPU fallback.
"""
from epresolve.resolver.fallback import FallbackResolver
from epresolve.resolver.plan import CandidateDecision, PartitionPlan

__all__ = [
    "CandidateDecision",
    "FallbackResolver",
    "PartitionPlan",
]
