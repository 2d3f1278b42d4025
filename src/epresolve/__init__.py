"""
epresolve - Execution Provider Registration and Fallback Resolution

Resolves which hardware execution providers an inference session uses,
in which order, and which provider executes each operator of the
session's graph, falling back to CPU where nothing else applies.

Main APIs:
- ep.init(): Configure process-wide default providers
- ep.SessionBuilder(): Build a session with session-specific providers
- ep.is_available(): Check whether the runtime supports a provider
- ep.doctor(): Diagnose provider availability
"""
from __future__ import annotations

__version__ = "0.1.0"

from epresolve.enums import FailurePolicy, ProviderKind, RegistrationStatus
from epresolve.exceptions import (
    CapabilityValidationError,
    ConfigurationError,
    ConfigurationOrderingError,
    DeviceNotFoundError,
    EPResolveError,
    GraphFormatError,
    InvalidStateTransitionError,
    ProviderRegistrationFailedError,
    ProviderUnavailableError,
    SessionClosedError,
)
from epresolve.reasons import ALL_REASON_CODES, Reason, ReasonCategory
from epresolve.models import (
    EffectiveProviderList,
    ExecutionProviderSpec,
    Graph,
    OperatorNode,
    RegistrationOutcome,
    build_effective_list,
)
from epresolve import providers
from epresolve.api import (
    configure,
    doctor,
    dry_run,
    get_config,
    load_config,
    readiness_check,
)
from epresolve.resolver import FallbackResolver, PartitionPlan
from epresolve.session import (
    Environment,
    Session,
    SessionBuilder,
    get_environment,
    init,
    register,
)
from epresolve.telemetry import (
    RegistrationReport,
    add_outcome_listener,
    remove_outcome_listener,
)


def is_available(kind: ProviderKind | str) -> bool:
    """Check whether the process environment's runtime supports a provider.

    Example:
        >>> import epresolve as ep
        >>> ep.is_available("cpu")
        True
    """
    return get_environment().availability.is_available(kind)


__all__ = [
    "__version__",
    # Enums
    "FailurePolicy",
    "ProviderKind",
    "RegistrationStatus",
    # Exceptions
    "CapabilityValidationError",
    "ConfigurationError",
    "ConfigurationOrderingError",
    "DeviceNotFoundError",
    "EPResolveError",
    "GraphFormatError",
    "InvalidStateTransitionError",
    "ProviderRegistrationFailedError",
    "ProviderUnavailableError",
    "SessionClosedError",
    # Reasons
    "ALL_REASON_CODES",
    "Reason",
    "ReasonCategory",
    # Models
    "EffectiveProviderList",
    "ExecutionProviderSpec",
    "Graph",
    "OperatorNode",
    "RegistrationOutcome",
    "build_effective_list",
    "providers",
    # Configuration and diagnostics
    "configure",
    "doctor",
    "dry_run",
    "get_config",
    "is_available",
    "load_config",
    "readiness_check",
    # Resolution
    "FallbackResolver",
    "PartitionPlan",
    # Sessions
    "Environment",
    "Session",
    "SessionBuilder",
    "get_environment",
    "init",
    "register",
    # Telemetry
    "RegistrationReport",
    "add_outcome_listener",
    "remove_outcome_listener",
]
