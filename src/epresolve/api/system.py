"""epresolve System APIs.

Public APIs for system diagnostics:
- doctor() - Provider availability diagnostics
- readiness_check() - Pre-flight validation of the default providers
- dry_run() - Partition preview without registering anything
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, List, Optional

from epresolve.enums import FailurePolicy, ProviderKind

if TYPE_CHECKING:
    from epresolve.models.graph import Graph
    from epresolve.models.provider_spec import ExecutionProviderSpec
    from epresolve.resolver.plan import PartitionPlan
    from epresolve.session.environment import Environment


@dataclass
class ProviderStatus:
    """Status of one provider kind.

    Attributes:
        kind: Provider kind.
        available: Whether the runtime supports the kind.
        runtime_name: Runtime identifier of the kind.
        reason: Why the kind is unavailable, if it is.
    """
    kind: ProviderKind
    available: bool
    runtime_name: str = ""
    reason: Optional[str] = None


@dataclass
class DoctorReport:
    """System diagnostics report.

    Attributes:
        healthy: Overall health status.
        providers: Status of every provider kind.
        runtime: Runtime name.
        version: Runtime version string.
        defaults: Default provider kinds of the environment.
        summary: Human-readable summary.
    """
    healthy: bool
    providers: List[ProviderStatus] = field(default_factory=list)
    runtime: str = ""
    version: str = ""
    defaults: List[ProviderKind] = field(default_factory=list)
    summary: str = ""

    @property
    def available(self) -> List[ProviderKind]:
        return [status.kind for status in self.providers if status.available]


@dataclass
class ReadinessReport:
    """Readiness of the environment's default providers.

    Attributes:
        ready: Whether every strict default provider is available.
        issues: Problems that make session builds fail.
        warnings: Problems that make session builds fall back.
        providers_checked: Default providers that were checked.
    """
    ready: bool
    issues: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    providers_checked: List[ProviderKind] = field(default_factory=list)

    @property
    def is_ready(self) -> bool:
        return self.ready


def _environment(environment: Optional["Environment"]) -> "Environment":
    if environment is not None:
        return environment
    from epresolve.session.environment import get_environment
    return get_environment()


def doctor(environment: Optional["Environment"] = None) -> DoctorReport:
    """Run system diagnostics.

    Checks:
    - Whether the runtime could be probed
    - Availability of every provider kind
    - Availability of the default providers

    Returns:
        DoctorReport with detailed status.

    Example:
        >>> import epresolve as ep
        >>>
        >>> report = ep.doctor()
        >>> if report.healthy:
        ...     print("System healthy!")
        >>> else:
        ...     print(f"Issues found: {report.summary}")
    """
    env = _environment(environment)
    availability = env.availability

    statuses = []
    for kind in ProviderKind:
        reason = availability.unavailable_reason(kind)
        statuses.append(ProviderStatus(
            kind=kind,
            available=reason is None,
            runtime_name=kind.runtime_name,
            reason=reason.message if reason else None,
        ))

    defaults = [spec.kind for spec in env.default_providers]
    missing = [kind for kind in defaults if not availability.is_available(kind)]
    probe_error = env.runtime.probe_error

    healthy = probe_error is None and not missing

    summary_parts = []
    if probe_error is not None:
        summary_parts.append(f"runtime unavailable: {probe_error}")
    accelerated = [s.kind.display_name for s in statuses if s.available and not s.kind.is_cpu]
    summary_parts.append(f"available providers: {', '.join(accelerated) or 'CPU only'}")
    if missing:
        summary_parts.append(
            f"unavailable defaults: {', '.join(kind.display_name for kind in missing)}"
        )

    return DoctorReport(
        healthy=healthy,
        providers=statuses,
        runtime=env.runtime.name,
        version=env.runtime.version,
        defaults=defaults,
        summary="; ".join(summary_parts),
    )


def readiness_check(environment: Optional["Environment"] = None) -> ReadinessReport:
    """Validate that sessions can be built with the default providers.

    A strict default provider that is unavailable is an issue (every
    build would fail); a silent one is a warning (builds fall back).

    Example:
        >>> import epresolve as ep
        >>>
        >>> report = ep.readiness_check()
        >>> if not report.ready:
        ...     for issue in report.issues:
        ...         print(f"Issue: {issue}")
    """
    env = _environment(environment)
    issues = []
    warnings = []
    checked = []

    for spec in env.default_providers:
        checked.append(spec.kind)
        reason = env.availability.unavailable_reason(spec.kind)
        if reason is None:
            continue
        policy = spec.resolved_policy(env.config.default_failure_policy)
        message = f"{spec.kind.display_name} is not available: {reason.message}"
        if policy is FailurePolicy.PROPAGATE_ERROR:
            issues.append(message)
        else:
            warnings.append(message)

    if env.runtime.probe_error is not None:
        warnings.append(f"Runtime {env.runtime.name} unavailable: {env.runtime.probe_error}")

    return ReadinessReport(
        ready=not issues,
        issues=issues,
        warnings=warnings,
        providers_checked=checked,
    )


def dry_run(
    graph: "Graph",
    providers: Iterable["ExecutionProviderSpec"] = (),
    environment: Optional["Environment"] = None,
) -> "PartitionPlan":
    """Preview the partition of a graph without registering providers.

    Every available provider of the effective list is assumed to
    register successfully.

    Args:
        graph: Graph to partition.
        providers: Session providers appended after the defaults.
        environment: Environment; the process environment if None.

    Returns:
        PartitionPlan the build would produce if no registration failed.
    """
    from epresolve.resolver.fallback import FallbackResolver

    env = _environment(environment)
    effective = env.registry.build_effective_list(providers)
    available = [spec for spec in effective if env.availability.is_available(spec.kind)]
    return FallbackResolver(env.capabilities).partition(graph, available)
