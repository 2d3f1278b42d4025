"""
epresolve Session Builder

Builds sessions: resolves the effective provider list, registers each
provider in priority order, partitions the graph and hands back a
ready Session. A strict provider failure aborts the build and releases
every device handle acquired so far; no partial session is returned.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from epresolve.exceptions import ProviderRegistrationFailedError, ProviderUnavailableError
from epresolve.models.graph import Graph
from epresolve.models.outcome import RegistrationOutcome
from epresolve.models.provider_list import EffectiveProviderList
from epresolve.models.provider_spec import ExecutionProviderSpec
from epresolve.registry.registrar import ProviderRegistrar
from epresolve.resolver.fallback import FallbackResolver
from epresolve.runtime.base import BuildContext
from epresolve.session.environment import Environment, get_environment
from epresolve.session.session import Session
from epresolve.session.state import BuildState, BuildStateMachine
from epresolve.telemetry.listeners import OutcomeListener

logger = logging.getLogger(__name__)


class SessionBuilder:
    """Immutable session builder.

    ``with_execution_providers`` returns a new builder whose providers
    extend (never override) the ones already listed. Session providers
    are appended after the environment's defaults when the session is
    built.

    Args:
        environment: Environment to build in; the process environment
            (resolved at build time) if None.
        providers: Session-specific providers.
        on_outcome: Callback receiving every registration outcome.

    Example:
        >>> from epresolve import SessionBuilder
        >>> from epresolve.providers import coreml, cuda
        >>>
        >>> session = (
        ...     SessionBuilder()
        ...     .with_execution_providers([cuda(), coreml(subgraphs=True)])
        ...     .commit_from_file("model.onnx")
        ... )
        >>> session.providers
        (<ProviderKind.CUDA: 'cuda'>, <ProviderKind.CPU: 'cpu'>)
    """

    __slots__ = ("_environment", "_providers", "_on_outcome")

    def __init__(
        self,
        environment: Optional[Environment] = None,
        *,
        providers: Iterable[ExecutionProviderSpec] = (),
        on_outcome: Optional[OutcomeListener] = None,
    ) -> None:
        self._environment = environment
        self._providers: tuple[ExecutionProviderSpec, ...] = tuple(providers)
        self._on_outcome = on_outcome

    @property
    def environment(self) -> Environment:
        return self._environment if self._environment is not None else get_environment()

    @property
    def providers(self) -> tuple[ExecutionProviderSpec, ...]:
        """Session-specific providers, in the order they were added."""
        return self._providers

    @property
    def on_outcome(self) -> Optional[OutcomeListener]:
        return self._on_outcome

    def with_execution_providers(self, specs: Iterable[ExecutionProviderSpec]) -> "SessionBuilder":
        """Return a builder with ``specs`` appended to the session providers."""
        return SessionBuilder(
            self._environment,
            providers=self._providers + tuple(specs),
            on_outcome=self._on_outcome,
        )

    def with_outcome_callback(self, callback: OutcomeListener) -> "SessionBuilder":
        return SessionBuilder(self._environment, providers=self._providers, on_outcome=callback)

    def with_environment(self, environment: Environment) -> "SessionBuilder":
        return SessionBuilder(environment, providers=self._providers, on_outcome=self._on_outcome)

    def effective_providers(self) -> EffectiveProviderList:
        """Resolve the provider list a build would use right now."""
        return self.environment.registry.build_effective_list(self._providers)

    def register(self, spec: ExecutionProviderSpec) -> RegistrationOutcome:
        """Register a single provider manually. See ``register``."""
        return register(spec, self)

    def commit_from_file(self, path: str | Path) -> Session:
        """Load a graph file and build a session for it.

        ``.onnx`` files are also opened by the runtime; YAML/JSON graph
        descriptions are partitioned only.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            GraphFormatError: If the file is not a valid graph.
            ProviderUnavailableError: A strict provider is unavailable.
            ProviderRegistrationFailedError: A strict provider failed.
        """
        path = Path(path)
        graph = Graph.from_file(path)
        source = path if path.suffix == ".onnx" else None
        return self.commit_from_graph(graph, source=source)

    def commit_from_graph(self, graph: Graph, *, source: Optional[Path] = None) -> Session:
        """Build a session for a graph.

        Args:
            graph: Graph to partition.
            source: Model file the runtime should open, if any.

        Returns:
            Ready Session.

        Raises:
            ProviderUnavailableError: A strict provider is unavailable.
            ProviderRegistrationFailedError: A strict provider failed.
        """
        environment = self.environment
        machine = BuildStateMachine()

        effective = environment.registry.build_effective_list(self._providers)
        machine.advance(BuildState.DEFAULTS_APPLIED)

        registrar = ProviderRegistrar(
            environment.availability,
            default_policy=environment.config.default_failure_policy,
            on_outcome=self._on_outcome,
        )
        context = BuildContext(environment.runtime)
        try:
            outcomes = registrar.register_all(effective, context)
        except (ProviderUnavailableError, ProviderRegistrationFailedError) as e:
            machine.advance(BuildState.PROVIDERS_REGISTERED)
            machine.advance(BuildState.FAILED)
            context.release_all()
            logger.debug("Session build for graph '%s' aborted: %s", graph.name, e.message)
            raise
        except Exception:
            context.release_all()
            raise
        machine.advance(BuildState.PROVIDERS_REGISTERED)

        registered = [effective.get(o.kind) for o in outcomes if o.registered]
        runtime_session = None
        try:
            if source is not None:
                runtime_session = environment.runtime.open_model(
                    source, registered, effective.cpu_fallback
                )
                dropped = environment.runtime.dropped_providers(runtime_session, registered)
                if dropped:
                    outcomes = registrar.reconcile(outcomes, dropped)
                    registered = [spec for spec in registered if spec.kind not in dropped]
        except ProviderRegistrationFailedError as e:
            machine.advance(BuildState.FAILED)
            context.release_all()
            logger.debug("Session build for graph '%s' aborted: %s", graph.name, e.message)
            raise
        except Exception:
            context.release_all()
            raise

        if effective.providers and not registered:
            level = logging.WARNING if environment.config.warn_on_cpu_fallback else logging.INFO
            logger.log(
                level,
                "None of the requested execution providers (%s) could be registered; "
                "graph '%s' runs on CPU only",
                ", ".join(kind.display_name for kind in effective.kinds()),
                graph.name,
            )

        try:
            plan = FallbackResolver(environment.capabilities).partition(graph, registered)
        except Exception:
            context.release_all()
            raise
        machine.advance(BuildState.PARTITIONED)
        machine.advance(BuildState.READY)
        environment.registry.note_session_built()

        session = Session(
            graph=graph,
            effective_providers=effective,
            outcomes=tuple(outcomes),
            plan=plan,
            context=context,
            runtime_session=runtime_session,
            environment_name=environment.name,
            history=machine.history,
        )
        logger.debug("Built %r", session)
        return session


def register(spec: ExecutionProviderSpec, builder: SessionBuilder) -> RegistrationOutcome:
    """Manually register one provider against a builder's environment.

    The registration is a dry run: availability and the runtime are
    checked exactly as during a build, the outcome is delivered to
    listeners, and any acquired device handle is released before
    returning. The builder itself is not changed.

    Args:
        spec: Provider to register.
        builder: Builder whose environment and outcome callback to use.

    Returns:
        RegistrationOutcome of the attempt.

    Raises:
        ProviderUnavailableError: ``spec`` is strict and unavailable.
        ProviderRegistrationFailedError: ``spec`` is strict and failed.
    """
    environment = builder.environment
    registrar = ProviderRegistrar(
        environment.availability,
        default_policy=environment.config.default_failure_policy,
        on_outcome=builder.on_outcome,
    )
    context = BuildContext(environment.runtime)
    try:
        outcomes = registrar.register_all(EffectiveProviderList((spec,)), context)
    finally:
        context.release_all()
    return outcomes[0]
