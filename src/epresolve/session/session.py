"""
epresolve Session

A built inference session: the providers it runs on, how each
registration went, and which provider executes every graph node.
"""
from __future__ import annotations

import logging
import threading
from typing import Any

from epresolve.enums import ProviderKind
from epresolve.exceptions import SessionClosedError
from epresolve.models.graph import Graph
from epresolve.models.outcome import RegistrationOutcome
from epresolve.models.provider_list import EffectiveProviderList
from epresolve.resolver.plan import PartitionPlan
from epresolve.runtime.base import BuildContext
from epresolve.session.state import BuildState
from epresolve.telemetry.report import RegistrationReport

logger = logging.getLogger(__name__)


class Session:
    """A session in the READY state.

    Sessions are created by ``SessionBuilder``; there is no partially
    built session. Closing releases the device handles acquired while
    registering providers. ``close`` is idempotent and sessions are
    context managers.

    Attributes:
        graph: The session's computation graph.
        effective_providers: Provider list resolved at build time.
        outcomes: One registration outcome per requested provider.
        plan: Node to provider assignment.
    """

    def __init__(
        self,
        *,
        graph: Graph,
        effective_providers: EffectiveProviderList,
        outcomes: tuple[RegistrationOutcome, ...],
        plan: PartitionPlan,
        context: BuildContext,
        runtime_session: Any = None,
        environment_name: str = "default",
        history: tuple[BuildState, ...] = (),
    ) -> None:
        self.graph = graph
        self.effective_providers = effective_providers
        self.outcomes = tuple(outcomes)
        self.plan = plan
        self._context = context
        self._runtime_session = runtime_session
        self._environment_name = environment_name
        self._history = tuple(history) or (BuildState.READY,)
        self._closed = False
        self._lock = threading.Lock()

    @property
    def state(self) -> BuildState:
        return self._history[-1]

    @property
    def build_history(self) -> tuple[BuildState, ...]:
        """States the build passed through, ending in READY."""
        return self._history

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def providers(self) -> tuple[ProviderKind, ...]:
        """Registered providers in priority order, CPU last."""
        return tuple(o.kind for o in self.outcomes if o.registered) + (ProviderKind.CPU,)

    @property
    def runtime_session(self) -> Any:
        """The runtime's own session object (None for graph-only builds).

        Raises:
            SessionClosedError: If the session was closed.
        """
        if self._closed:
            raise SessionClosedError("Session is closed")
        return self._runtime_session

    def provider_for(self, node_path: str) -> ProviderKind:
        return self.plan.provider_for(node_path)

    def report(self) -> RegistrationReport:
        """Full trace of how this session's providers were resolved."""
        return RegistrationReport.build(
            self.effective_providers,
            self.outcomes,
            self.plan,
            context={
                "environment": self._environment_name,
                "runtime": self._context.runtime.name,
                "build_states": [state.value for state in self._history],
            },
        )

    def close(self) -> None:
        """Release device handles. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        released = self._context.release_all()
        self._runtime_session = None
        logger.debug("Closed session for graph '%s' (%d handle(s) released)", self.graph.name, released)

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        names = ", ".join(kind.display_name for kind in self.providers)
        return f"Session(graph={self.graph.name!r}, providers=[{names}], closed={self._closed})"
