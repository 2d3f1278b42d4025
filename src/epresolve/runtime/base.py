"""
Execution runtime interface.

A runtime is the underlying inference engine providers are registered
against. It answers which providers it was built with, activates a
provider for a session build, and releases the device handles it
handed out when the session is torn down.
"""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Sequence

from epresolve.enums import ProviderKind
from epresolve.models.provider_spec import ExecutionProviderSpec

logger = logging.getLogger(__name__)


class ExecutionRuntime(ABC):
    """Base class for inference runtimes."""

    name: str = "runtime"

    @property
    def probe_error(self) -> str | None:
        """Why the runtime could not be probed, or None if it was."""
        return None

    @property
    def version(self) -> str:
        return "unknown"

    @abstractmethod
    def available_providers(self) -> frozenset[ProviderKind]:
        """Provider kinds the runtime was built with support for.

        Must never raise; an unusable runtime reports only CPU.
        """

    @abstractmethod
    def register_provider(self, spec: ExecutionProviderSpec) -> Any:
        """Activate a provider for a session being built.

        Args:
            spec: Provider to activate.

        Returns:
            Device handle to release at session teardown, or None.

        Raises:
            DeviceNotFoundError: If the requested device does not exist.
            Exception: Any other runtime error fails the registration.
        """

    def release(self, handle: Any) -> None:
        """Release a handle returned by register_provider."""

    def open_model(
        self,
        path: Path,
        providers: Sequence[ExecutionProviderSpec],
        cpu_fallback: ExecutionProviderSpec,
    ) -> Any:
        """Create the runtime's own session object for a model file.

        Args:
            path: Model file.
            providers: Registered providers in priority order.
            cpu_fallback: Spec of the final CPU provider.

        Returns:
            Runtime session object, or None if the runtime has none.
        """
        return None

    def dropped_providers(
        self,
        runtime_session: Any,
        providers: Sequence[ExecutionProviderSpec],
    ) -> dict[ProviderKind, str]:
        """Providers a runtime session did not actually activate.

        Args:
            runtime_session: Object returned by open_model.
            providers: Providers passed to open_model.

        Returns:
            Error message per dropped provider kind.
        """
        return {}


class BuildContext:
    """Registration target for one session build.

    Forwards registrations to the runtime and keeps every device handle
    acquired during the build, so an aborted build or a closed session
    can release them together.

    Thread-safe; a context belongs to exactly one build.
    """

    __slots__ = ("_runtime", "_handles", "_lock", "_attempted")

    def __init__(self, runtime: ExecutionRuntime) -> None:
        self._runtime = runtime
        self._handles: list[tuple[ProviderKind, Any]] = []
        self._attempted: list[ProviderKind] = []
        self._lock = threading.Lock()

    @property
    def runtime(self) -> ExecutionRuntime:
        return self._runtime

    @property
    def attempted(self) -> tuple[ProviderKind, ...]:
        """Kinds whose registration was attempted, in order."""
        with self._lock:
            return tuple(self._attempted)

    @property
    def handle_count(self) -> int:
        with self._lock:
            return len(self._handles)

    def register_provider(self, spec: ExecutionProviderSpec) -> Any:
        with self._lock:
            self._attempted.append(spec.kind)
        handle = self._runtime.register_provider(spec)
        if handle is not None:
            with self._lock:
                self._handles.append((spec.kind, handle))
        return handle

    def release_all(self) -> int:
        """Release every acquired handle, newest first.

        Returns:
            Number of handles released.
        """
        with self._lock:
            handles = list(reversed(self._handles))
            self._handles.clear()

        for kind, handle in handles:
            try:
                self._runtime.release(handle)
            except Exception:
                logger.exception("Failed to release %s device handle", kind.display_name)
        if handles:
            logger.debug("Released %d device handle(s)", len(handles))
        return len(handles)
