"""
In-memory runtime.

Simulates an inference runtime built with a configurable set of
providers. Useful for tests, dry runs and planning partitions on
machines without the target hardware.
"""
from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Iterable, Mapping

from epresolve.enums import ProviderKind
from epresolve.exceptions import DeviceNotFoundError
from epresolve.models.provider_spec import ExecutionProviderSpec
from epresolve.runtime.base import ExecutionRuntime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeviceHandle:
    """Device context acquired for one provider registration."""

    kind: ProviderKind
    device_id: int
    handle_id: int


class SimulatedRuntime(ExecutionRuntime):
    """Runtime whose capabilities are declared up front.

    Example:
        runtime = SimulatedRuntime(
            available=["cuda", "tensorrt"],
            failing={"tensorrt": "TensorRT engine build failed"},
        )

    Args:
        available: Provider kinds the runtime is "built with". CPU is
            always available.
        failing: Kinds whose registration raises RuntimeError with the
            given message.
        device_count: Devices per kind (default 1). Specs asking for a
            device_id beyond the count raise DeviceNotFoundError.
    """

    name = "simulated"

    def __init__(
        self,
        available: Iterable[ProviderKind | str] = (),
        *,
        failing: Mapping[ProviderKind | str, str] | None = None,
        device_count: Mapping[ProviderKind | str, int] | None = None,
    ) -> None:
        self._available = frozenset(ProviderKind.parse(k) for k in available) | {ProviderKind.CPU}
        self._failing = {ProviderKind.parse(k): msg for k, msg in (failing or {}).items()}
        self._device_count = {ProviderKind.parse(k): n for k, n in (device_count or {}).items()}
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._attempts: list[ProviderKind] = []
        self._active: dict[int, DeviceHandle] = {}
        self._released: list[DeviceHandle] = []

    @property
    def version(self) -> str:
        return "simulated"

    @property
    def registration_attempts(self) -> list[ProviderKind]:
        """Every kind register_provider was called for, in call order."""
        with self._lock:
            return list(self._attempts)

    @property
    def active_handles(self) -> list[DeviceHandle]:
        with self._lock:
            return list(self._active.values())

    @property
    def released_handles(self) -> list[DeviceHandle]:
        with self._lock:
            return list(self._released)

    def available_providers(self) -> frozenset[ProviderKind]:
        return self._available

    def register_provider(self, spec: ExecutionProviderSpec) -> DeviceHandle:
        with self._lock:
            self._attempts.append(spec.kind)

        message = self._failing.get(spec.kind)
        if message is not None:
            raise RuntimeError(message)

        device_id = int(spec.options.get("device_id", 0))
        if device_id >= self._device_count.get(spec.kind, 1):
            raise DeviceNotFoundError(spec.kind, device_id)

        handle = DeviceHandle(kind=spec.kind, device_id=device_id, handle_id=next(self._ids))
        with self._lock:
            self._active[handle.handle_id] = handle
        logger.debug("Acquired %s device %d (handle %d)", spec.kind.display_name, device_id, handle.handle_id)
        return handle

    def release(self, handle: DeviceHandle) -> None:
        with self._lock:
            if self._active.pop(handle.handle_id, None) is None:
                logger.warning("Attempted to release unknown handle %d", handle.handle_id)
                return
            self._released.append(handle)
