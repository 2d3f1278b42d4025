"""
ONNX Runtime adapter.

Reports the providers the installed ``onnxruntime`` package was built
with and opens ``onnxruntime.InferenceSession`` objects using the
resolved provider order. The package is imported lazily; probing never
raises, and a missing package leaves only the CPU provider available.
"""
from __future__ import annotations

import importlib
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

from epresolve.enums import ProviderKind
from epresolve.exceptions import DeviceNotFoundError
from epresolve.models.provider_spec import ExecutionProviderSpec
from epresolve.runtime.base import ExecutionRuntime

logger = logging.getLogger(__name__)

# Runtime option names where they differ from ours.
_OPTION_NAMES: dict[ProviderKind, dict[str, str]] = {
    ProviderKind.TENSORRT: {
        "fp16": "trt_fp16_enable",
        "int8": "trt_int8_enable",
        "engine_cache": "trt_engine_cache_enable",
        "engine_cache_path": "trt_engine_cache_path",
        "timing_cache": "trt_timing_cache_enable",
        "max_workspace_size": "trt_max_workspace_size",
        "min_subgraph_size": "trt_min_subgraph_size",
    },
    ProviderKind.COREML: {
        "subgraphs": "EnableOnSubgraphs",
        "static_input_shapes": "RequireStaticInputShapes",
    },
    ProviderKind.OPENVINO: {
        "num_threads": "num_of_threads",
    },
    ProviderKind.CUDA: {
        "tf32": "use_tf32",
    },
}

# Options consumed by the resolver and not passed to the runtime.
_RESOLVER_ONLY = frozenset(["subgraphs"])


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def to_provider_options(spec: ExecutionProviderSpec) -> dict[str, str]:
    """Translate spec options to onnxruntime provider options.

    onnxruntime takes provider options as a string-to-string mapping.
    Booleans become "1"/"0"; names are translated where the runtime
    spells them differently.

    Args:
        spec: Provider spec.

    Returns:
        Provider options for ``InferenceSession(provider_options=...)``.
    """
    names = _OPTION_NAMES.get(spec.kind, {})
    result: dict[str, str] = {}

    for name, value in spec.options.items():
        if spec.kind is ProviderKind.COREML:
            if name == "ane_only":
                if value:
                    result["MLComputeUnits"] = "CPUAndNeuralEngine"
                continue
            if name == "cpu_only":
                if value:
                    result["MLComputeUnits"] = "CPUOnly"
                continue
            if name == "mlprogram":
                result["ModelFormat"] = "MLProgram" if value else "NeuralNetwork"
                continue
        elif name in _RESOLVER_ONLY:
            continue
        result[names.get(name, name)] = _format_value(value)

    return result


@dataclass
class OrtProviderHandle:
    """Record of one provider activated for an onnxruntime session."""

    kind: ProviderKind
    provider_name: str
    provider_options: dict[str, str] = field(default_factory=dict)
    released: bool = False


class OnnxRuntime(ExecutionRuntime):
    """Runtime backed by the installed ``onnxruntime`` package.

    Args:
        module_name: Module to import (e.g. "onnxruntime" or a vendor
            build's module name).
    """

    name = "onnxruntime"

    def __init__(self, module_name: str = "onnxruntime") -> None:
        self._module_name = module_name
        self._module: Any = None
        self._probed = False
        self._probe_error: str | None = None
        self._lock = threading.Lock()

    def _probe(self) -> Any:
        with self._lock:
            if not self._probed:
                try:
                    self._module = importlib.import_module(self._module_name)
                except ImportError as e:
                    self._probe_error = str(e)
                except Exception as e:
                    self._probe_error = f"Unexpected error: {e}"
                self._probed = True
                if self._probe_error:
                    logger.debug("onnxruntime probe failed: %s", self._probe_error)
            return self._module

    @property
    def probe_error(self) -> str | None:
        self._probe()
        return self._probe_error

    @property
    def version(self) -> str:
        module = self._probe()
        return getattr(module, "__version__", "unknown") if module is not None else "unknown"

    def available_providers(self) -> frozenset[ProviderKind]:
        module = self._probe()
        kinds = {ProviderKind.CPU}
        if module is None:
            return frozenset(kinds)

        try:
            names = module.get_available_providers()
        except Exception as e:
            logger.warning("onnxruntime.get_available_providers() failed: %s", e)
            return frozenset(kinds)

        for name in names:
            kind = ProviderKind.from_runtime_name(name)
            if kind is None:
                logger.debug("Ignoring unknown onnxruntime provider %s", name)
                continue
            kinds.add(kind)
        return frozenset(kinds)

    def register_provider(self, spec: ExecutionProviderSpec) -> OrtProviderHandle:
        if self._probe() is None:
            raise RuntimeError(f"onnxruntime is not importable: {self._probe_error}")
        device_id = spec.options.get("device_id")
        if device_id is not None and int(device_id) < 0:
            raise DeviceNotFoundError(spec.kind, int(device_id))
        return OrtProviderHandle(
            kind=spec.kind,
            provider_name=spec.kind.runtime_name,
            provider_options=to_provider_options(spec),
        )

    def release(self, handle: OrtProviderHandle) -> None:
        handle.released = True

    def open_model(
        self,
        path: Path,
        providers: Sequence[ExecutionProviderSpec],
        cpu_fallback: ExecutionProviderSpec,
    ) -> Any:
        module = self._probe()
        if module is None:
            raise RuntimeError(f"onnxruntime is not importable: {self._probe_error}")

        ordered = list(providers) + [cpu_fallback]
        names = [spec.kind.runtime_name for spec in ordered]
        options = [to_provider_options(spec) for spec in ordered]
        logger.debug("Opening %s with providers %s", path, names)
        return module.InferenceSession(
            str(path),
            providers=names,
            provider_options=options,
        )

    def dropped_providers(
        self,
        runtime_session: Any,
        providers: Sequence[ExecutionProviderSpec],
    ) -> dict[ProviderKind, str]:
        """Compare the session's active providers with the requested ones.

        onnxruntime falls back to the next provider, without raising,
        when one fails to initialize (missing CUDA libraries, an absent
        device). ``InferenceSession.get_providers()`` lists the ones
        actually in use.
        """
        if runtime_session is None or not providers:
            return {}
        try:
            active = set(runtime_session.get_providers())
        except Exception as e:
            logger.warning("InferenceSession.get_providers() failed: %s", e)
            return {}

        dropped = {}
        for spec in providers:
            if spec.kind.runtime_name not in active:
                dropped[spec.kind] = f"onnxruntime session did not activate {spec.kind.runtime_name}"
        if dropped:
            logger.debug("onnxruntime session providers: %s", sorted(active))
        return dropped
