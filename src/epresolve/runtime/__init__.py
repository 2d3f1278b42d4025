"""
Inference runtimes providers are registered against.
"""
from epresolve.runtime.base import BuildContext, ExecutionRuntime
from epresolve.runtime.onnx import OnnxRuntime, OrtProviderHandle, to_provider_options
from epresolve.runtime.simulated import DeviceHandle, SimulatedRuntime

__all__ = [
    "BuildContext",
    "DeviceHandle",
    "ExecutionRuntime",
    "OnnxRuntime",
    "OrtProviderHandle",
    "SimulatedRuntime",
    "to_provider_options",
]
