"""
epresolve Core Enumerations

Type-safe enums for provider kinds, failure policies and registration status.
All enums inherit from (str, Enum) for JSON serialization compatibility.

This module provides:
- ProviderKind: Hardware execution providers known to the resolver
- FailurePolicy: What a registration failure does to the session build
- RegistrationStatus: Per-provider registration outcome
"""
from __future__ import annotations

from enum import Enum, unique


@unique
class ProviderKind(str, Enum):
    """Execution provider kinds.

    The value is the canonical lowercase identifier used in configuration
    files and environment variables. Each member also knows its display
    name and the identifier the inference runtime uses for it.

    Members:
        CUDA: NVIDIA GPUs via CUDA
        TENSORRT: NVIDIA TensorRT
        DIRECTML: DirectX 12 devices on Windows
        COREML: Apple CoreML (CPU, GPU, Neural Engine)
        ROCM: AMD GPUs via ROCm
        OPENVINO: Intel OpenVINO
        ONEDNN: Intel oneDNN (formerly DNNL)
        XNNPACK: XNNPACK for ARM/x86/WebAssembly CPUs
        QNN: Qualcomm AI Engine Direct
        CANN: Huawei Ascend via CANN
        NNAPI: Android Neural Networks API
        TVM: Apache TVM
        ACL: Arm Compute Library
        ARMNN: Arm NN
        CPU: Default CPU provider, always the final fallback
    """

    CUDA = "cuda"
    TENSORRT = "tensorrt"
    DIRECTML = "directml"
    COREML = "coreml"
    ROCM = "rocm"
    OPENVINO = "openvino"
    ONEDNN = "onednn"
    XNNPACK = "xnnpack"
    QNN = "qnn"
    CANN = "cann"
    NNAPI = "nnapi"
    TVM = "tvm"
    ACL = "acl"
    ARMNN = "armnn"
    CPU = "cpu"

    @property
    def display_name(self) -> str:
        """Human-readable provider name (e.g. "TensorRT")."""
        return _DISPLAY_NAMES[self]

    @property
    def runtime_name(self) -> str:
        """Identifier the inference runtime uses for this provider."""
        return _RUNTIME_NAMES[self]

    @property
    def is_cpu(self) -> bool:
        return self is ProviderKind.CPU

    @classmethod
    def parse(cls, value: "ProviderKind | str") -> "ProviderKind":
        """Parse a provider kind from any of its spellings.

        Accepts the enum itself, the canonical value ("tensorrt"), the
        display name ("TensorRT") or the runtime name
        ("TensorrtExecutionProvider"), case-insensitively.

        Args:
            value: Kind or string to parse.

        Returns:
            Matching ProviderKind.

        Raises:
            ValueError: If the string does not name a known provider.
        """
        if isinstance(value, ProviderKind):
            return value

        key = str(value).strip().lower()
        kind = _LOOKUP.get(key)
        if kind is None:
            raise ValueError(f"Unknown execution provider: {value!r}")
        return kind

    @classmethod
    def from_runtime_name(cls, name: str) -> "ProviderKind | None":
        """Map a runtime provider identifier to a kind, or None if unknown."""
        return _LOOKUP.get(name.lower()) if name.lower().endswith("executionprovider") else None


_DISPLAY_NAMES: dict[ProviderKind, str] = {
    ProviderKind.CUDA: "CUDA",
    ProviderKind.TENSORRT: "TensorRT",
    ProviderKind.DIRECTML: "DirectML",
    ProviderKind.COREML: "CoreML",
    ProviderKind.ROCM: "ROCm",
    ProviderKind.OPENVINO: "OpenVINO",
    ProviderKind.ONEDNN: "oneDNN",
    ProviderKind.XNNPACK: "XNNPACK",
    ProviderKind.QNN: "QNN",
    ProviderKind.CANN: "CANN",
    ProviderKind.NNAPI: "NNAPI",
    ProviderKind.TVM: "TVM",
    ProviderKind.ACL: "ACL",
    ProviderKind.ARMNN: "ArmNN",
    ProviderKind.CPU: "CPU",
}

_RUNTIME_NAMES: dict[ProviderKind, str] = {
    ProviderKind.CUDA: "CUDAExecutionProvider",
    ProviderKind.TENSORRT: "TensorrtExecutionProvider",
    ProviderKind.DIRECTML: "DmlExecutionProvider",
    ProviderKind.COREML: "CoreMLExecutionProvider",
    ProviderKind.ROCM: "ROCMExecutionProvider",
    ProviderKind.OPENVINO: "OpenVINOExecutionProvider",
    ProviderKind.ONEDNN: "DnnlExecutionProvider",
    ProviderKind.XNNPACK: "XnnpackExecutionProvider",
    ProviderKind.QNN: "QNNExecutionProvider",
    ProviderKind.CANN: "CANNExecutionProvider",
    ProviderKind.NNAPI: "NnapiExecutionProvider",
    ProviderKind.TVM: "TvmExecutionProvider",
    ProviderKind.ACL: "ACLExecutionProvider",
    ProviderKind.ARMNN: "ArmNNExecutionProvider",
    ProviderKind.CPU: "CPUExecutionProvider",
}

_LOOKUP: dict[str, ProviderKind] = {}
for _kind in ProviderKind:
    _LOOKUP[_kind.value] = _kind
    _LOOKUP[_DISPLAY_NAMES[_kind].lower()] = _kind
    _LOOKUP[_RUNTIME_NAMES[_kind].lower()] = _kind
# Common aliases
_LOOKUP["dml"] = ProviderKind.DIRECTML
_LOOKUP["dnnl"] = ProviderKind.ONEDNN
_LOOKUP["trt"] = ProviderKind.TENSORRT
del _kind


@unique
class FailurePolicy(str, Enum):
    """What a failed or unavailable provider does to the session build.

    Members:
        PROPAGATE_ERROR: Abort the whole build with an error (strict)
        SILENTLY_SKIP: Continue with the next provider (default)
    """

    PROPAGATE_ERROR = "propagate_error"
    SILENTLY_SKIP = "silently_skip"

    @classmethod
    def parse(cls, value: "FailurePolicy | str | bool") -> "FailurePolicy":
        """Parse a policy from a string or a strict flag.

        "strict"/"error" and True map to PROPAGATE_ERROR;
        "silent"/"skip" and False map to SILENTLY_SKIP.
        """
        if isinstance(value, FailurePolicy):
            return value
        if isinstance(value, bool):
            return cls.PROPAGATE_ERROR if value else cls.SILENTLY_SKIP

        key = str(value).strip().lower()
        if key in ("strict", "error", "propagate", cls.PROPAGATE_ERROR.value):
            return cls.PROPAGATE_ERROR
        if key in ("silent", "skip", "lenient", cls.SILENTLY_SKIP.value):
            return cls.SILENTLY_SKIP
        raise ValueError(f"Unknown failure policy: {value!r}")


@unique
class RegistrationStatus(str, Enum):
    """Outcome of registering one provider.

    Members:
        REGISTERED: Provider was activated for the session
        UNAVAILABLE: Runtime was not built with support for the provider
        FAILED: Provider is available but its registration call failed
    """

    REGISTERED = "registered"
    UNAVAILABLE = "unavailable"
    FAILED = "failed"
