"""
epresolve Provider Option Schemas

Known configuration options per provider kind, with their value types.
Specs are validated against these tables at construction time.
"""
from __future__ import annotations

from typing import Any

from epresolve.enums import ProviderKind
from epresolve.exceptions import ConfigurationError

# Option that extends a provider's placement into control-flow subgraphs.
SUBGRAPHS_OPTION = "subgraphs"

_ARENA = {"arena_allocator": bool}

PROVIDER_OPTIONS: dict[ProviderKind, dict[str, type]] = {
    ProviderKind.CUDA: {
        "device_id": int,
        "gpu_mem_limit": int,
        "arena_extend_strategy": str,
        "cudnn_conv_algo_search": str,
        "cudnn_conv_use_max_workspace": bool,
        "do_copy_in_default_stream": bool,
        "tf32": bool,
        SUBGRAPHS_OPTION: bool,
    },
    ProviderKind.TENSORRT: {
        "device_id": int,
        "fp16": bool,
        "int8": bool,
        "engine_cache": bool,
        "engine_cache_path": str,
        "timing_cache": bool,
        "max_workspace_size": int,
        "min_subgraph_size": int,
        SUBGRAPHS_OPTION: bool,
    },
    ProviderKind.DIRECTML: {
        "device_id": int,
        SUBGRAPHS_OPTION: bool,
    },
    ProviderKind.COREML: {
        "ane_only": bool,
        "cpu_only": bool,
        "mlprogram": bool,
        "static_input_shapes": bool,
        SUBGRAPHS_OPTION: bool,
    },
    ProviderKind.ROCM: {
        "device_id": int,
        "gpu_mem_limit": int,
        "arena_extend_strategy": str,
        SUBGRAPHS_OPTION: bool,
    },
    ProviderKind.OPENVINO: {
        "device_type": str,
        "num_threads": int,
        "cache_dir": str,
        "enable_opencl_throttling": bool,
        "enable_dynamic_shapes": bool,
        SUBGRAPHS_OPTION: bool,
    },
    ProviderKind.ONEDNN: dict(_ARENA),
    ProviderKind.XNNPACK: {"intra_op_num_threads": int},
    ProviderKind.QNN: {
        "backend_path": str,
        "profiling_level": str,
        "htp_performance_mode": str,
    },
    ProviderKind.CANN: {
        "device_id": int,
        "npu_mem_limit": int,
        "enable_cann_graph": bool,
        "precision_mode": str,
    },
    ProviderKind.NNAPI: {
        "fp16": bool,
        "nchw": bool,
        "cpu_disabled": bool,
        "cpu_only": bool,
    },
    ProviderKind.TVM: {
        "executor": str,
        "target": str,
        "opt_level": int,
        "freeze_weights": bool,
    },
    ProviderKind.ACL: dict(_ARENA),
    ProviderKind.ARMNN: dict(_ARENA),
    ProviderKind.CPU: dict(_ARENA),
}


def accepts_subgraphs(kind: ProviderKind) -> bool:
    """Whether the provider kind accepts the subgraphs option."""
    return SUBGRAPHS_OPTION in PROVIDER_OPTIONS[kind]


def _type_matches(value: Any, expected: type) -> bool:
    # bool is an int subclass; keep them apart in both directions.
    if expected is bool:
        return isinstance(value, bool)
    if expected is int:
        return isinstance(value, int) and not isinstance(value, bool)
    if expected is float:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    return isinstance(value, expected)


def validate_options(kind: ProviderKind, options: dict[str, Any]) -> None:
    """Validate provider options against the kind's schema.

    Args:
        kind: Provider kind the options belong to.
        options: Option name to value mapping.

    Raises:
        ConfigurationError: On an unknown option name or a value of the
            wrong type.
    """
    schema = PROVIDER_OPTIONS[kind]
    for name, value in options.items():
        key = f"{kind.value}.{name}"
        expected = schema.get(name)
        if expected is None:
            raise ConfigurationError(
                f"Unknown option '{name}' for {kind.display_name} provider",
                config_key=key,
                expected=sorted(schema),
                got=name,
            )
        if not _type_matches(value, expected):
            raise ConfigurationError(
                f"Option '{name}' for {kind.display_name} provider must be "
                f"{expected.__name__}, got {type(value).__name__}",
                config_key=key,
                expected=expected.__name__,
                got=value,
            )
