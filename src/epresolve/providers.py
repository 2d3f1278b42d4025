"""Factory functions for execution provider specs.

Thin keyword-argument constructors, one per provider kind::

    import epresolve as ep

    providers = [
        ep.providers.tensorrt(fp16=True, strict=True),
        ep.providers.cuda(device_id=0),
        ep.providers.coreml(subgraphs=True, ane_only=True),
    ]
"""
from __future__ import annotations

from typing import Any

from epresolve.enums import FailurePolicy, ProviderKind
from epresolve.models.provider_spec import ExecutionProviderSpec


def provider(
    kind: ProviderKind | str,
    *,
    strict: bool | None = None,
    **options: Any,
) -> ExecutionProviderSpec:
    """Build a spec for any provider kind.

    Args:
        kind: Provider kind or name.
        strict: True for propagate-error, False for silently-skip, None
            to inherit the configured default.
        **options: Provider-specific options.
    """
    policy = None if strict is None else FailurePolicy.parse(strict)
    return ExecutionProviderSpec(kind, options, policy)


def cuda(*, strict: bool | None = None, **options: Any) -> ExecutionProviderSpec:
    return provider(ProviderKind.CUDA, strict=strict, **options)


def tensorrt(*, strict: bool | None = None, **options: Any) -> ExecutionProviderSpec:
    return provider(ProviderKind.TENSORRT, strict=strict, **options)


def directml(*, strict: bool | None = None, **options: Any) -> ExecutionProviderSpec:
    return provider(ProviderKind.DIRECTML, strict=strict, **options)


def coreml(*, strict: bool | None = None, **options: Any) -> ExecutionProviderSpec:
    return provider(ProviderKind.COREML, strict=strict, **options)


def rocm(*, strict: bool | None = None, **options: Any) -> ExecutionProviderSpec:
    return provider(ProviderKind.ROCM, strict=strict, **options)


def openvino(*, strict: bool | None = None, **options: Any) -> ExecutionProviderSpec:
    return provider(ProviderKind.OPENVINO, strict=strict, **options)


def onednn(*, strict: bool | None = None, **options: Any) -> ExecutionProviderSpec:
    return provider(ProviderKind.ONEDNN, strict=strict, **options)


def xnnpack(*, strict: bool | None = None, **options: Any) -> ExecutionProviderSpec:
    return provider(ProviderKind.XNNPACK, strict=strict, **options)


def qnn(*, strict: bool | None = None, **options: Any) -> ExecutionProviderSpec:
    return provider(ProviderKind.QNN, strict=strict, **options)


def cann(*, strict: bool | None = None, **options: Any) -> ExecutionProviderSpec:
    return provider(ProviderKind.CANN, strict=strict, **options)


def nnapi(*, strict: bool | None = None, **options: Any) -> ExecutionProviderSpec:
    return provider(ProviderKind.NNAPI, strict=strict, **options)


def tvm(*, strict: bool | None = None, **options: Any) -> ExecutionProviderSpec:
    return provider(ProviderKind.TVM, strict=strict, **options)


def acl(*, strict: bool | None = None, **options: Any) -> ExecutionProviderSpec:
    return provider(ProviderKind.ACL, strict=strict, **options)


def armnn(*, strict: bool | None = None, **options: Any) -> ExecutionProviderSpec:
    return provider(ProviderKind.ARMNN, strict=strict, **options)


def cpu(**options: Any) -> ExecutionProviderSpec:
    """Options for the implicit CPU fallback.

    Listing this spec never changes provider order; its options are
    applied to the final CPU fallback.
    """
    return provider(ProviderKind.CPU, **options)
