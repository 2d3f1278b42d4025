"""
Provider capability declarations.

Each execution provider declares which operators it can execute. The
fallback resolver consults these declarations to place every node of
a graph on the first registered provider that supports it.

This module provides:
- ProviderCapabilities: What one provider declares support for
- BUILTIN_CAPABILITIES: Default declarations for every provider kind
- CapabilityTable: Lookup table with YAML overrides
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Iterator, Mapping

import yaml

from epresolve import reasons
from epresolve.capabilities.schema import get_schema_for_version
from epresolve.enums import ProviderKind
from epresolve.exceptions import CapabilityValidationError
from epresolve.models.graph import OperatorNode
from epresolve.models.options import accepts_subgraphs
from epresolve.reasons import Reason, make_reason

logger = logging.getLogger(__name__)

WILDCARD = "*"

STANDARD_DOMAIN = ""
MS_DOMAIN = "com.microsoft"


@dataclass(frozen=True, slots=True)
class ProviderCapabilities:
    """Operator support declared by one provider.

    Attributes:
        kind: Provider kind.
        op_types: Supported operator types; contains "*" for all.
        domains: Supported operator domains; contains "*" for all.
        excluded_op_types: Operator types never placed on the provider,
            even when op_types is a wildcard.
        supports_subgraphs: Whether the provider can execute nodes of
            nested control-flow subgraphs.
    """

    kind: ProviderKind
    op_types: frozenset[str]
    domains: frozenset[str] = frozenset([STANDARD_DOMAIN])
    excluded_op_types: frozenset[str] = frozenset()
    supports_subgraphs: bool = False

    def check(self, node: OperatorNode) -> Reason | None:
        """Check whether the provider declares support for a node.

        Args:
            node: Operator node to place.

        Returns:
            None if supported, otherwise the rejection reason.
        """
        name = self.kind.display_name
        if WILDCARD not in self.domains and node.domain not in self.domains:
            return make_reason(
                reasons.DOMAIN_UNSUPPORTED,
                f"{name} does not handle domain '{node.domain or 'ai.onnx'}'",
            )
        if node.op_type in self.excluded_op_types:
            return make_reason(
                reasons.OP_TYPE_EXCLUDED,
                f"{name} excludes operator {node.op_type}",
            )
        if WILDCARD not in self.op_types and node.op_type not in self.op_types:
            return make_reason(
                reasons.OP_TYPE_UNSUPPORTED,
                f"{name} does not support operator {node.op_type}",
            )
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "op_types": sorted(self.op_types),
            "domains": sorted(self.domains),
            "excluded_op_types": sorted(self.excluded_op_types),
            "supports_subgraphs": self.supports_subgraphs,
        }


# Operators handled by nearly every accelerator.
_CORE_OPS = frozenset([
    "Add", "Sub", "Mul", "Div", "Pow", "Sqrt", "Exp", "Log", "Abs", "Neg",
    "Relu", "LeakyRelu", "Sigmoid", "Tanh", "Softmax", "Clip", "Erf",
    "Conv", "ConvTranspose", "MatMul", "Gemm",
    "MaxPool", "AveragePool", "GlobalAveragePool", "GlobalMaxPool",
    "BatchNormalization", "InstanceNormalization",
    "Reshape", "Transpose", "Flatten", "Squeeze", "Unsqueeze",
    "Concat", "Split", "Slice", "Gather", "Pad", "Resize",
    "ReduceMean", "ReduceSum", "ReduceMax", "ReduceMin",
    "Cast", "Identity",
])

_TRANSFORMER_OPS = frozenset([
    "LayerNormalization", "Gelu", "Where", "Equal", "Less", "Greater",
    "Expand", "Shape", "Range", "ConstantOfShape", "Einsum", "CumSum", "TopK",
])

_CONTROL_FLOW_OPS = frozenset(["Loop", "If", "Scan"])

_STRING_OPS = frozenset(["StringNormalizer", "TfIdfVectorizer", "Tokenizer", "RegexFullMatch"])


def _caps(
    kind: ProviderKind,
    op_types: frozenset[str],
    *,
    domains: frozenset[str] = frozenset([STANDARD_DOMAIN]),
    excluded: frozenset[str] = frozenset(),
) -> ProviderCapabilities:
    return ProviderCapabilities(
        kind=kind,
        op_types=op_types,
        domains=domains,
        excluded_op_types=excluded,
        supports_subgraphs=accepts_subgraphs(kind),
    )


_GPU_DOMAINS = frozenset([STANDARD_DOMAIN, MS_DOMAIN])

BUILTIN_CAPABILITIES: dict[ProviderKind, ProviderCapabilities] = {
    ProviderKind.CUDA: _caps(
        ProviderKind.CUDA, frozenset([WILDCARD]), domains=_GPU_DOMAINS, excluded=_STRING_OPS
    ),
    ProviderKind.TENSORRT: _caps(
        ProviderKind.TENSORRT, _CORE_OPS | _TRANSFORMER_OPS | _CONTROL_FLOW_OPS
    ),
    ProviderKind.DIRECTML: _caps(
        ProviderKind.DIRECTML, _CORE_OPS | _TRANSFORMER_OPS, domains=_GPU_DOMAINS
    ),
    ProviderKind.COREML: _caps(ProviderKind.COREML, _CORE_OPS | frozenset(["Gelu", "Where"])),
    ProviderKind.ROCM: _caps(
        ProviderKind.ROCM, frozenset([WILDCARD]), domains=_GPU_DOMAINS, excluded=_STRING_OPS
    ),
    ProviderKind.OPENVINO: _caps(
        ProviderKind.OPENVINO, _CORE_OPS | _TRANSFORMER_OPS | _CONTROL_FLOW_OPS
    ),
    ProviderKind.ONEDNN: _caps(ProviderKind.ONEDNN, _CORE_OPS),
    ProviderKind.XNNPACK: _caps(
        ProviderKind.XNNPACK,
        frozenset([
            "Conv", "ConvTranspose", "MatMul", "Gemm", "MaxPool", "AveragePool",
            "Softmax", "Resize", "Add", "Mul", "Relu", "Clip",
        ]),
    ),
    ProviderKind.QNN: _caps(ProviderKind.QNN, _CORE_OPS | _TRANSFORMER_OPS),
    ProviderKind.CANN: _caps(ProviderKind.CANN, _CORE_OPS | _TRANSFORMER_OPS),
    ProviderKind.NNAPI: _caps(ProviderKind.NNAPI, _CORE_OPS),
    ProviderKind.TVM: _caps(ProviderKind.TVM, frozenset([WILDCARD]), excluded=_STRING_OPS),
    ProviderKind.ACL: _caps(ProviderKind.ACL, _CORE_OPS),
    ProviderKind.ARMNN: _caps(ProviderKind.ARMNN, _CORE_OPS),
    ProviderKind.CPU: ProviderCapabilities(
        kind=ProviderKind.CPU,
        op_types=frozenset([WILDCARD]),
        domains=frozenset([WILDCARD]),
        supports_subgraphs=True,
    ),
}


class CapabilityTable:
    """Provider capability lookup.

    Starts from BUILTIN_CAPABILITIES; entries can be replaced per kind
    with ``with_overrides`` or from a YAML descriptor file. Tables are
    immutable: overriding returns a new table.

    Example:
        table = CapabilityTable.from_file("capabilities.yaml")
        caps = table.get(ProviderKind.COREML)

    YAML format::

        schema_version: "1.0"
        providers:
          coreml:
            op_types: [Conv, Relu, MatMul]
            supports_subgraphs: true
    """

    __slots__ = ("_entries",)

    def __init__(
        self,
        entries: Mapping[ProviderKind, ProviderCapabilities] | None = None,
    ) -> None:
        merged = dict(BUILTIN_CAPABILITIES)
        if entries:
            merged.update(entries)
        self._entries = merged

    def get(self, kind: ProviderKind | str) -> ProviderCapabilities:
        return self._entries[ProviderKind.parse(kind)]

    def __iter__(self) -> Iterator[ProviderCapabilities]:
        return iter(self._entries.values())

    def with_overrides(
        self,
        entries: Mapping[ProviderKind, ProviderCapabilities],
    ) -> "CapabilityTable":
        merged = dict(self._entries)
        merged.update(entries)
        return CapabilityTable(merged)

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_version": "1.0",
            "providers": {kind.value: caps.to_dict() for kind, caps in self._entries.items()},
        }

    @classmethod
    def from_dict(cls, descriptor: dict[str, Any], *, source: str | None = None) -> "CapabilityTable":
        """Build a table from a capability descriptor.

        Fields missing from an entry keep their built-in values.

        Raises:
            CapabilityValidationError: If the descriptor is invalid.
        """
        version = descriptor.get("schema_version", "1.0") if isinstance(descriptor, dict) else None
        schema = get_schema_for_version(str(version))
        if schema is None:
            raise CapabilityValidationError(
                f"Unsupported capability schema version: {version}",
                source=source,
            )

        errors = schema.validate(descriptor)
        if errors:
            raise CapabilityValidationError(
                f"Invalid capability descriptor ({len(errors)} error(s))",
                source=source,
                validation_errors=errors,
            )

        overrides: dict[ProviderKind, ProviderCapabilities] = {}
        for name, entry in descriptor["providers"].items():
            kind = ProviderKind.parse(name)
            base = BUILTIN_CAPABILITIES[kind]
            changes: dict[str, Any] = {}
            if "op_types" in entry:
                changes["op_types"] = frozenset(entry["op_types"])
            if "domains" in entry:
                changes["domains"] = frozenset(entry["domains"])
            if "excluded_op_types" in entry:
                changes["excluded_op_types"] = frozenset(entry["excluded_op_types"])
            if "supports_subgraphs" in entry:
                changes["supports_subgraphs"] = entry["supports_subgraphs"]
            overrides[kind] = replace(base, **changes)
            logger.debug("Capability override for %s: %s", kind.display_name, sorted(changes))

        return cls(overrides)

    @classmethod
    def from_file(cls, path: str | Path) -> "CapabilityTable":
        """Load a table from a YAML capability descriptor.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            CapabilityValidationError: If the descriptor is invalid.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Capability file not found: {path}")

        with open(path, "r") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise CapabilityValidationError(
                    f"Invalid YAML in capability file: {e}", source=str(path)
                ) from e

        if data is None:
            data = {"schema_version": "1.0", "providers": {}}
        return cls.from_dict(data, source=str(path))
