"""
Capability descriptor schema definitions.

This module provides:
- SUPPORTED_SCHEMA_VERSIONS: Set of supported schema versions
- SchemaV1: Schema definition for v1 descriptors
- get_schema_for_version: Get schema for a version
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from epresolve.enums import ProviderKind

logger = logging.getLogger(__name__)


SUPPORTED_SCHEMA_VERSIONS: frozenset[str] = frozenset(["1.0"])

_LIST_FIELDS = ("op_types", "domains", "excluded_op_types")


class Schema(ABC):
    """Abstract base class for schema definitions."""

    @property
    @abstractmethod
    def version(self) -> str:
        """Get schema version."""

    @abstractmethod
    def validate(self, descriptor: dict[str, Any]) -> list[str]:
        """Validate descriptor against schema.

        Args:
            descriptor: Capability descriptor.

        Returns:
            List of error messages (empty if valid).
        """


@dataclass
class SchemaV1(Schema):
    """Schema definition for v1 capability descriptors.

    Required fields:
    - schema_version: Must be "1.0"
    - providers: Mapping of provider name to capability entry

    Capability entry fields (all optional):
    - op_types: List of operator types, "*" for all
    - domains: List of operator domains, "*" for all
    - excluded_op_types: List of operator types never placed
    - supports_subgraphs: Whether subgraph placement is possible
    """

    _version: str = "1.0"
    _entry_fields: frozenset[str] = field(
        default_factory=lambda: frozenset(_LIST_FIELDS + ("supports_subgraphs",))
    )

    @property
    def version(self) -> str:
        return self._version

    def validate(self, descriptor: dict[str, Any]) -> list[str]:
        errors: list[str] = []

        if not isinstance(descriptor, dict):
            return [f"Descriptor must be a mapping, got {type(descriptor).__name__}"]

        version = descriptor.get("schema_version")
        if version is None:
            errors.append("Missing required field: schema_version")
        elif str(version) != self._version:
            errors.append(
                f"Schema version mismatch: expected {self._version}, got {version}"
            )

        providers = descriptor.get("providers")
        if providers is None:
            errors.append("Missing required field: providers")
        elif not isinstance(providers, dict):
            errors.append("'providers' must be a mapping")
        else:
            for name, entry in providers.items():
                errors.extend(self._validate_entry(str(name), entry))

        return errors

    def _validate_entry(self, name: str, entry: Any) -> list[str]:
        errors: list[str] = []
        try:
            ProviderKind.parse(name)
        except ValueError:
            errors.append(f"Unknown provider: {name}")

        if not isinstance(entry, dict):
            errors.append(f"{name}: entry must be a mapping")
            return errors

        for key, value in entry.items():
            if key not in self._entry_fields:
                errors.append(f"{name}: unknown field '{key}'")
            elif key in _LIST_FIELDS:
                if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                    errors.append(f"{name}.{key}: must be a list of strings")
            elif key == "supports_subgraphs" and not isinstance(value, bool):
                errors.append(f"{name}.supports_subgraphs: must be a boolean")

        return errors


_SCHEMAS: dict[str, Schema] = {"1.0": SchemaV1()}


def get_schema_for_version(version: str) -> Schema | None:
    """Get schema for a descriptor version, or None if unsupported."""
    schema = _SCHEMAS.get(str(version))
    if schema is None:
        logger.debug("Unsupported capability schema version: %s", version)
    return schema
