"""
epresolve Reason Codes

Structured reason codes explaining registration outcomes, discarded
provider entries and operator placement decisions.

This module provides:
- ReasonCategory: Categories of reasons
- Reason: Frozen dataclass for structured reasons
- Individual reason code constants
- ALL_REASON_CODES: Mapping of all codes to their categories
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum, unique
from typing import Any


@unique
class ReasonCategory(str, Enum):
    """Categories of reasons.

    Each category groups related reason codes for easier filtering
    and reporting.
    """

    AVAILABILITY = "availability"
    REGISTRATION = "registration"
    CONFIGURATION = "configuration"
    PLACEMENT = "placement"


@dataclass(frozen=True, slots=True)
class Reason:
    """Structured reason.

    Immutable (frozen) and hashable for use in sets/dicts.

    Attributes:
        code: Unique string identifier (SCREAMING_SNAKE_CASE)
        message: Human-readable description of the reason
        category: ReasonCategory for grouping
    """

    code: str
    message: str
    category: ReasonCategory

    def __str__(self) -> str:
        """Return formatted string representation."""
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON compatibility.

        Returns:
            Dict with 'code', 'message', 'category' keys.
        """
        return {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Reason:
        """Deserialize from dictionary.

        Args:
            d: Dict with 'code', 'message', 'category' keys.

        Returns:
            New Reason instance.
        """
        return cls(
            code=d["code"],
            message=d["message"],
            category=ReasonCategory(d["category"]),
        )


# =============================================================================
# Availability Reason Codes
# =============================================================================

NOT_BUILT_WITH_SUPPORT = "NOT_BUILT_WITH_SUPPORT"
"""Runtime was not built with support for the provider."""

DISABLED_BY_OVERRIDE = "DISABLED_BY_OVERRIDE"
"""Availability override marks the provider as unavailable."""


# =============================================================================
# Registration Reason Codes
# =============================================================================

REGISTRATION_ERROR = "REGISTRATION_ERROR"
"""Provider is available but its registration call raised."""

DEVICE_NOT_FOUND = "DEVICE_NOT_FOUND"
"""Provider asked for a device that does not exist."""


# =============================================================================
# Configuration Reason Codes
# =============================================================================

DUPLICATE_PROVIDER = "DUPLICATE_PROVIDER"
"""Provider kind already listed earlier; later entry discarded."""

CPU_LISTED_EXPLICITLY = "CPU_LISTED_EXPLICITLY"
"""CPU is the implicit final fallback and is never listed."""


# =============================================================================
# Placement Reason Codes
# =============================================================================

OP_TYPE_UNSUPPORTED = "OP_TYPE_UNSUPPORTED"
"""Provider does not declare support for the operator type."""

OP_TYPE_EXCLUDED = "OP_TYPE_EXCLUDED"
"""Provider explicitly excludes the operator type."""

DOMAIN_UNSUPPORTED = "DOMAIN_UNSUPPORTED"
"""Provider does not handle the operator's domain."""

SUBGRAPH_DISABLED = "SUBGRAPH_DISABLED"
"""Node sits in a control-flow subgraph and the provider does not extend into subgraphs."""


ALL_REASON_CODES: dict[str, ReasonCategory] = {
    NOT_BUILT_WITH_SUPPORT: ReasonCategory.AVAILABILITY,
    DISABLED_BY_OVERRIDE: ReasonCategory.AVAILABILITY,
    REGISTRATION_ERROR: ReasonCategory.REGISTRATION,
    DEVICE_NOT_FOUND: ReasonCategory.REGISTRATION,
    DUPLICATE_PROVIDER: ReasonCategory.CONFIGURATION,
    CPU_LISTED_EXPLICITLY: ReasonCategory.CONFIGURATION,
    OP_TYPE_UNSUPPORTED: ReasonCategory.PLACEMENT,
    OP_TYPE_EXCLUDED: ReasonCategory.PLACEMENT,
    DOMAIN_UNSUPPORTED: ReasonCategory.PLACEMENT,
    SUBGRAPH_DISABLED: ReasonCategory.PLACEMENT,
}


def make_reason(code: str, message: str) -> Reason:
    """Factory function to create a Reason with automatic category lookup.

    Args:
        code: Reason code (must be in ALL_REASON_CODES).
        message: Human-readable message.

    Returns:
        New Reason instance with correct category.

    Raises:
        KeyError: If code is not a known reason code.
    """
    return Reason(code=code, message=message, category=ALL_REASON_CODES[code])
