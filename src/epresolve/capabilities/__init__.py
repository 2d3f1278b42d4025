"""
Provider capability declarations and descriptor validation.
"""
from epresolve.capabilities.schema import (
    SUPPORTED_SCHEMA_VERSIONS,
    SchemaV1,
    get_schema_for_version,
)
from epresolve.capabilities.table import (
    BUILTIN_CAPABILITIES,
    CapabilityTable,
    ProviderCapabilities,
)

__all__ = [
    "BUILTIN_CAPABILITIES",
    "CapabilityTable",
    "ProviderCapabilities",
    "SUPPORTED_SCHEMA_VERSIONS",
    "SchemaV1",
    "get_schema_for_version",
]
