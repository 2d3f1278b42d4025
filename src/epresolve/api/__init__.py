"""epresolve Public API.

This module provides the user-facing API for epresolve:
- Configuration management (configure, get_config, load_config)
- System utilities (doctor, readiness_check, dry_run)
"""
from __future__ import annotations

from epresolve.api.config import (
    EPResolveConfig,
    configure,
    get_config,
    load_config,
    load_env,
)
from epresolve.api.system import (
    DoctorReport,
    ProviderStatus,
    ReadinessReport,
    doctor,
    dry_run,
    readiness_check,
)

__all__ = [
    # Configuration
    "EPResolveConfig",
    "configure",
    "get_config",
    "load_config",
    "load_env",
    # System
    "DoctorReport",
    "ProviderStatus",
    "ReadinessReport",
    "doctor",
    "dry_run",
    "readiness_check",
]
