"""epresolve Configuration APIs.

Public APIs for configuring epresolve:
- configure() - Set global configuration
- get_config() - Get current configuration
- load_config() - Load configuration (and default providers) from file
- load_env() - Read EPRESOLVE_* environment overrides
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional
import threading
import yaml

from epresolve.enums import FailurePolicy, ProviderKind
from epresolve.exceptions import ConfigurationError
from epresolve.models.provider_spec import ExecutionProviderSpec
from epresolve.registry.provider_registry import ORDERING_CHECKS

logger = logging.getLogger(__name__)

ENV_PREFIX = "EPRESOLVE_"

CONFIG_KEYS = (
    "ordering_check",
    "default_failure_policy",
    "warn_on_cpu_fallback",
    "availability_overrides",
    "capabilities_path",
)

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


@dataclass
class EPResolveConfig:
    """Global epresolve configuration.

    Attributes:
        ordering_check: What happens when default providers change after
            sessions were built: "warn", "error" or "ignore".
        default_failure_policy: Policy for specs without an explicit one.
        warn_on_cpu_fallback: Log a WARNING (instead of INFO) when no
            requested provider registered and a session runs on CPU only.
        availability_overrides: Provider availability forced regardless
            of what the runtime reports.
        capabilities_path: YAML capability descriptor overriding the
            built-in operator support tables.
    """
    ordering_check: str = "warn"
    default_failure_policy: FailurePolicy = FailurePolicy.SILENTLY_SKIP
    warn_on_cpu_fallback: bool = False
    availability_overrides: Dict[ProviderKind, bool] = field(default_factory=dict)
    capabilities_path: Optional[str] = None

    def copy(self) -> "EPResolveConfig":
        return replace(self, availability_overrides=dict(self.availability_overrides))


@dataclass
class GlobalState:
    """Global configuration state."""
    config: EPResolveConfig = field(default_factory=EPResolveConfig)
    _lock: threading.Lock = field(default_factory=threading.Lock)


# Module-level global state
_global_state: Optional[GlobalState] = None
_state_lock = threading.Lock()


def _get_global_state() -> GlobalState:
    """Get or create global state, applying environment overrides once."""
    global _global_state
    if _global_state is None:
        with _state_lock:
            if _global_state is None:
                state = GlobalState()
                _apply(state.config, load_env())
                _global_state = state
    return _global_state


def _parse_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        f"Invalid boolean for {key}: {value!r}", config_key=key, expected="boolean", got=value
    )


def _parse_overrides(value: Any) -> Dict[ProviderKind, bool]:
    if not isinstance(value, dict):
        raise ConfigurationError(
            "availability_overrides must be a mapping of provider to bool",
            config_key="availability_overrides",
            expected="mapping",
            got=value,
        )
    try:
        return {
            ProviderKind.parse(k): _parse_bool(f"availability_overrides.{k}", v)
            for k, v in value.items()
        }
    except ValueError as e:
        raise ConfigurationError(str(e), config_key="availability_overrides", got=value) from e


def _apply(config: EPResolveConfig, settings: Dict[str, Any]) -> None:
    """Validate and apply settings to a config object in place."""
    for key, value in settings.items():
        if value is None:
            continue
        if key == "ordering_check":
            if value not in ORDERING_CHECKS:
                raise ConfigurationError(
                    f"Invalid ordering_check: {value!r}",
                    config_key=key,
                    expected=ORDERING_CHECKS,
                    got=value,
                )
            config.ordering_check = value
        elif key == "default_failure_policy":
            try:
                config.default_failure_policy = FailurePolicy.parse(value)
            except ValueError as e:
                raise ConfigurationError(str(e), config_key=key, got=value) from e
        elif key == "warn_on_cpu_fallback":
            config.warn_on_cpu_fallback = _parse_bool(key, value)
        elif key == "availability_overrides":
            config.availability_overrides = _parse_overrides(value)
        elif key == "capabilities_path":
            config.capabilities_path = str(value)
        else:
            raise ConfigurationError(f"Unknown configuration key: {key}", config_key=key)


def configure(
    ordering_check: Optional[str] = None,
    default_failure_policy: Optional[FailurePolicy | str] = None,
    warn_on_cpu_fallback: Optional[bool] = None,
    availability_overrides: Optional[Dict[Any, bool]] = None,
    capabilities_path: Optional[str] = None,
    reset: bool = False,
) -> None:
    """Configure epresolve global settings.

    Settings persist for the lifetime of the process unless reset.
    Environments capture a copy of the configuration when they are
    built, so configure before calling ``init().commit()``.

    Args:
        ordering_check: "warn", "error" or "ignore".
        default_failure_policy: Policy for specs without an explicit one.
        warn_on_cpu_fallback: Surface full CPU fallback as a WARNING.
        availability_overrides: Provider to forced availability.
        capabilities_path: Path to a YAML capability descriptor.
        reset: If True, reset all settings to defaults first.

    Raises:
        ConfigurationError: If a value is invalid.

    Example:
        >>> import epresolve as ep
        >>>
        >>> ep.configure(ordering_check="error", warn_on_cpu_fallback=True)
        >>>
        >>> # Reset to defaults
        >>> ep.configure(reset=True)
    """
    state = _get_global_state()

    with state._lock:
        candidate = EPResolveConfig() if reset else state.config.copy()
        _apply(candidate, {
            "ordering_check": ordering_check,
            "default_failure_policy": default_failure_policy,
            "warn_on_cpu_fallback": warn_on_cpu_fallback,
            "availability_overrides": availability_overrides,
            "capabilities_path": capabilities_path,
        })
        state.config = candidate


def get_config() -> EPResolveConfig:
    """Get current epresolve configuration.

    Returns:
        Current configuration object (copy for safety).
    """
    state = _get_global_state()
    with state._lock:
        return state.config.copy()


def load_env(prefix: str = ENV_PREFIX) -> Dict[str, Any]:
    """Read configuration overrides from environment variables.

    Recognized variables::

        EPRESOLVE_ORDERING_CHECK=error
        EPRESOLVE_STRICT=1                  (default_failure_policy=propagate_error)
        EPRESOLVE_WARN_ON_CPU_FALLBACK=1
        EPRESOLVE_CAPABILITIES=/path/caps.yaml
        EPRESOLVE_DISABLE=tensorrt,coreml   (availability override: False)

    Args:
        prefix: Environment variable prefix.

    Returns:
        Settings dict suitable for configure().
    """
    settings: Dict[str, Any] = {}
    env = os.environ

    if f"{prefix}ORDERING_CHECK" in env:
        settings["ordering_check"] = env[f"{prefix}ORDERING_CHECK"].strip().lower()
    if f"{prefix}STRICT" in env:
        strict = _parse_bool(f"{prefix}STRICT", env[f"{prefix}STRICT"])
        settings["default_failure_policy"] = FailurePolicy.parse(strict)
    if f"{prefix}WARN_ON_CPU_FALLBACK" in env:
        settings["warn_on_cpu_fallback"] = env[f"{prefix}WARN_ON_CPU_FALLBACK"]
    if f"{prefix}CAPABILITIES" in env:
        settings["capabilities_path"] = env[f"{prefix}CAPABILITIES"]
    if f"{prefix}DISABLE" in env:
        disabled = [p.strip() for p in env[f"{prefix}DISABLE"].split(",") if p.strip()]
        settings["availability_overrides"] = {name: False for name in disabled}

    if settings:
        logger.debug("Configuration overrides from environment: %s", sorted(settings))
    return settings


def providers_from_env(prefix: str = ENV_PREFIX) -> List[ExecutionProviderSpec]:
    """Default providers from ``EPRESOLVE_PROVIDERS`` (comma-separated names)."""
    raw = os.environ.get(f"{prefix}PROVIDERS", "")
    return [ExecutionProviderSpec(name.strip()) for name in raw.split(",") if name.strip()]


def parse_providers(entries: Any, *, config_key: str = "execution_providers") -> List[ExecutionProviderSpec]:
    """Parse a list of provider entries (names or mappings)."""
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise ConfigurationError(
            f"'{config_key}' must be a list",
            config_key=config_key,
            expected="list",
            got=entries,
        )
    return [ExecutionProviderSpec.from_dict(entry) for entry in entries]


def load_config(path: str) -> List[ExecutionProviderSpec]:
    """Load configuration from YAML file.

    Applies the configuration settings and, if the file lists
    ``execution_providers``, commits them as the process-wide defaults.

    Args:
        path: Path to YAML configuration file.

    Returns:
        The default providers listed in the file (possibly empty).

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ConfigurationError: If config file is invalid.

    YAML format::

        ordering_check: error
        default_failure_policy: silently_skip
        warn_on_cpu_fallback: true
        availability_overrides:
          tensorrt: false
        execution_providers:
          - kind: tensorrt
            strict: true
            options: {fp16: true}
          - cuda
          - kind: coreml
            options: {subgraphs: true, ane_only: true}
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, 'r') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Invalid config file format: {path}")

    data = dict(data)
    providers = parse_providers(data.pop("execution_providers", None))

    unknown = sorted(set(data) - set(CONFIG_KEYS))
    if unknown:
        raise ConfigurationError(
            f"Unknown configuration key(s) in {path}: {unknown}",
            config_key=unknown[0],
            expected=CONFIG_KEYS,
        )
    configure(**data)

    if providers:
        from epresolve.session.environment import init

        init().with_execution_providers(providers).commit()
        logger.debug("Loaded %d default provider(s) from %s", len(providers), path)

    return providers
