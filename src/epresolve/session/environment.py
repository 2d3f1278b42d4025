"""
epresolve Environment

An Environment is the explicit process-scoped context every session is
built in: default providers, the inference runtime, provider
availability, capability table and configuration.

    >>> import epresolve as ep
    >>> ep.init().with_execution_providers([ep.providers.cuda()]).commit()
    >>> session = ep.SessionBuilder().commit_from_file("model.yaml")
"""
from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional

from epresolve.api.config import EPResolveConfig, get_config, providers_from_env
from epresolve.capabilities.table import CapabilityTable
from epresolve.models.provider_spec import ExecutionProviderSpec
from epresolve.registry.availability import ProviderAvailability
from epresolve.registry.provider_registry import ProviderRegistry, check_configuration_order
from epresolve.runtime.base import ExecutionRuntime
from epresolve.runtime.onnx import OnnxRuntime

logger = logging.getLogger(__name__)


class Environment:
    """Process-scoped session construction context.

    Args:
        name: Name used in logs and reports.
        runtime: Inference runtime; the installed onnxruntime if None.
        registry: Default provider registry; empty if None.
        config: Configuration; a copy of the global one if None.
        capabilities: Capability table; built-in declarations, with the
            configured capability file applied, if None.
    """

    __slots__ = ("_name", "_runtime", "_registry", "_config", "_capabilities", "_availability")

    def __init__(
        self,
        *,
        name: str = "default",
        runtime: Optional[ExecutionRuntime] = None,
        registry: Optional[ProviderRegistry] = None,
        config: Optional[EPResolveConfig] = None,
        capabilities: Optional[CapabilityTable] = None,
    ) -> None:
        self._name = name
        self._config = config if config is not None else get_config()
        self._runtime = runtime if runtime is not None else OnnxRuntime()
        self._registry = (
            registry
            if registry is not None
            else ProviderRegistry(ordering_check=self._config.ordering_check)
        )
        if capabilities is None:
            if self._config.capabilities_path:
                capabilities = CapabilityTable.from_file(self._config.capabilities_path)
            else:
                capabilities = CapabilityTable()
        self._capabilities = capabilities
        self._availability = ProviderAvailability(
            self._runtime, self._config.availability_overrides
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def runtime(self) -> ExecutionRuntime:
        return self._runtime

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    @property
    def config(self) -> EPResolveConfig:
        return self._config

    @property
    def capabilities(self) -> CapabilityTable:
        return self._capabilities

    @property
    def availability(self) -> ProviderAvailability:
        return self._availability

    @property
    def default_providers(self) -> tuple[ExecutionProviderSpec, ...]:
        return self._registry.snapshot()

    def set_global_defaults(self, specs: Iterable[ExecutionProviderSpec]) -> None:
        """Replace this environment's default providers."""
        self._registry.set_global_defaults(specs)

    def __repr__(self) -> str:
        return (
            f"Environment(name={self._name!r}, runtime={self._runtime.name!r}, "
            f"defaults={[spec.kind.display_name for spec in self.default_providers]})"
        )


class EnvironmentBuilder:
    """Immutable builder for an Environment.

    Every ``with_*`` method returns a new builder.
    """

    __slots__ = ("_name", "_providers", "_runtime", "_capabilities", "_config")

    def __init__(
        self,
        *,
        name: str = "default",
        providers: tuple[ExecutionProviderSpec, ...] = (),
        runtime: Optional[ExecutionRuntime] = None,
        capabilities: Optional[CapabilityTable] = None,
        config: Optional[EPResolveConfig] = None,
    ) -> None:
        self._name = name
        self._providers = tuple(providers)
        self._runtime = runtime
        self._capabilities = capabilities
        self._config = config

    def _copy(self, **changes) -> "EnvironmentBuilder":
        fields = {
            "name": self._name,
            "providers": self._providers,
            "runtime": self._runtime,
            "capabilities": self._capabilities,
            "config": self._config,
        }
        fields.update(changes)
        return EnvironmentBuilder(**fields)

    @property
    def providers(self) -> tuple[ExecutionProviderSpec, ...]:
        return self._providers

    def with_execution_providers(self, specs: Iterable[ExecutionProviderSpec]) -> "EnvironmentBuilder":
        """Set the default providers, in priority order."""
        return self._copy(providers=tuple(specs))

    def with_runtime(self, runtime: ExecutionRuntime) -> "EnvironmentBuilder":
        return self._copy(runtime=runtime)

    def with_name(self, name: str) -> "EnvironmentBuilder":
        return self._copy(name=name)

    def with_capabilities(self, capabilities: CapabilityTable) -> "EnvironmentBuilder":
        return self._copy(capabilities=capabilities)

    def with_config(self, config: EPResolveConfig) -> "EnvironmentBuilder":
        return self._copy(config=config)

    def build(self) -> Environment:
        """Create the environment without installing it."""
        config = self._config if self._config is not None else get_config()
        registry = ProviderRegistry(self._providers, ordering_check=config.ordering_check)
        return Environment(
            name=self._name,
            runtime=self._runtime,
            registry=registry,
            config=config,
            capabilities=self._capabilities,
        )

    def commit(self) -> Environment:
        """Build the environment and install it as the process default.

        Sessions already built keep the providers they were built with.

        Returns:
            The installed environment.

        Raises:
            ConfigurationOrderingError: If sessions were built under the
                previous environment and ordering_check is "error".
        """
        environment = self.build()
        global _environment
        with _environment_lock:
            if _environment is not None:
                check_configuration_order(
                    _environment.registry.sessions_built,
                    environment.config.ordering_check,
                )
            _environment = environment
        logger.debug("Committed %r", environment)
        return environment


_environment: Optional[Environment] = None
_environment_lock = threading.RLock()


def init() -> EnvironmentBuilder:
    """Start configuring the process environment.

    Example:
        >>> import epresolve as ep
        >>> from epresolve.providers import coreml, cuda
        >>>
        >>> ep.init().with_execution_providers([
        ...     cuda(),
        ...     coreml(subgraphs=True),
        ... ]).commit()
    """
    return EnvironmentBuilder()


def get_environment() -> Environment:
    """Get the process environment, creating the default one lazily.

    The default environment uses the installed onnxruntime and takes its
    default providers from ``EPRESOLVE_PROVIDERS``.
    """
    global _environment
    if _environment is None:
        with _environment_lock:
            if _environment is None:
                _environment = EnvironmentBuilder().with_execution_providers(
                    providers_from_env()
                ).build()
                logger.debug("Created %r", _environment)
    return _environment


def set_environment(environment: Environment) -> None:
    """Install an already built environment as the process default."""
    global _environment
    with _environment_lock:
        _environment = environment


def reset_environment() -> None:
    """Forget the process environment (mainly for tests)."""
    global _environment
    with _environment_lock:
        _environment = None
