"""
epresolve Registry Module

Default provider registry, availability checks and the registrar.
"""
from epresolve.registry.availability import ProviderAvailability
from epresolve.registry.provider_registry import (
    ORDERING_CHECKS,
    ProviderRegistry,
    check_configuration_order,
)
from epresolve.registry.registrar import ProviderRegistrar, RegistrationTarget

__all__ = [
    "ORDERING_CHECKS",
    "ProviderAvailability",
    "ProviderRegistrar",
    "ProviderRegistry",
    "RegistrationTarget",
    "check_configuration_order",
]
