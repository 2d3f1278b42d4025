"""
epresolve Telemetry

Registration outcome listeners and resolution reports.
"""
from epresolve.telemetry.listeners import (
    OutcomeListener,
    add_outcome_listener,
    clear_outcome_listeners,
    remove_outcome_listener,
)
from epresolve.telemetry.report import RegistrationReport

__all__ = [
    "OutcomeListener",
    "RegistrationReport",
    "add_outcome_listener",
    "clear_outcome_listeners",
    "remove_outcome_listener",
]
