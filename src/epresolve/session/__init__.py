"""
epresolve Session Module

Environments, session builders and built sessions.
"""
from epresolve.session.builder import SessionBuilder, register
from epresolve.session.environment import (
    Environment,
    EnvironmentBuilder,
    get_environment,
    init,
    reset_environment,
    set_environment,
)
from epresolve.session.session import Session
from epresolve.session.state import BuildState, BuildStateMachine

__all__ = [
    "BuildState",
    "BuildStateMachine",
    "Environment",
    "EnvironmentBuilder",
    "Session",
    "SessionBuilder",
    "get_environment",
    "init",
    "register",
    "reset_environment",
    "set_environment",
]
