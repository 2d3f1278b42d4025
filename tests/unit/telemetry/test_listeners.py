"""Tests for registration outcome listeners."""
from __future__ import annotations

import logging

from epresolve.enums import ProviderKind, RegistrationStatus
from epresolve.models.outcome import RegistrationOutcome
from epresolve.telemetry.listeners import (
    add_outcome_listener,
    clear_outcome_listeners,
    dispatch,
    remove_outcome_listener,
)


def _outcome(kind: ProviderKind = ProviderKind.CUDA) -> RegistrationOutcome:
    return RegistrationOutcome(kind=kind, status=RegistrationStatus.REGISTERED)


class TestListenerRegistry:
    """add/remove/clear."""

    def test_dispatch_to_listeners_in_order(self) -> None:
        seen = []
        add_outcome_listener(lambda o: seen.append(("first", o.kind)))
        add_outcome_listener(lambda o: seen.append(("second", o.kind)))

        dispatch(_outcome())
        assert seen == [("first", ProviderKind.CUDA), ("second", ProviderKind.CUDA)]

    def test_add_is_idempotent(self) -> None:
        seen = []
        add_outcome_listener(seen.append)
        add_outcome_listener(seen.append)
        dispatch(_outcome())
        assert len(seen) == 1

    def test_remove(self) -> None:
        seen = []
        add_outcome_listener(seen.append)
        assert remove_outcome_listener(seen.append) is True
        assert remove_outcome_listener(seen.append) is False
        dispatch(_outcome())
        assert seen == []

    def test_clear(self) -> None:
        seen = []
        add_outcome_listener(seen.append)
        clear_outcome_listeners()
        dispatch(_outcome())
        assert seen == []

    def test_extra_listener_runs_last(self) -> None:
        seen = []
        add_outcome_listener(lambda o: seen.append("global"))
        dispatch(_outcome(), lambda o: seen.append("extra"))
        assert seen == ["global", "extra"]


class TestListenerFailures:
    """A raising listener never affects the others."""

    def test_raising_listener_is_logged(self, caplog) -> None:
        seen = []

        def broken(outcome):
            raise RuntimeError("listener bug")

        add_outcome_listener(broken)
        add_outcome_listener(seen.append)

        with caplog.at_level(logging.ERROR, logger="epresolve.telemetry.listeners"):
            dispatch(_outcome())

        assert len(seen) == 1
        assert "listener bug" in caplog.text

    def test_raising_listener_does_not_fail_build(self, make_environment, simulated_runtime, simple_graph) -> None:
        from epresolve import providers
        from epresolve.session.builder import SessionBuilder

        def broken(outcome):
            raise RuntimeError("listener bug")

        add_outcome_listener(broken)
        env = make_environment(simulated_runtime)
        session = SessionBuilder(env).with_execution_providers([providers.cuda()]).commit_from_graph(simple_graph)
        assert session.providers == (ProviderKind.CUDA, ProviderKind.CPU)

    def test_build_delivers_every_outcome(self, make_environment, simulated_runtime, simple_graph) -> None:
        from epresolve import providers
        from epresolve.session.builder import SessionBuilder

        seen = []
        add_outcome_listener(seen.append)
        env = make_environment(simulated_runtime)
        SessionBuilder(env).with_execution_providers(
            [providers.directml(), providers.cuda()]
        ).commit_from_graph(simple_graph)
        assert [(o.kind, o.status) for o in seen] == [
            (ProviderKind.DIRECTML, RegistrationStatus.UNAVAILABLE),
            (ProviderKind.CUDA, RegistrationStatus.REGISTERED),
        ]
