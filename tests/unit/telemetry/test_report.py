"""Tests for RegistrationReport."""
from __future__ import annotations

import json

import pytest

from epresolve import providers, reasons
from epresolve.enums import FailurePolicy, ProviderKind, RegistrationStatus
from epresolve.models.outcome import RegistrationOutcome
from epresolve.models.provider_list import build_effective_list
from epresolve.reasons import make_reason
from epresolve.resolver.plan import PartitionPlan
from epresolve.telemetry.report import RegistrationReport


@pytest.fixture
def effective():
    return build_effective_list(
        [providers.tensorrt(), providers.cuda()],
        [providers.cuda(device_id=1), providers.cpu()],
    )


@pytest.fixture
def outcomes():
    return (
        RegistrationOutcome(
            kind=ProviderKind.TENSORRT,
            status=RegistrationStatus.FAILED,
            failure_policy=FailurePolicy.SILENTLY_SKIP,
            reason=make_reason(reasons.REGISTRATION_ERROR, "TensorRT registration failed: boom"),
            error="boom",
        ),
        RegistrationOutcome(kind=ProviderKind.CUDA, status=RegistrationStatus.REGISTERED),
    )


@pytest.fixture
def plan():
    return PartitionPlan(
        graph_name="main",
        providers=(ProviderKind.CUDA, ProviderKind.CPU),
        assignments={"conv": ProviderKind.CUDA, "relu": ProviderKind.CUDA, "normalize": ProviderKind.CPU},
    )


class TestRegistrationReport:
    """RegistrationReport.build and its views."""

    def test_build(self, effective, outcomes, plan) -> None:
        report = RegistrationReport.build(effective, outcomes, plan, context={"runtime": "simulated"})

        assert report.graph_name == "main"
        assert report.requested == (ProviderKind.TENSORRT, ProviderKind.CUDA)
        assert [entry.spec.kind for entry in report.discarded] == [ProviderKind.CUDA, ProviderKind.CPU]
        assert report.providers == (ProviderKind.CUDA, ProviderKind.CPU)
        assert report.partition == {ProviderKind.CUDA: 2, ProviderKind.CPU: 1}
        assert [o.kind for o in report.failed] == [ProviderKind.TENSORRT]
        assert not report.fully_fell_back

    def test_fully_fell_back(self, effective, outcomes, plan) -> None:
        report = RegistrationReport.build(effective, outcomes[:1], plan)
        assert report.fully_fell_back
        assert report.providers == (ProviderKind.CPU,)

    def test_nothing_requested_is_not_fallback(self, plan) -> None:
        report = RegistrationReport.build(build_effective_list([]), (), plan)
        assert not report.fully_fell_back

    def test_report_is_frozen(self, effective, outcomes, plan) -> None:
        from dataclasses import FrozenInstanceError

        report = RegistrationReport.build(effective, outcomes, plan)
        with pytest.raises(FrozenInstanceError):
            report.graph_name = "other"


class TestReportSerialization:
    """to_dict / to_json."""

    def test_to_dict(self, effective, outcomes, plan) -> None:
        d = RegistrationReport.build(effective, outcomes, plan).to_dict()

        assert d["graph"] == "main"
        assert d["requested"] == ["tensorrt", "cuda"]
        assert d["providers"] == ["cuda", "cpu"]
        assert d["partition"] == {"cuda": 2, "cpu": 1}
        assert d["outcomes"][0]["status"] == "failed"
        assert d["outcomes"][0]["error"] == "boom"
        assert [entry["origin"] for entry in d["discarded"]] == ["session", "session"]
        assert d["fully_fell_back"] is False

    def test_to_json_round_trips_through_json(self, effective, outcomes, plan) -> None:
        report = RegistrationReport.build(effective, outcomes, plan, context={"environment": "default"})
        data = json.loads(report.to_json())
        assert data == json.loads(json.dumps(report.to_dict()))
        assert data["context"] == {"environment": "default"}
