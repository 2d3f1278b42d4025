"""
epresolve Registration Outcome

Per-provider result of a registration attempt, retained on the session
for diagnostic reporting.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from epresolve.enums import FailurePolicy, ProviderKind, RegistrationStatus
from epresolve.reasons import Reason


@dataclass(frozen=True, slots=True)
class RegistrationOutcome:
    """Result of registering one execution provider.

    Attributes:
        kind: Provider kind that was attempted.
        status: REGISTERED, UNAVAILABLE or FAILED.
        failure_policy: Policy in effect for the attempt.
        reason: Structured reason for UNAVAILABLE/FAILED outcomes.
        error: Message of the runtime error, if registration raised.
        elapsed_ns: Time spent on the attempt in nanoseconds.
    """

    kind: ProviderKind
    status: RegistrationStatus
    failure_policy: FailurePolicy = FailurePolicy.SILENTLY_SKIP
    reason: Reason | None = None
    error: str | None = None
    elapsed_ns: int = 0

    @property
    def registered(self) -> bool:
        return self.status is RegistrationStatus.REGISTERED

    def __str__(self) -> str:
        text = f"{self.kind.display_name}: {self.status.value}"
        if self.reason is not None:
            text += f" {self.reason}"
        return text

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON compatibility."""
        return {
            "kind": self.kind.value,
            "status": self.status.value,
            "failure_policy": self.failure_policy.value,
            "reason": self.reason.to_dict() if self.reason else None,
            "error": self.error,
            "elapsed_ns": self.elapsed_ns,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "RegistrationOutcome":
        reason = d.get("reason")
        return cls(
            kind=ProviderKind.parse(d["kind"]),
            status=RegistrationStatus(d["status"]),
            failure_policy=FailurePolicy(d.get("failure_policy", FailurePolicy.SILENTLY_SKIP.value)),
            reason=Reason.from_dict(reason) if reason else None,
            error=d.get("error"),
            elapsed_ns=d.get("elapsed_ns", 0),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())
