"""
epresolve Provider Registrar

Registers each provider of an effective list against a session build,
strictly in order, honoring each provider's failure policy.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Protocol

from epresolve import reasons
from epresolve.enums import FailurePolicy, ProviderKind, RegistrationStatus
from epresolve.exceptions import (
    DeviceNotFoundError,
    ProviderRegistrationFailedError,
    ProviderUnavailableError,
)
from epresolve.models.outcome import RegistrationOutcome
from epresolve.models.provider_list import EffectiveProviderList
from epresolve.models.provider_spec import ExecutionProviderSpec
from epresolve.reasons import make_reason
from epresolve.registry.availability import ProviderAvailability
from epresolve.telemetry.listeners import OutcomeListener, dispatch

logger = logging.getLogger(__name__)


class RegistrationTarget(Protocol):
    """Session-construction context providers are registered against."""

    def register_provider(self, spec: ExecutionProviderSpec) -> Any: ...


class ProviderRegistrar:
    """Registers providers in priority order.

    For each spec: an unavailable kind yields UNAVAILABLE without
    touching the target; otherwise the target's ``register_provider``
    is called and any exception yields FAILED. Under PROPAGATE_ERROR an
    UNAVAILABLE or FAILED outcome aborts with an error naming the
    provider, and later providers are never attempted. Under
    SILENTLY_SKIP the next provider is tried. A build in which every
    provider is skipped still succeeds on the implicit CPU fallback.

    Every outcome is logged at DEBUG and delivered to outcome listeners.

    Args:
        availability: Availability source.
        default_policy: Policy for specs without an explicit policy.
        on_outcome: Extra callback receiving each outcome.
    """

    __slots__ = ("_availability", "_default_policy", "_on_outcome")

    def __init__(
        self,
        availability: ProviderAvailability,
        *,
        default_policy: FailurePolicy = FailurePolicy.SILENTLY_SKIP,
        on_outcome: OutcomeListener | None = None,
    ) -> None:
        self._availability = availability
        self._default_policy = default_policy
        self._on_outcome = on_outcome

    def register(
        self,
        spec: ExecutionProviderSpec,
        target: RegistrationTarget,
    ) -> RegistrationOutcome:
        """Attempt to register one provider.

        Never raises for provider failures; the failure policy is
        applied by ``register_all``.

        Args:
            spec: Provider to register.
            target: Session-construction context.

        Returns:
            RegistrationOutcome for the attempt.
        """
        outcome, _ = self._attempt(spec, target)
        return outcome

    def _attempt(
        self,
        spec: ExecutionProviderSpec,
        target: RegistrationTarget,
    ) -> tuple[RegistrationOutcome, BaseException | None]:
        policy = spec.resolved_policy(self._default_policy)
        start = time.perf_counter_ns()
        error: BaseException | None = None

        unavailable = self._availability.unavailable_reason(spec.kind)
        if unavailable is not None:
            outcome = RegistrationOutcome(
                kind=spec.kind,
                status=RegistrationStatus.UNAVAILABLE,
                failure_policy=policy,
                reason=unavailable,
                elapsed_ns=time.perf_counter_ns() - start,
            )
        else:
            try:
                target.register_provider(spec)
            except DeviceNotFoundError as e:
                error = e
                outcome = self._failed(spec.kind, policy, e, reasons.DEVICE_NOT_FOUND, start)
            except Exception as e:
                error = e
                outcome = self._failed(spec.kind, policy, e, reasons.REGISTRATION_ERROR, start)
            else:
                outcome = RegistrationOutcome(
                    kind=spec.kind,
                    status=RegistrationStatus.REGISTERED,
                    failure_policy=policy,
                    elapsed_ns=time.perf_counter_ns() - start,
                )

        logger.debug("Provider registration: %s", outcome)
        dispatch(outcome, self._on_outcome)
        return outcome, error

    def register_all(
        self,
        providers: EffectiveProviderList,
        target: RegistrationTarget,
    ) -> list[RegistrationOutcome]:
        """Register every provider of an effective list, in order.

        Args:
            providers: Effective provider list (CPU excluded).
            target: Session-construction context.

        Returns:
            One outcome per provider, in list order.

        Raises:
            ProviderUnavailableError: A strict provider is unavailable.
            ProviderRegistrationFailedError: A strict provider failed.
        """
        outcomes: list[RegistrationOutcome] = []
        for spec in providers:
            outcome, error = self._attempt(spec, target)
            outcomes.append(outcome)

            if outcome.registered or outcome.failure_policy is FailurePolicy.SILENTLY_SKIP:
                continue

            if outcome.status is RegistrationStatus.UNAVAILABLE:
                raise ProviderUnavailableError(
                    spec.kind,
                    outcome.reason.message if outcome.reason else "unavailable",
                    outcomes=outcomes,
                )
            raise ProviderRegistrationFailedError(
                spec.kind,
                error if error is not None else RuntimeError(outcome.error or "unknown error"),
                outcomes=outcomes,
            )

        if providers.providers and not any(o.registered for o in outcomes):
            logger.debug(
                "No requested provider registered (%s); session runs on CPU only",
                ", ".join(k.display_name for k in providers.kinds()),
            )
        return outcomes

    def reconcile(
        self,
        outcomes: list[RegistrationOutcome],
        dropped: dict[ProviderKind, str],
    ) -> list[RegistrationOutcome]:
        """Mark providers the runtime dropped after registration as FAILED.

        A runtime may accept a provider at registration and still leave
        it out of the session it opens. Each such REGISTERED outcome is
        replaced by a FAILED one and delivered to listeners again.

        Args:
            outcomes: Outcomes returned by ``register_all``.
            dropped: Error message per dropped provider kind.

        Returns:
            Updated outcomes, in the original order.

        Raises:
            ProviderRegistrationFailedError: A strict provider was dropped.
        """
        result = list(outcomes)
        for i, outcome in enumerate(result):
            message = dropped.get(outcome.kind)
            if message is None or not outcome.registered:
                continue

            error = RuntimeError(message)
            failed = self._failed(
                outcome.kind,
                outcome.failure_policy,
                error,
                reasons.REGISTRATION_ERROR,
                0,
                elapsed_ns=outcome.elapsed_ns,
            )
            result[i] = failed
            logger.debug("Provider registration: %s", failed)
            dispatch(failed, self._on_outcome)

            if failed.failure_policy is FailurePolicy.PROPAGATE_ERROR:
                raise ProviderRegistrationFailedError(outcome.kind, error, outcomes=result)
        return result

        return outcomes

    def _failed(
        self,
        kind: ProviderKind,
        policy: FailurePolicy,
        error: BaseException,
        code: str,
        start: int,
        elapsed_ns: int | None = None,
    ) -> RegistrationOutcome:
        return RegistrationOutcome(
            kind=kind,
            status=RegistrationStatus.FAILED,
            failure_policy=policy,
            reason=make_reason(code, f"{kind.display_name} registration failed: {error}"),
            error=str(error),
            elapsed_ns=elapsed_ns if elapsed_ns is not None else time.perf_counter_ns() - start,
        )
