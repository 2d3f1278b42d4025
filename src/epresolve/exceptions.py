"""
epresolve Exception Hierarchy

Custom exceptions for provider registration and session construction.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Sequence

if TYPE_CHECKING:
    from epresolve.enums import ProviderKind
    from epresolve.models.outcome import RegistrationOutcome


class EPResolveError(Exception):
    """Base exception for all epresolve errors.

    All epresolve-specific exceptions inherit from this class,
    allowing users to catch every resolution error with a single
    except clause.

    Attributes:
        message: Human-readable error description.
        context: Optional dict of additional context for debugging.
    """

    def __init__(
        self,
        message: str,
        *,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        """Initialize EPResolveError.

        Args:
            message: Error message.
            context: Optional context dict.
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        ctx_str = f", context={self.context}" if self.context else ""
        return f"{self.__class__.__name__}({self.message!r}{ctx_str})"


class ProviderUnavailableError(EPResolveError):
    """Raised when a strict provider is not available in the runtime.

    The runtime was not built with support for the provider, or an
    availability override disabled it. Only raised for providers using
    the propagate-error failure policy; lenient providers are skipped.

    Attributes:
        kind: The unavailable provider kind.
        reason: Why the provider is unavailable.
        outcomes: Registration outcomes recorded before the abort.
    """

    def __init__(
        self,
        kind: "ProviderKind",
        reason: str,
        *,
        outcomes: Optional[Sequence["RegistrationOutcome"]] = None,
        message: Optional[str] = None,
    ) -> None:
        self.kind = kind
        self.reason = reason
        self.outcomes = list(outcomes) if outcomes else []

        if message is None:
            message = f"{kind.display_name} is not available: {reason}"

        super().__init__(
            message,
            context={"provider": kind.value, "reason": reason},
        )


class ProviderRegistrationFailedError(EPResolveError):
    """Raised when a strict provider is available but fails to register.

    Wraps the original exception from the runtime (e.g. a missing
    device) with the identity of the provider that failed.

    Attributes:
        kind: The provider kind that failed.
        original_error: The underlying exception.
        outcomes: Registration outcomes recorded before the abort.
    """

    def __init__(
        self,
        kind: "ProviderKind",
        original_error: BaseException,
        *,
        outcomes: Optional[Sequence["RegistrationOutcome"]] = None,
        message: Optional[str] = None,
    ) -> None:
        self.kind = kind
        self.original_error = original_error
        self.outcomes = list(outcomes) if outcomes else []

        if message is None:
            message = f"{kind.display_name} registration failed: {original_error}"

        super().__init__(
            message,
            context={
                "provider": kind.value,
                "error_type": type(original_error).__name__,
                "error_message": str(original_error),
            },
        )
        self.__cause__ = original_error


class ConfigurationOrderingError(EPResolveError):
    """Raised when process-wide defaults change after sessions were built.

    Defaults are not applied retroactively. Whether a late change raises
    this error, logs a warning or is ignored is controlled by the
    ``ordering_check`` configuration setting.

    Attributes:
        sessions_built: Number of sessions built before the change.
    """

    def __init__(
        self,
        sessions_built: int,
        *,
        message: Optional[str] = None,
    ) -> None:
        self.sessions_built = sessions_built

        if message is None:
            message = (
                "Global execution provider defaults changed after "
                f"{sessions_built} session(s) were built; existing sessions "
                "keep their providers"
            )

        super().__init__(message, context={"sessions_built": sessions_built})


class ConfigurationError(EPResolveError):
    """Raised when configuration is invalid.

    Covers unknown provider options, wrong option value types and
    malformed configuration files.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: Optional[str] = None,
        expected: Optional[Any] = None,
        got: Optional[Any] = None,
    ) -> None:
        """Initialize ConfigurationError.

        Args:
            message: Error message.
            config_key: The configuration key with the error.
            expected: Expected value or type.
            got: Actual value received.
        """
        self.config_key = config_key
        self.expected = expected
        self.got = got

        super().__init__(
            message,
            context={
                "config_key": config_key,
                "expected": expected,
                "got": got,
            },
        )


class CapabilityValidationError(EPResolveError):
    """Raised when a provider capability descriptor is invalid.

    Attributes:
        source: Optional path of the descriptor file.
        validation_errors: List of validation error messages.
    """

    def __init__(
        self,
        message: str,
        *,
        source: Optional[str] = None,
        validation_errors: Optional[Sequence[str]] = None,
    ) -> None:
        self.source = source
        self.validation_errors = list(validation_errors) if validation_errors else []

        super().__init__(
            message,
            context={
                "source": source,
                "validation_errors": self.validation_errors,
            },
        )


class GraphFormatError(EPResolveError):
    """Raised when a computation graph description cannot be loaded."""

    def __init__(
        self,
        message: str,
        *,
        source: Optional[str] = None,
    ) -> None:
        self.source = source
        super().__init__(message, context={"source": source})


class InvalidStateTransitionError(EPResolveError):
    """Raised when a session build moves between states out of order.

    Attributes:
        current: State the build was in.
        target: State the build tried to enter.
    """

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(
            f"Invalid session build transition: {current} -> {target}",
            context={"current": current, "target": target},
        )


class DeviceNotFoundError(EPResolveError):
    """Raised by a runtime when the device a provider asks for is missing.

    Attributes:
        kind: Provider that requested the device.
        device_id: Requested device index.
    """

    def __init__(
        self,
        kind: "ProviderKind",
        device_id: int,
        *,
        message: Optional[str] = None,
    ) -> None:
        self.kind = kind
        self.device_id = device_id

        if message is None:
            message = f"No {kind.display_name} device with id {device_id}"

        super().__init__(
            message,
            context={"provider": kind.value, "device_id": device_id},
        )


class SessionClosedError(EPResolveError):
    """Raised when a closed session's runtime resources are accessed."""
