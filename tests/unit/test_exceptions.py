"""
Test suite for the epresolve exception hierarchy.

Tests messages, context and cause chaining.
"""
import pytest


class TestExceptionHierarchy:
    """Every error derives from EPResolveError."""

    @pytest.mark.parametrize("name", [
        "ProviderUnavailableError",
        "ProviderRegistrationFailedError",
        "ConfigurationOrderingError",
        "ConfigurationError",
        "CapabilityValidationError",
        "GraphFormatError",
        "InvalidStateTransitionError",
        "DeviceNotFoundError",
        "SessionClosedError",
    ])
    def test_subclass_of_base(self, name):
        import epresolve.exceptions as exc

        assert issubclass(getattr(exc, name), exc.EPResolveError)

    def test_base_repr_includes_context(self):
        from epresolve.exceptions import EPResolveError

        err = EPResolveError("boom", context={"key": 1})
        assert repr(err) == "EPResolveError('boom', context={'key': 1})"
        assert str(err) == "boom"

    def test_base_repr_without_context(self):
        from epresolve.exceptions import EPResolveError

        assert repr(EPResolveError("boom")) == "EPResolveError('boom')"


class TestProviderErrors:
    """Errors that abort a session build name the provider."""

    def test_unavailable_message(self):
        from epresolve.enums import ProviderKind
        from epresolve.exceptions import ProviderUnavailableError

        err = ProviderUnavailableError(ProviderKind.COREML, "not built in")
        assert err.message == "CoreML is not available: not built in"
        assert err.kind is ProviderKind.COREML
        assert err.context["provider"] == "coreml"
        assert err.outcomes == []

    def test_registration_failed_message_and_cause(self):
        from epresolve.enums import ProviderKind
        from epresolve.exceptions import ProviderRegistrationFailedError

        original = RuntimeError("engine build failed")
        err = ProviderRegistrationFailedError(ProviderKind.TENSORRT, original)
        assert str(err).startswith("TensorRT registration failed")
        assert err.__cause__ is original
        assert err.original_error is original
        assert err.context["error_type"] == "RuntimeError"

    def test_device_not_found(self):
        from epresolve.enums import ProviderKind
        from epresolve.exceptions import DeviceNotFoundError

        err = DeviceNotFoundError(ProviderKind.CUDA, 3)
        assert err.message == "No CUDA device with id 3"
        assert err.device_id == 3


class TestConfigurationErrors:
    """Configuration related errors."""

    def test_configuration_error_context(self):
        from epresolve.exceptions import ConfigurationError

        err = ConfigurationError("bad", config_key="cuda.fp16", expected="bool", got=1)
        assert err.config_key == "cuda.fp16"
        assert err.context == {"config_key": "cuda.fp16", "expected": "bool", "got": 1}

    def test_ordering_error_message(self):
        from epresolve.exceptions import ConfigurationOrderingError

        err = ConfigurationOrderingError(2)
        assert err.sessions_built == 2
        assert "2 session(s)" in err.message

    def test_capability_validation_errors_list(self):
        from epresolve.exceptions import CapabilityValidationError

        err = CapabilityValidationError("invalid", source="caps.yaml", validation_errors=["a", "b"])
        assert err.validation_errors == ["a", "b"]
        assert err.context["source"] == "caps.yaml"

    def test_invalid_transition_message(self):
        from epresolve.exceptions import InvalidStateTransitionError

        err = InvalidStateTransitionError("ready", "failed")
        assert err.message == "Invalid session build transition: ready -> failed"
