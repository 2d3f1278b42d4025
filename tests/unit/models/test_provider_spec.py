"""
Test suite for ExecutionProviderSpec.

Tests construction, validation, pure transformations and serialization.
"""
import pytest


class TestSpecConstruction:
    """Test ExecutionProviderSpec construction."""

    def test_kind_parsed_from_string(self):
        from epresolve.enums import ProviderKind
        from epresolve.models.provider_spec import ExecutionProviderSpec

        spec = ExecutionProviderSpec("TensorRT")
        assert spec.kind is ProviderKind.TENSORRT
        assert dict(spec.options) == {}
        assert spec.failure_policy is None

    def test_unknown_kind_raises_configuration_error(self):
        from epresolve.exceptions import ConfigurationError
        from epresolve.models.provider_spec import ExecutionProviderSpec

        with pytest.raises(ConfigurationError) as exc_info:
            ExecutionProviderSpec("warp-drive")
        assert exc_info.value.config_key == "kind"

    def test_unknown_option_raises(self):
        from epresolve.exceptions import ConfigurationError
        from epresolve.models.provider_spec import ExecutionProviderSpec

        with pytest.raises(ConfigurationError) as exc_info:
            ExecutionProviderSpec("cuda", {"turbo": True})
        assert exc_info.value.config_key == "cuda.turbo"

    def test_wrong_option_type_raises(self):
        from epresolve.exceptions import ConfigurationError
        from epresolve.models.provider_spec import ExecutionProviderSpec

        with pytest.raises(ConfigurationError, match="must be int"):
            ExecutionProviderSpec("cuda", {"device_id": "0"})

    def test_bool_is_not_int(self):
        """A bool is rejected where an int is expected and vice versa."""
        from epresolve.exceptions import ConfigurationError
        from epresolve.models.provider_spec import ExecutionProviderSpec

        with pytest.raises(ConfigurationError):
            ExecutionProviderSpec("cuda", {"device_id": True})
        with pytest.raises(ConfigurationError):
            ExecutionProviderSpec("coreml", {"subgraphs": 1})

    def test_subgraphs_rejected_for_kinds_without_support(self):
        from epresolve.exceptions import ConfigurationError
        from epresolve.models.provider_spec import ExecutionProviderSpec

        with pytest.raises(ConfigurationError):
            ExecutionProviderSpec("xnnpack", {"subgraphs": True})

    def test_options_read_only(self):
        from epresolve.models.provider_spec import ExecutionProviderSpec

        spec = ExecutionProviderSpec("coreml", {"ane_only": True})
        with pytest.raises(TypeError):
            spec.options["ane_only"] = False

    def test_caller_dict_not_shared(self):
        from epresolve.models.provider_spec import ExecutionProviderSpec

        options = {"ane_only": True}
        spec = ExecutionProviderSpec("coreml", options)
        options["ane_only"] = False
        assert spec.options["ane_only"] is True

    def test_failure_policy_parsed(self):
        from epresolve.enums import FailurePolicy
        from epresolve.models.provider_spec import ExecutionProviderSpec

        spec = ExecutionProviderSpec("cuda", failure_policy="strict")
        assert spec.failure_policy is FailurePolicy.PROPAGATE_ERROR
        assert spec.is_strict

    def test_invalid_failure_policy(self):
        from epresolve.exceptions import ConfigurationError
        from epresolve.models.provider_spec import ExecutionProviderSpec

        with pytest.raises(ConfigurationError):
            ExecutionProviderSpec("cuda", failure_policy="maybe")

    def test_hashable_and_equal(self):
        from epresolve.models.provider_spec import ExecutionProviderSpec

        a = ExecutionProviderSpec("cuda", {"device_id": 0})
        b = ExecutionProviderSpec("CUDA", {"device_id": 0})
        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1


class TestSpecTransformations:
    """Every with_* method returns a new spec."""

    def test_with_option_returns_new_spec(self):
        from epresolve.models.provider_spec import ExecutionProviderSpec

        base = ExecutionProviderSpec("coreml")
        changed = base.with_option("ane_only", True)
        assert changed is not base
        assert "ane_only" not in base.options
        assert changed.options["ane_only"] is True

    def test_with_options_merges(self):
        from epresolve.models.provider_spec import ExecutionProviderSpec

        spec = ExecutionProviderSpec("tensorrt", {"fp16": True}).with_options(int8=True)
        assert dict(spec.options) == {"fp16": True, "int8": True}

    def test_with_option_validates(self):
        from epresolve.exceptions import ConfigurationError
        from epresolve.models.provider_spec import ExecutionProviderSpec

        with pytest.raises(ConfigurationError):
            ExecutionProviderSpec("coreml").with_option("fp16", True)

    def test_without_option(self):
        from epresolve.models.provider_spec import ExecutionProviderSpec

        spec = ExecutionProviderSpec("coreml", {"ane_only": True}).without_option("ane_only")
        assert dict(spec.options) == {}

    def test_strict_and_silent(self):
        from epresolve.enums import FailurePolicy
        from epresolve.models.provider_spec import ExecutionProviderSpec

        base = ExecutionProviderSpec("cuda", {"device_id": 1})
        strict = base.strict()
        assert strict.failure_policy is FailurePolicy.PROPAGATE_ERROR
        assert strict.options["device_id"] == 1
        assert strict.silent().failure_policy is FailurePolicy.SILENTLY_SKIP
        assert base.failure_policy is None

    def test_with_subgraphs(self):
        from epresolve.models.provider_spec import ExecutionProviderSpec

        spec = ExecutionProviderSpec("coreml")
        assert spec.subgraphs is False
        assert spec.with_subgraphs().subgraphs is True
        assert spec.with_subgraphs(False).subgraphs is False

    def test_kind_helpers(self):
        from epresolve.models.provider_spec import ExecutionProviderSpec

        assert ExecutionProviderSpec("cuda").with_device_id(2).options["device_id"] == 2
        assert ExecutionProviderSpec("coreml").with_ane_only().options["ane_only"] is True

    def test_resolved_policy(self):
        from epresolve.enums import FailurePolicy
        from epresolve.models.provider_spec import ExecutionProviderSpec

        spec = ExecutionProviderSpec("cuda")
        assert spec.resolved_policy(FailurePolicy.PROPAGATE_ERROR) is FailurePolicy.PROPAGATE_ERROR
        assert spec.silent().resolved_policy(FailurePolicy.PROPAGATE_ERROR) is FailurePolicy.SILENTLY_SKIP


class TestSpecSerialization:
    """Test to_dict/from_dict."""

    def test_round_trip(self):
        from epresolve.models.provider_spec import ExecutionProviderSpec

        spec = ExecutionProviderSpec("coreml", {"subgraphs": True}).strict()
        assert ExecutionProviderSpec.from_dict(spec.to_dict()) == spec

    def test_to_dict(self):
        from epresolve.models.provider_spec import ExecutionProviderSpec

        assert ExecutionProviderSpec("cuda").to_dict() == {
            "kind": "cuda",
            "options": {},
            "failure_policy": None,
        }

    def test_from_bare_name(self):
        from epresolve.enums import ProviderKind
        from epresolve.models.provider_spec import ExecutionProviderSpec

        assert ExecutionProviderSpec.from_dict("dml").kind is ProviderKind.DIRECTML

    def test_from_dict_strict_flag(self):
        from epresolve.models.provider_spec import ExecutionProviderSpec

        spec = ExecutionProviderSpec.from_dict({"kind": "tensorrt", "strict": True})
        assert spec.is_strict

    def test_from_dict_missing_kind(self):
        from epresolve.exceptions import ConfigurationError
        from epresolve.models.provider_spec import ExecutionProviderSpec

        with pytest.raises(ConfigurationError):
            ExecutionProviderSpec.from_dict({"options": {}})


class TestProviderFactories:
    """Test the per-kind factory functions."""

    def test_factory_options_and_policy(self):
        from epresolve import providers
        from epresolve.enums import ProviderKind

        spec = providers.tensorrt(strict=True, fp16=True)
        assert spec.kind is ProviderKind.TENSORRT
        assert spec.is_strict
        assert spec.options["fp16"] is True

    def test_factory_default_policy_inherits(self):
        from epresolve import providers

        assert providers.cuda().failure_policy is None

    def test_generic_provider(self):
        from epresolve import providers
        from epresolve.enums import FailurePolicy, ProviderKind

        spec = providers.provider("openvino", strict=False, device_type="GPU")
        assert spec.kind is ProviderKind.OPENVINO
        assert spec.failure_policy is FailurePolicy.SILENTLY_SKIP

    @pytest.mark.parametrize("name", [
        "cuda", "tensorrt", "directml", "coreml", "rocm", "openvino", "onednn",
        "xnnpack", "qnn", "cann", "nnapi", "tvm", "acl", "armnn", "cpu",
    ])
    def test_factory_for_every_kind(self, name):
        from epresolve import providers
        from epresolve.enums import ProviderKind

        assert getattr(providers, name)().kind is ProviderKind.parse(name)
