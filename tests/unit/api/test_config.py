"""Tests for epresolve configuration APIs.

Tests for ep.configure(), ep.get_config(), ep.load_config() and the
EPRESOLVE_* environment overrides.
"""
from __future__ import annotations

import pytest

from epresolve.enums import FailurePolicy, ProviderKind


class TestConfigureAPI:
    """Tests for ep.configure() public API."""

    def test_defaults(self) -> None:
        import epresolve as ep

        config = ep.get_config()
        assert config.ordering_check == "warn"
        assert config.default_failure_policy is FailurePolicy.SILENTLY_SKIP
        assert config.warn_on_cpu_fallback is False
        assert config.availability_overrides == {}

    def test_configure_multiple_options(self) -> None:
        import epresolve as ep

        ep.configure(
            ordering_check="error",
            default_failure_policy="propagate_error",
            warn_on_cpu_fallback=True,
        )

        config = ep.get_config()
        assert config.ordering_check == "error"
        assert config.default_failure_policy is FailurePolicy.PROPAGATE_ERROR
        assert config.warn_on_cpu_fallback is True

    def test_configure_keeps_unset_values(self) -> None:
        import epresolve as ep

        ep.configure(ordering_check="ignore")
        ep.configure(warn_on_cpu_fallback=True)
        assert ep.get_config().ordering_check == "ignore"

    def test_configure_reset(self) -> None:
        import epresolve as ep

        ep.configure(ordering_check="error")
        ep.configure(reset=True)
        assert ep.get_config().ordering_check == "warn"

    def test_availability_overrides_parsed(self) -> None:
        import epresolve as ep

        ep.configure(availability_overrides={"TensorRT": False, "cuda": "yes"})
        assert ep.get_config().availability_overrides == {
            ProviderKind.TENSORRT: False,
            ProviderKind.CUDA: True,
        }

    def test_get_config_returns_copy(self) -> None:
        import epresolve as ep

        config = ep.get_config()
        config.availability_overrides[ProviderKind.CUDA] = False
        assert ep.get_config().availability_overrides == {}

    @pytest.mark.parametrize("kwargs", [
        {"ordering_check": "sometimes"},
        {"default_failure_policy": "retry"},
        {"warn_on_cpu_fallback": "maybe"},
        {"availability_overrides": ["cuda"]},
        {"availability_overrides": {"quantum": True}},
    ])
    def test_invalid_values_rejected(self, kwargs) -> None:
        import epresolve as ep
        from epresolve.exceptions import ConfigurationError

        ep.configure(ordering_check="error")
        with pytest.raises(ConfigurationError):
            ep.configure(**kwargs)
        # A rejected call leaves the configuration untouched
        assert ep.get_config().ordering_check == "error"


class TestEnvironmentOverrides:
    """Tests for load_env() and providers_from_env()."""

    def test_load_env(self, monkeypatch) -> None:
        from epresolve.api.config import load_env

        monkeypatch.setenv("EPRESOLVE_ORDERING_CHECK", " Error ")
        monkeypatch.setenv("EPRESOLVE_STRICT", "1")
        monkeypatch.setenv("EPRESOLVE_DISABLE", "tensorrt, coreml")

        settings = load_env()
        assert settings["ordering_check"] == "error"
        assert settings["default_failure_policy"] is FailurePolicy.PROPAGATE_ERROR
        assert settings["availability_overrides"] == {"tensorrt": False, "coreml": False}

    def test_load_env_empty(self) -> None:
        from epresolve.api.config import load_env

        assert load_env() == {}

    def test_providers_from_env(self, monkeypatch) -> None:
        from epresolve.api.config import providers_from_env

        monkeypatch.setenv("EPRESOLVE_PROVIDERS", "TensorRT,,cuda ")
        assert [s.kind for s in providers_from_env()] == [ProviderKind.TENSORRT, ProviderKind.CUDA]

    def test_unknown_provider_in_env(self, monkeypatch) -> None:
        from epresolve.api.config import providers_from_env
        from epresolve.exceptions import ConfigurationError

        monkeypatch.setenv("EPRESOLVE_PROVIDERS", "warp-drive")
        with pytest.raises(ConfigurationError):
            providers_from_env()


class TestLoadConfigAPI:
    """Tests for ep.load_config()."""

    def test_load_settings_and_providers(self, tmp_path) -> None:
        import epresolve as ep

        path = tmp_path / "epresolve.yaml"
        path.write_text(
            "ordering_check: error\n"
            "availability_overrides:\n"
            "  tensorrt: false\n"
            "execution_providers:\n"
            "  - kind: tensorrt\n"
            "    strict: true\n"
            "  - cuda\n"
            "  - kind: coreml\n"
            "    options: {subgraphs: true}\n"
        )

        specs = ep.load_config(str(path))

        assert [s.kind for s in specs] == [ProviderKind.TENSORRT, ProviderKind.CUDA, ProviderKind.COREML]
        assert specs[0].failure_policy is FailurePolicy.PROPAGATE_ERROR
        assert specs[2].subgraphs
        assert ep.get_config().ordering_check == "error"

        env = ep.get_environment()
        assert env.default_providers == tuple(specs)
        assert env.config.ordering_check == "error"
        assert not env.availability.is_available("tensorrt")

    def test_settings_only(self, tmp_path) -> None:
        import epresolve as ep

        path = tmp_path / "epresolve.yaml"
        path.write_text("warn_on_cpu_fallback: true\n")

        assert ep.load_config(str(path)) == []
        assert ep.get_config().warn_on_cpu_fallback is True
        assert ep.get_environment().default_providers == ()

    def test_empty_file(self, tmp_path) -> None:
        import epresolve as ep

        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert ep.load_config(str(path)) == []

    def test_missing_file(self, tmp_path) -> None:
        import epresolve as ep

        with pytest.raises(FileNotFoundError):
            ep.load_config(str(tmp_path / "missing.yaml"))

    def test_unknown_key(self, tmp_path) -> None:
        import epresolve as ep
        from epresolve.exceptions import ConfigurationError

        path = tmp_path / "epresolve.yaml"
        path.write_text("cache_size: 10\n")
        with pytest.raises(ConfigurationError, match="cache_size"):
            ep.load_config(str(path))

    def test_invalid_yaml(self, tmp_path) -> None:
        import epresolve as ep
        from epresolve.exceptions import ConfigurationError

        path = tmp_path / "broken.yaml"
        path.write_text("ordering_check: [unclosed\n")
        with pytest.raises(ConfigurationError):
            ep.load_config(str(path))

    def test_providers_must_be_list(self, tmp_path) -> None:
        import epresolve as ep
        from epresolve.exceptions import ConfigurationError

        path = tmp_path / "epresolve.yaml"
        path.write_text("execution_providers: cuda\n")
        with pytest.raises(ConfigurationError):
            ep.load_config(str(path))
