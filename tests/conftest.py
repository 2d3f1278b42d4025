"""
PyTest Configuration for epresolve Tests

Provides fixtures, markers, and test setup.
"""
import sys
from pathlib import Path

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Add tests directory to path for fixtures
tests_path = Path(__file__).parent
sys.path.insert(0, str(tests_path))


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "onnx: mark test as requiring onnx/onnxruntime")


@pytest.fixture(autouse=True)
def clean_global_state(monkeypatch):
    """Isolate every test from process-wide configuration and defaults."""
    from epresolve.api.config import configure
    from epresolve.session.environment import reset_environment
    from epresolve.telemetry.listeners import clear_outcome_listeners

    for name in (
        "EPRESOLVE_PROVIDERS",
        "EPRESOLVE_STRICT",
        "EPRESOLVE_ORDERING_CHECK",
        "EPRESOLVE_WARN_ON_CPU_FALLBACK",
        "EPRESOLVE_CAPABILITIES",
        "EPRESOLVE_DISABLE",
    ):
        monkeypatch.delenv(name, raising=False)

    configure(reset=True)
    reset_environment()
    clear_outcome_listeners()
    yield
    configure(reset=True)
    reset_environment()
    clear_outcome_listeners()


@pytest.fixture
def simulated_runtime():
    """Runtime built with CUDA, TensorRT and CoreML support."""
    from epresolve.runtime.simulated import SimulatedRuntime
    return SimulatedRuntime(available=["cuda", "tensorrt", "coreml"])


@pytest.fixture
def make_environment():
    """Factory for environments backed by a simulated runtime."""
    from epresolve.api.config import EPResolveConfig
    from epresolve.session.environment import EnvironmentBuilder

    def _make(runtime, defaults=(), config=None, capabilities=None):
        builder = (
            EnvironmentBuilder()
            .with_runtime(runtime)
            .with_execution_providers(defaults)
            .with_config(config if config is not None else EPResolveConfig())
        )
        if capabilities is not None:
            builder = builder.with_capabilities(capabilities)
        return builder.build()

    return _make


@pytest.fixture
def simple_graph():
    """Conv -> Relu -> StringNormalizer, all top level."""
    from epresolve.models.graph import Graph, OperatorNode
    return Graph(
        name="main",
        nodes=(
            OperatorNode("conv", "Conv"),
            OperatorNode("relu", "Relu"),
            OperatorNode("normalize", "StringNormalizer"),
        ),
    )


@pytest.fixture
def loop_graph():
    """Graph with a Loop whose body holds an Add and a Mul."""
    from epresolve.models.graph import Graph, OperatorNode
    body = Graph(
        name="body",
        nodes=(OperatorNode("add", "Add"), OperatorNode("mul", "Mul")),
    )
    return Graph(
        name="main",
        nodes=(
            OperatorNode("conv", "Conv"),
            OperatorNode("loop", "Loop", subgraphs=(body,)),
        ),
    )


@pytest.fixture
def graph_file(tmp_path):
    """YAML graph description on disk."""
    path = tmp_path / "model.yaml"
    path.write_text(
        "name: main\n"
        "nodes:\n"
        "  - {name: conv, op_type: Conv}\n"
        "  - {name: relu, op_type: Relu}\n"
        "  - name: loop\n"
        "    op_type: Loop\n"
        "    subgraphs:\n"
        "      - name: body\n"
        "        nodes:\n"
        "          - {name: add, op_type: Add}\n"
    )
    return path
