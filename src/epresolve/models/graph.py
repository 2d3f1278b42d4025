"""
epresolve Computation Graph

Minimal operator graph the fallback resolver partitions: nodes with an
operator type, a domain and optional nested control-flow subgraphs.

Graphs are loaded from YAML/JSON descriptions or, when the ``onnx``
package is installed, from ``.onnx`` model files.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator, Mapping

import yaml

from epresolve.exceptions import GraphFormatError

logger = logging.getLogger(__name__)

DEFAULT_DOMAIN = ""
"""The standard operator set (ai.onnx)."""


@dataclass(frozen=True)
class OperatorNode:
    """One operator in a computation graph.

    Attributes:
        name: Node name, unique within its graph.
        op_type: Operator type (e.g. "Conv", "Loop").
        domain: Operator set domain; "" is the standard domain.
        attributes: Read-only scalar attributes.
        subgraphs: Nested control-flow bodies (Loop/If/Scan).
    """

    name: str
    op_type: str
    domain: str = DEFAULT_DOMAIN
    attributes: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)
    subgraphs: tuple["Graph", ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))
        object.__setattr__(self, "subgraphs", tuple(self.subgraphs))
        counts = Counter(sub.name for sub in self.subgraphs)
        dupes = sorted(name for name, n in counts.items() if n > 1)
        if dupes:
            raise GraphFormatError(f"Duplicate subgraph names in node '{self.name}': {dupes}")

    @property
    def has_subgraphs(self) -> bool:
        return bool(self.subgraphs)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"name": self.name, "op_type": self.op_type}
        if self.domain:
            d["domain"] = self.domain
        if self.attributes:
            d["attributes"] = dict(self.attributes)
        if self.subgraphs:
            d["subgraphs"] = [g.to_dict() for g in self.subgraphs]
        return d


@dataclass(frozen=True)
class Graph:
    """Computation graph.

    Attributes:
        name: Graph name (used in node paths of nested graphs).
        nodes: Nodes in topological order.
    """

    name: str
    nodes: tuple[OperatorNode, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", tuple(self.nodes))
        # Node paths key the partition plan and must be unique at every depth.
        counts = Counter(path for path, _, _ in self.walk())
        dupes = sorted(path for path, n in counts.items() if n > 1)
        if dupes:
            raise GraphFormatError(f"Duplicate node names in graph '{self.name}': {dupes}")

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[OperatorNode]:
        return iter(self.nodes)

    def walk(self, prefix: str = "") -> Iterator[tuple[str, OperatorNode, int]]:
        """Depth-first walk over all nodes, nested ones included.

        Yields:
            (path, node, depth) where path is the slash-joined node path
            ("loop/body/add") and depth is 0 for top-level nodes.
        """
        yield from self._walk(prefix, 0)

    def _walk(self, prefix: str, depth: int) -> Iterator[tuple[str, OperatorNode, int]]:
        for node in self.nodes:
            path = f"{prefix}{node.name}"
            yield path, node, depth
            for sub in node.subgraphs:
                yield from sub._walk(f"{path}/{sub.name}/", depth + 1)

    def node_count(self) -> int:
        return sum(1 for _ in self.walk())

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "nodes": [node.to_dict() for node in self.nodes]}

    @classmethod
    def from_dict(
        cls,
        d: Mapping[str, Any],
        *,
        source: str | None = None,
        default_name: str = "main",
    ) -> "Graph":
        """Build a graph from its dictionary description.

        Nodes without a name are named ``{op_type}_{index}`` and unnamed
        subgraphs ``subgraph_{index}``; generated names never reuse an
        explicit name at the same level.

        Raises:
            GraphFormatError: If the description is malformed.
        """
        if not isinstance(d, Mapping):
            raise GraphFormatError(f"Graph description must be a mapping, got {type(d).__name__}", source=source)

        raw_nodes = d.get("nodes") or []
        if not isinstance(raw_nodes, list):
            raise GraphFormatError("'nodes' must be a list", source=source)

        for index, raw in enumerate(raw_nodes):
            if not isinstance(raw, Mapping) or "op_type" not in raw:
                raise GraphFormatError(f"Node #{index} must be a mapping with 'op_type'", source=source)

        node_names = _fill_names(
            [raw.get("name") for raw in raw_nodes],
            [f"{raw['op_type']}_{index}" for index, raw in enumerate(raw_nodes)],
        )

        nodes = []
        for raw, name in zip(raw_nodes, node_names):
            raw_subgraphs = list(raw.get("subgraphs") or ())
            sub_names = _fill_names(
                [sub.get("name") if isinstance(sub, Mapping) else None for sub in raw_subgraphs],
                [f"subgraph_{index}" for index in range(len(raw_subgraphs))],
            )
            nodes.append(OperatorNode(
                name=name,
                op_type=str(raw["op_type"]),
                domain=str(raw.get("domain") or DEFAULT_DOMAIN),
                attributes=dict(raw.get("attributes") or {}),
                subgraphs=tuple(
                    cls.from_dict(sub, source=source, default_name=sub_name)
                    for sub, sub_name in zip(raw_subgraphs, sub_names)
                ),
            ))

        return cls(name=str(d.get("name") or default_name), nodes=tuple(nodes))

    @classmethod
    def from_file(cls, path: str | Path) -> "Graph":
        """Load a graph from a ``.yaml``/``.yml``/``.json`` or ``.onnx`` file.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            GraphFormatError: If the file cannot be parsed as a graph.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Graph file not found: {path}")

        if path.suffix == ".onnx":
            return cls.from_onnx(path)

        with open(path, "r") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise GraphFormatError(f"Invalid graph file {path}: {e}", source=str(path)) from e

        if data is None:
            raise GraphFormatError(f"Graph file is empty: {path}", source=str(path))
        return cls.from_dict(data, source=str(path))

    @classmethod
    def from_onnx(cls, path: str | Path) -> "Graph":
        """Load the operator structure of an ONNX model file.

        Requires the optional ``onnx`` package.
        """
        try:
            import onnx
        except ImportError as e:
            raise GraphFormatError(
                "Loading .onnx models requires the 'onnx' package",
                source=str(path),
            ) from e

        model = onnx.load(str(path), load_external_data=False)
        logger.debug("Loaded ONNX model %s (%d nodes)", path, len(model.graph.node))
        return _graph_from_onnx(model.graph)


def _fill_names(names: list[Any], fallbacks: list[str]) -> list[str]:
    """Replace missing names with fallbacks that don't clash with given ones."""
    taken = {str(name) for name in names if name}
    result = []
    for name, fallback in zip(names, fallbacks):
        if name:
            result.append(str(name))
            continue
        candidate = fallback
        suffix = 1
        while candidate in taken:
            candidate = f"{fallback}_{suffix}"
            suffix += 1
        taken.add(candidate)
        result.append(candidate)
    return result


def _graph_from_onnx(graph_proto: Any, name: str | None = None) -> Graph:
    """Convert a GraphProto.

    Subgraphs are named after the attribute holding them ("body",
    "then_branch", "else_branch"), not the GraphProto name, which
    exporters routinely leave empty or repeat.
    """
    from onnx import AttributeProto

    protos = list(graph_proto.node)
    node_names = _fill_names(
        [node.name for node in protos],
        [f"{node.op_type}_{index}" for index, node in enumerate(protos)],
    )

    nodes = []
    for node, node_name in zip(protos, node_names):
        subgraphs = []
        attributes: dict[str, Any] = {}
        for attr in node.attribute:
            if attr.type == AttributeProto.GRAPH:
                subgraphs.append(_graph_from_onnx(attr.g, attr.name))
            elif attr.type == AttributeProto.GRAPHS:
                subgraphs.extend(
                    _graph_from_onnx(g, f"{attr.name}_{i}") for i, g in enumerate(attr.graphs)
                )
            elif attr.type == AttributeProto.INT:
                attributes[attr.name] = attr.i
            elif attr.type == AttributeProto.FLOAT:
                attributes[attr.name] = attr.f
            elif attr.type == AttributeProto.STRING:
                attributes[attr.name] = attr.s.decode("utf-8", errors="replace")
        nodes.append(OperatorNode(
            name=node_name,
            op_type=node.op_type,
            domain=node.domain,
            attributes=attributes,
            subgraphs=tuple(subgraphs),
        ))
    return Graph(name=name or graph_proto.name or "main", nodes=tuple(nodes))
