"""
Graph model: flat node/edge representation of an asset tree.

Nodes hold only the plain field values of an asset. Nested assets and arrays
of assets are represented by edges from the child node's "output" port into a
port on the parent.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple
from collections import deque
import logging
import re

import networkx as nx

from .schema import TableInfo, SchemaValidationError, check_table_version

logger = logging.getLogger(__name__)


OUTPUT_PORT = "output"

_SLOT_RE = re.compile(r"^(?P<field>.+)\[(?P<index>\d+)\]$")


class GraphFormatError(Exception):
    """Raised when a serialized graph payload is not graph-shaped."""
    pass


def parse_port(port: str) -> Tuple[str, Optional[int]]:
    """
    Split a port id into (field, index).

    "Inputs[2]" -> ("Inputs", 2); "Input" -> ("Input", None).
    """
    match = _SLOT_RE.match(port)
    if match:
        return match.group("field"), int(match.group("index"))
    return port, None


def slot_port(field_name: str, index: int) -> str:
    """Build an indexed port id for an array field."""
    return f"{field_name}[{index}]"


@dataclass
class GraphNode:
    """
    Node in an asset graph.

    `type` is the resolved label used by the editing surface (possibly
    prefixed "Category:Type"); `asset_type` is the raw discriminant.

    `array_fields` records which tree fields held an array of assets when
    the node was lowered. None means the node has no such record (it was
    created in the editor), and raising falls back to the named-handle
    table to decide between a field and an array slot.
    """

    id: str
    type: str
    asset_type: Optional[str] = None
    position: Tuple[float, float] = (0.0, 0.0)
    fields: Dict[str, Any] = field(default_factory=dict)
    output: bool = False  # explicit root tag
    section: Optional[str] = None  # section field this node is the root of
    array_fields: Optional[List[str]] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        d = {
            "id": self.id,
            "type": self.type,
            "asset_type": self.asset_type,
            "position": {"x": self.position[0], "y": self.position[1]},
            "fields": self.fields,
        }
        if self.output:
            d["output"] = True
        if self.section is not None:
            d["section"] = self.section
        if self.array_fields is not None:
            d["array_fields"] = list(self.array_fields)
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "GraphNode":
        """Create from dictionary."""
        position = d.get("position") or {}
        array_fields = d.get("array_fields")
        return cls(
            id=d["id"],
            type=d["type"],
            asset_type=d.get("asset_type"),
            position=(float(position.get("x", 0.0)), float(position.get("y", 0.0))),
            fields=dict(d.get("fields") or {}),
            output=bool(d.get("output", False)),
            section=d.get("section"),
            array_fields=list(array_fields) if array_fields is not None else None,
        )


@dataclass
class GraphEdge:
    """Edge feeding a source node's output into a target node's port."""

    source: str
    target: str
    target_port: str
    source_port: str = OUTPUT_PORT
    id: str = ""

    def __post_init__(self):
        if not self.id:
            self.id = f"edge_{self.source}_{self.target}_{self.target_port}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source": self.source,
            "source_port": self.source_port,
            "target": self.target,
            "target_port": self.target_port,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "GraphEdge":
        return cls(
            source=d["source"],
            target=d["target"],
            target_port=d.get("target_port") or "Input",
            source_port=d.get("source_port") or OUTPUT_PORT,
            id=d.get("id", ""),
        )


class Graph:
    """
    Ordered collection of nodes and edges.

    Node order is preserved; root discovery and the evaluation root cascade
    break ties by it.
    """

    def __init__(
        self,
        nodes: Optional[Iterable[GraphNode]] = None,
        edges: Optional[Iterable[GraphEdge]] = None,
    ):
        self.nodes: List[GraphNode] = list(nodes or [])
        self.edges: List[GraphEdge] = list(edges or [])

    def __len__(self) -> int:
        return len(self.nodes)

    def __repr__(self) -> str:
        return f"Graph(nodes={len(self.nodes)}, edges={len(self.edges)})"

    def node_map(self) -> Dict[str, GraphNode]:
        return {n.id: n for n in self.nodes}

    def node(self, node_id: str) -> Optional[GraphNode]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def add_node(self, node: GraphNode) -> GraphNode:
        self.nodes.append(node)
        return node

    def remove_node(self, node_id: str) -> None:
        """Remove a node and every edge touching it."""
        self.nodes = [n for n in self.nodes if n.id != node_id]
        self.edges = [
            e for e in self.edges if e.source != node_id and e.target != node_id
        ]

    def connect(self, source: str, target: str, target_port: str) -> GraphEdge:
        """
        Connect source's output to target's port.

        Any edge already feeding (target, target_port) is replaced, keeping
        one edge per input slot.
        """
        self.edges = [
            e for e in self.edges
            if not (e.target == target and e.target_port == target_port)
        ]
        edge = GraphEdge(source=source, target=target, target_port=target_port)
        self.edges.append(edge)
        return edge

    def disconnect(self, target: str, target_port: str) -> None:
        self.edges = [
            e for e in self.edges
            if not (e.target == target and e.target_port == target_port)
        ]

    def outgoing_sources(self) -> Set[str]:
        """Ids of nodes that feed at least one edge."""
        return {e.source for e in self.edges}

    def terminal_nodes(self) -> List[GraphNode]:
        """Nodes with no outgoing edge, in node order."""
        sources = self.outgoing_sources()
        return [n for n in self.nodes if n.id not in sources]

    def inbound_edges(self, node_id: str) -> List[GraphEdge]:
        return [e for e in self.edges if e.target == node_id]

    def input_map(self) -> Dict[str, Dict[str, str]]:
        """
        Build target -> port -> source.

        When two edges feed the same port the later one wins.
        """
        inputs: Dict[str, Dict[str, str]] = {}
        for e in self.edges:
            inputs.setdefault(e.target, {})[e.target_port or "Input"] = e.source
        return inputs

    def upstream_ids(self, root_id: str) -> Set[str]:
        """Ids of root and every node reachable by following edges backwards."""
        upstream: Dict[str, List[str]] = {}
        for e in self.edges:
            upstream.setdefault(e.target, []).append(e.source)

        seen = {root_id}
        queue = deque([root_id])
        while queue:
            current = queue.popleft()
            for src in upstream.get(current, []):
                if src not in seen:
                    seen.add(src)
                    queue.append(src)
        return seen

    def subgraph(self, node_ids: Set[str]) -> "Graph":
        """Graph restricted to node_ids and the edges among them."""
        return Graph(
            [n for n in self.nodes if n.id in node_ids],
            [e for e in self.edges if e.source in node_ids and e.target in node_ids],
        )

    def to_networkx(self) -> nx.MultiDiGraph:
        """
        Export as a networkx MultiDiGraph (edges run source -> target).

        Node attributes carry the type label and fields; edge attributes
        carry the target port.
        """
        G = nx.MultiDiGraph()
        for n in self.nodes:
            G.add_node(n.id, type=n.type, asset_type=n.asset_type, fields=n.fields)
        for e in self.edges:
            G.add_edge(e.source, e.target, key=e.id, target_port=e.target_port)
        return G

    def to_dict(self) -> dict:
        return {
            "table": TableInfo().to_dict(),
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Graph":
        """
        Create from dictionary.

        Raises
        ------
        GraphFormatError
            If the payload lacks node/edge lists or entries lack required keys
        SchemaValidationError
            If the payload is stamped with an unreadable handle table version
        """
        if not isinstance(d, dict):
            raise GraphFormatError(f"Graph payload must be a dict, got {type(d).__name__}")

        table = d.get("table")
        if isinstance(table, dict):
            info = TableInfo.from_dict(table)
            errors = check_table_version(info.version)
            if errors:
                raise SchemaValidationError("; ".join(errors))

        raw_nodes = d.get("nodes", [])
        raw_edges = d.get("edges", [])
        if not isinstance(raw_nodes, list) or not isinstance(raw_edges, list):
            raise GraphFormatError("Graph payload 'nodes' and 'edges' must be lists")

        try:
            nodes = [GraphNode.from_dict(n) for n in raw_nodes]
            edges = [GraphEdge.from_dict(e) for e in raw_edges]
        except (KeyError, TypeError, AttributeError) as e:
            raise GraphFormatError(f"Malformed graph entry: {e}") from e

        logger.debug(f"Loaded graph with {len(nodes)} nodes and {len(edges)} edges")
        return cls(nodes, edges)


def validate_graph(graph: Graph) -> List[str]:
    """
    Check structural invariants of a graph.

    Returns
    -------
    list of str
        Messages for duplicate node ids, dangling edge endpoints, and input
        slots fed by more than one edge (empty if valid)
    """
    errors = []

    seen_ids: Set[str] = set()
    for n in graph.nodes:
        if n.id in seen_ids:
            errors.append(f"duplicate node id '{n.id}'")
        seen_ids.add(n.id)

    slots: Dict[Tuple[str, str], str] = {}
    for e in graph.edges:
        if e.source not in seen_ids:
            errors.append(f"edge '{e.id}': unknown source '{e.source}'")
        if e.target not in seen_ids:
            errors.append(f"edge '{e.id}': unknown target '{e.target}'")

        key = (e.target, e.target_port)
        if key in slots:
            errors.append(
                f"port '{e.target_port}' on '{e.target}' fed by both "
                f"'{slots[key]}' and '{e.source}'"
            )
        else:
            slots[key] = e.source

    return errors


__all__ = [
    "OUTPUT_PORT",
    "GraphFormatError",
    "GraphNode",
    "GraphEdge",
    "Graph",
    "parse_port",
    "slot_port",
    "validate_graph",
]
