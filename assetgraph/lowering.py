"""
Lowering pass: asset tree -> node/edge graph.

Each asset becomes one node. Plain field values (scalars, vectors, scalar
arrays) stay on the node; every nested asset becomes a child node connected
by an edge into the parent port that names the field it was found under.

ID ALLOCATION
-------------
Ids are "{prefix}_{n}" with n counting from 1 in pre-order (a node's id is
allocated before its children's). The counter belongs to a single call, so
lowering the same tree with the same prefix always yields the same ids.
"""

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple
import copy
import logging

from .asset import (
    DISCONNECTED_KEY,
    TYPE_KEY,
    AssetValidationError,
    ValueKind,
    classify_value,
    is_asset,
    validate_asset,
)
from .graph import Graph, GraphEdge, GraphNode
from .policies import LoweringPolicy, is_debug_mode
from .resolver import array_slot_port, canonical_port, classify_asset

logger = logging.getLogger(__name__)


@dataclass
class LoweringResult:
    """Nodes and edges produced by one lowering call."""
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)
    root_id: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    def to_graph(self) -> Graph:
        return Graph(self.nodes, self.edges)


class _Lowerer:
    """Recursive descent over one tree. Owns the id counter for the call."""

    def __init__(self, id_prefix: str, policy: LoweringPolicy):
        self.id_prefix = id_prefix
        self.policy = policy
        self.result = LoweringResult()
        self._counter = 0

    def next_id(self) -> str:
        self._counter += 1
        return f"{self.id_prefix}_{self._counter}"

    def lower(
        self,
        asset: Mapping[str, Any],
        x: float,
        y: float,
        parent_field: Optional[str] = None,
    ) -> str:
        node_id = self.next_id()
        classification = classify_asset(asset, parent_field)
        node_type = classification.type_label

        node = GraphNode(
            id=node_id,
            type=node_type,
            asset_type=classification.asset_type,
            position=(x, y),
            array_fields=[],
        )
        self.result.nodes.append(node)

        child_index = 0
        child_x = x - self.policy.column_spacing

        for key, value in asset.items():
            if key == TYPE_KEY:
                continue

            if key == DISCONNECTED_KEY and isinstance(value, list):
                self._lower_disconnected(value, x, y)
                continue

            kind = classify_value(value)

            if kind == ValueKind.ASSET:
                child_id = self.lower(
                    value, child_x, y + child_index * self.policy.row_spacing, key
                )
                port = canonical_port(node_type, key)
                if port != key:
                    self._warn(f"Port migrated on {node_id} ({node_type}): '{key}' -> '{port}'")
                self.result.edges.append(
                    GraphEdge(source=child_id, target=node_id, target_port=port)
                )
                child_index += 1

            elif kind == ValueKind.ASSET_ARRAY:
                node.array_fields.append(key)
                for i, item in enumerate(value):
                    child_id = self.lower(
                        item, child_x, y + child_index * self.policy.row_spacing, key
                    )
                    port = canonical_port(
                        node_type,
                        array_slot_port(classification.asset_type, key, i, node_type),
                    )
                    self.result.edges.append(
                        GraphEdge(source=child_id, target=node_id, target_port=port)
                    )
                    child_index += 1

            else:
                node.fields[key] = copy.deepcopy(value)

        return node_id

    def _lower_disconnected(self, trees: List[Any], x: float, y: float) -> None:
        for i, tree in enumerate(trees):
            if not is_asset(tree):
                self._warn(f"Skipped {DISCONNECTED_KEY}[{i}]: not an asset")
                continue
            self.lower(
                tree,
                x + self.policy.disconnected_offset_x,
                y + i * self.policy.disconnected_spacing_y,
            )

    def _warn(self, message: str) -> None:
        self.result.warnings.append(message)
        logger.debug(message)


def lower_asset(
    asset: Mapping[str, Any],
    id_prefix: Optional[str] = None,
    start: Tuple[float, float] = (0.0, 0.0),
    root_field: Optional[str] = None,
    policy: Optional[LoweringPolicy] = None,
) -> LoweringResult:
    """
    Lower an asset tree into graph nodes and edges.

    Parameters
    ----------
    asset : mapping
        Root asset of the tree
    id_prefix : str, optional
        Prefix for generated node ids (default: policy.id_prefix)
    start : tuple of float
        Position hint for the root node
    root_field : str, optional
        Field the tree is embedded under in an outer structure; selects the
        root's category prefix (e.g. "PositionProvider" -> "Position:...")
    policy : LoweringPolicy, optional
        Layout policy

    Returns
    -------
    LoweringResult
        Nodes in pre-order, edges, the root id and migration warnings

    Raises
    ------
    AssetValidationError
        If asset is not a mapping
    """
    if not isinstance(asset, Mapping):
        raise AssetValidationError(f"Asset must be a mapping, got {type(asset).__name__}")

    policy = policy or LoweringPolicy()
    prefix = id_prefix if id_prefix is not None else policy.id_prefix

    if is_debug_mode():
        for message in validate_asset(asset):
            logger.warning(f"Asset validation: {message}")

    lowerer = _Lowerer(prefix, policy)
    root_id = lowerer.lower(asset, start[0], start[1], root_field)
    result = lowerer.result
    result.root_id = root_id

    logger.debug(
        f"Lowered '{asset.get(TYPE_KEY)}' into {len(result.nodes)} nodes, "
        f"{len(result.edges)} edges"
    )
    return result


def lower_to_graph(
    asset: Mapping[str, Any],
    id_prefix: Optional[str] = None,
    start: Tuple[float, float] = (0.0, 0.0),
    root_field: Optional[str] = None,
    policy: Optional[LoweringPolicy] = None,
) -> Graph:
    """Lower an asset tree and wrap the result in a Graph."""
    return lower_asset(asset, id_prefix, start, root_field, policy).to_graph()


def lower_sections(
    sections: Mapping[str, Mapping[str, Any]],
    start: Tuple[float, float] = (0.0, 0.0),
    policy: Optional[LoweringPolicy] = None,
) -> Graph:
    """
    Lower several named assets onto one canvas.

    Each section is lowered with its field name as both id prefix and root
    field, and its root node is tagged with the section name so that
    raising.raise_sections can split the canvas apart again.

    Parameters
    ----------
    sections : mapping
        Field name -> asset (e.g. {"Positions": ..., "Assignments": ...})
    start : tuple of float
        Position hint for the first section root
    policy : LoweringPolicy, optional
        Layout policy

    Returns
    -------
    Graph
        One graph holding every section
    """
    policy = policy or LoweringPolicy()
    graph = Graph()

    for i, (section, asset) in enumerate(sections.items()):
        if not is_asset(asset):
            logger.warning(f"Section '{section}' skipped: not an asset")
            continue
        result = lower_asset(
            asset,
            id_prefix=section,
            start=(start[0], start[1] + i * policy.section_spacing_y),
            root_field=section,
            policy=policy,
        )
        for node in result.nodes:
            if node.id == result.root_id:
                node.section = section
        graph.nodes.extend(result.nodes)
        graph.edges.extend(result.edges)

    return graph


__all__ = [
    "LoweringResult",
    "lower_asset",
    "lower_to_graph",
    "lower_sections",
]
