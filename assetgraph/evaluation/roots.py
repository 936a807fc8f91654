"""
Root resolution for the interpreters.

Graphs imported from trees never declare a root, and graphs being edited
may have several terminal nodes. The interpreter therefore resolves its root
through a cascade:

1. an explicit root id passed by the caller;
2. a node explicitly tagged as output, or tagged with the section field the
   interpreter evaluates (e.g. "Positions");
3. among terminal nodes (no outgoing edge), the first with an evaluable type;
4. the evaluable node structurally nearest a terminal node.
"""

from typing import AbstractSet, Dict, Optional
import logging

import networkx as nx

from ..graph import Graph, GraphNode
from ..resolver import category_of, strip_category

logger = logging.getLogger(__name__)


def evaluable_type(node: GraphNode, category: str = "") -> str:
    """Type name used for dispatch: the label without its category prefix."""
    label = node.type or node.asset_type or ""
    if category and label.startswith(f"{category}:"):
        return label[len(category) + 1:]
    return strip_category(label)


def is_evaluable(
    node: GraphNode,
    types: AbstractSet[str],
    category: str = "",
) -> bool:
    """
    True if the node belongs to the interpreter's type family.

    A node counts if its label carries the family's category prefix, or if it
    has no category and its bare type is one of `types`.
    """
    node_category = category_of(node.type or "")
    if category and node_category == category:
        return True
    if node_category == "":
        return strip_category(node.type or "") in types or node.asset_type in types
    return False


def distance_to_terminal(graph: Graph) -> Dict[str, int]:
    """
    Number of downstream edges from each node to the nearest terminal node.

    Nodes that cannot reach a terminal (only possible inside a cycle with no
    exit) are absent from the result.
    """
    terminals = [n.id for n in graph.terminal_nodes()]
    if not terminals:
        return {}
    G = nx.DiGraph()
    G.add_nodes_from(n.id for n in graph.nodes)
    G.add_edges_from((e.target, e.source) for e in graph.edges if e.source != e.target)
    return dict(nx.multi_source_dijkstra_path_length(G, terminals))


def find_evaluation_root(
    graph: Graph,
    types: AbstractSet[str],
    category: str = "",
    section: Optional[str] = None,
    root_id: Optional[str] = None,
) -> Optional[GraphNode]:
    """
    Resolve the node an interpreter should start from.

    Parameters
    ----------
    graph : Graph
        Graph being evaluated
    types : set of str
        Bare type names the interpreter understands
    category : str
        Category prefix of the interpreter's family ("" for density)
    section : str, optional
        Section tag that marks the family's root (e.g. "Positions")
    root_id : str, optional
        Explicit root; used if it names a node in the graph

    Returns
    -------
    GraphNode or None
        The root, or None if no node qualifies
    """
    if not graph.nodes:
        return None

    if root_id is not None:
        explicit = graph.node(root_id)
        if explicit is not None:
            return explicit
        logger.debug(f"Explicit root '{root_id}' not found; resolving automatically")

    for n in graph.nodes:
        if n.output and is_evaluable(n, types, category):
            return n

    if section is not None:
        for n in graph.nodes:
            if n.section == section:
                return n

    for n in graph.terminal_nodes():
        if is_evaluable(n, types, category):
            return n

    candidates = [n for n in graph.nodes if is_evaluable(n, types, category)]
    if not candidates:
        return None

    distances = distance_to_terminal(graph)
    unreachable = len(graph.nodes) + 1
    return min(
        enumerate(candidates),
        key=lambda pair: (distances.get(pair[1].id, unreachable), pair[0]),
    )[1]


__all__ = [
    "evaluable_type",
    "is_evaluable",
    "distance_to_terminal",
    "find_evaluation_root",
]
