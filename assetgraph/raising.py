"""
Raising pass: node/edge graph -> asset tree.

The inverse of lowering. A node's discriminant comes from its raw asset type
(or its type label with the category prefix removed), its plain fields are
copied verbatim, and every inbound edge becomes either a nested asset field
or one element of an asset array.

Array order is taken from slot indices, never from edge order. Missing
slots are skipped, so an array with a gap is compacted rather than padded.
Raising never raises on missing structure: an unresolvable node becomes a
bare {"Type": ...} asset.
"""

from typing import Dict, List, Optional, Sequence, Set
import copy
import logging

from .asset import DISCONNECTED_KEY, TYPE_KEY, Asset
from .graph import Graph, GraphEdge, GraphNode
from .resolver import port_to_slot, strip_category

logger = logging.getLogger(__name__)


def node_discriminant(node: GraphNode) -> Optional[str]:
    """Raw discriminant of a node, recovered from its label if not stored."""
    if node.asset_type is not None:
        return node.asset_type
    if node.type:
        return strip_category(node.type)
    return None


def _inbound_index(graph: Graph) -> Dict[str, List[GraphEdge]]:
    inbound: Dict[str, List[GraphEdge]] = {}
    for e in graph.edges:
        inbound.setdefault(e.target, []).append(e)
    return inbound


def _raise(
    node_id: str,
    nodes: Dict[str, GraphNode],
    inbound: Dict[str, List[GraphEdge]],
    stack: Set[str],
) -> Optional[Asset]:
    node = nodes.get(node_id)
    if node is None:
        return None

    stack.add(node_id)

    asset: Asset = {}
    discriminant = node_discriminant(node)
    if discriminant is not None:
        asset[TYPE_KEY] = discriminant

    for key, value in node.fields.items():
        if key != TYPE_KEY:
            asset[key] = copy.deepcopy(value)

    slots: Dict[str, Dict[int, Asset]] = {}
    for edge in inbound.get(node_id, []):
        if edge.source in stack:
            logger.debug(f"Cycle at {node_id}.{edge.target_port}; input omitted")
            continue

        child = _raise(edge.source, nodes, inbound, stack)
        if child is None:
            continue

        field_name, index = port_to_slot(
            discriminant, edge.target_port, node.type, node.array_fields
        )
        if index is None:
            asset[field_name] = child
        else:
            slots.setdefault(field_name, {})[index] = child

    for field_name, items in slots.items():
        asset[field_name] = [items[i] for i in sorted(items)]

    stack.discard(node_id)
    return asset


def raise_node(graph: Graph, root_id: str) -> Optional[Asset]:
    """
    Raise the tree rooted at root_id.

    Parameters
    ----------
    graph : Graph
        Source graph
    root_id : str
        Node to use as the tree's root

    Returns
    -------
    dict or None
        The reconstructed asset, or None if root_id is not in the graph
    """
    return _raise(root_id, graph.node_map(), _inbound_index(graph), set())


def find_roots(graph: Graph) -> List[GraphNode]:
    """
    Root candidates in node order.

    Output-tagged nodes if any exist, otherwise nodes without an outgoing
    edge. A graph that is all cycle falls back to its first node.
    """
    tagged = [n for n in graph.nodes if n.output]
    if tagged:
        return tagged

    terminals = graph.terminal_nodes()
    if terminals:
        return terminals

    return graph.nodes[:1]


def raise_graph(graph: Graph, root_id: Optional[str] = None) -> Optional[Asset]:
    """
    Raise a whole graph into a single asset.

    The primary root is root_id, else the output-tagged node, else the first
    terminal node. When the primary root is itself terminal, every other
    terminal is raised into the reserved "$DisconnectedTrees" field.

    Parameters
    ----------
    graph : Graph
        Source graph
    root_id : str, optional
        Explicit root

    Returns
    -------
    dict or None
        The asset, or None for an empty graph or an unknown root_id
    """
    if not graph.nodes:
        return None

    if root_id is not None:
        primary = graph.node(root_id)
        if primary is None:
            logger.warning(f"Root '{root_id}' not in graph")
            return None
    else:
        primary = find_roots(graph)[0]

    nodes = graph.node_map()
    inbound = _inbound_index(graph)
    asset = _raise(primary.id, nodes, inbound, set())

    terminals = graph.terminal_nodes()
    if any(n.id == primary.id for n in terminals):
        disconnected = []
        for n in terminals:
            if n.id == primary.id:
                continue
            tree = _raise(n.id, nodes, inbound, set())
            if tree is not None:
                disconnected.append(tree)
        if disconnected:
            asset[DISCONNECTED_KEY] = disconnected

    logger.debug(
        f"Raised graph ({len(graph.nodes)} nodes) from root {primary.id} "
        f"with {len(asset.get(DISCONNECTED_KEY, []))} disconnected trees"
    )
    return asset


def raise_multi(graph: Graph, root_ids: Optional[Sequence[str]] = None) -> List[Asset]:
    """
    Raise one asset per root.

    Parameters
    ----------
    graph : Graph
        Source graph
    root_ids : sequence of str, optional
        Explicit roots; discovered with find_roots when omitted

    Returns
    -------
    list of dict
        Assets in root order; unknown root ids are skipped
    """
    if root_ids is None:
        root_ids = [n.id for n in find_roots(graph)]

    nodes = graph.node_map()
    inbound = _inbound_index(graph)

    assets = []
    for root_id in root_ids:
        asset = _raise(root_id, nodes, inbound, set())
        if asset is not None:
            assets.append(asset)
    return assets


def raise_sections(graph: Graph, fields: Sequence[str]) -> Dict[str, Asset]:
    """
    Raise several independently tagged sub-roots sharing one canvas.

    Each field's root is the node tagged with section == field. Nodes are
    partitioned by upstream reachability from each tagged root, so one
    section never picks up nodes that only feed another.

    When no node is tagged at all, the roots found by raise_multi are
    assigned to fields positionally. That fallback relies on the editing
    surface keeping roots in field order.

    Parameters
    ----------
    graph : Graph
        Shared canvas
    fields : sequence of str
        Section field names, in order

    Returns
    -------
    dict
        Field name -> asset for every section that could be raised
    """
    result: Dict[str, Asset] = {}

    tagged = {n.section: n for n in graph.nodes if n.section in fields}
    if not tagged:
        assets = raise_multi(graph)
        for field_name, asset in zip(fields, assets):
            result[field_name] = asset
        if len(assets) > len(fields):
            logger.warning(
                f"{len(assets) - len(fields)} untagged roots not assigned to any section"
            )
        return result

    for field_name in fields:
        root = tagged.get(field_name)
        if root is None:
            continue
        section_graph = graph.subgraph(graph.upstream_ids(root.id))
        asset = raise_node(section_graph, root.id)
        if asset is not None:
            result[field_name] = asset

    return result


__all__ = [
    "node_discriminant",
    "raise_node",
    "find_roots",
    "raise_graph",
    "raise_multi",
    "raise_sections",
]
