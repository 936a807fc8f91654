"""
Section summaries for multi-section canvases.

A section is one named top-level field of an outer document (e.g.
"Terrain", "MaterialProvider", "Props[0]") lowered onto its own graph. The
summary is what an overview panel lists for each section.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict
import re

from .graph import Graph
from .raising import find_roots

CHAIN_SEPARATOR = " -> "

SECTION_LABELS = {
    "MaterialProvider": "Materials",
}

_PROP_KEY = re.compile(r"^Props\[(\d+)\]")


@dataclass
class SectionSummary:
    """Overview of one section graph."""
    key: str
    label: str
    node_count: int
    edge_count: int
    root_type_chain: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def section_label(key: str) -> str:
    """Display label for a section key ("Props[2]" -> "Prop 2")."""
    if key in SECTION_LABELS:
        return SECTION_LABELS[key]
    m = _PROP_KEY.match(key)
    if m:
        return f"Prop {m.group(1)}"
    return key


def get_root_type_chain(graph: Graph, max_depth: int = 4) -> str:
    """
    Type labels from the first root upstream along each node's first input.

    The root is the first of raising.find_roots, so a summary and a raise
    of the same section start from the same node.

    Parameters
    ----------
    graph : Graph
        Section graph
    max_depth : int
        Maximum number of labels in the chain

    Returns
    -------
    str
        Labels joined with " -> ", e.g. "CacheOnce -> Conditional -> Blend";
        empty for an empty graph
    """
    roots = find_roots(graph)
    if not roots:
        return ""

    nodes = graph.node_map()
    first_input: Dict[str, str] = {}
    for e in graph.edges:
        first_input.setdefault(e.target, e.source)

    chain = []
    current = roots[0]
    for _ in range(max_depth):
        if current is None:
            break
        if current.type:
            chain.append(current.type)
        parent = first_input.get(current.id)
        if parent is None:
            break
        current = nodes.get(parent)

    return CHAIN_SEPARATOR.join(chain)


def summarize_section(key: str, graph: Graph) -> SectionSummary:
    """Summarize a section graph for display."""
    return SectionSummary(
        key=key,
        label=section_label(key),
        node_count=len(graph.nodes),
        edge_count=len(graph.edges),
        root_type_chain=get_root_type_chain(graph),
    )


__all__ = [
    "CHAIN_SEPARATOR",
    "SectionSummary",
    "section_label",
    "get_root_type_chain",
    "summarize_section",
]
