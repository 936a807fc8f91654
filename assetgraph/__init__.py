"""
assetgraph - Lossless conversion between nested asset trees and node graphs.

Asset files describe procedural world generation as nested JSON objects
discriminated by a "Type" field. This package lowers those trees into flat
node/edge graphs suited to a visual editor, raises edited graphs back into
trees, and interprets position-provider and density graphs at design time.

Core Components:
    - lowering: asset tree -> Graph
    - raising: Graph -> asset tree(s)
    - resolver: type labels and port/field mapping
    - compat: legacy port renames
    - evaluation: position and density interpreters
    - sections: per-section summaries for multi-section canvases

Usage:
    from assetgraph import lower_to_graph, raise_graph

    graph = lower_to_graph(load_asset("biome.json"))
    # ... edit graph ...
    asset = raise_graph(graph)

Handle Table Version: assetgraph_handles 1.1.0

DEBUGGING
---------
Set ASSETGRAPH_DEBUG=1 to validate every lowered tree and log findings as
warnings.
"""

from .schema import (
    TABLE_NAME,
    TABLE_VERSION,
    SchemaValidationError,
    TableInfo,
)
from .asset import (
    TYPE_KEY,
    DISCONNECTED_KEY,
    AssetValidationError,
    ValueKind,
    is_asset,
    classify_value,
    validate_asset,
    assets_equal,
    load_asset,
    dump_asset,
)
from .graph import (
    GraphFormatError,
    GraphNode,
    GraphEdge,
    Graph,
    validate_graph,
)
from .resolver import (
    NodeClassification,
    resolve_node_type,
    classify_asset,
    port_to_slot,
)
from .policies import LoweringPolicy, EvaluationPolicy
from .lowering import LoweringResult, lower_asset, lower_to_graph, lower_sections
from .raising import raise_node, find_roots, raise_graph, raise_multi, raise_sections
from .sections import SectionSummary, get_root_type_chain, summarize_section
from .evaluation import (
    WorldRange,
    EvaluatedPosition,
    evaluate_positions,
    DensityGridResult,
    DensityVolumeResult,
    evaluate_density_grid,
    evaluate_density_volume,
)

__version__ = "0.1.0"

__all__ = [
    "TABLE_NAME",
    "TABLE_VERSION",
    "SchemaValidationError",
    "TableInfo",
    "TYPE_KEY",
    "DISCONNECTED_KEY",
    "AssetValidationError",
    "ValueKind",
    "is_asset",
    "classify_value",
    "validate_asset",
    "assets_equal",
    "load_asset",
    "dump_asset",
    "GraphFormatError",
    "GraphNode",
    "GraphEdge",
    "Graph",
    "validate_graph",
    "NodeClassification",
    "resolve_node_type",
    "classify_asset",
    "port_to_slot",
    "LoweringPolicy",
    "EvaluationPolicy",
    "LoweringResult",
    "lower_asset",
    "lower_to_graph",
    "lower_sections",
    "raise_node",
    "find_roots",
    "raise_graph",
    "raise_multi",
    "raise_sections",
    "SectionSummary",
    "get_root_type_chain",
    "summarize_section",
    "WorldRange",
    "EvaluatedPosition",
    "evaluate_positions",
    "DensityGridResult",
    "DensityVolumeResult",
    "evaluate_density_grid",
    "evaluate_density_volume",
]
