"""
Design-time interpreters for asset graphs.

- positions: scatter positions produced by a position-provider graph
- density: density-field previews over 2D slices and 3D volumes
- noise: seeded simplex, fractal and cellular noise used by density

Both resolve their root through roots.find_evaluation_root and never mutate
the graph they evaluate.
"""

from .context import WorldRange, RngSource, stable_node_hash
from .roots import find_evaluation_root, distance_to_terminal
from .positions import (
    POSITION_TYPES,
    EvaluatedPosition,
    generate_grid,
    find_position_root,
    evaluate_positions,
)
from .density import (
    DENSITY_TYPES,
    DensityGridResult,
    DensityVolumeResult,
    find_density_root,
    evaluate_density_grid,
    evaluate_density_volume,
)

__all__ = [
    "WorldRange",
    "RngSource",
    "stable_node_hash",
    "find_evaluation_root",
    "distance_to_terminal",
    "POSITION_TYPES",
    "EvaluatedPosition",
    "generate_grid",
    "find_position_root",
    "evaluate_positions",
    "DENSITY_TYPES",
    "DensityGridResult",
    "DensityVolumeResult",
    "find_density_root",
    "evaluate_density_grid",
    "evaluate_density_volume",
]
