"""
Policies for lowering and evaluation.

All policies are JSON-serializable dataclasses with to_dict/from_dict and
accept legacy field names through alias tables.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Literal
import os


DEBUG_ENV_VAR = "ASSETGRAPH_DEBUG"


def is_debug_mode() -> bool:
    """Check if debug mode is enabled via environment variable."""
    return os.environ.get(DEBUG_ENV_VAR, "").lower() in ("1", "true", "yes")


def alias_fields(d: Dict[str, Any], aliases: Dict[str, str]) -> Dict[str, Any]:
    """
    Apply field aliases to a dictionary.

    Parameters
    ----------
    d : dict
        Input dictionary
    aliases : dict
        Mapping of legacy_name -> canonical_name

    Returns
    -------
    dict
        Dictionary with aliases applied
    """
    result = d.copy()
    for legacy_name, canonical_name in aliases.items():
        if legacy_name in result and canonical_name not in result:
            result[canonical_name] = result.pop(legacy_name)
    return result


LOWERING_ALIASES = {
    "idPrefix": "id_prefix",
    "x_step": "column_spacing",
    "y_step": "row_spacing",
}


@dataclass
class LoweringPolicy:
    """
    Policy for tree -> graph lowering.

    Controls the id prefix and the position hints handed to the editing
    surface. Position hints never affect evaluation or raising.

    JSON Schema:
    {
        "id_prefix": str,
        "column_spacing": float,
        "row_spacing": float,
        "disconnected_offset_x": float,
        "disconnected_spacing_y": float,
        "section_spacing_y": float
    }
    """
    id_prefix: str = "graph"
    column_spacing: float = 300.0  # children sit this far left of their parent
    row_spacing: float = 150.0
    disconnected_offset_x: float = 400.0
    disconnected_spacing_y: float = 300.0
    section_spacing_y: float = 600.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "LoweringPolicy":
        d = alias_fields(d, LOWERING_ALIASES)
        return LoweringPolicy(**{k: v for k, v in d.items() if k in LoweringPolicy.__dataclass_fields__})


EVALUATION_ALIASES = {
    "max_positions": "max_samples",
    "maxSamples": "max_samples",
}


@dataclass
class EvaluationPolicy:
    """
    Policy for graph evaluation.

    JSON Schema:
    {
        "max_samples": int,
        "default_spacing": float,
        "default_resolution": float,
        "default_chance": float (0-1),
        "rng_mode": "shared" | "per_node",
        "max_grid_resolution": int
    }

    rng_mode "shared" threads one generator through the whole evaluation, so
    results depend on evaluation order. "per_node" derives an independent
    generator per node id from the seed.
    """
    max_samples: int = 10_000
    default_spacing: float = 16.0
    default_resolution: float = 16.0
    default_chance: float = 0.5
    rng_mode: Literal["shared", "per_node"] = "shared"
    max_grid_resolution: int = 512

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "EvaluationPolicy":
        d = alias_fields(d, EVALUATION_ALIASES)
        return EvaluationPolicy(**{k: v for k, v in d.items() if k in EvaluationPolicy.__dataclass_fields__})


__all__ = [
    "DEBUG_ENV_VAR",
    "is_debug_mode",
    "alias_fields",
    "LoweringPolicy",
    "EvaluationPolicy",
]
