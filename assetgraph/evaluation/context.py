"""
Shared evaluation state: the spatial range and the seeded RNG.

RNG MODES
---------
"shared":   one numpy Generator seeded once and threaded through the whole
            evaluation in visiting order. Deterministic for a fixed graph and
            seed, but any upstream edit that adds or removes a draw shifts
            the sequence seen by every later sampling node.
"per_node": an RNG factory that derives one Generator per node id from
            (seed, stable hash of the id). A node's draws no longer depend on
            the rest of the graph.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Tuple
import hashlib

import numpy as np

from ..policies import alias_fields


WORLD_RANGE_ALIASES = {
    "minX": "min_x",
    "maxX": "max_x",
    "minZ": "min_z",
    "maxZ": "max_z",
}


@dataclass(frozen=True)
class WorldRange:
    """Horizontal world-space rectangle [min_x, max_x) x [min_z, max_z)."""
    min_x: float = 0.0
    max_x: float = 128.0
    min_z: float = 0.0
    max_z: float = 128.0

    def contains(self, x: float, z: float) -> bool:
        """Inclusive containment check used to clip explicit positions."""
        return self.min_x <= x <= self.max_x and self.min_z <= z <= self.max_z

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "WorldRange":
        d = alias_fields(d, WORLD_RANGE_ALIASES)
        return WorldRange(**{k: float(v) for k, v in d.items() if k in WorldRange.__dataclass_fields__})


def stable_node_hash(node_id: str) -> int:
    """32-bit hash of a node id that is stable across processes."""
    digest = hashlib.sha256(node_id.encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "little")


class RngSource:
    """
    Hands out the generator a node should draw from.

    In "shared" mode every node gets the same generator. In "per_node" mode
    each node id gets its own generator, created on first use and kept for
    the rest of the evaluation.
    """

    def __init__(self, seed: int, mode: str = "shared"):
        if mode not in ("shared", "per_node"):
            raise ValueError(f"Unknown rng_mode '{mode}', expected 'shared' or 'per_node'")
        self.seed = int(seed)
        self.mode = mode
        self._shared = np.random.default_rng(self.seed & 0xFFFFFFFF)
        self._per_node: Dict[str, np.random.Generator] = {}

    def for_node(self, node_id: Optional[str] = None) -> np.random.Generator:
        if self.mode == "shared" or node_id is None:
            return self._shared
        rng = self._per_node.get(node_id)
        if rng is None:
            rng = np.random.default_rng([self.seed & 0xFFFFFFFF, stable_node_hash(node_id)])
            self._per_node[node_id] = rng
        return rng


def coerce_number(value: Any, default: float) -> float:
    """Field value as float, falling back to default for missing or bad values."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def coerce_xyz(value: Any) -> Tuple[float, float, float]:
    """Vector-shaped field value as (x, y, z); missing components are 0."""
    if not isinstance(value, dict):
        return (0.0, 0.0, 0.0)
    return (
        coerce_number(value.get("x"), 0.0),
        coerce_number(value.get("y"), 0.0),
        coerce_number(value.get("z"), 0.0),
    )


__all__ = [
    "WorldRange",
    "RngSource",
    "stable_node_hash",
    "coerce_number",
    "coerce_xyz",
]
