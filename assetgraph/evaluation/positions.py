"""
Position-provider interpreter.

Walks a graph of position-provider nodes and returns the scatter positions
the root would produce over a horizontal world range.

EVALUATION CONTRACT
-------------------
- Deterministic for a fixed (graph, range, seed, root, policy).
- Every node's output is truncated to policy.max_samples before it is handed
  downstream, so upstream fan-out is bounded at each step.
- A node is on the visiting stack only while its own inputs are being
  evaluated. Reaching it again on a different path (a diamond) evaluates it
  again; reaching it while it is still on the stack (a cycle) yields no
  positions for that input.
- In the default "shared" RNG mode one generator is threaded through the
  evaluation in visiting order.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set
import logging

import numpy as np

from ..compat.handle_aliases import migrate_ports
from ..graph import Graph, GraphNode
from ..policies import EvaluationPolicy
from .context import RngSource, WorldRange, coerce_number, coerce_xyz
from .roots import evaluable_type, find_evaluation_root

logger = logging.getLogger(__name__)


POSITION_CATEGORY = "Position"
POSITION_SECTION = "Positions"

POSITION_TYPE_NAMES = (
    "Mesh2D", "Mesh3D", "SimpleHorizontal", "List",
    "Occurrence", "Offset", "Union", "Cache",
    "SurfaceProjection", "FieldFunction", "Conditional",
    "DensityBased", "Exported", "Imported",
)

POSITION_TYPES = frozenset(POSITION_TYPE_NAMES)

# Ports an unknown node is assumed to forward, in preference order.
GENERIC_INPUT_PORTS = ("PositionProvider", "Input", "Inputs[0]")


@dataclass(frozen=True)
class EvaluatedPosition:
    """A scatter position on the horizontal plane."""
    x: float
    z: float
    weight: float = 1.0

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "z": self.z, "weight": self.weight}


def generate_grid(
    world_range: WorldRange,
    spacing: float,
    jitter: float,
    rng: np.random.Generator,
    max_samples: int,
) -> List[EvaluatedPosition]:
    """
    Lattice of positions over the range, optionally jittered.

    Rows run along x (outer) and columns along z (inner), each starting at the
    range minimum and stopping before the maximum. Jitter is a fraction of
    the spacing: each axis moves by up to jitter * spacing / 2. No random
    numbers are drawn when jitter is 0.

    Parameters
    ----------
    world_range : WorldRange
        Sampled rectangle
    spacing : float
        Lattice spacing; clamped to at least 1, non-positive yields nothing
    jitter : float
        Jitter as a fraction of spacing
    rng : numpy.random.Generator
        Source of jitter offsets
    max_samples : int
        Generation stops once this many positions exist

    Returns
    -------
    list of EvaluatedPosition
    """
    if spacing <= 0:
        return []
    spacing = max(spacing, 1.0)

    positions: List[EvaluatedPosition] = []
    half_jitter = jitter * spacing * 0.5

    x = world_range.min_x
    while x < world_range.max_x:
        z = world_range.min_z
        while z < world_range.max_z:
            jx = (rng.random() * 2 - 1) * half_jitter if half_jitter > 0 else 0.0
            jz = (rng.random() * 2 - 1) * half_jitter if half_jitter > 0 else 0.0
            positions.append(EvaluatedPosition(x + jx, z + jz, 1.0))
            if len(positions) >= max_samples:
                return positions
            z += spacing
        x += spacing

    return positions


class PositionInterpreter:
    """
    One evaluation of a position graph.

    Holds the reverse adjacency, the RNG source and the visiting stack for a
    single call; instances are not reused across evaluations.
    """

    def __init__(
        self,
        graph: Graph,
        world_range: WorldRange,
        seed: int,
        policy: Optional[EvaluationPolicy] = None,
    ):
        self.policy = policy or EvaluationPolicy()
        self.world_range = world_range
        self.rng = RngSource(seed, self.policy.rng_mode)
        self.nodes = graph.node_map()
        self.inputs = self._build_inputs(graph)
        self.visiting: Set[str] = set()

        self.handlers: Dict[str, Callable[[GraphNode, Dict[str, Any], Dict[str, str]], List[EvaluatedPosition]]] = {
            "Mesh2D": self._mesh,
            "Mesh3D": self._mesh,
            "SimpleHorizontal": self._simple_horizontal,
            "List": self._list,
            "Occurrence": self._occurrence,
            "Offset": self._offset,
            "Union": self._union,
            "Cache": self._passthrough,
            "SurfaceProjection": self._passthrough,
            "FieldFunction": self._field_function,
            "Conditional": self._conditional,
            "DensityBased": self._density_based,
            "Exported": self._exported,
            "Imported": self._imported,
        }

    def _build_inputs(self, graph: Graph) -> Dict[str, Dict[str, str]]:
        inputs = {}
        for target, ports in graph.input_map().items():
            node = self.nodes.get(target)
            if node is None:
                continue
            inputs[target], _ = migrate_ports(node.type, ports, context=target)
        return inputs

    def evaluate(self, node_id: str) -> List[EvaluatedPosition]:
        if node_id in self.visiting:
            logger.debug(f"Cycle through {node_id}; branch yields no positions")
            return []

        node = self.nodes.get(node_id)
        if node is None:
            return []

        self.visiting.add(node_id)
        try:
            type_name = evaluable_type(node, POSITION_CATEGORY)
            inputs = self.inputs.get(node_id, {})
            handler = self.handlers.get(type_name, self._unknown)
            result = handler(node, node.fields, inputs)
        finally:
            self.visiting.discard(node_id)

        if len(result) > self.policy.max_samples:
            result = result[:self.policy.max_samples]
        return result

    def upstream(self, inputs: Dict[str, str], port: str) -> List[EvaluatedPosition]:
        source = inputs.get(port)
        if source is None:
            return []
        return self.evaluate(source)

    def _mesh(self, node, fields, inputs):
        resolution = coerce_number(fields.get("Resolution"), self.policy.default_resolution)
        jitter = coerce_number(fields.get("Jitter"), 0.0)
        return generate_grid(
            self.world_range, resolution, jitter,
            self.rng.for_node(node.id), self.policy.max_samples,
        )

    def _simple_horizontal(self, node, fields, inputs):
        spacing = coerce_number(fields.get("Spacing"), self.policy.default_spacing)
        jitter = coerce_number(fields.get("Jitter"), 0.0)
        return generate_grid(
            self.world_range, spacing, jitter,
            self.rng.for_node(node.id), self.policy.max_samples,
        )

    def _list(self, node, fields, inputs):
        raw = fields.get("Positions")
        if not isinstance(raw, list):
            return []
        result = []
        for p in raw:
            if not isinstance(p, dict) or "x" not in p or "z" not in p:
                continue
            x = coerce_number(p.get("x"), 0.0)
            z = coerce_number(p.get("z"), 0.0)
            if self.world_range.contains(x, z):
                result.append(EvaluatedPosition(x, z, 1.0))
        return result

    def _occurrence(self, node, fields, inputs):
        chance = coerce_number(fields.get("Chance"), self.policy.default_chance)
        upstream = self.upstream(inputs, "PositionProvider")
        rng = self.rng.for_node(node.id)
        return [p for p in upstream if rng.random() < chance]

    def _offset(self, node, fields, inputs):
        dx, _, dz = coerce_xyz(fields.get("Offset"))
        upstream = self.upstream(inputs, "PositionProvider")
        return [EvaluatedPosition(p.x + dx, p.z + dz, p.weight) for p in upstream]

    def _union(self, node, fields, inputs):
        a = self.upstream(inputs, "Providers[0]")
        b = self.upstream(inputs, "Providers[1]")
        return a + b

    def _passthrough(self, node, fields, inputs):
        return self.upstream(inputs, "PositionProvider")

    def _field_function(self, node, fields, inputs):
        upstream = self.upstream(inputs, "PositionProvider")
        return [EvaluatedPosition(p.x, p.z, 0.5) for p in upstream]

    def _conditional(self, node, fields, inputs):
        # The condition cannot be decided at design time; only TrueInput is followed.
        return self.upstream(inputs, "TrueInput")

    def _density_based(self, node, fields, inputs):
        grid = generate_grid(
            self.world_range, 16.0, 0.0,
            self.rng.for_node(node.id), self.policy.max_samples,
        )
        return [EvaluatedPosition(p.x, p.z, 0.5) for p in grid]

    def _exported(self, node, fields, inputs):
        return self.upstream(inputs, "Input")

    def _imported(self, node, fields, inputs):
        return []

    def _unknown(self, node, fields, inputs):
        for port in GENERIC_INPUT_PORTS:
            if port in inputs:
                return self.evaluate(inputs[port])
        return []


def find_position_root(graph: Graph, root_id: Optional[str] = None) -> Optional[GraphNode]:
    """Resolve the position-provider root of a graph."""
    return find_evaluation_root(
        graph,
        POSITION_TYPES,
        category=POSITION_CATEGORY,
        section=POSITION_SECTION,
        root_id=root_id,
    )


def evaluate_positions(
    graph: Graph,
    world_range: WorldRange,
    seed: int,
    root_id: Optional[str] = None,
    policy: Optional[EvaluationPolicy] = None,
) -> List[EvaluatedPosition]:
    """
    Evaluate a position-provider graph into scatter positions.

    Parameters
    ----------
    graph : Graph
        Graph to evaluate; never mutated
    world_range : WorldRange
        Horizontal range to sample
    seed : int
        RNG seed
    root_id : str, optional
        Explicit root node id
    policy : EvaluationPolicy, optional
        Sample cap, defaults and RNG mode

    Returns
    -------
    list of EvaluatedPosition
        At most policy.max_samples positions, in evaluation order

    Examples
    --------
    >>> from assetgraph.lowering import lower_to_graph
    >>> graph = lower_to_graph({"Type": "SimpleHorizontal", "Spacing": 8, "Jitter": 0},
    ...                        root_field="PositionProvider")
    >>> positions = evaluate_positions(graph, WorldRange(0, 16, 0, 16), seed=1)
    >>> [(p.x, p.z) for p in positions]
    [(0.0, 0.0), (0.0, 8.0), (8.0, 0.0), (8.0, 8.0)]
    """
    if not graph.nodes:
        return []

    root = find_position_root(graph, root_id)
    if root is None:
        logger.debug("No position root found")
        return []

    interpreter = PositionInterpreter(graph, world_range, seed, policy)
    positions = interpreter.evaluate(root.id)
    logger.debug(f"Evaluated {len(positions)} positions from root {root.id}")
    return positions


__all__ = [
    "POSITION_CATEGORY",
    "POSITION_SECTION",
    "POSITION_TYPE_NAMES",
    "POSITION_TYPES",
    "GENERIC_INPUT_PORTS",
    "EvaluatedPosition",
    "generate_grid",
    "PositionInterpreter",
    "find_position_root",
    "evaluate_positions",
]
