"""
Density-function interpreter for 2D field and 3D voxel previews.

Each node is evaluated once per path over whole coordinate arrays: x, y and
z are numpy arrays of identical shape and every handler returns an array of
that shape. This evaluates a full preview grid in a single graph walk.

The same visiting-stack rule as the position interpreter applies: a cycle
evaluates to zeros for the revisiting input, a diamond is evaluated once per
path.

Noise nodes are seeded from their Seed field mixed with the evaluation
seed (see evaluation.noise), so a preview is reproducible for a fixed seed.
Terrain- and biome-context types cannot be previewed outside the game and
evaluate to zero. Unknown types forward their "Input" (or "Inputs[0]") port.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Set
import itertools
import logging

import numpy as np

from ..compat.handle_aliases import migrate_ports
from ..graph import Graph, GraphNode
from ..policies import EvaluationPolicy
from .context import coerce_number, coerce_xyz
from .noise import NoiseBank, fbm, hash_seed, ridged_fbm, voronoi
from .roots import evaluable_type, find_evaluation_root

logger = logging.getLogger(__name__)


DENSITY_SECTION = "Terrain"

UNSUPPORTED_TYPES = frozenset({
    "HeightAboveSurface",
    "SurfaceDensity",
    "TerrainBoolean",
    "TerrainMask",
    "BeardDensity",
    "ColumnDensity",
    "CaveDensity",
    "Terrain",
    "DistanceToBiomeEdge",
    "Pipeline",
})

UNARY_FUNCS: Dict[str, Callable[[np.ndarray], np.ndarray]] = {
    "Negate": lambda v: -v,
    "Abs": np.abs,
    "SquareRoot": lambda v: np.sqrt(np.abs(v)),
    "CubeRoot": np.cbrt,
    "Square": lambda v: v * v,
    "CubeMath": lambda v: v * v * v,
    "Inverse": lambda v: np.divide(1.0, v, out=np.zeros_like(v), where=v != 0),
    "Floor": np.floor,
    "Ceiling": np.ceil,
}

PASSTHROUGH_TYPES = frozenset({
    "CacheOnce", "FlatCache", "Cache2D", "Wrap", "Passthrough", "Debug", "Exported",
})

COORDINATE_TYPES = frozenset({
    "CoordinateX", "CoordinateY", "CoordinateZ",
    "DistanceFromOrigin", "DistanceFromAxis", "DistanceFromPoint",
    "AngleFromOrigin", "AngleFromPoint",
})

# name -> (dimensions, kind, default octaves)
NOISE_TYPES: Dict[str, tuple] = {
    "SimplexNoise2D": (2, "simplex", 1),
    "SimplexNoise3D": (3, "simplex", 1),
    "SimplexRidgeNoise2D": (2, "ridge", 1),
    "SimplexRidgeNoise3D": (3, "ridge", 1),
    "FractalNoise2D": (2, "fractal", 4),
    "FractalNoise3D": (3, "fractal", 4),
    "VoronoiNoise2D": (2, "voronoi", 1),
    "VoronoiNoise3D": (3, "voronoi", 1),
}

SMOOTH_TYPES = frozenset({
    "SmoothClamp", "SmoothFloor", "SmoothCeiling", "SmoothMin", "SmoothMax",
})

# types that evaluate their Input at transformed coordinates
WARP_TYPES = frozenset({
    "XOverride", "YOverride", "ZOverride", "YSampled",
    "GradientWarp", "DomainWarp2D", "DomainWarp3D",
    "PositionsTwist", "PositionsPinch",
})

DENSITY_TYPES = frozenset(
    set(UNARY_FUNCS)
    | PASSTHROUGH_TYPES
    | COORDINATE_TYPES
    | UNSUPPORTED_TYPES
    | set(NOISE_TYPES)
    | SMOOTH_TYPES
    | WARP_TYPES
    | {
        "Constant", "Zero", "One", "ImportedValue",
        "Sum", "SumSelf", "WeightedSum", "Product",
        "Modulo", "AmplitudeConstant", "Pow", "Amplitude", "Offset", "Distance",
        "Clamp", "ClampToIndex", "Normalizer", "LinearTransform",
        "RangeChoice", "Interpolate",
        "Conditional", "MinFunction", "MaxFunction", "AverageFunction",
        "Blend", "Switch",
        "CurveFunction", "SplineFunction",
    }
)


def smooth_min(a: np.ndarray, b: np.ndarray, k: float) -> np.ndarray:
    """Polynomial smooth minimum; k is the blend width (k <= 0 is a hard min)."""
    if k <= 0:
        return np.minimum(a, b)
    h = np.clip(0.5 + 0.5 * (b - a) / k, 0.0, 1.0)
    return b + (a - b) * h - k * h * (1.0 - h)


def smooth_max(a: np.ndarray, b: np.ndarray, k: float) -> np.ndarray:
    return -smooth_min(-a, -b, k)


@dataclass
class DensityGridResult:
    """A horizontal slice of density values, indexed [row (z), column (x)]."""
    values: np.ndarray
    min_value: float = 0.0
    max_value: float = 0.0
    root_id: Optional[str] = None


@dataclass
class DensityVolumeResult:
    """Density values indexed [y level, row (z), column (x)]."""
    values: np.ndarray
    y_levels: np.ndarray = field(default_factory=lambda: np.zeros(0))
    min_value: float = 0.0
    max_value: float = 0.0
    root_id: Optional[str] = None

    def solid_mask(self, threshold: float = 0.0) -> np.ndarray:
        """Boolean voxel mask of cells whose density exceeds threshold."""
        return self.values > threshold


def _finite_range(values: np.ndarray) -> tuple:
    finite = values[np.isfinite(values)]
    if finite.size == 0:
        return 0.0, 0.0
    return float(finite.min()), float(finite.max())


def _manual_curve(points: Any) -> Optional[tuple]:
    """Sorted (xs, ys) arrays for a list of {x, y} points, or None."""
    if not isinstance(points, list):
        return None
    pts = []
    for p in points:
        if isinstance(p, dict):
            pts.append((coerce_number(p.get("x"), 0.0), coerce_number(p.get("y"), 0.0)))
        elif isinstance(p, (list, tuple)) and len(p) >= 2:
            pts.append((coerce_number(p[0], 0.0), coerce_number(p[1], 0.0)))
    if len(pts) < 2:
        return None
    pts.sort(key=lambda p: p[0])
    return np.array([p[0] for p in pts]), np.array([p[1] for p in pts])


class DensityInterpreter:
    """
    One vectorised evaluation of a density graph.

    Parameters
    ----------
    graph : Graph
        Graph to evaluate; never mutated
    seed : int
        Evaluation seed mixed into every noise node's own Seed
    """

    def __init__(self, graph: Graph, seed: int = 0):
        self.nodes = graph.node_map()
        self.inputs: Dict[str, Dict[str, str]] = {}
        for target, ports in graph.input_map().items():
            node = self.nodes.get(target)
            if node is not None:
                self.inputs[target], _ = migrate_ports(node.type, ports, context=target)
        self.visiting: Set[str] = set()
        self.seed = int(seed)
        self.noise = NoiseBank()

    def evaluate(self, node_id: str, x: np.ndarray, y: np.ndarray, z: np.ndarray) -> np.ndarray:
        if node_id in self.visiting:
            logger.debug(f"Cycle through {node_id}; input evaluates to zero")
            return np.zeros_like(x)

        node = self.nodes.get(node_id)
        if node is None:
            return np.zeros_like(x)

        self.visiting.add(node_id)
        try:
            result = self._dispatch(node, x, y, z)
        finally:
            self.visiting.discard(node_id)

        return np.broadcast_to(np.asarray(result, dtype=np.float64), x.shape).copy()

    def get_input(self, inputs: Dict[str, str], port: str, x, y, z) -> np.ndarray:
        source = inputs.get(port)
        if source is None:
            return np.zeros_like(x)
        return self.evaluate(source, x, y, z)

    def _indexed_inputs(self, inputs: Dict[str, str], x, y, z):
        for i in itertools.count():
            port = f"Inputs[{i}]"
            if port not in inputs:
                return
            yield self.get_input(inputs, port, x, y, z)

    def _dispatch(self, node: GraphNode, x, y, z) -> np.ndarray:
        t = evaluable_type(node)
        f = node.fields
        inputs = self.inputs.get(node.id, {})

        def inp(port: str = "Input") -> np.ndarray:
            return self.get_input(inputs, port, x, y, z)

        if t in UNARY_FUNCS:
            return UNARY_FUNCS[t](inp())

        if t in PASSTHROUGH_TYPES:
            return inp()

        if t in COORDINATE_TYPES:
            return self._coordinate(t, f, x, y, z)

        if t in NOISE_TYPES:
            return self._noise(t, f, inputs, x, y, z)

        if t in SMOOTH_TYPES:
            return self._smooth(t, f, inputs, x, y, z)

        if t in WARP_TYPES:
            return self._warp(t, f, inputs, x, y, z)

        if t == "ImportedValue" and "Input" in inputs:
            return inp()
        if t in ("Constant", "ImportedValue"):
            return np.full_like(x, coerce_number(f.get("Value"), 0.0))
        if t == "Zero":
            return np.zeros_like(x)
        if t == "One":
            return np.ones_like(x)

        if t == "Sum":
            return sum(self._indexed_inputs(inputs, x, y, z), np.zeros_like(x))
        if t == "Product":
            result = np.ones_like(x)
            for v in self._indexed_inputs(inputs, x, y, z):
                result = result * v
            return result
        if t == "WeightedSum":
            weights = f.get("Weights") if isinstance(f.get("Weights"), list) else []
            result = np.zeros_like(x)
            for i, v in enumerate(self._indexed_inputs(inputs, x, y, z)):
                w = coerce_number(weights[i], 1.0) if i < len(weights) else 1.0
                result = result + v * w
            return result
        if t == "SumSelf":
            return inp() * max(1.0, coerce_number(f.get("Count"), 2.0))
        if t == "Modulo":
            divisor = coerce_number(f.get("Divisor"), 1.0)
            return np.fmod(inp(), divisor) if divisor != 0 else np.zeros_like(x)
        if t == "AmplitudeConstant":
            return inp() * coerce_number(f.get("Value"), 1.0)
        if t == "Amplitude":
            return inp() * inp("Amplitude")
        if t == "Offset":
            return inp() + inp("Offset")
        if t == "Distance":
            return self._apply_curve(inputs, np.sqrt(x * x + y * y + z * z))
        if t == "Pow":
            v = inp()
            return np.power(np.abs(v), coerce_number(f.get("Exponent"), 2.0)) * np.sign(v)

        if t == "Clamp":
            lo = coerce_number(f.get("Min"), 0.0)
            hi = coerce_number(f.get("Max"), 1.0)
            return np.maximum(lo, np.minimum(hi, inp()))
        if t == "ClampToIndex":
            lo = coerce_number(f.get("Min"), 0.0)
            hi = coerce_number(f.get("Max"), 255.0)
            return np.maximum(lo, np.minimum(hi, np.floor(inp())))
        if t == "Normalizer":
            return self._normalize(inp(), f.get("SourceRange"), f.get("TargetRange"))
        if t == "LinearTransform":
            return inp() * coerce_number(f.get("Scale"), 1.0) + coerce_number(f.get("Offset"), 0.0)
        if t == "RangeChoice":
            return self._choice(inputs, f, 0.5, x, y, z)
        if t == "Conditional":
            return self._choice(inputs, f, 0.0, x, y, z)
        if t == "Interpolate":
            a, b = inp("InputA"), inp("InputB")
            return a + (b - a) * inp("Factor")
        if t == "Blend":
            a, b = inp("InputA"), inp("InputB")
            factor = inp("Factor") if "Factor" in inputs else np.full_like(x, 0.5)
            return a + (b - a) * factor

        if t in ("MinFunction", "MaxFunction", "AverageFunction"):
            values = list(self._indexed_inputs(inputs, x, y, z))
            if not values:
                return np.zeros_like(x)
            if t == "MinFunction":
                return np.minimum.reduce(values)
            if t == "MaxFunction":
                return np.maximum.reduce(values)
            return np.mean(values, axis=0)
        if t == "Switch":
            selector = max(0, int(np.floor(coerce_number(f.get("Selector"), 0.0))))
            return inp(f"Inputs[{selector}]")

        if t == "CurveFunction":
            return self._apply_curve(inputs, inp())
        if t == "SplineFunction":
            curve = _manual_curve(f.get("Points"))
            v = inp()
            return np.interp(v, curve[0], curve[1]) if curve else v

        if t in UNSUPPORTED_TYPES:
            # terrain-context types have no preview implementation
            return np.zeros_like(x)

        for port in ("Input", "Inputs[0]"):
            if port in inputs:
                return inp(port)
        return np.zeros_like(x)

    def _coordinate(self, t: str, f: Dict[str, Any], x, y, z) -> np.ndarray:
        if t == "CoordinateX":
            return x
        if t == "CoordinateY":
            return y
        if t == "CoordinateZ":
            return z
        if t == "DistanceFromOrigin":
            return np.sqrt(x * x + y * y + z * z)
        if t == "DistanceFromAxis":
            axis = str(f.get("Axis", "Y"))
            if axis == "X":
                return np.sqrt(y * y + z * z)
            if axis == "Z":
                return np.sqrt(x * x + y * y)
            return np.sqrt(x * x + z * z)
        px, py, pz = coerce_xyz(f.get("Point"))
        if t == "DistanceFromPoint":
            return np.sqrt((x - px) ** 2 + (y - py) ** 2 + (z - pz) ** 2)
        if t == "AngleFromPoint":
            return np.arctan2(z - pz, x - px)
        return np.arctan2(z, x)

    def _noise(self, t: str, f: Dict[str, Any], inputs, x, y, z) -> np.ndarray:
        dims, kind, default_octaves = NOISE_TYPES[t]
        frequency = coerce_number(f.get("Frequency"), 0.01)
        octaves = max(1, int(coerce_number(f.get("Octaves"), default_octaves)))
        lacunarity = coerce_number(f.get("Lacunarity"), 2.0)
        gain = coerce_number(f.get("Gain"), 0.5)
        seed = hash_seed(f.get("Seed"), self.seed)
        coords = (x, z) if dims == 2 else (x, y, z)

        if kind == "voronoi":
            cell_type = str(f.get("CellType") or "Euclidean")
            jitter = coerce_number(f.get("Jitter"), 1.0)
            raw = fbm(
                lambda *c: voronoi(c, seed, cell_type, jitter),
                coords, frequency, octaves, lacunarity, gain,
            )
            return_type = f.get("ReturnType") or "Distance"
            if return_type == "Curve":
                return self._apply_curve(inputs, raw, "ReturnCurve")
            if return_type == "Density":
                return self.get_input(inputs, "ReturnDensity", x, y, z) * raw
            return raw

        if dims == 2:
            noise = lambda cx, cz: self.noise.simplex2(seed, cx, cz)
        else:
            noise = lambda cx, cy, cz: self.noise.simplex3(seed, cx, cy, cz)

        if kind == "ridge":
            return ridged_fbm(noise, coords, frequency, octaves) * coerce_number(f.get("Amplitude"), 1.0)
        result = fbm(noise, coords, frequency, octaves, lacunarity, gain)
        if kind == "fractal":
            return result
        return result * coerce_number(f.get("Amplitude"), 1.0)

    def _smooth(self, t: str, f: Dict[str, Any], inputs, x, y, z) -> np.ndarray:
        k = coerce_number(f.get("Smoothness"), 0.1)

        if t in ("SmoothMin", "SmoothMax"):
            combine = smooth_min if t == "SmoothMin" else smooth_max
            result = None
            for v in self._indexed_inputs(inputs, x, y, z):
                result = v if result is None else combine(result, v, k)
            return result if result is not None else np.zeros_like(x)

        v = self.get_input(inputs, "Input", x, y, z)
        if t == "SmoothClamp":
            lo = coerce_number(f.get("Min"), 0.0)
            hi = coerce_number(f.get("Max"), 1.0)
            return smooth_max(smooth_min(v, np.full_like(v, hi), k), np.full_like(v, lo), k)
        if t == "SmoothFloor":
            return smooth_max(v, np.full_like(v, coerce_number(f.get("Threshold"), 0.0)), k)
        return smooth_min(v, np.full_like(v, coerce_number(f.get("Threshold"), 1.0)), k)

    def _warp(self, t: str, f: Dict[str, Any], inputs, x, y, z) -> np.ndarray:
        def at(wx, wy, wz, port: str = "Input") -> np.ndarray:
            return self.get_input(inputs, port, wx, wy, wz)

        if t == "XOverride":
            return at(np.full_like(x, coerce_number(f.get("OverrideX"), 0.0)), y, z)
        if t == "YOverride":
            override = f.get("OverrideY", f.get("Y"))
            return at(x, np.full_like(y, coerce_number(override, 0.0)), z)
        if t == "ZOverride":
            return at(x, y, np.full_like(z, coerce_number(f.get("OverrideZ"), 0.0)))

        if t == "YSampled":
            if "YProvider" in inputs:
                target_y = at(x, y, z, "YProvider")
            else:
                distance = coerce_number(f.get("SampleDistance"), 4.0)
                offset = coerce_number(f.get("SampleOffset"), 0.0)
                # half-up rounding, not numpy's round-half-to-even
                target_y = (
                    np.floor((y - offset) / distance + 0.5) * distance + offset
                    if distance > 0 else y
                )
            return at(x, target_y, z)

        if t == "GradientWarp":
            factor = coerce_number(f.get("WarpFactor", f.get("WarpScale")), 1.0)
            eps = coerce_number(f.get("SampleRange"), 1.0) or 1.0
            is_2d = f.get("Is2D") is True
            sample_y = np.full_like(y, coerce_number(f.get("YFor2D"), 0.0)) if is_2d else y
            inv = 1.0 / (2.0 * eps)

            dfdx = (at(x + eps, sample_y, z, "WarpSource") - at(x - eps, sample_y, z, "WarpSource")) * inv
            dfdz = (at(x, sample_y, z + eps, "WarpSource") - at(x, sample_y, z - eps, "WarpSource")) * inv
            wy = y
            if not is_2d:
                dfdy = (at(x, y + eps, z, "WarpSource") - at(x, y - eps, z, "WarpSource")) * inv
                wy = y + factor * dfdy
            return at(x + factor * dfdx, wy, z + factor * dfdz)

        if t in ("DomainWarp2D", "DomainWarp3D"):
            amplitude = coerce_number(f.get("Amplitude"), 1.0)
            frequency = coerce_number(f.get("Frequency"), 0.01)
            seed = hash_seed(f.get("Seed"), self.seed)
            fx, fy, fz = x * frequency, y * frequency, z * frequency
            if t == "DomainWarp2D":
                wx = self.noise.simplex2(seed, fx, fz) * amplitude
                wz = self.noise.simplex2((seed + 1) & 0x7FFFFFFF, fx, fz) * amplitude
                return at(x + wx, y, z + wz)
            wx = self.noise.simplex3(seed, fx, fy, fz) * amplitude
            wy = self.noise.simplex3((seed + 1) & 0x7FFFFFFF, fx, fy, fz) * amplitude
            wz = self.noise.simplex3((seed + 2) & 0x7FFFFFFF, fx, fy, fz) * amplitude
            return at(x + wx, y + wy, z + wz)

        if t == "PositionsTwist":
            rad = np.radians(coerce_number(f.get("Angle"), 0.0)) * y
            cos, sin = np.cos(rad), np.sin(rad)
            return at(x * cos - z * sin, y, x * sin + z * cos)

        # PositionsPinch
        strength = coerce_number(f.get("Strength"), 1.0)
        dist = np.sqrt(x * x + z * z)
        safe = np.where(dist > 0, dist, 1.0)
        pinch = np.where(dist > 0, np.power(safe, strength) / safe, 1.0)
        return at(x * pinch, y, z * pinch)

    def _choice(self, inputs, f, default_threshold: float, x, y, z) -> np.ndarray:
        condition = self.get_input(inputs, "Condition", x, y, z)
        threshold = coerce_number(f.get("Threshold"), default_threshold)
        return np.where(
            condition >= threshold,
            self.get_input(inputs, "TrueInput", x, y, z),
            self.get_input(inputs, "FalseInput", x, y, z),
        )

    @staticmethod
    def _normalize(v: np.ndarray, source: Any, target: Any) -> np.ndarray:
        source = source if isinstance(source, dict) else {}
        target = target if isinstance(target, dict) else {}
        src_min = coerce_number(source.get("Min"), -1.0)
        src_max = coerce_number(source.get("Max"), 1.0)
        tgt_min = coerce_number(target.get("Min"), 0.0)
        tgt_max = coerce_number(target.get("Max"), 1.0)
        span = src_max - src_min
        if span == 0:
            return np.full_like(v, tgt_min)
        return tgt_min + (v - src_min) / span * (tgt_max - tgt_min)

    def _apply_curve(self, inputs: Dict[str, str], v: np.ndarray, port: str = "Curve") -> np.ndarray:
        curve_id = inputs.get(port)
        curve_node = self.nodes.get(curve_id) if curve_id else None
        if curve_node is None:
            return v
        if evaluable_type(curve_node, "Curve") != "Manual":
            return v
        curve = _manual_curve(curve_node.fields.get("Points"))
        if curve is None:
            return v
        # np.interp clamps to the end points outside the curve's x range
        return np.interp(v, curve[0], curve[1])


def find_density_root(graph: Graph, root_id: Optional[str] = None) -> Optional[GraphNode]:
    """Resolve the density-function root of a graph."""
    return find_evaluation_root(
        graph, DENSITY_TYPES, category="", section=DENSITY_SECTION, root_id=root_id,
    )


def _clamp_resolution(resolution: int, policy: EvaluationPolicy) -> int:
    n = max(1, int(resolution))
    if n > policy.max_grid_resolution:
        logger.debug(f"Resolution {n} capped at {policy.max_grid_resolution}")
        n = policy.max_grid_resolution
    return n


def evaluate_density_grid(
    graph: Graph,
    resolution: int,
    range_min: float,
    range_max: float,
    y_level: float,
    root_id: Optional[str] = None,
    policy: Optional[EvaluationPolicy] = None,
    seed: int = 0,
) -> DensityGridResult:
    """
    Evaluate a density graph over a square horizontal slice.

    Parameters
    ----------
    graph : Graph
        Graph to evaluate; never mutated
    resolution : int
        Samples per side (capped by policy.max_grid_resolution)
    range_min, range_max : float
        World-space extent on both x and z
    y_level : float
        Height of the slice
    root_id : str, optional
        Explicit root node id
    policy : EvaluationPolicy, optional
        Resolution cap
    seed : int
        Evaluation seed for noise nodes; the same graph and seed always give
        the same values

    Returns
    -------
    DensityGridResult
        float32 values of shape (resolution, resolution); all zeros when the
        graph has no density root
    """
    policy = policy or EvaluationPolicy()
    n = _clamp_resolution(resolution, policy)

    root = find_density_root(graph, root_id)
    if root is None:
        return DensityGridResult(values=np.zeros((n, n), dtype=np.float32))

    step = (range_max - range_min) / n
    axis = range_min + np.arange(n) * step
    x, z = np.meshgrid(axis, axis)
    y = np.full_like(x, float(y_level))

    values = DensityInterpreter(graph, seed).evaluate(root.id, x, y, z)
    lo, hi = _finite_range(values)
    return DensityGridResult(
        values=values.astype(np.float32), min_value=lo, max_value=hi, root_id=root.id,
    )


def evaluate_density_volume(
    graph: Graph,
    resolution: int,
    range_min: float,
    range_max: float,
    y_min: float,
    y_max: float,
    y_resolution: int,
    root_id: Optional[str] = None,
    policy: Optional[EvaluationPolicy] = None,
    seed: int = 0,
) -> DensityVolumeResult:
    """
    Evaluate a density graph over a voxel volume.

    Horizontal sampling and seeding match evaluate_density_grid;
    y_resolution levels are spaced evenly from y_min, stopping before y_max.

    Returns
    -------
    DensityVolumeResult
        float32 values of shape (y_resolution, resolution, resolution)
    """
    policy = policy or EvaluationPolicy()
    n = _clamp_resolution(resolution, policy)
    ny = _clamp_resolution(y_resolution, policy)

    y_levels = y_min + np.arange(ny) * ((y_max - y_min) / ny)

    root = find_density_root(graph, root_id)
    if root is None:
        return DensityVolumeResult(
            values=np.zeros((ny, n, n), dtype=np.float32), y_levels=y_levels,
        )

    step = (range_max - range_min) / n
    axis = range_min + np.arange(n) * step
    y, z, x = np.meshgrid(y_levels, axis, axis, indexing="ij")

    values = DensityInterpreter(graph, seed).evaluate(root.id, x, y, z)
    lo, hi = _finite_range(values)
    return DensityVolumeResult(
        values=values.astype(np.float32),
        y_levels=y_levels,
        min_value=lo,
        max_value=hi,
        root_id=root.id,
    )


__all__ = [
    "DENSITY_SECTION",
    "DENSITY_TYPES",
    "NOISE_TYPES",
    "UNSUPPORTED_TYPES",
    "smooth_min",
    "smooth_max",
    "DensityGridResult",
    "DensityVolumeResult",
    "DensityInterpreter",
    "find_density_root",
    "evaluate_density_grid",
    "evaluate_density_volume",
]
