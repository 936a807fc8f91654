"""
Coherent-noise primitives for the density interpreter.

Simplex noise comes from opensimplex, one generator per derived seed, kept
for the rest of the evaluation. Fractal sums (fBm and ridged fBm) and
cellular (Voronoi) noise are layered on top with numpy so that a whole
preview grid is sampled in one call.

SEEDS
-----
A node's Seed field may be a number or a string. Numbers are used as-is,
strings go through stable_node_hash, and either is mixed with the
evaluation seed so that re-seeding a preview changes every noise node.

SAMPLING
--------
Preview grids are lattices: every x column shares its x value, every z row
its z value. When the distinct coordinates along each axis span a table no
larger than LATTICE_FACTOR times the number of points, the table is filled
with opensimplex's array functions and indexed back. Warped coordinates are
sampled point by point.
"""

from typing import Any, Callable, Dict, Sequence
import itertools
import logging

import numpy as np
from opensimplex import OpenSimplex

from .context import stable_node_hash

logger = logging.getLogger(__name__)


SEED_MASK = 0x7FFFFFFF
SEED_MIX = 1013904223

LATTICE_FACTOR = 4

CELL_TYPES = ("Euclidean", "Distance2Div", "Distance2Sub")

_MASK64 = (1 << 64) - 1
_GOLDEN64 = 0x9E3779B97F4A7C15
_CELL_PRIMES = (374761393, 668265263, 1103515245)


def hash_seed(value: Any, base: int = 0) -> int:
    """
    Derive a generator seed from a Seed field and the evaluation seed.

    Parameters
    ----------
    value : int, float, str or None
        The node's Seed field; missing seeds count as 0
    base : int
        Evaluation-wide seed

    Returns
    -------
    int
        Non-negative 31-bit seed
    """
    if value is None or isinstance(value, bool):
        raw = 0
    elif isinstance(value, (int, float)):
        try:
            raw = int(value)
        except (ValueError, OverflowError):
            raw = stable_node_hash(str(value))
    else:
        raw = stable_node_hash(str(value))
    return (raw + int(base) * SEED_MIX) & SEED_MASK


def _sample(
    noise_array: Callable[..., np.ndarray],
    noise_point: Callable[..., float],
    coords: Sequence[np.ndarray],
) -> np.ndarray:
    shape = np.shape(coords[0])
    flat = [np.ravel(np.asarray(c, dtype=np.float64)) for c in coords]
    n = flat[0].size
    if n == 0:
        return np.zeros(shape)

    axes = [np.unique(c, return_inverse=True) for c in flat]
    cells = 1
    for unique, _ in axes:
        cells *= len(unique)

    if cells <= LATTICE_FACTOR * n:
        table = noise_array(*[unique for unique, _ in axes])
        # opensimplex tables are indexed last coordinate first
        values = table[tuple(np.ravel(inverse) for _, inverse in reversed(axes))]
    else:
        values = np.fromiter(
            (noise_point(*p) for p in zip(*flat)), dtype=np.float64, count=n
        )
    return np.reshape(values, shape)


class NoiseBank:
    """Simplex generators keyed by derived seed, created on first use."""

    def __init__(self):
        self._generators: Dict[int, OpenSimplex] = {}

    def generator(self, seed: int) -> OpenSimplex:
        gen = self._generators.get(seed)
        if gen is None:
            logger.debug(f"Creating simplex generator for seed {seed}")
            gen = OpenSimplex(seed=seed)
            self._generators[seed] = gen
        return gen

    def simplex2(self, seed: int, x: np.ndarray, z: np.ndarray) -> np.ndarray:
        """2D simplex noise over the horizontal plane, roughly in [-1, 1]."""
        gen = self.generator(seed)
        return _sample(gen.noise2array, gen.noise2, (x, z))

    def simplex3(self, seed: int, x: np.ndarray, y: np.ndarray, z: np.ndarray) -> np.ndarray:
        gen = self.generator(seed)
        return _sample(gen.noise3array, gen.noise3, (x, y, z))


def fbm(
    noise: Callable[..., np.ndarray],
    coords: Sequence[np.ndarray],
    frequency: float,
    octaves: int,
    lacunarity: float = 2.0,
    gain: float = 0.5,
) -> np.ndarray:
    """
    Fractal Brownian motion: octaves of `noise` summed with falling weight.

    Octave i samples at frequency * lacunarity**i with weight gain**i. The
    sum is not normalized.
    """
    total = np.zeros(np.shape(coords[0]))
    amplitude = 1.0
    f = frequency
    for _ in range(max(1, int(octaves))):
        total = total + noise(*[c * f for c in coords]) * amplitude
        f *= lacunarity
        amplitude *= gain
    return total


def ridged_fbm(
    noise: Callable[..., np.ndarray],
    coords: Sequence[np.ndarray],
    frequency: float,
    octaves: int,
) -> np.ndarray:
    """Ridged fBm: squared inverted |noise| per octave, rescaled to about [-1, 1]."""
    total = np.zeros(np.shape(coords[0]))
    amplitude = 1.0
    f = frequency
    for _ in range(max(1, int(octaves))):
        n = 1.0 - np.abs(noise(*[c * f for c in coords]))
        total = total + n * n * amplitude
        f *= 2.0
        amplitude *= 0.5
    return total * 2.0 - 1.0


def _cell_unit(cells: Sequence[np.ndarray], seed: int, salt: int) -> np.ndarray:
    """Hash integer cell coordinates to floats in [0, 1)."""
    base = (int(seed) + (salt + 1) * _GOLDEN64) & _MASK64
    h = np.full(np.shape(cells[0]), base, dtype=np.uint64)
    for cell, prime in zip(cells, _CELL_PRIMES):
        h = h ^ (cell.astype(np.int64).astype(np.uint64) * np.uint64(prime))
    # splitmix64 finalizer
    h = (h ^ (h >> np.uint64(30))) * np.uint64(0xBF58476D1CE4E5B9)
    h = (h ^ (h >> np.uint64(27))) * np.uint64(0x94D049BB133111EB)
    h = h ^ (h >> np.uint64(31))
    return (h >> np.uint64(11)).astype(np.float64) / float(1 << 53)


def voronoi(
    coords: Sequence[np.ndarray],
    seed: int,
    cell_type: str = "Euclidean",
    jitter: float = 1.0,
) -> np.ndarray:
    """
    Cellular noise in 2 or 3 dimensions.

    Every unit cell holds one feature point, offset from the cell corner by
    jitter times a hash of the cell. The two nearest feature points among
    the 3**d neighbouring cells give d1 <= d2.

    Parameters
    ----------
    coords : sequence of ndarray
        Two or three coordinate arrays of the same shape
    seed : int
        Derived seed
    cell_type : str
        "Euclidean" (d1), "Distance2Div" (d1 / d2) or "Distance2Sub"
        (d2 - d1); unknown values fall back to "Euclidean"
    jitter : float
        Feature point spread within its cell (0 gives a regular lattice)

    Returns
    -------
    ndarray
        The selected distance mapped by v * 2 - 1
    """
    coords = [np.asarray(c, dtype=np.float64) for c in coords]
    floors = [np.floor(c) for c in coords]
    d1 = np.full(coords[0].shape, np.inf)
    d2 = np.full(coords[0].shape, np.inf)

    for offset in itertools.product((-1, 0, 1), repeat=len(coords)):
        cells = [(f + o).astype(np.int64) for f, o in zip(floors, offset)]
        dist_sq = np.zeros(coords[0].shape)
        for axis, (c, cell) in enumerate(zip(coords, cells)):
            feature = cell + _cell_unit(cells, seed, axis) * jitter
            dist_sq = dist_sq + (c - feature) ** 2
        dist = np.sqrt(dist_sq)

        closer = dist < d1
        d2 = np.where(closer, d1, np.minimum(d2, dist))
        d1 = np.where(closer, dist, d1)

    if cell_type == "Distance2Div":
        ratio = np.divide(d1, d2, out=np.zeros_like(d1), where=d2 > 0)
        return np.where(d2 > 0, ratio * 2.0 - 1.0, 0.0)
    if cell_type == "Distance2Sub":
        return (d2 - d1) * 2.0 - 1.0
    return d1 * 2.0 - 1.0


__all__ = [
    "CELL_TYPES",
    "LATTICE_FACTOR",
    "hash_seed",
    "NoiseBank",
    "fbm",
    "ridged_fbm",
    "voronoi",
]
