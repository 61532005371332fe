"""Point sets and the descriptors that generate them.

A ``PointSet`` is an immutable tuple of 1-256 points plus the
``PointSetGenerator`` that produced it. Only the generator is serialized; loading
regenerates the points, so stochastic generators do not round-trip exactly.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .continuous import TAU, Angle, SNFloat, UNFloat
from .discrete import Boolean, Byte, Nibble
from .errors import DecodeError, InvariantError
from .normalisers import SFloatNormaliser
from .points import SNPoint
from .traits import Mutagen, ProtoArg
from .util import coin_flip

logger = logging.getLogger(__name__)

MAX_POINTS = 256

# Candidates tried around an active point before it is retired
POISSON_ATTEMPTS = 30


class PointSetKind(Enum):
    ORIGIN = "origin"
    MOORE = "moore"
    VON_NEUMANN = "von_neumann"
    UNIFORM_GRID = "uniform_grid"
    SPARSE_GRID = "sparse_grid"
    HEX_GRID = "hex_grid"
    TRI_GRID = "tri_grid"
    UNIFORM_DISTRIBUTION = "uniform_distribution"
    POISSON = "poisson"
    SPIRAL = "spiral"
    RANDOM_RINGS = "random_rings"
    LINEAR_INCREASING_RINGS = "linear_increasing_rings"
    FIBONACCI_RINGS = "fibonacci_rings"
    SQUARED_RINGS = "squared_rings"


_GRID_PARAMS = {"x_count": Nibble, "y_count": Nibble}

PARAM_TYPES: Dict[PointSetKind, Dict[str, type]] = {
    PointSetKind.ORIGIN: {},
    PointSetKind.MOORE: {},
    PointSetKind.VON_NEUMANN: {},
    PointSetKind.UNIFORM_GRID: _GRID_PARAMS,
    PointSetKind.SPARSE_GRID: {**_GRID_PARAMS, "x_mod": Boolean, "y_mod": Boolean},
    PointSetKind.HEX_GRID: _GRID_PARAMS,
    PointSetKind.TRI_GRID: _GRID_PARAMS,
    PointSetKind.UNIFORM_DISTRIBUTION: {"count": Byte},
    PointSetKind.POISSON: {"count": Byte, "radius": UNFloat},
    PointSetKind.SPIRAL: {
        "count": Byte,
        "scalar": UNFloat,
        "maximum": Angle,
        "linear": Boolean,
        # doubled before use, so the exponent spans square roots through squares
        "nonlinearity_factor_halved": UNFloat,
    },
    PointSetKind.RANDOM_RINGS: {"max_rings": Nibble},
    PointSetKind.LINEAR_INCREASING_RINGS: {"max_count": Byte, "ring_size_delta": Nibble},
    PointSetKind.FIBONACCI_RINGS: {"max_count": Byte},
    PointSetKind.SQUARED_RINGS: {"max_count": Byte},
}


@dataclass(frozen=True)
class PointSetGenerator(Mutagen):
    """Tagged descriptor of a point layout: a kind plus its typed parameters.

    ``params`` is stored as a read-only mapping, so descriptors are hashable.
    """
    kind: PointSetKind = PointSetKind.ORIGIN
    params: Mapping[str, Mutagen] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))
        schema = PARAM_TYPES[self.kind]
        if set(self.params) != set(schema):
            raise InvariantError(
                f"Invalid parameters for {self.kind.name}: expected {sorted(schema)}, got {sorted(self.params)}"
            )
        for name, ptype in schema.items():
            if not isinstance(self.params[name], ptype):
                raise InvariantError(f"Parameter {name} of {self.kind.name} must be {ptype.__name__}")

    def __eq__(self, other):
        if not isinstance(other, PointSetGenerator):
            return NotImplemented
        return self.kind == other.kind and dict(self.params) == dict(other.params)

    def __hash__(self):
        return hash((self.kind, tuple(sorted(self.params.items()))))

    @classmethod
    def new(cls, kind: PointSetKind, **params) -> "PointSetGenerator":
        """Build a descriptor, wrapping raw numbers in the parameter types."""
        schema = PARAM_TYPES[kind]
        wrapped = {}
        for name, value in params.items():
            ptype = schema.get(name)
            if ptype is None:
                raise InvariantError(f"Unknown parameter {name} for {kind.name}")
            wrapped[name] = value if isinstance(value, ptype) else ptype(value)
        return cls(kind, wrapped)

    def param(self, name: str):
        return self.params[name].into_inner()

    @classmethod
    def random(cls, rng: np.random.Generator) -> "PointSetGenerator":
        return cls._generate(rng, None)

    @classmethod
    def _generate(cls, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "PointSetGenerator":
        # Origin is only ever a default
        kinds = [kind for kind in PointSetKind if kind != PointSetKind.ORIGIN]
        kind = kinds[int(rng.integers(0, len(kinds)))]
        params = {name: ptype.generate(rng, arg) for name, ptype in PARAM_TYPES[kind].items()}
        return cls(kind, params)

    def _mutate(self, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "PointSetGenerator":
        if not self.params or coin_flip(rng):
            return PointSetGenerator._generate(rng, arg)

        names = sorted(self.params)
        name = names[int(rng.integers(0, len(names)))]
        params = dict(self.params)
        params[name] = params[name].mutate(rng, arg)
        return PointSetGenerator(self.kind, params)

    def generate_point_set(self, rng: np.random.Generator) -> "PointSet":
        kind = self.kind

        if kind == PointSetKind.ORIGIN:
            points = origin()
        elif kind == PointSetKind.MOORE:
            points = moore()
        elif kind == PointSetKind.VON_NEUMANN:
            points = von_neumann()
        elif kind == PointSetKind.UNIFORM_GRID:
            points = uniform_grid(self.param("x_count") + 1, self.param("y_count") + 1)
        elif kind == PointSetKind.SPARSE_GRID:
            points = sparse_grid(
                self.param("x_count") + 1,
                self.param("y_count") + 1,
                self.param("x_mod"),
                self.param("y_mod"),
            )
        elif kind == PointSetKind.TRI_GRID:
            points = tri_grid(self.param("x_count") + 1, self.param("y_count") + 1)
        elif kind == PointSetKind.HEX_GRID:
            points = hex_grid(self.param("x_count") + 1, self.param("y_count") + 1)
        elif kind == PointSetKind.UNIFORM_DISTRIBUTION:
            points = uniform(rng, max(self.param("count"), 2))
        elif kind == PointSetKind.POISSON:
            count = self.param("count")
            radius = max(2.0 * self.param("radius") / max(math.sqrt(count), 2.0), 0.01)
            normaliser = SFloatNormaliser.random(rng)
            points = poisson(rng, max(count, 4), radius, normaliser)
        elif kind == PointSetKind.SPIRAL:
            points = spiral(
                max(self.param("count"), 1),
                self.param("scalar"),
                self.param("maximum"),
                self.param("linear"),
                self.param("nonlinearity_factor_halved") * 2.0,
            )
        elif kind == PointSetKind.RANDOM_RINGS:
            ring_sizes = [Nibble.random(rng).value + 1 for _ in range(self.param("max_rings") + 1)]
            points = rings(ring_sizes)
        elif kind == PointSetKind.LINEAR_INCREASING_RINGS:
            points = rings(linear_ring_sizes(self.param("max_count"), self.param("ring_size_delta")))
        elif kind == PointSetKind.FIBONACCI_RINGS:
            points = rings(fibonacci_ring_sizes(self.param("max_count")))
        else:
            points = rings(squared_ring_sizes(self.param("max_count")))

        if not points:
            raise InvariantError(f"Point set generation produced no points, generator is {self}")

        return PointSet(points, self)

    def load(self) -> "PointSet":
        """Regenerate the points from a fresh, unseeded generator."""
        return self.generate_point_set(np.random.default_rng())

    def to_json(self) -> dict:
        data = {"kind": self.kind.name}
        data.update({name: value.to_json() for name, value in self.params.items()})
        return data

    @classmethod
    def from_json(cls, data) -> "PointSetGenerator":
        if not isinstance(data, dict) or "kind" not in data:
            raise DecodeError(f"Invalid point set generator: {data!r}")
        try:
            kind = PointSetKind[data["kind"]]
        except (KeyError, TypeError):
            raise DecodeError(f"Unknown point set generator kind: {data['kind']!r}") from None

        schema = PARAM_TYPES[kind]
        extra = set(data) - set(schema) - {"kind"}
        if extra:
            raise DecodeError(f"Unexpected parameters for {kind.name}: {sorted(extra)}")
        missing = set(schema) - set(data)
        if missing:
            raise DecodeError(f"Missing parameters for {kind.name}: {sorted(missing)}")

        return cls(kind, {name: ptype.from_json(data[name]) for name, ptype in schema.items()})


@dataclass(frozen=True)
class PointSet(Mutagen):
    points: Tuple[SNPoint, ...]
    generator: PointSetGenerator = field(default_factory=PointSetGenerator)

    def __post_init__(self):
        object.__setattr__(self, "points", tuple(self.points))
        if not 0 < len(self.points) <= MAX_POINTS:
            raise InvariantError(f"Point set must hold 1 to {MAX_POINTS} points, got {len(self.points)}")

    @classmethod
    def default(cls) -> "PointSet":
        return cls(origin(), PointSetGenerator())

    def __len__(self):
        return len(self.points)

    def __iter__(self):
        return iter(self.points)

    def __getitem__(self, index) -> SNPoint:
        if isinstance(index, Byte):
            index = index.value
        return self.points[index]

    def get_offsets(self, width: int, height: int) -> List[SNPoint]:
        """Points scaled so that the unit square spans one pixel of a width x height grid."""
        scale = SNPoint.new(1.0 / width, 1.0 / height)
        return [p.scale_point(scale) for p in self.points]

    def replace(self, points: Sequence[SNPoint]) -> "PointSet":
        return PointSet(points, self.generator)

    def get_closest_point(self, other: SNPoint) -> SNPoint:
        """Nearest point other than an exact match; other itself if there is none."""
        candidates = [p for p in self.points if p != other]
        if not candidates:
            return other
        return min(candidates, key=lambda p: _distance(p, other))

    def get_furthest_point(self, other: SNPoint) -> SNPoint:
        candidates = [p for p in self.points if p != other]
        if not candidates:
            return other
        return max(candidates, key=lambda p: _distance(p, other))

    def get_n_closest_points(self, other: SNPoint, n: int) -> List[SNPoint]:
        """The n points nearest to other, an exact match (distance 0) first."""
        def key(p):
            d = _distance(p, other)
            return d != 0.0, d

        return sorted(self.points, key=key)[:n]

    def get_random_point(self, rng: np.random.Generator) -> SNPoint:
        return self.points[int(rng.integers(0, len(self.points)))]

    @classmethod
    def random(cls, rng: np.random.Generator) -> "PointSet":
        return PointSetGenerator.random(rng).generate_point_set(rng)

    @classmethod
    def _generate(cls, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "PointSet":
        return PointSetGenerator.generate(rng, arg).generate_point_set(rng)

    def _mutate(self, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "PointSet":
        return self.generator.mutate(rng, arg).generate_point_set(rng)

    def to_json(self) -> dict:
        return self.generator.to_json()

    @classmethod
    def from_json(cls, data) -> "PointSet":
        return PointSetGenerator.from_json(data).load()


def _distance(a: SNPoint, b: SNPoint) -> float:
    return math.hypot(a.x.value - b.x.value, a.y.value - b.y.value)


def _cell_center(index: int, ratio: float, offset: float = 0.5) -> float:
    return 2.0 * (ratio * index + ratio * offset) - 1.0


def origin() -> List[SNPoint]:
    return [SNPoint.zero()]


def moore() -> List[SNPoint]:
    return [
        SNPoint(SNFloat.NEG_ONE, SNFloat.NEG_ONE),
        SNPoint(SNFloat.NEG_ONE, SNFloat.ZERO),
        SNPoint(SNFloat.NEG_ONE, SNFloat.ONE),
        SNPoint(SNFloat.ZERO, SNFloat.NEG_ONE),
        SNPoint(SNFloat.ZERO, SNFloat.ONE),
        SNPoint(SNFloat.ONE, SNFloat.NEG_ONE),
        SNPoint(SNFloat.ONE, SNFloat.ZERO),
        SNPoint(SNFloat.ONE, SNFloat.ONE),
    ]


def von_neumann() -> List[SNPoint]:
    return [
        SNPoint(SNFloat.ONE, SNFloat.ZERO),
        SNPoint(SNFloat.NEG_ONE, SNFloat.ZERO),
        SNPoint(SNFloat.ZERO, SNFloat.ONE),
        SNPoint(SNFloat.ZERO, SNFloat.NEG_ONE),
    ]


def uniform_grid(x_count: int, y_count: int) -> List[SNPoint]:
    x_ratio = 1.0 / x_count
    y_ratio = 1.0 / y_count
    return [
        SNPoint.new(_cell_center(x, x_ratio), _cell_center(y, y_ratio))
        for x in range(x_count)
        for y in range(y_count)
    ]


def sparse_grid(x_count: int, y_count: int, x_mod: bool, y_mod: bool) -> List[SNPoint]:
    """Odd-sized grid with every cell whose parities match (x_mod, y_mod) left out."""
    if x_count % 2 == 0:
        x_count += 1
    if y_count % 2 == 0:
        y_count += 1

    x_mod = int(x_mod)
    y_mod = int(y_mod)
    x_ratio = 1.0 / x_count
    y_ratio = 1.0 / y_count
    points = [
        SNPoint.new(_cell_center(x, x_ratio), _cell_center(y, y_ratio))
        for x in range(x_count)
        for y in range(y_count)
        if not (x % 2 == x_mod and y % 2 == y_mod)
    ]
    # A 1x1 grid can exclude its only cell; keep that cell (the origin)
    return points or origin()


def _staggered_x(x: int, y: int, x_ratio: float) -> float:
    return _cell_center(x, x_ratio, 0.25 if y % 2 == 0 else 0.75)


def tri_grid(x_count: int, y_count: int) -> List[SNPoint]:
    x_ratio = 1.0 / x_count
    y_ratio = 1.0 / y_count
    return [
        SNPoint.new(_staggered_x(x, y, x_ratio), _cell_center(y, y_ratio))
        for x in range(x_count)
        for y in range(y_count)
    ]


def hex_grid(x_count: int, y_count: int) -> List[SNPoint]:
    """Staggered grid with every third column thinned so the cells read as hexagons.

    Counts are padded (x to 2 mod 3, y to even) so the pattern closes at the edges.
    """
    if x_count % 3 == 0:
        x_count += 2
    elif x_count % 3 == 1:
        x_count += 1
    if y_count % 2 == 1:
        y_count += 1

    x_ratio = 1.0 / x_count
    y_ratio = 1.0 / y_count
    return [
        SNPoint.new(_staggered_x(x, y, x_ratio), _cell_center(y, y_ratio))
        for x in range(x_count)
        for y in range(y_count)
        if y % 2 != x % 3
    ]


def uniform(rng: np.random.Generator, count: int) -> List[SNPoint]:
    return [SNPoint.random(rng) for _ in range(count)]


def spiral(count: int, scalar: float, maximum: float, linear: bool, nonlinearity_factor: float) -> List[SNPoint]:
    points = []
    for i in range(count):
        rho = i / count
        theta = count * maximum * scalar * (rho if linear else rho ** nonlinearity_factor)
        points.append(SNPoint.new(rho * math.sin(theta), rho * math.cos(theta)))
    return points


def rings(ring_sizes: Sequence[int]) -> List[SNPoint]:
    """Ring k of K at radius k / K, its n points evenly spaced starting from -pi."""
    ring_count = len(ring_sizes)
    points = []
    for index, point_count in enumerate(ring_sizes):
        rho = index / ring_count
        for i in range(point_count):
            theta = i * (TAU / point_count) - math.pi
            points.append(SNPoint.new(rho * math.sin(theta), rho * math.cos(theta)))
    return points


def _bounded_ring_sizes(sizes, max_count: int) -> List[int]:
    budget = max(max_count, 1)
    sequence = []
    total = 0
    for size in sizes:
        total += size
        if total > budget and sequence:
            break
        sequence.append(size)
    return sequence


def linear_ring_sizes(max_count: int, ring_size_delta: int) -> List[int]:
    """1, 1 + d, 1 + 2d, ... while the running total stays within max_count."""
    def sizes():
        size = 1
        while True:
            yield size
            size += ring_size_delta

    return _bounded_ring_sizes(sizes(), max_count)


def fibonacci_ring_sizes(max_count: int) -> List[int]:
    def sizes():
        a, b = 1, 1
        while True:
            yield a
            a, b = b, a + b

    return _bounded_ring_sizes(sizes(), max_count)


def squared_ring_sizes(max_count: int) -> List[int]:
    def sizes():
        size = 1
        while True:
            yield size
            size *= 2

    return _bounded_ring_sizes(sizes(), max_count)


def poisson(
    rng: np.random.Generator,
    count: int,
    radius: float,
    normaliser: SFloatNormaliser,
) -> List[SNPoint]:
    """Poisson-disk sample of at most count points, pairwise further apart than radius.

    Candidates that land outside the square are folded back in by the normaliser.
    May return fewer than count points once no active point can spawn a neighbour.
    """
    if radius <= 0.0:
        raise InvariantError(f"Poisson radius must be positive, got {radius}")
    if count <= 0:
        raise InvariantError(f"Poisson count must be positive, got {count}")

    cell_size = radius / math.sqrt(2.0)
    grid_size = math.ceil(1.0 / cell_size) * 2

    def to_grid(p: SNPoint) -> Tuple[int, int]:
        return (
            min(int(math.floor((p.x.value + 1.0) / cell_size)), grid_size - 1),
            min(int(math.floor((p.y.value + 1.0) / cell_size)), grid_size - 1),
        )

    grid = np.full((grid_size, grid_size), -1, dtype=np.int32)
    points = [SNPoint.random(rng)]
    active = [0]
    grid[to_grid(points[0])] = 0

    def accepts(candidate: SNPoint) -> bool:
        gx, gy = to_grid(candidate)
        for tx in range(max(gx - 2, 0), min(gx + 3, grid_size)):
            for ty in range(max(gy - 2, 0), min(gy + 3, grid_size)):
                i = grid[tx, ty]
                if i >= 0 and _distance(points[i], candidate) <= radius:
                    return False
        return True

    while len(points) < count and active:
        active_index = int(rng.integers(0, len(active)))
        p = points[active[active_index]]

        new_point = None
        for _ in range(POISSON_ATTEMPTS):
            theta = rng.uniform(0.0, TAU)
            r = rng.uniform(radius, radius * 2.0)
            candidate = SNPoint.new_normalised(
                p.x.value + math.cos(theta) * r,
                p.y.value + math.sin(theta) * r,
                normaliser,
                rng,
            )
            if accepts(candidate):
                new_point = candidate
                break

        if new_point is None:
            active.pop(active_index)
        else:
            grid[to_grid(new_point)] = len(points)
            active.append(len(points))
            points.append(new_point)

    if len(points) < count:
        logger.debug(f"Poisson sampling placed {len(points)} of {count} points (radius {radius:.4f})")

    return points
