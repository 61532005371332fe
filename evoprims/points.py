"""Points confined to the signed unit square."""

import math
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Tuple

import numpy as np

from .continuous import Angle, SNFloat, UNFloat
from .errors import DecodeError
from .traits import Mutagen

if TYPE_CHECKING:
    from .complexes import SNComplex
    from .normalisers import SFloatNormaliser

_NUMBER = r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?"
PAIR_RE = re.compile(r"\(\s*(" + _NUMBER + r")\s*,\s*(" + _NUMBER + r")\s*\)")

# Displacements shorter than this are scaled as if they were this long
MIN_NORMALISED_DISTANCE = 0.1


def parse_pair(text: str, name: str = "point") -> Tuple[float, float]:
    """Parse ``"(x, y)"`` text into two floats, both required to lie in [-1, 1]."""
    if not isinstance(text, str):
        raise DecodeError(f"Invalid {name}: expected a string, got {text!r}")

    match = PAIR_RE.fullmatch(text.strip())
    if match is None:
        raise DecodeError(f"Invalid {name}: {text!r}")

    x = float(match.group(1))
    y = float(match.group(2))
    if not (-1.0 <= x <= 1.0 and -1.0 <= y <= 1.0):
        raise DecodeError(f"{name} out of range: {text!r}")
    return x, y


@dataclass(frozen=True)
class SNPoint(Mutagen):
    x: SNFloat = SNFloat.ZERO
    y: SNFloat = SNFloat.ZERO

    @classmethod
    def new(cls, x: float, y: float) -> "SNPoint":
        """Build from raw floats, asserting both lie in [-1, 1]."""
        return cls(SNFloat(x), SNFloat(y))

    @classmethod
    def zero(cls) -> "SNPoint":
        return cls()

    @classmethod
    def new_normalised(
        cls,
        x: float,
        y: float,
        normaliser: "SFloatNormaliser",
        rng: Optional[np.random.Generator] = None,
    ) -> "SNPoint":
        return cls(normaliser.normalise(x, rng), normaliser.normalise(y, rng))

    @classmethod
    def from_range(cls, value: Tuple[float, float], low: Tuple[float, float], high: Tuple[float, float]) -> "SNPoint":
        return cls(
            SNFloat.new_from_range(value[0], low[0], high[0]),
            SNFloat.new_from_range(value[1], low[1], high[1]),
        )

    @classmethod
    def from_usize_range(cls, value: Tuple[int, int], low: Tuple[int, int], high: Tuple[int, int]) -> "SNPoint":
        return cls.from_range(
            (float(value[0]), float(value[1])),
            (float(low[0]), float(low[1])),
            (float(high[0]), float(high[1])),
        )

    @classmethod
    def from_polar_components(cls, theta: Angle, rho: UNFloat) -> "SNPoint":
        """Cartesian point at angle theta (0 points along +y) and radius rho."""
        return cls.new(-rho.value * math.sin(theta.value), rho.value * math.cos(theta.value))

    @classmethod
    def from_complex(cls, value: "SNComplex") -> "SNPoint":
        return cls(value.re, value.im)

    def into_inner(self) -> Tuple[float, float]:
        return self.x.value, self.y.value

    def abs(self) -> "SNPoint":
        return SNPoint(self.x.abs(), self.y.abs())

    def invert_x(self) -> "SNPoint":
        return SNPoint(self.x.invert(), self.y)

    def to_angle(self) -> Angle:
        return Angle(math.atan2(self.x.value, self.y.value))

    def average(self, other: "SNPoint") -> "SNPoint":
        return SNPoint(self.x.average(other.x), self.y.average(other.y))

    def normalised_add(
        self,
        other: "SNPoint",
        normaliser: "SFloatNormaliser",
        rng: Optional[np.random.Generator] = None,
    ) -> "SNPoint":
        return SNPoint(
            self.x.normalised_add(other.x, normaliser, rng),
            self.y.normalised_add(other.y, normaliser, rng),
        )

    def normalised_sub(
        self,
        other: "SNPoint",
        normaliser: "SFloatNormaliser",
        rng: Optional[np.random.Generator] = None,
    ) -> "SNPoint":
        return SNPoint(
            self.x.normalised_sub(other.x, normaliser, rng),
            self.y.normalised_sub(other.y, normaliser, rng),
        )

    def subtract_normalised(self, other: "SNPoint") -> "SNPoint":
        """Displacement from other to self divided by their distance, floored at 0.1."""
        dx = self.x.value - other.x.value
        dy = self.y.value - other.y.value
        scale = max(math.hypot(dx, dy), MIN_NORMALISED_DISTANCE)
        return SNPoint.new(dx / scale, dy / scale)

    def scale(self, other: SNFloat) -> "SNPoint":
        return SNPoint(self.x.multiply(other), self.y.multiply(other))

    def scale_unfloat(self, other: UNFloat) -> "SNPoint":
        return SNPoint(self.x.multiply_unfloat(other), self.y.multiply_unfloat(other))

    def scale_point(self, other: "SNPoint") -> "SNPoint":
        return SNPoint(self.x.multiply(other.x), self.y.multiply(other.y))

    def to_polar(self) -> "SNPoint":
        """Encode (theta, rho) as a point: x is the angle, y the radius (clamped to 1).

        Angle zero points along the vertical axis.
        """
        theta = Angle(math.atan2(-self.x.value, self.y.value))
        rho = UNFloat(min(math.hypot(self.x.value, self.y.value), 1.0))
        return SNPoint(theta.to_signed(), rho.to_signed())

    def from_polar(self) -> "SNPoint":
        """Inverse of ``to_polar``."""
        return SNPoint.from_polar_components(self.x.to_angle(), self.y.to_unsigned())

    @classmethod
    def random(cls, rng: np.random.Generator) -> "SNPoint":
        return cls(SNFloat.random(rng), SNFloat.random(rng))

    def __str__(self):
        return f"({self.x}, {self.y})"

    def to_json(self) -> str:
        return f"({self.x.value!r}, {self.y.value!r})"

    @classmethod
    def from_json(cls, data) -> "SNPoint":
        return cls.new(*parse_pair(data, "SNPoint"))
