"""Range-constrained floating point types.

``UNFloat`` lives in [0, 1], ``SNFloat`` in [-1, 1] and ``Angle`` in (-pi, pi].
The plain constructors of the two norm floats assert their range; the
``new_*`` class methods repair arbitrary floats with a named policy instead,
reading NaN, infinities and subnormals as 0.0.
"""

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import numpy as np

from .errors import DecodeError, InvariantError
from .traits import Mutagen
from .util import fract, lerp, map_range, non_normal_to_default, signum

if TYPE_CHECKING:
    from .discrete import Nibble
    from .normalisers import SFloatNormaliser

TAU = 2.0 * math.pi


def _decode_float(name: str, data, low: float, high: float) -> float:
    if isinstance(data, bool) or not isinstance(data, (int, float)):
        raise DecodeError(f"Invalid {name}: expected a number, got {data!r}")
    value = float(data)
    if not low <= value <= high:
        raise DecodeError(f"{name} out of range: {value}")
    return value


@dataclass(frozen=True)
class UNFloat(Mutagen):
    """Unsigned normalised float in [0, 1]."""
    value: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "value", float(self.value))
        if not 0.0 <= self.value <= 1.0:
            raise InvariantError(f"Invalid UNFloat value: {self.value}")

    def into_inner(self) -> float:
        return self.value

    def __float__(self):
        return self.value

    @classmethod
    def new_clamped(cls, value: float) -> "UNFloat":
        value = non_normal_to_default(value)
        return cls(min(max(value, 0.0), 1.0))

    @classmethod
    def new_random_clamped(cls, value: float, rng: np.random.Generator) -> "UNFloat":
        """Keep in-range values, resample anything outside."""
        value = non_normal_to_default(value)
        if value < 0.0 or value > 1.0:
            return cls.random(rng)
        return cls(value)

    @classmethod
    def new_from_range(cls, value: float, low: float, high: float) -> "UNFloat":
        return cls(map_range(value, (low, high), (0.0, 1.0)))

    @classmethod
    def new_sawtooth(cls, value: float) -> "UNFloat":
        value = non_normal_to_default(value)
        if 0.0 <= value <= 1.0:
            return cls(value)
        return cls(fract(value) - min(signum(value), 0.0))

    @classmethod
    def new_triangle(cls, value: float) -> "UNFloat":
        value = non_normal_to_default(value)
        scaled = (value - 1.0) / 2.0
        return cls(abs(fract(scaled) - min(signum(scaled), 0.0) - 0.5) * 2.0)

    @classmethod
    def new_sin(cls, value: float) -> "UNFloat":
        value = non_normal_to_default(value)
        return cls(math.sin((value - 0.5) * math.pi) / 2.0 + 0.5)

    @classmethod
    def new_sin_repeating(cls, value: float) -> "UNFloat":
        value = non_normal_to_default(value)
        return cls(math.sin((value + 0.5) * math.pi * 2.0) / 2.0 + 0.5)

    def average(self, other: "UNFloat") -> "UNFloat":
        return UNFloat((self.value + other.value) * 0.5)

    def sawtooth_add(self, other: "UNFloat") -> "UNFloat":
        return self.sawtooth_add_float(other.value)

    def sawtooth_add_float(self, other: float) -> "UNFloat":
        return UNFloat.new_sawtooth(self.value + other)

    def triangle_add(self, other: "UNFloat") -> "UNFloat":
        return self.triangle_add_float(other.value)

    def triangle_add_float(self, other: float) -> "UNFloat":
        return UNFloat.new_triangle(self.value + other)

    def to_angle(self) -> "Angle":
        return Angle.new_from_range(self.value, 0.0, 1.0)

    def to_signed(self) -> "SNFloat":
        return SNFloat.new_from_range(self.value, 0.0, 1.0)

    def subdivide_sawtooth(self, divisor: "Nibble") -> "UNFloat":
        return UNFloat.new_sawtooth(self.value * divisor.value)

    def subdivide_triangle(self, divisor: "Nibble") -> "UNFloat":
        return UNFloat.new_triangle(self.value * divisor.value)

    def multiply(self, other: "UNFloat") -> "UNFloat":
        return UNFloat(self.value * other.value)

    def lerp(self, other: "UNFloat", scalar: "UNFloat") -> "UNFloat":
        return UNFloat(lerp(self.value, other.value, scalar.value))

    @classmethod
    def random(cls, rng: np.random.Generator) -> "UNFloat":
        return cls(rng.random())

    def to_json(self) -> float:
        return self.value

    @classmethod
    def from_json(cls, data) -> "UNFloat":
        return cls(_decode_float("UNFloat", data, 0.0, 1.0))


UNFloat.ZERO = UNFloat(0.0)
UNFloat.ONE = UNFloat(1.0)


@dataclass(frozen=True)
class SNFloat(Mutagen):
    """Signed normalised float in [-1, 1]."""
    value: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "value", float(self.value))
        if not -1.0 <= self.value <= 1.0:
            raise InvariantError(f"Invalid SNFloat value: {self.value}")

    def into_inner(self) -> float:
        return self.value

    def __float__(self):
        return self.value

    def __str__(self):
        return f"{self.value:.4f}"

    @classmethod
    def new_clamped(cls, value: float) -> "SNFloat":
        value = non_normal_to_default(value)
        return cls(min(max(value, -1.0), 1.0))

    @classmethod
    def new_random_clamped(cls, value: float, rng: np.random.Generator) -> "SNFloat":
        value = non_normal_to_default(value)
        if value < -1.0 or value > 1.0:
            return cls.random(rng)
        return cls(value)

    @classmethod
    def new_from_range(cls, value: float, low: float, high: float) -> "SNFloat":
        return cls(map_range(value, (low, high), (-1.0, 1.0)))

    @classmethod
    def new_sawtooth(cls, value: float) -> "SNFloat":
        value = non_normal_to_default(value)
        if -1.0 <= value <= 1.0:
            return cls(value)
        scaled = (value + 1.0) / 2.0
        return cls((fract(scaled) - min(signum(scaled), 0.0)) * 2.0 - 1.0)

    @classmethod
    def new_triangle(cls, value: float) -> "SNFloat":
        value = non_normal_to_default(value)
        scaled = (value - 1.0) / 4.0
        return cls(abs(fract(scaled) - min(signum(scaled), 0.0) - 0.5) * 4.0 - 1.0)

    @classmethod
    def new_sin(cls, value: float) -> "SNFloat":
        value = non_normal_to_default(value)
        return cls(math.sin(value / TAU))

    @classmethod
    def new_sin_repeating(cls, value: float) -> "SNFloat":
        value = non_normal_to_default(value)
        return cls(math.sin(value * math.pi))

    @classmethod
    def new_fractional(cls, value: float) -> "SNFloat":
        value = non_normal_to_default(value)
        return cls(fract(value))

    @classmethod
    def new_tanh(cls, value: float) -> "SNFloat":
        value = non_normal_to_default(value)
        return cls(math.tanh(value))

    def abs(self) -> "SNFloat":
        return SNFloat(abs(self.value))

    def force_sign(self, sign: bool) -> "SNFloat":
        return SNFloat(abs(self.value) * (1.0 if sign else -1.0))

    def invert(self) -> "SNFloat":
        return SNFloat(-self.value)

    def average(self, other: "SNFloat") -> "SNFloat":
        return SNFloat((self.value + other.value) * 0.5)

    def to_angle(self) -> "Angle":
        return Angle.new_from_range(self.value, -1.0, 1.0)

    def to_unsigned(self) -> UNFloat:
        return UNFloat.new_from_range(self.value, -1.0, 1.0)

    def normalised_add(
        self,
        other: "SNFloat",
        normaliser: "SFloatNormaliser",
        rng: Optional[np.random.Generator] = None,
    ) -> "SNFloat":
        return normaliser.normalise(self.value + other.value, rng)

    def normalised_sub(
        self,
        other: "SNFloat",
        normaliser: "SFloatNormaliser",
        rng: Optional[np.random.Generator] = None,
    ) -> "SNFloat":
        return normaliser.normalise(self.value - other.value, rng)

    def subdivide(self, divisor: "Nibble") -> "SNFloat":
        total = self.value * divisor.value
        return SNFloat((abs(total) - math.floor(abs(total))) * signum(total))

    def multiply(self, other: "SNFloat") -> "SNFloat":
        return SNFloat(self.value * other.value)

    def multiply_unfloat(self, other: UNFloat) -> "SNFloat":
        return SNFloat(self.value * other.value)

    def lerp(self, other: "SNFloat", scalar: UNFloat) -> "SNFloat":
        return SNFloat(lerp(self.value, other.value, scalar.value))

    @classmethod
    def random(cls, rng: np.random.Generator) -> "SNFloat":
        return cls(rng.uniform(-1.0, 1.0))

    def to_json(self) -> float:
        return self.value

    @classmethod
    def from_json(cls, data) -> "SNFloat":
        return cls(_decode_float("SNFloat", data, -1.0, 1.0))


SNFloat.ZERO = SNFloat(0.0)
SNFloat.ONE = SNFloat(1.0)
SNFloat.NEG_ONE = SNFloat(-1.0)


def wrap_angle(value: float) -> float:
    """Reduce value to the congruent angle in (-pi, pi]."""
    if not math.isfinite(value):
        raise InvariantError(f"Failed to normalize angle: {value}")

    reduced = math.fmod(value, TAU)
    if reduced <= -math.pi:
        reduced += TAU
    elif reduced > math.pi:
        reduced -= TAU
    return reduced


@dataclass(frozen=True)
class Angle(Mutagen):
    """Angle in radians, always stored reduced into (-pi, pi]."""
    value: float = 0.0

    def __post_init__(self):
        normalised = wrap_angle(float(self.value))
        if not -math.pi < normalised <= math.pi:
            raise InvariantError(f"Failed to normalize angle: {self.value} -> {normalised}")
        object.__setattr__(self, "value", normalised)

    def into_inner(self) -> float:
        return self.value

    def __float__(self):
        return self.value

    def __add__(self, other: "Angle") -> "Angle":
        return Angle(self.value + other.value)

    def __sub__(self, other: "Angle") -> "Angle":
        return Angle(self.value - other.value)

    def add(self, other: "Angle") -> "Angle":
        return self + other

    def average(self, other: "Angle") -> "Angle":
        return Angle((self.value + other.value) * 0.5)

    @classmethod
    def new_from_range(cls, value: float, low: float, high: float) -> "Angle":
        return cls(map_range(value, (low, high), (-math.pi, math.pi)))

    def to_signed(self) -> SNFloat:
        return SNFloat.new_from_range(self.value, -math.pi, math.pi)

    def to_unsigned(self) -> UNFloat:
        return UNFloat.new_from_range(self.value, -math.pi, math.pi)

    def lerp(self, other: "Angle", scalar: UNFloat) -> "Angle":
        """Interpolate along the shorter arc between the two angles."""
        a = self.value
        b = other.value
        diff = b - a

        if diff > math.pi:
            return Angle(lerp(a + TAU, b, scalar.value))
        if diff < -math.pi:
            return Angle(lerp(a, b + TAU, scalar.value))
        return Angle(lerp(a, b, scalar.value))

    @classmethod
    def random(cls, rng: np.random.Generator) -> "Angle":
        return cls(rng.uniform(-math.pi, math.pi))

    def to_json(self) -> float:
        return self.value

    @classmethod
    def from_json(cls, data) -> "Angle":
        return cls(_decode_float("Angle", data, -math.pi, math.pi))


Angle.ZERO = Angle(0.0)
