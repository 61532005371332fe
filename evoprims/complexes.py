"""Complex numbers bounded to the unit square, and escape-time results."""

import math
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from .continuous import Angle, SNFloat, UNFloat
from .discrete import Byte
from .errors import DecodeError
from .normalisers import SFloatNormaliser
from .points import SNPoint, parse_pair
from .traits import Mutagen, ProtoArg
from .util import coin_flip, escape_time_system, lerp


@dataclass(frozen=True)
class SNComplex(Mutagen):
    """Complex number with real and imaginary parts each in [-1, 1]."""
    re: SNFloat = SNFloat.ZERO
    im: SNFloat = SNFloat.ZERO

    @classmethod
    def new(cls, value: complex) -> "SNComplex":
        return cls(SNFloat(value.real), SNFloat(value.imag))

    @classmethod
    def new_normalised(
        cls,
        value: complex,
        normaliser: SFloatNormaliser,
        rng: Optional[np.random.Generator] = None,
    ) -> "SNComplex":
        return cls(normaliser.normalise(value.real, rng), normaliser.normalise(value.imag, rng))

    @classmethod
    def from_snpoint(cls, value: SNPoint) -> "SNComplex":
        return cls(value.x, value.y)

    def to_snpoint(self) -> SNPoint:
        return SNPoint.from_complex(self)

    def into_inner(self) -> complex:
        return complex(self.re.value, self.im.value)

    def to_angle(self) -> Angle:
        return Angle(math.atan2(self.re.value, self.im.value))

    def normalised_add(
        self,
        other: "SNComplex",
        normaliser: SFloatNormaliser,
        rng: Optional[np.random.Generator] = None,
    ) -> "SNComplex":
        return SNComplex.new_normalised(self.into_inner() + other.into_inner(), normaliser, rng)

    def lerp(self, other: "SNComplex", scalar: UNFloat) -> "SNComplex":
        return SNComplex.new(lerp(self.into_inner(), other.into_inner(), scalar.value))

    @classmethod
    def random(cls, rng: np.random.Generator) -> "SNComplex":
        return cls(SNFloat.random(rng), SNFloat.random(rng))

    def __str__(self):
        return f"({self.re}, {self.im})"

    def to_json(self) -> str:
        return f"({self.re.value!r}, {self.im.value!r})"

    @classmethod
    def from_json(cls, data) -> "SNComplex":
        re_part, im_part = parse_pair(data, "SNComplex")
        return cls.new(complex(re_part, im_part))


SNComplex.ZERO = SNComplex()


@dataclass(frozen=True)
class IterativeResult(Mutagen):
    """Final value and stopping iteration of an escape-time iteration."""
    z_final: SNComplex = SNComplex.ZERO
    iter_final: Byte = Byte(0)

    @classmethod
    def from_escape_time(
        cls,
        c: SNComplex,
        max_iterations: int,
        iteration: Callable[[complex, int], complex],
        escape: Callable[[complex, int], bool],
        normaliser: SFloatNormaliser = SFloatNormaliser.TANH,
        rng: Optional[np.random.Generator] = None,
    ) -> "IterativeResult":
        """Run ``escape_time_system`` from c, folding the final z back into the unit square."""
        z, iterations = escape_time_system(c.into_inner(), max_iterations, iteration, escape)
        return cls(SNComplex.new_normalised(z, normaliser, rng), Byte(min(iterations, 255)))

    @classmethod
    def _generate(cls, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "IterativeResult":
        return cls(SNComplex.generate(rng, arg), Byte.generate(rng, arg))

    def _mutate(self, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "IterativeResult":
        if coin_flip(rng):
            return IterativeResult(self.z_final.mutate(rng, arg), self.iter_final)
        return IterativeResult(self.z_final, self.iter_final.mutate(rng, arg))

    def to_json(self) -> dict:
        return {
            "z_final": self.z_final.to_json(),
            "iter_final": self.iter_final.to_json(),
        }

    @classmethod
    def from_json(cls, data) -> "IterativeResult":
        try:
            return cls(SNComplex.from_json(data["z_final"]), Byte.from_json(data["iter_final"]))
        except (KeyError, TypeError):
            raise DecodeError(f"Invalid IterativeResult: {data!r}") from None
