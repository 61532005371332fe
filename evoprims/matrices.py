"""Homogeneous 3x3 matrices for 2D affine transforms of SNPoints."""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .continuous import Angle, SNFloat
from .errors import DecodeError, InvariantError
from .normalisers import SFloatNormaliser
from .points import SNPoint
from .traits import Mutagen, ProtoArg


def _frozen(value) -> np.ndarray:
    matrix = np.array(value, dtype=np.float64)
    if matrix.shape != (3, 3):
        raise InvariantError(f"Invalid SNFloatMatrix3 shape: {matrix.shape}")
    matrix.setflags(write=False)
    return matrix


@dataclass(frozen=True, eq=False)
class SNFloatMatrix3(Mutagen):
    value: np.ndarray = field(default_factory=lambda: np.identity(3))

    def __post_init__(self):
        object.__setattr__(self, "value", _frozen(self.value))

    def __eq__(self, other):
        if not isinstance(other, SNFloatMatrix3):
            return NotImplemented
        return bool(np.array_equal(self.value, other.value))

    @classmethod
    def identity(cls) -> "SNFloatMatrix3":
        return cls(np.identity(3))

    @classmethod
    def new_translation(cls, x: SNFloat, y: SNFloat) -> "SNFloatMatrix3":
        matrix = np.identity(3)
        matrix[0, 2] = x.value
        matrix[1, 2] = y.value
        return cls(matrix)

    @classmethod
    def new_rotation(cls, theta: Angle) -> "SNFloatMatrix3":
        """Counter-clockwise rotation about the origin."""
        c = np.cos(theta.value)
        s = np.sin(theta.value)
        return cls([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])

    @classmethod
    def new_scaling(cls, x: SNFloat, y: SNFloat) -> "SNFloatMatrix3":
        return cls(np.diag([x.value, y.value, 1.0]))

    @classmethod
    def new_shear(cls, x: SNFloat, y: SNFloat) -> "SNFloatMatrix3":
        return cls([[1.0, x.value, 0.0], [y.value, 1.0, 0.0], [0.0, 0.0, 1.0]])

    def multiply(self, other: "SNFloatMatrix3") -> "SNFloatMatrix3":
        """``self @ other``: other is applied first."""
        return SNFloatMatrix3(self.value @ other.value)

    def into_inner(self) -> np.ndarray:
        return self.value

    def apply(
        self,
        point: SNPoint,
        normaliser: SFloatNormaliser = SFloatNormaliser.CLAMP,
        rng: Optional[np.random.Generator] = None,
    ) -> SNPoint:
        """Transform a point, folding coordinates that leave [-1, 1] back in with normaliser."""
        x, y, w = self.value @ np.array([point.x.value, point.y.value, 1.0])
        if w != 0.0:
            x, y = x / w, y / w
        return SNPoint.new_normalised(float(x), float(y), normaliser, rng)

    @classmethod
    def random(cls, rng: np.random.Generator) -> "SNFloatMatrix3":
        return cls._generate(rng, None)

    @classmethod
    def _generate(cls, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "SNFloatMatrix3":
        """A random one of the four elementary transforms."""
        choice = int(rng.integers(0, 4))
        if choice == 0:
            return cls.new_translation(SNFloat.generate(rng, arg), SNFloat.generate(rng, arg))
        if choice == 1:
            return cls.new_rotation(Angle.generate(rng, arg))
        if choice == 2:
            return cls.new_scaling(SNFloat.generate(rng, arg), SNFloat.generate(rng, arg))
        return cls.new_shear(SNFloat.generate(rng, arg), SNFloat.generate(rng, arg))

    def _mutate(self, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "SNFloatMatrix3":
        # Compose with a fresh elementary transform
        return SNFloatMatrix3._generate(rng, arg).multiply(self)

    def to_json(self) -> list:
        return self.value.tolist()

    @classmethod
    def from_json(cls, data) -> "SNFloatMatrix3":
        try:
            matrix = np.array(data, dtype=np.float64)
        except (TypeError, ValueError):
            raise DecodeError(f"Invalid SNFloatMatrix3: {data!r}") from None
        if matrix.shape != (3, 3) or not np.all(np.isfinite(matrix)):
            raise DecodeError(f"Invalid SNFloatMatrix3: {data!r}")
        return cls(matrix)
