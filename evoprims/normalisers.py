"""Policies that map an arbitrary float back into a normalised range."""

from enum import Enum
from typing import Optional

import numpy as np

from .continuous import SNFloat, UNFloat
from .errors import InvariantError
from .traits import EnumMutagen
from .util import non_normal_to_default


class SFloatNormaliser(EnumMutagen, Enum):
    SAWTOOTH = "sawtooth"
    TRIANGLE = "triangle"
    SIN = "sin"
    SIN_REPEATING = "sin_repeating"
    TANH = "tanh"
    CLAMP = "clamp"
    FRACTIONAL = "fractional"
    RANDOM = "random"   # resample when out of range

    def normalise(self, value: float, rng: Optional[np.random.Generator] = None) -> SNFloat:
        value = non_normal_to_default(value)

        if self == SFloatNormaliser.SAWTOOTH:
            return SNFloat.new_sawtooth(value)
        elif self == SFloatNormaliser.TRIANGLE:
            return SNFloat.new_triangle(value)
        elif self == SFloatNormaliser.SIN:
            return SNFloat.new_sin(value)
        elif self == SFloatNormaliser.SIN_REPEATING:
            return SNFloat.new_sin_repeating(value)
        elif self == SFloatNormaliser.TANH:
            return SNFloat.new_tanh(value)
        elif self == SFloatNormaliser.CLAMP:
            return SNFloat.new_clamped(value)
        elif self == SFloatNormaliser.FRACTIONAL:
            return SNFloat.new_fractional(value)
        else:
            if rng is None:
                raise InvariantError("SFloatNormaliser.RANDOM needs a random generator")
            return SNFloat.new_random_clamped(value, rng)


class UFloatNormaliser(EnumMutagen, Enum):
    SAWTOOTH = "sawtooth"
    TRIANGLE = "triangle"
    SIN = "sin"
    SIN_REPEATING = "sin_repeating"
    CLAMP = "clamp"
    RANDOM = "random"

    def normalise(self, value: float, rng: Optional[np.random.Generator] = None) -> UNFloat:
        value = non_normal_to_default(value)

        if self == UFloatNormaliser.SAWTOOTH:
            return UNFloat.new_sawtooth(value)
        elif self == UFloatNormaliser.TRIANGLE:
            return UNFloat.new_triangle(value)
        elif self == UFloatNormaliser.SIN:
            return UNFloat.new_sin(value)
        elif self == UFloatNormaliser.SIN_REPEATING:
            return UNFloat.new_sin_repeating(value)
        elif self == UFloatNormaliser.CLAMP:
            return UNFloat.new_clamped(value)
        else:
            if rng is None:
                raise InvariantError("UFloatNormaliser.RANDOM needs a random generator")
            return UNFloat.new_random_clamped(value, rng)
