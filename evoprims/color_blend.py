"""Channel-wise blend modes for FloatColor."""

from enum import Enum
from typing import Optional

import numpy as np

from .colors import FloatColor
from .continuous import UNFloat
from .errors import InvariantError
from .traits import EnumMutagen
from .util import coin_flip


def _overlay(a: float, b: float) -> float:
    if a < 0.5:
        return 2.0 * a * b
    return 1.0 - 2.0 * (1.0 - a) * (1.0 - b)


def _screen(a: float, b: float) -> float:
    return 1.0 - (1.0 - a) * (1.0 - b)


class ColorBlendFunctions(EnumMutagen, Enum):
    DISSOLVE = "dissolve"
    OVERLAY = "overlay"
    SCREEN_DODGE = "screen_dodge"

    def blend(self, a: FloatColor, b: FloatColor, rng: Optional[np.random.Generator] = None) -> FloatColor:
        """Blend two colors; alpha is always the mean of both alphas."""
        alpha = a.a.average(b.a)

        if self == ColorBlendFunctions.DISSOLVE:
            if rng is None:
                raise InvariantError("ColorBlendFunctions.DISSOLVE needs a random generator")
            picked = a if coin_flip(rng) else b
            return FloatColor(picked.r, picked.g, picked.b, alpha)

        blend = _overlay if self == ColorBlendFunctions.OVERLAY else _screen
        return FloatColor(
            UNFloat.new_clamped(blend(a.r.value, b.r.value)),
            UNFloat.new_clamped(blend(a.g.value, b.g.value)),
            UNFloat.new_clamped(blend(a.b.value, b.b.value)),
            alpha,
        )
