"""Distance metrics between points of the signed unit square."""

import math
from enum import Enum
from typing import Optional

import numpy as np

from .continuous import UNFloat
from .normalisers import UFloatNormaliser
from .points import SNPoint
from .traits import EnumMutagen


class DistanceFunction(EnumMutagen, Enum):
    EUCLIDEAN = "euclidean"   # half-scaled
    MANHATTAN = "manhattan"   # half-scaled
    CHEBYSHEV = "chebyshev"
    MINIMUM = "minimum"

    def calculate(self, a: SNPoint, b: SNPoint) -> float:
        dx = abs(b.x.value - a.x.value)
        dy = abs(b.y.value - a.y.value)

        if self == DistanceFunction.EUCLIDEAN:
            return math.hypot(dx, dy) * 0.5
        elif self == DistanceFunction.MANHATTAN:
            return (dx + dy) * 0.5
        elif self == DistanceFunction.CHEBYSHEV:
            return max(dx, dy)
        else:
            return min(dx, dy)

    def calculate_normalised(
        self,
        a: SNPoint,
        b: SNPoint,
        normaliser: UFloatNormaliser,
        rng: Optional[np.random.Generator] = None,
    ) -> UNFloat:
        return normaliser.normalise(self.calculate(a, b), rng)
