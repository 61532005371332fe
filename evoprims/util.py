"""Small numeric helpers used throughout the package."""

import math
import sys
from typing import Callable, Optional, Tuple

import numpy as np

from .errors import InvariantError


def deterministic_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Create a generator; the same seed always replays the same generation."""
    return np.random.default_rng(seed)


def coin_flip(rng: np.random.Generator) -> bool:
    """Fair coin used to choose between full resample and point mutation."""
    return bool(rng.integers(0, 2))


def map_range(value: float, from_range: Tuple[float, float], to_range: Tuple[float, float]) -> float:
    """Linearly map value from one closed interval onto another."""
    from_min, from_max = from_range
    to_min, to_max = to_range

    if not from_min < from_max:
        raise InvariantError(f"Invalid range argument to map_range: from_min: {from_min}, from_max: {from_max}")
    if not from_min <= value <= from_max:
        raise InvariantError(
            f"Invalid value argument to map_range: from_min: {from_min}, from_max: {from_max} value: {value}"
        )
    if not to_min < to_max:
        raise InvariantError(f"Invalid range argument to map_range: to_min: {to_min}, to_max: {to_max}")

    out = ((value - from_min) / (from_max - from_min)) * (to_max - to_min) + to_min
    # rounding can push the result a ulp past the target bounds
    return min(max(out, to_min), to_max)


def lerp(a, b, t):
    return a + (b - a) * t


def fract(value: float) -> float:
    """Fractional part with the sign of the input (truncating, not flooring)."""
    return value - math.trunc(value)


def signum(value: float) -> float:
    """1.0 or -1.0 following the sign bit, so -0.0 gives -1.0."""
    return math.copysign(1.0, value)


def non_normal_to_default(value: float) -> float:
    """Replace NaN, infinities, zero and subnormals with 0.0."""
    if math.isfinite(value) and abs(value) >= sys.float_info.min:
        return value
    return 0.0


def escape_time_system(
    c: complex,
    max_iterations: int,
    iteration: Callable[[complex, int], complex],
    escape: Callable[[complex, int], bool],
) -> Tuple[complex, int]:
    """Iterate c until escape() fires or max_iterations is reached.

    Returns the final value and the iteration at which it stopped.
    """
    for i in range(max_iterations):
        if escape(c, i):
            return c, i
        c = iteration(c, i)

    return c, max_iterations
