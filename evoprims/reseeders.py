"""Periodic patterns for refilling an automaton grid."""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .colors import BitColor
from .discrete import _decode_int
from .errors import DecodeError, InvariantError
from .traits import Mutagen, ProtoArg
from .util import coin_flip

# Moduli and offsets are drawn from 1..MAX_PERIOD
MAX_PERIOD = 100

ColorTable = Tuple[Tuple[BitColor, BitColor], Tuple[BitColor, BitColor]]


def _step_period(value: int) -> int:
    return (value + 1) % MAX_PERIOD + 1


def _random_period(rng: np.random.Generator) -> int:
    return int(rng.integers(1, MAX_PERIOD + 1))


@dataclass(frozen=True)
class Reseeder(Mutagen):
    """Picks ``color_table[x_hit][y_hit]``, where a hit is ``(coord + offset) % mod == 0``."""
    x_mod: int = 1
    y_mod: int = 1
    x_offset: int = 0
    y_offset: int = 0
    color_table: ColorTable = ((BitColor.BLACK, BitColor.BLACK), (BitColor.BLACK, BitColor.WHITE))

    def __post_init__(self):
        if self.x_mod < 1 or self.y_mod < 1:
            raise InvariantError(f"Invalid Reseeder moduli: {self.x_mod}, {self.y_mod}")
        if self.x_offset < 0 or self.y_offset < 0:
            raise InvariantError(f"Invalid Reseeder offsets: {self.x_offset}, {self.y_offset}")
        table = tuple(tuple(row) for row in self.color_table)
        if len(table) != 2 or any(len(row) != 2 for row in table):
            raise InvariantError(f"Reseeder color table must be 2x2, got {self.color_table!r}")
        object.__setattr__(self, "color_table", table)

    def reseed_cell(self, x: int, y: int) -> BitColor:
        x_index = 1 if (x + self.x_offset) % self.x_mod == 0 else 0
        y_index = 1 if (y + self.y_offset) % self.y_mod == 0 else 0
        return self.color_table[x_index][y_index]

    def reseed(self, grid: np.ndarray):
        """Overwrite a (height, width) grid of color indices in place."""
        height, width = grid.shape
        x_hit = ((np.arange(width) + self.x_offset) % self.x_mod == 0).astype(np.intp)
        y_hit = ((np.arange(height) + self.y_offset) % self.y_mod == 0).astype(np.intp)
        table = np.array([[color.to_index() for color in row] for row in self.color_table], dtype=grid.dtype)
        grid[...] = table[x_hit[np.newaxis, :], y_hit[:, np.newaxis]]

    @classmethod
    def random(cls, rng: np.random.Generator) -> "Reseeder":
        return cls._generate(rng, None)

    @classmethod
    def _generate(cls, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "Reseeder":
        return cls(
            x_mod=_random_period(rng),
            y_mod=_random_period(rng),
            x_offset=_random_period(rng),
            y_offset=_random_period(rng),
            color_table=tuple(tuple(BitColor.generate(rng, arg) for _ in range(2)) for _ in range(2)),
        )

    def _mutate(self, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "Reseeder":
        """Each field independently: maybe resample, then maybe step by one."""
        fields = {}
        for name in ("x_mod", "x_offset", "y_mod", "y_offset"):
            value = getattr(self, name)
            if coin_flip(rng):
                value = _random_period(rng)
            if coin_flip(rng):
                value = _step_period(value)
            fields[name] = value

        table = [list(row) for row in self.color_table]
        if coin_flip(rng):
            i, j = int(rng.integers(0, 2)), int(rng.integers(0, 2))
            table[i][j] = BitColor.generate(rng, arg)

        return Reseeder(color_table=tuple(tuple(row) for row in table), **fields)

    def to_json(self) -> dict:
        return {
            "x_mod": self.x_mod,
            "y_mod": self.y_mod,
            "x_offset": self.x_offset,
            "y_offset": self.y_offset,
            "color_table": [[color.to_json() for color in row] for row in self.color_table],
        }

    @classmethod
    def from_json(cls, data) -> "Reseeder":
        if not isinstance(data, dict):
            raise DecodeError(f"Invalid Reseeder: {data!r}")
        try:
            table = data["color_table"]
            if len(table) != 2 or any(len(row) != 2 for row in table):
                raise DecodeError(f"Reseeder color table must be 2x2, got {table!r}")
            return cls(
                x_mod=_decode_int("Reseeder.x_mod", data["x_mod"], 1, 2 ** 31 - 1),
                y_mod=_decode_int("Reseeder.y_mod", data["y_mod"], 1, 2 ** 31 - 1),
                x_offset=_decode_int("Reseeder.x_offset", data["x_offset"], 0, 2 ** 31 - 1),
                y_offset=_decode_int("Reseeder.y_offset", data["y_offset"], 0, 2 ** 31 - 1),
                color_table=tuple(tuple(BitColor.from_json(c) for c in row) for row in table),
            )
        except KeyError as e:
            raise DecodeError(f"Reseeder missing field {e}") from None
        except TypeError:
            raise DecodeError(f"Invalid Reseeder: {data!r}") from None
