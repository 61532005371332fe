"""Cellular automaton rule tables.

Rules are evaluated one cell at a time through a ``sample(dx, dy) -> BitColor``
callback that reads the neighbour at the given offset; ``automaton`` runs the
same rules over whole grids.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from .colors import BitColor
from .discrete import Boolean
from .errors import DecodeError, InvariantError
from .traits import EnumMutagen, Mutagen, ProtoArg
from .util import coin_flip

Sampler = Callable[[int, int], BitColor]


@dataclass(frozen=True)
class ElementaryAutomataRule(Mutagen):
    """One-dimensional binary rule: 8 outputs indexed by the (left, center, right) neighbourhood."""
    pattern: Tuple[Boolean, ...]

    def __post_init__(self):
        object.__setattr__(self, "pattern", tuple(self.pattern))
        if len(self.pattern) != 8:
            raise InvariantError(f"Elementary rule needs 8 entries, got {len(self.pattern)}")

    @staticmethod
    def get_index_from_booleans(l, c, r) -> int:
        """Pack the neighbourhood into 3 bits: right is bit 0, center bit 1, left bit 2."""
        index = 0
        if r:
            index |= 1
        if c:
            index |= 2
        if l:
            index |= 4
        return index

    def get_value_from_booleans(self, l, c, r) -> Boolean:
        return self.pattern[self.get_index_from_booleans(l, c, r)]

    @classmethod
    def from_wolfram_code(cls, code: int) -> "ElementaryAutomataRule":
        if not 0 <= code <= 255:
            raise InvariantError(f"Wolfram code must be in 0..255, got {code}")
        return cls(tuple(Boolean(bool(code & (1 << i))) for i in range(8)))

    def to_wolfram_code(self) -> int:
        return sum(1 << i for i, value in enumerate(self.pattern) if value)

    @classmethod
    def random(cls, rng: np.random.Generator) -> "ElementaryAutomataRule":
        return cls._generate(rng, None)

    @classmethod
    def _generate(cls, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "ElementaryAutomataRule":
        return cls(tuple(Boolean.generate(rng, arg) for _ in range(8)))

    def _mutate(self, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "ElementaryAutomataRule":
        if coin_flip(rng):
            return ElementaryAutomataRule._generate(rng, arg)

        index = int(rng.integers(0, 8))
        pattern = list(self.pattern)
        pattern[index] = Boolean(not pattern[index].value)
        return ElementaryAutomataRule(tuple(pattern))

    def to_json(self) -> int:
        return self.to_wolfram_code()

    @classmethod
    def from_json(cls, data) -> "ElementaryAutomataRule":
        if isinstance(data, bool) or not isinstance(data, int) or not 0 <= data <= 255:
            raise DecodeError(f"Invalid Wolfram code: {data!r}")
        return cls.from_wolfram_code(data)


class PixelNeighbourhood(EnumMutagen, Enum):
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"
    DIAG_LEFT = "diag_left"
    DIAG_RIGHT = "diag_right"
    MELT = "melt"
    BIG_MELT = "big_melt"
    VON_NEUMANN = "von_neumann"
    ANTI_VON_NEUMANN = "anti_von_neumann"
    CROSS = "cross"
    MOORE = "moore"
    SPIRAL = "spiral"
    DIAMOND = "diamond"
    CIRCLE = "circle"
    FLOWER = "flower"
    SQUARE = "square"

    def offsets(self) -> Tuple[Tuple[int, int], ...]:
        """Fixed (dx, dy) offsets; the same offset may appear twice and then counts twice."""
        return _OFFSETS[self]

    def neighbour_count(self) -> int:
        return len(_OFFSETS[self])


_OFFSETS = {
    PixelNeighbourhood.VERTICAL: ((0, -1), (0, 1)),
    PixelNeighbourhood.HORIZONTAL: ((-1, 0), (1, 0)),
    PixelNeighbourhood.DIAG_LEFT: ((-1, -1), (1, 1)),
    PixelNeighbourhood.DIAG_RIGHT: ((1, -1), (-1, 1)),
    PixelNeighbourhood.MELT: ((-1, -1), (0, -1), (1, -1)),
    PixelNeighbourhood.BIG_MELT: ((-1, -1), (0, -1), (1, -1), (-1, -2), (0, -2), (1, -2)),
    PixelNeighbourhood.VON_NEUMANN: ((-1, 0), (1, 0), (0, -1), (0, 1)),
    PixelNeighbourhood.ANTI_VON_NEUMANN: ((-1, -1), (1, -1), (1, -1), (1, 1)),
    PixelNeighbourhood.CROSS: ((-1, 0), (-2, 0), (1, 0), (2, 0), (0, -1), (0, -2), (0, 1), (0, 2)),
    PixelNeighbourhood.MOORE: ((-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, -1), (1, 0), (1, 1)),
    PixelNeighbourhood.SPIRAL: ((-1, 0), (-2, 1), (1, 0), (2, 1), (0, -1), (1, -2), (0, 1), (1, 2)),
    PixelNeighbourhood.DIAMOND: ((-1, -1), (-2, 0), (-1, 1), (2, 0), (1, -1), (0, -2), (1, 1), (0, 2)),
    PixelNeighbourhood.CIRCLE: (
        (-2, -1), (-2, 0), (-2, 1), (2, -1), (2, 0), (2, 1),
        (-1, -2), (0, -2), (1, -2), (-1, 2), (0, 2), (1, 2),
    ),
    PixelNeighbourhood.FLOWER: (
        (-2, -1), (-1, 0), (-2, 1), (2, -1), (1, 0), (2, 1),
        (-1, -2), (0, -1), (1, -2), (-1, 2), (0, 1), (1, 2),
    ),
    PixelNeighbourhood.SQUARE: (
        (-2, -2), (-2, -1), (-2, 0), (-2, 1), (2, -2), (2, -1), (2, 0), (2, 1),
        (-2, 2), (-1, -2), (0, -2), (1, -2), (2, 2), (-1, 2), (0, 2), (1, 2),
    ),
}


@dataclass(frozen=True, eq=False)
class NeighbourCountAutomataRule(Mutagen):
    """Next color looked up by how many neighbours have each RGB channel set.

    ``truth_table[r, g, b]`` holds a BitColor index; each axis runs from zero
    to all neighbours.
    """
    neighbourhood: PixelNeighbourhood
    truth_table: np.ndarray

    def __post_init__(self):
        n = self.neighbourhood.neighbour_count() + 1
        table = np.array(self.truth_table, dtype=np.uint8)
        if table.shape != (n, n, n):
            raise InvariantError(f"Truth table for {self.neighbourhood.name} must be {(n, n, n)}, got {table.shape}")
        if table.size and table.max() > 7:
            raise InvariantError("Truth table entries must be BitColor indices")
        table.setflags(write=False)
        object.__setattr__(self, "truth_table", table)

    def __eq__(self, other):
        if not isinstance(other, NeighbourCountAutomataRule):
            return NotImplemented
        return self.neighbourhood == other.neighbourhood and np.array_equal(self.truth_table, other.truth_table)

    def lookup(self, r_count: int, g_count: int, b_count: int) -> BitColor:
        return BitColor(int(self.truth_table[r_count, g_count, b_count]))

    def get_value(self, sample: Sampler) -> BitColor:
        counts = [0, 0, 0]
        for dx, dy in self.neighbourhood.offsets():
            for channel, present in enumerate(sample(dx, dy).to_components()):
                if present:
                    counts[channel] += 1
        return self.lookup(*counts)

    @classmethod
    def random(cls, rng: np.random.Generator) -> "NeighbourCountAutomataRule":
        return cls._generate(rng, None)

    @classmethod
    def _generate(cls, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "NeighbourCountAutomataRule":
        neighbourhood = PixelNeighbourhood.generate(rng, arg)
        n = neighbourhood.neighbour_count() + 1
        return cls(neighbourhood, rng.integers(0, 8, size=(n, n, n), dtype=np.uint8))

    def _mutate(self, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "NeighbourCountAutomataRule":
        if coin_flip(rng):
            return NeighbourCountAutomataRule._generate(rng, arg)

        n = self.truth_table.shape[0]
        index = tuple(int(i) for i in rng.integers(0, n, size=3))
        table = self.truth_table.copy()
        table[index] = BitColor.generate(rng, arg).to_index()
        return NeighbourCountAutomataRule(self.neighbourhood, table)

    def to_json(self) -> dict:
        names = [color.name for color in BitColor]
        return {
            "neighbourhood": self.neighbourhood.to_json(),
            "truth_table": [[[names[v] for v in row] for row in plane] for plane in self.truth_table.tolist()],
        }

    @classmethod
    def from_json(cls, data) -> "NeighbourCountAutomataRule":
        try:
            neighbourhood = PixelNeighbourhood.from_json(data["neighbourhood"])
            table = [[[BitColor.from_json(v).to_index() for v in row] for row in plane] for plane in data["truth_table"]]
        except (KeyError, TypeError) as e:
            raise DecodeError(f"Invalid neighbour count rule: {e}") from None

        n = neighbourhood.neighbour_count() + 1
        table = np.array(table, dtype=np.uint8)
        if table.shape != (n, n, n):
            raise DecodeError(f"Truth table for {neighbourhood.name} must be {(n, n, n)}, got {table.shape}")
        return cls(neighbourhood, table)


@dataclass(frozen=True)
class LifeLikeTable(Mutagen):
    birth: Boolean = Boolean(False)
    survival: Boolean = Boolean(False)

    @classmethod
    def random(cls, rng: np.random.Generator) -> "LifeLikeTable":
        return cls(Boolean.random(rng), Boolean.random(rng))

    @classmethod
    def _generate(cls, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "LifeLikeTable":
        return cls(Boolean.generate(rng, arg), Boolean.generate(rng, arg))

    def _mutate(self, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "LifeLikeTable":
        if coin_flip(rng):
            return LifeLikeTable._generate(rng, arg)
        if coin_flip(rng):
            return LifeLikeTable(self.birth.mutate(rng, arg), self.survival)
        return LifeLikeTable(self.birth, self.survival.mutate(rng, arg))

    def to_json(self) -> dict:
        return {"birth": self.birth.to_json(), "survival": self.survival.to_json()}

    @classmethod
    def from_json(cls, data) -> "LifeLikeTable":
        try:
            return cls(Boolean.from_json(data["birth"]), Boolean.from_json(data["survival"]))
        except (KeyError, TypeError) as e:
            raise DecodeError(f"Invalid life-like table: {e}") from None


@dataclass(frozen=True)
class IndivAutomataRule(Mutagen):
    """Birth/survival flags for one color, one table per possible same-color neighbour count."""
    neighbourhood: PixelNeighbourhood
    rules: Tuple[LifeLikeTable, ...]

    def __post_init__(self):
        object.__setattr__(self, "rules", tuple(self.rules))
        expected = self.neighbourhood.neighbour_count() + 1
        if len(self.rules) != expected:
            raise InvariantError(f"{self.neighbourhood.name} needs {expected} tables, got {len(self.rules)}")

    def count(self, color: BitColor, sample: Sampler) -> int:
        return sum(1 for dx, dy in self.neighbourhood.offsets() if sample(dx, dy) == color)

    @classmethod
    def random(cls, rng: np.random.Generator) -> "IndivAutomataRule":
        return cls._generate(rng, None)

    @classmethod
    def _generate(cls, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "IndivAutomataRule":
        neighbourhood = PixelNeighbourhood.generate(rng, arg)
        rules = tuple(LifeLikeTable.generate(rng, arg) for _ in range(neighbourhood.neighbour_count() + 1))
        return cls(neighbourhood, rules)

    def _mutate(self, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "IndivAutomataRule":
        if coin_flip(rng):
            return IndivAutomataRule._generate(rng, arg)

        index = int(rng.integers(0, len(self.rules)))
        rules = list(self.rules)
        rules[index] = rules[index].mutate(rng, arg)
        return IndivAutomataRule(self.neighbourhood, tuple(rules))

    def to_json(self) -> dict:
        return {
            "neighbourhood": self.neighbourhood.to_json(),
            "rules": [rule.to_json() for rule in self.rules],
        }

    @classmethod
    def from_json(cls, data) -> "IndivAutomataRule":
        try:
            neighbourhood = PixelNeighbourhood.from_json(data["neighbourhood"])
            rules = tuple(LifeLikeTable.from_json(rule) for rule in data["rules"])
        except (KeyError, TypeError) as e:
            raise DecodeError(f"Invalid individual automata rule: {e}") from None
        if len(rules) != neighbourhood.neighbour_count() + 1:
            raise DecodeError(f"{neighbourhood.name} needs {neighbourhood.neighbour_count() + 1} tables")
        return cls(neighbourhood, rules)


@dataclass(frozen=True)
class LifeLikeAutomataRule(Mutagen):
    """Per-color birth/survival rules tried in ``color_order``.

    For each color in order, count the neighbours of exactly that color (using
    that color's own neighbourhood). The first color whose survival flag (cell
    already that color) or birth flag (cell not that color) is set at that count
    becomes the next state. If no color fires the cell becomes BLACK.
    """
    color_order: Tuple[BitColor, ...]
    color_rules: Tuple[IndivAutomataRule, ...]

    def __post_init__(self):
        object.__setattr__(self, "color_order", tuple(self.color_order))
        object.__setattr__(self, "color_rules", tuple(self.color_rules))
        if sorted(c.to_index() for c in self.color_order) != list(range(8)):
            raise InvariantError("color_order must be a permutation of the 8 BitColors")
        if len(self.color_rules) != 8:
            raise InvariantError(f"Need one rule per BitColor, got {len(self.color_rules)}")

    def rule_for(self, color: BitColor) -> IndivAutomataRule:
        return self.color_rules[color.to_index()]

    def get_value(self, current: BitColor, sample: Sampler) -> BitColor:
        for color in self.color_order:
            rule = self.rule_for(color)
            table = rule.rules[rule.count(color, sample)]
            if current == color:
                if table.survival:
                    return color
            elif table.birth:
                return color
        return BitColor.BLACK

    @classmethod
    def random(cls, rng: np.random.Generator) -> "LifeLikeAutomataRule":
        return cls._generate(rng, None)

    @classmethod
    def _generate(cls, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "LifeLikeAutomataRule":
        colors = BitColor.values()
        color_order = tuple(colors[int(i)] for i in rng.permutation(len(colors)))
        color_rules = tuple(IndivAutomataRule.generate(rng, arg) for _ in range(len(colors)))
        return cls(color_order, color_rules)

    def _mutate(self, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "LifeLikeAutomataRule":
        if coin_flip(rng):
            return LifeLikeAutomataRule._generate(rng, arg)

        index = int(rng.integers(0, len(self.color_rules)))
        color_rules = list(self.color_rules)
        color_rules[index] = color_rules[index].mutate(rng, arg)
        return LifeLikeAutomataRule(self.color_order, tuple(color_rules))

    def to_json(self) -> dict:
        return {
            "color_order": [color.to_json() for color in self.color_order],
            "color_rules": [rule.to_json() for rule in self.color_rules],
        }

    @classmethod
    def from_json(cls, data) -> "LifeLikeAutomataRule":
        try:
            color_order = tuple(BitColor.from_json(c) for c in data["color_order"])
            color_rules = tuple(IndivAutomataRule.from_json(r) for r in data["color_rules"])
        except (KeyError, TypeError) as e:
            raise DecodeError(f"Invalid life-like rule: {e}") from None
        if sorted(c.to_index() for c in color_order) != list(range(8)) or len(color_rules) != 8:
            raise DecodeError("Life-like rule needs a permutation of the 8 colors and 8 rules")
        return cls(color_order, color_rules)


def life_like_from_birth_survival(
    birth: Sequence[int],
    survival: Sequence[int],
    neighbourhood: PixelNeighbourhood = PixelNeighbourhood.MOORE,
) -> LifeLikeAutomataRule:
    """Two-color rule in B/S notation: WHITE is alive, every other color stays dormant.

    ``life_like_from_birth_survival([3], [2, 3])`` is Conway's Game of Life.
    """
    n = neighbourhood.neighbour_count()
    alive = IndivAutomataRule(
        neighbourhood,
        tuple(LifeLikeTable(Boolean(count in birth), Boolean(count in survival)) for count in range(n + 1)),
    )
    dormant = IndivAutomataRule(neighbourhood, tuple(LifeLikeTable() for _ in range(n + 1)))

    color_order = (BitColor.WHITE,) + tuple(c for c in BitColor.values() if c != BitColor.WHITE)
    color_rules = tuple(alive if color == BitColor.WHITE else dormant for color in BitColor.values())
    return LifeLikeAutomataRule(color_order, color_rules)


def parse_birth_survival(text: str) -> Tuple[List[int], List[int]]:
    """Parse B/S notation such as ``'B3/S23'`` or ``'B36S125'`` into (birth, survival) counts."""
    text = text.upper().replace(" ", "")
    birth_part = ""
    survival_part = ""

    if "/" in text:
        for part in text.split("/"):
            if part.startswith("B"):
                birth_part = part[1:]
            elif part.startswith("S"):
                survival_part = part[1:]
            else:
                raise DecodeError(f"Invalid B/S rule: {text!r}")
    elif "S" in text:
        idx = text.index("S")
        if idx > 0 and not text.startswith("B"):
            raise DecodeError(f"Invalid B/S rule: {text!r}")
        birth_part = text[1:idx]
        survival_part = text[idx + 1:]
    elif text.startswith("B"):
        birth_part = text[1:]
    else:
        raise DecodeError(f"Invalid B/S rule: {text!r}")

    if not (birth_part + survival_part).isdigit() and (birth_part or survival_part):
        raise DecodeError(f"Invalid B/S rule: {text!r}")
    birth = sorted({int(c) for c in birth_part})
    survival = sorted({int(c) for c in survival_part})
    return birth, survival
