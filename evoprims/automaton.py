"""Grid stepping for the automata rules, on toroidal boundaries."""

from typing import List, Optional, Union

import numpy as np
from scipy.ndimage import correlate

from .automata_rules import (
    ElementaryAutomataRule,
    LifeLikeAutomataRule,
    NeighbourCountAutomataRule,
    PixelNeighbourhood,
    Sampler,
)
from .colors import BitColor
from .reseeders import Reseeder

GridRule = Union[LifeLikeAutomataRule, NeighbourCountAutomataRule]

# Offsets reach at most two cells in each direction
KERNEL_RADIUS = 2

_COMPONENTS = np.array([color.to_components() for color in BitColor.values()], dtype=bool)


def neighbour_kernel(neighbourhood: PixelNeighbourhood) -> np.ndarray:
    """Correlation weights counting each (dx, dy) offset once per occurrence."""
    size = 2 * KERNEL_RADIUS + 1
    weights = np.zeros((size, size), dtype=np.int32)
    for dx, dy in neighbourhood.offsets():
        weights[KERNEL_RADIUS + dy, KERNEL_RADIUS + dx] += 1
    return weights


def count_neighbours(mask: np.ndarray, neighbourhood: PixelNeighbourhood) -> np.ndarray:
    """For every cell, how many of its wrapped neighbours are set in mask."""
    return correlate(mask.astype(np.int32), neighbour_kernel(neighbourhood), mode="wrap")


class ColorAutomaton:
    """2D automaton over BitColor cells (stored as color indices) with wrapping edges."""

    def __init__(self, width: int, height: int, rule: GridRule):
        self.width = width
        self.height = height
        self.rule = rule
        self.grid = np.zeros((height, width), dtype=np.uint8)
        self.generation = 0
        self._history: List[np.ndarray] = []

    def randomize(self, rng: np.random.Generator, colors: Optional[List[BitColor]] = None):
        """Fill the grid with colors drawn uniformly from colors (all eight by default)."""
        if colors is None:
            colors = BitColor.values()
        indices = np.array([c.to_index() for c in colors], dtype=np.uint8)
        self.grid = indices[rng.integers(0, len(indices), (self.height, self.width))]
        self.generation = 0
        self._history = []

    def reseed(self, reseeder: Reseeder):
        reseeder.reseed(self.grid)
        self.generation = 0
        self._history = []

    def clear(self):
        self.grid.fill(BitColor.BLACK.to_index())
        self.generation = 0
        self._history = []

    def get_cell(self, x: int, y: int) -> BitColor:
        return BitColor(int(self.grid[y % self.height, x % self.width]))

    def set_cell(self, x: int, y: int, color: BitColor):
        self.grid[y % self.height, x % self.width] = color.to_index()

    def sampler(self, x: int, y: int) -> Sampler:
        """Neighbour reader for the cell at (x, y), as the per-cell rule methods expect."""
        return lambda dx, dy: self.get_cell(x + dx, y + dy)

    def next_cell(self, x: int, y: int) -> BitColor:
        """Next state of one cell, evaluated directly through the rule."""
        if isinstance(self.rule, LifeLikeAutomataRule):
            return self.rule.get_value(self.get_cell(x, y), self.sampler(x, y))
        return self.rule.get_value(self.sampler(x, y))

    def _step_life_like(self) -> np.ndarray:
        rule = self.rule
        new_grid = np.full_like(self.grid, BitColor.BLACK.to_index())
        decided = np.zeros(self.grid.shape, dtype=bool)

        for color in rule.color_order:
            color_rule = rule.rule_for(color)
            is_color = self.grid == color.to_index()
            counts = count_neighbours(is_color, color_rule.neighbourhood)

            birth = np.array([table.birth.value for table in color_rule.rules], dtype=bool)
            survival = np.array([table.survival.value for table in color_rule.rules], dtype=bool)
            fires = np.where(is_color, survival[counts], birth[counts])

            new_grid[fires & ~decided] = color.to_index()
            decided |= fires

        return new_grid

    def _step_neighbour_count(self) -> np.ndarray:
        rule = self.rule
        counts = [
            count_neighbours(_COMPONENTS[self.grid, channel], rule.neighbourhood)
            for channel in range(3)
        ]
        return rule.truth_table[counts[0], counts[1], counts[2]].astype(np.uint8)

    def step(self, record_history: bool = False):
        """Advance simulation by one generation."""
        if record_history:
            self._history.append(self.grid.copy())

        if isinstance(self.rule, LifeLikeAutomataRule):
            self.grid = self._step_life_like()
        else:
            self.grid = self._step_neighbour_count()
        self.generation += 1

    def run(self, steps: int, record_history: bool = False) -> List[np.ndarray]:
        for _ in range(steps):
            self.step(record_history=record_history)
        if record_history:
            self._history.append(self.grid.copy())
        return self._history

    def get_history(self) -> List[np.ndarray]:
        return self._history

    def color_counts(self) -> dict:
        counts = np.bincount(self.grid.ravel(), minlength=8)
        return {color: int(counts[color.to_index()]) for color in BitColor.values()}

    def population(self) -> int:
        """Count non-black cells."""
        return int(np.count_nonzero(self.grid != BitColor.BLACK.to_index()))


class ElementaryAutomaton:
    """1D binary automaton on a wrapping row."""

    def __init__(self, width: int, rule: ElementaryAutomataRule):
        self.width = width
        self.rule = rule
        self.row = np.zeros(width, dtype=bool)
        self.generation = 0

    def seed_center(self):
        self.row[:] = False
        self.row[self.width // 2] = True
        self.generation = 0

    def randomize(self, rng: np.random.Generator, density: float = 0.5):
        self.row = rng.random(self.width) < density
        self.generation = 0

    def step(self):
        pattern = np.array([entry.value for entry in self.rule.pattern], dtype=bool)
        left = np.roll(self.row, 1)
        right = np.roll(self.row, -1)
        index = right.astype(np.uint8) | (self.row.astype(np.uint8) << 1) | (left.astype(np.uint8) << 2)
        self.row = pattern[index]
        self.generation += 1

    def run(self, steps: int) -> np.ndarray:
        """Rows for generations 0..steps stacked into a (steps + 1, width) array."""
        rows = [self.row.copy()]
        for _ in range(steps):
            self.step()
            rows.append(self.row.copy())
        return np.array(rows)
