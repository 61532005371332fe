import numpy as np
import pytest

from evoprims.automata_rules import (
    ElementaryAutomataRule,
    IndivAutomataRule,
    LifeLikeAutomataRule,
    LifeLikeTable,
    NeighbourCountAutomataRule,
    PixelNeighbourhood,
    life_like_from_birth_survival,
    parse_birth_survival,
)
from evoprims.colors import BitColor
from evoprims.discrete import Boolean
from evoprims.errors import DecodeError, InvariantError


@pytest.fixture
def rng():
    return np.random.default_rng(110)


def constant_sampler(color):
    return lambda dx, dy: color


def grid_sampler(cells):
    """cells maps (dx, dy) to a color; anything else is BLACK."""
    return lambda dx, dy: cells.get((dx, dy), BitColor.BLACK)


class TestElementaryAutomataRule:
    @pytest.mark.parametrize(
        "l, c, r, expected",
        [
            (True, True, True, False),
            (True, True, False, True),
            (True, False, True, True),
            (True, False, False, False),
            (False, True, True, True),
            (False, True, False, True),
            (False, False, True, True),
            (False, False, False, False),
        ],
    )
    def test_rule_110(self, l, c, r, expected):
        rule = ElementaryAutomataRule.from_wolfram_code(110)
        assert rule.get_value_from_booleans(l, c, r) == Boolean(expected)

    def test_index_packing(self):
        assert ElementaryAutomataRule.get_index_from_booleans(True, False, False) == 4
        assert ElementaryAutomataRule.get_index_from_booleans(False, False, True) == 1

    def test_wolfram_code_round_trip(self):
        for code in (0, 30, 90, 110, 255):
            assert ElementaryAutomataRule.from_wolfram_code(code).to_wolfram_code() == code

    def test_needs_eight_entries(self):
        with pytest.raises(InvariantError):
            ElementaryAutomataRule((Boolean(True),) * 7)

    def test_mutation_keeps_eight_entries(self, rng):
        rule = ElementaryAutomataRule.random(rng)
        for _ in range(20):
            rule = rule.mutate(rng)
            assert len(rule.pattern) == 8

    def test_json(self):
        assert ElementaryAutomataRule.from_json(30) == ElementaryAutomataRule.from_wolfram_code(30)
        for bad in (256, -1, "30", True):
            with pytest.raises(DecodeError):
                ElementaryAutomataRule.from_json(bad)


class TestPixelNeighbourhood:
    def test_counts(self):
        assert PixelNeighbourhood.VERTICAL.neighbour_count() == 2
        assert PixelNeighbourhood.MOORE.neighbour_count() == 8
        assert PixelNeighbourhood.CIRCLE.neighbour_count() == 12
        assert PixelNeighbourhood.SQUARE.neighbour_count() == 16

    def test_offsets_stay_within_two_cells(self):
        for neighbourhood in PixelNeighbourhood:
            for dx, dy in neighbourhood.offsets():
                assert abs(dx) <= 2 and abs(dy) <= 2
                assert (dx, dy) != (0, 0)

    def test_duplicate_offset_counts_twice(self):
        rule = IndivAutomataRule(
            PixelNeighbourhood.ANTI_VON_NEUMANN,
            tuple(LifeLikeTable() for _ in range(5)),
        )
        assert rule.count(BitColor.RED, grid_sampler({(1, -1): BitColor.RED})) == 2


class TestNeighbourCountAutomataRule:
    def test_table_shape_checked(self):
        with pytest.raises(InvariantError):
            NeighbourCountAutomataRule(PixelNeighbourhood.VERTICAL, np.zeros((2, 2, 2), dtype=np.uint8))
        with pytest.raises(InvariantError):
            NeighbourCountAutomataRule(PixelNeighbourhood.VERTICAL, np.full((3, 3, 3), 8, dtype=np.uint8))

    def test_table_is_copied_and_read_only(self):
        table = np.zeros((3, 3, 3), dtype=np.uint8)
        rule = NeighbourCountAutomataRule(PixelNeighbourhood.VERTICAL, table)
        table[0, 0, 0] = 5
        assert rule.lookup(0, 0, 0) == BitColor.BLACK
        with pytest.raises(ValueError):
            rule.truth_table[0, 0, 0] = 1

    def test_counts_each_channel(self):
        table = np.zeros((3, 3, 3), dtype=np.uint8)
        table[2, 1, 1] = BitColor.GREEN.to_index()
        rule = NeighbourCountAutomataRule(PixelNeighbourhood.VERTICAL, table)
        # above is RED, below is WHITE: red twice, green and blue once each
        sample = grid_sampler({(0, -1): BitColor.RED, (0, 1): BitColor.WHITE})
        assert rule.get_value(sample) == BitColor.GREEN

    def test_mutate_and_json(self, rng):
        rule = NeighbourCountAutomataRule.random(rng)
        for _ in range(10):
            rule = rule.mutate(rng)
        assert NeighbourCountAutomataRule.from_json(rule.to_json()) == rule

    def test_json_rejects_wrong_shape(self):
        with pytest.raises(DecodeError):
            NeighbourCountAutomataRule.from_json({"neighbourhood": "VERTICAL", "truth_table": [[["BLACK"]]]})


class TestLifeLike:
    def test_conway_birth_and_survival(self):
        rule = life_like_from_birth_survival([3], [2, 3])
        three = grid_sampler({(-1, -1): BitColor.WHITE, (0, -1): BitColor.WHITE, (1, -1): BitColor.WHITE})
        two = grid_sampler({(-1, -1): BitColor.WHITE, (1, 1): BitColor.WHITE})
        one = grid_sampler({(-1, -1): BitColor.WHITE})

        assert rule.get_value(BitColor.BLACK, three) == BitColor.WHITE
        assert rule.get_value(BitColor.BLACK, two) == BitColor.BLACK
        assert rule.get_value(BitColor.WHITE, two) == BitColor.WHITE
        assert rule.get_value(BitColor.WHITE, one) == BitColor.BLACK

    def test_first_color_in_order_wins(self):
        n = PixelNeighbourhood.VERTICAL.neighbour_count()
        always = IndivAutomataRule(
            PixelNeighbourhood.VERTICAL, tuple(LifeLikeTable(Boolean(True), Boolean(True)) for _ in range(n + 1))
        )
        order = (BitColor.BLUE, BitColor.RED) + tuple(
            c for c in BitColor.values() if c not in (BitColor.BLUE, BitColor.RED)
        )
        rule = LifeLikeAutomataRule(order, tuple(always for _ in range(8)))
        assert rule.get_value(BitColor.RED, constant_sampler(BitColor.BLACK)) == BitColor.BLUE

    def test_nothing_fires_gives_black(self):
        rule = life_like_from_birth_survival([], [])
        assert rule.get_value(BitColor.WHITE, constant_sampler(BitColor.WHITE)) == BitColor.BLACK

    def test_color_order_must_be_permutation(self):
        rule = life_like_from_birth_survival([3], [2, 3])
        with pytest.raises(InvariantError):
            LifeLikeAutomataRule((BitColor.WHITE,) * 8, rule.color_rules)

    def test_indiv_rule_table_count_checked(self):
        with pytest.raises(InvariantError):
            IndivAutomataRule(PixelNeighbourhood.MOORE, (LifeLikeTable(),) * 8)

    def test_mutate_and_json(self, rng):
        rule = LifeLikeAutomataRule.random(rng)
        for _ in range(10):
            rule = rule.mutate(rng)
            assert sorted(c.to_index() for c in rule.color_order) == list(range(8))
        assert LifeLikeAutomataRule.from_json(rule.to_json()) == rule

    def test_json_rejects_bad_order(self, rng):
        data = LifeLikeAutomataRule.random(rng).to_json()
        data["color_order"] = ["WHITE"] * 8
        with pytest.raises(DecodeError):
            LifeLikeAutomataRule.from_json(data)


class TestParseBirthSurvival:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("B3/S23", ([3], [2, 3])),
            ("b36/s125", ([3, 6], [1, 2, 5])),
            ("B3S23", ([3], [2, 3])),
            ("S23", ([], [2, 3])),
            ("B2", ([2], [])),
        ],
    )
    def test_valid(self, text, expected):
        assert parse_birth_survival(text) == expected

    @pytest.mark.parametrize("text", ["23/3", "X3S23", "B3x/S23", ""])
    def test_invalid(self, text):
        with pytest.raises(DecodeError):
            parse_birth_survival(text)
