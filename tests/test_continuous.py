import math

import numpy as np
import pytest

from evoprims.continuous import TAU, Angle, SNFloat, UNFloat, wrap_angle
from evoprims.discrete import Nibble
from evoprims.errors import DecodeError, InvariantError
from evoprims.normalisers import SFloatNormaliser, UFloatNormaliser
from evoprims.util import coin_flip, fract, map_range, non_normal_to_default, signum


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


class TestUtil:
    def test_map_range(self):
        assert map_range(0.5, (0.0, 1.0), (-1.0, 1.0)) == 0.0
        assert map_range(0.0, (-1.0, 1.0), (0.0, 10.0)) == 5.0

    def test_map_range_rejects_value_outside_source(self):
        with pytest.raises(InvariantError):
            map_range(2.0, (0.0, 1.0), (0.0, 1.0))

    def test_map_range_rejects_empty_range(self):
        with pytest.raises(InvariantError):
            map_range(0.0, (0.0, 0.0), (0.0, 1.0))

    def test_fract_truncates(self):
        assert fract(1.25) == 0.25
        assert fract(-1.25) == -0.25

    def test_signum_follows_sign_bit(self):
        assert signum(3.0) == 1.0
        assert signum(0.0) == 1.0
        assert signum(-0.0) == -1.0

    def test_non_normal_to_default(self):
        assert non_normal_to_default(0.5) == 0.5
        assert non_normal_to_default(float("nan")) == 0.0
        assert non_normal_to_default(float("inf")) == 0.0
        assert non_normal_to_default(5e-324) == 0.0

    def test_coin_flip_is_bool(self, rng):
        flips = {coin_flip(rng) for _ in range(100)}
        assert flips == {True, False}


class TestUNFloat:
    def test_constructor_asserts_range(self):
        assert UNFloat(0.0).value == 0.0
        assert UNFloat(1.0).value == 1.0
        with pytest.raises(InvariantError):
            UNFloat(1.5)
        with pytest.raises(InvariantError):
            UNFloat(-0.1)

    def test_clamped(self):
        assert UNFloat.new_clamped(2.0) == UNFloat.ONE
        assert UNFloat.new_clamped(-2.0) == UNFloat.ZERO

    def test_sawtooth_wraps(self):
        assert UNFloat.new_sawtooth(1.25).value == pytest.approx(0.25)
        assert UNFloat.new_sawtooth(-0.25).value == pytest.approx(0.75)
    def test_sawtooth_keeps_valid_input(self):
        for value in (0.0, 0.3, 1.0):
            assert UNFloat.new_sawtooth(value).value == value
        assert math.copysign(1.0, UNFloat.new_sawtooth(-0.0).value) == 1.0

    def test_triangle_folds(self):
        assert UNFloat.new_triangle(0.0).value == pytest.approx(0.0)
        assert UNFloat.new_triangle(0.5).value == pytest.approx(0.5)
        assert UNFloat.new_triangle(1.0).value == pytest.approx(1.0)
        assert UNFloat.new_triangle(1.5).value == pytest.approx(0.5)
        assert UNFloat.new_triangle(2.0).value == pytest.approx(0.0)

    def test_sin_endpoints(self):
        assert UNFloat.new_sin(0.0).value == pytest.approx(0.0)
        assert UNFloat.new_sin(1.0).value == pytest.approx(1.0)

    def test_random_clamped_keeps_in_range_values(self, rng):
        assert UNFloat.new_random_clamped(0.3, rng).value == 0.3
        assert 0.0 <= UNFloat.new_random_clamped(3.0, rng).value <= 1.0

    def test_to_signed_and_back(self):
        assert UNFloat(0.5).to_signed() == SNFloat.ZERO
        assert UNFloat(0.0).to_signed() == SNFloat.NEG_ONE
        assert SNFloat(0.5).to_unsigned().value == pytest.approx(0.75)

    def test_to_angle(self):
        assert UNFloat(0.5).to_angle().value == pytest.approx(0.0)
        assert UNFloat(1.0).to_angle().value == pytest.approx(math.pi)

    def test_subdivide_sawtooth(self):
        assert UNFloat(0.3).subdivide_sawtooth(Nibble(2)).value == pytest.approx(0.6)
        assert UNFloat(0.75).subdivide_sawtooth(Nibble(2)).value == pytest.approx(0.5)

    def test_lerp(self):
        assert UNFloat(0.0).lerp(UNFloat(1.0), UNFloat(0.25)).value == pytest.approx(0.25)

    def test_json(self):
        assert UNFloat.from_json(UNFloat(0.125).to_json()) == UNFloat(0.125)
        with pytest.raises(DecodeError):
            UNFloat.from_json(1.5)
        with pytest.raises(DecodeError):
            UNFloat.from_json("0.5")
        with pytest.raises(DecodeError):
            UNFloat.from_json(True)


class TestSNFloat:
    def test_constructor_asserts_range(self):
        with pytest.raises(InvariantError):
            SNFloat(1.01)
        with pytest.raises(InvariantError):
            SNFloat(float("nan"))

    def test_sawtooth(self):
        assert SNFloat.new_sawtooth(0.5).value == pytest.approx(0.5)
        assert SNFloat.new_sawtooth(1.5).value == pytest.approx(-0.5)

    def test_sawtooth_keeps_valid_input(self):
        for value in (-1.0, -0.2, 0.0, 1.0):
            assert SNFloat.new_sawtooth(value).value == value

    def test_unsigned_round_trip_over_dense_sample(self):
        for value in np.linspace(-1.0, 1.0, 1001):
            assert SNFloat(value).to_unsigned().to_signed().value == pytest.approx(value, abs=1e-12)
        for value in np.linspace(0.0, 1.0, 1001):
            assert UNFloat(value).to_signed().to_unsigned().value == pytest.approx(value, abs=1e-12)

    def test_triangle(self):
        assert SNFloat.new_triangle(0.0).value == pytest.approx(0.0)
        assert SNFloat.new_triangle(1.0).value == pytest.approx(1.0)
        assert SNFloat.new_triangle(2.0).value == pytest.approx(0.0)
        assert SNFloat.new_triangle(3.0).value == pytest.approx(-1.0)

    def test_fractional_and_tanh(self):
        assert SNFloat.new_fractional(-2.5).value == pytest.approx(-0.5)
        assert SNFloat.new_tanh(100.0).value == pytest.approx(1.0)

    def test_sign_helpers(self):
        assert SNFloat(-0.5).abs() == SNFloat(0.5)
        assert SNFloat(0.5).force_sign(False) == SNFloat(-0.5)
        assert SNFloat(0.5).invert() == SNFloat(-0.5)

    def test_subdivide_keeps_sign(self):
        assert SNFloat(-0.75).subdivide(Nibble(2)).value == pytest.approx(-0.5)

    def test_normalised_add(self):
        result = SNFloat(0.75).normalised_add(SNFloat(0.75), SFloatNormaliser.CLAMP)
        assert result == SNFloat.ONE

    def test_str_has_four_decimals(self):
        assert str(SNFloat(0.5)) == "0.5000"


class TestAngle:
    def test_reduces_into_half_open_interval(self):
        assert Angle(math.pi).value == pytest.approx(math.pi)
        assert Angle(-math.pi).value == pytest.approx(math.pi)
        assert Angle(3 * math.pi / 2).value == pytest.approx(-math.pi / 2)
        assert Angle(TAU * 3 + 0.5).value == pytest.approx(0.5)

    def test_wrap_angle_rejects_non_finite(self):
        with pytest.raises(InvariantError):
            wrap_angle(float("inf"))

    def test_addition_wraps(self):
        total = Angle(3.0) + Angle(1.0)
        assert total.value == pytest.approx(4.0 - TAU)

    def test_lerp_takes_shorter_arc(self):
        a = Angle(math.pi - 0.1)
        b = Angle(-math.pi + 0.1)
        mid = a.lerp(b, UNFloat(0.5))
        assert abs(mid.value) == pytest.approx(math.pi)

    def test_to_signed(self):
        assert Angle(0.0).to_signed() == SNFloat.ZERO

    def test_random_in_range(self, rng):
        for _ in range(100):
            assert -math.pi < Angle.random(rng).value <= math.pi


class TestNormalisers:
    @pytest.mark.parametrize("normaliser", [n for n in SFloatNormaliser if n != SFloatNormaliser.RANDOM])
    def test_signed_results_in_range(self, normaliser):
        for value in (-7.3, -1.0, 0.0, 0.4, 1.0, 12.5, float("nan"), float("-inf")):
            assert -1.0 <= normaliser.normalise(value).value <= 1.0

    @pytest.mark.parametrize("normaliser", [n for n in UFloatNormaliser if n != UFloatNormaliser.RANDOM])
    def test_unsigned_results_in_range(self, normaliser):
        for value in (-7.3, -1.0, 0.0, 0.4, 1.0, 12.5, float("nan"), float("inf")):
            assert 0.0 <= normaliser.normalise(value).value <= 1.0

    @pytest.mark.parametrize(
        "constructor",
        [
            UNFloat.new_clamped,
            UNFloat.new_sawtooth,
            UNFloat.new_triangle,
            UNFloat.new_sin,
            UNFloat.new_sin_repeating,
            SNFloat.new_clamped,
            SNFloat.new_sawtooth,
            SNFloat.new_triangle,
            SNFloat.new_sin,
            SNFloat.new_sin_repeating,
            SNFloat.new_fractional,
            SNFloat.new_tanh,
        ],
    )
    def test_repair_constructors_accept_non_finite(self, constructor):
        for value in (float("nan"), float("inf"), float("-inf")):
            result = constructor(value)
            assert -1.0 <= result.value <= 1.0
            assert math.isfinite(result.value)

    def test_random_clamped_reads_nan_as_zero(self, rng):
        assert UNFloat.new_random_clamped(float("nan"), rng) == UNFloat.ZERO
        assert SNFloat.new_random_clamped(float("nan"), rng) == SNFloat.ZERO

    def test_random_needs_generator(self, rng):
        with pytest.raises(InvariantError):
            SFloatNormaliser.RANDOM.normalise(3.0)
        assert -1.0 <= SFloatNormaliser.RANDOM.normalise(3.0, rng).value <= 1.0
        assert UFloatNormaliser.RANDOM.normalise(0.25, rng).value == 0.25

    def test_nan_maps_to_zero_first(self):
        assert SFloatNormaliser.CLAMP.normalise(float("nan")) == SNFloat.ZERO

    def test_json_by_name(self):
        assert SFloatNormaliser.TANH.to_json() == "TANH"
        assert SFloatNormaliser.from_json("TANH") == SFloatNormaliser.TANH
        with pytest.raises(DecodeError):
            SFloatNormaliser.from_json("BOGUS")
