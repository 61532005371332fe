import itertools
import math

import numpy as np
import pytest

from evoprims.color_blend import ColorBlendFunctions
from evoprims.colors import BitColor, ByteColor, CMYKColor, FloatColor, HSVColor, LABColor, NibbleColor
from evoprims.continuous import Angle, UNFloat
from evoprims.discrete import Byte
from evoprims.errors import DecodeError, InvariantError


@pytest.fixture
def rng():
    return np.random.default_rng(2024)


def byte_color(r, g, b, a=255):
    return ByteColor(Byte(r), Byte(g), Byte(b), Byte(a))


class TestBitColor:
    def test_components_are_a_bijection(self):
        seen = {color.to_components() for color in BitColor.values()}
        assert len(seen) == 8
        for color in BitColor.values():
            assert BitColor.from_components(color.to_components()) == color

    def test_index_round_trip(self):
        for color in BitColor.values():
            assert BitColor.from_index(color.to_index()) == color

    def test_channel_operations(self):
        assert BitColor.RED.has_color(BitColor.MAGENTA)
        assert not BitColor.RED.has_color(BitColor.CYAN)
        assert BitColor.from_components(BitColor.RED.give_color(BitColor.BLUE)) == BitColor.MAGENTA
        assert BitColor.from_components(BitColor.WHITE.take_color(BitColor.RED)) == BitColor.CYAN
        assert BitColor.from_components(BitColor.YELLOW.xor_color(BitColor.WHITE)) == BitColor.BLUE

    def test_channel_operations_match_boolean_algebra(self):
        for a, b in itertools.product(BitColor, BitColor):
            pairs = list(zip(a.to_components(), b.to_components()))
            assert a.has_color(b) == any(x and y for x, y in pairs)
            assert a.give_color(b) == tuple(x or y for x, y in pairs)
            assert a.take_color(b) == tuple(x and not y for x, y in pairs)
            assert a.xor_color(b) == tuple(x != y for x, y in pairs)
            assert a.eq_color(b) == tuple(x == y for x, y in pairs)

    def test_get_color(self):
        assert BitColor.RED.get_color() == byte_color(255, 0, 0)
        assert BitColor.BLACK.get_color() == byte_color(0, 0, 0)

    def test_from_byte_thresholds_at_half(self):
        assert BitColor.from_byte(byte_color(128, 127, 200)) == BitColor.MAGENTA

    def test_mutation_stays_a_color(self, rng):
        color = BitColor.BLACK
        for _ in range(20):
            color = color.mutate(rng)
            assert isinstance(color, BitColor)

    def test_json_by_name(self):
        assert BitColor.CYAN.to_json() == "CYAN"
        assert BitColor.from_json("CYAN") == BitColor.CYAN
        with pytest.raises(DecodeError):
            BitColor.from_json("PURPLE")


class TestByteAndNibble:
    def test_float_conversions(self):
        assert FloatColor.WHITE.to_byte() == byte_color(255, 255, 255)
        assert byte_color(255, 0, 0).to_float().to_bit() == BitColor.RED

    def test_nibble_from_float_clamps_at_one(self):
        nibble = FloatColor.WHITE.to_nibble()
        assert (nibble.r.value, nibble.g.value, nibble.b.value, nibble.a.value) == (15, 15, 15, 15)

    def test_add_bit_color_steps_channels(self):
        assert byte_color(10, 10, 10, 7).add_bit_color(BitColor.RED) == byte_color(11, 9, 9, 7)
        assert byte_color(255, 0, 0).add_bit_color(BitColor.RED) == byte_color(0, 255, 255)

    def test_rgba_tuple(self):
        color = ByteColor.from_rgba((1, 2, 3, 4))
        assert color.to_rgba() == (1, 2, 3, 4)
        with pytest.raises(InvariantError):
            ByteColor.from_rgba((256, 0, 0, 0))

    def test_mutate_changes_one_channel(self, rng):
        color = byte_color(100, 100, 100, 100)
        mutated = color.mutate(rng)
        changed = sum(a != b for a, b in zip(color.to_rgba(), mutated.to_rgba()))
        assert changed <= 1

    def test_json(self):
        color = byte_color(1, 2, 3, 4)
        assert ByteColor.from_json(color.to_json()) == color
        with pytest.raises(DecodeError):
            ByteColor.from_json({"r": 1, "g": 2, "b": 3})
        nibble = NibbleColor.from_json({"r": 1, "g": 2, "b": 3, "a": 15})
        assert NibbleColor.from_json(nibble.to_json()) == nibble


class TestFloatColor:
    @pytest.mark.parametrize(
        "rgb, hue",
        [((1.0, 0.0, 0.0), 0.0), ((0.0, 1.0, 0.0), 1.0 / 3.0), ((0.0, 0.0, 1.0), 2.0 / 3.0), ((1.0, 0.0, 1.0), 5.0 / 6.0)],
    )
    def test_hue(self, rgb, hue):
        assert FloatColor.new(*rgb).get_hue_unfloat().value == pytest.approx(hue)

    def test_grey_has_zero_hue(self):
        assert FloatColor.new(0.5, 0.5, 0.5).get_hue_unfloat() == UNFloat.ZERO

    def test_saturation_and_value(self):
        color = FloatColor.new(1.0, 0.5, 0.5)
        assert color.get_saturation_unfloat().value == pytest.approx(0.5)
        assert color.get_value_unfloat().value == pytest.approx(1.0)
        assert color.get_average() == pytest.approx(2.0 / 3.0)

    def test_lerp(self):
        mid = FloatColor.BLACK.lerp(FloatColor.WHITE, UNFloat(0.5))
        assert mid.r.value == pytest.approx(0.5)
        assert mid.a == UNFloat.ONE

    def test_byte_round_trip_within_one_step(self, rng):
        samples = [FloatColor.random(rng) for _ in range(500)]
        samples += [FloatColor.new(v, v, v, v) for v in np.linspace(0.0, 1.0, 256)]
        for color in samples:
            back = color.to_byte().to_float()
            for a, b in zip(color.channels(), back.channels()):
                assert abs(a.value - b.value) <= 1.0 / 255.0


class TestColorModels:
    def test_hsv_round_trip(self):
        color = FloatColor.new(0.2, 0.4, 0.6, 0.3)
        back = color.to_hsv().to_float()
        for a, b in zip(color.channels(), back.channels()):
            assert a.value == pytest.approx(b.value, abs=1e-6)

    def test_hsv_hue_is_an_angle(self):
        hsv = FloatColor.new(0.0, 0.0, 1.0).to_hsv()
        assert hsv.h.value == pytest.approx(Angle(2.0 / 3.0 * 2.0 * math.pi).value)

    def test_offset_hue_wraps(self):
        hsv = HSVColor(Angle(3.0), UNFloat.ONE, UNFloat.ONE, UNFloat.ONE)
        assert hsv.offset_hue(Angle(1.0)).h.value == pytest.approx(4.0 - 2.0 * math.pi)

    def test_cmyk(self):
        cmyk = FloatColor.new(1.0, 0.0, 0.0, 0.5).to_cmyk()
        assert (cmyk.c.value, cmyk.m.value, cmyk.y.value, cmyk.k.value) == (0.0, 1.0, 1.0, 0.0)
        assert cmyk.a.value == 0.5
        back = cmyk.to_float()
        assert (back.r.value, back.g.value, back.b.value) == (1.0, 0.0, 0.0)

    def test_cmyk_black_keeps_alpha(self):
        cmyk = FloatColor.new(0.0, 0.0, 0.0, 0.25).to_cmyk()
        assert cmyk.k == UNFloat.ONE
        assert cmyk.a.value == 0.25

    def test_lab_white(self):
        lab = FloatColor.WHITE.to_lab()
        assert lab.l.value == pytest.approx(1.0, abs=1e-3)
        assert lab.ab.re.value == pytest.approx(0.0, abs=1e-3)
        assert lab.ab.im.value == pytest.approx(0.0, abs=1e-3)

    def test_lab_round_trip(self):
        color = FloatColor.new(0.3, 0.5, 0.7, 0.8)
        back = color.to_lab().to_float()
        for a, b in zip(color.channels(), back.channels()):
            assert a.value == pytest.approx(b.value, abs=1e-3)

    def test_json(self, rng):
        for model in (FloatColor, HSVColor, CMYKColor, LABColor):
            value = model.random(rng)
            assert model.from_json(value.to_json()) == value


class TestColorBlend:
    a = FloatColor.new(0.25, 0.75, 0.5, 0.0)
    b = FloatColor.new(0.5, 0.5, 0.5, 1.0)

    def test_overlay(self):
        result = ColorBlendFunctions.OVERLAY.blend(self.a, self.b)
        assert result.r.value == pytest.approx(0.25)
        assert result.g.value == pytest.approx(0.75)
        assert result.b.value == pytest.approx(0.5)

    def test_screen_dodge(self):
        result = ColorBlendFunctions.SCREEN_DODGE.blend(self.a, self.b)
        assert result.r.value == pytest.approx(0.625)
        assert result.g.value == pytest.approx(0.875)

    def test_alpha_is_averaged(self, rng):
        for blend in ColorBlendFunctions:
            assert blend.blend(self.a, self.b, rng).a.value == pytest.approx(0.5)

    def test_dissolve_picks_one_input(self, rng):
        for _ in range(10):
            result = ColorBlendFunctions.DISSOLVE.blend(self.a, self.b, rng)
            assert (result.r, result.g, result.b) in ((self.a.r, self.a.g, self.a.b), (self.b.r, self.b.g, self.b.b))

    def test_dissolve_needs_generator(self):
        with pytest.raises(InvariantError):
            ColorBlendFunctions.DISSOLVE.blend(self.a, self.b)
