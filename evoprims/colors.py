"""Color models and the (lossy) conversions between them.

FloatColor is the hub: Byte, Nibble and Bit colors convert to and from it, and the
polar/perceptual models (HSV, CMYK, LAB) are derived from it. Alpha is carried
through every conversion that has an alpha channel.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np
from skimage.color import hsv2rgb, lab2rgb, rgb2hsv, rgb2lab

from .complexes import SNComplex
from .continuous import TAU, Angle, SNFloat, UNFloat
from .discrete import Byte, Nibble
from .errors import DecodeError
from .traits import EnumMutagen, Mutagen, ProtoArg
from .util import coin_flip

Components = Tuple[bool, bool, bool]

# Largest magnitude of the CIE a*/b* axes mapped onto [-1, 1]
LAB_AB_RANGE = 127.0
LAB_L_RANGE = 100.0


def _pixel(r: float, g: float, b: float) -> np.ndarray:
    return np.array([[[r, g, b]]], dtype=np.float64)


def rgb_tuple_to_hsv_tuple(r: float, g: float, b: float) -> Tuple[float, float, float]:
    """All inputs and outputs in [0, 1]; hue is a fraction of a full turn."""
    h, s, v = rgb2hsv(_pixel(r, g, b))[0, 0]
    return float(h), float(s), float(v)


def hsv_tuple_to_rgb_tuple(h: float, s: float, v: float) -> Tuple[float, float, float]:
    r, g, b = np.clip(hsv2rgb(_pixel(h, s, v))[0, 0], 0.0, 1.0)
    return float(r), float(g), float(b)


def _decode_channels(name: str, data, keys, decoder):
    if not isinstance(data, dict):
        raise DecodeError(f"Invalid {name}: expected an object, got {data!r}")
    try:
        return [decoder(data[key]) for key in keys]
    except KeyError as e:
        raise DecodeError(f"Invalid {name}: missing channel {e}") from None


class BitColor(EnumMutagen, Enum):
    """The eight corners of the RGB cube; the value is the color's index."""
    BLACK = 0
    RED = 1
    GREEN = 2
    BLUE = 3
    CYAN = 4
    MAGENTA = 5
    YELLOW = 6
    WHITE = 7

    def to_index(self) -> int:
        return self.value

    @classmethod
    def from_index(cls, index: int) -> "BitColor":
        return cls(index)

    @classmethod
    def values(cls):
        return list(cls)

    def to_components(self) -> Components:
        return _BIT_COMPONENTS[self]

    @classmethod
    def from_components(cls, components) -> "BitColor":
        return _COMPONENTS_BIT[tuple(bool(c) for c in components)]

    def has_color(self, other: "BitColor") -> bool:
        """True if the two colors share at least one channel."""
        return any(a and b for a, b in zip(self.to_components(), other.to_components()))

    def give_color(self, other: "BitColor") -> Components:
        return tuple(a or b for a, b in zip(self.to_components(), other.to_components()))

    def take_color(self, other: "BitColor") -> Components:
        return tuple(a and not b for a, b in zip(self.to_components(), other.to_components()))

    def xor_color(self, other: "BitColor") -> Components:
        return tuple(a != b for a, b in zip(self.to_components(), other.to_components()))

    def eq_color(self, other: "BitColor") -> Components:
        return tuple(a == b for a, b in zip(self.to_components(), other.to_components()))

    def get_color(self) -> "ByteColor":
        r, g, b = (255 if c else 0 for c in self.to_components())
        return ByteColor(Byte(r), Byte(g), Byte(b), Byte(255))

    def to_float(self) -> "FloatColor":
        r, g, b = (UNFloat.ONE if c else UNFloat.ZERO for c in self.to_components())
        return FloatColor(r, g, b, UNFloat.ONE)

    @classmethod
    def from_float(cls, color: "FloatColor") -> "BitColor":
        return cls.from_components((color.r.value >= 0.5, color.g.value >= 0.5, color.b.value >= 0.5))

    @classmethod
    def from_byte(cls, color: "ByteColor") -> "BitColor":
        return cls.from_components((color.r.value > 127, color.g.value > 127, color.b.value > 127))

    @classmethod
    def random(cls, rng: np.random.Generator) -> "BitColor":
        return cls.from_components((coin_flip(rng), coin_flip(rng), coin_flip(rng)))

    def _mutate(self, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "BitColor":
        components = list(self.to_components())
        for i in range(3):
            if coin_flip(rng):
                components[i] = coin_flip(rng)
        return BitColor.from_components(components)


_BIT_COMPONENTS = {
    BitColor.BLACK: (False, False, False),
    BitColor.RED: (True, False, False),
    BitColor.GREEN: (False, True, False),
    BitColor.BLUE: (False, False, True),
    BitColor.CYAN: (False, True, True),
    BitColor.MAGENTA: (True, False, True),
    BitColor.YELLOW: (True, True, False),
    BitColor.WHITE: (True, True, True),
}
_COMPONENTS_BIT = {components: color for color, components in _BIT_COMPONENTS.items()}


@dataclass(frozen=True)
class NibbleColor(Mutagen):
    r: Nibble = Nibble(0)
    g: Nibble = Nibble(0)
    b: Nibble = Nibble(0)
    a: Nibble = Nibble(0)

    @classmethod
    def from_float(cls, color: "FloatColor") -> "NibbleColor":
        def to_nibble(channel: UNFloat) -> Nibble:
            return Nibble(min(int(channel.value * 16.0), Nibble.MODULUS - 1))

        return cls(to_nibble(color.r), to_nibble(color.g), to_nibble(color.b), to_nibble(color.a))

    @classmethod
    def random(cls, rng: np.random.Generator) -> "NibbleColor":
        return cls(Nibble.random(rng), Nibble.random(rng), Nibble.random(rng), Nibble.random(rng))

    def to_json(self) -> dict:
        return {"r": self.r.value, "g": self.g.value, "b": self.b.value, "a": self.a.value}

    @classmethod
    def from_json(cls, data) -> "NibbleColor":
        return cls(*_decode_channels("NibbleColor", data, "rgba", Nibble.from_json))


@dataclass(frozen=True)
class ByteColor(Mutagen):
    r: Byte = Byte(0)
    g: Byte = Byte(0)
    b: Byte = Byte(0)
    a: Byte = Byte(0)

    @classmethod
    def from_rgba(cls, pixel) -> "ByteColor":
        """From an ``(r, g, b, a)`` tuple such as a PIL RGBA pixel."""
        r, g, b, a = pixel
        return cls(Byte(r), Byte(g), Byte(b), Byte(a))

    def to_rgba(self) -> Tuple[int, int, int, int]:
        return self.r.value, self.g.value, self.b.value, self.a.value

    @classmethod
    def from_float(cls, color: "FloatColor") -> "ByteColor":
        return cls(*(Byte(int(round(channel.value * 255.0))) for channel in color.channels()))

    def to_float(self) -> "FloatColor":
        return FloatColor.from_byte(self)

    def to_bit(self) -> BitColor:
        return BitColor.from_byte(self)

    def add_bit_color(self, other: BitColor) -> "ByteColor":
        """Step each RGB channel up by one where other has it, down by one where it doesn't."""
        r, g, b = (1 if c else -1 for c in other.to_components())
        return ByteColor(
            self.r.circular_add_i32(r),
            self.g.circular_add_i32(g),
            self.b.circular_add_i32(b),
            self.a,
        )

    @classmethod
    def random(cls, rng: np.random.Generator) -> "ByteColor":
        return cls(Byte.random(rng), Byte.random(rng), Byte.random(rng), Byte.random(rng))

    @classmethod
    def _generate(cls, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "ByteColor":
        return cls(Byte.generate(rng, arg), Byte.generate(rng, arg), Byte.generate(rng, arg), Byte.generate(rng, arg))

    def _mutate(self, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "ByteColor":
        channels = list(self.to_rgba_bytes())
        index = int(rng.integers(0, 4))
        channels[index] = channels[index].mutate(rng, arg)
        return ByteColor(*channels)

    def to_rgba_bytes(self) -> Tuple[Byte, Byte, Byte, Byte]:
        return self.r, self.g, self.b, self.a

    def to_json(self) -> dict:
        return {"r": self.r.value, "g": self.g.value, "b": self.b.value, "a": self.a.value}

    @classmethod
    def from_json(cls, data) -> "ByteColor":
        return cls(*_decode_channels("ByteColor", data, "rgba", Byte.from_json))


@dataclass(frozen=True)
class FloatColor(Mutagen):
    r: UNFloat = UNFloat.ZERO
    g: UNFloat = UNFloat.ZERO
    b: UNFloat = UNFloat.ZERO
    a: UNFloat = UNFloat.ZERO

    @classmethod
    def new(cls, r: float, g: float, b: float, a: float = 1.0) -> "FloatColor":
        return cls(UNFloat(r), UNFloat(g), UNFloat(b), UNFloat(a))

    def channels(self) -> Tuple[UNFloat, UNFloat, UNFloat, UNFloat]:
        return self.r, self.g, self.b, self.a

    def get_average(self) -> float:
        return (self.r.value + self.g.value + self.b.value) / 3.0

    def get_hue_unfloat(self) -> UNFloat:
        """Hue as a fraction of a turn, computed directly from the RGB channels."""
        r, g, b = self.r.value, self.g.value, self.b.value
        lo = min(r, g, b)
        hi = max(r, g, b)

        if hi == lo:
            return UNFloat(0.0)

        if hi == r:
            hue = (g - b) / (hi - lo)
        elif hi == g:
            hue = 2.0 + (b - r) / (hi - lo)
        else:
            hue = 4.0 + (r - g) / (hi - lo)

        hue *= 60.0
        if hue < 0.0:
            hue += 360.0
        return UNFloat.new_clamped(hue / 360.0)

    def get_saturation_unfloat(self) -> UNFloat:
        return UNFloat.new_clamped(rgb_tuple_to_hsv_tuple(self.r.value, self.g.value, self.b.value)[1])

    def get_value_unfloat(self) -> UNFloat:
        return UNFloat.new_clamped(rgb_tuple_to_hsv_tuple(self.r.value, self.g.value, self.b.value)[2])

    def lerp(self, other: "FloatColor", scalar: UNFloat) -> "FloatColor":
        return FloatColor(
            self.r.lerp(other.r, scalar),
            self.g.lerp(other.g, scalar),
            self.b.lerp(other.b, scalar),
            self.a.lerp(other.a, scalar),
        )

    @classmethod
    def from_byte(cls, color: ByteColor) -> "FloatColor":
        return cls(*(UNFloat(channel.value / 255.0) for channel in color.to_rgba_bytes()))

    @classmethod
    def from_bit(cls, color: BitColor) -> "FloatColor":
        return color.to_float()

    @classmethod
    def from_hsv(cls, color: "HSVColor") -> "FloatColor":
        hue = (color.h.value / TAU) % 1.0
        r, g, b = hsv_tuple_to_rgb_tuple(hue, color.s.value, color.v.value)
        return cls(UNFloat(r), UNFloat(g), UNFloat(b), color.a)

    @classmethod
    def from_cmyk(cls, color: "CMYKColor") -> "FloatColor":
        k = 1.0 - color.k.value
        return cls(
            UNFloat((1.0 - color.c.value) * k),
            UNFloat((1.0 - color.m.value) * k),
            UNFloat((1.0 - color.y.value) * k),
            color.a,
        )

    @classmethod
    def from_lab(cls, color: "LABColor") -> "FloatColor":
        lab = _pixel(
            color.l.value * LAB_L_RANGE,
            color.ab.re.value * LAB_AB_RANGE,
            color.ab.im.value * LAB_AB_RANGE,
        )
        r, g, b = np.clip(lab2rgb(lab)[0, 0], 0.0, 1.0)
        return cls(UNFloat(r), UNFloat(g), UNFloat(b), color.alpha)

    def to_byte(self) -> ByteColor:
        return ByteColor.from_float(self)

    def to_nibble(self) -> NibbleColor:
        return NibbleColor.from_float(self)

    def to_bit(self) -> BitColor:
        return BitColor.from_float(self)

    def to_hsv(self) -> "HSVColor":
        return HSVColor.from_float(self)

    def to_cmyk(self) -> "CMYKColor":
        return CMYKColor.from_float(self)

    def to_lab(self) -> "LABColor":
        return LABColor.from_float(self)

    @classmethod
    def random(cls, rng: np.random.Generator) -> "FloatColor":
        return cls(UNFloat.random(rng), UNFloat.random(rng), UNFloat.random(rng), UNFloat.random(rng))

    def to_json(self) -> dict:
        return {"r": self.r.value, "g": self.g.value, "b": self.b.value, "a": self.a.value}

    @classmethod
    def from_json(cls, data) -> "FloatColor":
        return cls(*_decode_channels("FloatColor", data, "rgba", UNFloat.from_json))


@dataclass(frozen=True)
class HSVColor(Mutagen):
    """Hue as an angle; saturation, value and alpha in [0, 1]."""
    h: Angle = Angle.ZERO
    s: UNFloat = UNFloat.ZERO
    v: UNFloat = UNFloat.ZERO
    a: UNFloat = UNFloat.ZERO

    @classmethod
    def from_float(cls, color: FloatColor) -> "HSVColor":
        h, s, v = rgb_tuple_to_hsv_tuple(color.r.value, color.g.value, color.b.value)
        return cls(Angle(h * TAU), UNFloat.new_clamped(s), UNFloat.new_clamped(v), color.a)

    def to_float(self) -> FloatColor:
        return FloatColor.from_hsv(self)

    def lerp(self, other: "HSVColor", scalar: UNFloat) -> "HSVColor":
        return HSVColor(
            self.h.lerp(other.h, scalar),
            self.s.lerp(other.s, scalar),
            self.v.lerp(other.v, scalar),
            self.a.lerp(other.a, scalar),
        )

    def offset_hue(self, hue: Angle) -> "HSVColor":
        return HSVColor(self.h + hue, self.s, self.v, self.a)

    @classmethod
    def random(cls, rng: np.random.Generator) -> "HSVColor":
        return cls(Angle.random(rng), UNFloat.random(rng), UNFloat.random(rng), UNFloat.random(rng))

    def to_json(self) -> dict:
        return {"h": self.h.value, "s": self.s.value, "v": self.v.value, "a": self.a.value}

    @classmethod
    def from_json(cls, data) -> "HSVColor":
        h, = _decode_channels("HSVColor", data, "h", Angle.from_json)
        s, v, a = _decode_channels("HSVColor", data, "sva", UNFloat.from_json)
        return cls(h, s, v, a)


@dataclass(frozen=True)
class CMYKColor(Mutagen):
    c: UNFloat = UNFloat.ZERO
    m: UNFloat = UNFloat.ZERO
    y: UNFloat = UNFloat.ZERO
    k: UNFloat = UNFloat.ZERO
    a: UNFloat = UNFloat.ZERO

    @classmethod
    def from_float(cls, color: FloatColor) -> "CMYKColor":
        r, g, b = color.r.value, color.g.value, color.b.value
        brightest = max(r, g, b)

        if brightest > 0.0:
            return cls(
                UNFloat((brightest - r) / brightest),
                UNFloat((brightest - g) / brightest),
                UNFloat((brightest - b) / brightest),
                UNFloat(1.0 - brightest),
                color.a,
            )
        return cls(CMYKColor.BLACK.c, CMYKColor.BLACK.m, CMYKColor.BLACK.y, CMYKColor.BLACK.k, color.a)

    def to_float(self) -> FloatColor:
        return FloatColor.from_cmyk(self)

    def lerp(self, other: "CMYKColor", scalar: UNFloat) -> "CMYKColor":
        return CMYKColor(
            self.c.lerp(other.c, scalar),
            self.m.lerp(other.m, scalar),
            self.y.lerp(other.y, scalar),
            self.k.lerp(other.k, scalar),
            self.a.lerp(other.a, scalar),
        )

    @classmethod
    def random(cls, rng: np.random.Generator) -> "CMYKColor":
        return cls(*(UNFloat.random(rng) for _ in range(5)))

    def to_json(self) -> dict:
        return {"c": self.c.value, "m": self.m.value, "y": self.y.value, "k": self.k.value, "a": self.a.value}

    @classmethod
    def from_json(cls, data) -> "CMYKColor":
        return cls(*_decode_channels("CMYKColor", data, "cmyka", UNFloat.from_json))


@dataclass(frozen=True)
class LABColor(Mutagen):
    """CIE L*a*b* with lightness scaled by 100 and a*/b* packed into one complex scaled by 127."""
    l: SNFloat = SNFloat.ZERO
    ab: SNComplex = SNComplex.ZERO
    alpha: UNFloat = UNFloat.ZERO

    @classmethod
    def from_float(cls, color: FloatColor) -> "LABColor":
        lightness, a, b = rgb2lab(_pixel(color.r.value, color.g.value, color.b.value))[0, 0]
        a = float(np.clip(a, -LAB_AB_RANGE, LAB_AB_RANGE)) / LAB_AB_RANGE
        b = float(np.clip(b, -LAB_AB_RANGE, LAB_AB_RANGE)) / LAB_AB_RANGE
        return cls(SNFloat.new_clamped(float(lightness) / LAB_L_RANGE), SNComplex.new(complex(a, b)), color.a)

    def to_float(self) -> FloatColor:
        return FloatColor.from_lab(self)

    def lerp(self, other: "LABColor", scalar: UNFloat) -> "LABColor":
        return LABColor(
            self.l.lerp(other.l, scalar),
            self.ab.lerp(other.ab, scalar),
            self.alpha.lerp(other.alpha, scalar),
        )

    @classmethod
    def random(cls, rng: np.random.Generator) -> "LABColor":
        return cls(SNFloat.random(rng), SNComplex.random(rng), UNFloat.random(rng))

    def to_json(self) -> dict:
        return {"l": self.l.value, "ab": self.ab.to_json(), "alpha": self.alpha.value}

    @classmethod
    def from_json(cls, data) -> "LABColor":
        l, = _decode_channels("LABColor", data, ["l"], SNFloat.from_json)
        ab, = _decode_channels("LABColor", data, ["ab"], SNComplex.from_json)
        alpha, = _decode_channels("LABColor", data, ["alpha"], UNFloat.from_json)
        return cls(l, ab, alpha)


FloatColor.ALL_ZERO = FloatColor()
FloatColor.WHITE = FloatColor(UNFloat.ONE, UNFloat.ONE, UNFloat.ONE, UNFloat.ONE)
FloatColor.BLACK = FloatColor(UNFloat.ZERO, UNFloat.ZERO, UNFloat.ZERO, UNFloat.ONE)

HSVColor.ALL_ZERO = HSVColor()
HSVColor.WHITE = HSVColor(Angle.ZERO, UNFloat.ZERO, UNFloat.ONE, UNFloat.ONE)
HSVColor.BLACK = HSVColor(Angle.ZERO, UNFloat.ZERO, UNFloat.ZERO, UNFloat.ONE)

CMYKColor.ALL_ZERO = CMYKColor()
CMYKColor.WHITE = CMYKColor(UNFloat.ZERO, UNFloat.ZERO, UNFloat.ZERO, UNFloat.ZERO, UNFloat.ONE)
CMYKColor.BLACK = CMYKColor(UNFloat.ZERO, UNFloat.ZERO, UNFloat.ZERO, UNFloat.ONE, UNFloat.ONE)

LABColor.ALL_ZERO = LABColor()
LABColor.WHITE = LABColor(SNFloat.ONE, SNComplex.ZERO, UNFloat.ONE)
LABColor.BLACK = LABColor(SNFloat.ZERO, SNComplex.ZERO, UNFloat.ONE)
