"""Boolean and fixed-width modular integer types.

Arithmetic wraps at the type's width. Dividing or taking a modulus by zero is
defined: the (zero) divisor is returned unchanged.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .errors import DecodeError, InvariantError
from .traits import Mutagen, ProtoArg
from .util import coin_flip

U32_MODULUS = 1 << 32
I32_MIN = -(1 << 31)
I32_MAX = (1 << 31) - 1


def _wrap_u32(value: int) -> int:
    return value % U32_MODULUS


def _wrap_i32(value: int) -> int:
    return (value - I32_MIN) % U32_MODULUS + I32_MIN


def _truncating_divmod(a: int, b: int):
    """Quotient rounded toward zero and the matching remainder."""
    quotient = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        quotient = -quotient
    return quotient, a - b * quotient


def _decode_int(name: str, data, low: int, high: int) -> int:
    if isinstance(data, bool) or not isinstance(data, int):
        raise DecodeError(f"Invalid {name}: expected an integer, got {data!r}")
    if not low <= data <= high:
        raise DecodeError(f"{name} out of range: {data}")
    return data


@dataclass(frozen=True)
class Boolean(Mutagen):
    value: bool = False

    def __post_init__(self):
        object.__setattr__(self, "value", bool(self.value))

    def into_inner(self) -> bool:
        return self.value

    def __bool__(self):
        return self.value

    @classmethod
    def random(cls, rng: np.random.Generator) -> "Boolean":
        return cls(coin_flip(rng))

    def _mutate(self, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "Boolean":
        if coin_flip(rng):
            return Boolean.random(rng)
        return Boolean(not self.value)

    def to_json(self) -> bool:
        return self.value

    @classmethod
    def from_json(cls, data) -> "Boolean":
        if not isinstance(data, bool):
            raise DecodeError(f"Invalid Boolean: {data!r}")
        return cls(data)


@dataclass(frozen=True)
class Nibble(Mutagen):
    """Integer in [0, 16)."""
    value: int = 0

    MODULUS = 16

    def __post_init__(self):
        object.__setattr__(self, "value", int(self.value))
        if not 0 <= self.value < self.MODULUS:
            raise InvariantError(f"Invalid Nibble value: {self.value}")

    @classmethod
    def new_circular(cls, value: int) -> "Nibble":
        return cls(value % cls.MODULUS)

    def into_inner(self) -> int:
        return self.value

    def __int__(self):
        return self.value

    def circular_add(self, other: "Nibble") -> "Nibble":
        return Nibble.new_circular(self.value + other.value)

    def circular_multiply(self, other: "Nibble") -> "Nibble":
        return Nibble.new_circular(self.value * other.value)

    def divide(self, other: "Nibble") -> "Nibble":
        if other.value == 0:
            return other
        return Nibble(self.value // other.value)

    def modulus(self, other: "Nibble") -> "Nibble":
        if other.value == 0:
            return other
        return Nibble(self.value % other.value)

    @classmethod
    def random(cls, rng: np.random.Generator) -> "Nibble":
        return cls(int(rng.integers(0, cls.MODULUS)))

    def _mutate(self, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "Nibble":
        choice = rng.integers(0, 3)
        if choice == 0:
            return Nibble.new_circular(self.value + 1)
        elif choice == 1:
            return Nibble.new_circular(self.value - 1)
        return Nibble.random(rng)

    def to_json(self) -> int:
        return self.value

    @classmethod
    def from_json(cls, data) -> "Nibble":
        return cls(_decode_int("Nibble", data, 0, cls.MODULUS - 1))


@dataclass(frozen=True)
class Byte(Mutagen):
    """Wrapping 8-bit unsigned integer."""
    value: int = 0

    def __post_init__(self):
        object.__setattr__(self, "value", int(self.value))
        if not 0 <= self.value <= 255:
            raise InvariantError(f"Invalid Byte value: {self.value}")

    def into_inner(self) -> int:
        return self.value

    def __int__(self):
        return self.value

    def circular_add(self, other: "Byte") -> "Byte":
        return Byte((self.value + other.value) % 256)

    def circular_add_i32(self, other: int) -> "Byte":
        return Byte((self.value + other) % 256)

    def clamped_add_i32(self, other: int) -> "Byte":
        return Byte(min(max(self.value + other, 0), 255))

    def circular_multiply(self, other: "Byte") -> "Byte":
        return Byte((self.value * other.value) % 256)

    def invert_wrapped(self) -> "Byte":
        return Byte(255 - self.value)

    def divide(self, other: "Byte") -> "Byte":
        if other.value == 0:
            return other
        return Byte(self.value // other.value)

    def modulus(self, other: "Byte") -> "Byte":
        if other.value == 0:
            return other
        return Byte(self.value % other.value)

    @classmethod
    def random(cls, rng: np.random.Generator) -> "Byte":
        return cls(int(rng.integers(0, 256)))

    def _mutate(self, rng: np.random.Generator, arg: Optional[ProtoArg]) -> "Byte":
        choice = rng.integers(0, 5)
        if choice == 0:
            return Byte((self.value + 1) % 256)
        elif choice == 1:
            return Byte((self.value - 1) % 256)
        elif choice == 2:
            return Byte(min(self.value + 1, 255))
        elif choice == 3:
            return Byte(max(self.value - 1, 0))
        return Byte.random(rng)

    def to_json(self) -> int:
        return self.value

    @classmethod
    def from_json(cls, data) -> "Byte":
        return cls(_decode_int("Byte", data, 0, 255))


@dataclass(frozen=True)
class UInt(Mutagen):
    """Wrapping 32-bit unsigned integer."""
    value: int = 0

    def __post_init__(self):
        object.__setattr__(self, "value", int(self.value))
        if not 0 <= self.value < U32_MODULUS:
            raise InvariantError(f"Invalid UInt value: {self.value}")

    def into_inner(self) -> int:
        return self.value

    def __int__(self):
        return self.value

    def circular_add(self, other: "UInt") -> "UInt":
        return UInt(_wrap_u32(self.value + other.value))

    def circular_multiply(self, other: "UInt") -> "UInt":
        return UInt(_wrap_u32(self.value * other.value))

    def divide(self, other: "UInt") -> "UInt":
        if other.value == 0:
            return other
        return UInt(self.value // other.value)

    def modulus(self, other: "UInt") -> "UInt":
        if other.value == 0:
            return other
        return UInt(self.value % other.value)

    @classmethod
    def random(cls, rng: np.random.Generator) -> "UInt":
        return cls(int(rng.integers(0, U32_MODULUS, dtype=np.uint64)))

    def to_json(self) -> int:
        return self.value

    @classmethod
    def from_json(cls, data) -> "UInt":
        return cls(_decode_int("UInt", data, 0, U32_MODULUS - 1))


@dataclass(frozen=True)
class SInt(Mutagen):
    """Wrapping 32-bit signed integer; division truncates toward zero."""
    value: int = 0

    def __post_init__(self):
        object.__setattr__(self, "value", int(self.value))
        if not I32_MIN <= self.value <= I32_MAX:
            raise InvariantError(f"Invalid SInt value: {self.value}")

    def into_inner(self) -> int:
        return self.value

    def __int__(self):
        return self.value

    def circular_add(self, other: "SInt") -> "SInt":
        return SInt(_wrap_i32(self.value + other.value))

    def circular_multiply(self, other: "SInt") -> "SInt":
        return SInt(_wrap_i32(self.value * other.value))

    def divide(self, other: "SInt") -> "SInt":
        if other.value == 0:
            return other
        quotient, _ = _truncating_divmod(self.value, other.value)
        return SInt(_wrap_i32(quotient))

    def modulus(self, other: "SInt") -> "SInt":
        if other.value == 0:
            return other
        _, remainder = _truncating_divmod(self.value, other.value)
        return SInt(_wrap_i32(remainder))

    @classmethod
    def random(cls, rng: np.random.Generator) -> "SInt":
        return cls(int(rng.integers(I32_MIN, I32_MAX, endpoint=True)))

    def to_json(self) -> int:
        return self.value

    @classmethod
    def from_json(cls, data) -> "SInt":
        return cls(_decode_int("SInt", data, I32_MIN, I32_MAX))
