"""2D grids of values addressed by SNPoint or integer coordinates."""

from dataclasses import dataclass
from typing import Any, Iterator, Optional, Tuple

import numpy as np
from PIL import Image

from .colors import BitColor, ByteColor, FloatColor
from .discrete import Byte, _decode_int
from .errors import DecodeError, InvariantError
from .points import SNPoint
from .traits import EventKind, ProtoArg, notify

DEFAULT_WIDTH = 255
DEFAULT_HEIGHT = 255


def point_to_uint(point: SNPoint, width: int, height: int) -> Tuple[int, int]:
    """Map a point in [-1, 1]² to a (x, y) cell, rounding half up and clamping to the last cell."""
    x = int(np.floor(point.x.to_unsigned().value * width + 0.5))
    y = int(np.floor(point.y.to_unsigned().value * height + 0.5))
    return min(x, width - 1), min(y, height - 1)


def bresenham(start: Tuple[int, int], end: Tuple[int, int]) -> Iterator[Tuple[int, int]]:
    """Cells on the line from start to end, both endpoints included."""
    x0, y0 = start
    x1, y1 = end
    dx = abs(x1 - x0)
    dy = -abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx + dy

    while True:
        yield x0, y0
        if x0 == x1 and y0 == y1:
            return
        e2 = 2 * err
        if e2 >= dy:
            err += dy
            x0 += sx
        if e2 <= dx:
            err += dx
            y0 += sy


def _to_byte_color(cell) -> ByteColor:
    if isinstance(cell, ByteColor):
        return cell
    if isinstance(cell, BitColor):
        return cell.get_color()
    if isinstance(cell, FloatColor):
        return cell.to_byte()
    raise InvariantError(f"Cannot render {type(cell).__name__} as a pixel")


@dataclass(frozen=True)
class BufferInfo:
    """Serialized form of a Buffer: only its dimensions survive."""
    width: int
    height: int

    def load(self, fill: Any = None, dtype=object) -> "Buffer":
        return Buffer(self.width, self.height, fill=fill, dtype=dtype)

    def to_json(self) -> dict:
        return {"width": self.width, "height": self.height}

    @classmethod
    def from_json(cls, data) -> "BufferInfo":
        if not isinstance(data, dict):
            raise DecodeError(f"Invalid BufferInfo: {data!r}")
        try:
            width = data["width"]
            height = data["height"]
        except KeyError as e:
            raise DecodeError(f"BufferInfo missing field {e}") from None
        return cls(
            _decode_int("BufferInfo.width", width, 1, 2 ** 31 - 1),
            _decode_int("BufferInfo.height", height, 1, 2 ** 31 - 1),
        )


class Buffer:
    """A (height, width) numpy grid. Cells are read and written as ``buffer[x, y]`` or ``buffer[point]``."""

    def __init__(self, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT, fill: Any = None, dtype=object):
        if width < 1 or height < 1:
            raise InvariantError(f"Invalid Buffer size: {width}x{height}")
        self.array = np.full((height, width), fill, dtype=dtype)

    @classmethod
    def from_array(cls, array: np.ndarray) -> "Buffer":
        if array.ndim != 2:
            raise InvariantError(f"Buffer needs a 2D array, got shape {array.shape}")
        if array.size == 0:
            raise InvariantError("Buffer needs at least one cell")
        buffer = cls.__new__(cls)
        buffer.array = array.copy()
        return buffer

    @property
    def width(self) -> int:
        return self.array.shape[1]

    @property
    def height(self) -> int:
        return self.array.shape[0]

    def point_to_uint(self, point: SNPoint) -> Tuple[int, int]:
        return point_to_uint(point, self.width, self.height)

    def _cell(self, key) -> Tuple[int, int]:
        if isinstance(key, SNPoint):
            return self.point_to_uint(key)
        x, y = key
        return int(x), int(y)

    def __getitem__(self, key):
        x, y = self._cell(key)
        return self.array[y, x]

    def __setitem__(self, key, value):
        x, y = self._cell(key)
        self.array[y, x] = value

    def draw_dot(self, point: SNPoint, value):
        self[point] = value

    def draw_line(self, start: SNPoint, end: SNPoint, value):
        for x, y in bresenham(self.point_to_uint(start), self.point_to_uint(end)):
            self.array[y, x] = value

    def info(self) -> BufferInfo:
        return BufferInfo(self.width, self.height)

    @classmethod
    def generate_with(cls, cell_type, rng: np.random.Generator, arg: Optional[ProtoArg] = None) -> "Buffer":
        """Random dimensions in 1..256, every cell generated from cell_type."""
        notify(arg, cls.__name__, EventKind.GENERATE)
        width = Byte.generate(rng, arg).value + 1
        height = Byte.generate(rng, arg).value + 1
        buffer = cls(width, height)
        for y in range(height):
            for x in range(width):
                buffer.array[y, x] = cell_type.generate(rng, arg)
        return buffer

    def mutate(self, rng: np.random.Generator, arg: Optional[ProtoArg] = None) -> "Buffer":
        """Buffers are scratch space; mutation leaves the contents alone."""
        notify(arg, type(self).__name__, EventKind.MUTATE)
        return self

    def to_json(self) -> dict:
        return self.info().to_json()

    @classmethod
    def from_json(cls, data, fill: Any = None) -> "Buffer":
        return BufferInfo.from_json(data).load(fill)

    def to_image(self) -> Image.Image:
        """Render color cells (ByteColor, BitColor or FloatColor) as an RGBA image."""
        pixels = np.zeros((self.height, self.width, 4), dtype=np.uint8)
        for y in range(self.height):
            for x in range(self.width):
                pixels[y, x] = _to_byte_color(self.array[y, x]).to_rgba()
        return Image.fromarray(pixels)

    @classmethod
    def from_image(cls, image: Image.Image) -> "Buffer":
        pixels = np.asarray(image.convert("RGBA"))
        height, width = pixels.shape[:2]
        buffer = cls(width, height)
        for y in range(height):
            for x in range(width):
                buffer.array[y, x] = ByteColor.from_rgba(tuple(int(c) for c in pixels[y, x]))
        return buffer
