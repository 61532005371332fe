import numpy as np
import pytest
from PIL import Image

from evoprims.buffers import Buffer, BufferInfo, bresenham, point_to_uint
from evoprims.colors import BitColor, ByteColor
from evoprims.discrete import Byte
from evoprims.errors import DecodeError, InvariantError
from evoprims.points import SNPoint
from evoprims.profiler import MutagenProfiler
from evoprims.traits import EventKind, ProtoArg


@pytest.fixture
def rng():
    return np.random.default_rng(3)


def p(x, y):
    return SNPoint.new(x, y)


def marked(buffer):
    return {(x, y) for y, x in zip(*np.nonzero(buffer.array))}


class TestBuffer:
    def test_point_to_uint(self):
        assert point_to_uint(p(-1.0, -1.0), 100, 100) == (0, 0)
        assert point_to_uint(p(0.0, 0.0), 100, 100) == (50, 50)
        assert point_to_uint(p(1.0, 1.0), 100, 100) == (99, 99)

    @pytest.mark.parametrize(
        "start, end, expected",
        [
            ((-1.0, -1.0), (-0.5, -0.5), {(0, 0), (1, 1)}),
            ((-1.0, -1.0), (0.0, 0.0), {(0, 0), (1, 1), (2, 2)}),
            ((-1.0, -1.0), (1.0, 1.0), {(0, 0), (1, 1), (2, 2), (3, 3)}),
            ((1.0, -1.0), (1.0, 1.0), {(3, 0), (3, 1), (3, 2), (3, 3)}),
            ((-1.0, 1.0), (1.0, -1.0), {(0, 3), (1, 2), (2, 1), (3, 0)}),
        ],
    )
    def test_draw_line(self, start, end, expected):
        buffer = Buffer(4, 4, fill=False, dtype=bool)
        buffer.draw_line(p(*start), p(*end), True)
        assert marked(buffer) == expected

    def test_bresenham_shallow_line_includes_both_ends(self):
        cells = list(bresenham((0, 0), (5, 2)))
        assert cells[0] == (0, 0)
        assert cells[-1] == (5, 2)
        assert len(cells) == 6

    def test_draw_dot_and_indexing(self):
        buffer = Buffer(4, 4, fill=0, dtype=np.int32)
        buffer.draw_dot(p(0.0, 0.0), 7)
        assert buffer[2, 2] == 7
        assert buffer[p(0.0, 0.0)] == 7
        assert buffer.array[2, 2] == 7
        buffer[3, 0] = 9
        assert buffer.array[0, 3] == 9

    def test_dimensions(self):
        buffer = Buffer(3, 5)
        assert (buffer.width, buffer.height) == (3, 5)
        assert buffer.array.shape == (5, 3)
        with pytest.raises(InvariantError):
            Buffer(0, 5)

    def test_from_array_copies(self):
        array = np.zeros((2, 3), dtype=np.uint8)
        buffer = Buffer.from_array(array)
        array[0, 0] = 1
        assert buffer[0, 0] == 0
        assert (buffer.width, buffer.height) == (3, 2)

    def test_json_keeps_only_dimensions(self):
        buffer = Buffer(3, 2, fill=BitColor.RED)
        data = buffer.to_json()
        assert data == {"width": 3, "height": 2}
        loaded = Buffer.from_json(data, fill=BitColor.BLACK)
        assert (loaded.width, loaded.height) == (3, 2)
        assert loaded[0, 0] == BitColor.BLACK

    @pytest.mark.parametrize("data", [{"width": 3}, {"width": 0, "height": 2}, {"width": "3", "height": 2}, [3, 2]])
    def test_info_rejects_bad_payloads(self, data):
        with pytest.raises(DecodeError):
            BufferInfo.from_json(data)

    def test_generate_with(self, rng):
        profiler = MutagenProfiler()
        buffer = Buffer.generate_with(BitColor, rng, ProtoArg(profiler=profiler))
        assert 1 <= buffer.width <= 256 and 1 <= buffer.height <= 256
        assert all(isinstance(cell, BitColor) for cell in buffer.array.ravel())
        assert profiler.count(EventKind.GENERATE, "Buffer") == 1
        assert profiler.count(EventKind.GENERATE, "BitColor") == buffer.width * buffer.height
        assert buffer.mutate(rng) is buffer

    def test_image_round_trip(self):
        buffer = Buffer(2, 2, fill=ByteColor(Byte(1), Byte(2), Byte(3), Byte(4)))
        buffer[1, 0] = ByteColor(Byte(255), Byte(0), Byte(0), Byte(255))
        image = buffer.to_image()
        assert image.size == (2, 2)
        assert image.getpixel((1, 0)) == (255, 0, 0, 255)
        back = Buffer.from_image(image)
        assert back[1, 0] == buffer[1, 0]
        assert back[0, 1] == buffer[0, 1]

    def test_bit_color_image(self):
        buffer = Buffer(1, 1, fill=BitColor.CYAN)
        assert buffer.to_image().getpixel((0, 0)) == (0, 255, 255, 255)

    def test_from_rgb_image_gets_opaque_alpha(self):
        image = Image.new("RGB", (2, 1), (10, 20, 30))
        buffer = Buffer.from_image(image)
        assert buffer[1, 0].to_rgba() == (10, 20, 30, 255)
