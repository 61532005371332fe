"""evoprims - bounded numeric, geometric, color and automata primitives for evolutionary search."""

from .automata_rules import (
    ElementaryAutomataRule,
    IndivAutomataRule,
    LifeLikeAutomataRule,
    LifeLikeTable,
    NeighbourCountAutomataRule,
    PixelNeighbourhood,
    life_like_from_birth_survival,
    parse_birth_survival,
)
from .automaton import ColorAutomaton, ElementaryAutomaton
from .buffers import Buffer, BufferInfo
from .color_blend import ColorBlendFunctions
from .colors import BitColor, ByteColor, CMYKColor, FloatColor, HSVColor, LABColor, NibbleColor
from .complexes import IterativeResult, SNComplex
from .continuous import Angle, SNFloat, UNFloat
from .discrete import Boolean, Byte, Nibble, SInt, UInt
from .distance_functions import DistanceFunction
from .errors import DecodeError, InvariantError
from .matrices import SNFloatMatrix3
from .normalisers import SFloatNormaliser, UFloatNormaliser
from .point_sets import PointSet, PointSetGenerator, PointSetKind
from .points import SNPoint
from .preloader import Preloader
from .profiler import MutagenProfiler
from .reseeders import Reseeder
from .traits import Event, EventKind, Mutagen, ProtoArg

__all__ = [
    "Angle",
    "BitColor",
    "Boolean",
    "Buffer",
    "BufferInfo",
    "Byte",
    "ByteColor",
    "CMYKColor",
    "ColorAutomaton",
    "ColorBlendFunctions",
    "DecodeError",
    "DistanceFunction",
    "ElementaryAutomataRule",
    "ElementaryAutomaton",
    "Event",
    "EventKind",
    "FloatColor",
    "HSVColor",
    "IndivAutomataRule",
    "InvariantError",
    "IterativeResult",
    "LABColor",
    "LifeLikeAutomataRule",
    "LifeLikeTable",
    "Mutagen",
    "MutagenProfiler",
    "NeighbourCountAutomataRule",
    "Nibble",
    "NibbleColor",
    "PixelNeighbourhood",
    "PointSet",
    "PointSetGenerator",
    "PointSetKind",
    "Preloader",
    "ProtoArg",
    "Reseeder",
    "SFloatNormaliser",
    "SInt",
    "SNComplex",
    "SNFloat",
    "SNFloatMatrix3",
    "SNPoint",
    "UFloatNormaliser",
    "UInt",
    "UNFloat",
    "life_like_from_birth_survival",
    "parse_birth_survival",
]
