"""Generate / mutate / update contract shared by every evolvable type.

An external search process drives these three entry points. Randomness is always
passed in; the optional ``ProtoArg`` context carries the event hook that a profiler
listens on.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

import numpy as np

from .errors import DecodeError

if TYPE_CHECKING:
    from .profiler import MutagenProfiler


class EventKind(Enum):
    GENERATE = "generate"
    MUTATE = "mutate"
    UPDATE = "update"


@dataclass(frozen=True)
class Event:
    key: str
    kind: EventKind


@dataclass
class ProtoArg:
    """Context threaded through recursive generation, mutation and update."""
    profiler: Optional["MutagenProfiler"] = None

    def handle_event(self, event: Event):
        if self.profiler is not None:
            self.profiler.handle_event(event)


def notify(arg: Optional[ProtoArg], key: str, kind: EventKind):
    if arg is not None:
        arg.handle_event(Event(key=key, kind=kind))


class Mutagen:
    """Mixin giving a value type the generate/mutate/update entry points.

    Types provide ``random(rng)``; composites override ``_generate``/``_mutate``
    to recurse into their fields. Values are immutable, so ``mutate`` and
    ``update`` return the new value instead of changing the receiver.
    """

    @classmethod
    def generate(cls, rng: np.random.Generator, arg: Optional[ProtoArg] = None):
        notify(arg, cls.__name__, EventKind.GENERATE)
        return cls._generate(rng, arg)

    @classmethod
    def _generate(cls, rng: np.random.Generator, arg: Optional[ProtoArg]):
        return cls.random(rng)

    def mutate(self, rng: np.random.Generator, arg: Optional[ProtoArg] = None):
        notify(arg, type(self).__name__, EventKind.MUTATE)
        return self._mutate(rng, arg)

    def _mutate(self, rng: np.random.Generator, arg: Optional[ProtoArg]):
        return type(self)._generate(rng, arg)

    def update(self, arg: Optional[ProtoArg] = None):
        notify(arg, type(self).__name__, EventKind.UPDATE)
        return self


class EnumMutagen(Mutagen):
    """Mixin for closed ``Enum`` families: uniform resample, serialized by member name."""

    @classmethod
    def random(cls, rng: np.random.Generator):
        members = list(cls)
        return members[int(rng.integers(0, len(members)))]

    def to_json(self) -> str:
        return self.name

    @classmethod
    def from_json(cls, data):
        try:
            return cls[data]
        except (KeyError, TypeError):
            raise DecodeError(f"Unknown {cls.__name__}: {data!r}") from None
