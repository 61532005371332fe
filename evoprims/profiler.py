"""Counts of generate/mutate/update events, persisted as JSON."""

import json
import logging
from collections import Counter
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import DecodeError
from .traits import Event, EventKind

logger = logging.getLogger(__name__)

DEFAULT_PATH = "profile.json"

_SECTIONS = {
    EventKind.GENERATE: "generated",
    EventKind.MUTATE: "mutated",
    EventKind.UPDATE: "updated",
}


class MutagenProfiler:
    """Event sink for ``ProtoArg``: one counter of type names per event kind.

    Keys in ``blacklist`` are dropped, for container types that would drown out
    the values they hold.
    """

    def __init__(self, blacklist: Iterable[str] = ()):
        self.blacklist = frozenset(blacklist)
        self.counts: Dict[EventKind, Counter] = {kind: Counter() for kind in EventKind}

    def handle_event(self, event: Event):
        if event.key in self.blacklist:
            return
        self.counts[event.kind][event.key] += 1

    def count(self, kind: EventKind, key: str) -> int:
        return self.counts[kind][key]

    def total(self, kind: EventKind) -> int:
        return sum(self.counts[kind].values())

    def top(self, kind: EventKind, n: Optional[int] = None) -> List[Tuple[str, int]]:
        """Most frequent keys for one event kind, ties broken by name."""
        entries = sorted(self.counts[kind].items(), key=lambda item: (-item[1], item[0]))
        return entries if n is None else entries[:n]

    def clear(self):
        for counter in self.counts.values():
            counter.clear()

    def to_dict(self) -> Dict:
        return {section: dict(self.counts[kind]) for kind, section in _SECTIONS.items()}

    @classmethod
    def from_dict(cls, data: Dict, blacklist: Iterable[str] = ()) -> "MutagenProfiler":
        if not isinstance(data, dict):
            raise DecodeError(f"Invalid profile: {data!r}")
        profiler = cls(blacklist)
        for kind, section in _SECTIONS.items():
            entries = data.get(section, {})
            if not isinstance(entries, dict) or not all(
                isinstance(v, int) and not isinstance(v, bool) and v >= 0 for v in entries.values()
            ):
                raise DecodeError(f"Invalid profile section {section!r}: {entries!r}")
            profiler.counts[kind].update({k: v for k, v in entries.items() if k not in profiler.blacklist})
        return profiler

    def save(self, path: str = DEFAULT_PATH):
        filepath = Path(path)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2, sort_keys=True)
        logger.info(f"Saved profile to {filepath}")

    @classmethod
    def load(cls, path: str = DEFAULT_PATH, blacklist: Iterable[str] = ()) -> "MutagenProfiler":
        filepath = Path(path)
        try:
            with open(filepath, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise DecodeError(f"Invalid profile file {filepath}: {e}") from None
        logger.debug(f"Loaded profile from {filepath}")
        return cls.from_dict(data, blacklist)

    def report(self, n: int = 10) -> str:
        """Plain-text table of the top keys for every event kind."""
        lines = []
        for kind, section in _SECTIONS.items():
            lines.append(f"{section.capitalize()} ({self.total(kind)} events)")
            for key, value in self.top(kind, n):
                lines.append(f"  {key:<32} {value:>8}")
        return "\n".join(lines)
