"""
Search progress and its JSON checkpoint.

Progress keeps one cursor per work range: every index in [start, cursor)
has been tested. On restart the remaining [cursor, end) slices are
enumerated again, so a resumed run neither skips nor repeats work below
the saved cursors. Counts are flushed by workers in batches and are
therefore approximate while a run is in flight.
"""

import json
import os
import threading
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from seed_recovery import console
from seed_recovery.config import SearchConfig
from seed_recovery.partition import WorkerRange, covers


@dataclass
class RangeCursor:
    start: int
    end: int
    cursor: int

    def __post_init__(self):
        if self.start < 0:
            raise ValueError(f"range start {self.start} is negative")
        if not self.start <= self.cursor <= self.end:
            raise ValueError(f"cursor {self.cursor} outside [{self.start}, {self.end}]")

    @property
    def span(self) -> WorkerRange:
        return WorkerRange(self.start, self.end)

    @property
    def remaining(self) -> WorkerRange:
        return WorkerRange(self.cursor, self.end)


class Progress:
    def __init__(self, known_words: Sequence[str], known_positions: Sequence[int],
                 tested_combinations: int = 0, skipped_combinations: int = 0,
                 ranges: Optional[Iterable[RangeCursor]] = None, last_index: int = -1):
        self.known_words = list(known_words)
        self.known_positions = list(known_positions)
        self.last_index = last_index
        self._tested = tested_combinations
        self._skipped = skipped_combinations
        self.ranges: List[RangeCursor] = list(ranges or [])
        self._lock = threading.Lock()

    @classmethod
    def fresh(cls, config: SearchConfig, ranges: Iterable[WorkerRange]) -> "Progress":
        return cls(
            known_words=config.known_words,
            known_positions=config.known_positions,
            ranges=[RangeCursor(r.start, r.end, r.start) for r in ranges],
        )

    @property
    def tested_combinations(self) -> int:
        with self._lock:
            return self._tested

    @property
    def skipped_combinations(self) -> int:
        with self._lock:
            return self._skipped

    def add(self, range_id: int, cursor: int, tested: int, skipped: int = 0) -> None:
        """Accumulate a worker's buffered counts and move its cursor forward."""
        with self._lock:
            self._tested += tested
            self._skipped += skipped
            rc = self.ranges[range_id]
            if cursor > rc.cursor:
                rc.cursor = min(cursor, rc.end)

    def is_compatible(self, config: SearchConfig) -> bool:
        return (list(self.known_words) == list(config.known_words)
                and list(self.known_positions) == list(config.known_positions))

    def spans(self, total: int) -> bool:
        """True if the saved ranges tile the whole search space."""
        return bool(self.ranges) and covers((rc.span for rc in self.ranges), total)

    def pending(self) -> List[Tuple[int, WorkerRange]]:
        """(range_id, remaining slice) for every range with work left."""
        with self._lock:
            return [(i, rc.remaining) for i, rc in enumerate(self.ranges) if rc.cursor < rc.end]

    def restart_ranges(self, ranges: Iterable[WorkerRange]) -> None:
        with self._lock:
            self.ranges = [RangeCursor(r.start, r.end, r.start) for r in ranges]

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "last_index": self.last_index,
                "tested_combinations": self._tested,
                "skipped_combinations": self._skipped,
                "known_words": list(self.known_words),
                "known_positions": list(self.known_positions),
                "ranges": [
                    {"start": rc.start, "end": rc.end, "cursor": rc.cursor}
                    for rc in self.ranges
                ],
            }

    @classmethod
    def from_dict(cls, data: dict) -> "Progress":
        """Raises ValueError/TypeError/KeyError on malformed data."""
        if not isinstance(data, dict):
            raise TypeError("checkpoint must be a JSON object")

        words = data["known_words"]
        positions = data["known_positions"]
        if not isinstance(words, list) or not all(isinstance(w, str) for w in words):
            raise TypeError("known_words must be a list of strings")
        if not isinstance(positions, list) or not all(_is_int(p) for p in positions):
            raise TypeError("known_positions must be a list of integers")
        if len(words) != len(positions):
            raise ValueError("known_words and known_positions differ in length")

        tested = data.get("tested_combinations", 0)
        skipped = data.get("skipped_combinations", 0)
        last_index = data.get("last_index", -1)
        for name, value in (("tested_combinations", tested),
                            ("skipped_combinations", skipped),
                            ("last_index", last_index)):
            if not _is_int(value):
                raise TypeError(f"{name} must be an integer")
        if tested < 0 or skipped < 0:
            raise ValueError("counts must not be negative")

        ranges = []
        for item in data.get("ranges") or []:
            values = (item["start"], item["end"], item["cursor"])
            if not all(_is_int(v) for v in values):
                raise TypeError("range fields must be integers")
            ranges.append(RangeCursor(*values))

        return cls(words, positions, tested, skipped, ranges, last_index)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class CheckpointStore:
    def __init__(self, path: str, enabled: bool = True):
        self.path = path
        self.enabled = enabled

    def load(self) -> Optional[Progress]:
        """Saved progress, or None if there is no usable checkpoint."""
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
            return Progress.from_dict(data)
        except (OSError, ValueError, TypeError, KeyError) as e:
            console.warn(f"Ignoring unreadable checkpoint {self.path}: {e}")
            return None

    def save(self, progress: Progress) -> bool:
        if not self.enabled:
            return False
        tmp = self.path + ".tmp"
        try:
            with open(tmp, "w") as f:
                json.dump(progress.to_dict(), f)
            os.replace(tmp, self.path)
        except OSError as e:
            console.warn(f"Could not save checkpoint to {self.path}: {e}")
            return False
        return True
