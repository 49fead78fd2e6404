"""
Split [0, total) into contiguous half-open ranges, one per worker.
The first total % workers ranges get one extra index so every index
belongs to exactly one range.
"""

from dataclasses import dataclass
from typing import Iterable, List

from seed_recovery.config import ConfigError


@dataclass(frozen=True)
class WorkerRange:
    start: int
    end: int

    def __post_init__(self):
        if not 0 <= self.start <= self.end:
            raise ValueError(f"invalid range [{self.start}, {self.end})")

    def __len__(self) -> int:
        return self.end - self.start

    def __contains__(self, index: int) -> bool:
        return self.start <= index < self.end


def partition(total: int, workers: int) -> List[WorkerRange]:
    if workers < 1:
        raise ConfigError(f"worker count must be at least 1, got {workers}")
    if total < 0:
        raise ValueError("total must not be negative")

    base, extra = divmod(total, workers)
    ranges = []
    start = 0
    for worker_id in range(workers):
        size = base + (1 if worker_id < extra else 0)
        ranges.append(WorkerRange(start, start + size))
        start += size
    return ranges


def covers(ranges: Iterable[WorkerRange], total: int) -> bool:
    """True if the ranges tile [0, total) with no gap or overlap."""
    expected = 0
    for r in sorted(ranges, key=lambda r: (r.start, r.end)):
        if r.start != expected:
            return False
        expected = r.end
    return expected == total
