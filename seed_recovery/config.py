"""
Search configuration.
- Defaults live here as module constants.
- SearchConfig describes which words are known and where.
- RunOptions carries the per-run knobs parsed from the command line.
Both are immutable and built once at start-up.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

# ---------------- CONFIG ----------------
PHRASE_LENGTH = 12
PLACEHOLDER = "?"

DEFAULT_WORKERS = os.cpu_count() or 4
CHECKPOINT_FILE = "progress.json"
SAVE_INTERVAL = 10.0        # seconds between checkpoint flushes
MAX_FLUSH_EVERY = 5000      # cap on candidates a worker buffers before flushing
ESTIMATE_CHECKS_PER_WORKER = 600  # rough checks/sec per worker, start-up estimate only
# --------------------------------------


class ConfigError(ValueError):
    """Raised for misconfiguration detected before the search starts."""


@dataclass(frozen=True)
class SearchConfig:
    wordlist: Tuple[str, ...]
    known_words: Tuple[str, ...]
    known_positions: Tuple[int, ...]
    phrase_length: int = PHRASE_LENGTH
    missing_positions: Tuple[int, ...] = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "wordlist", tuple(self.wordlist))
        object.__setattr__(self, "known_words", tuple(self.known_words))
        object.__setattr__(self, "known_positions", tuple(int(p) for p in self.known_positions))

        if not self.wordlist:
            raise ConfigError("wordlist is empty")
        if len(self.known_words) != len(self.known_positions):
            raise ConfigError(
                f"{len(self.known_words)} known words but {len(self.known_positions)} positions"
            )
        if len(self.known_words) > self.phrase_length:
            raise ConfigError(
                f"got {len(self.known_words)} words, a phrase has only {self.phrase_length}"
            )
        if len(set(self.known_positions)) != len(self.known_positions):
            raise ConfigError(f"known positions must be distinct: {list(self.known_positions)}")
        for pos in self.known_positions:
            if not 0 <= pos < self.phrase_length:
                raise ConfigError(f"position {pos} outside 0-{self.phrase_length - 1}")

        taken = set(self.known_positions)
        missing = tuple(i for i in range(self.phrase_length) if i not in taken)
        object.__setattr__(self, "missing_positions", missing)

    @property
    def wordlist_size(self) -> int:
        return len(self.wordlist)

    @property
    def missing_count(self) -> int:
        return len(self.missing_positions)

    @classmethod
    def from_phrase(cls, tokens: Sequence[str], wordlist: Sequence[str],
                    positions: Optional[Sequence[int]] = None,
                    phrase_length: int = PHRASE_LENGTH) -> "SearchConfig":
        """
        Build a config from user input.
        - explicit positions: tokens are the known words, in order.
        - full template with '?' placeholders: positions come from the template.
        - otherwise the known words fill positions 0..k-1.
        """
        tokens = [t.strip().lower() for t in tokens if t.strip()]
        if positions is not None:
            words = tokens
            positions = list(positions)
        elif PLACEHOLDER in tokens:
            if len(tokens) != phrase_length:
                raise ConfigError(
                    f"template must have {phrase_length} tokens (use '{PLACEHOLDER}' for missing words), got {len(tokens)}"
                )
            words = [t for t in tokens if t != PLACEHOLDER]
            positions = [i for i, t in enumerate(tokens) if t != PLACEHOLDER]
        else:
            words = tokens
            positions = list(range(len(tokens)))

        known = set(wordlist)
        unknown = [w for w in words if w not in known]
        if unknown:
            raise ConfigError(f"not in the wordlist: {', '.join(unknown)}")

        return cls(
            wordlist=tuple(wordlist),
            known_words=tuple(words),
            known_positions=tuple(positions),
            phrase_length=phrase_length,
        )


def default_flush_every(workers: int) -> int:
    return min(workers * 100, MAX_FLUSH_EVERY)


@dataclass(frozen=True)
class RunOptions:
    workers: int = DEFAULT_WORKERS
    checkpoint_path: str = CHECKPOINT_FILE
    save_checkpoints: bool = True
    save_interval: float = SAVE_INTERVAL
    skip_repeated: bool = True
    flush_every: int = 0        # 0 -> derived from the worker count

    def __post_init__(self):
        if self.workers < 1:
            raise ConfigError(f"worker count must be at least 1, got {self.workers}")
        if self.save_interval <= 0:
            raise ConfigError(f"save interval must be positive, got {self.save_interval}")
        if self.flush_every <= 0:
            object.__setattr__(self, "flush_every", default_flush_every(self.workers))


def parse_positions(text: str) -> List[int]:
    """Parse a comma/space separated list of phrase positions."""
    try:
        return [int(p) for p in text.replace(",", " ").split()]
    except ValueError:
        raise ConfigError(f"positions must be integers: {text!r}") from None
