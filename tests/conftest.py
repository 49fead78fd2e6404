import threading

import pytest

from seed_recovery.config import SearchConfig


class PhraseOracle:
    """Fake oracle whose 'address' is the phrase itself. Records every call."""

    def __init__(self, fail=None, raise_on=None):
        self.calls = []
        self.fail = fail
        self.raise_on = raise_on
        self._lock = threading.Lock()

    def derive(self, words):
        with self._lock:
            self.calls.append(tuple(words))
        if self.raise_on is not None and self.raise_on(words):
            raise RuntimeError("oracle blew up")
        if self.fail is not None and self.fail(words):
            return b"", False
        return address_of(words), True


def address_of(words):
    return " ".join(words).encode()


@pytest.fixture
def wordlist():
    return [f"w{i:04d}" for i in range(2048)]


@pytest.fixture
def small_wordlist():
    return ["apple", "bread", "cabin", "dance", "eagle", "fancy", "giant", "habit"]


@pytest.fixture
def eleven_known(wordlist):
    """Scenario A/B layout: words 0-10 known at positions 0-10, position 11 missing."""
    return SearchConfig(
        wordlist=wordlist,
        known_words=wordlist[:11],
        known_positions=range(11),
    )
