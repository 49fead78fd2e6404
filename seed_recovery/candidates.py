from typing import List, Optional, Sequence

from seed_recovery.config import SearchConfig


def build_candidate(config: SearchConfig, digits: Sequence[int]) -> List[str]:
    """Full ordered phrase: known words at their positions, wordlist[digit] elsewhere."""
    if len(digits) != config.missing_count:
        raise ValueError(f"expected {config.missing_count} digits, got {len(digits)}")

    words = [""] * config.phrase_length
    for word, pos in zip(config.known_words, config.known_positions):
        words[pos] = word
    for pos, digit in zip(config.missing_positions, digits):
        words[pos] = config.wordlist[digit]
    return words


def contains_repeated(words: Sequence[str]) -> bool:
    seen = set()
    for word in words:
        if word in seen:
            return True
        seen.add(word)
    return False


class CandidateBuilder:
    """Builds candidates for one search, optionally dropping phrases that repeat a word."""

    def __init__(self, config: SearchConfig, skip_repeated: bool = True):
        self.config = config
        self.skip_repeated = skip_repeated
        # known words never change, so place them once and copy per candidate
        self._template = [""] * config.phrase_length
        for word, pos in zip(config.known_words, config.known_positions):
            self._template[pos] = word

    def build(self, digits: Sequence[int]) -> Optional[List[str]]:
        words = self._template[:]
        for pos, digit in zip(self.config.missing_positions, digits):
            words[pos] = self.config.wordlist[digit]
        if self.skip_repeated and contains_repeated(words):
            return None
        return words
