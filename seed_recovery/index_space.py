"""
Mixed-radix index space.

Index i in [0, L**k) maps to k base-L digits, one per missing position.
The last missing position varies fastest, the first slowest, so a
contiguous index range is a contiguous block of the enumeration.
"""

from typing import Sequence, Tuple


def search_size(wordlist_size: int, missing_count: int) -> int:
    """Number of assignments of wordlist_size words to missing_count positions."""
    if wordlist_size < 1:
        raise ValueError("wordlist_size must be positive")
    if missing_count < 0:
        raise ValueError("missing_count must not be negative")
    return wordlist_size ** missing_count


def decode(index: int, wordlist_size: int, missing_count: int) -> Tuple[int, ...]:
    total = search_size(wordlist_size, missing_count)
    if not 0 <= index < total:
        raise IndexError(f"index {index} outside [0, {total})")

    digits = [0] * missing_count
    rem = index
    for j in range(missing_count - 1, -1, -1):
        rem, digits[j] = divmod(rem, wordlist_size)
    return tuple(digits)


def encode(digits: Sequence[int], wordlist_size: int) -> int:
    """Inverse of decode."""
    index = 0
    for d in digits:
        if not 0 <= d < wordlist_size:
            raise ValueError(f"digit {d} outside [0, {wordlist_size})")
        index = index * wordlist_size + d
    return index
