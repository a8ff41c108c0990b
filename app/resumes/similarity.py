"""Positional string similarity used to recover near-miss identifiers.

The score counts characters that are equal *at the same index* over the
overlapping range and divides by the longer length. It is deliberately not an
edit distance: ``score("abc", "bca")`` is 0 even though the character sets
match.
"""
from __future__ import annotations

from typing import Callable, Iterable, TypeVar

T = TypeVar("T")


def score(a: str, b: str) -> float:
    longest = max(len(a), len(b))
    if longest == 0:
        return 0.0
    matches = sum(1 for left, right in zip(a, b) if left == right)
    return matches / longest


def best_match(
    target: str,
    candidates: Iterable[T],
    key: Callable[[T], str],
    threshold: float,
) -> tuple[T | None, float]:
    """Return the highest-scoring candidate if its score is above ``threshold``.

    Ties keep the first candidate seen. The returned score is the best score
    found even when the candidate is rejected, so callers can report it.
    """
    best: T | None = None
    best_score = -1.0
    for candidate in candidates:
        current = score(target, key(candidate))
        if best is None or current > best_score:
            best = candidate
            best_score = current
    if best is None:
        return None, 0.0
    if best_score > threshold:
        return best, best_score
    return None, best_score
