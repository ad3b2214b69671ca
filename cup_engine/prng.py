"""
Seeded pseudo-randomness

Mulberry32 generator plus a string hash used to turn composite keys such as
("match", 3, "QF-1") into 32-bit seeds. Everything in the tournament world
that looks random comes from here, so two processes given the same epoch
produce identical histories.

All arithmetic wraps at 32 bits, matching the reference platform bit for bit.

Usage:
    from cup_engine.prng import SeededRNG, combine_seed

    rng = SeededRNG(combine_seed("draw", 4))
    pot = rng.shuffle(pot)
"""

from __future__ import annotations

import math
from typing import Any, List, Sequence, TypeVar

from cup_engine import config

T = TypeVar("T")

_MASK32 = 0xFFFFFFFF
_TWO_32 = 4294967296.0


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK32


class SeededRNG:
    """Mulberry32 stream. Same seed, same infinite sequence."""

    def __init__(self, seed: int):
        self._state = int(seed) & _MASK32

    @property
    def state(self) -> int:
        return self._state

    def next(self) -> float:
        self._state = (self._state + 0x6D2B79F5) & _MASK32
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t = ((t + _imul(t ^ (t >> 7), t | 61)) & _MASK32) ^ t
        return ((t ^ (t >> 14)) & _MASK32) / _TWO_32

    def next_int(self, lo: int, hi: int) -> int:
        """Uniform integer in [lo, hi], both inclusive."""
        return math.floor(self.next() * (hi - lo + 1)) + lo

    def next_bool(self, probability: float = 0.5) -> bool:
        return self.next() < probability

    def shuffle(self, items: Sequence[T]) -> List[T]:
        """Return a shuffled copy; the input is left untouched."""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = int(self.next() * (i + 1))
            result[i], result[j] = result[j], result[i]
        return result

    def weighted_sample(self, items: Sequence[T], weights: Sequence[float]) -> T:
        if not items:
            raise ValueError("weighted_sample() needs at least one item")
        r = self.next() * sum(weights)
        for item, weight in zip(items, weights):
            r -= weight
            if r <= 0:
                return item
        return items[-1]

    def pick(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("pick() needs at least one item")
        return items[int(self.next() * len(items))]


def hash_seed(text: str) -> int:
    """31-multiplier string hash, wrapped to an unsigned 32-bit integer."""
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & _MASK32
    return h


def _seed_token(value: Any) -> str:
    # Render values the way the reference platform joins them into strings
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def combine_seed(*values: Any) -> int:
    """Hash the epoch plus an ordered list of primitives into one seed."""
    return hash_seed(":".join(_seed_token(v) for v in (config.EPOCH,) + values))
