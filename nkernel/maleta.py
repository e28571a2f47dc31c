"""Randomised knapsack ("suitcase") filling with a per-caller random generator."""

from __future__ import annotations

import random
from typing import Sequence

_MAXBITS = 31
_PHI = 0x9E3779B9
_U32 = 0xFFFFFFFF
_TABLE = 4096
_MULTIPLIER = 18782
_INITIAL_CARRY = 362436
_R = 0xFFFFFFFE


class RandGen:
    """Complementary multiply-with-carry generator owned by a single caller."""

    def __init__(self, seed: int | None = None) -> None:
        x = random.getrandbits(31) if seed is None else seed & _U32
        q = [x, (x + _PHI) & _U32, (x + 2 * _PHI) & _U32]
        for i in range(3, _TABLE):
            q.append(q[i - 3] ^ q[i - 2] ^ _PHI ^ i)
        self._q = q
        self._c = _INITIAL_CARRY
        self._cur = 0
        self._bit = _MAXBITS

    def next_u32(self) -> int:
        """Next 32-bit unsigned value."""
        # The generator index wraps to slot 0 on every call.
        i = _TABLE & (_TABLE - 1)
        t = _MULTIPLIER * self._q[i] + self._c
        self._c = t >> 32
        x = (t + self._c) & _U32
        if x < self._c:
            x = (x + 1) & _U32
            self._c += 1
        self._q[i] = (_R - x) & _U32
        return self._q[i]

    def random_bit(self) -> int:
        """A random 0 or 1."""
        if self._bit >= _MAXBITS:
            self._cur = self.next_u32() & 0x7FFFFFFF
        res = self._cur & 1
        self._cur >>= 1
        self._bit += 1
        return res


def fill_suitcase(
    weights: Sequence[float],
    values: Sequence[float],
    max_weight: float,
    k: int,
    gen: RandGen | None = None,
) -> tuple[float, list[int]]:
    """Try k random selections and keep the most valuable one that fits.

    An item is taken when a random bit says so and it still fits. Return the
    best total value (-1 when k is 0) and the chosen selection as 0/1 flags.
    """
    if len(weights) != len(values):
        raise ValueError("weights and values must have the same length")
    if k < 0:
        raise ValueError("k must not be negative")
    gen = gen if gen is not None else RandGen()
    best: float = -1
    chosen = [0] * len(weights)
    for _ in range(k):
        selection = []
        sum_w = sum_v = 0.0
        for w, v in zip(weights, values):
            take = 1 if gen.random_bit() and sum_w + w <= max_weight else 0
            if take:
                sum_w += w
                sum_v += v
            selection.append(take)
        if sum_v > best:
            best = sum_v
            chosen = selection
    return best, chosen


def count_items(selection: Sequence[int]) -> int:
    """Number of items chosen in a selection."""
    return sum(1 for flag in selection if flag)