"""
Deterministic pseudo-random source (mulberry32).

Produces the same float sequence for a given integer seed on every
platform, so clustering results can be reproduced and compared against
fixtures generated elsewhere. All arithmetic wraps at 32 bits.
"""

from typing import List

_MASK32 = 0xFFFFFFFF
_INCREMENT = 0x6D2B79F5
_TWO_POW_32 = 4294967296.0


def _imul(a: int, b: int) -> int:
    """32-bit wrapping multiply."""
    return (a * b) & _MASK32


class SeededRandom:
    """
    mulberry32 generator.

    Each instance owns its state; create a new one per computation.

    Args:
        seed: Integer seed (reduced modulo 2**32)
    """

    def __init__(self, seed: int):
        self.state = int(seed) & _MASK32

    def next_float(self) -> float:
        """Return the next float in [0, 1)."""
        self.state = (self.state + _INCREMENT) & _MASK32
        s = self.state

        t = _imul(s ^ (s >> 15), 1 | s)
        t = ((t + _imul(t ^ (t >> 7), 61 | t)) & _MASK32) ^ t
        return (t ^ (t >> 14)) / _TWO_POW_32

    def __call__(self) -> float:
        return self.next_float()

    def next_index(self, n: int) -> int:
        """Return an index in [0, n)."""
        return int(self.next_float() * n)

    def sample_distinct_indices(self, n: int, k: int) -> List[int]:
        """
        Draw k distinct indices from [0, n) in draw order, rejecting repeats.

        Raises:
            ValueError: If k > n (sampling could never finish)
        """
        if k > n:
            raise ValueError(f"Cannot draw {k} distinct indices from {n} items")

        used = set()
        indices = []
        while len(indices) < k:
            index = self.next_index(n)
            if index in used:
                continue
            used.add(index)
            indices.append(index)
        return indices
