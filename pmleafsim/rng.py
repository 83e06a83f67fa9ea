"""64-bit Mersenne Twister and the uniform distributions drawn from it.

The generator and the two distributions reproduce the exact streams that the
benchmarks rely on, so a fixed seed always yields the same keys.
"""

from __future__ import annotations

import math
from collections.abc import Iterator

_MASK64 = (1 << 64) - 1
_TWO_POW_64 = 1 << 64

_N = 312
_M = 156
_MATRIX_A = 0xB5026F5AA96619E9
_UPPER_MASK = 0xFFFFFFFF80000000
_LOWER_MASK = 0x7FFFFFFF
_INIT_MULTIPLIER = 6364136223846793005


class Mt19937_64:
    """The 64-bit Mersenne Twister pseudo-random generator."""

    DEFAULT_SEED = 5489

    def __init__(self, seed: int = DEFAULT_SEED) -> None:
        state = [seed & _MASK64]
        for i in range(1, _N):
            prev = state[-1]
            state.append((_INIT_MULTIPLIER * (prev ^ (prev >> 62)) + i) & _MASK64)
        self._state = state
        self._index = _N

    def _twist(self) -> None:
        mt = self._state
        for i in range(_N):
            y = (mt[i] & _UPPER_MASK) | (mt[(i + 1) % _N] & _LOWER_MASK)
            value = mt[(i + _M) % _N] ^ (y >> 1)
            if y & 1:
                value ^= _MATRIX_A
            mt[i] = value
        self._index = 0

    def next_u64(self) -> int:
        """Return the next raw 64-bit output."""
        if self._index >= _N:
            self._twist()
        x = self._state[self._index]
        self._index += 1
        x ^= (x >> 29) & 0x5555555555555555
        x ^= (x << 17) & 0x71D67FFFEDA60000
        x ^= (x << 37) & 0xFFF7EEE000000000
        x ^= x >> 43
        return x

    def __iter__(self) -> Iterator[int]:
        return self

    def __next__(self) -> int:
        return self.next_u64()

    def uniform_int(self, low: int, high: int) -> int:
        """Return an integer uniformly drawn from the closed range [low, high]."""
        if low > high:
            raise ValueError(f"empty range: low {low} is greater than high {high}")
        span = high - low
        if span > _MASK64:
            raise ValueError("range wider than 64 bits")
        if span == _MASK64:
            return low + self.next_u64()

        extent = span + 1
        product = self.next_u64() * extent
        low_bits = product & _MASK64
        if low_bits < extent:
            threshold = (_TWO_POW_64 - extent) % extent
            while low_bits < threshold:
                product = self.next_u64() * extent
                low_bits = product & _MASK64
        return low + (product >> 64)

    def uniform_real(self) -> float:
        """Return a float uniformly drawn from the half-open range [0, 1)."""
        value = self.next_u64() / _TWO_POW_64
        if value >= 1.0:
            return math.nextafter(1.0, 0.0)
        return value