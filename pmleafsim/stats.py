"""Counters for emulated persistent-memory traffic."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Stats:
    """Counts of word writes, cache-line flushes and memory fences."""

    nw: int = 0
    nclf: int = 0
    nmf: int = 0

    def write(self, words: int = 1) -> None:
        """Record ``words`` 8-byte word writes."""
        if words < 0:
            raise ValueError(f"word count must not be negative: {words}")
        self.nw += words

    def flush(self) -> None:
        """Record one cache-line flush."""
        self.nclf += 1

    def fence(self) -> None:
        """Record one memory fence."""
        self.nmf += 1

    def charge(self, writes: int, flushes: int, fences: int) -> None:
        """Add a fixed cost of writes, flushes and fences in one step."""
        if writes < 0 or flushes < 0 or fences < 0:
            raise ValueError("costs must not be negative")
        self.nw += writes
        self.nclf += flushes
        self.nmf += fences