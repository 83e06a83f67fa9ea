"""Baseline, logging and write-friendly (wB+-tree style) leaf models.

Two families live here. The growable leaves (:class:`LeafBaseline`,
:class:`LeafLogging` and :class:`LeafWBTreeModel`) charge a fixed cost per
insert and are driven by the mixed read/write workload. The fixed-capacity
leaves (:class:`LeafBTreeVolatile`, :class:`LeafBTreeLog` and
:class:`LeafWBTree`) count the words each insert actually moves and are
compared by a pure insert benchmark.
"""

from __future__ import annotations

import argparse
import bisect
import os
import sys
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from .mixed import DEFAULT_OPS, DEFAULT_PREFILL, DEFAULT_WRITE_RATIOS, write_mixed_report
from .rng import Mt19937_64
from .stats import Stats

CAPACITY = 32
DEFAULT_LEAF_PREFILL = CAPACITY * 7 // 10
DEFAULT_INSERT_OPS = 100_000
DEFAULT_SEED = 123

KEY_LOW = 1
KEY_HIGH = 1_000_000_000

METRICS_FILE = "wbtree_insert_metrics.csv"
METRICS_HEADER = "variant,throughput_ops_sec,Nw,Nclf,Nmf"

EXTENSION_SEED = 123


def _binary_search(keys: list[int], key: int) -> bool:
    pos = bisect.bisect_left(keys, key)
    return pos < len(keys) and keys[pos] == key


class _GrowableSortedLeaf:
    """Growable sorted leaf charging a fixed cost for every insert."""

    COST: tuple[int, int, int] = (0, 0, 0)

    def __init__(self) -> None:
        self.keys: list[int] = []

    def _insert_charged(self, key: int, stats: Stats) -> None:
        bisect.insort_left(self.keys, key)
        stats.charge(*self.COST)


class LeafBaseline(_GrowableSortedLeaf):
    """Ordinary in-place B+-tree leaf with a medium write cost."""

    COST = (4, 2, 1)

    def insert(self, key: int, stats: Stats) -> None:
        """Insert ``key`` in order and charge this model's fixed cost."""
        self._insert_charged(key, stats)

    def search(self, key: int) -> bool:
        """Return whether ``key`` is stored, by binary search."""
        return _binary_search(self.keys, key)


class LeafLogging(_GrowableSortedLeaf):
    """B+-tree leaf whose inserts also pay for a log record."""

    COST = (8, 4, 2)

    def insert(self, key: int, stats: Stats) -> None:
        """Insert ``key`` in order and charge this model's fixed cost."""
        self._insert_charged(key, stats)

    def search(self, key: int) -> bool:
        """Return whether ``key`` is stored, by binary search."""
        return _binary_search(self.keys, key)


class LeafWBTreeModel(_GrowableSortedLeaf):
    """wB+-tree style leaf whose indirection keeps writes low."""

    COST = (2, 1, 1)

    def insert(self, key: int, stats: Stats) -> None:
        """Insert ``key`` in order and charge this model's fixed cost."""
        self._insert_charged(key, stats)

    def search(self, key: int) -> bool:
        """Return whether ``key`` is stored, by binary search."""
        return _binary_search(self.keys, key)


class _FixedLeaf:
    """A leaf holding at most ``CAPACITY`` keys; inserts into a full leaf are ignored."""

    def __init__(self) -> None:
        self.keys: list[int] = []

    @property
    def count(self) -> int:
        return len(self.keys)

    @property
    def full(self) -> bool:
        return len(self.keys) >= CAPACITY

    def _insert_in_order(self, key: int, stats: Stats) -> None:
        pos = bisect.bisect_left(self.keys, key)
        shifted = len(self.keys) - pos
        self.keys.insert(pos, key)
        stats.write(shifted + 1)


class LeafBTreeVolatile(_FixedLeaf):
    """Non-persistent sorted leaf: shifted words are written, nothing is flushed."""

    def insert(self, key: int, stats: Stats) -> bool:
        """Insert ``key`` in order; returns whether it was stored."""
        if self.full:
            return False
        self._insert_in_order(key, stats)
        return True

    def search(self, key: int) -> bool:
        """Return whether ``key`` is stored, by binary search."""
        return _binary_search(self.keys, key)


class LeafBTreeLog(_FixedLeaf):
    """Sorted leaf made durable by a persisted log record before each update."""

    LOG_RECORD_WORDS = 4

    def insert(self, key: int, stats: Stats) -> bool:
        """Log, then insert ``key`` in order and persist the node."""
        if self.full:
            return False
        stats.write(self.LOG_RECORD_WORDS)
        stats.flush()
        stats.fence()

        self._insert_in_order(key, stats)

        stats.flush()
        stats.fence()
        return True

    def search(self, key: int) -> bool:
        """Return whether ``key`` is stored, by binary search."""
        return _binary_search(self.keys, key)


class LeafWBTree(_FixedLeaf):
    """Append-only leaf modelling a slot-array update with two word writes."""

    def insert(self, key: int, stats: Stats) -> bool:
        """Append ``key`` with two writes, one flush and one fence."""
        if self.full:
            return False
        self.keys.append(key)
        stats.write(2)
        stats.flush()
        stats.fence()
        return True

    def search(self, key: int) -> bool:
        """Return whether ``key`` is stored, by linear scan."""
        return key in self.keys


class _InsertLeaf(Protocol):
    def insert(self, key: int, stats: Stats) -> object: ...


def run_insert_benchmark(leaf: _InsertLeaf, stats: Stats, keys: Sequence[int]) -> float:
    """Insert every key into ``leaf`` and return inserts per second."""
    start = time.perf_counter()
    for key in keys:
        leaf.insert(key, stats)
    elapsed = time.perf_counter() - start
    if elapsed <= 0:
        return float("inf")
    return len(keys) / elapsed


@dataclass
class VariantResult:
    """Outcome of one fixed-leaf variant in the insert comparison."""

    name: str
    throughput_ops_sec: float
    stats: Stats
    leaf: _FixedLeaf = field(repr=False)

    def csv_row(self) -> str:
        """Return this result as one metrics CSV line."""
        return ",".join(
            (
                self.name,
                format(self.throughput_ops_sec, "g"),
                str(self.stats.nw),
                str(self.stats.nclf),
                str(self.stats.nmf),
            )
        )


_VARIANTS: tuple[tuple[str, type[_FixedLeaf]], ...] = (
    ("btree_volatile", LeafBTreeVolatile),
    ("btree_log", LeafBTreeLog),
    ("wbtree_simplified", LeafWBTree),
)


def run_wbtree_comparison(
    prefill: int = DEFAULT_LEAF_PREFILL,
    ops: int = DEFAULT_INSERT_OPS,
    seed: int = DEFAULT_SEED,
) -> list[VariantResult]:
    """Pre-fill each fixed leaf with the same keys, then time the same inserts.

    Pre-fill traffic is counted together with the benchmark's.
    """
    if prefill < 0 or ops < 0:
        raise ValueError("prefill and ops must not be negative")

    rng = Mt19937_64(seed)
    prefill_keys = [rng.uniform_int(KEY_LOW, KEY_HIGH) for _ in range(prefill)]
    bench_keys = [rng.uniform_int(KEY_LOW, KEY_HIGH) for _ in range(ops)]

    results = []
    for name, leaf_type in _VARIANTS:
        leaf = leaf_type()
        stats = Stats()
        for key in prefill_keys:
            leaf.insert(key, stats)
        throughput = run_insert_benchmark(leaf, stats, bench_keys)
        results.append(VariantResult(name, throughput, stats, leaf))
    return results


def _non_negative(text: str) -> int:
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return value


def main(argv: Sequence[str] | None = None) -> int:
    """Run the fixed-leaf insert comparison and write its metrics CSV."""
    parser = argparse.ArgumentParser(
        description="Compare volatile, logging and wB+-tree style leaf inserts."
    )
    parser.add_argument("--results-dir", default="results")
    parser.add_argument("--prefill", type=_non_negative, default=DEFAULT_LEAF_PREFILL)
    parser.add_argument("--ops", type=_non_negative, default=DEFAULT_INSERT_OPS)
    args = parser.parse_args(argv)

    os.makedirs(args.results_dir, exist_ok=True)
    path = os.path.join(args.results_dir, METRICS_FILE)

    results = run_wbtree_comparison(args.prefill, args.ops)
    with open(path, "w", encoding="utf-8", newline="") as csv_file:
        csv_file.write(METRICS_HEADER + "\n")
        for result in results:
            csv_file.write(result.csv_row() + "\n")
            print(f"{result.name} throughput: {result.throughput_ops_sec:g} ops/s")

    print(f"Results written to {path}")
    return 0


def main_extension(argv: Sequence[str] | None = None) -> int:
    """Run the mixed workload over baseline, logging and wB+-tree leaves."""
    parser = argparse.ArgumentParser(
        description="Mixed read/write workload for baseline, logging and wB+-tree leaves."
    )
    parser.add_argument("--prefill", type=_non_negative, default=DEFAULT_PREFILL)
    parser.add_argument("--ops", type=_non_negative, default=DEFAULT_OPS)
    parser.add_argument(
        "--write-ratios",
        type=float,
        nargs="+",
        default=list(DEFAULT_WRITE_RATIOS),
    )
    args = parser.parse_args(argv)

    ratios: Iterable[float] = args.write_ratios
    write_mixed_report(
        [
            ("baseline", LeafBaseline),
            ("logging", LeafLogging),
            ("wbtree", LeafWBTreeModel),
        ],
        args.prefill,
        args.ops,
        ratios,
        EXTENSION_SEED,
        sys.stdout,
    )
    return 0