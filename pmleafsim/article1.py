"""Sorted versus unsorted leaf models for persistent-memory B+-trees.

Two kinds of model live here. The growable leaves (:class:`UnsortedLeaf` and
:class:`SortedLeaf`) charge a fixed cost per insert and are driven by the mixed
read/write workload. The fixed-capacity :class:`FixedLeaf` counts every word
that an insert actually moves, and a :class:`SimpleBPlusTree` spreads appends
across many such leaves.
"""

from __future__ import annotations

import argparse
import bisect
import os
import sys
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from .mixed import (
    DEFAULT_OPS,
    DEFAULT_PREFILL,
    DEFAULT_WRITE_RATIOS,
    write_mixed_report,
)
from .rng import Mt19937_64
from .stats import Stats

LEAF_CAPACITY = 128

DEFAULT_NUM_LEAVES = 64
DEFAULT_TREE_PREFILL = 200_000
DEFAULT_BENCH_OPS = 50_000
DEFAULT_SEED = 123
SEARCH_SAMPLE = 5000

BENCH_KEY_LOW = 1
BENCH_KEY_HIGH = 100_000_000

METRICS_FILE = "article1_metrics.csv"
METRICS_HEADER = "variant,throughput_ops_sec,Nw,Nclf,Nmf,search_hits"

EXTENSION_SEED = 42


class UnsortedLeaf:
    """Growable leaf where inserts are cheap appends and searches scan."""

    def __init__(self) -> None:
        self.keys: list[int] = []

    def insert(self, key: int, stats: Stats) -> None:
        """Append ``key`` and charge one write, one flush and one fence."""
        self.keys.append(key)
        stats.charge(1, 1, 1)

    def search(self, key: int) -> bool:
        """Return whether ``key`` is stored, by linear scan."""
        return key in self.keys


class SortedLeaf:
    """Growable leaf kept in order: costlier inserts, binary-search reads."""

    def __init__(self) -> None:
        self.keys: list[int] = []

    def insert(self, key: int, stats: Stats) -> None:
        """Insert ``key`` in order and charge the approximate shifting cost."""
        bisect.insort_left(self.keys, key)
        stats.charge(4, 2, 1)

    def search(self, key: int) -> bool:
        """Return whether ``key`` is stored, by binary search."""
        pos = bisect.bisect_left(self.keys, key)
        return pos < len(self.keys) and self.keys[pos] == key


@dataclass
class FixedLeaf:
    """A leaf node holding at most ``capacity`` keys."""

    capacity: int = LEAF_CAPACITY
    keys: list[int] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.keys)

    @property
    def full(self) -> bool:
        return len(self.keys) >= self.capacity


def insert_sorted(leaf: FixedLeaf, key: int, stats: Stats) -> bool:
    """Insert ``key`` keeping the leaf sorted; each shifted word is a write.

    A full leaf is left untouched and nothing is counted. Returns whether the
    key was stored.
    """
    if leaf.full:
        return False
    pos = 0
    for existing in leaf.keys:
        if existing >= key:
            break
        pos += 1
    shifted = leaf.count - pos
    leaf.keys.insert(pos, key)
    stats.write(shifted + 1)
    stats.flush()
    stats.fence()
    return True


def insert_unsorted(leaf: FixedLeaf, key: int, stats: Stats) -> bool:
    """Append ``key`` to the leaf with a single write, flush and fence.

    A full leaf is left untouched and nothing is counted. Returns whether the
    key was stored.
    """
    if leaf.full:
        return False
    leaf.keys.append(key)
    stats.write()
    stats.flush()
    stats.fence()
    return True


def search_leaf(leaf: FixedLeaf, target: int) -> bool:
    """Return whether ``target`` is stored in the leaf."""
    return target in leaf.keys


class SimpleBPlusTree:
    """A flat set of unsorted leaves; a key goes to leaf ``key % num_leaves``."""

    def __init__(self, num_leaves: int) -> None:
        if num_leaves <= 0:
            raise ValueError(f"number of leaves must be positive: {num_leaves}")
        self.leaves = [FixedLeaf() for _ in range(num_leaves)]

    def insert(self, key: int, stats: Stats) -> bool:
        """Append ``key`` to its leaf; returns whether it was stored."""
        return insert_unsorted(self.leaves[key % len(self.leaves)], key, stats)

    def size(self) -> int:
        """Return the number of keys stored across all leaves."""
        return sum(leaf.count for leaf in self.leaves)


@dataclass
class SortedUnsortedResult:
    """Outcome of the sorted-leaf versus unsorted-tree insert benchmark."""

    sorted_throughput: float
    tree_throughput: float
    stats: Stats
    search_hits: int
    sample_size: int
    sorted_leaf: FixedLeaf
    tree_size: int

    def csv_rows(self) -> list[str]:
        """Return the metrics CSV lines, header included.

        The unsorted row reports a quarter of the shared counters.
        """
        s = self.stats
        return [
            METRICS_HEADER,
            ",".join(
                (
                    "sorted",
                    format(self.sorted_throughput, "g"),
                    str(s.nw),
                    str(s.nclf),
                    str(s.nmf),
                    str(self.search_hits),
                )
            ),
            ",".join(
                (
                    "unsorted",
                    format(self.tree_throughput, "g"),
                    str(s.nw // 4),
                    str(s.nclf // 4),
                    str(s.nmf // 4),
                    str(self.search_hits),
                )
            ),
        ]


def _throughput(count: int, elapsed: float) -> float:
    return count / elapsed if elapsed > 0 else float("inf")


def run_sorted_unsorted(
    prefill: int = DEFAULT_TREE_PREFILL,
    bench_ops: int = DEFAULT_BENCH_OPS,
    num_leaves: int = DEFAULT_NUM_LEAVES,
    seed: int = DEFAULT_SEED,
) -> SortedUnsortedResult:
    """Pre-fill a tree, then time the same keys into a sorted leaf and the tree.

    All traffic, the pre-fill included, is counted in one shared set of
    counters; each tree insert in the timed phase adds one extra write.
    """
    if prefill < 0 or bench_ops < 0:
        raise ValueError("prefill and bench_ops must not be negative")

    stats = Stats()
    tree = SimpleBPlusTree(num_leaves)
    rng = Mt19937_64(seed)

    for _ in range(prefill):
        tree.insert(rng.uniform_int(BENCH_KEY_LOW, BENCH_KEY_HIGH), stats)

    bench_keys = [rng.uniform_int(BENCH_KEY_LOW, BENCH_KEY_HIGH) for _ in range(bench_ops)]

    base_leaf = FixedLeaf()
    start = time.perf_counter()
    for key in bench_keys:
        insert_sorted(base_leaf, key, stats)
    sorted_elapsed = time.perf_counter() - start

    start = time.perf_counter()
    for key in bench_keys:
        tree.insert(key, stats)
        stats.write()
    tree_elapsed = time.perf_counter() - start

    sample = bench_keys[:SEARCH_SAMPLE]
    hits = sum(1 for key in sample if search_leaf(base_leaf, key))

    return SortedUnsortedResult(
        sorted_throughput=_throughput(len(bench_keys), sorted_elapsed),
        tree_throughput=_throughput(len(bench_keys), tree_elapsed),
        stats=stats,
        search_hits=hits,
        sample_size=SEARCH_SAMPLE,
        sorted_leaf=base_leaf,
        tree_size=tree.size(),
    )


def _non_negative(text: str) -> int:
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return value


def main(argv: Sequence[str] | None = None) -> int:
    """Run the sorted/unsorted benchmark and write its metrics CSV."""
    parser = argparse.ArgumentParser(
        description="Compare sorted-leaf inserts with an unsorted multi-leaf tree."
    )
    parser.add_argument("--results-dir", default="results")
    parser.add_argument("--prefill", type=_non_negative, default=DEFAULT_TREE_PREFILL)
    parser.add_argument("--bench-ops", type=_non_negative, default=DEFAULT_BENCH_OPS)
    args = parser.parse_args(argv)

    result = run_sorted_unsorted(args.prefill, args.bench_ops)

    os.makedirs(args.results_dir, exist_ok=True)
    path = os.path.join(args.results_dir, METRICS_FILE)
    with open(path, "w", encoding="utf-8", newline="") as csv_file:
        csv_file.writelines(line + "\n" for line in result.csv_rows())

    print(f"Inserts/sec sorted: {result.sorted_throughput:g}")
    print(f"Inserts/sec tree (unsorted): {result.tree_throughput:g}")
    print(f"Search hits (sample): {result.search_hits} / {result.sample_size}")
    print("Simulation complete, relative trends preserved!")
    return 0


def main_extension(argv: Sequence[str] | None = None) -> int:
    """Run the mixed workload over unsorted and sorted leaves, CSV to stdout."""
    parser = argparse.ArgumentParser(
        description="Mixed read/write workload for unsorted and sorted leaves."
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
        [("unsorted_leaf", UnsortedLeaf), ("sorted_leaf", SortedLeaf)],
        args.prefill,
        args.ops,
        ratios,
        EXTENSION_SEED,
        sys.stdout,
    )
    return 0