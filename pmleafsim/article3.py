"""BzTree-style leaf models built on a persistent multi-word compare-and-swap.

:func:`pmwcas` applies a set of word updates as one durable step. It charges
the cost of persisting a descriptor, the words it changes, and the final
flush. :func:`bztree_insert` uses it to append a key to a fixed-capacity
:class:`BzLeafNode`. The growable :class:`BzLeaf` and :class:`SimpleLeaf`
charge fixed per-insert costs, and the mixed read/write workload drives them.
"""

from __future__ import annotations

import argparse
import bisect
import os
import sys
import time
from collections.abc import Iterable, MutableSequence, Sequence
from dataclasses import dataclass, field
from typing import Any, Union

from .mixed import DEFAULT_OPS, DEFAULT_PREFILL, DEFAULT_WRITE_RATIOS, write_mixed_report
from .rng import Mt19937_64
from .stats import Stats

CAPACITY = 32
DEFAULT_LEAF_PREFILL = CAPACITY * 7 // 10
DEFAULT_INSERT_OPS = 100_000
DEFAULT_SEED = 123
SEARCH_SAMPLE = 5000

KEY_LOW = 1
KEY_HIGH = 1_000_000_000

DESCRIPTOR_WORDS = 2

METRICS_FILE = "bztree_metrics.csv"
METRICS_HEADER = "variant,throughput_ops_sec,Nw,Nclf,Nmf,search_hits"

EXTENSION_SEED = 321

Field = Union[int, str]


@dataclass(frozen=True)
class PMwCASEntry:
    """One word to update.

    An integer ``field`` names a slot of the sequence ``target``. A string
    ``field`` names an attribute of ``target``.
    """

    target: Any
    field: Field
    new_value: int

    def check(self) -> None:
        """Raise if this entry does not name an existing word."""
        if isinstance(self.field, int):
            if not isinstance(self.target, MutableSequence):
                raise TypeError("an indexed entry needs a mutable sequence target")
            if not -len(self.target) <= self.field < len(self.target):
                raise IndexError(f"slot {self.field} is out of range")
        elif not hasattr(self.target, self.field):
            raise AttributeError(f"target has no field {self.field!r}")

    def apply(self) -> None:
        """Store ``new_value`` in the named word."""
        if isinstance(self.field, int):
            self.target[self.field] = self.new_value
        else:
            setattr(self.target, self.field, self.new_value)


@dataclass
class PMwCASDescriptor:
    """A set of word updates to apply together."""

    entries: list[PMwCASEntry] = field(default_factory=list)

    def add(self, target: Any, field: Field, new_value: int) -> PMwCASEntry:
        """Append an update of ``target``'s ``field`` to ``new_value``."""
        entry = PMwCASEntry(target, field, new_value)
        self.entries.append(entry)
        return entry


def pmwcas(descriptor: PMwCASDescriptor, stats: Stats) -> bool:
    """Apply every update in ``descriptor`` as one durable step.

    The descriptor metadata is written, flushed and fenced. Each word is then
    written once, and the final state is flushed and fenced. Every entry is
    checked first, so either all updates take effect or none do.
    """
    for entry in descriptor.entries:
        entry.check()

    stats.write(DESCRIPTOR_WORDS)
    stats.flush()
    stats.fence()

    for entry in descriptor.entries:
        entry.apply()
        stats.write()

    stats.flush()
    stats.fence()
    return True


@dataclass
class BzLeafNode:
    """An append-only leaf with room for ``capacity`` keys."""

    capacity: int = CAPACITY
    keys: list[int] = field(default_factory=list)
    count: int = 0

    def __post_init__(self) -> None:
        if self.capacity < 0:
            raise ValueError(f"capacity must not be negative: {self.capacity}")
        if not self.keys:
            self.keys = [0] * self.capacity

    @property
    def full(self) -> bool:
        return self.count >= self.capacity

    def stored(self) -> list[int]:
        """Return the keys held, in insertion order."""
        return self.keys[: self.count]


def bztree_insert(leaf: BzLeafNode, key: int, stats: Stats) -> bool:
    """Append ``key`` by a two-word PMwCAS on the next slot and the count.

    A full leaf is left untouched and nothing is counted. Returns whether the
    key was stored.
    """
    if leaf.full:
        return False
    descriptor = PMwCASDescriptor()
    descriptor.add(leaf.keys, leaf.count, key)
    descriptor.add(leaf, "count", leaf.count + 1)
    return pmwcas(descriptor, stats)


def search_leaf(leaf: BzLeafNode, key: int) -> bool:
    """Return whether ``key`` is stored in the leaf."""
    return key in leaf.stored()


def _binary_search(keys: list[int], key: int) -> bool:
    pos = bisect.bisect_left(keys, key)
    return pos < len(keys) and keys[pos] == key


class _GrowableSortedLeaf:
    """Growable sorted leaf that charges a fixed cost for every insert."""

    COST: tuple[int, int, int] = (0, 0, 0)

    def __init__(self) -> None:
        self.keys: list[int] = []

    def _insert_charged(self, key: int, stats: Stats) -> None:
        bisect.insort_left(self.keys, key)
        stats.charge(*self.COST)


class BzLeaf(_GrowableSortedLeaf):
    """BzTree-like leaf: few writes but more flushes and fences per insert."""

    COST = (3, 3, 2)

    def insert(self, key: int, stats: Stats) -> None:
        """Insert ``key`` in order and charge this model's fixed cost."""
        self._insert_charged(key, stats)

    def search(self, key: int) -> bool:
        """Return whether ``key`` is stored, by binary search."""
        return _binary_search(self.keys, key)


class SimpleLeaf(_GrowableSortedLeaf):
    """Plain B+-tree style leaf with a lighter persistence cost."""

    COST = (4, 2, 1)

    def insert(self, key: int, stats: Stats) -> None:
        """Insert ``key`` in order and charge this model's fixed cost."""
        self._insert_charged(key, stats)

    def search(self, key: int) -> bool:
        """Return whether ``key`` is stored, by binary search."""
        return _binary_search(self.keys, key)


@dataclass
class BzTreeResult:
    """Outcome of the BzTree insert benchmark."""

    throughput_ops_sec: float
    stats: Stats
    search_hits: int
    sample_size: int
    leaf: BzLeafNode = field(repr=False)

    def csv_rows(self) -> list[str]:
        """Return the metrics CSV lines, header included."""
        s = self.stats
        return [
            METRICS_HEADER,
            ",".join(
                (
                    "bztree_sim",
                    format(self.throughput_ops_sec, "g"),
                    str(s.nw),
                    str(s.nclf),
                    str(s.nmf),
                    str(self.search_hits),
                )
            ),
        ]


def run_bztree_benchmark(
    prefill: int = DEFAULT_LEAF_PREFILL,
    ops: int = DEFAULT_INSERT_OPS,
    seed: int = DEFAULT_SEED,
) -> BzTreeResult:
    """Pre-fill a leaf, time ``ops`` inserts, then sample searches of those keys.

    The traffic of the pre-fill is counted together with the benchmark's.
    """
    if prefill < 0 or ops < 0:
        raise ValueError("prefill and ops must not be negative")

    rng = Mt19937_64(seed)
    leaf = BzLeafNode()
    stats = Stats()

    for _ in range(prefill):
        bztree_insert(leaf, rng.uniform_int(KEY_LOW, KEY_HIGH), stats)

    keys = [rng.uniform_int(KEY_LOW, KEY_HIGH) for _ in range(ops)]

    start = time.perf_counter()
    for key in keys:
        bztree_insert(leaf, key, stats)
    elapsed = time.perf_counter() - start
    throughput = ops / elapsed if elapsed > 0 else float("inf")

    sample = keys[:SEARCH_SAMPLE]
    hits = sum(1 for key in sample if search_leaf(leaf, key))

    return BzTreeResult(
        throughput_ops_sec=throughput,
        stats=stats,
        search_hits=hits,
        sample_size=len(sample),
        leaf=leaf,
    )


def _non_negative(text: str) -> int:
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return value


def main(argv: Sequence[str] | None = None) -> int:
    """Run the BzTree insert benchmark and write its metrics CSV."""
    parser = argparse.ArgumentParser(
        description="Simulate BzTree leaf inserts built on PMwCAS."
    )
    parser.add_argument("--results-dir", default="results")
    parser.add_argument("--prefill", type=_non_negative, default=DEFAULT_LEAF_PREFILL)
    parser.add_argument("--ops", type=_non_negative, default=DEFAULT_INSERT_OPS)
    args = parser.parse_args(argv)

    os.makedirs(args.results_dir, exist_ok=True)
    result = run_bztree_benchmark(args.prefill, args.ops)

    path = os.path.join(args.results_dir, METRICS_FILE)
    with open(path, "w", encoding="utf-8", newline="") as csv_file:
        csv_file.writelines(line + "\n" for line in result.csv_rows())

    print(f"BzTree (PMwCAS) throughput: {result.throughput_ops_sec:g} ops/sec")
    print(f"Search hits: {result.search_hits} / {result.sample_size}")
    print(" BzTree simulation complete")
    return 0


def main_extension(argv: Sequence[str] | None = None) -> int:
    """Run the mixed workload over simple and BzTree-like leaves."""
    parser = argparse.ArgumentParser(
        description="Mixed read/write workload for simple and BzTree-like leaves."
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
        [("simple_leaf", SimpleLeaf), ("bztree_leaf", BzLeaf)],
        args.prefill,
        args.ops,
        ratios,
        EXTENSION_SEED,
        sys.stdout,
    )
    return 0