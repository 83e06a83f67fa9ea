"""Mixed read/write workload driver shared by the leaf models."""

from __future__ import annotations

import sys
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Protocol, TextIO

from .rng import Mt19937_64
from .stats import Stats

KEY_LOW = 1
KEY_HIGH = 1_000_000_000

DEFAULT_PREFILL = 5000
DEFAULT_OPS = 100000
DEFAULT_WRITE_RATIOS = (0.9, 0.5, 0.1, 0.0)

REPORT_HEADER = "variant,write_ratio,ops,throughput_ops_sec,Nw,Nclf,Nmf"


class Leaf(Protocol):
    """What the workload driver needs from a leaf model."""

    def insert(self, key: int, stats: Stats) -> None: ...

    def search(self, key: int) -> bool: ...


@dataclass
class MixedResult:
    """Throughput of the timed phase and the traffic counted over the whole run."""

    throughput_ops_sec: float
    stats: Stats = field(default_factory=Stats)


def run_mixed_workload(
    leaf_factory: Callable[[], Leaf],
    prefill: int = DEFAULT_PREFILL,
    num_ops: int = DEFAULT_OPS,
    write_ratio: float = 0.5,
    seed: int = 42,
) -> MixedResult:
    """Pre-fill a fresh leaf, then time ``num_ops`` mixed inserts and searches.

    Each operation draws a ratio in [0, 1) and a key; it inserts when the ratio
    is below ``write_ratio`` and searches otherwise.
    """
    if prefill < 0 or num_ops < 0:
        raise ValueError("prefill and num_ops must not be negative")

    leaf = leaf_factory()
    stats = Stats()
    rng = Mt19937_64(seed)

    for _ in range(prefill):
        leaf.insert(rng.uniform_int(KEY_LOW, KEY_HIGH), stats)

    start = time.perf_counter()
    for _ in range(num_ops):
        ratio = rng.uniform_real()
        key = rng.uniform_int(KEY_LOW, KEY_HIGH)
        if ratio < write_ratio:
            leaf.insert(key, stats)
        else:
            leaf.search(key)
    elapsed = time.perf_counter() - start

    throughput = num_ops / elapsed if elapsed > 0 else float("inf")
    return MixedResult(throughput_ops_sec=throughput, stats=stats)


def _format_number(value: float) -> str:
    return format(value, "g")


def write_mixed_report(
    variants: Sequence[tuple[str, Callable[[], Leaf]]],
    prefill: int = DEFAULT_PREFILL,
    num_ops: int = DEFAULT_OPS,
    write_ratios: Iterable[float] = DEFAULT_WRITE_RATIOS,
    seed: int = 42,
    out: TextIO | None = None,
) -> list[tuple[str, float, MixedResult]]:
    """Run every variant at every write ratio and write the results as CSV.

    Returns the rows written, as (variant name, write ratio, result).
    """
    stream = sys.stdout if out is None else out
    stream.write(REPORT_HEADER + "\n")
    rows: list[tuple[str, float, MixedResult]] = []
    for ratio in write_ratios:
        for name, factory in variants:
            result = run_mixed_workload(factory, prefill, num_ops, ratio, seed)
            stream.write(
                ",".join(
                    (
                        name,
                        _format_number(ratio),
                        str(num_ops),
                        _format_number(result.throughput_ops_sec),
                        str(result.stats.nw),
                        str(result.stats.nclf),
                        str(result.stats.nmf),
                    )
                )
                + "\n"
            )
            rows.append((name, ratio, result))
    return rows