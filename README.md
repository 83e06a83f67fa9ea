# pmleafsim

Small simulators for comparing B+-tree leaf designs on persistent memory.
They do not touch real persistent memory. Each leaf design keeps its keys in
ordinary Python lists and charges a cost model for every insert: the number
of 8-byte word writes (`Nw`), cache-line flushes (`Nclf`) and memory fences
(`Nmf`) that the design would need. Throughput is measured with
`time.perf_counter`, so only the relative trends between designs mean
anything.

Random keys come from a 64-bit Mersenne Twister with fixed seeds, so the
counter values are the same on every run.

## Installation

```
pip install .
```

Running the tests:

```
pip install ".[test]"
pytest
```

## Commands

| Command | What it does |
| --- | --- |
| `pmleafsim-article1` | Times the same keys into one sorted 128-key leaf and into a 64-leaf tree of unsorted (append-only) leaves; writes `article1_metrics.csv` and prints a summary. |
| `pmleafsim-article1-mixed` | Mixed read/write workload over unsorted and sorted leaves; prints CSV to standard output. |
| `pmleafsim-article2` | Insert benchmark for a volatile sorted leaf, a sorted leaf with logging and a simplified wB+-tree leaf (32 keys each); writes `wbtree_insert_metrics.csv` and prints each throughput. |
| `pmleafsim-article2-mixed` | Mixed workload over baseline, logging and wB+-tree leaf models; prints CSV. |
| `pmleafsim-article3` | Insert benchmark for a 32-key BzTree-style leaf updated through a simulated PMwCAS; writes `bztree_metrics.csv` and prints a summary. |
| `pmleafsim-article3-mixed` | Mixed workload over a simple leaf and a BzTree leaf model; prints CSV. |

Options:

- `pmleafsim-article1`: `--results-dir` (default `results`), `--prefill`
  (default 200000 tree pre-fill keys), `--bench-ops` (default 50000).
- `pmleafsim-article2` and `pmleafsim-article3`: `--results-dir` (default
  `results`), `--prefill` (default 22 keys, 70% of a leaf), `--ops`
  (default 100000).
- The `-mixed` commands: `--prefill` (default 5000), `--ops` (default
  100000) and `--write-ratios` (default `0.9 0.5 0.1 0.0`).

Commands that write files create the results directory if it does not exist.
Counts must not be negative.

The mixed-workload commands print rows of the form

```
variant,write_ratio,ops,throughput_ops_sec,Nw,Nclf,Nmf
```

Each operation draws a ratio in [0, 1) and a key in [1, 1000000000]; it
inserts when the ratio is below the write ratio and searches otherwise.
Counters include the pre-fill inserts.

In `article1_metrics.csv` both rows share one set of counters, which covers
the tree pre-fill, the sorted-leaf inserts and the tree inserts (each timed
tree insert adds one extra write); the `unsorted` row reports a quarter of
those counts. Search hits are counted over the first 5000 benchmark keys in
the sorted leaf.

## Using the library

```python
from pmleafsim.stats import Stats
from pmleafsim.article1 import SortedLeaf, UnsortedLeaf
from pmleafsim.mixed import run_mixed_workload

stats = Stats()
leaf = SortedLeaf()
leaf.insert(42, stats)
assert leaf.search(42)
print(stats)  # Stats(nw=4, nclf=2, nmf=1)

result = run_mixed_workload(UnsortedLeaf, 5000, 100000, 0.5, 42)
print(result.throughput_ops_sec, result.stats)
```

Modules:

- `pmleafsim.rng` – `Mt19937_64` with `next_u64`, `uniform_int(low, high)`
  (closed range) and `uniform_real()` (in [0, 1)); it is also an iterator of
  raw 64-bit outputs.
- `pmleafsim.stats` – `Stats`, with counters `nw`, `nclf`, `nmf` and the
  methods `write`, `flush`, `fence` and `charge`. Negative counts raise
  `ValueError`.
- `pmleafsim.mixed` – `run_mixed_workload`, `write_mixed_report` (writes CSV
  to a stream, standard output by default, and returns the rows) and
  `MixedResult`.
- `pmleafsim.article1` – `UnsortedLeaf`, `SortedLeaf`, the fixed-capacity
  `FixedLeaf` with `insert_sorted`, `insert_unsorted` and `search_leaf`,
  `SimpleBPlusTree` (key goes to leaf `key % num_leaves`) and
  `run_sorted_unsorted`.
- `pmleafsim.article2` – growable `LeafBaseline`, `LeafLogging`,
  `LeafWBTreeModel`; fixed-capacity `LeafBTreeVolatile`, `LeafBTreeLog`,
  `LeafWBTree`; `run_insert_benchmark` and `run_wbtree_comparison`.
- `pmleafsim.article3` – `PMwCASEntry`, `PMwCASDescriptor`, `pmwcas` (checks
  every entry before applying any), `BzLeafNode`, `bztree_insert`,
  `search_leaf`, `BzLeaf`, `SimpleLeaf` and `run_bztree_benchmark`.

## What it does not do

- There is no complete B+-tree: no inner nodes, splits, merges or deletes.
  A fixed-capacity leaf that is full silently ignores further inserts
  (the insert functions return `False`), so with the default sizes most
  benchmark inserts into a single leaf are dropped.
- Nothing is written to persistent memory and nothing is made durable; the
  counters are the only model of persistence cost.
- There is no concurrency; PMwCAS is applied in a single thread.
- No plots are produced; the CSV files are the output.