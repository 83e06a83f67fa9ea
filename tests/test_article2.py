import pytest

from pmleafsim.article2 import (
    CAPACITY,
    METRICS_FILE,
    METRICS_HEADER,
    LeafBaseline,
    LeafBTreeLog,
    LeafBTreeVolatile,
    LeafLogging,
    LeafWBTree,
    LeafWBTreeModel,
    main,
    main_extension,
    run_insert_benchmark,
    run_wbtree_comparison,
)
from pmleafsim.rng import Mt19937_64
from pmleafsim.stats import Stats


def _stats_after(leaf_type, keys):
    leaf = leaf_type()
    stats = Stats()
    for key in keys:
        leaf.insert(key, stats)
    return leaf, stats


@pytest.mark.parametrize("leaf_type", [LeafBaseline, LeafLogging, LeafWBTreeModel])
def test_growable_leaves_keep_keys_sorted_and_searchable(leaf_type):
    keys = [50, 10, 40, 20, 30, 10]
    leaf, _ = _stats_after(leaf_type, keys)
    assert leaf.keys == sorted(keys)
    assert all(leaf.search(k) for k in keys)
    assert not leaf.search(35)
    assert not leaf.search(60)


@pytest.mark.parametrize("leaf_type", [LeafBaseline, LeafLogging, LeafWBTreeModel])
def test_growable_leaf_cost_is_constant_per_insert(leaf_type):
    _, one = _stats_after(leaf_type, [7])
    _, many = _stats_after(leaf_type, [9, 3, 7, 1, 5])
    assert many == Stats(5 * one.nw, 5 * one.nclf, 5 * one.nmf)


def test_baseline_insert_cost():
    _, stats = _stats_after(LeafBaseline, [1])
    assert stats == Stats(4, 2, 1)


def test_logging_costs_twice_baseline_and_wbtree_is_cheapest():
    keys = [3, 1, 2]
    _, base = _stats_after(LeafBaseline, keys)
    _, log = _stats_after(LeafLogging, keys)
    _, wb = _stats_after(LeafWBTreeModel, keys)
    assert log == Stats(2 * base.nw, 2 * base.nclf, 2 * base.nmf)
    assert wb.nw < base.nw < log.nw
    assert wb.nmf == base.nmf


def test_volatile_counts_shifted_words_without_flushes():
    leaf, stats = _stats_after(LeafBTreeVolatile, [10, 20, 30])
    before = stats.nw
    assert leaf.insert(5, stats) is True
    assert stats.nw - before == len(leaf.keys)
    assert stats.nclf == 0 and stats.nmf == 0
    assert leaf.keys == [5, 10, 20, 30]


def test_volatile_append_at_end_writes_single_word():
    leaf, stats = _stats_after(LeafBTreeVolatile, [10, 20])
    before = stats.nw
    leaf.insert(99, stats)
    assert stats.nw - before == 1


def test_log_leaf_flushes_and_fences_twice_per_insert():
    keys = [8, 6, 4, 2]
    leaf, stats = _stats_after(LeafBTreeLog, keys)
    _, volatile = _stats_after(LeafBTreeVolatile, keys)
    assert leaf.keys == sorted(keys)
    assert stats.nclf == 2 * len(keys)
    assert stats.nmf == 2 * len(keys)
    assert stats.nw == volatile.nw + LeafBTreeLog.LOG_RECORD_WORDS * len(keys)


def test_wbtree_appends_in_arrival_order():
    keys = [30, 10, 20]
    leaf, stats = _stats_after(LeafWBTree, keys)
    assert leaf.keys == keys
    assert stats == Stats(2 * len(keys), len(keys), len(keys))
    assert leaf.search(10) and not leaf.search(15)


@pytest.mark.parametrize("leaf_type", [LeafBTreeVolatile, LeafBTreeLog, LeafWBTree])
def test_fixed_leaves_ignore_inserts_when_full(leaf_type):
    leaf, stats = _stats_after(leaf_type, range(CAPACITY, 0, -1))
    assert leaf.count == CAPACITY
    snapshot = Stats(stats.nw, stats.nclf, stats.nmf)
    assert leaf.insert(0, stats) is False
    assert stats == snapshot
    assert leaf.count == CAPACITY
    assert not leaf.search(0)


@pytest.mark.parametrize("leaf_type", [LeafBTreeVolatile, LeafBTreeLog])
def test_sorted_fixed_leaves_search(leaf_type):
    keys = [17, 4, 23, 8]
    leaf, _ = _stats_after(leaf_type, keys)
    assert all(leaf.search(k) for k in keys)
    assert not leaf.search(5)


def test_run_insert_benchmark_inserts_all_keys():
    leaf = LeafWBTree()
    stats = Stats()
    keys = [5, 6, 7]
    throughput = run_insert_benchmark(leaf, stats, keys)
    assert throughput > 0
    assert leaf.keys == keys
    assert stats.nclf == len(keys)


def test_comparison_variants_and_contents():
    prefill, ops = 22, 40
    results = run_wbtree_comparison(prefill, ops, 123)
    assert [r.name for r in results] == ["btree_volatile", "btree_log", "wbtree_simplified"]

    rng = Mt19937_64(123)
    drawn = [rng.uniform_int(1, 1_000_000_000) for _ in range(prefill + ops)]
    stored = drawn[:CAPACITY]

    volatile, log, wb = results
    assert wb.leaf.keys == stored
    assert volatile.leaf.keys == sorted(stored)
    assert log.leaf.keys == sorted(stored)
    assert volatile.stats.nclf == 0
    assert wb.stats == Stats(2 * CAPACITY, CAPACITY, CAPACITY)
    assert log.stats.nmf == 2 * CAPACITY


def test_comparison_is_deterministic():
    first = run_wbtree_comparison(10, 30, 7)
    second = run_wbtree_comparison(10, 30, 7)
    assert [r.stats for r in first] == [r.stats for r in second]


def test_comparison_rejects_negative_counts():
    with pytest.raises(ValueError):
        run_wbtree_comparison(-1, 10, 1)


def test_csv_row_format():
    result = run_wbtree_comparison(5, 5, 1)[2]
    fields = result.csv_row().split(",")
    assert fields[0] == "wbtree_simplified"
    assert fields[2:] == [str(result.stats.nw), str(result.stats.nclf), str(result.stats.nmf)]


def test_main_writes_metrics_csv(tmp_path, capsys):
    assert main(["--results-dir", str(tmp_path), "--ops", "50"]) == 0
    lines = (tmp_path / METRICS_FILE).read_text(encoding="utf-8").splitlines()
    assert lines[0] == METRICS_HEADER
    assert [line.split(",")[0] for line in lines[1:]] == [
        "btree_volatile",
        "btree_log",
        "wbtree_simplified",
    ]
    out = capsys.readouterr().out
    assert "wbtree_simplified throughput:" in out
    assert "Results written to" in out


def test_main_extension_prints_report(capsys):
    assert main_extension(["--prefill", "20", "--ops", "30", "--write-ratios", "0.0"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "variant,write_ratio,ops,throughput_ops_sec,Nw,Nclf,Nmf"
    rows = [line.split(",") for line in lines[1:]]
    assert [row[0] for row in rows] == ["baseline", "logging", "wbtree"]
    base_nw, log_nw = int(rows[0][4]), int(rows[1][4])
    assert log_nw == 2 * base_nw
    assert all(row[2] == "30" for row in rows)