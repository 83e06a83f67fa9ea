import io

import pytest

from pmleafsim.mixed import (
    KEY_HIGH,
    KEY_LOW,
    REPORT_HEADER,
    MixedResult,
    run_mixed_workload,
    write_mixed_report,
)


class RecordingLeaf:
    """Leaf that keeps its keys and counts its searches."""

    instances = []

    def __init__(self):
        self.keys = []
        self.searches = 0
        RecordingLeaf.instances.append(self)

    def insert(self, key, stats):
        self.keys.append(key)
        stats.charge(1, 1, 1)

    def search(self, key):
        self.searches += 1
        return key in self.keys


@pytest.fixture(autouse=True)
def _reset_instances():
    RecordingLeaf.instances.clear()


def test_all_writes_insert_every_operation():
    result = run_mixed_workload(RecordingLeaf, 10, 200, 1.0, 42)
    leaf = RecordingLeaf.instances[-1]
    assert len(leaf.keys) == 210
    assert leaf.searches == 0
    assert result.stats.nw == 210


def test_all_reads_only_prefill_inserts():
    result = run_mixed_workload(RecordingLeaf, 10, 200, 0.0, 42)
    leaf = RecordingLeaf.instances[-1]
    assert len(leaf.keys) == 10
    assert leaf.searches == 200
    assert result.stats.nw == 10
    assert result.stats.nmf == 10


def test_mixed_operations_add_up():
    run_mixed_workload(RecordingLeaf, 5, 1000, 0.5, 123)
    leaf = RecordingLeaf.instances[-1]
    inserts = len(leaf.keys) - 5
    assert inserts + leaf.searches == 1000
    assert 300 < inserts < 700


def test_keys_stay_in_range():
    run_mixed_workload(RecordingLeaf, 100, 500, 0.9, 321)
    keys = RecordingLeaf.instances[-1].keys
    assert all(KEY_LOW <= k <= KEY_HIGH for k in keys)


def test_same_seed_same_keys():
    run_mixed_workload(RecordingLeaf, 50, 300, 0.5, 42)
    run_mixed_workload(RecordingLeaf, 50, 300, 0.5, 42)
    first, second = RecordingLeaf.instances
    assert first.keys == second.keys
    assert first.searches == second.searches


def test_different_seed_different_keys():
    run_mixed_workload(RecordingLeaf, 50, 0, 0.5, 42)
    run_mixed_workload(RecordingLeaf, 50, 0, 0.5, 123)
    first, second = RecordingLeaf.instances
    assert first.keys != second.keys


def test_throughput_is_positive():
    result = run_mixed_workload(RecordingLeaf, 0, 1000, 0.5, 42)
    assert isinstance(result, MixedResult)
    assert result.throughput_ops_sec > 0


def test_negative_counts_rejected():
    with pytest.raises(ValueError):
        run_mixed_workload(RecordingLeaf, -1, 10, 0.5, 42)
    with pytest.raises(ValueError):
        run_mixed_workload(RecordingLeaf, 1, -10, 0.5, 42)


def test_report_layout():
    out = io.StringIO()
    rows = write_mixed_report(
        [("a", RecordingLeaf), ("b", RecordingLeaf)], 5, 50, [0.9, 0.0], 42, out
    )
    lines = out.getvalue().splitlines()
    assert lines[0] == REPORT_HEADER
    assert len(lines) == 5
    assert [line.split(",")[0] for line in lines[1:]] == ["a", "b", "a", "b"]
    assert [line.split(",")[1] for line in lines[1:]] == ["0.9", "0.9", "0", "0"]
    assert all(line.split(",")[2] == "50" for line in lines[1:])
    assert [(name, ratio) for name, ratio, _ in rows] == [
        ("a", 0.9),
        ("b", 0.9),
        ("a", 0.0),
        ("b", 0.0),
    ]


def test_report_counters_match_results():
    out = io.StringIO()
    rows = write_mixed_report([("a", RecordingLeaf)], 5, 40, [0.0], 42, out)
    fields = out.getvalue().splitlines()[1].split(",")
    _, _, result = rows[0]
    assert fields[4:] == [
        str(result.stats.nw),
        str(result.stats.nclf),
        str(result.stats.nmf),
    ]
    assert result.stats.nw == 5