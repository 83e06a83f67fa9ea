import pytest

from pmleafsim.stats import Stats


def test_starts_at_zero():
    stats = Stats()
    assert (stats.nw, stats.nclf, stats.nmf) == (0, 0, 0)


def test_write_defaults_to_one_word():
    stats = Stats()
    stats.write()
    stats.write()
    assert stats.nw == 2
    assert stats.nclf == 0
    assert stats.nmf == 0


def test_write_counts_several_words():
    stats = Stats()
    stats.write(4)
    stats.write(2)
    assert stats.nw == 6


def test_flush_and_fence_count_separately():
    stats = Stats()
    stats.flush()
    stats.flush()
    stats.fence()
    assert stats.nclf == 2
    assert stats.nmf == 1
    assert stats.nw == 0


def test_charge_adds_all_three():
    stats = Stats()
    stats.charge(4, 2, 1)
    stats.charge(4, 2, 1)
    assert stats == Stats(nw=8, nclf=4, nmf=2)


def test_charge_matches_individual_calls():
    charged = Stats()
    charged.charge(3, 3, 2)
    stepped = Stats()
    stepped.write(3)
    for _ in range(3):
        stepped.flush()
    for _ in range(2):
        stepped.fence()
    assert charged == stepped


def test_negative_write_rejected():
    stats = Stats()
    with pytest.raises(ValueError):
        stats.write(-1)
    assert stats.nw == 0


@pytest.mark.parametrize("cost", [(-1, 0, 0), (0, -1, 0), (0, 0, -1)])
def test_negative_charge_rejected(cost):
    stats = Stats()
    with pytest.raises(ValueError):
        stats.charge(*cost)
    assert stats == Stats()