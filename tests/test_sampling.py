import logging

import pytest

from chess_branches.sampling import (
    CountStrategy,
    Distribution,
    game_seed,
    generate_normal_distribution,
    sample_count,
    sample_indices,
)
from chess_branches.sampling import _nearest_index, _sample_normal


def test_percentage_count():
    assert sample_count(CountStrategy.PERCENTAGE, 20.0, 10) == 2
    assert sample_count(CountStrategy.PERCENTAGE, 10.0, 7) == 0
    assert sample_count(CountStrategy.PERCENTAGE, 29.0, 100) == 29
    assert sample_count(CountStrategy.PERCENTAGE, 100.0, 13) == 13


def test_exact_count():
    assert sample_count(CountStrategy.EXACT_N, 3, 10) == 3
    assert sample_count("exact", 0, 10) == 0


def test_count_clamped_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="chess_branches.sampling"):
        assert sample_count(CountStrategy.EXACT_N, 12, 5) == 5
    assert "clamping" in caplog.text


def test_negative_limit_rejected():
    with pytest.raises(ValueError):
        sample_count(CountStrategy.EXACT_N, -1, 5)


def test_normal_params():
    p = generate_normal_distribution(0)
    assert p.mean == -0.5 and p.stddev == 0
    p = generate_normal_distribution(10)
    assert p.mean == 4.5 and p.stddev == 5.0
    assert generate_normal_distribution(10, stdcover=2).stddev == 2.5


@pytest.mark.parametrize("distribution", list(Distribution))
def test_indices_distinct_sorted_in_range(distribution):
    picked = sample_indices(distribution, 40, 12, seed=7)
    assert len(picked) == 12
    assert picked == sorted(set(picked))
    assert all(0 <= i < 40 for i in picked)


@pytest.mark.parametrize("distribution", list(Distribution))
def test_same_seed_same_indices(distribution):
    a = sample_indices(distribution, 50, 10, seed=[42, 3])
    b = sample_indices(distribution, 50, 10, seed=[42, 3])
    assert a == b


@pytest.mark.parametrize("distribution", list(Distribution))
def test_whole_population(distribution):
    assert sample_indices(distribution, 6, 6, seed=1) == list(range(6))


def test_indices_clamped_and_empty(caplog):
    with caplog.at_level(logging.WARNING):
        assert sample_indices(Distribution.UNIFORM, 3, 8, seed=0) == [0, 1, 2]
    assert sample_indices(Distribution.NORMAL, 0, 0, seed=0) == []
    assert sample_indices(Distribution.NORMAL, 5, 0, seed=0) == []


def test_normal_prefers_the_middle():
    hits = [0] * 21
    for s in range(2000):
        for i in sample_indices(Distribution.NORMAL, 21, 1, seed=s):
            hits[i] += 1
    assert sum(hits[7:14]) > sum(hits[:7]) and sum(hits[7:14]) > sum(hits[14:])


def test_game_seed():
    assert game_seed(42, 9) == [42, 9]
    assert game_seed(None, 9) is None


@pytest.mark.parametrize("x, expected", [(0.5, 0), (1.5, 1), (2.5, 2), (0.51, 1), (2.49, 2), (-0.4, 0)])
def test_nearest_index_ties_go_down(x, expected):
    assert _nearest_index(x) == expected


class ListRng:
    """Stands in for a numpy Generator: normal() returns queued draws."""

    def __init__(self, draws):
        self.draws = list(draws)

    def normal(self, mean, std):
        return self.draws.pop(0)


def test_normal_draws_outside_window_rejected():
    # population 3 keeps draws strictly inside (-0.5, 2.5)
    rng = ListRng([-0.5, 2.5, 0.0, 0.4, 2.49])
    assert _sample_normal(rng, 3, 2) == {0, 2}
    assert rng.draws == []
