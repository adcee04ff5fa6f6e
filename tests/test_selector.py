"""Unit tests for StochasticSelector."""

import random

import pytest

from melodygram.selector import StochasticSelector
from melodygram.trigram_builder import FrequencyTable

TABLE = FrequencyTable({"c4:4 e4:4": {"g4:4": 3, "a4:4": 1}})


def test_select_missing_key_returns_none() -> None:
    selector = StochasticSelector(seed=1)
    assert selector.select(TABLE, "d4:4 e4:4") is None
    assert selector.select(FrequencyTable(), "r:8 r:8") is None


@pytest.mark.parametrize(
    ("roll", "expected"),
    [(1, "a4:4"), (2, "g4:4"), (4, "g4:4")],
)
def test_select_walks_cumulative_counts(fixed_selector, roll: int, expected: str) -> None:
    # Sorted order is a4:4 (1) then g4:4 (3): roll 1 -> a4:4, rolls 2-4 -> g4:4.
    selector = fixed_selector(roll)
    assert selector.select(TABLE, "c4:4 e4:4") == expected


def test_single_follower_always_selected() -> None:
    selector = StochasticSelector(seed=99)
    table = FrequencyTable({"r:8 r:8": {"c4:4": 5}})
    assert {selector.select(table, "r:8 r:8") for _ in range(50)} == {"c4:4"}


def test_seeded_selectors_repeat_the_same_draws() -> None:
    first = StochasticSelector(seed=7)
    second = StochasticSelector(rng=random.Random(7))
    draws_a = [first.select(TABLE, "c4:4 e4:4") for _ in range(30)]
    draws_b = [second.select(TABLE, "c4:4 e4:4") for _ in range(30)]
    assert draws_a == draws_b


def test_draws_approximate_weights() -> None:
    selector = StochasticSelector(seed=1234)
    draws = [selector.select(TABLE, "c4:4 e4:4") for _ in range(10_000)]
    share = draws.count("g4:4") / len(draws)
    assert 0.72 < share < 0.78


def test_choose_rejects_empty_distribution() -> None:
    with pytest.raises(ValueError):
        StochasticSelector(seed=1).choose({})
