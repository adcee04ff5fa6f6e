"""Unit tests for frequency table statistics."""

import pytest

from melodygram.stats import compute_stats, format_stats
from melodygram.trigram_builder import FrequencyTable, build_table


def _table() -> FrequencyTable:
    return build_table(["c4:4", "e4:4", "g4:4", "c4:4", "e4:4", "a4:4"])


def test_compute_stats() -> None:
    stats = compute_stats(_table())
    assert stats.unique_tokens == 4
    assert stats.possible_bigrams == 16
    assert stats.bigram_count == 3
    assert stats.multi_option_count == 1
    assert stats.average_options == pytest.approx(4 / 3)
    assert stats.follower_distribution == {1: 2, 2: 1}
    assert stats.richest_bigram == "c4:4 e4:4"
    assert stats.richest_followers == {"a4:4": 1, "g4:4": 1}


def test_compute_stats_empty_table() -> None:
    stats = compute_stats(FrequencyTable())
    assert stats.unique_tokens == 0
    assert stats.bigram_count == 0
    assert stats.average_options == 0.0
    assert stats.follower_distribution == {}
    assert stats.richest_bigram is None


def test_format_stats() -> None:
    text = format_stats("Standard - Standard Stats", compute_stats(_table()))
    assert "--- Standard - Standard Stats ---" in text
    assert "Total unique tokens: 4" in text
    assert "Possible 2-note combinations: 16" in text
    assert "Average options for third note: 1.33" in text
    assert "Options per bigram: 1 -> 2, 2 -> 1" in text
    assert "Bigram with most options ('c4:4 e4:4' -> 2 options):" in text
    assert "  [a4:4: 1, g4:4: 1]" in text


def test_format_stats_empty_table() -> None:
    text = format_stats("Empty", compute_stats(FrequencyTable()))
    assert "Bigram with most options: none" in text
