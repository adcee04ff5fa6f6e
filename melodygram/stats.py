"""Statistics over trigram frequency tables."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

import numpy as np

from melodygram.trigram_builder import BIGRAM_SEPARATOR


@dataclass(frozen=True)
class TableStats:
    """
    Summary of one frequency table.

    Attributes:
        unique_tokens:         Distinct tokens seen as context or follower.
        bigram_count:          Bigrams that have at least one follower.
        multi_option_count:    Bigrams with more than one distinct follower.
        average_options:       Mean distinct followers per bigram.
        follower_distribution: Distinct-follower count -> number of bigrams.
        richest_bigram:        Bigram with the most distinct followers (first in
                               table order on ties), or None for an empty table.
        richest_followers:     That bigram's follower counts.
    """

    unique_tokens: int
    bigram_count: int
    multi_option_count: int
    average_options: float
    follower_distribution: dict[int, int] = field(default_factory=dict)
    richest_bigram: str | None = None
    richest_followers: dict[str, int] = field(default_factory=dict)

    @property
    def possible_bigrams(self) -> int:
        return self.unique_tokens * self.unique_tokens


def compute_stats(table: Mapping[str, Mapping[str, int]]) -> TableStats:
    """Derive a TableStats summary from a frequency table."""
    unique_tokens: set[str] = set()
    for bigram, followers in table.items():
        unique_tokens.update(bigram.split(BIGRAM_SEPARATOR))
        unique_tokens.update(followers)

    if not table:
        return TableStats(
            unique_tokens=len(unique_tokens),
            bigram_count=0,
            multi_option_count=0,
            average_options=0.0,
        )

    bigrams = list(table)
    options = np.array([len(table[bigram]) for bigram in bigrams])
    histogram = np.bincount(options)
    richest = bigrams[int(np.argmax(options))]

    return TableStats(
        unique_tokens=len(unique_tokens),
        bigram_count=len(bigrams),
        multi_option_count=int(np.count_nonzero(options > 1)),
        average_options=float(options.mean()),
        follower_distribution={
            int(count): int(bigram_total)
            for count, bigram_total in enumerate(histogram)
            if bigram_total
        },
        richest_bigram=richest,
        richest_followers=dict(table[richest]),
    )


def format_stats(title: str, stats: TableStats) -> str:
    """Render a stats block as plain text, as appended to ``trigrams.txt``."""
    lines = [
        "",
        f"--- {title} ---",
        f"Total unique tokens: {stats.unique_tokens}",
        f"Possible 2-note combinations: {stats.possible_bigrams}",
        f"Actual bigrams with followers: {stats.bigram_count}",
        f"Bigrams with multiple options: {stats.multi_option_count}",
        f"Average options for third note: {stats.average_options:.2f}",
        "Options per bigram: "
        + ", ".join(
            f"{count} -> {total}" for count, total in stats.follower_distribution.items()
        ),
    ]

    if stats.richest_bigram is None:
        lines.append("Bigram with most options: none")
    else:
        options = ", ".join(f"{token}: {count}" for token, count in stats.richest_followers.items())
        lines.append(
            f"Bigram with most options ('{stats.richest_bigram}' -> "
            f"{len(stats.richest_followers)} options):"
        )
        lines.append(f"  [{options}]")

    return "\n".join(lines) + "\n"
