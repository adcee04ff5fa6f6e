"""StochasticSelector: weighted random choice of the next token from a frequency table."""

from __future__ import annotations

import random
from collections.abc import Mapping


class StochasticSelector:
    """
    Draws a follower for a bigram key in proportion to its count.

    The draw is an integer in [1, total]; followers are walked in the table's
    enumeration order, accumulating counts until the running sum reaches the
    draw. One selector (and therefore one random source) serves a whole
    generation run, so a fixed seed reproduces a fixed melody.
    """

    def __init__(self, rng: random.Random | None = None, seed: int | None = None) -> None:
        """
        Args:
            rng:  Random source to draw from. Takes precedence over ``seed``.
            seed: Seed for a fresh ``random.Random`` when no ``rng`` is given.
        """
        self.rng = rng if rng is not None else random.Random(seed)

    def choose(self, followers: Mapping[str, int]) -> str:
        """
        Pick one follower from a non-empty count distribution.

        Raises:
            ValueError: If the distribution is empty or its counts are not positive.
        """
        total = sum(followers.values())
        if not followers or total <= 0:
            raise ValueError("Follower counts must be non-empty and positive")

        roll = self.rng.randint(1, total)
        running = 0
        for token, count in followers.items():
            running += count
            if running >= roll:
                return token

        return list(followers)[-1]

    def select(self, table: Mapping[str, Mapping[str, int]], key: str) -> str | None:
        """
        Sample the token following ``key``.

        Returns:
            The chosen follower, or None when the table has no entry for ``key``.
        """
        followers = table.get(key)
        if not followers:
            return None
        return self.choose(followers)
