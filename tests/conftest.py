import pytest

from melodygram.selector import StochasticSelector

SAMPLE_MELODY = """\
% test corpus: one measure per line
c4:4 c4:4 g4:4 g4:4 | C
a4:4 a4:4 g4:2 | F
f4:4 f4:4 e4:4 e4:4 | C
d4:4 d4:4 c4:2 | G
g4:8 g4:8 f4:4 f4:4 e4:4 | C
e4:4 d4:4.5 r:8 d4:4 | G
c5:4 b4:8 a4:8 g4:2 | C
"""


class FixedRandom:
    """Stand-in random source whose integer draws always return ``value`` (clamped to the range)."""

    def __init__(self, value: int = 1) -> None:
        self.value = value

    def randint(self, a: int, b: int) -> int:
        return min(max(self.value, a), b)


@pytest.fixture
def first_choice_selector() -> StochasticSelector:
    """Selector that always picks the first follower in table order."""
    return StochasticSelector(rng=FixedRandom(1))


@pytest.fixture
def sample_corpus_path(tmp_path):
    path = tmp_path / "melody.txt"
    path.write_text(SAMPLE_MELODY, encoding="utf-8")
    return path


@pytest.fixture
def fixed_selector():
    """Factory for selectors whose every draw is ``roll``."""

    def make(roll: int) -> StochasticSelector:
        return StochasticSelector(rng=FixedRandom(roll))

    return make


@pytest.fixture
def sample_melody() -> str:
    return SAMPLE_MELODY
