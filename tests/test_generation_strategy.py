"""Unit tests for the five next-token strategies."""

import pytest

from melodygram.corpus import parse_corpus
from melodygram.generation_strategy import (
    ALGORITHMS,
    OctaveIgnorantStrategy,
    RelativeScaleDegreeStrategy,
    SeparatedOctaveIgnorantStrategy,
    SeparatedStrategy,
    StandardStrategy,
    get_algorithm,
)
from melodygram.tokens import parse_chord
from melodygram.trigram_builder import (
    TrigramBuilder,
    build_table,
    pitch_class_only,
    pitch_only,
    rhythm_only,
)

C_MAJOR = parse_chord("C")
F_MAJOR = parse_chord("F")
G_MAJOR = parse_chord("G")

PHRASE = ["c4:4", "e4:8", "g4:2"]


def _builder(text: str) -> TrigramBuilder:
    return TrigramBuilder(parse_corpus(text))


# ── Standard ────────────────────────────────────────────────────────────────

def test_standard_hit(first_choice_selector) -> None:
    strategy = StandardStrategy(build_table(PHRASE))
    assert strategy.propose(("c4:4", "e4:8"), C_MAJOR, first_choice_selector) == "g4:2"


def test_standard_miss(first_choice_selector) -> None:
    strategy = StandardStrategy(build_table(PHRASE))
    assert strategy.propose(("c5:4", "e5:8"), C_MAJOR, first_choice_selector) is None


# ── Octave-ignorant ─────────────────────────────────────────────────────────

def test_octave_ignorant_places_pitch_near_previous_note(first_choice_selector) -> None:
    strategy = OctaveIgnorantStrategy.from_builder(_builder("c4:4 e4:4 g4:4 | C\n"))
    assert strategy.propose(("c5:4", "e5:4"), C_MAJOR, first_choice_selector) == "g5:4"
    assert strategy.propose(("c2:4", "e2:4"), C_MAJOR, first_choice_selector) == "g2:4"


def test_octave_ignorant_after_rests_uses_octave_four(first_choice_selector) -> None:
    strategy = OctaveIgnorantStrategy.from_builder(_builder("r:8 r:8 e3:4 | C\n"))
    assert strategy.propose(("r:8", "r:8"), C_MAJOR, first_choice_selector) == "e4:4"


# ── Relative scale degree ───────────────────────────────────────────────────

def test_relative_transposes_to_current_chord(first_choice_selector) -> None:
    strategy = RelativeScaleDegreeStrategy.from_builder(_builder("c4:4 e4:4 g4:4 | C\n"))
    # Root, third -> fifth over C becomes F, A -> C over F.
    assert strategy.propose(("f4:4", "a4:4"), F_MAJOR, first_choice_selector) == "c5:4"
    assert strategy.propose(("c4:4", "e4:4"), C_MAJOR, first_choice_selector) == "g4:4"


def test_relative_miss_under_other_root(first_choice_selector) -> None:
    strategy = RelativeScaleDegreeStrategy.from_builder(_builder("c4:4 e4:4 g4:4 | C\n"))
    assert strategy.propose(("f4:4", "a4:4"), G_MAJOR, first_choice_selector) is None


# ── Separated rhythm / pitch ────────────────────────────────────────────────

def test_separated_recombines_pitch_and_rhythm(first_choice_selector) -> None:
    strategy = SeparatedStrategy(build_table(PHRASE, rhythm_only), build_table(PHRASE, pitch_only))
    assert strategy.propose(("c4:4", "e4:8"), C_MAJOR, first_choice_selector) == "g4:2"


def test_separated_rhythm_miss_aborts(first_choice_selector) -> None:
    strategy = SeparatedStrategy(build_table(PHRASE, rhythm_only), build_table(PHRASE, pitch_only))
    assert strategy.propose(("c4:8", "e4:8"), C_MAJOR, first_choice_selector) is None


def test_separated_pitch_miss_aborts(first_choice_selector) -> None:
    strategy = SeparatedStrategy(build_table(PHRASE, rhythm_only), build_table(PHRASE, pitch_only))
    assert strategy.propose(("d4:4", "e4:8"), C_MAJOR, first_choice_selector) is None


def test_separated_octave_ignorant_places_pitch(first_choice_selector) -> None:
    strategy = SeparatedOctaveIgnorantStrategy(
        build_table(PHRASE, rhythm_only), build_table(PHRASE, pitch_class_only)
    )
    assert strategy.propose(("c5:4", "e5:8"), C_MAJOR, first_choice_selector) == "g5:2"


def test_separated_octave_ignorant_from_rests(first_choice_selector) -> None:
    tokens = ["r:8", "r:8", "a3:4"]
    strategy = SeparatedOctaveIgnorantStrategy(
        build_table(tokens, rhythm_only), build_table(tokens, pitch_class_only)
    )
    assert strategy.propose(("r:8", "r:8"), C_MAJOR, first_choice_selector) == "a4:4"


# ── Registry ────────────────────────────────────────────────────────────────

def test_algorithms_are_unique_and_ordered() -> None:
    slugs = [algorithm.slug for algorithm in ALGORITHMS]
    assert slugs == [
        "standard",
        "octave_ignorant",
        "relative_scale_degree",
        "separated_rhythm_pitch",
        "separated_rhythm_pitch_octave_ignorant",
    ]


@pytest.mark.parametrize(
    ("algorithm", "labels"),
    [
        (StandardStrategy, ["Standard"]),
        (OctaveIgnorantStrategy, ["Octave-Ignorant"]),
        (RelativeScaleDegreeStrategy, ["Relative Scale Degree"]),
        (SeparatedStrategy, ["Rhythm", "Pitch"]),
        (SeparatedOctaveIgnorantStrategy, ["Rhythm", "Pitch (Octave-Ignorant)"]),
    ],
)
def test_from_builder_exposes_labelled_tables(algorithm, labels: list[str]) -> None:
    strategy = algorithm.from_builder(_builder("c4:4 e4:8 g4:2 c5:4 | C\n"))
    assert list(strategy.tables) == labels
    assert all(len(table) > 0 for table in strategy.tables.values())


def test_get_algorithm() -> None:
    assert get_algorithm("relative_scale_degree") is RelativeScaleDegreeStrategy
    with pytest.raises(ValueError):
        get_algorithm("markov")
