"""GenerationStrategy: Strategy pattern for proposing the next token of a melody."""

from __future__ import annotations

from abc import ABC, abstractmethod

from melodygram.selector import StochasticSelector
from melodygram.tokens import (
    Chord,
    assign_best_octave,
    assign_best_octave_pitch,
    from_relative_token,
    split_token,
    strip_octave,
    strip_octave_from_pitch,
    to_relative_token,
)
from melodygram.trigram_builder import FrequencyTable, TrigramBuilder, bigram_key

#: The two most recent absolute tokens, oldest first.
Context = tuple[str, str]


# ── Abstract base ────────────────────────────────────────────────────────────

class NextTokenStrategy(ABC):
    """
    Abstract Strategy for proposing the token that follows a two-token context.

    Concrete subclasses differ in how much of each token (octave, rhythm,
    absolute pitch) they look up in their frequency tables, and in how they
    turn the looked-up result back into an absolute ``pitch+octave:rhythm``
    token.
    """

    #: Human-readable algorithm name used in reports.
    name: str = ""

    #: Filename-safe identifier used for output artifacts and CLI selection.
    slug: str = ""

    @classmethod
    @abstractmethod
    def from_builder(cls, builder: TrigramBuilder) -> NextTokenStrategy:
        """Build the tables this strategy needs from a corpus."""

    @property
    @abstractmethod
    def tables(self) -> dict[str, FrequencyTable]:
        """Frequency tables used by this strategy, labelled for statistics."""

    @abstractmethod
    def propose(
        self, context: Context, chord: Chord, selector: StochasticSelector
    ) -> str | None:
        """
        Propose the next absolute token.

        Args:
            context:  The two preceding absolute tokens.
            chord:    Chord of the measure being generated.
            selector: Shared random selector of the current generation run.

        Returns:
            An absolute token, or None when the model has no learned continuation.
        """


# ── Concrete strategies ──────────────────────────────────────────────────────

class StandardStrategy(NextTokenStrategy):
    """Looks up the full ``pitch+octave:rhythm`` context directly."""

    name = "Standard"
    slug = "standard"

    def __init__(self, table: FrequencyTable) -> None:
        self.table = table

    @classmethod
    def from_builder(cls, builder: TrigramBuilder) -> StandardStrategy:
        return cls(builder.standard())

    @property
    def tables(self) -> dict[str, FrequencyTable]:
        return {"Standard": self.table}

    def propose(self, context: Context, chord: Chord, selector: StochasticSelector) -> str | None:
        return selector.select(self.table, bigram_key(*context))


class OctaveIgnorantStrategy(NextTokenStrategy):
    """
    Looks up ``pitch:rhythm`` contexts with octaves stripped.

    The returned pitch class is placed in the octave nearest to the last
    generated note, keeping leaps small.
    """

    name = "Octave-Ignorant"
    slug = "octave_ignorant"

    def __init__(self, table: FrequencyTable) -> None:
        self.table = table

    @classmethod
    def from_builder(cls, builder: TrigramBuilder) -> OctaveIgnorantStrategy:
        return cls(builder.octave_ignorant())

    @property
    def tables(self) -> dict[str, FrequencyTable]:
        return {"Octave-Ignorant": self.table}

    def propose(self, context: Context, chord: Chord, selector: StochasticSelector) -> str | None:
        key = bigram_key(strip_octave(context[0]), strip_octave(context[1]))
        next_token = selector.select(self.table, key)
        if next_token is None:
            return None
        return assign_best_octave(context[1], next_token)


class RelativeScaleDegreeStrategy(NextTokenStrategy):
    """
    Looks up contexts as intervals above the current chord root.

    Both context tokens are re-expressed against the root of the chord being
    generated, so a phrase learned over C can be replayed over F. The chosen
    interval is spelled over the same root and given the nearest octave.
    """

    name = "Relative Scale Degree"
    slug = "relative_scale_degree"

    def __init__(self, table: FrequencyTable) -> None:
        self.table = table

    @classmethod
    def from_builder(cls, builder: TrigramBuilder) -> RelativeScaleDegreeStrategy:
        return cls(builder.relative())

    @property
    def tables(self) -> dict[str, FrequencyTable]:
        return {"Relative Scale Degree": self.table}

    def propose(self, context: Context, chord: Chord, selector: StochasticSelector) -> str | None:
        key = bigram_key(
            to_relative_token(context[0], chord.root),
            to_relative_token(context[1], chord.root),
        )
        next_relative = selector.select(self.table, key)
        if next_relative is None:
            return None
        return from_relative_token(next_relative, chord.root, context[1])


class SeparatedStrategy(NextTokenStrategy):
    """
    Draws rhythm and pitch from two independent tables.

    The rhythm table lays down a rhythmic outline and the pitch table fills it.
    If either half has no continuation, no token is proposed.
    """

    name = "Separated Rhythm-Pitch"
    slug = "separated_rhythm_pitch"

    def __init__(self, rhythm_table: FrequencyTable, pitch_table: FrequencyTable) -> None:
        self.rhythm_table = rhythm_table
        self.pitch_table = pitch_table

    @classmethod
    def from_builder(cls, builder: TrigramBuilder) -> SeparatedStrategy:
        return cls(builder.rhythm_only(), builder.pitch_only())

    @property
    def tables(self) -> dict[str, FrequencyTable]:
        return {"Rhythm": self.rhythm_table, "Pitch": self.pitch_table}

    def _pitch_key(self, first: str, second: str) -> str:
        return bigram_key(first, second)

    def _place_pitch(self, previous_pitch: str, pitch: str) -> str:
        return pitch

    def propose(self, context: Context, chord: Chord, selector: StochasticSelector) -> str | None:
        first_pitch, first_rhythm = split_token(context[0])
        second_pitch, second_rhythm = split_token(context[1])

        next_rhythm = selector.select(self.rhythm_table, bigram_key(first_rhythm, second_rhythm))
        if next_rhythm is None:
            return None

        next_pitch = selector.select(self.pitch_table, self._pitch_key(first_pitch, second_pitch))
        if next_pitch is None:
            return None

        return f"{self._place_pitch(second_pitch, next_pitch)}:{next_rhythm}"


class SeparatedOctaveIgnorantStrategy(SeparatedStrategy):
    """Separated rhythm and pitch, with pitch classes placed by octave continuity."""

    name = "Separated Rhythm-Pitch (Octave-Ignorant)"
    slug = "separated_rhythm_pitch_octave_ignorant"

    @classmethod
    def from_builder(cls, builder: TrigramBuilder) -> SeparatedOctaveIgnorantStrategy:
        return cls(builder.rhythm_only(), builder.pitch_class_only())

    @property
    def tables(self) -> dict[str, FrequencyTable]:
        return {"Rhythm": self.rhythm_table, "Pitch (Octave-Ignorant)": self.pitch_table}

    def _pitch_key(self, first: str, second: str) -> str:
        return bigram_key(strip_octave_from_pitch(first), strip_octave_from_pitch(second))

    def _place_pitch(self, previous_pitch: str, pitch: str) -> str:
        return assign_best_octave_pitch(previous_pitch, pitch)


#: Every algorithm, in the order the CLI runs them.
ALGORITHMS: tuple[type[NextTokenStrategy], ...] = (
    StandardStrategy,
    OctaveIgnorantStrategy,
    RelativeScaleDegreeStrategy,
    SeparatedStrategy,
    SeparatedOctaveIgnorantStrategy,
)


def get_algorithm(slug: str) -> type[NextTokenStrategy]:
    """Look up an algorithm class by its slug."""
    for algorithm in ALGORITHMS:
        if algorithm.slug == slug:
            return algorithm
    known = ", ".join(algorithm.slug for algorithm in ALGORITHMS)
    raise ValueError(f"Unknown algorithm '{slug}'. Use one of: {known}.")
