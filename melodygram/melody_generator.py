"""MelodyGenerator: fills one 4/4 measure per chord from a next-token strategy."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from fractions import Fraction

from melodygram.corpus import CHORD_DELIMITER
from melodygram.generation_strategy import Context, NextTokenStrategy
from melodygram.selector import StochasticSelector
from melodygram.tokens import parse_chord, parse_token, token_duration

logger = logging.getLogger(__name__)

BEATS_PER_MEASURE = Fraction(4)

#: Two eighth-note rests: the silent lead-in every melody starts from.
SEED_CONTEXT: Context = ("r:8", "r:8")


@dataclass(frozen=True)
class Measure:
    """
    One generated measure.

    Attributes:
        chord:  Chord symbol the measure was generated against.
        tokens: Absolute tokens in playing order. Their beats never exceed
                four; fewer means generation stalled before the bar was full.
    """

    chord: str
    tokens: tuple[str, ...] = ()

    @property
    def beats(self) -> Fraction:
        return sum((token_duration(token) for token in self.tokens), Fraction(0))

    @property
    def is_complete(self) -> bool:
        return self.beats == BEATS_PER_MEASURE

    def format(self) -> str:
        """Render as a melody-file line, e.g. ``"c4:4 e4:4 g4:2 | C"``."""
        return f"{' '.join(self.tokens)} {CHORD_DELIMITER} {self.chord}".lstrip()


def format_melody(measures: Iterable[Measure]) -> str:
    """Render measures as melody text, one line per measure."""
    return "".join(f"{measure.format()}\n" for measure in measures)


class MelodyGenerator:
    """
    Generates melodies over a chord sequence, one measure per chord.

    Generation loop
    ---------------
    For each chord a measure starts empty and the strategy is asked for the
    token following the two most recent tokens:

    1. **Stall** – the strategy has no continuation (returns None). The
       measure ends short of four beats. This is expected, not an error.

    2. **Overflow** – the proposed token would push the measure past four
       beats. It is discarded (not re-sampled) and the measure ends.

    3. **Accept** – the token is appended and becomes the newest half of the
       context.

    The context is carried from one measure into the next so phrases flow
    across chord changes. Every melody starts from two eighth-note rests.
    """

    def __init__(self, selector: StochasticSelector | None = None) -> None:
        """
        Args:
            selector: Random selector shared by every step of a run. A fresh
                      unseeded selector is created when omitted.
        """
        self.selector = selector if selector is not None else StochasticSelector()

    def _generate_measure(
        self, symbol: str, context: Context, strategy: NextTokenStrategy
    ) -> tuple[Measure, Context]:
        chord = parse_chord(symbol)
        tokens: list[str] = []
        beats = Fraction(0)

        while beats < BEATS_PER_MEASURE:
            next_token = strategy.propose(context, chord, self.selector)
            if next_token is None:
                logger.debug("%s stalled over %s after %s beats", strategy.name, chord.symbol, beats)
                break

            duration = token_duration(next_token)
            if beats + duration > BEATS_PER_MEASURE:
                logger.debug("Discarding %s: only %s beats left", next_token, BEATS_PER_MEASURE - beats)
                break

            tokens.append(next_token)
            beats += duration
            context = (context[1], next_token)

        return Measure(chord=chord.symbol, tokens=tuple(tokens)), context

    def generate(
        self,
        chords: Iterable[str],
        strategy: NextTokenStrategy,
        initial_context: Context = SEED_CONTEXT,
    ) -> list[Measure]:
        """
        Generate one measure per chord.

        Args:
            chords:          Chord symbols, one per measure.
            strategy:        Proposes each next token.
            initial_context: Two absolute tokens the melody continues from.

        Returns:
            Measures in chord order, possibly shorter than four beats.

        Raises:
            MalformedTokenError:    If the initial context is not two valid tokens.
            UnresolvableChordError: If a chord symbol has no valid root.
        """
        context: Context = (
            str(parse_token(initial_context[0])),
            str(parse_token(initial_context[1])),
        )

        measures: list[Measure] = []
        for symbol in chords:
            measure, context = self._generate_measure(symbol, context, strategy)
            measures.append(measure)

        logger.info(
            "%s generated %d measures (%d complete)",
            strategy.name, len(measures), sum(measure.is_complete for measure in measures),
        )
        return measures
