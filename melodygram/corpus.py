"""Corpus: reads melody text files into token lines with chord annotations."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

CHORD_DELIMITER = "|"


@dataclass(frozen=True)
class CorpusLine:
    """
    One line of a melody file.

    Attributes:
        tokens: Whitespace-separated words of every ``|`` segment before the
                chord, in order. Comments and other noise are kept here and
                filtered later by the trigram builder.
        chord:  Trailing chord annotation, or None when the line has none.
    """

    tokens: tuple[str, ...]
    chord: str | None = None


@dataclass(frozen=True)
class Corpus:
    """An ordered collection of corpus lines."""

    lines: tuple[CorpusLine, ...] = field(default_factory=tuple)

    @property
    def tokens(self) -> list[str]:
        """All words of the corpus as one stream, chord labels excluded."""
        return [token for line in self.lines for token in line.tokens]

    @property
    def chords(self) -> list[str]:
        """Chord annotations in line order; one generated measure per chord."""
        return [line.chord for line in self.lines if line.chord is not None]


def parse_line(line: str) -> CorpusLine:
    """
    Split a melody line into tokens and its trailing chord.

    ``"c4:4 e4:4 | g4:2 | C"`` yields the four-beat token stream and chord ``"C"``.
    A line without ``|``, or whose final segment is blank, has no chord and all
    of its words are tokens.
    """
    if CHORD_DELIMITER not in line:
        return CorpusLine(tokens=tuple(line.split()))

    segments = line.split(CHORD_DELIMITER)
    chord = segments[-1].strip()
    if not chord:
        return CorpusLine(tokens=tuple(" ".join(segments).split()))

    tokens = tuple(word for segment in segments[:-1] for word in segment.split())
    return CorpusLine(tokens=tokens, chord=chord)


def parse_corpus(text: str) -> Corpus:
    return Corpus(lines=tuple(parse_line(line) for line in text.splitlines()))


def load_corpus(path: str | Path) -> Corpus:
    """
    Read a melody file from disk.

    Raises:
        OSError: If the file cannot be read.
    """
    return parse_corpus(Path(path).read_text(encoding="utf-8"))
