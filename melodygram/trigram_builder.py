"""TrigramBuilder: counts which token follows each pair of tokens in a corpus."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from types import MappingProxyType

from melodygram.corpus import Corpus, CorpusLine
from melodygram.tokens import (
    SEPARATOR,
    MalformedTokenError,
    chord_root_pitch_class,
    parse_token,
    strip_octave,
    strip_octave_from_pitch,
    to_relative_token,
)

logger = logging.getLogger(__name__)

BIGRAM_SEPARATOR = " "

#: Maps one raw corpus token to the string the table is keyed on.
Normalizer = Callable[[str], str]


def bigram_key(first: str, second: str) -> str:
    """Join two normalized tokens into a table key (``"c4:4 e4:4"``)."""
    return f"{first}{BIGRAM_SEPARATOR}{second}"


class FrequencyTable(Mapping[str, Mapping[str, int]]):
    """
    Read-only trigram counts: bigram key -> {next token: occurrences}.

    Bigram keys and each follower distribution enumerate in sorted order, which
    is the order the stochastic selector walks when sampling.
    """

    def __init__(self, counts: Mapping[str, Mapping[str, int]] | None = None) -> None:
        self._counts: dict[str, Mapping[str, int]] = {
            key: MappingProxyType(dict(sorted(followers.items())))
            for key, followers in sorted((counts or {}).items())
        }

    def __getitem__(self, key: str) -> Mapping[str, int]:
        return self._counts[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._counts)

    def __len__(self) -> int:
        return len(self._counts)

    def __repr__(self) -> str:
        return f"FrequencyTable({len(self)} bigrams)"


# ── Normalizers ─────────────────────────────────────────────────────────────

def identity(token: str) -> str:
    """Full pitch, octave and rhythm (``"C4:4"`` -> ``"c4:4"``)."""
    return str(parse_token(token))


def pitch_only(token: str) -> str:
    """Pitch and octave without rhythm (``"c4:8"`` -> ``"c4"``)."""
    return parse_token(token).pitch_text


def rhythm_only(token: str) -> str:
    """Rhythm field only (``"c4:8"`` -> ``"8"``)."""
    return parse_token(token).rhythm


def pitch_class_only(token: str) -> str:
    """Pitch letter without octave or rhythm (``"c4:8"`` -> ``"c"``)."""
    return strip_octave_from_pitch(parse_token(token).pitch)


def relative_normalizer(root: int) -> Normalizer:
    """Build a normalizer expressing notes as intervals above ``root``."""

    def normalize(token: str) -> str:
        return to_relative_token(token, root)

    return normalize


# ── Table construction ──────────────────────────────────────────────────────

def _normalize_all(tokens: Iterable[str], normalize: Normalizer) -> list[str]:
    """Normalize tokens, dropping words that are not melody tokens."""
    normalized: list[str] = []
    for token in tokens:
        if SEPARATOR not in token:
            continue
        try:
            normalized.append(normalize(token))
        except MalformedTokenError as exc:
            logger.debug("Skipping corpus token %r: %s", token, exc)
    return normalized


def count_trigrams(tokens: list[str]) -> FrequencyTable:
    """Slide a width-3 window over already-normalized tokens and count followers."""
    counts: dict[str, dict[str, int]] = {}
    for i in range(len(tokens) - 2):
        followers = counts.setdefault(bigram_key(tokens[i], tokens[i + 1]), {})
        followers[tokens[i + 2]] = followers.get(tokens[i + 2], 0) + 1
    return FrequencyTable(counts)


def build_table(tokens: Iterable[str], normalize: Normalizer = identity) -> FrequencyTable:
    """
    Build a frequency table from a raw token stream.

    Words without a ``:`` (comments, inline chord labels) and malformed tokens
    are skipped before windowing, so they never break a trigram.

    Args:
        tokens:    Raw corpus words in order.
        normalize: Abstraction applied to every token before counting.

    Returns:
        FrequencyTable of normalized bigram keys to follower counts.
    """
    return count_trigrams(_normalize_all(tokens, normalize))


def build_relative_table(lines: Iterable[CorpusLine]) -> FrequencyTable:
    """
    Build a chord-relative frequency table.

    Every token is converted against the root of its own line's chord before
    windowing; the converted lines are then joined into a single stream, so
    trigrams carry on across measure boundaries. Lines without a chord are
    ignored.

    Raises:
        UnresolvableChordError: If a line's chord symbol has no valid root.
    """
    relative_tokens: list[str] = []
    for line in lines:
        if line.chord is None:
            continue
        root = chord_root_pitch_class(line.chord)
        relative_tokens.extend(_normalize_all(line.tokens, relative_normalizer(root)))
    return count_trigrams(relative_tokens)


class TrigramBuilder:
    """
    Builds the six frequency table variants for one corpus.

    Variants
    --------
    ``standard``          ``c4:4``  pitch, octave and rhythm
    ``octave_ignorant``   ``c:4``   pitch class and rhythm
    ``pitch_only``        ``c4``    pitch and octave
    ``pitch_class_only``  ``c``     pitch class
    ``rhythm_only``       ``4``     rhythm
    ``relative``          ``0:4``   interval above the line's chord root and rhythm
    """

    def __init__(self, corpus: Corpus) -> None:
        self.corpus = corpus

    def _build(self, name: str, normalize: Normalizer) -> FrequencyTable:
        table = build_table(self.corpus.tokens, normalize)
        logger.info("Built %s table with %d bigrams", name, len(table))
        return table

    def standard(self) -> FrequencyTable:
        return self._build("standard", identity)

    def octave_ignorant(self) -> FrequencyTable:
        return self._build("octave-ignorant", strip_octave)

    def pitch_only(self) -> FrequencyTable:
        return self._build("pitch-only", pitch_only)

    def pitch_class_only(self) -> FrequencyTable:
        return self._build("pitch-class-only", pitch_class_only)

    def rhythm_only(self) -> FrequencyTable:
        return self._build("rhythm-only", rhythm_only)

    def relative(self) -> FrequencyTable:
        table = build_relative_table(self.corpus.lines)
        logger.info("Built relative table with %d bigrams", len(table))
        return table
