"""Token model: parsing, durations, and pitch transforms for melody tokens."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from fractions import Fraction

logger = logging.getLogger(__name__)

# ── Token text constants ────────────────────────────────────────────────────
REST = "r"
SEPARATOR = ":"
DOTTED_SUFFIX = ".5"
WHOLE_NOTE_BEATS = 4

# ── Pitch constants ─────────────────────────────────────────────────────────
SEMITONES_PER_OCTAVE = 12
DEFAULT_OCTAVE = 4  # C4 = MIDI 60
MIN_OCTAVE = 0
MAX_OCTAVE = 9
MIN_PITCH = 0
MAX_PITCH = 127

#: Semitones above C for each natural pitch letter.
LETTER_OFFSETS: dict[str, int] = {"c": 0, "d": 2, "e": 4, "f": 5, "g": 7, "a": 9, "b": 11}

#: Canonical spelling per pitch class (flats preferred for black keys, except c# / f#).
PITCH_SPELLINGS: tuple[str, ...] = (
    "c", "c#", "d", "eb", "e", "f", "f#", "g", "ab", "a", "bb", "b",
)

_ACCIDENTALS: dict[str, int] = {"": 0, "#": 1, "b": -1}

_TOKEN_RE = re.compile(
    r"^(?P<pitch>r|[a-g][#b]?)(?P<octave>\d)?:(?P<rhythm>\d+(?:\.5)?)$"
)
_PITCH_RE = re.compile(r"^(?P<letter>[a-g])(?P<accidental>[#b]?)(?P<octave>\d)?$")
_RELATIVE_RE = re.compile(r"^(?P<interval>\d{1,2}):(?P<rhythm>\d+(?:\.5)?)$")


class MalformedTokenError(ValueError):
    """Raised when a token does not follow the ``<pitch><octave?>:<rhythm>`` encoding."""


class UnresolvableChordError(ValueError):
    """Raised when a chord symbol does not start with a valid pitch letter."""


# ── Durations ───────────────────────────────────────────────────────────────

def duration_beats(rhythm: str) -> Fraction:
    """
    Convert a rhythm field to a length in quarter-note beats.

    ``"4"`` is a quarter (1 beat), ``"8"`` an eighth (1/2 beat) and a trailing
    ``".5"`` marks a dotted value, so ``"4.5"`` lasts 1.5 beats. Fractions keep
    measure sums exact.

    Raises:
        MalformedTokenError: If the rhythm is not a positive integer denominator.
    """
    dotted = rhythm.endswith(DOTTED_SUFFIX)
    base = rhythm[: -len(DOTTED_SUFFIX)] if dotted else rhythm
    if not base.isdigit() or int(base) == 0:
        raise MalformedTokenError(f"Bad rhythm: {rhythm!r}")

    beats = Fraction(WHOLE_NOTE_BEATS, int(base))
    if dotted:
        beats *= Fraction(3, 2)
    return beats


# ── Pitches ─────────────────────────────────────────────────────────────────

def _pitch_offset(letter: str, accidental: str) -> int:
    return LETTER_OFFSETS[letter] + _ACCIDENTALS[accidental]


def pitch_to_midi(pitch: str) -> int:
    """
    Convert a pitch with octave (e.g. ``"c4"``, ``"f#3"``) to a MIDI pitch number.

    MIDI octave numbering: C0 = 12, C4 (Middle C) = 60.

    Raises:
        MalformedTokenError: If the pitch is unparseable, has no octave, or
            falls outside the MIDI range.
    """
    match = _PITCH_RE.match(pitch.strip().lower())
    if not match or match.group("octave") is None:
        raise MalformedTokenError(f"Bad note name: {pitch!r}")

    octave = int(match.group("octave"))
    midi = SEMITONES_PER_OCTAVE * (octave + 1) + _pitch_offset(
        match.group("letter"), match.group("accidental")
    )
    if not MIN_PITCH <= midi <= MAX_PITCH:
        raise MalformedTokenError(f"Pitch out of MIDI range: {pitch!r}")
    return midi


def midi_to_pitch(midi: int) -> str:
    """Spell a MIDI pitch number with its octave, e.g. 61 -> ``"c#4"``."""
    if not MIN_PITCH <= midi <= MAX_PITCH:
        raise ValueError("MIDI pitch must be between 0 and 127.")
    octave = midi // SEMITONES_PER_OCTAVE - 1
    return f"{PITCH_SPELLINGS[midi % SEMITONES_PER_OCTAVE]}{octave}"


def pitch_class(pitch: str) -> int:
    """Return the pitch class (0=C … 11=B) of a pitch with or without octave."""
    match = _PITCH_RE.match(pitch.strip().lower())
    if not match:
        raise MalformedTokenError(f"Bad note name: {pitch!r}")
    return _pitch_offset(match.group("letter"), match.group("accidental")) % SEMITONES_PER_OCTAVE


def strip_octave_from_pitch(pitch: str) -> str:
    """Drop the octave digit from a pitch string (``"c4"`` -> ``"c"``)."""
    if pitch == REST:
        return pitch
    return re.sub(r"\d", "", pitch)


# ── Tokens ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Token:
    """
    One note or rest of the melodic stream.

    Attributes:
        pitch:  Pitch letter plus optional accidental (``"c"``, ``"f#"``), or ``"r"``.
        octave: Octave digit 0-9, or None when the token is octave-ignorant.
        rhythm: Rhythm field as written, e.g. ``"8"`` or ``"4.5"``.
    """

    pitch: str
    octave: int | None
    rhythm: str

    @property
    def is_rest(self) -> bool:
        return self.pitch == REST

    @property
    def beats(self) -> Fraction:
        return duration_beats(self.rhythm)

    @property
    def pitch_text(self) -> str:
        """Pitch plus octave, without the rhythm (``"c4"``, ``"d"``, ``"r"``)."""
        if self.octave is None:
            return self.pitch
        return f"{self.pitch}{self.octave}"

    @property
    def midi(self) -> int | None:
        """MIDI pitch number, or None for rests and octave-ignorant notes."""
        if self.is_rest or self.octave is None:
            return None
        return pitch_to_midi(self.pitch_text)

    def with_octave(self, octave: int | None) -> Token:
        return replace(self, octave=octave)

    def __str__(self) -> str:
        return f"{self.pitch_text}{SEPARATOR}{self.rhythm}"


def parse_token(text: str) -> Token:
    """
    Parse ``<pitch><octave?>:<rhythm>`` or ``r:<rhythm>`` into a Token.

    Raises:
        MalformedTokenError: If the separator is missing, the pitch letter is not
            a-g, the octave is not a single digit, or the pitch leaves MIDI range.
    """
    normalized = text.strip().lower()
    match = _TOKEN_RE.match(normalized)
    if not match:
        raise MalformedTokenError(f"Bad token: {text!r}")

    pitch = match.group("pitch")
    octave_text = match.group("octave")
    if pitch == REST and octave_text is not None:
        raise MalformedTokenError(f"Rest cannot carry an octave: {text!r}")

    token = Token(
        pitch=pitch,
        octave=int(octave_text) if octave_text is not None else None,
        rhythm=match.group("rhythm"),
    )
    duration_beats(token.rhythm)
    if token.octave is not None:
        pitch_to_midi(token.pitch_text)
    return token


def split_token(token: str) -> tuple[str, str]:
    """Split a token into its (pitch, rhythm) fields: ``"c4:4"`` -> ``("c4", "4")``."""
    if SEPARATOR not in token:
        raise MalformedTokenError(f"Token lacks '{SEPARATOR}': {token!r}")
    pitch, rhythm = token.split(SEPARATOR, maxsplit=1)
    return pitch, rhythm


def token_duration(token: str) -> Fraction:
    """Beats covered by a token (``"c5:4.5"`` -> 3/2)."""
    return duration_beats(split_token(token)[1])


def strip_octave(token: str) -> str:
    """Remove the octave digit from a token (``"c5:8"`` -> ``"c:8"``)."""
    return str(parse_token(token).with_octave(None))


def add_default_octave(token: str) -> str:
    """Give an octave-ignorant token octave 4 (``"c:8"`` -> ``"c4:8"``)."""
    parsed = parse_token(token)
    if parsed.is_rest or parsed.octave is not None:
        return str(parsed)
    return str(parsed.with_octave(DEFAULT_OCTAVE))


# ── Octave continuity ───────────────────────────────────────────────────────

def _nearest_octave(pitch: str, reference_midi: int, octaves: list[int]) -> int | None:
    """Return the octave from ``octaves`` whose pitch lies closest to the reference.

    Octaves yielding a pitch outside [0, 127] are skipped; ties keep the first.
    """
    best_octave = None
    min_diff = None
    for octave in octaves:
        if not MIN_OCTAVE <= octave <= MAX_OCTAVE:
            continue
        try:
            candidate_midi = pitch_to_midi(f"{pitch}{octave}")
        except MalformedTokenError:
            continue
        diff = abs(candidate_midi - reference_midi)
        if min_diff is None or diff < min_diff:
            min_diff = diff
            best_octave = octave
    return best_octave


def assign_best_octave(previous: str, candidate: str) -> str:
    """
    Give an octave-ignorant candidate the octave closest to the previous token.

    The previous octave, one below and one above are tried in that order; the
    candidate minimising the semitone distance wins and ties keep the earliest.
    A rest candidate comes back unchanged, and a rest before the candidate
    places it in octave 4. When none of the three octaves is playable the
    nearest playable octave in [0, 9] is used instead.

    Args:
        previous:  Absolute token the melody is continuing from (``"c4:4"``).
        candidate: Pitch-class token to place (``"d:4"``).

    Returns:
        The candidate with its octave filled in (``"d4:4"``).
    """
    next_token = parse_token(candidate)
    if next_token.is_rest:
        return str(next_token)

    prev_token = parse_token(previous)
    if prev_token.is_rest or prev_token.octave is None:
        return str(next_token.with_octave(DEFAULT_OCTAVE))

    prev_midi = pitch_to_midi(prev_token.pitch_text)
    prev_octave = prev_token.octave
    best_octave = _nearest_octave(
        next_token.pitch, prev_midi, [prev_octave, prev_octave - 1, prev_octave + 1]
    )

    if best_octave is None:
        best_octave = _nearest_octave(
            next_token.pitch, prev_midi, list(range(MIN_OCTAVE, MAX_OCTAVE + 1))
        )
        logger.debug(
            "No neighbouring octave fits %s after %s; clamped to octave %s",
            candidate, previous, best_octave,
        )
        if best_octave is None:
            raise MalformedTokenError(f"No playable octave for {candidate!r}")

    return str(next_token.with_octave(best_octave))


def assign_best_octave_pitch(previous_pitch: str, pitch: str) -> str:
    """Pitch-only variant of :func:`assign_best_octave` (``("c4", "d")`` -> ``"d4"``)."""
    if pitch == REST:
        return pitch
    if previous_pitch == REST:
        return f"{pitch}{DEFAULT_OCTAVE}"

    # A placeholder rhythm lets the token-level heuristic do the work.
    placed = assign_best_octave(f"{previous_pitch}{SEPARATOR}4", f"{pitch}{SEPARATOR}4")
    return split_token(placed)[0]


# ── Chords and relative tokens ──────────────────────────────────────────────

@dataclass(frozen=True)
class Chord:
    """
    A chord symbol from the harmonic grid.

    Attributes:
        symbol: Chord symbol as written, e.g. ``"Am"`` or ``"Bb7"``.
        root:   Pitch class of the root (0=C, 1=C#, ..., 11=B).
    """

    symbol: str
    root: int


def chord_root_pitch_class(symbol: str) -> int:
    """
    Return the root pitch class of a chord symbol.

    Only the leading letter and an optional ``#``/``b`` are read; the chord
    quality that follows is ignored (``"F#m7"`` -> 6, ``"Bb"`` -> 10).

    Raises:
        UnresolvableChordError: If the symbol does not start with a-g.
    """
    text = symbol.strip().lower()
    if not text or text[0] not in LETTER_OFFSETS:
        raise UnresolvableChordError(f"Bad chord symbol: {symbol!r}")

    accidental = text[1] if len(text) > 1 and text[1] in ("#", "b") else ""
    return _pitch_offset(text[0], accidental) % SEMITONES_PER_OCTAVE


def parse_chord(symbol: str) -> Chord:
    return Chord(symbol=symbol.strip(), root=chord_root_pitch_class(symbol))


def to_relative_token(token: str, root: int) -> str:
    """
    Re-express a note as semitones above a chord root (``"e4:4"``, C -> ``"4:4"``).

    Rests pass through unchanged.
    """
    parsed = parse_token(token)
    if parsed.is_rest:
        return str(parsed)
    interval = (pitch_class(parsed.pitch) - root) % SEMITONES_PER_OCTAVE
    return f"{interval}{SEPARATOR}{parsed.rhythm}"


def from_relative_token(relative: str, root: int, previous: str) -> str:
    """
    Turn a relative token back into an absolute one over the given root.

    The pitch is spelled canonically and placed in the octave closest to
    ``previous`` (see :func:`assign_best_octave`).
    """
    text = relative.strip().lower()
    if text.startswith(REST):
        return str(parse_token(text))

    match = _RELATIVE_RE.match(text)
    if not match or int(match.group("interval")) >= SEMITONES_PER_OCTAVE:
        raise MalformedTokenError(f"Bad relative token: {relative!r}")

    target = (root + int(match.group("interval"))) % SEMITONES_PER_OCTAVE
    candidate = f"{PITCH_SPELLINGS[target]}{SEPARATOR}{match.group('rhythm')}"
    return assign_best_octave(previous, candidate)
