"""MidiExporter: Converts melody measures into a single-voice MIDI file."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from fractions import Fraction

from midiutil import MIDIFile

from melodygram.corpus import Corpus
from melodygram.melody_generator import Measure
from melodygram.tokens import MAX_PITCH, MIN_PITCH, SEPARATOR, MalformedTokenError, parse_token

logger = logging.getLogger(__name__)

# In midiutil Format 1 MIDI, track 0 is the conductor/tempo track.
TRACK_CONDUCTOR = 0  # Tempo and time signature only
TRACK_MELODY = 1

CHANNEL_MELODY = 0


@dataclass(frozen=True)
class NoteEvent:
    """
    A note or rest handed to the MIDI writer.

    Attributes:
        quarters: Length in quarter-note beats.
        pitch:    MIDI pitch number, or None for a rest.
    """

    quarters: Fraction
    pitch: int | None = None


def events_from_tokens(tokens: Iterable[str]) -> list[NoteEvent]:
    """
    Convert absolute tokens to note events.

    Words without a ``:`` (comments, chord labels) and malformed tokens are
    skipped, as when building frequency tables.
    """
    events: list[NoteEvent] = []
    for text in tokens:
        if SEPARATOR not in text:
            continue
        try:
            token = parse_token(text)
        except MalformedTokenError as exc:
            logger.debug("Skipping token %r: %s", text, exc)
            continue
        events.append(NoteEvent(quarters=token.beats, pitch=token.midi))
    return events


def events_from_measures(measures: Iterable[Measure]) -> list[NoteEvent]:
    return events_from_tokens(token for measure in measures for token in measure.tokens)


def events_from_corpus(corpus: Corpus) -> list[NoteEvent]:
    return events_from_tokens(corpus.tokens)


class MidiExporter:
    """
    Writes a one-voice MIDI file from a list of NoteEvents.

    Track layout (Format 1, 2 internal tracks)
    ------------------------------------------
    Track 0: conductor track (tempo and 4/4 time signature, no notes)

    Track 1: "Melody", every note on channel 0 at a fixed velocity.
        Rests only advance time.

    Swing
    -----
    With swing enabled, any note boundary on the second half of a beat is
    pushed to two thirds of the way through that beat, turning straight
    eighths into a triplet lilt. Positions are computed on a grid of
    ``TICKS_PER_QUARTER`` ticks, then handed to midiutil in beats.
    """

    DEFAULT_TEMPO = 120    # BPM
    DEFAULT_VELOCITY = 80  # MIDI note-on velocity (0-127)
    TICKS_PER_QUARTER = 480

    def __init__(
        self,
        tempo: int = DEFAULT_TEMPO,
        velocity: int = DEFAULT_VELOCITY,
        swing: bool = True,
    ) -> None:
        """
        Args:
            tempo:    Playback tempo in beats per minute.
            velocity: MIDI note-on velocity for every note.
            swing:    Whether to swing upbeats.
        """
        self.tempo = tempo
        self.velocity = velocity
        self.swing = swing

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _apply_swing(self, tick: int) -> int:
        """Move a tick on the back half of its beat to the swung upbeat."""
        if not self.swing:
            return tick

        position = tick % self.TICKS_PER_QUARTER
        if position < self.TICKS_PER_QUARTER // 2:
            return tick

        beat_start = tick - position
        return beat_start + int(self.TICKS_PER_QUARTER * 2 / 3)

    def _ticks_to_beats(self, tick: int) -> float:
        return tick / self.TICKS_PER_QUARTER

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, events: Iterable[NoteEvent]) -> MIDIFile:
        """Lay out note events on the melody track of a new MIDIFile."""
        midi = MIDIFile(numTracks=2, removeDuplicates=False, deinterleave=False)

        # --- Track 0: conductor (tempo and meter only) ---
        midi.addTempo(TRACK_CONDUCTOR, 0, self.tempo)
        midi.addTimeSignature(TRACK_CONDUCTOR, 0, 4, 2, 24)

        # --- Track 1: melody ---
        midi.addTrackName(TRACK_MELODY, 0, "Melody")

        straight_tick = 0
        for event in events:
            duration_ticks = round(event.quarters * self.TICKS_PER_QUARTER)

            if event.pitch is not None:
                start_tick = self._apply_swing(straight_tick)
                end_tick = self._apply_swing(straight_tick + duration_ticks)

                if end_tick > start_tick:
                    midi.addNote(
                        track=TRACK_MELODY,
                        channel=CHANNEL_MELODY,
                        pitch=min(max(event.pitch, MIN_PITCH), MAX_PITCH),
                        time=self._ticks_to_beats(start_tick),
                        duration=self._ticks_to_beats(end_tick - start_tick),
                        volume=self.velocity,
                    )
                else:
                    logger.debug("Dropping pitch %s: swing left it no length", event.pitch)

            straight_tick += duration_ticks

        return midi

    def export(self, events: Iterable[NoteEvent], output_path: str) -> None:
        """
        Render note events to a Standard MIDI File.

        Args:
            events:      Ordered notes and rests to write.
            output_path: Destination file path (e.g. "melody.mid").

        Raises:
            OSError: If the output file cannot be opened for writing.
        """
        midi = self.build(events)
        with open(output_path, "wb") as f:
            midi.writeFile(f)
        logger.info("Wrote MIDI to %s", output_path)
