"""melodygram CLI entry point."""

import logging
import sys
from pathlib import Path

import click

from melodygram import __version__
from melodygram.corpus import Corpus, load_corpus
from melodygram.generation_strategy import ALGORITHMS, NextTokenStrategy, get_algorithm
from melodygram.melody_generator import MelodyGenerator, format_melody
from melodygram.midi_exporter import MidiExporter, events_from_corpus, events_from_measures
from melodygram.selector import StochasticSelector
from melodygram.stats import compute_stats, format_stats
from melodygram.tokens import MalformedTokenError, UnresolvableChordError
from melodygram.trigram_builder import TrigramBuilder

STATS_FILENAME = "trigrams.txt"
INPUT_MIDI_FILENAME = "melody.mid"
ALGORITHM_SLUGS = [algorithm.slug for algorithm in ALGORITHMS]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _load(corpus_file: str) -> Corpus:
    try:
        return load_corpus(corpus_file)
    except OSError as exc:
        click.echo(f"  ERROR: Could not read corpus: {exc}", err=True)
        sys.exit(1)


def _selected_algorithms(slugs: tuple[str, ...]) -> list[type[NextTokenStrategy]]:
    if not slugs:
        return list(ALGORITHMS)
    return [get_algorithm(slug) for slug in slugs]


def _swing_option(func):
    return click.option(
        "--swing/--no-swing",
        default=True,
        show_default=True,
        help="Swing upbeats to a triplet feel in the MIDI output.",
    )(func)


def _tempo_option(func):
    return click.option(
        "--tempo",
        type=click.IntRange(20, 300),
        default=MidiExporter.DEFAULT_TEMPO,
        show_default=True,
        help="Playback tempo in BPM.",
    )(func)


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="melodygram")
@click.option("--verbose", "-v", is_flag=True, help="Log every stall and skipped token.")
def main(verbose: bool) -> None:
    """melodygram: trigram melody generator over a chord grid."""
    _configure_logging(verbose)


# ── generate subcommand ────────────────────────────────────────────────────────

@main.command()
@click.argument("corpus_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option(
    "--output-dir",
    "-o",
    default="output",
    show_default=True,
    metavar="DIR",
    help="Directory for generated .txt/.mid files and the statistics report.",
)
@click.option(
    "--algorithm",
    "-a",
    "algorithms",
    type=click.Choice(ALGORITHM_SLUGS),
    multiple=True,
    help="Algorithm to run (repeatable). Defaults to all five.",
)
@click.option("--seed", type=int, default=None, help="Random seed for reproducible melodies.")
@_tempo_option
@_swing_option
def generate(
    corpus_file: str,
    output_dir: str,
    algorithms: tuple[str, ...],
    seed: int | None,
    tempo: int,
    swing: bool,
) -> None:
    """
    Learn a melody file and generate new melodies over its chords.

    CORPUS_FILE holds whitespace-separated tokens such as ``c4:8`` or ``r:4``,
    one measure per line, each line ending in ``| <chord>``.

    \b
    Examples:
      melodygram generate data/melody.txt
      melodygram generate data/melody.txt -a standard -a relative_scale_degree --seed 7
      melodygram generate data/melody.txt -o out --tempo 90 --no-swing
    """
    corpus = _load(corpus_file)
    chords = corpus.chords
    out = Path(output_dir)
    exporter = MidiExporter(tempo=tempo, swing=swing)

    click.echo(f"melodygram v{__version__}")
    click.echo(f"  Corpus : {corpus_file}")
    click.echo(f"  Output : {out}/")
    click.echo(f"  Tempo  : {tempo} BPM  |  Swing: {'on' if swing else 'off'}")
    click.echo()

    if not chords:
        click.echo("  ERROR: No chord annotations found (expected '| <chord>' line endings).", err=True)
        sys.exit(1)
    click.echo(f"Detected {len(chords)} measures")

    try:
        out.mkdir(parents=True, exist_ok=True)
        (out / STATS_FILENAME).write_text("", encoding="utf-8")

        click.echo("Converting input melody to MIDI...")
        exporter.export(events_from_corpus(corpus), str(out / INPUT_MIDI_FILENAME))

        builder = TrigramBuilder(corpus)
        for algorithm in _selected_algorithms(algorithms):
            click.echo(f"Generating melody using {algorithm.name} algorithm...")
            strategy = algorithm.from_builder(builder)
            generator = MelodyGenerator(StochasticSelector(seed=seed))
            measures = generator.generate(chords, strategy)

            base = out / f"generated_melody_{algorithm.slug}"
            base.with_suffix(".txt").write_text(format_melody(measures), encoding="utf-8")
            exporter.export(events_from_measures(measures), str(base.with_suffix(".mid")))
            click.echo(f"      {base}.txt  {base}.mid")

            with open(out / STATS_FILENAME, "a", encoding="utf-8") as fh:
                for label, table in strategy.tables.items():
                    fh.write(format_stats(f"{algorithm.name} - {label} Stats", compute_stats(table)))
    except OSError as exc:
        click.echo(f"  ERROR: Could not write output: {exc}", err=True)
        sys.exit(1)
    except (MalformedTokenError, UnresolvableChordError) as exc:
        click.echo(f"  ERROR: {exc}", err=True)
        sys.exit(1)

    click.echo()
    click.echo(f"Done!  Statistics written to '{out / STATS_FILENAME}'.")


# ── convert subcommand ─────────────────────────────────────────────────────────

@main.command()
@click.argument("melody_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination MIDI file path. Defaults to the melody file with a .mid suffix.",
)
@_tempo_option
@_swing_option
def convert(melody_file: str, output: str | None, tempo: int, swing: bool) -> None:
    """
    Convert a melody text file to MIDI.

    \b
    Examples:
      melodygram convert data/melody.txt
      melodygram convert output/generated_melody_standard.txt -o standard.mid --no-swing
    """
    resolved_output = output if output is not None else str(Path(melody_file).with_suffix(".mid"))
    events = events_from_corpus(_load(melody_file))

    click.echo(f"Writing {len(events)} events → '{resolved_output}'...")
    try:
        MidiExporter(tempo=tempo, swing=swing).export(events, resolved_output)
    except OSError as exc:
        click.echo(f"  ERROR: Could not write MIDI file: {exc}", err=True)
        sys.exit(1)


# ── stats subcommand ───────────────────────────────────────────────────────────

@main.command()
@click.argument("corpus_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option(
    "--algorithm",
    "-a",
    "algorithms",
    type=click.Choice(ALGORITHM_SLUGS),
    multiple=True,
    help="Only report tables used by this algorithm (repeatable).",
)
def stats(corpus_file: str, algorithms: tuple[str, ...]) -> None:
    """Print frequency-table statistics for a melody file."""
    builder = TrigramBuilder(_load(corpus_file))

    try:
        for algorithm in _selected_algorithms(algorithms):
            strategy = algorithm.from_builder(builder)
            for label, table in strategy.tables.items():
                click.echo(format_stats(f"{algorithm.name} - {label} Stats", compute_stats(table)))
    except UnresolvableChordError as exc:
        click.echo(f"  ERROR: {exc}", err=True)
        sys.exit(1)
