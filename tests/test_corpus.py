"""Unit tests for melody file parsing."""

from melodygram.corpus import CorpusLine, load_corpus, parse_corpus, parse_line


def test_parse_line_with_chord() -> None:
    assert parse_line("c4:4 e4:4 g4:2 | C") == CorpusLine(tokens=("c4:4", "e4:4", "g4:2"), chord="C")


def test_parse_line_attributes_every_segment_to_trailing_chord() -> None:
    line = parse_line("c4:4 e4:4 | g4:2 | Am7")
    assert line.tokens == ("c4:4", "e4:4", "g4:2")
    assert line.chord == "Am7"


def test_parse_line_without_chord() -> None:
    assert parse_line("c4:4 % a comment") == CorpusLine(tokens=("c4:4", "%", "a", "comment"))


def test_parse_line_with_blank_chord() -> None:
    assert parse_line("c4:4 e4:4 |  ") == CorpusLine(tokens=("c4:4", "e4:4"))


def test_corpus_tokens_and_chords(sample_melody: str) -> None:
    corpus = parse_corpus(sample_melody)
    assert corpus.chords == ["C", "F", "C", "G", "C", "G", "C"]
    assert corpus.tokens[:4] == ["%", "test", "corpus:", "one"]
    assert "C" not in corpus.tokens


def test_load_corpus(sample_corpus_path) -> None:
    corpus = load_corpus(sample_corpus_path)
    assert len(corpus.lines) == 8
    assert corpus.lines[1].tokens == ("c4:4", "c4:4", "g4:4", "g4:4")
