"""Tests for phrase CSV loading and picking."""

import random

import pytest

import island_engine as eng


CSV_TEXT = (
    "Phrase,letterlist,lettercount,wordcount,meaning,era,phrasetags\n"
    '"Carpe diem",,9,2,"Seize the day, now",classical,"latin, motto"\n'
    "  ,,,,,modern,\n"
    "Time flies like an arrow,,,,,modern,\n"
    "All that glitters is not gold,ALL THAT GLITTERS,,,,medieval,proverb\n"
)


@pytest.fixture
def csv_path(tmp_path):
    p = tmp_path / "phrases.csv"
    p.write_text(CSV_TEXT, encoding="utf-8")
    return str(p)


@pytest.fixture
def rows(csv_path):
    return eng.load_phrases_csv(csv_path)


def test_load_phrases_csv(rows, quiet_logs):
    assert [r.phrase for r in rows] == [
        "Carpe diem",
        "Time flies like an arrow",
        "All that glitters is not gold",
    ]
    carpe = rows[0]
    assert carpe.meaning == "Seize the day, now"
    assert carpe.tags == ["latin", "motto"]
    assert carpe.lettercount == 9
    assert any("loaded 5 rows" in line for line in quiet_logs)


def test_missing_counts_are_computed(rows):
    time_flies = rows[1]
    assert time_flies.lettercount == 20
    assert time_flies.wordcount == 5


def test_letterlist_is_what_gets_walked(rows):
    glitters = rows[2]
    assert glitters.text == "ALL THAT GLITTERS"
    assert glitters.lettercount == 15
    assert rows[0].text == "Carpe diem"


def test_missing_file_raises(tmp_path, quiet_logs):
    with pytest.raises(OSError):
        eng.load_phrases_csv(str(tmp_path / "nope.csv"))
    assert any("csv error" in line for line in quiet_logs)


def test_table_without_phrase_column_uses_first_column():
    rows = eng.phrase_rows_from_table([["text", "era"], ["Go west", "modern"], ["", "x"]])
    assert len(rows) == 1
    assert rows[0].phrase == "Go west"
    assert rows[0].era == "modern"
    assert rows[0].extra == {"text": "Go west"}


def test_empty_table():
    assert eng.phrase_rows_from_table([]) == []


def test_pick_phrase_by_length(rows):
    rng = random.Random(3)
    for _ in range(10):
        assert eng.pick_phrase(rows, rng, "short").phrase in {"Carpe diem", "All that glitters is not gold"}
        assert eng.pick_phrase(rows, rng, "medium").phrase == "Time flies like an arrow"


def test_pick_phrase_by_era(rows):
    rng = random.Random(3)
    assert eng.pick_phrase(rows, rng, "short", era="medieval").phrase == "All that glitters is not gold"
    assert eng.pick_phrase(rows, rng, "all", era="classical").phrase == "Carpe diem"


def test_pick_phrase_falls_back_to_any_row(rows, quiet_logs):
    picked = eng.pick_phrase(rows, random.Random(0), "long")
    assert picked in rows
    assert any("none match" in line for line in quiet_logs)


def test_pick_phrase_edge_cases(rows):
    with pytest.raises(ValueError):
        eng.pick_phrase(rows, random.Random(0), "epic")
    assert eng.pick_phrase([], random.Random(0)) is None


def test_available_eras(rows):
    assert eng.available_eras(rows) == ["classical", "medieval", "modern"]


def test_pick_phrases_draws_distinct_rows(rows):
    rng = random.Random(11)
    short = eng.pick_phrases(rows, rng, 2, "short")
    assert {r.phrase for r in short} == {"Carpe diem", "All that glitters is not gold"}
    everything = eng.pick_phrases(rows, rng, 10, "all")
    assert sorted(r.phrase for r in everything) == sorted(r.phrase for r in rows)
    modern = eng.pick_phrases(rows, rng, 1, "all", era="modern")
    assert [r.phrase for r in modern] == ["Time flies like an arrow"]
    assert eng.pick_phrases([], rng, 3) == []
