"""Tests for phrase normalization, templates and filler letters."""

import random
from collections import Counter

import island_engine as eng


def test_normalize_keeps_ascii_letters_and_digits():
    assert eng.normalize_letters("Don't panic, 42!") == list("DONTPANIC42")


def test_normalize_ignores_non_ascii():
    # 'ß'.upper() would be 'SS'; it must not leak into the walk
    assert eng.normalize_letters("Straße é") == list("STRAE")


def test_normalize_empty_and_punctuation_only():
    assert eng.normalize_letters("") == []
    assert eng.normalize_letters(None) == []
    assert eng.normalize_letters("?! ...") == []


def test_normalize_accepts_letter_lists():
    assert eng.normalize_letters(["a", " ", "b", ","]) == ["A", "B"]


def test_phrase_template_keeps_punctuation():
    assert eng.phrase_template("Time flies, 2 go!") == "____ _____, _ __!"


def test_reveal_phrase_fills_from_the_start():
    assert eng.reveal_phrase("To be, or not", 3) == "TO B_, __ ___"
    assert eng.reveal_phrase("To be", 0) == "__ __"
    assert eng.reveal_phrase("To be", 99) == "TO BE"


def test_letter_table_is_frequency_weighted():
    counts = Counter(eng.LETTER_TABLE)
    assert counts["E"] == 12
    assert counts["T"] == 8
    assert counts["Q"] == counts["X"] == counts["Z"] == 1
    assert set(counts) == set("ABCDEFGHIJKLMNOPQRSTUVWXYZ")


def test_random_filler_letter_draws_from_table():
    rng = random.Random(7)
    drawn = Counter(eng.random_filler_letter(rng) for _ in range(4000))
    assert set(drawn) <= set(eng.LETTER_TABLE)
    assert drawn["E"] > drawn["Z"]
