"""Shared test fixtures."""

from __future__ import annotations

import random

import pytest

import island_engine as eng
import svg_renderer


def make_walk(coords):
    """Walk cells from a list of (x, y), lettered A, B, C, ..."""
    return [
        eng.WalkCell(x, y, chr(ord("A") + i % 26), i)
        for i, (x, y) in enumerate(coords)
    ]


# U-turn: (0, -1) sits inside the bend with walk on three sides.
U_TURN = [(-1, 0), (-1, -1), (-1, -2), (0, -2), (1, -2), (1, -1), (1, 0)]


@pytest.fixture(autouse=True)
def quiet_logs():
    """Collect engine/renderer log lines instead of printing them."""
    lines: list[str] = []
    eng.set_logger(lines.append)
    svg_renderer.set_logger(lines.append)
    yield lines
    eng.set_logger(None)
    svg_renderer.set_logger(None)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def walk_factory():
    return make_walk


@pytest.fixture
def u_turn_walk():
    return make_walk(U_TURN)


@pytest.fixture
def island() -> eng.IslandResult:
    res = eng.generate_island("Time flies like an arrow!", eng.IslandSpec(seed="fixture", max_attempts=20))
    assert res is not None
    return res
