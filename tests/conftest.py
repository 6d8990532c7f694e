"""Shared fixtures: two short decisive games and an in-process engine session."""

import pytest

from chess_branches.engine import PythonChessSession
from chess_branches.record import GameRecord

# 1.f3 e6 2.g4 Qh4#
FOOLS_MATE_LINES = [
    "GameId        1",
    "Result        0-1",
    "PlyCount      4",
    "WhiteElo      1000",
    "BlackElo      1000",
    "Moves",
    "  1      f2f3      e7e6",
    "  2      g2g4      d8h4",
]

# 1.e4 e5 2.Bc4 Nc6 3.Qh5 Nf6 4.Qxf7#
SCHOLARS_MATE_LINES = [
    "GameId        7",
    "Result        1-0",
    "PlyCount      7",
    "WhiteElo      1500",
    "BlackElo      1200",
    "Moves",
    "  1      e2e4      e7e5",
    "  2      f1c4      b8c6",
    "  3      d1h5      g8f6",
    "  4      h5f7",
]


@pytest.fixture
def fools_mate_lines():
    return list(FOOLS_MATE_LINES)


@pytest.fixture
def fools_mate(fools_mate_lines):
    return GameRecord.from_lines(fools_mate_lines)


@pytest.fixture
def scholars_mate():
    return GameRecord.from_lines(SCHOLARS_MATE_LINES)


@pytest.fixture
def drawn_game():
    lines = list(FOOLS_MATE_LINES)
    lines[1] = "Result        1/2-1/2"
    return GameRecord.from_lines(lines)


@pytest.fixture
def session():
    with PythonChessSession() as s:
        yield s
