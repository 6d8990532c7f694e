# chess_branches/record/game.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import chess

from chess_branches.errors import RecordError

from .moves import GameMove, is_coordinate_move

HEADER_KEYS = ("GameId", "Result", "PlyCount", "WhiteElo", "BlackElo")
MOVES_MARKER = "Moves"


class GameResult(Enum):
    WHITE_WON = "1-0"
    BLACK_WON = "0-1"
    DRAW = "1/2-1/2"

    @classmethod
    def from_str(cls, text: str) -> "GameResult":
        for member in cls:
            if member.value == text:
                return member
        raise RecordError(f"unknown game result {text!r}")

    def winner_side(self) -> Optional[chess.Color]:
        if self is GameResult.WHITE_WON:
            return chess.WHITE
        if self is GameResult.BLACK_WON:
            return chess.BLACK
        return None


# --- line helpers ------------------------------------------------------------


def format_header_line(key: str, value: object) -> str:
    return f"{key:<14}{value}"


def format_move_line(number: int, move: GameMove) -> str:
    line = f"{number:>3}{move.white_move:>10}"
    if move.black_move is not None:
        line += f"{move.black_move:>10}"
    return line


def parse_move_line(line: str, expected_number: Optional[int] = None) -> Tuple[int, GameMove]:
    """Parse `index white [black]`. The index is 1-based."""
    parts = line.split()
    if len(parts) not in (2, 3):
        raise RecordError(f"malformed move line {line!r}")
    number = parse_int("move number", parts[0])
    if expected_number is not None and number != expected_number:
        raise RecordError(f"move number {number} out of sequence (expected {expected_number})")
    for mv in parts[1:]:
        if not is_coordinate_move(mv):
            raise RecordError(f"not a coordinate move: {mv!r} in line {line!r}")
    black = parts[2] if len(parts) == 3 else None
    return number, GameMove(parts[1], black)


def parse_int(what: str, text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise RecordError(f"{what}: expected an integer, got {text!r}") from None
    if value < 0:
        raise RecordError(f"{what}: expected a non-negative integer, got {value}")
    return value


def split_at_sentinel(lines: Sequence[str], sentinel: str) -> Tuple[List[str], List[str], List[str]]:
    """
    Split lines at the first sentinel line.

    A sentinel line is the sentinel word, optionally followed by values
    (e.g. `Continuations   6`). Returns (lines before, sentinel values, lines after).
    """
    for i, line in enumerate(lines):
        parts = line.split()
        if parts and parts[0] == sentinel:
            return list(lines[:i]), parts[1:], list(lines[i + 1 :])
    raise RecordError(f"missing {sentinel!r} section")


# --- record ------------------------------------------------------------------


@dataclass(frozen=True)
class GameRecord:
    """
    One completed game as stored in the record text format:

        GameId        1
        Result        0-1
        PlyCount      4
        WhiteElo      1000
        BlackElo      1000
        Moves
          1      f2f3      e7e6
          2      g2g4      d8h4

    The ply count is always checked against the move list.
    """

    id: int
    result: GameResult
    ply_count: int
    white_elo: int
    black_elo: int
    moves: Tuple[GameMove, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "moves", tuple(self.moves))
        if not isinstance(self.result, GameResult):
            raise RecordError(f"game {self.id}: result must be a GameResult, got {self.result!r}")
        for what, value in (("GameId", self.id), ("WhiteElo", self.white_elo), ("BlackElo", self.black_elo)):
            if value < 0:
                raise RecordError(f"{what}: expected a non-negative integer, got {value}")
        n = len(self.moves)
        for i, mv in enumerate(self.moves[:-1]):
            if mv.black_move is None:
                raise RecordError(f"game {self.id}: move {i + 1} has no black half but is not the last move")
        if n == 0:
            expected = 0
        elif self.moves[-1].black_move is None:
            expected = 2 * n - 1
        else:
            expected = 2 * n
        if self.ply_count != expected:
            raise RecordError(f"game {self.id}: PlyCount {self.ply_count} does not match {n} moves ({expected} plies)")

    # ---------------------------- parsing ----------------------------------

    @classmethod
    def from_lines(cls, lines: Sequence[str]) -> Optional["GameRecord"]:
        """Parse a record; None when there is nothing to parse."""
        lines = [ln for ln in lines if ln.strip()]
        if not lines:
            return None

        header: Dict[str, str] = {}
        moves: List[GameMove] = []
        in_moves = False

        for line in lines:
            text = line.strip()
            if text == MOVES_MARKER:
                if in_moves:
                    raise RecordError("duplicate 'Moves' marker")
                in_moves = True
            elif in_moves:
                _, mv = parse_move_line(text, expected_number=len(moves) + 1)
                moves.append(mv)
            else:
                parts = text.split(None, 1)
                if len(parts) != 2:
                    raise RecordError(f"malformed header line {line!r}")
                key, value = parts[0], parts[1].strip()
                if key not in HEADER_KEYS:
                    raise RecordError(f"unknown header key {key!r}")
                if key in header:
                    raise RecordError(f"duplicate header key {key!r}")
                header[key] = value

        missing = [k for k in HEADER_KEYS if k not in header]
        if missing:
            raise RecordError(f"missing header keys: {', '.join(missing)}")
        if not in_moves:
            raise RecordError("missing 'Moves' section")

        return cls(
            id=parse_int("GameId", header["GameId"]),
            result=GameResult.from_str(header["Result"]),
            ply_count=parse_int("PlyCount", header["PlyCount"]),
            white_elo=parse_int("WhiteElo", header["WhiteElo"]),
            black_elo=parse_int("BlackElo", header["BlackElo"]),
            moves=tuple(moves),
        )

    @classmethod
    def from_half_moves(
        cls,
        game_id: int,
        result: GameResult,
        half_moves: Sequence[str],
        white_elo: int = 0,
        black_elo: int = 0,
    ) -> "GameRecord":
        """Pair up a flat ply sequence (`e2e4 e7e5 g1f3 ...`) into a record."""
        for mv in half_moves:
            if not is_coordinate_move(mv):
                raise RecordError(f"game {game_id}: not a coordinate move: {mv!r}")
        moves = [
            GameMove(half_moves[i], half_moves[i + 1] if i + 1 < len(half_moves) else None)
            for i in range(0, len(half_moves), 2)
        ]
        return cls(game_id, result, len(half_moves), white_elo, black_elo, tuple(moves))

    def to_lines(self) -> List[str]:
        lines = [
            format_header_line("GameId", self.id),
            format_header_line("Result", self.result.value),
            format_header_line("PlyCount", self.ply_count),
            format_header_line("WhiteElo", self.white_elo),
            format_header_line("BlackElo", self.black_elo),
            MOVES_MARKER,
        ]
        lines.extend(format_move_line(i, mv) for i, mv in enumerate(self.moves, start=1))
        return lines

    # ---------------------------- queries ----------------------------------

    def half_moves(self) -> List[str]:
        out: List[str] = []
        for mv in self.moves:
            out.extend(mv.half_moves())
        return out

    def winner_move(self, index: int) -> str:
        """The winner's half of move pair `index` (0-based)."""
        side = self.result.winner_side()
        if side is None:
            raise RecordError(f"game {self.id}: drawn game has no winner move")
        mv = self.moves[index]
        if side == chess.WHITE:
            return mv.white_move
        if mv.black_move is None:
            raise RecordError(f"game {self.id}: move {index + 1} has no black half")
        return mv.black_move

    def moves_before_winner_move(self, index: int) -> List[str]:
        """Half-moves played before the winner's half of move pair `index`."""
        side = self.result.winner_side()
        if side is None:
            raise RecordError(f"game {self.id}: drawn game has no winner move")
        before = self.half_moves()[: 2 * index]
        if side == chess.BLACK:
            before.append(self.moves[index].white_move)
        return before
