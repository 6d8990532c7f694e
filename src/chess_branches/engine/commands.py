# chess_branches/engine/commands.py
"""
Engine queries used by the stage builders and the branch assembler.

Each helper sends one command batch and checks the response structure.
Anything unexpected raises EngineError; nothing is defaulted.
"""
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import chess

from chess_branches.errors import EngineError
from chess_branches.record.moves import is_coordinate_move

from .features import GameFeature
from .session import EngineSession

START_FEN = chess.STARTING_FEN
NO_MOVE = "(none)"


def position_command(moves: Sequence[str]) -> str:
    cmd = f"position fen {START_FEN} moves"
    for m in moves:
        cmd += " " + m
    return cmd


def _payload(lines: List[str]) -> List[str]:
    """Drop blank and `info ...` lines some engines emit between answers."""
    return [ln.strip() for ln in lines if ln.strip() and not ln.startswith("info")]


def best_move(session: EngineSession, moves: Sequence[str], movetime: int) -> Optional[str]:
    """Engine's preferred reply after `moves`, or None when there is no legal move."""
    out = session.run_commands([position_command(moves), f"go movetime {int(movetime)}"])
    lines = _payload(out)
    if not lines:
        raise EngineError("engine returned no output for 'go'")
    parts = lines[-1].split()
    if len(parts) < 2 or parts[0] != "bestmove":
        raise EngineError(f"expected 'bestmove <move>', got {lines[-1]!r}")
    move = parts[1]
    if move == NO_MOVE:
        return None
    if not is_coordinate_move(move):
        raise EngineError(f"engine returned a malformed best move {move!r}")
    return move


def legal_moves(session: EngineSession, moves: Sequence[str]) -> List[str]:
    out = session.run_commands([position_command(moves), "genmoves"])
    legal = _payload(out)
    for mv in legal:
        if not is_coordinate_move(mv):
            raise EngineError(f"genmoves returned a malformed move line {mv!r}")
    if len(set(legal)) != len(legal):
        raise EngineError("genmoves returned duplicate moves")
    return legal


def move_continuation(session: EngineSession, moves: Sequence[str], count: int, movetime: int) -> List[str]:
    """
    Extend `moves` by up to `count` engine best moves, one query per ply.
    Stops early when the side to move has no legal move.
    """
    cont: List[str] = []
    for _ in range(count):
        mv = best_move(session, list(moves) + cont, movetime)
        if mv is None:
            break
        cont.append(mv)
    return cont


def extract_features(session: EngineSession, moves: Sequence[str]) -> Tuple[GameFeature, ...]:
    """
    Feature snapshot of the position after `moves`, in session.feature_names order.

    The engine must answer one `<name> <white> <black>` line per feature. A
    single combined value (`<name> <value>`) is rejected: the two sides are
    never reconstructed from a difference.
    """
    out = session.run_commands([position_command(moves), "featextract"])
    lines = _payload(out)
    names = session.feature_names
    if len(lines) != len(names):
        raise EngineError(f"featextract returned {len(lines)} lines, expected {len(names)}")

    values: List[GameFeature] = []
    for name, line in zip(names, lines):
        parts = line.split()
        if len(parts) == 2 and parts[0] == name:
            raise EngineError(f"feature {name!r} has a single value, expected per-side values: {line!r}")
        if len(parts) != 3 or parts[0] != name:
            raise EngineError(f"expected '{name} <white> <black>', got {line!r}")
        try:
            values.append(GameFeature(int(parts[1]), int(parts[2])))
        except ValueError:
            raise EngineError(f"non-integer feature value in {line!r}") from None
    return tuple(values)
