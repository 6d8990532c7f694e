#!/usr/bin/env python3
"""
Generate synthetic decisive game records (random legal self-play with a mild bias).

A game counts when it ends in checkmate, or when it reaches its target length
with a material lead of at least --adjudicate points (that side is declared
the winner). Everything else is discarded, so every record has a winner.

Usage:
  uv run python scripts/generate_synthetic_records.py --out data/synth_records.txt --games 200
"""

from __future__ import annotations

import argparse
import random
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import chess

from chess_branches.io import write_game_lines
from chess_branches.record import GameRecord, GameResult

PIECE_VALUES = {chess.PAWN: 1, chess.KNIGHT: 3, chess.BISHOP: 3, chess.ROOK: 5, chess.QUEEN: 9}


def pick_move(board: chess.Board, rng: random.Random, bias: str = "light") -> Optional[chess.Move]:
    """Pick a legal move with optional light heuristics."""
    moves = list(board.legal_moves)
    if not moves:
        return None
    if bias == "none":
        return rng.choice(moves)

    # prefer captures, checks and mates
    scored = []
    for m in moves:
        s = 1.0
        if board.is_capture(m):
            s += 1.5
        board.push(m)
        if board.is_checkmate():
            s += 50.0
        elif board.is_check():
            s += 0.5
        board.pop()
        scored.append((s, m))

    total = sum(s for s, _ in scored)
    r = rng.random() * total
    acc = 0.0
    for s, m in scored:
        acc += s
        if r <= acc:
            return m
    return moves[-1]


def material_balance(board: chess.Board) -> int:
    """White material minus black material."""
    return sum(
        (len(board.pieces(pt, chess.WHITE)) - len(board.pieces(pt, chess.BLACK))) * v for pt, v in PIECE_VALUES.items()
    )


def play_one(rng: random.Random, min_plies: int, max_plies: int, bias: str, adjudicate: int) -> Tuple[List[str], Optional[GameResult]]:
    """Play a single synthetic game; the result is None when it has no winner."""
    target_len = rng.randint(min_plies, max_plies)
    board = chess.Board()
    out: List[str] = []
    for _ in range(target_len):
        mv = pick_move(board, rng, bias=bias)
        if mv is None:
            break
        out.append(mv.uci())
        board.push(mv)
        if board.is_game_over():
            break

    if board.is_checkmate():
        return out, GameResult.BLACK_WON if board.turn == chess.WHITE else GameResult.WHITE_WON
    if board.is_game_over() or adjudicate <= 0:
        return out, None
    balance = material_balance(board)
    if balance >= adjudicate:
        return out, GameResult.WHITE_WON
    if balance <= -adjudicate:
        return out, GameResult.BLACK_WON
    return out, None


def main():
    ap = argparse.ArgumentParser(description="Generate synthetic decisive game records.")
    ap.add_argument("--out", required=True, help="Output record file path")
    ap.add_argument("--games", type=int, default=100, help="Number of games to play")
    ap.add_argument("--min-plies", type=int, default=12, help="Minimum plies per game (target)")
    ap.add_argument("--max-plies", type=int, default=80, help="Maximum plies per game (target)")
    ap.add_argument("--bias", choices=["light", "none"], default="light", help="Move selection bias")
    ap.add_argument("--adjudicate", type=int, default=3, help="Material lead that wins an unfinished game (0: mates only)")
    ap.add_argument("--seed", type=int, default=1337, help="RNG seed")
    args = ap.parse_args()

    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    rng = random.Random(args.seed)
    n_written = 0

    with out_path.open("w", encoding="utf-8") as f:
        for _ in range(args.games):
            moves, result = play_one(rng, args.min_plies, args.max_plies, args.bias, args.adjudicate)
            if result is None or len(moves) < max(1, args.min_plies // 2):
                continue
            n_written += 1
            elo = rng.randint(800, 2400)
            record = GameRecord.from_half_moves(n_written, result, moves, white_elo=elo, black_elo=elo)
            write_game_lines(record.to_lines(), f)

    print(f"Wrote {n_written} records -> {out_path}")


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(130)
