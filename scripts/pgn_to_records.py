#!/usr/bin/env python3
"""
Convert PGN games into game records, separated by the record terminator.

Skipped: games without a final result (`*`), games with too few plies,
games set up from a FEN (records always start from the standard position)
and games containing null moves.

Usage:
  uv run python scripts/pgn_to_records.py --pgn games.pgn --out data/games.txt
"""
import argparse
from typing import List, Optional

import chess.pgn

from chess_branches.errors import RecordError
from chess_branches.io import write_game_lines
from chess_branches.record import GameRecord, GameResult


def elo(headers: chess.pgn.Headers, key: str) -> int:
    try:
        return max(0, int(headers.get(key, "0")))
    except ValueError:
        return 0


def record_moves(game: chess.pgn.Game) -> Optional[List[str]]:
    """Coordinate moves of the main line, or None if the game cannot be a record."""
    if "FEN" in game.headers or game.headers.get("SetUp") == "1":
        return None
    moves = []
    for mv in game.mainline_moves():
        if not mv:
            return None
        moves.append(mv.uci())
    return moves


if __name__ == "__main__":
    ap = argparse.ArgumentParser()
    ap.add_argument("--pgn", required=True)
    ap.add_argument("--out", required=True)
    ap.add_argument("--min-plies", type=int, default=8)
    ap.add_argument("--decisive-only", action="store_true", help="Skip drawn games")
    args = ap.parse_args()

    n_read = n_written = n_unusable = 0
    with open(args.pgn, "r") as f, open(args.out, "w") as w:
        while True:
            game = chess.pgn.read_game(f)
            if game is None:
                break
            n_read += 1
            result = game.headers.get("Result", "*")
            if result not in ("1-0", "0-1", "1/2-1/2"):
                continue
            if args.decisive_only and result == "1/2-1/2":
                continue
            moves = record_moves(game)
            if moves is None:
                n_unusable += 1
                continue
            if len(moves) < args.min_plies:
                continue
            try:
                record = GameRecord.from_half_moves(
                    n_written + 1,
                    GameResult.from_str(result),
                    moves,
                    white_elo=elo(game.headers, "WhiteElo"),
                    black_elo=elo(game.headers, "BlackElo"),
                )
            except RecordError as e:
                print(f"[skip] game {n_read}: {e}")
                n_unusable += 1
                continue
            n_written += 1
            write_game_lines(record.to_lines(), w)

    print(f"Read {n_read} games, wrote {n_written} records ({n_unusable} unusable) -> {args.out}")
