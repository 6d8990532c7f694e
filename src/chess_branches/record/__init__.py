# chess_branches/record/__init__.py
from .game import GameRecord, GameResult, format_move_line, parse_int, parse_move_line, split_at_sentinel
from .moves import MOVE_CATALOG, GameMove, build_move_catalog, is_coordinate_move

__all__ = [
    # moves
    "build_move_catalog",
    "MOVE_CATALOG",
    "is_coordinate_move",
    "GameMove",
    # game
    "GameResult",
    "GameRecord",
    "format_move_line",
    "parse_move_line",
    "parse_int",
    "split_at_sentinel",
]
