# chess_branches/engine/__init__.py
from .board_session import PythonChessSession
from .commands import best_move, extract_features, legal_moves, move_continuation, position_command
from .features import BOARD_FEATURE_NAMES, FEATURE_COUNT, FEATURE_NAMES, GameFeature
from .session import PYTHON_CHESS_ENGINE, EngineSession, UciProcessSession, open_session

__all__ = [
    # features
    "FEATURE_NAMES",
    "FEATURE_COUNT",
    "BOARD_FEATURE_NAMES",
    "GameFeature",
    # sessions
    "EngineSession",
    "UciProcessSession",
    "PythonChessSession",
    "PYTHON_CHESS_ENGINE",
    "open_session",
    # commands
    "position_command",
    "best_move",
    "legal_moves",
    "move_continuation",
    "extract_features",
]
