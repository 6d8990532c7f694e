# chess_branches/__init__.py
"""
chess_branches: turn finished chess games into move-branch training data.

    GameRecord -> sampled winner plies -> legal alternatives
               -> engine continuations -> feature snapshots -> CSV
"""

from .config import PipelineConfig
from .errors import ChessBranchesError, ConsistencyError, EngineError, EngineTimeout, RecordError
from .record import GameMove, GameRecord, GameResult
from .sampling import CountStrategy, Distribution
from .train_game import TrainGame, build_train_game

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # config
    "PipelineConfig",
    "CountStrategy",
    "Distribution",
    # records
    "GameMove",
    "GameRecord",
    "GameResult",
    "TrainGame",
    "build_train_game",
    # errors
    "ChessBranchesError",
    "RecordError",
    "ConsistencyError",
    "EngineError",
    "EngineTimeout",
]
