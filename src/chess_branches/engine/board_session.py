# chess_branches/engine/board_session.py
"""
In-process engine session backed by python-chess.

Answers the same command language as the feature-extracting engine:
  position fen <fen> [moves ...] | position startpos [moves ...]
  genmoves      one legal move per line
  go ...        `bestmove <move>` (or `bestmove (none)`); one-ply material
                search, the time budget is ignored
  featextract   `<name> <white> <black>` per feature
  isready       `readyok`

Good enough for smoke runs and tests; real data should come from the engine.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Sequence

import chess

from chess_branches.errors import EngineError

from .features import BOARD_FEATURE_NAMES
from .session import EngineSession

logger = logging.getLogger(__name__)

PIECE_VALUES = {chess.PAWN: 1, chess.KNIGHT: 3, chess.BISHOP: 3, chess.ROOK: 5, chess.QUEEN: 9}
MATE_SCORE = 10_000

MOBILE_PIECES = {
    "knight": chess.KNIGHT,
    "bishop": chess.BISHOP,
    "rook": chess.ROOK,
    "queen": chess.QUEEN,
}


def _material(board: chess.Board, color: chess.Color) -> int:
    return sum(len(board.pieces(pt, color)) * v for pt, v in PIECE_VALUES.items())


def _mobility(board: chess.Board, color: chess.Color, piece_type: chess.PieceType) -> int:
    own = board.occupied_co[color]
    return sum(chess.popcount(board.attacks_mask(sq) & ~own) for sq in board.pieces(piece_type, color))


def _build_extractors() -> Dict[str, Callable[[chess.Board, chess.Color], int]]:
    ex: Dict[str, Callable[[chess.Board, chess.Color], int]] = {
        "king/castle-king-side": lambda b, c: int(b.has_kingside_castling_rights(c)),
        "king/castle-queen-side": lambda b, c: int(b.has_queenside_castling_rights(c)),
        "mobility/all": lambda b, c: sum(_mobility(b, c, pt) for pt in MOBILE_PIECES.values()),
    }
    for name, pt in MOBILE_PIECES.items():
        ex[f"mobility/{name}"] = lambda b, c, pt=pt: _mobility(b, c, pt)
    for name, pt in {**MOBILE_PIECES, "pawn": chess.PAWN}.items():
        ex[f"material/{name}"] = lambda b, c, pt=pt: len(b.pieces(pt, c))
    return ex


EXTRACTORS = _build_extractors()


class PythonChessSession(EngineSession):
    def __init__(self, feature_names: Sequence[str] = BOARD_FEATURE_NAMES):
        unknown = [n for n in feature_names if n not in EXTRACTORS]
        if unknown:
            raise ValueError(f"python-chess session cannot compute features: {unknown}")
        self.feature_names = tuple(feature_names)
        self.board = chess.Board()

    def run_commands(self, commands: Sequence[str]) -> List[str]:
        self.board = chess.Board()
        out: List[str] = []
        for cmd in commands:
            parts = cmd.split()
            if not parts:
                continue
            token, args = parts[0], parts[1:]
            logger.debug(f"> {cmd}")
            if token == "position":
                self.board = self._position(args)
            elif token == "genmoves":
                out.extend(mv.uci() for mv in self.board.legal_moves)
            elif token == "go":
                out.append(f"bestmove {self._search()}")
            elif token == "featextract":
                out.extend(self._features())
            elif token == "isready":
                out.append("readyok")
            elif token == "ucinewgame":
                self.board = chess.Board()
            else:
                out.append(f"Unknown token: {token}")
        return out

    # ------------------------------------------------------------------------

    def _position(self, args: List[str]) -> chess.Board:
        if args[:1] == ["startpos"]:
            board = chess.Board()
            rest = args[1:]
        elif args[:1] == ["fen"]:
            end = args.index("moves") if "moves" in args else len(args)
            try:
                board = chess.Board(" ".join(args[1:end]))
            except ValueError as e:
                raise EngineError(f"bad FEN in position command: {e}") from e
            rest = args[end:]
        else:
            raise EngineError(f"malformed position command: {' '.join(args)!r}")

        if rest and rest[0] != "moves":
            raise EngineError(f"malformed position command: {' '.join(args)!r}")
        for u in rest[1:]:
            try:
                mv = chess.Move.from_uci(u)
            except ValueError:
                raise EngineError(f"not a UCI move in position command: {u!r}") from None
            if mv not in board.legal_moves:
                raise EngineError(f"illegal move {u} in position {board.fen()}")
            board.push(mv)
        return board

    def _search(self) -> str:
        board = self.board
        us = board.turn
        best, best_score = None, None
        for mv in sorted(board.legal_moves, key=lambda m: m.uci()):
            board.push(mv)
            if board.is_checkmate():
                score = MATE_SCORE
            elif board.is_stalemate():
                score = 0
            else:
                score = _material(board, us) - _material(board, not us)
            board.pop()
            if best_score is None or score > best_score:
                best, best_score = mv, score
        return "(none)" if best is None else best.uci()

    def _features(self) -> List[str]:
        lines = []
        for name in self.feature_names:
            fn = EXTRACTORS[name]
            lines.append(f"{name} {fn(self.board, chess.WHITE)} {fn(self.board, chess.BLACK)}")
        return lines
