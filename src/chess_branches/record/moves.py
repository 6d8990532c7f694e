# chess_branches/record/moves.py
# coordinate-notation move catalog and the move-pair type of a game record
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from chess_branches.errors import RecordError

# Every (from,to) pair on 8x8 plus promotions. Legality is the engine's job;
# the catalog only tells well-formed notation from garbage.
FILES = "abcdefgh"
RANKS = "12345678"
SQUARES = [f + r for r in RANKS for f in FILES]
PROMOS = ["q", "r", "b", "n"]


def build_move_catalog() -> list[str]:
    base = []
    for s in SQUARES:
        for t in SQUARES:
            if s != t:
                base.append(s + t)  # quiet/captures, castles as e1g1/e1c1 etc.
    promos = []
    for f in FILES:
        promos += [f + "7" + f + "8" + p for p in PROMOS]  # white
        promos += [f + "2" + f + "1" + p for p in PROMOS]  # black
        for df in (-1, +1):
            idx = FILES.index(f)
            if 0 <= idx + df < 8:
                tf = FILES[idx + df]
                promos += [f + "7" + tf + "8" + p for p in PROMOS]
                promos += [f + "2" + tf + "1" + p for p in PROMOS]
    return sorted(set(base + promos))


MOVE_CATALOG = build_move_catalog()
_CATALOG_SET = frozenset(MOVE_CATALOG)


def is_coordinate_move(text: str) -> bool:
    return text in _CATALOG_SET


@dataclass(frozen=True)
class GameMove:
    """One numbered move of a game: White's half and (usually) Black's reply."""

    white_move: str
    black_move: Optional[str] = None

    def __post_init__(self):
        for half in (self.white_move, self.black_move):
            if half is not None and not is_coordinate_move(half):
                raise RecordError(f"not a coordinate move: {half!r}")

    def half_moves(self) -> List[str]:
        if self.black_move is None:
            return [self.white_move]
        return [self.white_move, self.black_move]
