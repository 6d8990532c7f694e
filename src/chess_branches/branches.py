# chess_branches/branches.py
"""
Move branches.

For one sampled ply:

    init_move_line -> played   -> c1 -> c2 ...     (true continuation)
                   -> alt_1    -> c1 -> c2 ...     (alternative continuations)
                   -> alt_2    -> c1 -> c2 ...

Each continuation starts with its first move and is extended by the engine's
best move, one ply at a time, up to `continuation_length` extra plies or until
the side to move has no legal move. One feature snapshot is taken at the end
of every continuation.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence, Tuple

from chess_branches.engine import EngineSession, GameFeature, extract_features, legal_moves, move_continuation
from chess_branches.errors import ConsistencyError

logger = logging.getLogger(__name__)

Line = Tuple[str, ...]
FeatureVector = Tuple[GameFeature, ...]


@dataclass(frozen=True)
class MoveBranch:
    init_move_line: Line
    true_continuation: Line
    true_continuation_features: FeatureVector
    alt_continuations: Tuple[Line, ...]
    alt_continuations_features: Tuple[FeatureVector, ...]

    def __post_init__(self):
        object.__setattr__(self, "init_move_line", tuple(self.init_move_line))
        object.__setattr__(self, "true_continuation", tuple(self.true_continuation))
        object.__setattr__(self, "true_continuation_features", tuple(self.true_continuation_features))
        object.__setattr__(self, "alt_continuations", tuple(tuple(c) for c in self.alt_continuations))
        object.__setattr__(self, "alt_continuations_features", tuple(tuple(f) for f in self.alt_continuations_features))
        if not self.true_continuation:
            raise ValueError("true continuation must start with the played move")
        if len(self.alt_continuations) != len(self.alt_continuations_features):
            raise ValueError("every alternative continuation needs a feature snapshot")

    @property
    def played_move(self) -> str:
        return self.true_continuation[0]

    @property
    def alt_moves(self) -> Tuple[str, ...]:
        return tuple(c[0] for c in self.alt_continuations)


def _continuation(session: EngineSession, init: Sequence[str], first: str, length: int, movetime: int) -> Line:
    return (first, *move_continuation(session, [*init, first], length, movetime))


def build_branch(
    move_line: Sequence[str],
    ply_index: int,
    continuation_length: int,
    movetime: int,
    session: EngineSession,
) -> MoveBranch:
    """
    Build the branch rooted at `move_line[ply_index]`.

    Raises ConsistencyError if the engine does not list the played move as
    legal; EngineError from the session propagates unchanged.
    """
    if not 0 <= ply_index < len(move_line):
        raise IndexError(f"ply index {ply_index} outside a line of {len(move_line)} plies")

    init = tuple(move_line[:ply_index])
    played = move_line[ply_index]

    # legality first: a continuation from an illegal move is meaningless
    legal = legal_moves(session, init)
    if played not in legal:
        raise ConsistencyError(f"played move {played} (ply {ply_index + 1}) is not among the engine's legal moves")
    alts = [m for m in legal if m != played]

    true_cont = _continuation(session, init, played, continuation_length, movetime)
    alt_conts = tuple(_continuation(session, init, m, continuation_length, movetime) for m in alts)

    true_feats = extract_features(session, init + true_cont)
    alt_feats = tuple(extract_features(session, init + c) for c in alt_conts)

    logger.debug(f"branch at ply {ply_index + 1}: {played} vs {len(alts)} alternatives")
    return MoveBranch(
        init_move_line=init,
        true_continuation=true_cont,
        true_continuation_features=true_feats,
        alt_continuations=alt_conts,
        alt_continuations_features=alt_feats,
    )
