# chess_branches/train_game.py
"""
TrainGame: one game turned into training branches.

Built once from a GameRecord (sampling the winner's plies and querying the
engine for every branch), then only serialized:
  - to_lines():     layered text, readable back with TrainGame.from_lines()
  - to_csv_rows():  flattened feature differences for the pairwise classifier
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple, Union

import chess

from chess_branches.branches import FeatureVector, MoveBranch, build_branch
from chess_branches.config import PipelineConfig
from chess_branches.engine import EngineSession, GameFeature
from chess_branches.errors import RecordError
from chess_branches.record import GameRecord, is_coordinate_move, parse_int, split_at_sentinel
from chess_branches.sampling import game_seed, sample_count, sample_indices

logger = logging.getLogger(__name__)

SAMPLED_WINNER_SENTINEL = "SampledWinnerMoves"
BRANCHES_SENTINEL = "SampledMoveBranches"
FEATURES_KEY = "Features"
BRANCH_KEY = "Branch"
TRUE_KEY = "True"
ALT_KEY = "Alt"
FEAT_KEY = "Feat"

CSV_PREFIXES = ("LeftWhite", "LeftBlack", "RightWhite", "RightBlack")
CSV_LABEL_COLUMN = "Winner"
LEFT = "Left"
RIGHT = "Right"

CsvRow = List[Union[int, str]]


def winner_ply_indices(record: GameRecord) -> List[int]:
    """0-based indices of the winner's plies in the half-move line; empty for draws."""
    side = record.result.winner_side()
    if side is None:
        return []
    start = 0 if side == chess.WHITE else 1
    return list(range(start, record.ply_count, 2))


def csv_header(feature_names: Sequence[str]) -> List[str]:
    header = [f"{prefix}---{name}" for prefix in CSV_PREFIXES for name in feature_names]
    header.append(CSV_LABEL_COLUMN)
    return header


def _format_moves(moves: Sequence[str]) -> str:
    return "".join(f"{m:>6}" for m in moves)


def _format_features(features: FeatureVector) -> str:
    return "".join(f" {f.white_value:>5} {f.black_value:>5}" for f in features)


@dataclass(frozen=True)
class TrainGame:
    record: GameRecord
    sampled_winner_moves_indices: Tuple[int, ...]
    branches: Tuple[MoveBranch, ...]
    continuation_size: int
    feature_names: Tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, "sampled_winner_moves_indices", tuple(self.sampled_winner_moves_indices))
        object.__setattr__(self, "branches", tuple(self.branches))
        object.__setattr__(self, "feature_names", tuple(self.feature_names))

        gid = self.record.id
        if len(self.branches) != len(self.sampled_winner_moves_indices):
            raise RecordError(f"game {gid}: {len(self.branches)} branches for {len(self.sampled_winner_moves_indices)} sampled plies")
        if len(set(self.sampled_winner_moves_indices)) != len(self.sampled_winner_moves_indices):
            raise RecordError(f"game {gid}: duplicate sampled plies")
        winner_plies = set(winner_ply_indices(self.record))
        line = self.total_move_line
        n_feat = len(self.feature_names)
        for ply, br in zip(self.sampled_winner_moves_indices, self.branches):
            if ply not in winner_plies:
                raise RecordError(f"game {gid}: ply {ply + 1} is not a winner ply")
            if br.init_move_line != line[:ply] or br.played_move != line[ply]:
                raise RecordError(f"game {gid}: branch at ply {ply + 1} does not match the move line")
            for cont in (br.true_continuation, *br.alt_continuations):
                if len(cont) > self.continuation_size + 1:
                    raise RecordError(f"game {gid}: continuation at ply {ply + 1} longer than {self.continuation_size}")
            for feats in (br.true_continuation_features, *br.alt_continuations_features):
                if len(feats) != n_feat:
                    raise RecordError(f"game {gid}: feature vector of {len(feats)} values, expected {n_feat}")

    @property
    def total_move_line(self) -> Tuple[str, ...]:
        return tuple(self.record.half_moves())

    # ------------------------------ text form -------------------------------

    def to_lines(self) -> List[str]:
        line = self.total_move_line
        lines = self.record.to_lines()
        lines.append(SAMPLED_WINNER_SENTINEL)
        lines.extend(f"{ply + 1:>3}{line[ply]:>10}" for ply in self.sampled_winner_moves_indices)
        lines.append(f"{BRANCHES_SENTINEL:<22}{self.continuation_size}")
        lines.append(" ".join([f"{FEATURES_KEY:<13}", *self.feature_names]).rstrip())
        for ply, br in zip(self.sampled_winner_moves_indices, self.branches):
            lines.append(f"{BRANCH_KEY:<8}{ply + 1:>4}{len(br.alt_continuations):>4}")
            lines.append(f"  {TRUE_KEY:<6}{_format_moves(br.true_continuation)}")
            lines.append(f"  {FEAT_KEY:<6}{_format_features(br.true_continuation_features)}")
            for cont, feats in zip(br.alt_continuations, br.alt_continuations_features):
                lines.append(f"  {ALT_KEY:<6}{_format_moves(cont)}")
                lines.append(f"  {FEAT_KEY:<6}{_format_features(feats)}")
        return lines

    @classmethod
    def from_lines(cls, lines: Sequence[str]) -> Optional["TrainGame"]:
        lines = [ln for ln in lines if ln.strip()]
        if not lines:
            return None
        before, args, after = split_at_sentinel(lines, SAMPLED_WINNER_SENTINEL)
        if args:
            raise RecordError(f"unexpected values after {SAMPLED_WINNER_SENTINEL!r}: {args}")
        record = GameRecord.from_lines(before)
        if record is None:
            raise RecordError(f"no game before {SAMPLED_WINNER_SENTINEL!r}")
        move_line = tuple(record.half_moves())

        winner_lines, args, branch_lines = split_at_sentinel(after, BRANCHES_SENTINEL)
        if len(args) != 1:
            raise RecordError(f"expected '{BRANCHES_SENTINEL} <continuation size>', got values {args}")
        continuation_size = parse_int("continuation size", args[0])

        plies: List[int] = []
        for wl in winner_lines:
            parts = wl.split()
            if len(parts) != 2:
                raise RecordError(f"malformed sampled winner move line {wl!r}")
            ply = parse_int("ply number", parts[0]) - 1
            if not 0 <= ply < len(move_line) or move_line[ply] != parts[1]:
                raise RecordError(f"game {record.id}: sampled move {wl.strip()!r} does not match the move line")
            plies.append(ply)

        rows = iter(branch_lines)
        feature_names = tuple(_expect(rows, FEATURES_KEY))
        branches: List[MoveBranch] = []
        for ply in plies:
            head = _expect(rows, BRANCH_KEY)
            if len(head) != 2 or parse_int("ply number", head[0]) != ply + 1:
                raise RecordError(f"game {record.id}: expected branch for ply {ply + 1}, got {head}")
            n_alts = parse_int("alternative count", head[1])
            true_cont = _parse_moves(_expect(rows, TRUE_KEY))
            true_feats = _parse_features(_expect(rows, FEAT_KEY))
            alt_conts, alt_feats = [], []
            for _ in range(n_alts):
                alt_conts.append(_parse_moves(_expect(rows, ALT_KEY)))
                alt_feats.append(_parse_features(_expect(rows, FEAT_KEY)))
            try:
                branches.append(MoveBranch(move_line[:ply], true_cont, true_feats, alt_conts, alt_feats))
            except ValueError as e:
                raise RecordError(f"game {record.id}: branch at ply {ply + 1}: {e}") from None
        leftover = next(rows, None)
        if leftover is not None:
            raise RecordError(f"game {record.id}: unexpected line after the last branch: {leftover!r}")

        return cls(record, tuple(plies), tuple(branches), continuation_size, feature_names)

    # ------------------------------ CSV form --------------------------------

    def to_csv_rows(self) -> List[CsvRow]:
        """
        Two rows per (true, alternative) continuation pair.

        First row: per-feature white and black differences (true minus
        alternative) under LeftWhite/LeftBlack, their negations under
        RightWhite/RightBlack, label Left. Second row: the first row negated,
        label Right.
        """
        rows: List[CsvRow] = []
        for br in self.branches:
            true_feats = br.true_continuation_features
            for alt_feats in br.alt_continuations_features:
                dw = [t.white_value - a.white_value for t, a in zip(true_feats, alt_feats)]
                db = [t.black_value - a.black_value for t, a in zip(true_feats, alt_feats)]
                values = dw + db + [-x for x in dw] + [-x for x in db]
                rows.append([*values, LEFT])
                rows.append([*(-x for x in values), RIGHT])
        return rows


# --- parsing helpers ---------------------------------------------------------


def _expect(rows: Iterator[str], key: str) -> List[str]:
    line = next(rows, None)
    if line is None:
        raise RecordError(f"expected a {key!r} line, reached the end of the record")
    parts = line.split()
    if not parts or parts[0] != key:
        raise RecordError(f"expected a {key!r} line, got {line!r}")
    return parts[1:]


def _parse_moves(parts: List[str]) -> Tuple[str, ...]:
    for m in parts:
        if not is_coordinate_move(m):
            raise RecordError(f"not a coordinate move: {m!r}")
    return tuple(parts)


def _parse_features(parts: List[str]) -> FeatureVector:
    if len(parts) % 2:
        raise RecordError("feature line must hold white/black value pairs")
    try:
        values = [int(p) for p in parts]
    except ValueError:
        raise RecordError(f"non-integer feature value in {parts}") from None
    return tuple(GameFeature(values[i], values[i + 1]) for i in range(0, len(values), 2))


# --- building ----------------------------------------------------------------


def build_train_game(record: GameRecord, session: EngineSession, config: PipelineConfig) -> TrainGame:
    plies = winner_ply_indices(record)
    if not plies:
        logger.info(f"game {record.id}: no winner plies ({record.result.value}), nothing to branch")

    count = sample_count(config.count_strategy, config.limit, len(plies))
    picks = sample_indices(config.distribution, len(plies), count, seed=game_seed(config.seed, record.id))
    sampled = tuple(plies[i] for i in picks)

    move_line = record.half_moves()
    branches = tuple(
        build_branch(move_line, ply, config.continuation_size, config.movetime, session) for ply in sampled
    )
    return TrainGame(record, sampled, branches, config.continuation_size, session.feature_names)
