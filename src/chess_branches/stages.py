# chess_branches/stages.py
"""
Derived record stages.

    GameRecord -> SampledMovesStage -> AltMovesStage -> ContinuationsStage

Each stage holds a value copy of the stage below plus its own data, and owns
one sentinel-delimited section of the text format. `to_lines()` of a stage
always starts with the `to_lines()` of the stage below; `from_lines()` splits
at its sentinel and hands the prefix down.

Stages are built from the previous stage by the `sample_moves`,
`build_alt_moves` and `build_continuations` functions, which query the engine
immediately.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import chess

from chess_branches.engine import EngineSession, legal_moves, move_continuation
from chess_branches.errors import ConsistencyError, RecordError
from chess_branches.record import (
    GameRecord,
    format_move_line,
    is_coordinate_move,
    parse_int,
    parse_move_line,
    split_at_sentinel,
)
from chess_branches.sampling import CountStrategy, Distribution, SeedLike, sample_count, sample_indices

logger = logging.getLogger(__name__)

SAMPLED_SENTINEL = "MovesSampled"
ALT_SENTINEL = "AltMoves"
CONT_SENTINEL = "Continuations"
ARROW = "->"


def _content(lines: Sequence[str]) -> List[str]:
    return [ln for ln in lines if ln.strip()]


def _winner_width(record: GameRecord) -> int:
    # winner move sits under its column of the move list
    return 12 if record.result.winner_side() == chess.WHITE else 24


def _format_moves(moves: Sequence[str]) -> str:
    return "".join(f"{m:>6}" for m in moves)


def _check_moves(moves: Sequence[str], line: str) -> Tuple[str, ...]:
    for m in moves:
        if not is_coordinate_move(m):
            raise RecordError(f"not a coordinate move: {m!r} in line {line!r}")
    return tuple(moves)


# --- sampled moves -----------------------------------------------------------


@dataclass(frozen=True)
class SampledMovesStage:
    """A record plus the move-pair indices (0-based) picked by the sampler."""

    record: GameRecord
    indices: Tuple[int, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "indices", tuple(int(i) for i in self.indices))
        if len(set(self.indices)) != len(self.indices):
            raise RecordError(f"game {self.record.id}: duplicate sampled move indices {self.indices}")
        for i in self.indices:
            if not 0 <= i < len(self.record.moves):
                raise RecordError(f"game {self.record.id}: sampled move index {i + 1} out of range")

    @classmethod
    def from_lines(cls, lines: Sequence[str]) -> Optional["SampledMovesStage"]:
        lines = _content(lines)
        if not lines:
            return None
        before, args, after = split_at_sentinel(lines, SAMPLED_SENTINEL)
        if args:
            raise RecordError(f"unexpected values after {SAMPLED_SENTINEL!r}: {args}")
        record = GameRecord.from_lines(before)
        if record is None:
            raise RecordError(f"no game before {SAMPLED_SENTINEL!r}")

        indices: List[int] = []
        for line in after:
            number, mv = parse_move_line(line)
            idx = number - 1
            if not 0 <= idx < len(record.moves) or record.moves[idx] != mv:
                raise RecordError(f"game {record.id}: sampled move {line.strip()!r} does not match the move list")
            indices.append(idx)
        return cls(record, tuple(indices))

    def to_lines(self) -> List[str]:
        lines = self.record.to_lines()
        lines.append(SAMPLED_SENTINEL)
        lines.extend(format_move_line(i + 1, self.record.moves[i]) for i in self.indices)
        return lines


def sample_moves(
    record: GameRecord,
    distribution: Distribution = Distribution.UNIFORM,
    count_strategy: CountStrategy = CountStrategy.PERCENTAGE,
    limit: float = 10.0,
    seed: SeedLike = None,
) -> SampledMovesStage:
    population = len(record.moves)
    if record.result.winner_side() == chess.BLACK and record.moves and record.moves[-1].black_move is None:
        # black never played the last pair
        population -= 1
    count = sample_count(count_strategy, limit, population)
    indices = sample_indices(distribution, population, count, seed=seed)
    logger.debug(f"game {record.id}: sampled move indices {indices}")
    return SampledMovesStage(record, tuple(indices))


# --- alternative moves -------------------------------------------------------


@dataclass(frozen=True)
class AltMovesStage:
    """
    Sampled moves plus, for each sampled pair index, the legal moves the
    winner could have played instead of the one actually played.
    """

    sampled: SampledMovesStage
    alt_moves: Mapping[int, Tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self):
        alt = {int(k): tuple(v) for k, v in self.alt_moves.items()}
        if set(alt) != set(self.sampled.indices):
            raise RecordError(f"game {self.record.id}: alternative moves do not cover the sampled moves")
        object.__setattr__(self, "alt_moves", alt)

    @property
    def record(self) -> GameRecord:
        return self.sampled.record

    @classmethod
    def from_lines(cls, lines: Sequence[str]) -> Optional["AltMovesStage"]:
        lines = _content(lines)
        if not lines:
            return None
        before, args, after = split_at_sentinel(lines, ALT_SENTINEL)
        if args:
            raise RecordError(f"unexpected values after {ALT_SENTINEL!r}: {args}")
        sampled = SampledMovesStage.from_lines(before)
        if sampled is None:
            raise RecordError(f"no sampled game before {ALT_SENTINEL!r}")
        record = sampled.record

        alt: Dict[int, Tuple[str, ...]] = {}
        i = 0
        while i < len(after):
            line = after[i]
            parts = line.split()
            if len(parts) != 3:
                raise RecordError(f"malformed alternative-moves header {line!r}")
            idx = parse_int("move number", parts[0]) - 1
            count = parse_int("alternative count", parts[1])
            if idx not in sampled.indices or idx in alt:
                raise RecordError(f"game {record.id}: unexpected alternative-moves entry for move {idx + 1}")
            if parts[2] != record.winner_move(idx):
                raise RecordError(f"game {record.id}: winner move {parts[2]!r} does not match move {idx + 1}")
            moves = [ln.strip() for ln in after[i + 1 : i + 1 + count]]
            if len(moves) != count or any(len(m.split()) != 1 for m in moves):
                raise RecordError(f"game {record.id}: expected {count} alternative move lines for move {idx + 1}")
            alt[idx] = _check_moves(moves, line)
            i += 1 + count
        return cls(sampled, alt)

    def to_lines(self) -> List[str]:
        lines = self.sampled.to_lines()
        lines.append(ALT_SENTINEL)
        width = _winner_width(self.record)
        for idx in self.sampled.indices:
            alts = self.alt_moves[idx]
            lines.append(f"{idx + 1:>3}{len(alts):>4}{self.record.winner_move(idx):>{width}}")
            lines.extend(f"{m:>{width + 3}}" for m in alts)
        return lines


def build_alt_moves(sampled: SampledMovesStage, session: EngineSession) -> AltMovesStage:
    record = sampled.record
    alt: Dict[int, Tuple[str, ...]] = {}
    for idx in sampled.indices:
        before = record.moves_before_winner_move(idx)
        winner = record.winner_move(idx)
        legal = legal_moves(session, before)
        if winner not in legal:
            raise ConsistencyError(
                f"game {record.id}: played move {winner} (move {idx + 1}) is not among the engine's legal moves"
            )
        alt[idx] = tuple(m for m in legal if m != winner)
    return AltMovesStage(sampled, alt)


# --- continuations -----------------------------------------------------------


@dataclass(frozen=True)
class ContinuationsStage:
    """
    Alternative moves plus engine continuations: after the winner's move, and
    after each alternative. Continuations exclude the move they extend.
    """

    alt: AltMovesStage
    continuation_length: int
    sampled_continuations: Mapping[int, Tuple[str, ...]] = field(default_factory=dict)
    alt_continuations: Mapping[int, Tuple[Tuple[str, ...], ...]] = field(default_factory=dict)

    def __post_init__(self):
        sc = {int(k): tuple(v) for k, v in self.sampled_continuations.items()}
        ac = {int(k): tuple(tuple(c) for c in v) for k, v in self.alt_continuations.items()}
        indices = set(self.alt.sampled.indices)
        if set(sc) != indices or set(ac) != indices:
            raise RecordError(f"game {self.record.id}: continuations do not cover the sampled moves")
        for idx in indices:
            if len(ac[idx]) != len(self.alt.alt_moves[idx]):
                raise RecordError(f"game {self.record.id}: move {idx + 1} has {len(ac[idx])} alternative continuations")
            for cont in (sc[idx], *ac[idx]):
                if len(cont) > self.continuation_length:
                    raise RecordError(f"game {self.record.id}: continuation longer than {self.continuation_length}")
        object.__setattr__(self, "sampled_continuations", sc)
        object.__setattr__(self, "alt_continuations", ac)

    @property
    def record(self) -> GameRecord:
        return self.alt.record

    @classmethod
    def from_lines(cls, lines: Sequence[str]) -> Optional["ContinuationsStage"]:
        lines = _content(lines)
        if not lines:
            return None
        before, args, after = split_at_sentinel(lines, CONT_SENTINEL)
        if len(args) != 1:
            raise RecordError(f"expected '{CONT_SENTINEL} <length>', got values {args}")
        length = parse_int("continuation length", args[0])
        alt = AltMovesStage.from_lines(before)
        if alt is None:
            raise RecordError(f"no alternative-moves game before {CONT_SENTINEL!r}")
        record = alt.record

        sampled_conts: Dict[int, Tuple[str, ...]] = {}
        alt_conts: Dict[int, Tuple[Tuple[str, ...], ...]] = {}
        i = 0
        while i < len(after):
            line = after[i]
            parts = line.split()
            if len(parts) < 4 or parts[3] != ARROW:
                raise RecordError(f"malformed continuation header {line!r}")
            idx = parse_int("move number", parts[0]) - 1
            count = parse_int("alternative count", parts[1])
            if idx not in alt.alt_moves or idx in sampled_conts:
                raise RecordError(f"game {record.id}: unexpected continuation entry for move {idx + 1}")
            if parts[2] != record.winner_move(idx) or count != len(alt.alt_moves[idx]):
                raise RecordError(f"game {record.id}: continuation header {line.strip()!r} does not match AltMoves")
            sampled_conts[idx] = _check_moves(parts[4:], line)

            conts: List[Tuple[str, ...]] = []
            for expected, alt_line in zip(alt.alt_moves[idx], after[i + 1 : i + 1 + count]):
                alt_parts = alt_line.split()
                if len(alt_parts) < 2 or alt_parts[1] != ARROW or alt_parts[0] != expected:
                    raise RecordError(f"game {record.id}: expected continuation of {expected!r}, got {alt_line!r}")
                conts.append(_check_moves(alt_parts[2:], alt_line))
            if len(conts) != count:
                raise RecordError(f"game {record.id}: expected {count} alternative continuations for move {idx + 1}")
            alt_conts[idx] = tuple(conts)
            i += 1 + count
        return cls(alt, length, sampled_conts, alt_conts)

    def to_lines(self) -> List[str]:
        lines = self.alt.to_lines()
        lines.append(f"{CONT_SENTINEL:<14}{self.continuation_length}")
        record = self.record
        width = _winner_width(record)
        for idx in self.alt.sampled.indices:
            alts = self.alt.alt_moves[idx]
            head = f"{idx + 1:>3}{len(alts):>4}{record.winner_move(idx):>{width}}"
            lines.append(f"{head}  {ARROW}{_format_moves(self.sampled_continuations[idx])}")
            for m, cont in zip(alts, self.alt_continuations[idx]):
                lines.append(f"{m:>{width + 3}}  {ARROW}{_format_moves(cont)}")
        return lines


def build_continuations(
    alt: AltMovesStage,
    session: EngineSession,
    continuation_length: int,
    movetime: int,
) -> ContinuationsStage:
    record = alt.record
    sampled_conts: Dict[int, Tuple[str, ...]] = {}
    alt_conts: Dict[int, Tuple[Tuple[str, ...], ...]] = {}
    for idx in alt.sampled.indices:
        before = record.moves_before_winner_move(idx)
        winner = record.winner_move(idx)
        sampled_conts[idx] = tuple(move_continuation(session, before + [winner], continuation_length, movetime))
        alt_conts[idx] = tuple(
            tuple(move_continuation(session, before + [m], continuation_length, movetime)) for m in alt.alt_moves[idx]
        )
    return ContinuationsStage(alt, continuation_length, sampled_conts, alt_conts)
