# chess_branches/pipeline.py
"""
Record-at-a-time processing loops.

Each record is parsed, built (engine queries included) and written before the
next one is read. A record that raises RecordError or EngineError is logged
and skipped; it never produces partial output.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, TextIO, TypeVar

from chess_branches.config import PipelineConfig
from chess_branches.engine import EngineSession
from chess_branches.errors import EngineError, RecordError
from chess_branches.io import iter_game_blocks, write_csv_header, write_csv_rows, write_game_lines
from chess_branches.record import GameRecord
from chess_branches.sampling import game_seed
from chess_branches.stages import (
    AltMovesStage,
    SampledMovesStage,
    build_alt_moves,
    build_continuations,
    sample_moves,
)
from chess_branches.train_game import TrainGame, build_train_game, csv_header

logger = logging.getLogger(__name__)

T = TypeVar("T")

STAGES = ("sample", "alts", "conts")


@dataclass
class PipelineStats:
    processed: int = 0
    skipped: int = 0
    rows: int = 0

    def summary(self) -> str:
        return f"processed {self.processed} games, skipped {self.skipped}, wrote {self.rows} CSV rows"


def _first_line_hint(lines: List[str]) -> str:
    return lines[0].strip() if lines else "<empty>"


def _for_each_block(in_stream: TextIO, handle: Callable[[List[str]], None], stats: PipelineStats) -> PipelineStats:
    for lines in iter_game_blocks(in_stream):
        try:
            handle(lines)
        except (RecordError, EngineError) as e:
            stats.skipped += 1
            logger.warning(f"skipping record ({_first_line_hint(lines)}): {e}")
            continue
        stats.processed += 1
        logger.info(f" --- processed game: {stats.processed}")
    return stats


def generate(
    in_stream: TextIO,
    out_stream: TextIO,
    session: EngineSession,
    config: PipelineConfig,
) -> PipelineStats:
    """Raw records -> TrainGame records (config.output_format == "lines") or CSV rows."""
    stats = PipelineStats()
    as_csv = config.output_format == "csv"
    if as_csv:
        write_csv_header(csv_header(session.feature_names), out_stream)

    def handle(lines: List[str]) -> None:
        record = _parse_record(lines)
        game = build_train_game(record, session, config)
        if as_csv:
            stats.rows += write_csv_rows(game.to_csv_rows(), out_stream)
        else:
            write_game_lines(game.to_lines(), out_stream)

    return _for_each_block(in_stream, handle, stats)


def run_stage(
    stage: str,
    in_stream: TextIO,
    out_stream: TextIO,
    config: PipelineConfig,
    session: Optional[EngineSession] = None,
) -> PipelineStats:
    """
    Build one stage from the stage below it:
      sample: GameRecord        -> SampledMovesStage
      alts:   SampledMovesStage -> AltMovesStage       (engine)
      conts:  AltMovesStage     -> ContinuationsStage  (engine)
    """
    if stage not in STAGES:
        raise ValueError(f"unknown stage {stage!r}, expected one of {STAGES}")
    if stage != "sample" and session is None:
        raise ValueError(f"stage {stage!r} needs an engine session")
    stats = PipelineStats()

    def handle(lines: List[str]) -> None:
        if stage == "sample":
            record = _parse_record(lines)
            out = sample_moves(
                record,
                config.distribution,
                config.count_strategy,
                config.limit,
                seed=game_seed(config.seed, record.id),
            )
        elif stage == "alts":
            out = build_alt_moves(_require(SampledMovesStage.from_lines(lines)), session)
        else:
            alt = _require(AltMovesStage.from_lines(lines))
            out = build_continuations(alt, session, config.continuation_size, config.movetime)
        write_game_lines(out.to_lines(), out_stream)

    return _for_each_block(in_stream, handle, stats)


def flatten(in_stream: TextIO, out_stream: TextIO) -> PipelineStats:
    """Serialized TrainGame records -> CSV. The header comes from the first record."""
    stats = PipelineStats()
    header: List[Optional[List[str]]] = [None]

    def handle(lines: List[str]) -> None:
        game = _require(TrainGame.from_lines(lines))
        names = csv_header(game.feature_names)
        if header[0] is None:
            header[0] = names
            write_csv_header(names, out_stream)
        elif names != header[0]:
            raise RecordError(f"game {game.record.id}: feature set differs from the first record")
        stats.rows += write_csv_rows(game.to_csv_rows(), out_stream)

    return _for_each_block(in_stream, handle, stats)


def _require(parsed: Optional[T]) -> T:
    if parsed is None:
        raise RecordError("empty record")
    return parsed


def _parse_record(lines: List[str]) -> GameRecord:
    return _require(GameRecord.from_lines(lines))
