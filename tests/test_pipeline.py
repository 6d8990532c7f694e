import csv
import io
import logging

import pytest

from chess_branches.config import PipelineConfig
from chess_branches.engine import BOARD_FEATURE_NAMES
from chess_branches.io import GAME_END, iter_game_blocks
from chess_branches.errors import RecordError
from chess_branches.pipeline import _require, flatten, generate, run_stage
from chess_branches.sampling import CountStrategy
from chess_branches.stages import ContinuationsStage
from chess_branches.train_game import TrainGame, csv_header


def records_text(*records):
    return "".join("\n".join(r.to_lines()) + f"\n{GAME_END}\n" for r in records)


@pytest.fixture
def config():
    return PipelineConfig(count_strategy=CountStrategy.EXACT_N, limit=1, continuation_size=2, seed=3)


def test_generate_csv(fools_mate, scholars_mate, session, config):
    out = io.StringIO()
    stats = generate(io.StringIO(records_text(fools_mate, scholars_mate)), out, session, config)
    assert (stats.processed, stats.skipped) == (2, 0)

    rows = list(csv.reader(io.StringIO(out.getvalue())))
    assert rows[0] == csv_header(BOARD_FEATURE_NAMES)
    assert len(rows) == 1 + stats.rows
    assert {r[-1] for r in rows[1:]} == {"Left", "Right"}


def test_generate_lines_then_flatten(fools_mate, scholars_mate, session, config):
    lines_out = io.StringIO()
    generate(io.StringIO(records_text(fools_mate, scholars_mate)), lines_out, session, config.with_overrides(output_format="lines"))
    games = [TrainGame.from_lines(b) for b in iter_game_blocks(io.StringIO(lines_out.getvalue()))]
    assert [g.record.id for g in games] == [1, 7]

    csv_direct = io.StringIO()
    generate(io.StringIO(records_text(fools_mate, scholars_mate)), csv_direct, session, config)
    csv_flat = io.StringIO()
    stats = flatten(io.StringIO(lines_out.getvalue()), csv_flat)
    assert stats.processed == 2
    assert csv_flat.getvalue() == csv_direct.getvalue()


def test_bad_record_is_skipped(fools_mate, scholars_mate, session, config, caplog):
    bad = "GameId        2\nResult        1-0\nPlyCount      9\n"
    text = records_text(fools_mate) + bad + GAME_END + "\n" + records_text(scholars_mate)
    out = io.StringIO()
    with caplog.at_level(logging.WARNING, logger="chess_branches.pipeline"):
        stats = generate(io.StringIO(text), out, session, config)
    assert (stats.processed, stats.skipped) == (2, 1)
    assert "skipping record (GameId        2)" in caplog.text
    assert stats.summary() == f"processed 2 games, skipped 1, wrote {stats.rows} CSV rows"


def test_inconsistent_record_is_skipped(fools_mate_lines, session):
    lines = list(fools_mate_lines)
    lines[6] = "  1      f2f3      d7d6"
    cfg = PipelineConfig(count_strategy=CountStrategy.EXACT_N, limit=2)
    out = io.StringIO()
    stats = generate(io.StringIO("\n".join(lines) + "\n"), out, session, cfg)
    assert (stats.processed, stats.skipped) == (0, 1)
    # header only, no partial rows
    assert out.getvalue().count("\n") == 1


def test_stage_chain(fools_mate, session):
    cfg = PipelineConfig(count_strategy=CountStrategy.EXACT_N, limit=2, continuation_size=1)
    sampled, alts, conts = io.StringIO(), io.StringIO(), io.StringIO()
    run_stage("sample", io.StringIO(records_text(fools_mate)), sampled, cfg)
    run_stage("alts", io.StringIO(sampled.getvalue()), alts, cfg, session)
    stats = run_stage("conts", io.StringIO(alts.getvalue()), conts, cfg, session)
    assert stats.processed == 1

    (block,) = list(iter_game_blocks(io.StringIO(conts.getvalue())))
    stage = ContinuationsStage.from_lines(block)
    assert stage.record == fools_mate
    assert stage.alt.sampled.indices == (0, 1)
    assert len(stage.alt.alt_moves[1]) == 29


def test_drawn_game_skipped_by_alts_stage(drawn_game, session):
    cfg = PipelineConfig(count_strategy=CountStrategy.EXACT_N, limit=1)
    sampled = io.StringIO()
    run_stage("sample", io.StringIO(records_text(drawn_game)), sampled, cfg)
    stats = run_stage("alts", io.StringIO(sampled.getvalue()), io.StringIO(), cfg, session)
    assert (stats.processed, stats.skipped) == (0, 1)


def test_stage_argument_checks(config):
    with pytest.raises(ValueError, match="unknown stage"):
        run_stage("features", io.StringIO(), io.StringIO(), config)
    with pytest.raises(ValueError, match="needs an engine session"):
        run_stage("alts", io.StringIO(), io.StringIO(), config)


def test_empty_parse_is_record_error():
    with pytest.raises(RecordError, match="empty record"):
        _require(None)
    assert _require([]) == []
