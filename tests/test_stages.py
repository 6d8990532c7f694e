import pytest

from chess_branches.engine import legal_moves
from chess_branches.errors import ConsistencyError, RecordError
from chess_branches.record import GameRecord
from chess_branches.sampling import CountStrategy, Distribution
from chess_branches.stages import (
    AltMovesStage,
    ContinuationsStage,
    SampledMovesStage,
    build_alt_moves,
    build_continuations,
    sample_moves,
)


@pytest.fixture
def sampled(fools_mate):
    return SampledMovesStage(fools_mate, (0, 1))


@pytest.fixture
def alt(sampled, session):
    return build_alt_moves(sampled, session)


# ---- sampled moves ----


def test_sample_moves_exact(fools_mate):
    stage = sample_moves(fools_mate, Distribution.UNIFORM, CountStrategy.EXACT_N, 2, seed=[42, 1])
    assert stage.indices == (0, 1)
    assert stage.record == fools_mate


def test_sample_moves_reproducible(scholars_mate):
    a = sample_moves(scholars_mate, Distribution.NORMAL, CountStrategy.EXACT_N, 2, seed=[42, 7])
    b = sample_moves(scholars_mate, Distribution.NORMAL, CountStrategy.EXACT_N, 2, seed=[42, 7])
    assert a == b
    assert len(a.indices) == 2


def test_sample_moves_skips_pair_black_never_played(scholars_mate):
    lines = scholars_mate.to_lines()
    lines[1] = "Result        0-1"
    black_won = GameRecord.from_lines(lines)
    stage = sample_moves(black_won, Distribution.UNIFORM, CountStrategy.EXACT_N, 10, seed=1)
    assert stage.indices == (0, 1, 2)


def test_sampled_lines_roundtrip(sampled, fools_mate_lines):
    lines = sampled.to_lines()
    assert lines[: len(fools_mate_lines)] == fools_mate_lines
    assert lines[len(fools_mate_lines)] == "MovesSampled"
    assert lines[-2:] == ["  1      f2f3      e7e6", "  2      g2g4      d8h4"]
    assert SampledMovesStage.from_lines(lines) == sampled


def test_sampled_empty_and_missing_sentinel(fools_mate_lines):
    assert SampledMovesStage.from_lines([]) is None
    with pytest.raises(RecordError, match="MovesSampled"):
        SampledMovesStage.from_lines(fools_mate_lines)


def test_sampled_line_must_match_record(sampled):
    lines = sampled.to_lines()
    lines[-1] = "  2      g2g4      d8g5"
    with pytest.raises(RecordError, match="does not match"):
        SampledMovesStage.from_lines(lines)


def test_sampled_duplicate_index_rejected(fools_mate):
    with pytest.raises(RecordError, match="duplicate"):
        SampledMovesStage(fools_mate, (1, 1))


# ---- alternative moves ----


def test_alt_moves_fools_mate(alt):
    # 30 legal replies after 1.f3 e6 2.g4, minus the mating Qh4
    assert len(alt.alt_moves[1]) == 29
    assert "d8h4" not in alt.alt_moves[1]
    for mv in ("a7a6", "g8f6", "e8e7", "f8e7"):
        assert mv in alt.alt_moves[1]
    # 20 replies to 1.f3, minus e6
    assert len(alt.alt_moves[0]) == 19
    assert "e7e6" not in alt.alt_moves[0]
    assert "e7e5" in alt.alt_moves[0]


def test_alternatives_plus_played_move_are_the_legal_moves(alt, session):
    legal = legal_moves(session, ["f2f3", "e7e6", "g2g4"])
    assert set(alt.alt_moves[1]) | {"d8h4"} == set(legal)
    assert len(alt.alt_moves[1]) + 1 == len(legal)


def test_alt_lines_roundtrip(alt, sampled):
    lines = alt.to_lines()
    assert lines[: len(sampled.to_lines())] == sampled.to_lines()
    head = lines.index("AltMoves") + 1
    assert lines[head].split() == ["1", "19", "e7e6"]
    assert AltMovesStage.from_lines(lines) == alt


def test_alt_count_mismatch_rejected(alt):
    lines = alt.to_lines()
    head = lines.index("AltMoves") + 1
    lines[head] = lines[head].replace("19", "25")
    with pytest.raises(RecordError):
        AltMovesStage.from_lines(lines)


def test_illegal_winner_move_is_consistency_error(fools_mate_lines, session):
    lines = list(fools_mate_lines)
    # Qh4 blocked: the e-pawn never moved
    lines[6] = "  1      f2f3      d7d6"
    record = GameRecord.from_lines(lines)
    with pytest.raises(ConsistencyError, match="d8h4"):
        build_alt_moves(SampledMovesStage(record, (1,)), session)


def test_drawn_game_has_no_alternatives(drawn_game, session):
    with pytest.raises(RecordError, match="drawn"):
        build_alt_moves(SampledMovesStage(drawn_game, (0,)), session)


# ---- continuations ----


def test_continuations(alt, session):
    conts = build_continuations(alt, session, continuation_length=3, movetime=20)
    # Qh4 is mate: nothing follows
    assert conts.sampled_continuations[1] == ()
    assert len(conts.sampled_continuations[0]) == 3
    assert len(conts.alt_continuations[1]) == 29
    assert all(len(c) <= 3 for c in conts.alt_continuations[0])


def test_continuation_lines_roundtrip(alt, session):
    conts = build_continuations(alt, session, continuation_length=2, movetime=20)
    lines = conts.to_lines()
    assert lines[: len(alt.to_lines())] == alt.to_lines()
    sentinel = lines.index("Continuations 2")
    assert lines[sentinel + 1].split()[:4] == ["1", "19", "e7e6", "->"]
    assert ContinuationsStage.from_lines(lines) == conts


def test_continuation_length_enforced(alt, session):
    conts = build_continuations(alt, session, continuation_length=2, movetime=20)
    lines = conts.to_lines()
    lines[lines.index("Continuations 2")] = "Continuations 1"
    with pytest.raises(RecordError, match="longer than 1"):
        ContinuationsStage.from_lines(lines)


def test_continuations_need_sentinel_value(alt):
    lines = alt.to_lines() + ["Continuations"]
    with pytest.raises(RecordError, match="Continuations <length>"):
        ContinuationsStage.from_lines(lines)
