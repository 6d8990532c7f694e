import pytest

from chess_branches.branches import MoveBranch, build_branch
from chess_branches.engine import BOARD_FEATURE_NAMES, GameFeature
from chess_branches.errors import ConsistencyError

FOOLS_MATE = ["f2f3", "e7e6", "g2g4", "d8h4"]


def test_branch_at_mating_move(session):
    br = build_branch(FOOLS_MATE, 3, continuation_length=4, movetime=20, session=session)
    assert br.init_move_line == ("f2f3", "e7e6", "g2g4")
    assert br.played_move == "d8h4"
    # mate: the continuation is just the played move
    assert br.true_continuation == ("d8h4",)
    assert len(br.alt_continuations) == 29
    assert "d8h4" not in br.alt_moves
    assert all(len(c) <= 5 for c in br.alt_continuations)
    assert len(br.true_continuation_features) == len(BOARD_FEATURE_NAMES)
    assert len(br.alt_continuations_features) == 29


def test_branch_features_taken_at_continuation_end(session):
    br = build_branch(["e2e4", "d7d5"], 1, continuation_length=1, movetime=20, session=session)
    # 1.e4 d5 2.exd5: black is a pawn down at the end of the true line
    assert br.init_move_line == ("e2e4",)
    assert br.true_continuation == ("d7d5", "e4d5")
    pawns = br.true_continuation_features[BOARD_FEATURE_NAMES.index("material/pawn")]
    assert pawns == GameFeature(8, 7)


def test_zero_length_continuation(session):
    br = build_branch(["e2e4"], 0, continuation_length=0, movetime=20, session=session)
    assert br.true_continuation == ("e2e4",)
    assert all(len(c) == 1 for c in br.alt_continuations)
    assert len(br.alt_continuations) == 19


def test_illegal_played_move(session):
    with pytest.raises(ConsistencyError, match="e2e5"):
        build_branch(["e2e5"], 0, continuation_length=2, movetime=20, session=session)


def test_ply_out_of_range(session):
    with pytest.raises(IndexError):
        build_branch(FOOLS_MATE, 4, continuation_length=2, movetime=20, session=session)


def test_move_branch_validation():
    feats = (GameFeature(1, 1),)
    with pytest.raises(ValueError, match="played move"):
        MoveBranch((), (), feats, (), ())
    with pytest.raises(ValueError, match="feature snapshot"):
        MoveBranch((), ("e2e4",), feats, (("d2d4",),), ())
