from chess_branches.record import MOVE_CATALOG, GameMove, build_move_catalog, is_coordinate_move


def test_catalog_nonempty_and_unique():
    assert len(MOVE_CATALOG) > 4000, "Every from/to square pair should be in the catalog"
    assert len(MOVE_CATALOG) == len(set(MOVE_CATALOG)), "Catalog must be unique"
    assert build_move_catalog() == MOVE_CATALOG


def test_common_moves_and_castles():
    for mv in ["e2e4", "e7e5", "g1f3", "b8c6", "e1g1", "e8c8"]:
        assert is_coordinate_move(mv)


def test_promotions():
    for mv in ["a7a8q", "b7a8n", "g2g1r", "h2g1b"]:
        assert is_coordinate_move(mv)
    assert not is_coordinate_move("a6a8q")


def test_rejects_other_notations():
    for text in ["", "e4", "Nf3", "O-O", "e2e2", "e2e9", "(none)", "E2E4"]:
        assert not is_coordinate_move(text)


def test_game_move_half_moves():
    assert GameMove("e2e4", "e7e5").half_moves() == ["e2e4", "e7e5"]
    assert GameMove("e2e4").half_moves() == ["e2e4"]
