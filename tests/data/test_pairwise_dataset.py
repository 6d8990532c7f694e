"""Tests for PairwiseFeatureDataset"""

import pytest
import torch

from chess_branches.data import PairwiseFeatureDataset, load_train_test
from chess_branches.io import write_csv_header, write_csv_rows
from chess_branches.train_game import csv_header

NAMES = ("material/pawn", "mobility/all")


@pytest.fixture
def branch_csv(tmp_path):
    """50 mirrored row pairs, like TrainGame.to_csv_rows() writes them."""
    rows = []
    for i in range(50):
        values = [i, -i, i % 3, 1, -i, i, -(i % 3), -1]
        rows.append([*values, "Left"])
        rows.append([*(-v for v in values), "Right"])
    path = tmp_path / "branches.csv"
    with open(path, "w", encoding="utf-8", newline="") as f:
        write_csv_header(csv_header(NAMES), f)
        write_csv_rows(rows, f)
    return path


def test_splits_partition_rows(branch_csv):
    train, test = load_train_test(branch_csv, test_percentage=20.0, seed=42, verbose=False)
    assert len(train) + len(test) == 100
    assert 0 < len(test) < len(train)


def test_items_are_tensors(branch_csv):
    ds = PairwiseFeatureDataset(branch_csv, test_percentage=0.0, verbose=False)
    assert len(ds) == 100
    x, y = ds[0]
    assert x.dtype == torch.float32 and x.shape == (8,)
    assert float(y) in (1.0, -1.0)
    assert ds.feature_names == csv_header(NAMES)[:-1]


def test_labels_follow_sign_convention(branch_csv):
    ds = PairwiseFeatureDataset(branch_csv, test_percentage=0.0, verbose=False)
    assert ds.stats.positives == ds.stats.negatives == 50
    assert ds.stats.features == 8
    # the second white feature of a Left row is -i <= 0
    left = ds.features[ds.labels > 0]
    assert bool((left[:, 1] <= 0).all())


def test_same_seed_same_order(branch_csv):
    a = PairwiseFeatureDataset(branch_csv, "test", 30.0, seed=7, verbose=False)
    b = PairwiseFeatureDataset(branch_csv, "test", 30.0, seed=7, verbose=False)
    assert torch.equal(a.features, b.features)
    assert torch.equal(a.labels, b.labels)


def test_everything_in_test_split(branch_csv):
    train, test = load_train_test(branch_csv, test_percentage=100.0, verbose=False)
    assert len(train) == 0
    assert len(test) == 100
    assert tuple(train.features.shape) == (0, 8)


def test_unknown_label(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text(",".join(csv_header(NAMES)) + "\n" + "1,2,3,4,5,6,7,8,Up\n")
    with pytest.raises(ValueError, match="unknown label"):
        PairwiseFeatureDataset(path, verbose=False)


def test_bad_arguments(tmp_path, branch_csv):
    with pytest.raises(FileNotFoundError):
        PairwiseFeatureDataset(tmp_path / "missing.csv")
    with pytest.raises(ValueError, match="split"):
        PairwiseFeatureDataset(branch_csv, split="valid")
    with pytest.raises(ValueError, match="test_percentage"):
        PairwiseFeatureDataset(branch_csv, test_percentage=120.0)
