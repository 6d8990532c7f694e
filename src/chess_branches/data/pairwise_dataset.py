# chess_branches/data/pairwise_dataset.py
from __future__ import annotations

import csv
import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np
import torch
from torch.utils.data import Dataset

from chess_branches.train_game import CSV_LABEL_COLUMN, CSV_PREFIXES, LEFT, RIGHT

logger = logging.getLogger(__name__)

LABELS = {LEFT: 1.0, RIGHT: -1.0}
SPLITS = ("train", "test")


@dataclass
class PairStats:
    """Statistics about one split."""

    rows: int
    features: int
    positives: int
    negatives: int


class PairwiseFeatureDataset(Dataset):
    """
    PyTorch Dataset over the flattened branch CSV.

    Each row holds 4 x F feature differences followed by a Left/Right label;
    Left maps to +1.0, Right to -1.0. Rows are split into train/test by a
    seeded coin per row, then each split is shuffled reproducibly.
    """

    def __init__(
        self,
        path: Union[str, Path],
        split: str = "train",
        test_percentage: float = 10.0,
        seed: Optional[int] = 42,
        verbose: bool = True,
    ):
        """
        Args:
            path: CSV file written by `chess-branches generate` or `flatten`.
            split: "train" or "test".
            test_percentage: Share of rows (0-100) routed to the test split.
            seed: Seed for the split and the shuffle.
            verbose: Log split statistics.
        """
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"Dataset file not found: {self.path}")
        if split not in SPLITS:
            raise ValueError(f"split must be one of {SPLITS}, got {split!r}")
        if not 0.0 <= test_percentage <= 100.0:
            raise ValueError(f"test_percentage must be within [0, 100], got {test_percentage}")

        self.split = split
        self.test_percentage = float(test_percentage)
        self.rng = random.Random(seed) if seed is not None else random.Random()

        self.columns, features, labels = self._load()
        self.features = torch.from_numpy(features)
        self.labels = torch.from_numpy(labels)

        self.stats = PairStats(
            rows=len(self.labels),
            features=self.features.shape[1],
            positives=int((self.labels > 0).sum().item()),
            negatives=int((self.labels < 0).sum().item()),
        )
        if verbose:
            logger.info(
                f"{self.path.name} [{self.split}]: {self.stats.rows:,} rows, "
                f"{self.stats.features} features, +{self.stats.positives}/-{self.stats.negatives}"
            )

    def _load(self) -> Tuple[List[str], np.ndarray, np.ndarray]:
        rows: List[List[float]] = []
        labels: List[float] = []
        with open(self.path, "r", encoding="utf-8", newline="") as f:
            reader = csv.reader(f)
            header = next(reader, None)
            if header is None:
                raise ValueError(f"{self.path}: empty file, expected a header row")
            if header[-1] != CSV_LABEL_COLUMN or (len(header) - 1) % len(CSV_PREFIXES):
                raise ValueError(f"{self.path}: not a branch CSV header")
            n_feat = len(header) - 1

            for line_num, cells in enumerate(reader, start=2):
                if len(cells) != n_feat + 1:
                    raise ValueError(f"{self.path} line {line_num}: expected {n_feat + 1} cells, got {len(cells)}")
                label = cells[-1]
                if label not in LABELS:
                    raise ValueError(f"{self.path} line {line_num}: unknown label {label!r}")
                # every row draws, so the split does not depend on which split is requested
                in_test = self.rng.random() * 100.0 < self.test_percentage
                if in_test != (self.split == "test"):
                    continue
                rows.append([float(c) for c in cells[:-1]])
                labels.append(LABELS[label])

        order = list(range(len(rows)))
        self.rng.shuffle(order)
        features = np.asarray([rows[i] for i in order], dtype=np.float32).reshape(len(order), n_feat)
        return header[:-1], features, np.asarray([labels[i] for i in order], dtype=np.float32)

    @property
    def feature_names(self) -> List[str]:
        return self.columns

    def __len__(self) -> int:
        return len(self.labels)

    def __getitem__(self, idx: int) -> Tuple[torch.Tensor, torch.Tensor]:
        return self.features[idx], self.labels[idx]


def load_train_test(
    path: Union[str, Path],
    test_percentage: float = 10.0,
    seed: Optional[int] = 42,
    verbose: bool = True,
) -> Tuple[PairwiseFeatureDataset, PairwiseFeatureDataset]:
    train = PairwiseFeatureDataset(path, "train", test_percentage, seed, verbose)
    test = PairwiseFeatureDataset(path, "test", test_percentage, seed, verbose)
    return train, test
