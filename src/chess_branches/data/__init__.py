# chess_branches/data/__init__.py
"""
Data loading utilities for chess_branches.

Exports:
    - PairwiseFeatureDataset: branch CSV → (features, ±1 label) pairs
    - PairStats: summary stats dataclass
    - load_train_test: both splits of one CSV
"""

from .pairwise_dataset import PairStats, PairwiseFeatureDataset, load_train_test

__all__ = [
    "PairwiseFeatureDataset",
    "PairStats",
    "load_train_test",
]
