# scripts/peek_pairs.py
import argparse
import logging

from chess_branches.data import load_train_test

ap = argparse.ArgumentParser(description="Summarize a branch CSV through the pairwise dataset")
ap.add_argument("--csv", default="data/branches.csv")
ap.add_argument("--test-percentage", type=float, default=10.0)
ap.add_argument("--seed", type=int, default=42)
args = ap.parse_args()

logging.basicConfig(level=logging.INFO, format="%(message)s")

train, test = load_train_test(args.csv, test_percentage=args.test_percentage, seed=args.seed)

print("train rows:", len(train), "test rows:", len(test))
print("features  :", train.stats.features)
if len(train):
    x, y = train[0]
    print("first row :", x[:8].tolist(), "...", "label", float(y))
    print("columns   :", train.feature_names[:4], "...")
