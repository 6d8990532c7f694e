# chess_branches/engine/features.py
"""
Positional feature names and the per-side feature value type.

FEATURE_NAMES follows the order in which the feature-extracting engine
answers `featextract`: one line per feature, `<name> <white> <black>`.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

_FEATURE_GROUPS: Dict[str, List[str]] = {
    "bishop": [
        "minor-behind-pawn",
        "pawn-supported-occupied-outpost",
        "pawn-supported-reachable-outpost",
        "pawn-unsupported-occupied-outpost",
        "pawn-unsupported-reachable-outpost",
        "pawns-on-same-color-squares",
    ],
    "king": [
        "castle-king-side",
        "castle-queen-side",
        "close-enemies-one",
        "close-enemies-two",
        "enemy-other-bishop-check",
        "enemy-other-knight-check",
        "enemy-other-rook-check",
        "enemy-safe-bishop-check",
        "enemy-safe-knight-check",
        "enemy-safe-queen-check",
        "enemy-safe-rook-check",
        "king-adj-zone-attacks-count",
        "king-attackers-count",
        "king-only-defended",
        "min-king-pawn-distance",
        "not-defended-larger-king-ring",
        "pawnless-flank",
        "shelter-rank-us",
        "shelter-storm-edge-distance",
        "storm-rank-them",
        "storm-type-blocked-by-king",
        "storm-type-blocked-by-pawn",
        "storm-type-unblocked",
        "storm-type-unopposed",
    ],
    "knight": [
        "minor-behind-pawn",
        "pawn-supported-occupied-outpost",
        "pawn-supported-reachable-outpost",
        "pawn-unsupported-occupied-outpost",
        "pawn-unsupported-reachable-outpost",
    ],
    "material": ["bishop", "knight", "pawn", "queen", "rook"],
    "mobility": ["all", "bishop", "knight", "queen", "rook"],
    "passed-pawns": [
        "average-candidate-passers",
        "blocksq-our-king-distance",
        "blocksq-their-king-distance",
        "defended-block-square",
        "empty-blocksq",
        "friendly-occupied-blocksq",
        "fully-defended-path",
        "hindered-passed-pawn",
        "no-unsafe-blocksq",
        "no-unsafe-squares",
        "two-blocksq-our-king-distance",
    ],
    "queen": ["weak"],
    "rook": ["castle", "rook-on-open-file", "rook-on-pawn", "rook-on-semi-open-file", "trapped"],
    "space": ["extra-safe-squares", "safe-squares"],
    "threats": [
        "hanging",
        "hanging-pawn",
        "king-threat-by-minor",
        "king-threat-by-rook",
        "minor-threat-by-minor",
        "minor-threat-by-rook",
        "pawn-push",
        "pawn-threat-by-minor",
        "pawn-threat-by-rook",
        "queen-threat-by-minor",
        "queen-threat-by-rook",
        "rook-threat-by-minor",
        "rook-threat-by-rook",
        "safe-pawn",
        "threat-by-king",
        "threat-by-minor-rank",
        "threat-by-rook-rank",
    ],
}

FEATURE_NAMES: Tuple[str, ...] = tuple(f"{group}/{name}" for group, names in _FEATURE_GROUPS.items() for name in names)
FEATURE_COUNT = len(FEATURE_NAMES)  # 81

# Subset the in-process python-chess session can compute.
BOARD_FEATURE_NAMES: Tuple[str, ...] = (
    "king/castle-king-side",
    "king/castle-queen-side",
    "material/bishop",
    "material/knight",
    "material/pawn",
    "material/queen",
    "material/rook",
    "mobility/all",
    "mobility/bishop",
    "mobility/knight",
    "mobility/queen",
    "mobility/rook",
)


@dataclass(frozen=True)
class GameFeature:
    white_value: int
    black_value: int
