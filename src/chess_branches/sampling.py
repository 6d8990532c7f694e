# chess_branches/sampling.py
"""
Index sampling without replacement.

Two questions are answered separately:
  - how many indices to take (CountStrategy: exact N, or a percentage of the population)
  - which indices to take (Distribution: uniform, or bell-shaped around the middle)

Every call builds its own numpy Generator from the explicit seed, so results
are reproducible and independent of any other sampling call.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Set, Union

import numpy as np

logger = logging.getLogger(__name__)

SeedLike = Union[None, int, Sequence[int]]


class CountStrategy(str, Enum):
    EXACT_N = "exact"
    PERCENTAGE = "percentage"


class Distribution(str, Enum):
    UNIFORM = "uniform"
    NORMAL = "normal"


@dataclass(frozen=True)
class NormalParams:
    mean: float
    stddev: float


def generate_normal_distribution(num_elements: int, stdcover: int = 1) -> NormalParams:
    """
    Normal distribution centred on the middle index.

    `stdcover` is how many standard deviations fit in half the population;
    higher values make the first and last indices less likely.
    """
    n = float(num_elements)
    return NormalParams(mean=(n - 1) / 2, stddev=(n / 2) / stdcover)


def _clamp(count: int, population_size: int) -> int:
    if count > population_size:
        logger.warning(f"requested {count} samples from a population of {population_size}; clamping")
        return population_size
    return count


def sample_count(strategy: CountStrategy, limit: float, population_size: int) -> int:
    """Number of indices to sample from a population of `population_size`."""
    if limit < 0:
        raise ValueError(f"sample limit must be non-negative, got {limit}")
    strategy = CountStrategy(strategy)
    if strategy is CountStrategy.EXACT_N:
        count = int(limit)
    else:
        # multiply first: 29% of 100 must be 29
        count = math.floor(limit * population_size / 100.0)
    return _clamp(count, population_size)


def _nearest_index(x: float) -> int:
    # exact ties go to the lower index
    fn = math.floor(x)
    cn = math.ceil(x)
    return int(cn if (cn - x) < (x - fn) else fn)


def _sample_normal(rng: np.random.Generator, population_size: int, count: int) -> Set[int]:
    params = generate_normal_distribution(population_size)
    # n = 3: (-0.5, 0.5] -> 0, (0.5, 1.5] -> 1, (1.5, 2.5) -> 2
    llimit, ulimit = -0.5, population_size - 0.5
    picked: Set[int] = set()
    while len(picked) < count:
        x = float(rng.normal(params.mean, params.stddev))
        if x <= llimit or x >= ulimit:
            continue
        picked.add(_nearest_index(x))
    return picked


def sample_indices(
    distribution: Distribution,
    population_size: int,
    count: int,
    seed: SeedLike = None,
) -> List[int]:
    """
    Sorted list of `count` distinct indices in [0, population_size).

    A count above the population is clamped (with a warning).
    """
    if population_size < 0:
        raise ValueError(f"population_size must be non-negative, got {population_size}")
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    count = _clamp(count, population_size)
    if count == 0:
        return []

    rng = np.random.default_rng(seed)
    distribution = Distribution(distribution)
    if distribution is Distribution.UNIFORM:
        picked = rng.choice(population_size, size=count, replace=False)
        return sorted(int(i) for i in picked)
    return sorted(_sample_normal(rng, population_size, count))


def game_seed(seed: Optional[int], game_id: int) -> SeedLike:
    """Per-game seed derived from a base seed; None stays None (fresh entropy)."""
    if seed is None:
        return None
    return [int(seed), int(game_id)]
