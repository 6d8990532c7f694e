# chess_branches/config.py
from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from chess_branches.engine.session import PYTHON_CHESS_ENGINE
from chess_branches.sampling import CountStrategy, Distribution

OUTPUT_FORMATS = ("csv", "lines")


@dataclass(frozen=True)
class PipelineConfig:
    """
    Settings for turning game records into training branches.

    Args:
        distribution: Which plies to sample (uniform, or normal around mid-game).
        count_strategy: How many plies to sample (exact N, or a percentage).
        limit: N for EXACT_N, percent for PERCENTAGE.
        seed: Base seed; each game samples with [seed, game_id]. None = fresh entropy.
        continuation_size: Engine plies appended after the first move of each continuation.
        movetime: Engine thinking budget per move, in milliseconds.
        engine: Engine executable, or "python-chess" for the in-process session.
        engine_args: Extra command-line arguments for the engine executable.
        engine_timeout: Seconds to wait for each engine response line; None waits forever.
        output_format: "csv" (flattened feature differences) or "lines" (layered text).
    """

    distribution: Distribution = Distribution.UNIFORM
    count_strategy: CountStrategy = CountStrategy.PERCENTAGE
    limit: float = 10.0
    seed: Optional[int] = 42
    continuation_size: int = 6
    movetime: int = 20
    engine: str = PYTHON_CHESS_ENGINE
    engine_args: Tuple[str, ...] = ()
    engine_timeout: Optional[float] = 30.0
    output_format: str = "csv"

    def __post_init__(self):
        object.__setattr__(self, "distribution", Distribution(self.distribution))
        object.__setattr__(self, "count_strategy", CountStrategy(self.count_strategy))
        object.__setattr__(self, "engine_args", tuple(self.engine_args))
        self.validate()

    def validate(self) -> None:
        if self.seed is not None and self.seed < 0:
            raise ValueError(f"seed must be non-negative or None, got {self.seed}")
        if self.limit < 0:
            raise ValueError(f"limit must be non-negative, got {self.limit}")
        if self.continuation_size < 0:
            raise ValueError(f"continuation_size must be non-negative, got {self.continuation_size}")
        if self.movetime <= 0:
            raise ValueError(f"movetime must be positive, got {self.movetime}")
        if self.engine_timeout is not None and self.engine_timeout <= 0:
            raise ValueError(f"engine_timeout must be positive or None, got {self.engine_timeout}")
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(f"output_format must be one of {OUTPUT_FORMATS}, got {self.output_format!r}")

    # ------------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PipelineConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown config keys: {unknown}")
        return cls(**data)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "PipelineConfig":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"config file {path} must contain a JSON object")
        return cls.from_dict(data)

    def with_overrides(self, **overrides: Any) -> "PipelineConfig":
        """Copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @classmethod
    def from_args(cls, args: Any) -> "PipelineConfig":
        """
        Config from parsed CLI arguments: defaults, then --config, then flags.

        Flags left at None keep the value underneath. A non-positive
        --engine-timeout disables the timeout.
        """
        config_path = getattr(args, "config", None)
        base = cls.from_json(config_path) if config_path else cls()

        overrides = {name: getattr(args, name, None) for name in _ARG_FIELDS}
        engine_args = getattr(args, "engine_arg", None)
        if engine_args:
            overrides["engine_args"] = tuple(engine_args)
        timeout = getattr(args, "engine_timeout", None)
        if timeout is not None and timeout > 0:
            overrides["engine_timeout"] = timeout
        cfg = base.with_overrides(**overrides)
        if timeout is not None and timeout <= 0:
            cfg = replace(cfg, engine_timeout=None)
        return cfg


_ARG_FIELDS = (
    "distribution",
    "count_strategy",
    "limit",
    "seed",
    "continuation_size",
    "movetime",
    "engine",
    "output_format",
)
