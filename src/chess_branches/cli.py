#!/usr/bin/env python3
# chess_branches/cli.py
"""
Branch generation CLI

Subcommands:
  info      [--engine PATH|python-chess] [--json]
  sample    raw records            -> MovesSampled records
  alts      MovesSampled records   -> AltMoves records       (engine)
  conts     AltMoves records       -> Continuations records  (engine)
  generate  raw records            -> CSV rows or TrainGame records (engine)
  flatten   TrainGame records      -> CSV rows

Records are read from --input (default stdin) and written to --out (default
stdout). The summary line goes to stderr.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from contextlib import contextmanager
from dataclasses import asdict
from typing import Iterator, Optional, TextIO

from . import __version__
from .config import OUTPUT_FORMATS, PipelineConfig
from .engine import BOARD_FEATURE_NAMES, FEATURE_NAMES, PYTHON_CHESS_ENGINE, open_session
from .errors import EngineError
from .pipeline import PipelineStats, flatten, generate, run_stage
from .sampling import CountStrategy, Distribution


@contextmanager
def _open_in(path: Optional[str]) -> Iterator[TextIO]:
    if not path or path == "-":
        yield sys.stdin
        return
    try:
        f = open(path, "r", encoding="utf-8")
    except OSError as e:
        raise SystemExit(f"cannot read {path}: {e}") from None
    with f:
        yield f


@contextmanager
def _open_out(path: Optional[str]) -> Iterator[TextIO]:
    if not path or path == "-":
        yield sys.stdout
        sys.stdout.flush()
        return
    with open(path, "w", encoding="utf-8", newline="") as f:
        yield f


def _load_config(args) -> PipelineConfig:
    try:
        return PipelineConfig.from_args(args)
    except (ValueError, FileNotFoundError) as e:
        raise SystemExit(f"[config] {e}") from None


def _report(stats: PipelineStats) -> None:
    print(stats.summary(), file=sys.stderr)


def _engine_session(cfg: PipelineConfig):
    try:
        return open_session(cfg.engine, cfg.engine_args, cfg.engine_timeout)
    except EngineError as e:
        raise SystemExit(f"[engine] {e}") from None


def cmd_info(args):
    cfg = _load_config(args)
    names = BOARD_FEATURE_NAMES if cfg.engine == PYTHON_CHESS_ENGINE else FEATURE_NAMES
    if args.json:
        payload = {k: (v.value if hasattr(v, "value") else v) for k, v in asdict(cfg).items()}
        payload["engine_args"] = list(cfg.engine_args)
        print(json.dumps({"config": payload, "feature_count": len(names), "features": list(names)}))
        return
    print("=== chess-branches info ===")
    print(f"Engine            : {cfg.engine}")
    print(f"Feature count     : {len(names)}")
    print(f"CSV columns       : {4 * len(names) + 1} (4 x features + Winner)")
    print(f"Distribution      : {cfg.distribution.value}")
    print(f"Count strategy    : {cfg.count_strategy.value} (limit {cfg.limit:g})")
    print(f"Seed              : {cfg.seed}")
    print(f"Continuation size : {cfg.continuation_size} (movetime {cfg.movetime} ms)")
    print("\nFeatures:")
    for i, name in enumerate(names):
        print(f"  {i:>3}  {name}")


def cmd_sample(args):
    cfg = _load_config(args)
    with _open_in(args.input) as fin, _open_out(args.out) as fout:
        stats = run_stage("sample", fin, fout, cfg)
    _report(stats)


def _cmd_engine_stage(stage: str, args):
    cfg = _load_config(args)
    with _engine_session(cfg) as session, _open_in(args.input) as fin, _open_out(args.out) as fout:
        stats = run_stage(stage, fin, fout, cfg, session)
    _report(stats)


def cmd_alts(args):
    _cmd_engine_stage("alts", args)


def cmd_conts(args):
    _cmd_engine_stage("conts", args)


def cmd_generate(args):
    cfg = _load_config(args)
    with _engine_session(cfg) as session, _open_in(args.input) as fin, _open_out(args.out) as fout:
        stats = generate(fin, fout, session, cfg)
    _report(stats)


def cmd_flatten(args):
    with _open_in(args.input) as fin, _open_out(args.out) as fout:
        stats = flatten(fin, fout)
    _report(stats)


# ---- parser ----


def _add_io(sp: argparse.ArgumentParser) -> None:
    sp.add_argument("--input", "-i", default=None, help="Input records (default: stdin)")
    sp.add_argument("--out", "-o", default=None, help="Output file (default: stdout)")


def _add_config(sp: argparse.ArgumentParser) -> None:
    sp.add_argument("--config", default=None, help="JSON file with PipelineConfig fields")


def _add_sampling(sp: argparse.ArgumentParser) -> None:
    sp.add_argument("--distribution", choices=[d.value for d in Distribution], default=None)
    sp.add_argument("--count-strategy", choices=[c.value for c in CountStrategy], default=None)
    sp.add_argument("--limit", type=float, default=None, help="N for 'exact', percent for 'percentage'")
    sp.add_argument("--seed", type=int, default=None, help="Base seed (per game: [seed, game id])")


def _add_engine(sp: argparse.ArgumentParser, continuations: bool = True) -> None:
    sp.add_argument("--engine", default=None, help=f"Engine executable, or '{PYTHON_CHESS_ENGINE}'")
    sp.add_argument("--engine-arg", action="append", default=None, help="Extra engine argument (repeatable)")
    sp.add_argument(
        "--engine-timeout", type=float, default=None, help="Seconds per engine response line (<= 0: no timeout)"
    )
    if continuations:
        sp.add_argument("--movetime", type=int, default=None, help="Engine time per move (ms)")
        sp.add_argument("--continuation-size", type=int, default=None, help="Engine plies after each first move")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="chess-branches", description="Chess move-branch training data")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    verbosity = ap.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Debug logging (engine traffic)")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Warnings only")
    sub = ap.add_subparsers(dest="cmd", required=True)

    sp_info = sub.add_parser("info", help="Show features and effective settings")
    _add_config(sp_info)
    sp_info.add_argument("--engine", default=None)
    sp_info.add_argument("--json", action="store_true")

    sp_sample = sub.add_parser("sample", help="Sample move pairs of raw records")
    _add_io(sp_sample)
    _add_config(sp_sample)
    _add_sampling(sp_sample)

    sp_alts = sub.add_parser("alts", help="Add the winner's legal alternatives to sampled records")
    _add_io(sp_alts)
    _add_config(sp_alts)
    _add_engine(sp_alts, continuations=False)

    sp_conts = sub.add_parser("conts", help="Add engine continuations to alternative-move records")
    _add_io(sp_conts)
    _add_config(sp_conts)
    _add_engine(sp_conts)

    sp_gen = sub.add_parser("generate", help="Raw records to training branches")
    _add_io(sp_gen)
    _add_config(sp_gen)
    _add_sampling(sp_gen)
    _add_engine(sp_gen)
    sp_gen.add_argument("--format", dest="output_format", choices=OUTPUT_FORMATS, default=None)

    sp_flat = sub.add_parser("flatten", help="TrainGame records to CSV rows")
    _add_io(sp_flat)

    return ap


def main(argv: Optional[list] = None):
    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING if args.quiet else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)

    if args.cmd == "info":
        cmd_info(args)
    elif args.cmd == "sample":
        cmd_sample(args)
    elif args.cmd == "alts":
        cmd_alts(args)
    elif args.cmd == "conts":
        cmd_conts(args)
    elif args.cmd == "generate":
        cmd_generate(args)
    elif args.cmd == "flatten":
        cmd_flatten(args)


if __name__ == "__main__":
    main()
