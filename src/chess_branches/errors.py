# chess_branches/errors.py
"""
Exception types.

Two severities:
  - RecordError / EngineError: fatal for the record being processed. The
    pipeline skips that record and moves on to the next one.
  - Clamped conditions (e.g. too many samples requested) never raise; they
    log a warning and continue.
"""
from __future__ import annotations


class ChessBranchesError(Exception):
    """Base class for every error raised by chess_branches."""


class RecordError(ChessBranchesError, ValueError):
    """Malformed or inconsistent record lines."""


class ConsistencyError(RecordError):
    """The record disagrees with the engine (e.g. played move is not legal)."""


class EngineError(ChessBranchesError, RuntimeError):
    """Engine failed to start, exited, or answered with a malformed response."""


class EngineTimeout(EngineError):
    """Engine did not produce a response line in time."""
