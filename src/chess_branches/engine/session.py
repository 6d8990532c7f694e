# chess_branches/engine/session.py
"""
Engine sessions.

A session is an explicit handle on one stateful engine. Every call to
`run_commands` starts a new game from the standard start position, runs the
given commands in order and blocks until their output has been collected.
Calls are strictly sequential; concurrent callers need one session each.
"""
from __future__ import annotations

import logging
import queue
import subprocess
import threading
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from chess_branches.errors import EngineError, EngineTimeout

from .features import FEATURE_NAMES

logger = logging.getLogger(__name__)

PYTHON_CHESS_ENGINE = "python-chess"


class EngineSession:
    """Base class: line commands in, line responses out."""

    feature_names: Tuple[str, ...] = FEATURE_NAMES

    def run_commands(self, commands: Sequence[str]) -> List[str]:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class UciProcessSession(EngineSession):
    """
    Engine executable driven over stdin/stdout.

    Protocol per batch:
      ucinewgame, <commands...>, isready
    `go` commands are followed by reading up to the `bestmove` line; the batch
    ends at `readyok`. A reader thread feeds a queue so every wait can time out.
    """

    def __init__(
        self,
        path: Union[str, Path],
        args: Sequence[str] = (),
        timeout: Optional[float] = 30.0,
        feature_names: Sequence[str] = FEATURE_NAMES,
    ):
        self.path = str(path)
        self.args = list(args)
        self.timeout = timeout
        self.feature_names = tuple(feature_names)

        self.process: Optional[subprocess.Popen] = None
        self._lines: "queue.Queue[Optional[str]]" = queue.Queue()
        self._reader: Optional[threading.Thread] = None

        self.start()

    # ------------------------------ lifecycle -------------------------------

    def start(self) -> None:
        if self.process is not None:
            return
        try:
            self.process = subprocess.Popen(
                [self.path, *self.args],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                bufsize=1,
            )
        except OSError as e:
            raise EngineError(f"failed to start engine {self.path!r}: {e}") from e

        self._reader = threading.Thread(target=self._pump, name="engine-reader", daemon=True)
        self._reader.start()

        self._send("uci")
        self._read_until("uciok")
        logger.info(f"Engine started: {self.path} (pid {self.process.pid})")

    def close(self) -> None:
        proc = self.process
        if proc is None:
            return
        self.process = None
        try:
            if proc.poll() is None and proc.stdin is not None:
                proc.stdin.write("quit\n")
                proc.stdin.flush()
            proc.wait(timeout=2)
        except (OSError, subprocess.TimeoutExpired):
            proc.kill()
            proc.wait()
        logger.debug(f"Engine stopped: {self.path}")

    # ------------------------------- I/O ------------------------------------

    def _pump(self) -> None:
        proc = self.process
        assert proc is not None and proc.stdout is not None
        for line in proc.stdout:
            self._lines.put(line.rstrip("\r\n"))
        self._lines.put(None)

    def _send(self, cmd: str) -> None:
        proc = self.process
        if proc is None or proc.poll() is not None:
            raise EngineError(f"engine {self.path!r} is not running")
        logger.debug(f"> {cmd}")
        try:
            assert proc.stdin is not None
            proc.stdin.write(cmd + "\n")
            proc.stdin.flush()
        except OSError as e:
            raise EngineError(f"failed to write to engine: {e}") from e

    def _readline(self) -> str:
        try:
            line = self._lines.get(timeout=self.timeout)
        except queue.Empty:
            # late output would be read as the answer to the next batch
            self.close()
            raise EngineTimeout(f"no response from engine within {self.timeout}s") from None
        if line is None:
            self._lines.put(None)
            raise EngineError(f"engine {self.path!r} closed its output")
        logger.debug(f"< {line}")
        return line

    def _read_until(self, prefix: str, include_last: bool = False) -> List[str]:
        out: List[str] = []
        while True:
            line = self._readline()
            if line.startswith(prefix):
                if include_last:
                    out.append(line)
                return out
            out.append(line)

    # ------------------------------- API ------------------------------------

    def run_commands(self, commands: Sequence[str]) -> List[str]:
        out: List[str] = []
        self._send("ucinewgame")
        for cmd in commands:
            self._send(cmd)
            if cmd.split()[:1] == ["go"]:
                out.extend(self._read_until("bestmove", include_last=True))
        self._send("isready")
        out.extend(self._read_until("readyok"))
        return out


def open_session(
    engine: str = PYTHON_CHESS_ENGINE,
    engine_args: Sequence[str] = (),
    timeout: Optional[float] = 30.0,
) -> EngineSession:
    """`python-chess` selects the in-process session; anything else is an executable path."""
    if engine == PYTHON_CHESS_ENGINE:
        from .board_session import PythonChessSession

        return PythonChessSession()
    return UciProcessSession(engine, args=engine_args, timeout=timeout)
