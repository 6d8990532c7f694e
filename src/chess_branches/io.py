# chess_branches/io.py
"""
Record streams.

Records are blocks of lines separated by GAME_END. The terminator line must
match exactly; blank lines inside a block are dropped.
"""
from __future__ import annotations

import csv
from typing import Iterable, Iterator, List, Optional, Sequence, TextIO

GAME_END = "-" * 40


def read_game_lines(stream: TextIO) -> Optional[List[str]]:
    """
    Lines of the next record, up to (not including) GAME_END.

    Returns None at end of input. A record may end at EOF without a terminator.
    """
    lines: List[str] = []
    saw_any = False
    for raw in stream:
        saw_any = True
        line = raw.rstrip("\r\n")
        if line == GAME_END:
            return lines
        if line.strip():
            lines.append(line)
    return lines if saw_any else None


def iter_game_blocks(stream: TextIO) -> Iterator[List[str]]:
    """Yield every non-empty record block until end of input."""
    while True:
        lines = read_game_lines(stream)
        if lines is None:
            return
        if lines:
            yield lines


def write_game_lines(lines: Iterable[str], stream: TextIO) -> None:
    for line in lines:
        stream.write(line + "\n")
    stream.write(GAME_END + "\n")


def write_csv_header(header: Sequence[str], stream: TextIO) -> None:
    csv.writer(stream, lineterminator="\n").writerow(header)


def write_csv_rows(rows: Iterable[Sequence[object]], stream: TextIO) -> int:
    writer = csv.writer(stream, lineterminator="\n")
    n = 0
    for row in rows:
        writer.writerow(row)
        n += 1
    return n
