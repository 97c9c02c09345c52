"""
Line Preprocessor
=================

Turns raw template text into physical lines and data-region lines into
logical lines: comments and blank lines are dropped and backslash-continued
lines are joined.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, List
import re

REGEXP_NEW_LINE = re.compile(r"\r?\n")
REGEXP_LINE_COMMENT = re.compile(r"^[ \t]*//")
REGEXP_LINE_EMPTY = re.compile(r"^[ \t]*$")

LINE_CONTINUATION = "\\"


@dataclass(frozen=True)
class LogicalLine:
    """A declaration assembled from one or more physical lines."""

    text: str
    line: int  # physical line (1-based) the declaration starts on


def split_lines(text: str) -> List[str]:
    """Split text into physical lines, accepting both LF and CRLF."""
    return REGEXP_NEW_LINE.split(text)


def is_ignorable(line: str) -> bool:
    """Whether a physical line is a comment or blank."""
    return bool(REGEXP_LINE_COMMENT.match(line) or REGEXP_LINE_EMPTY.match(line))


def iter_logical_lines(lines: Iterable[str], first_line: int = 1) -> Iterator[LogicalLine]:
    """
    Assemble logical lines from physical lines.

    Each physical line is trimmed before it is appended, so a continued
    string literal keeps only the whitespace written inside each line.

    Args:
        lines: Physical lines of the data region, without its header
        first_line: Line number of the first element of ``lines``

    Yields:
        LogicalLine for every declaration
    """
    buffer = ""
    start = None

    for number, line in enumerate(lines, start=first_line):
        if is_ignorable(line):
            continue

        content = line.strip()
        if start is None:
            start = number

        if content.endswith(LINE_CONTINUATION):
            buffer += content[: -len(LINE_CONTINUATION)]
            continue

        yield LogicalLine(text=(buffer + content).strip(), line=start)
        buffer = ""
        start = None

    # Dangling continuation at the end of the region
    if start is not None and buffer.strip():
        yield LogicalLine(text=buffer.strip(), line=start)
