"""Error and diagnostic types with formatted source context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from mquery.tree import Position


class Status(IntEnum):
    """Result of a query. Values double as process exit codes."""

    OK = 0
    NOT_FOUND = 1
    INVALID_DOCUMENT = 2
    UNSUPPORTED = 3
    BAD_ARGUMENT = 4
    SYSTEM_ERROR = 5


def format_context(
    level: str,
    message: str,
    position: Position | None,
    filename: str,
    source: str | None,
) -> str:
    """Render a message in the ``error: ... --> file:line:col`` layout.

    The source line and a caret are shown only when the source text is
    known and the position falls inside it.
    """
    if position is None or position.line < 1:
        return f"{level}: {message}\n  --> {filename}"

    line_num = str(position.line)
    gutter_width = len(line_num) + 1
    header = (
        f"{level}: {message}\n"
        f"{' ' * gutter_width}--> {filename}:{position.line}:{position.column}"
    )

    lines = source.splitlines() if source is not None else []
    line_idx = position.line - 1
    if not 0 <= line_idx < len(lines):
        return header

    source_line = lines[line_idx].rstrip("\r")
    pad = " " * max(0, position.column - 1)
    blank_gutter = " " * gutter_width + "|"
    line_gutter = f"{line_num:>{gutter_width - 1}} |"

    return (
        f"{header}\n"
        f"{blank_gutter}\n"
        f"{line_gutter} {source_line}\n"
        f"{blank_gutter} {pad}^"
    )


class QueryError(Exception):
    """Base class for failures that end a query with a non-OK status."""

    status = Status.SYSTEM_ERROR

    def __init__(self, message: str, position: Position | None = None) -> None:
        self.message = message
        self.position = position
        super().__init__(message)

    def format(self, filename: str = "<stdin>", source: str | None = None) -> str:
        return format_context("error", self.message, self.position, filename, source)


class NotFoundError(QueryError):
    """A required section, macro or list item is absent."""

    status = Status.NOT_FOUND


class InvalidDocumentError(QueryError):
    """The input is not a recognizable mdoc document."""

    status = Status.INVALID_DOCUMENT


class UnsupportedError(QueryError):
    """The selector is recognized but not implemented."""

    status = Status.UNSUPPORTED


class BadArgumentError(QueryError):
    """Bad invocation: unreadable input file, rejected mandoc arguments."""

    status = Status.BAD_ARGUMENT


class QuerySystemError(QueryError):
    """Failure of the environment: missing mandoc, timeouts."""

    status = Status.SYSTEM_ERROR


class OutputError(QuerySystemError):
    """Writing to the output stream failed while printing a node."""


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """Non-fatal problem found while querying, such as an empty list item."""

    message: str
    position: Position

    def format(self, filename: str = "<stdin>", source: str | None = None) -> str:
        return format_context("warning", self.message, self.position, filename, source)
