"""Section-aware query engine for mdoc manual pages."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from mquery.errors import Status
    from mquery.query import Selector

__version__ = "0.1.0"


def query_file(
    path: str | Path,
    selector: Selector,
    *,
    out: TextIO | None = None,
    err: TextIO | None = None,
    mandoc: str = "mandoc",
    timeout: float = 10.0,
) -> Status:
    """Load a manual page with mandoc and answer one query about it."""
    from mquery.errors import QueryError
    from mquery.mandoc import MandocRunner
    from mquery.query import run_query

    err = sys.stderr if err is None else err
    try:
        tree = MandocRunner(mandoc, timeout).load(Path(path))
    except QueryError as exc:
        err.write(exc.format(str(path)) + "\n")
        return exc.status
    return run_query(tree, selector, out, err)
