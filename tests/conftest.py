"""Shared test fixtures and helpers."""

from __future__ import annotations

import io
import stat
import textwrap
from pathlib import Path

import pytest

from mquery.errors import Status
from mquery.mandoc import parse_tree_dump
from mquery.query import Selector, run_query
from mquery.tree import Tree

# A small eclass manual page and the tree mandoc prints for it
PAGE_SOURCE = """\
.Dd April 1, 2024
.Dt FETCH.ECLASS 5
.Os Gentoo Linux
.Sh NAME
.Nm fetch.eclass
.Nd fetches remote archives, cache shared across runs
.Sh DESCRIPTION
Does X.
.Sh FUNCTIONS
.Bl -tag -width Ds
.It Ic fetch_unpack Ar archive
Unpacks an archive.
.It Ic fetch_verify
Verifies checksums.
.El
.Sh ECLASS VARIABLES
.Ss Required variables
.Bl -tag -width Ds
.It Va FETCH_URI
Where to fetch from.
.El
.Ss Output variables
.Bl -tag -width Ds
.It Dv FETCH_DIR
Unpack directory.
.It Ev FETCH_HOME
Cache location.
.El
.Sh EXAMPLES
.Bd -literal
inherit fetch
  fetch_unpack foo.tar.gz
.Ed
.Sh AUTHORS
.An Jane Doe Aq Mt jane@example.org
.Sh REPORTING BUGS
Please report bugs via
.Lk https://bugs.example.org/
.Sh SEE ALSO
.Bl -item
.It
.Lk https://example.org/tool "related tool"
.El
"""

PAGE_DUMP = """\
title = "FETCH.ECLASS"
sec = "5"
vol = "File Formats Manual"
os = "Gentoo Linux"
date = "April 1, 2024"

Sh (block) *4:2
  Sh (head) 4:2
      NAME (text) 4:5
  Sh (body) 4:2
      Nm (elem) *5:2
          fetch.eclass (text) 5:5
      Nd (block) *6:2
        Nd (body) 6:2
            fetches remote archives, cache shared across runs (text) 6:5
Sh (block) *7:2
  Sh (head) 7:2
      DESCRIPTION (text) 7:5
  Sh (body) 7:2
      Does X. (text) *8:1.
Sh (block) *9:2
  Sh (head) 9:2
      FUNCTIONS (text) 9:5
  Sh (body) 9:2
      Bl (block) -tag -width [ [Ds] ] *10:2
        Bl (head) 10:2
        Bl (body) 10:2
            It (block) *11:2
              It (head) 11:2
                  Ic (elem) 11:5
                      fetch_unpack (text) 11:8
                  Ar (elem) 11:21
                      archive (text) 11:24
              It (body) 11:2
                  Unpacks an archive. (text) *12:1.
            It (block) *13:2
              It (head) 13:2
                  Ic (elem) 13:5
                      fetch_verify (text) 13:8
              It (body) 13:2
                  Verifies checksums. (text) *14:1.
Sh (block) *16:2
  Sh (head) 16:2
      ECLASS (text) 16:5
      VARIABLES (text) 16:12
  Sh (body) 16:2
      Ss (block) *17:2
        Ss (head) 17:2
            Required (text) 17:5
            variables (text) 17:14
        Ss (body) 17:2
            Bl (block) -tag -width [ [Ds] ] *18:2
              Bl (head) 18:2
              Bl (body) 18:2
                  It (block) *19:2
                    It (head) 19:2
                        Va (elem) 19:5
                            FETCH_URI (text) 19:8
                    It (body) 19:2
                        Where to fetch from. (text) *20:1.
      Ss (block) *22:2
        Ss (head) 22:2
            Output (text) 22:5
            variables (text) 22:12
        Ss (body) 22:2
            Bl (block) -tag -width [ [Ds] ] *23:2
              Bl (head) 23:2
              Bl (body) 23:2
                  It (block) *24:2
                    It (head) 24:2
                        Dv (elem) 24:5
                            FETCH_DIR (text) 24:8
                    It (body) 24:2
                        Unpack directory. (text) *25:1.
                  It (block) *26:2
                    It (head) 26:2
                        Ev (elem) 26:5
                            FETCH_HOME (text) 26:8
                    It (body) 26:2
                        Cache location. (text) *27:1.
Sh (block) *29:2
  Sh (head) 29:2
      EXAMPLES (text) 29:5
  Sh (body) 29:2
      Bd (block) -literal *30:2
        Bd (head) 30:2
        Bd (body) 30:2
            inherit fetch (text) *31:1 NOFILL
              fetch_unpack foo.tar.gz (text) *32:1 NOFILL
Sh (block) *34:2
  Sh (head) 34:2
      AUTHORS (text) 34:5
  Sh (body) 34:2
      An (elem) *35:2
          Jane (text) 35:5
          Doe (text) 35:10
      Aq (block) 35:15
        Aq (body) 35:15
            Mt (elem) 35:18
                jane@example.org (text) 35:21
Sh (block) *36:2
  Sh (head) 36:2
      REPORTING (text) 36:5
      BUGS (text) 36:15
  Sh (body) 36:2
      Please report bugs via (text) *37:1
      Lk (elem) *38:2
          https://bugs.example.org/ (text) 38:5
Sh (block) *39:2
  Sh (head) 39:2
      SEE (text) 39:5
      ALSO (text) 39:9
  Sh (body) 39:2
      Bl (block) -item *40:2
        Bl (head) 40:2
        Bl (body) 40:2
            It (block) *41:2
              It (head) 41:2
              It (body) 41:2
                  Lk (elem) *42:2
                      https://example.org/tool (text) 42:5
                      related tool (text) 42:30
"""


@pytest.fixture
def load_dump():
    """Return a helper that builds a Tree from (dedented) tree dump text."""

    def _load(dump: str, filename: str = "test.5", source: str | None = None) -> Tree:
        return parse_tree_dump(textwrap.dedent(dump), filename, source)

    return _load


@pytest.fixture
def page() -> Tree:
    """The sample eclass page, with its source for diagnostics."""
    return parse_tree_dump(PAGE_DUMP, "fetch.eclass.5", PAGE_SOURCE)


@pytest.fixture
def run():
    """Return a helper that runs one query and captures (status, out, err)."""

    def _run(tree: Tree, selector: Selector) -> tuple[Status, str, str]:
        out = io.StringIO()
        err = io.StringIO()
        status = run_query(tree, selector, out, err)
        return status, out.getvalue(), err.getvalue()

    return _run


def make_script(path: Path, body: str) -> Path:
    """Write a small executable shell script standing in for mandoc."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"#!/bin/sh\n{body}\n")
    path.chmod(path.stat().st_mode | stat.S_IEXEC)
    return path


def fake_mandoc(tmp_path: Path, dump: str, name: str = "mandoc") -> Path:
    """Write a mandoc stand-in that drains stdin and prints *dump*."""
    dump_file = tmp_path / f"{name}.dump"
    dump_file.write_text(dump)
    return make_script(tmp_path / name, f"cat >/dev/null\ncat '{dump_file}'")
