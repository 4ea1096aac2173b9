"""Tests for the CLI module: arg parsing, exit codes, front-ends, end-to-end."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from mquery.cli import (
    CliOptions,
    build_parser,
    function_main,
    main,
    query_options,
    scope_for_program,
    variable_main,
)
from mquery.errors import Status
from mquery.query import FunctionQuery, GlobalQuery, Selector, VariableQuery
from tests.conftest import PAGE_DUMP, PAGE_SOURCE, fake_mandoc, make_script


@pytest.fixture
def eclass(tmp_path: Path) -> tuple[Path, Path]:
    """Write the sample page and a mandoc stand-in that prints its tree."""
    page = tmp_path / "fetch.eclass.5"
    page.write_text(PAGE_SOURCE)
    return page, fake_mandoc(tmp_path, PAGE_DUMP)


# ---------------------------------------------------------------------------
# Arg parsing via build_parser
# ---------------------------------------------------------------------------


class TestArgParsing:
    @pytest.mark.parametrize("query", list(GlobalQuery))
    def test_global_flags(self, query) -> None:
        ns = build_parser().parse_args([f"-{query.value}", "page.5"])
        assert ns.query is query
        assert ns.input == "page.5"

    def test_function_front_end(self) -> None:
        ns = build_parser("function").parse_args(["-u", "-F", "fetch_unpack", "page.5"])
        assert ns.query is FunctionQuery.USAGE
        assert ns.item == "fetch_unpack"

    def test_variable_front_end(self) -> None:
        ns = build_parser("variable").parse_args(["-p", "-V", "FETCH_URI", "page.5"])
        assert ns.query is VariableQuery.PRE_INHERIT
        assert ns.item == "FETCH_URI"

    def test_common_options(self) -> None:
        ns = build_parser().parse_args(
            ["-B", "page.5", "--mandoc", "/opt/mandoc", "--timeout", "2.5", "--debug"]
        )
        assert ns.mandoc == "/opt/mandoc"
        assert ns.timeout == 2.5
        assert ns.debug is True

    def test_defaults(self) -> None:
        ns = build_parser().parse_args(["-B", "page.5"])
        assert ns.mandoc is None
        assert ns.timeout is None
        assert ns.config is None
        assert ns.debug is False

    def test_query_flag_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["page.5"])

    def test_query_flags_exclusive(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["-B", "-D", "page.5"])

    def test_item_name_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser("function").parse_args(["-u", "page.5"])

    def test_bad_timeout(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["-B", "page.5", "--timeout", "0"])


class TestProgramName:
    def test_scopes(self) -> None:
        assert scope_for_program("mquery") == "global"
        assert scope_for_program("/usr/bin/mquery-function") == "function"
        assert scope_for_program("mquery-variable") == "variable"
        assert scope_for_program("something-else") == "global"

    def test_main_picks_front_end(self, monkeypatch, eclass) -> None:
        page, mandoc = eclass
        monkeypatch.setattr(sys, "argv", ["/usr/bin/mquery-function"])
        result = main(["-D", "-F", "fetch_unpack", str(page), "--mandoc", str(mandoc)])
        assert result == Status.UNSUPPORTED


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------


class TestExitCodes:
    def test_success(self, eclass, capsys) -> None:
        page, mandoc = eclass
        assert main(["-B", str(page), "--mandoc", str(mandoc)], scope="global") == 0
        assert capsys.readouterr().out == "fetches remote archives, cache shared across runs\n"

    def test_not_found_returns_1(self, eclass, capsys) -> None:
        page, mandoc = eclass
        assert main(["-m", str(page), "--mandoc", str(mandoc)], scope="global") == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "section not found: MAINTAINERS" in captured.err

    def test_invalid_document_returns_2(self, tmp_path: Path) -> None:
        page = tmp_path / "foo.1"
        page.write_text(".TH FOO 1\n")
        mandoc = fake_mandoc(tmp_path, "SH (block) *1:2\n")
        assert main(["-B", str(page), "--mandoc", str(mandoc)], scope="global") == 2

    def test_unsupported_returns_3(self, eclass) -> None:
        page, mandoc = eclass
        argv = ["-r", "-V", "FETCH_URI", str(page), "--mandoc", str(mandoc)]
        assert variable_main(argv) == 3

    def test_usage_error_returns_4(self, capsys) -> None:
        assert main(["page.5"], scope="global") == 4
        assert "usage:" in capsys.readouterr().err

    def test_help_returns_0(self, capsys) -> None:
        assert main(["--help"], scope="global") == 0
        assert "-B" in capsys.readouterr().out

    def test_missing_input_returns_4(self, tmp_path: Path, capsys) -> None:
        assert main(["-B", str(tmp_path / "absent.5")], scope="global") == 4
        assert "no such file" in capsys.readouterr().err

    def test_missing_mandoc_returns_5(self, tmp_path: Path, capsys) -> None:
        page = tmp_path / "page.5"
        page.write_text(".Sh NAME\n")
        argv = ["-B", str(page), "--mandoc", str(tmp_path / "no-mandoc")]
        assert main(argv, scope="global") == 5
        assert "mandoc not found" in capsys.readouterr().err

    def test_mandoc_timeout_returns_5(self, tmp_path: Path) -> None:
        page = tmp_path / "page.5"
        page.write_text(".Sh NAME\n")
        mandoc = make_script(tmp_path / "slow-mandoc", "exec sleep 5")
        argv = ["-B", str(page), "--mandoc", str(mandoc), "--timeout", "0.2"]
        assert main(argv, scope="global") == 5

    def test_function_main(self, eclass) -> None:
        page, mandoc = eclass
        assert function_main(["-i", "-F", "fetch_unpack", str(page), "--mandoc", str(mandoc)]) == 3


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


class TestEndToEnd:
    def test_description(self, eclass, capsys) -> None:
        page, mandoc = eclass
        assert main(["-D", str(page), "--mandoc", str(mandoc)], scope="global") == 0
        assert capsys.readouterr().out == (
            "Does X. \n\nReferences:\nhttps://example.org/tool (related tool)\n"
        )

    def test_variables(self, eclass, capsys) -> None:
        page, mandoc = eclass
        assert main(["-V", str(page), "--mandoc", str(mandoc)], scope="global") == 0
        assert capsys.readouterr().out == "FETCH_URI\nFETCH_DIR\nFETCH_HOME\n"

    def test_debug_dumps_tree(self, eclass, capsys) -> None:
        page, mandoc = eclass
        assert main(["-b", str(page), "--mandoc", str(mandoc), "--debug"], scope="global") == 0
        captured = capsys.readouterr()
        assert captured.out == "https://bugs.example.org/\n"
        assert captured.err.startswith(f"Tree {page} (mdoc)\n")
        assert "Block Sh @4:2 [LINE]" in captured.err


class TestQueryOptions:
    def test_basic(self, eclass) -> None:
        import io

        page, mandoc = eclass
        opts = CliOptions(
            input_file=page,
            selector=Selector(GlobalQuery.FUNCTIONS),
            mandoc=str(mandoc),
            timeout=5.0,
            debug=False,
        )
        out, err = io.StringIO(), io.StringIO()
        assert query_options(opts, out, err) is Status.OK
        assert out.getvalue() == "fetch_unpack\nfetch_verify\n"
        assert err.getvalue() == ""
