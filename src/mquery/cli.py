"""Command-line interface for mquery."""

from __future__ import annotations

import argparse
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, TextIO

from mquery.errors import QueryError, Status
from mquery.query import FunctionQuery, GlobalQuery, Selector, VariableQuery

Scope = Literal["global", "function", "variable"]

DEFAULT_MANDOC = "mandoc"
DEFAULT_TIMEOUT = 10.0

# Program names that select a front-end when run through the main entry point
_PROGRAM_SCOPES: dict[str, Scope] = {
    "mquery-function": "function",
    "mquery-variable": "variable",
}

_GLOBAL_HELP: dict[GlobalQuery, str] = {
    GlobalQuery.BLURB: "Print the one-line summary from NAME",
    GlobalQuery.DESCRIPTION: "Print DESCRIPTION and the SEE ALSO references",
    GlobalQuery.FUNCTIONS: "List the documented functions",
    GlobalQuery.VARIABLES: "List the documented variables",
    GlobalQuery.AUTHORS: "Print AUTHORS",
    GlobalQuery.BUG_REPORTS: "Print the bug report link",
    GlobalQuery.DEPRECATED: "Print the deprecation notice",
    GlobalQuery.EXAMPLES: "Print EXAMPLES",
    GlobalQuery.MAINTAINERS: "Print MAINTAINERS",
}

_FUNCTION_HELP: dict[FunctionQuery, str] = {
    FunctionQuery.DESCRIPTION: "Print the function description",
    FunctionQuery.DEPRECATED: "Print the deprecation notice",
    FunctionQuery.INTERNAL: "Report whether the function is internal",
    FunctionQuery.RETURNS: "Print the return value description",
    FunctionQuery.USAGE: "Print the usage synopsis",
}

_VARIABLE_HELP: dict[VariableQuery, str] = {
    VariableQuery.DESCRIPTION: "Print the variable description",
    VariableQuery.DEPRECATED: "Print the deprecation notice",
    VariableQuery.INTERNAL: "Report whether the variable is internal",
    VariableQuery.OUTPUT: "Report whether the variable is set by the eclass",
    VariableQuery.PRE_INHERIT: "Report whether the variable must be set before inherit",
    VariableQuery.REQUIRED: "Report whether the variable is required",
    VariableQuery.USER: "Report whether the variable is meant for users",
}


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed CLI options."""

    input_file: Path
    selector: Selector
    mandoc: str
    timeout: float
    debug: bool


def _positive_float(s: str) -> float:
    try:
        value = float(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {s}") from None
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {s}")
    return value


def build_parser(scope: Scope = "global") -> argparse.ArgumentParser:
    """Build the argument parser for one front-end (separate function for testability)."""
    if scope == "function":
        p = argparse.ArgumentParser(
            prog="mquery-function",
            description="Query one function of an eclass manual page",
        )
        p.add_argument("-F", dest="item", required=True, metavar="FUNCTION", help="Function name")
        helps: dict[Any, str] = dict(_FUNCTION_HELP)
    elif scope == "variable":
        p = argparse.ArgumentParser(
            prog="mquery-variable",
            description="Query one variable of an eclass manual page",
        )
        p.add_argument("-V", dest="item", required=True, metavar="VARIABLE", help="Variable name")
        helps = dict(_VARIABLE_HELP)
    else:
        p = argparse.ArgumentParser(
            prog="mquery",
            description="Query a section of an mdoc manual page",
        )
        helps = dict(_GLOBAL_HELP)

    group = p.add_mutually_exclusive_group(required=True)
    for query, text in helps.items():
        group.add_argument(
            f"-{query.value}",
            dest="query",
            action="store_const",
            const=query,
            help=text,
        )

    p.add_argument("input", help="Manual page to query")
    p.add_argument(
        "--config",
        metavar="FILE",
        help="Config file (default: auto-discover mquery.toml)",
    )
    p.add_argument(
        "--mandoc",
        default=None,
        metavar="CMD",
        help=f"mandoc executable (default: {DEFAULT_MANDOC})",
    )
    p.add_argument(
        "--timeout",
        type=_positive_float,
        default=None,
        metavar="SECS",
        help=f"mandoc timeout in seconds (default: {DEFAULT_TIMEOUT})",
    )
    p.add_argument("--debug", action="store_true", help="Dump the document tree to stderr")
    return p


def load_config(config_path: Path | None, input_dir: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict on missing/absent file."""
    path = config_path if config_path is not None else input_dir / "mquery.toml"

    if not path.is_file():
        return {}

    with open(path, "rb") as f:
        return tomllib.load(f)


def resolve_options(args: argparse.Namespace) -> CliOptions:
    """Merge config file and CLI args into CliOptions.

    Precedence: defaults < config file < CLI flags.
    """
    input_file = Path(args.input)
    input_dir = input_file.parent
    if not input_dir.parts:
        input_dir = Path(".")

    config_path = Path(args.config) if args.config else None
    config = load_config(config_path, input_dir)

    mandoc = DEFAULT_MANDOC
    timeout = DEFAULT_TIMEOUT
    cfg_mandoc = config.get("mandoc")
    if isinstance(cfg_mandoc, dict):
        cfg_command = cfg_mandoc.get("command")
        if isinstance(cfg_command, str) and cfg_command:
            mandoc = cfg_command
        cfg_timeout = cfg_mandoc.get("timeout")
        if isinstance(cfg_timeout, (int, float)) and not isinstance(cfg_timeout, bool):
            if cfg_timeout > 0:
                timeout = float(cfg_timeout)
    if args.mandoc:
        mandoc = args.mandoc
    if args.timeout is not None:
        timeout = args.timeout

    return CliOptions(
        input_file=input_file,
        selector=Selector(args.query, getattr(args, "item", None)),
        mandoc=mandoc,
        timeout=timeout,
        debug=args.debug,
    )


def query_options(
    options: CliOptions,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> Status:
    """Load the input page and answer the selected query."""
    from mquery.debug import dump_tree
    from mquery.mandoc import MandocRunner
    from mquery.query import run_query

    out = sys.stdout if out is None else out
    err = sys.stderr if err is None else err

    runner = MandocRunner(options.mandoc, options.timeout)
    try:
        tree = runner.load(options.input_file)
    except QueryError as exc:
        err.write(exc.format(str(options.input_file)) + "\n")
        return exc.status

    if options.debug:
        dump_tree(tree, file=err)

    return run_query(tree, options.selector, out, err)


def scope_for_program(name: str) -> Scope:
    """Pick the front-end from the name the program was invoked under."""
    return _PROGRAM_SCOPES.get(Path(name).name, "global")


def main(argv: list[str] | None = None, *, scope: Scope | None = None) -> int:
    """CLI entry point. Returns the query status as exit code. Does not call sys.exit()."""
    if scope is None:
        scope = scope_for_program(sys.argv[0] if sys.argv else "mquery")
    parser = build_parser(scope)

    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        # argparse has already printed usage or help
        return Status.OK if exc.code == 0 else Status.BAD_ARGUMENT

    try:
        options = resolve_options(args)
    except tomllib.TOMLDecodeError as exc:
        print(f"error: invalid config file: {exc}", file=sys.stderr)
        return Status.BAD_ARGUMENT
    except OSError as exc:
        print(f"error: cannot read config file: {exc}", file=sys.stderr)
        return Status.BAD_ARGUMENT
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return Status.BAD_ARGUMENT

    return query_options(options)


def function_main(argv: list[str] | None = None) -> int:
    """Entry point of mquery-function."""
    return main(argv, scope="function")


def variable_main(argv: list[str] | None = None) -> int:
    """Entry point of mquery-variable."""
    return main(argv, scope="variable")
