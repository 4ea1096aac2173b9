"""Query dispatch — selectors and the lookup script behind each of them."""

from __future__ import annotations

import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import TextIO

from mquery.deroff import Reconstructor
from mquery.errors import InvalidDocumentError, NotFoundError, QueryError, Status, UnsupportedError
from mquery.lists import extract_item_bodies, extract_item_heads
from mquery.locate import find_first_by_macro, find_first_section
from mquery.macros import Macro, MacroSet
from mquery.tree import Node, Tree

# ---------------------------------------------------------------------------
# Selectors
# ---------------------------------------------------------------------------


class GlobalQuery(Enum):
    """Whole-document queries, keyed by their command-line letter."""

    BLURB = "B"
    DESCRIPTION = "D"
    FUNCTIONS = "F"
    VARIABLES = "V"
    AUTHORS = "a"
    BUG_REPORTS = "b"
    DEPRECATED = "d"
    EXAMPLES = "e"
    MAINTAINERS = "m"


class FunctionQuery(Enum):
    """Queries about one eclass function."""

    DESCRIPTION = "D"
    DEPRECATED = "d"
    INTERNAL = "i"
    RETURNS = "r"
    USAGE = "u"


class VariableQuery(Enum):
    """Queries about one eclass variable."""

    DESCRIPTION = "D"
    DEPRECATED = "d"
    INTERNAL = "i"
    OUTPUT = "o"
    PRE_INHERIT = "p"
    REQUIRED = "r"
    USER = "u"


@dataclass(frozen=True, slots=True)
class Selector:
    """One resolved query: what to look up and, per item, where."""

    query: GlobalQuery | FunctionQuery | VariableQuery
    item: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.query, GlobalQuery) and self.item is not None:
            raise ValueError("global queries do not take an item name")
        if not isinstance(self.query, GlobalQuery) and not self.item:
            raise ValueError(f"{type(self.query).__name__} needs an item name")


# ---------------------------------------------------------------------------
# Query context
# ---------------------------------------------------------------------------


@dataclass
class QueryContext:
    """State carried through one query."""

    tree: Tree
    out: TextIO
    err: TextIO
    recon: Reconstructor

    def section(self, heading: str, *, required: bool = True) -> Node | None:
        return find_first_section(self.tree, self.tree.root, heading, required=required)

    def section_body(self, heading: str) -> Node:
        section = self.section(heading)
        assert section is not None
        return self.body(section)

    def body(self, node: Node) -> Node:
        body = self.tree.body(node)
        if body is None:
            raise NotFoundError(f"{node.macro.value} has no body", node.position)
        return body

    def list_body(self, node: Node) -> Node:
        """Body of the first .Bl list inside *node*'s body."""
        found = find_first_by_macro(self.tree, self.body(node), Macro.BL, required=True)
        assert found is not None
        return self.body(found)


# Subsections of ECLASS VARIABLES, in output order
VARIABLE_SUBSECTIONS: tuple[str, ...] = (
    "Required variables",
    "Optional variables",
    "Output variables",
    "User variables",
)

# Macros a variable list item may start with, in output order
VARIABLE_MACROS: tuple[Macro, ...] = (Macro.DV, Macro.EV, Macro.VA)

REFERENCES_INTRO = "\n\nReferences:\n"


# ---------------------------------------------------------------------------
# Global query scripts
# ---------------------------------------------------------------------------


def query_blurb(ctx: QueryContext) -> None:
    body = ctx.section_body("NAME")
    summary = find_first_by_macro(ctx.tree, body, Macro.ND, required=True)
    assert summary is not None
    ctx.recon.emit(summary)
    ctx.recon.end_line()


def query_description(ctx: QueryContext) -> None:
    ctx.recon.emit(ctx.section_body("DESCRIPTION"))
    ctx.recon.finish()

    see_also = ctx.section("SEE ALSO", required=False)
    if see_also is None:
        return
    extract_item_bodies(
        ctx.recon,
        ctx.list_body(see_also),
        Macro.LK,
        REFERENCES_INTRO,
        err=ctx.err,
    )


def query_functions(ctx: QueryContext) -> None:
    section = ctx.section("FUNCTIONS")
    assert section is not None
    extract_item_heads(ctx.recon, ctx.list_body(section), Macro.IC, required=True, err=ctx.err)


def query_variables(ctx: QueryContext) -> None:
    ctx.section("ECLASS VARIABLES")
    for heading in VARIABLE_SUBSECTIONS:
        subsection = ctx.section(heading, required=False)
        if subsection is None:
            continue
        list_body = ctx.list_body(subsection)
        for macro in VARIABLE_MACROS:
            extract_item_heads(ctx.recon, list_body, macro, err=ctx.err)


def query_bug_reports(ctx: QueryContext) -> None:
    body = ctx.section_body("REPORTING BUGS")
    link = find_first_by_macro(ctx.tree, body, Macro.LK, required=True)
    assert link is not None
    targets = ctx.tree.printable_children(link)
    if not targets:
        raise NotFoundError("link has no target", link.position)
    ctx.recon.emit(targets[0])
    ctx.recon.end_line()


def _print_section(ctx: QueryContext, heading: str) -> None:
    ctx.recon.emit(ctx.section_body(heading))
    ctx.recon.finish()


def query_authors(ctx: QueryContext) -> None:
    _print_section(ctx, "AUTHORS")


def query_deprecated(ctx: QueryContext) -> None:
    _print_section(ctx, "DEPRECATED")


def query_examples(ctx: QueryContext) -> None:
    _print_section(ctx, "EXAMPLES")


def query_maintainers(ctx: QueryContext) -> None:
    _print_section(ctx, "MAINTAINERS")


GLOBAL_SCRIPTS: Mapping[GlobalQuery, Callable[[QueryContext], None]] = MappingProxyType(
    {
        GlobalQuery.BLURB: query_blurb,
        GlobalQuery.DESCRIPTION: query_description,
        GlobalQuery.FUNCTIONS: query_functions,
        GlobalQuery.VARIABLES: query_variables,
        GlobalQuery.AUTHORS: query_authors,
        GlobalQuery.BUG_REPORTS: query_bug_reports,
        GlobalQuery.DEPRECATED: query_deprecated,
        GlobalQuery.EXAMPLES: query_examples,
        GlobalQuery.MAINTAINERS: query_maintainers,
    }
)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def check_document(tree: Tree) -> None:
    """Reject trees that are not a usable mdoc document."""
    if tree.macroset is not MacroSet.MDOC:
        raise InvalidDocumentError(f"not an mdoc document: {tree.filename}")
    if not tree.root.children:
        raise InvalidDocumentError(f"empty document: {tree.filename}")


def resolve_script(selector: Selector) -> Callable[[QueryContext], None]:
    """Return the script answering *selector*."""
    query = selector.query
    if isinstance(query, GlobalQuery):
        return GLOBAL_SCRIPTS[query]
    kind = "function" if isinstance(query, FunctionQuery) else "variable"
    raise UnsupportedError(f"{kind} query -{query.value} is not implemented")


def run_query(
    tree: Tree,
    selector: Selector,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> Status:
    """Answer one query, streaming text to *out* and problems to *err*.

    Output written before a failure stays written; a non-OK status only
    says the answer is incomplete.
    """
    out = sys.stdout if out is None else out
    err = sys.stderr if err is None else err
    ctx = QueryContext(tree, out, err, Reconstructor(tree, out))

    try:
        check_document(tree)
        script = resolve_script(selector)
        script(ctx)
    except QueryError as exc:
        err.write(exc.format(tree.filename, tree.source) + "\n")
        return exc.status
    return Status.OK
