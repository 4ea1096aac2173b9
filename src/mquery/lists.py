"""List extraction — print the items of a .Bl list that start with a macro.

The scan is shallow: only the direct .It children of the list body are
looked at, nested lists are never entered.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Literal, TextIO

from mquery.deroff import Reconstructor
from mquery.errors import Diagnostic, NotFoundError
from mquery.macros import Macro
from mquery.tree import Node, NodeKind, Tree

Region = Literal["head", "body"]

_REGION_NAMES: dict[str, str] = {"head": "header", "body": "body"}


def list_items(tree: Tree, list_body: Node) -> Iterator[Node]:
    """Yield the .It blocks of a list body; anything else is ignored."""
    for child in tree.children(list_body):
        if child.macro is Macro.IT and child.kind is NodeKind.BLOCK:
            yield child


def first_in_region(tree: Tree, item: Node, region: Region) -> Node | None:
    """Return the first printable node of an item's head or body."""
    container = tree.head(item) if region == "head" else tree.body(item)
    if container is None:
        return None
    printable = tree.printable_children(container)
    return printable[0] if printable else None


def empty_items(tree: Tree, list_body: Node, region: Region) -> Iterator[Diagnostic]:
    """Diagnose the items whose head or body has nothing to print."""
    for item in list_items(tree, list_body):
        if first_in_region(tree, item, region) is None:
            yield Diagnostic(f"empty item {_REGION_NAMES[region]}", item.position)


def extract_item_heads(
    recon: Reconstructor,
    list_body: Node,
    macro: Macro,
    *,
    required: bool = False,
    err: TextIO | None = None,
) -> bool:
    """Print, one per line, the item heads that start with *macro*."""
    tree = recon.tree
    found = False
    for element in _scan(tree, list_body, "head", err):
        if element.macro is not macro:
            continue
        found = True
        recon.emit(element)
        recon.end_line()

    if not found and required:
        raise NotFoundError("no matching items found", list_body.position)
    return found


def extract_item_bodies(
    recon: Reconstructor,
    list_body: Node,
    macro: Macro,
    intro: str = "",
    *,
    required: bool = False,
    err: TextIO | None = None,
) -> bool:
    """Print, one per line, the item bodies that start with *macro*.

    *intro* is written once, just before the first match, and not at all
    when nothing matches. Links without a description are not listed.
    """
    tree = recon.tree
    found = False
    for element in _scan(tree, list_body, "body", err):
        if element.macro is not macro:
            continue
        if element.macro is Macro.LK and len(tree.printable_children(element)) < 2:
            continue
        if not found:
            found = True
            recon.write(intro, element)
        recon.emit(element)
        recon.end_line()

    if not found and required:
        raise NotFoundError("no matching items found", list_body.position)
    return found


def _scan(tree: Tree, list_body: Node, region: Region, err: TextIO | None) -> Iterator[Node]:
    """Yield the first node of each item's region, warning about empty ones."""
    for item in list_items(tree, list_body):
        element = first_in_region(tree, item, region)
        if element is None:
            if err is not None:
                diagnostic = Diagnostic(f"empty item {_REGION_NAMES[region]}", item.position)
                err.write(diagnostic.format(tree.filename, tree.source) + "\n")
            continue
        yield element
