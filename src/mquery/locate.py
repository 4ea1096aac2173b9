"""Tree search — first node by macro, first section by heading text."""

from __future__ import annotations

from collections.abc import Callable, Iterator

from mquery.deroff import flatten
from mquery.errors import NotFoundError
from mquery.macros import Macro
from mquery.tree import Node, Position, Tree


def walk(tree: Tree, node: Node | None) -> Iterator[Node]:
    """Yield *node*, its descendants, then its following siblings and theirs.

    Children are searched by recursion and siblings by this call's loop,
    so nodes come out in document order.
    """
    while node is not None:
        yield node
        yield from walk(tree, tree.first_child(node))
        node = tree.next(node)


def find_first(tree: Tree, node: Node | None, match: Callable[[Node], bool]) -> Node | None:
    """Return the first node in document order for which *match* holds."""
    for candidate in walk(tree, node):
        if match(candidate):
            return candidate
    return None


def find_first_by_macro(
    tree: Tree,
    node: Node | None,
    macro: Macro,
    *,
    required: bool = False,
) -> Node | None:
    """Find the first node carrying *macro*.

    Raises NotFoundError instead of returning None when *required* is set.
    """
    found = find_first(tree, node, lambda n: n.macro is macro)
    if found is None and required:
        raise NotFoundError(f"macro not found: {macro.value}", _where(node))
    return found


def find_first_section(
    tree: Tree,
    node: Node | None,
    heading: str,
    *,
    required: bool = False,
) -> Node | None:
    """Find the first node whose head text equals *heading*, ignoring case."""
    wanted = heading.casefold()

    def match(candidate: Node) -> bool:
        head = tree.head(candidate)
        return head is not None and flatten(tree, head).casefold() == wanted

    found = find_first(tree, node, match)
    if found is None and required:
        raise NotFoundError(f"section not found: {heading}", _where(node))
    return found


def _where(node: Node | None) -> Position | None:
    return None if node is None else node.position
