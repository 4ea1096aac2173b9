"""Plain-text reconstruction ("deroff") of document subtrees."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TextIO

from mquery.errors import OutputError
from mquery.escapes import decode
from mquery.macros import Macro
from mquery.tree import Node, NodeFlags, NodeKind, Tree


@dataclass(frozen=True, slots=True)
class Enclosure:
    """Text written around a node's content.

    ``spacing=False`` cancels any separator space owed on entry and exit,
    so the neighbouring words run together.
    """

    prefix: str = ""
    suffix: str = ""
    spacing: bool = True


PLAIN = Enclosure()
PARAGRAPH = Enclosure("\n", "\n")
ANGLE = Enclosure("<", ">\n")
DISPLAY = Enclosure("\n\n@CODE\n", "@CODE\n")
PARENTHESES = Enclosure(" (", ") ")
NO_SPACE = Enclosure(spacing=False)
APOSTROPHE = Enclosure("'", spacing=False)
LINE_BREAK = Enclosure("\n")

ANGLE_GROUPS: frozenset[Macro] = frozenset({Macro.AQ, Macro.AO})

_ENCLOSURES: Mapping[Macro, Enclosure] = MappingProxyType(
    {
        Macro.PP: PARAGRAPH,
        Macro.LP: PARAGRAPH,
        Macro.AQ: ANGLE,
        Macro.AO: ANGLE,
        Macro.MT: ANGLE,
        Macro.BD: DISPLAY,
        Macro.PQ: PARENTHESES,
        Macro.PO: PARENTHESES,
        Macro.NS: NO_SPACE,
        Macro.AP: APOSTROPHE,
        Macro.BR: LINE_BREAK,
    }
)


def enclosure_for(tree: Tree, node: Node) -> Enclosure:
    """Select the enclosure of a block or element node."""
    if node.kind not in (NodeKind.BLOCK, NodeKind.ELEMENT):
        return PLAIN

    # the group already supplies the brackets
    parent = tree.parent(node)
    if parent is not None and parent.macro in ANGLE_GROUPS:
        return PLAIN

    match node.macro:
        case Macro.AN if "split" in node.args or "nosplit" in node.args or not node.children:
            return NO_SPACE
        case Macro.SP:
            return LINE_BREAK if node.flags & NodeFlags.NO_FILL else PARAGRAPH
        case _:
            return _ENCLOSURES.get(node.macro, PLAIN)


class Reconstructor:
    """Stream the plain-text rendering of subtrees to an output stream.

    Filled text runs leave one separator space owed rather than writing it,
    and the next write pays it. Anything starting with a newline and every
    closing suffix cancel the debt, so a run never ends in a space before a
    paragraph break, a closing bracket or the end of a line.
    """

    def __init__(self, tree: Tree, out: TextIO) -> None:
        self._tree = tree
        self._out = out
        self._space = False
        # nothing written yet, or the last write ended a line
        self._line_start = True

    @property
    def tree(self) -> Tree:
        return self._tree

    def emit(self, node: Node) -> None:
        """Reconstruct *node* and its subtree."""
        if not node.printable or node.kind in (NodeKind.COMMENT, NodeKind.EQN):
            return
        if node.kind is NodeKind.TEXT:
            self._emit_text(node)
            return
        if node.kind is NodeKind.ELEMENT and node.macro is Macro.LK:
            self._emit_link(node)
            return

        enclosure = enclosure_for(self._tree, node)
        if not enclosure.spacing:
            self._space = False
        self._open(enclosure.prefix, node)
        for child in self._tree.children(node):
            self.emit(child)
        self._close(enclosure.suffix, node)
        if not enclosure.spacing:
            self._space = False

    def write(self, text: str, node: Node) -> None:
        """Write literal text, settling the owed space as a prefix would."""
        self._open(text, node)

    def finish(self) -> None:
        """Pay any owed separator space."""
        self._flush(self._tree.root)

    def end_line(self) -> None:
        """Terminate the current line without a trailing space."""
        self._space = False
        self._write("\n", self._tree.root)

    # ------------------------------------------------------------------
    # Text runs
    # ------------------------------------------------------------------

    def _emit_text(self, node: Node) -> None:
        no_fill = bool(node.flags & NodeFlags.NO_FILL)
        text = decode(node.text or "", no_fill=no_fill)

        if no_fill:
            self._flush(node)
            self._write(text + "\n", node)
            return

        if not text:
            return
        if node.flags & NodeFlags.DELIM_CLOSE and not node.flags & NodeFlags.LINE:
            self._space = False
        self._flush(node)
        self._write(text, node)
        self._space = not node.flags & NodeFlags.DELIM_OPEN

    def _emit_link(self, node: Node) -> None:
        """Write a link target, then its description in parentheses."""
        printable = self._tree.printable_children(node)
        if not printable:
            return
        target, *description = printable
        self.emit(target)
        if description:
            self._space = True
            self._open("(", node)
            for child in description:
                self.emit(child)
            self._close(")", node)
            self._space = True

    # ------------------------------------------------------------------
    # Output primitives
    # ------------------------------------------------------------------

    def _open(self, prefix: str, node: Node) -> None:
        if not prefix:
            return
        if prefix[0] == "\n":
            self._space = False
        elif prefix[0] == " ":
            prefix = prefix.lstrip(" ")
            if not self._starts_line(node):
                self._space = True
        self._flush(node)
        self._write(prefix, node)

    def _starts_line(self, node: Node) -> bool:
        """True when a leading prefix space would open an output or source line."""
        if self._line_start:
            return True
        if not node.flags & NodeFlags.LINE:
            return False
        return not any(
            a.kind is NodeKind.HEAD and a.macro is Macro.IT for a in self._tree.ancestors(node)
        )

    def _close(self, suffix: str, node: Node) -> None:
        if not suffix:
            return
        self._space = False
        text = suffix.rstrip(" ")
        self._write(text, node)
        if len(text) < len(suffix):
            self._space = True

    def _flush(self, node: Node) -> None:
        if self._space:
            self._space = False
            if not self._line_start:
                self._write(" ", node)

    def _write(self, text: str, node: Node) -> None:
        if not text:
            return
        try:
            self._out.write(text)
        except (OSError, ValueError) as exc:
            raise OutputError(f"cannot write output: {exc}", node.position) from exc
        self._line_start = text.endswith("\n")


# ---------------------------------------------------------------------------
# Heading text
# ---------------------------------------------------------------------------


def flatten(tree: Tree, node: Node) -> str:
    """Return the decoded words of a subtree joined by single spaces."""
    words = (decode(text).strip() for text in _texts(tree, node))
    return " ".join(word for word in words if word)


def _texts(tree: Tree, node: Node) -> Iterator[str]:
    if node.kind is NodeKind.TEXT:
        yield node.text or ""
        return
    for child in tree.children(node):
        yield from _texts(tree, child)
