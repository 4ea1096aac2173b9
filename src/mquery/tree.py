"""Document tree — an arena of nodes linked by index."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum, IntFlag, auto

from mquery.macros import Macro, MacroSet


class NodeKind(Enum):
    ROOT = auto()
    BLOCK = auto()  # .Sh, .Bl, .It ... owns head/body regions
    HEAD = auto()
    BODY = auto()
    TAIL = auto()
    ELEMENT = auto()  # in-line macro such as .Nm or .Lk
    TEXT = auto()
    COMMENT = auto()
    EQN = auto()


class NodeFlags(IntFlag):
    NONE = 0
    LINE = auto()  # first node on its input line
    DELIM_OPEN = auto()
    DELIM_CLOSE = auto()
    EOS = auto()  # ends a sentence
    BROKEN = auto()
    ENDED = auto()
    ID = auto()
    HREF = auto()
    NO_FILL = auto()  # literal whitespace and line breaks
    NO_SOURCE = auto()  # generated, not in the input
    NO_PRINT = auto()  # never printed, still searchable


@dataclass(frozen=True, slots=True)
class Position:
    """Source position, 1-based line and column."""

    line: int
    column: int


NOWHERE = Position(0, 0)


@dataclass(frozen=True, slots=True)
class Node:
    """A single document node. Relations are indices into the owning Tree."""

    index: int
    kind: NodeKind
    macro: Macro
    text: str | None
    flags: NodeFlags
    position: Position
    args: tuple[str, ...]
    parent: int | None
    prev: int | None
    next: int | None
    children: tuple[int, ...]
    head: int | None
    body: int | None

    @property
    def printable(self) -> bool:
        return not self.flags & NodeFlags.NO_PRINT


@dataclass(frozen=True, slots=True)
class Tree:
    """Read-only document tree. Index 0 is the root."""

    nodes: tuple[Node, ...]
    macroset: MacroSet = MacroSet.MDOC
    meta: dict[str, str] = field(default_factory=dict)
    filename: str = "<stdin>"
    source: str | None = None

    @property
    def root(self) -> Node:
        return self.nodes[0]

    def __getitem__(self, index: int) -> Node:
        return self.nodes[index]

    def __len__(self) -> int:
        return len(self.nodes)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _get(self, index: int | None) -> Node | None:
        return None if index is None else self.nodes[index]

    def parent(self, node: Node) -> Node | None:
        return self._get(node.parent)

    def next(self, node: Node) -> Node | None:
        return self._get(node.next)

    def prev(self, node: Node) -> Node | None:
        return self._get(node.prev)

    def head(self, node: Node) -> Node | None:
        return self._get(node.head)

    def body(self, node: Node) -> Node | None:
        return self._get(node.body)

    def first_child(self, node: Node) -> Node | None:
        return self.nodes[node.children[0]] if node.children else None

    def children(self, node: Node) -> Iterator[Node]:
        for index in node.children:
            yield self.nodes[index]

    def printable_children(self, node: Node) -> list[Node]:
        return [child for child in self.children(node) if child.printable]

    def next_printable(self, node: Node) -> Node | None:
        """Next sibling, skipping NO_PRINT nodes."""
        sibling = self.next(node)
        while sibling is not None and not sibling.printable:
            sibling = self.next(sibling)
        return sibling

    def prev_printable(self, node: Node) -> Node | None:
        """Previous sibling, skipping NO_PRINT nodes."""
        sibling = self.prev(node)
        while sibling is not None and not sibling.printable:
            sibling = self.prev(sibling)
        return sibling

    def ancestors(self, node: Node) -> Iterator[Node]:
        parent = self.parent(node)
        while parent is not None:
            yield parent
            parent = self.parent(parent)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class _Record:
    kind: NodeKind
    macro: Macro
    text: str | None
    flags: NodeFlags
    position: Position
    args: tuple[str, ...]
    parent: int | None


class TreeBuilder:
    """Collects nodes in document order and freezes them into a Tree."""

    def __init__(self) -> None:
        self._records: list[_Record] = [
            _Record(NodeKind.ROOT, Macro.NONE, None, NodeFlags.NONE, NOWHERE, (), None)
        ]

    @property
    def root(self) -> int:
        return 0

    def add(
        self,
        parent: int,
        kind: NodeKind,
        macro: Macro = Macro.NONE,
        *,
        text: str | None = None,
        flags: NodeFlags = NodeFlags.NONE,
        position: Position = NOWHERE,
        args: tuple[str, ...] = (),
    ) -> int:
        """Append a node as the last child of *parent* and return its index."""
        if not 0 <= parent < len(self._records):
            raise IndexError(f"no such parent node: {parent}")
        if self._records[parent].kind is NodeKind.TEXT:
            raise ValueError("text nodes cannot have children")
        self._records.append(_Record(kind, macro, text, flags, position, args, parent))
        return len(self._records) - 1

    def build(
        self,
        macroset: MacroSet = MacroSet.MDOC,
        meta: dict[str, str] | None = None,
        filename: str = "<stdin>",
        source: str | None = None,
    ) -> Tree:
        children: list[list[int]] = [[] for _ in self._records]
        for index, rec in enumerate(self._records):
            if rec.parent is not None:
                children[rec.parent].append(index)

        prev: list[int | None] = [None] * len(self._records)
        nxt: list[int | None] = [None] * len(self._records)
        for siblings in children:
            for a, b in zip(siblings, siblings[1:]):
                nxt[a] = b
                prev[b] = a

        nodes: list[Node] = []
        for index, rec in enumerate(self._records):
            head = body = None
            if rec.kind is NodeKind.BLOCK:
                for child in children[index]:
                    kind = self._records[child].kind
                    if kind is NodeKind.HEAD and head is None:
                        head = child
                    elif kind is NodeKind.BODY and body is None:
                        body = child
            nodes.append(
                Node(
                    index=index,
                    kind=rec.kind,
                    macro=rec.macro,
                    text=rec.text,
                    flags=rec.flags,
                    position=rec.position,
                    args=rec.args,
                    parent=rec.parent,
                    prev=prev[index],
                    next=nxt[index],
                    children=tuple(children[index]),
                    head=head,
                    body=body,
                )
            )

        return Tree(tuple(nodes), macroset, dict(meta or {}), filename, source)
