"""--debug tree dump to stderr."""

from __future__ import annotations

import sys
from typing import TextIO

from mquery.tree import Node, NodeFlags, NodeKind, Tree


def dump_tree(tree: Tree, *, file: TextIO = sys.stderr) -> None:
    """Print a human-readable node tree to *file*."""
    file.write(f"Tree {tree.filename} ({tree.macroset.name.lower()})\n")
    for key, value in tree.meta.items():
        file.write(f"{_indent(1)}meta {key}={value!r}\n")
    for child in tree.children(tree.root):
        _dump_node(tree, child, 1, file)


def _indent(depth: int) -> str:
    return "  " * depth


def _dump_node(tree: Tree, node: Node, depth: int, f: TextIO) -> None:
    f.write(f"{_indent(depth)}{_describe(node)}\n")
    for child in tree.children(node):
        _dump_node(tree, child, depth + 1, f)


def _describe(node: Node) -> str:
    kind = node.kind.name.capitalize()
    if node.kind in (NodeKind.TEXT, NodeKind.COMMENT):
        label = f"{kind}({node.text!r})"
    else:
        label = f"{kind} {node.macro.value}" if node.macro.value else kind
    if node.args:
        label += " " + " ".join(f"-{arg}" for arg in node.args)
    label += f" @{node.position.line}:{node.position.column}"
    flags = [flag.name for flag in NodeFlags if flag and flag.name and node.flags & flag]
    if flags:
        label += " [" + ",".join(flags) + "]"
    return label
