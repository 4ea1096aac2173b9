"""Tree loading — run ``mandoc -T tree`` and build a Tree from its dump."""

from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass
from pathlib import Path

from mquery.errors import BadArgumentError, InvalidDocumentError, QuerySystemError
from mquery.macros import Macro, MacroSet, classify, resolve_macro
from mquery.tree import NodeFlags, NodeKind, Position, Tree, TreeBuilder

# mandoc exit status for bad arguments; anything above is a system error
_MANDOC_BADARG = 5


@dataclass
class MandocRunner:
    """Runs the external mandoc parser and loads its tree dump."""

    command: str = "mandoc"
    timeout: float = 10.0

    def load(self, path: Path) -> Tree:
        """Parse the manual page at *path*."""
        if not path.is_file():
            raise BadArgumentError(f"{path}: no such file")
        try:
            source = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise BadArgumentError(f"{path}: {exc.strerror}") from None
        dump = self._run([self.command, "-T", "tree", str(path)], None, str(path))
        return parse_tree_dump(dump, str(path), source)

    def load_source(self, source: str, filename: str = "<stdin>") -> Tree:
        """Parse manual page text by feeding it to mandoc on stdin."""
        dump = self._run([self.command, "-T", "tree"], source, filename)
        return parse_tree_dump(dump, filename, source)

    def _run(self, argv: list[str], stdin: str | None, filename: str) -> str:
        try:
            result = subprocess.run(
                argv,
                input=stdin,
                stdin=subprocess.DEVNULL if stdin is None else None,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise QuerySystemError(f"mandoc not found: {self.command}") from None
        except PermissionError:
            raise QuerySystemError(f"mandoc is not executable: {self.command}") from None
        except subprocess.TimeoutExpired:
            raise QuerySystemError(
                f"mandoc timed out after {self.timeout}s on {filename}"
            ) from None

        stderr = result.stderr.strip()
        if result.returncode >= _MANDOC_BADARG:
            msg = f"mandoc failed on {filename} (exit {result.returncode})"
            if stderr:
                msg += f": {stderr}"
            if result.returncode == _MANDOC_BADARG:
                raise BadArgumentError(msg)
            raise QuerySystemError(msg)

        if not result.stdout.strip():
            msg = f"could not parse {filename}"
            if stderr:
                msg += f": {stderr}"
            raise InvalidDocumentError(msg)

        return result.stdout


# ---------------------------------------------------------------------------
# Tree dump parsing
# ---------------------------------------------------------------------------

_META_RE = re.compile(r'^(?P<key>\w+)\s*=\s*"(?P<value>.*)"$')

_NODE_RE = re.compile(
    r"^(?P<indent> *)(?P<name>.*?) "
    r"\((?P<type>root|block|head|body|body-end|tail|elem|text|comment|eqn)\)"
    r"(?P<args>.*?) "
    r"(?P<delimo>\()?(?P<line_start>\*)?(?P<line>\d+):(?P<column>\d+)"
    r"(?P<delimc>\))?(?P<eos>\.)?"
    r"(?P<flags>(?: \S+)*)$"
)

# a value list following an argument name: -width [ [Ds] ]
_ARG_VALUES_RE = re.compile(r"\s\[(?:\s\[[^\]]*\])*\s\]")
_ARG_NAME_RE = re.compile(r"(?:^|\s)-(\w+)")

_KINDS: dict[str, NodeKind] = {
    "root": NodeKind.ROOT,
    "block": NodeKind.BLOCK,
    "head": NodeKind.HEAD,
    "body": NodeKind.BODY,
    "body-end": NodeKind.BODY,
    "tail": NodeKind.TAIL,
    "elem": NodeKind.ELEMENT,
    "text": NodeKind.TEXT,
    "comment": NodeKind.COMMENT,
    "eqn": NodeKind.EQN,
}

_FLAG_WORDS: dict[str, NodeFlags] = {
    "BROKEN": NodeFlags.BROKEN,
    "ENDED": NodeFlags.ENDED,
    "ID": NodeFlags.ID,
    "HREF": NodeFlags.HREF,
    "NOFILL": NodeFlags.NO_FILL,
    "NOSRC": NodeFlags.NO_SOURCE,
    "NOPRT": NodeFlags.NO_PRINT,
}


def parse_tree_dump(text: str, filename: str = "<stdin>", source: str | None = None) -> Tree:
    """Build a Tree from the output of ``mandoc -T tree``.

    mandoc indents the children of a block by two columns and those of any
    other node by four. Spaces beyond that on a text line belong to the
    text. Lines that are not node lines (tbl spans, eqn boxes) are skipped.
    """
    lines = text.splitlines()
    meta, start = _parse_meta(lines)

    builder = TreeBuilder()
    # (indent of children, node index) of the open ancestors
    stack: list[tuple[int, int]] = [(0, builder.root)]
    macroset = MacroSet.UNKNOWN

    for raw in lines[start:]:
        m = _NODE_RE.match(raw)
        if m is None:
            continue
        kind = _KINDS[m.group("type")]
        if kind is NodeKind.ROOT:
            continue

        indent = len(m.group("indent"))
        while len(stack) > 1 and indent < stack[-1][0]:
            stack.pop()
        child_indent, parent = stack[-1]

        name = m.group("name")
        if kind in (NodeKind.TEXT, NodeKind.COMMENT):
            macro, node_text = Macro.NONE, " " * max(0, indent - child_indent) + name
        else:
            macro, node_text = resolve_macro(name), None
            if macroset is MacroSet.UNKNOWN:
                macroset = classify(name)

        index = builder.add(
            parent,
            kind,
            macro,
            text=node_text,
            flags=_parse_flags(m),
            position=Position(int(m.group("line")), int(m.group("column"))),
            args=_parse_args(m.group("args")),
        )
        if kind not in (NodeKind.TEXT, NodeKind.COMMENT):
            stack.append((child_indent + (2 if kind is NodeKind.BLOCK else 4), index))

    return builder.build(macroset, meta, filename, source)


def _parse_meta(lines: list[str]) -> tuple[dict[str, str], int]:
    """Read the ``key = "value"`` header; return it and the first node line."""
    meta: dict[str, str] = {}
    for i, line in enumerate(lines):
        if not line.strip():
            return meta, i + 1
        m = _META_RE.match(line)
        if m is None:
            # no header at all
            return meta, i
        meta[m.group("key")] = m.group("value")
    return meta, len(lines)


def _parse_flags(m: re.Match[str]) -> NodeFlags:
    flags = NodeFlags.NONE
    if m.group("line_start"):
        flags |= NodeFlags.LINE
    if m.group("delimo"):
        flags |= NodeFlags.DELIM_OPEN
    if m.group("delimc"):
        flags |= NodeFlags.DELIM_CLOSE
    if m.group("eos"):
        flags |= NodeFlags.EOS
    for word in m.group("flags").split():
        flags |= _FLAG_WORDS.get(word, NodeFlags.NONE)
    return flags


def _parse_args(args: str) -> tuple[str, ...]:
    if not args.strip():
        return ()
    return tuple(_ARG_NAME_RE.findall(_ARG_VALUES_RE.sub("", args)))
