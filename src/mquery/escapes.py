"""Roff escape decoding and whitespace normalization for text runs."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

# Named special characters: \(xx, \[name], \C'name'
SPECIAL_CHARS: Mapping[str, str] = MappingProxyType(
    {
        # Dashes and hyphens
        "hy": "-",
        "mi": "-",
        "en": "–",
        "em": "—",
        # Quotes
        "lq": "“",
        "rq": "”",
        "oq": "‘",
        "cq": "’",
        "aq": "'",
        "dq": '"',
        "Bq": "„",
        "bq": "‚",
        "Fo": "«",
        "Fc": "»",
        "fo": "‹",
        "fc": "›",
        # Punctuation
        "r!": "¡",
        "r?": "¿",
        "bu": "•",
        "ci": "○",
        "dd": "‡",
        "dg": "†",
        "lz": "◊",
        "sc": "§",
        "ps": "¶",
        "ba": "|",
        "br": "│",
        "sl": "/",
        "rs": "\\",
        "ti": "~",
        "ha": "^",
        "ga": "`",
        "aa": "´",
        "at": "@",
        "sh": "#",
        "Do": "$",
        "lB": "[",
        "rB": "]",
        "lC": "{",
        "rC": "}",
        "la": "⟨",
        "ra": "⟩",
        "ul": "_",
        "ru": "_",
        # Symbols
        "co": "©",
        "rg": "®",
        "tm": "™",
        "de": "°",
        "%0": "‰",
        "Eu": "€",
        "eu": "€",
        "Po": "£",
        "Ye": "¥",
        "ct": "¢",
        # Arrows
        "->": "→",
        "<-": "←",
        "<>": "↔",
        "ua": "↑",
        "da": "↓",
        "rA": "⇒",
        "lA": "⇐",
        "hA": "⇔",
        # Mathematics
        "+-": "±",
        "mu": "×",
        "di": "÷",
        "<=": "≤",
        ">=": "≥",
        "!=": "≠",
        "==": "≡",
        "~=": "≅",
        "~~": "≈",
        "if": "∞",
        "no": "¬",
        "pl": "+",
        "eq": "=",
        "**": "*",
        "sr": "√",
        "12": "½",
        "14": "¼",
        "34": "¾",
        # Letters
        "ss": "ß",
        "ae": "æ",
        "AE": "Æ",
        "o/": "ø",
        "O/": "Ø",
        "'e": "é",
        "`e": "è",
        ":u": "ü",
        ":o": "ö",
        ":a": "ä",
        ":U": "Ü",
        ":O": "Ö",
        ":A": "Ä",
        ",c": "ç",
        "~n": "ñ",
    }
)

# Predefined strings: \*x, \*(xx, \*[name]
PREDEFINED_STRINGS: Mapping[str, str] = MappingProxyType(
    {
        "Lq": "“",
        "Rq": "”",
        "lq": "“",
        "rq": "”",
        "Ba": "|",
        "Ne": "≠",
        "Ge": "≥",
        "Le": "≤",
        "Gt": ">",
        "Lt": "<",
        "Pm": "±",
        "If": "∞",
        "Pi": "π",
        "Na": "NaN",
        "Am": "&",
        "R": "®",
        "Tm": "™",
        "q": '"',
        "Aq": "⟨",
        "Rs": "\\",
    }
)

# One-character escapes with a fixed meaning
_SIMPLE: Mapping[str, str] = MappingProxyType(
    {
        "e": "\\",
        "\\": "\\",
        "-": "-",
        ".": ".",
        " ": " ",
        "~": " ",
        "0": " ",
        "t": "\t",
        "'": "'",
        "`": "`",
        "_": "_",
        # zero-width and motion escapes print nothing
        "&": "",
        "|": "",
        "^": "",
        "%": "",
        ":": "",
        ")": "",
        ",": "",
        "/": "",
        "!": "",
        "a": "",
        "c": "",
        "d": "",
        "p": "",
        "r": "",
        "u": "",
        "z": "",
        "{": "",
        "}": "",
        "E": "",
    }
)

# Escapes taking a name argument (x, (xx or [name]) that print nothing
_NAME_ARG = frozenset("fFgkmMnOVY$")

# Escapes taking a delimited argument ('...') that print nothing
_QUOTED_ARG = frozenset("AbBDhHlLoRSvwxXZ")

# Placeholder bytes mandoc substitutes for some escapes before printing
_PLACEHOLDERS: Mapping[str, str] = MappingProxyType(
    {
        "\x1f": " ",  # non-breaking space
        "\x1e": "-",  # hyphen that may break
        "\x1d": "",  # permitted break point
    }
)


def decode(raw: str, *, no_fill: bool = False) -> str:
    """Decode the escapes of a text run and normalize its spaces.

    In fill mode leading spaces are stripped and runs of spaces collapse
    into one; in no-fill mode both are kept. A single trailing space is
    always dropped. A malformed escape ends decoding of the run.
    """
    out: list[str] = []
    pos = 0
    end = len(raw)

    if not no_fill:
        while pos < end and raw[pos] == " ":
            pos += 1

    # True while the last piece appended is a plain (unescaped) space
    plain_space = False

    while pos < end:
        ch = raw[pos]
        if ch == "\\":
            decoded = _escape(raw, pos + 1)
            if decoded is None:
                break
            text, pos = decoded
            if text:
                out.append(text)
                plain_space = False
            continue
        pos += 1
        if ch == " ":
            if plain_space and not no_fill:
                continue
            out.append(" ")
            plain_space = True
            continue
        out.append(_PLACEHOLDERS.get(ch, ch))
        plain_space = False

    if plain_space:
        out.pop()
    return "".join(out)


# ---------------------------------------------------------------------------
# Escape scanning
#
# Each helper takes the index just past the escape character and returns
# (decoded text, index after the escape), or None if the escape is malformed.
# ---------------------------------------------------------------------------


def _escape(raw: str, pos: int) -> tuple[str, int] | None:
    if pos >= len(raw):
        return None
    ch = raw[pos]
    pos += 1

    if ch == "(":
        name = raw[pos : pos + 2]
        if len(name) < 2:
            return None
        return special_char(name), pos + 2

    if ch == "[":
        bracketed = _bracketed(raw, pos)
        if bracketed is None:
            return None
        name, pos = bracketed
        return special_char(name), pos

    if ch == "C":
        quoted = _quoted(raw, pos)
        if quoted is None:
            return None
        name, pos = quoted
        return special_char(name), pos

    if ch == "N":
        quoted = _quoted(raw, pos)
        if quoted is None:
            return None
        number, pos = quoted
        return _codepoint(number, 10), pos

    if ch == "*":
        named = _name(raw, pos)
        if named is None:
            return None
        name, pos = named
        return PREDEFINED_STRINGS.get(name, ""), pos

    if ch in ('"', "#"):
        # comment: the rest of the run is not text
        return "", len(raw)

    if ch == "s":
        return _size(raw, pos)

    if ch in _NAME_ARG:
        if ch == "n" and pos < len(raw) and raw[pos] in "+-":
            pos += 1
        named = _name(raw, pos)
        if named is None:
            return None
        return "", named[1]

    if ch in _QUOTED_ARG:
        quoted = _quoted(raw, pos)
        if quoted is None:
            return None
        return "", quoted[1]

    return _SIMPLE.get(ch, ch), pos


def _name(raw: str, pos: int) -> tuple[str, int] | None:
    """Read an escape argument in one of the forms x, (xx or [name]."""
    if pos >= len(raw):
        return None
    if raw[pos] == "(":
        name = raw[pos + 1 : pos + 3]
        if len(name) < 2:
            return None
        return name, pos + 3
    if raw[pos] == "[":
        return _bracketed(raw, pos + 1)
    return raw[pos], pos + 1


def _bracketed(raw: str, pos: int) -> tuple[str, int] | None:
    close = raw.find("]", pos)
    if close < 0:
        return None
    return raw[pos:close], close + 1


def _quoted(raw: str, pos: int) -> tuple[str, int] | None:
    if pos >= len(raw):
        return None
    delim = raw[pos]
    close = raw.find(delim, pos + 1)
    if close < 0:
        return None
    return raw[pos + 1 : close], close + 1


def _size(raw: str, pos: int) -> tuple[str, int] | None:
    """Skip a \\s point-size change: \\sN, \\s±N, \\s(NN, \\s[N], \\s'N'."""
    if pos < len(raw) and raw[pos] in "+-":
        pos += 1
    if pos >= len(raw):
        return None
    ch = raw[pos]
    if ch in "([":
        named = _name(raw, pos)
        return None if named is None else ("", named[1])
    if ch == "'":
        quoted = _quoted(raw, pos)
        return None if quoted is None else ("", quoted[1])
    if not ch.isdigit():
        return None
    pos += 1
    # sizes 10..39 may be written with two digits
    if ch in "123" and pos < len(raw) and raw[pos].isdigit():
        pos += 1
    return "", pos


def special_char(name: str) -> str:
    """Resolve a special character name; unknown names decode to nothing."""
    if name in SPECIAL_CHARS:
        return SPECIAL_CHARS[name]
    if len(name) > 1 and name[0] == "u":
        return _codepoint(name[1:], 16)
    if name.startswith("char"):
        return _codepoint(name[4:], 10)
    if len(name) == 1:
        return name
    return ""


def _codepoint(digits: str, base: int) -> str:
    try:
        return chr(int(digits, base))
    except (ValueError, OverflowError):
        return ""
