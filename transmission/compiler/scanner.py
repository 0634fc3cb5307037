"""Macro and hook scanner for Harlowe-style markup.

Regular expressions alone cannot find where `(if: ...)[ ... ]` ends once the
hook holds `[[links]]` or nested hooks, so hooks are closed by counting
bracket depth, and macro arguments by counting parentheses outside quotes.

    (if: $clicks >= 3)[ You say: [[Stay->Room]] ](else:)[ [[Leave]] ]
    ^-- Macro("if") --^^----------- Hook ---------^
"""

from __future__ import annotations

import re
from typing import Iterable, NamedTuple

_MACRO_OPEN = re.compile(r"\(([A-Za-z][\w-]*):")
_ELSE = re.compile(r"\s*\(else:\s*\)", re.IGNORECASE)
_QUOTED = re.compile(r'"([^"]*)"|\'([^\']*)\'')


class Macro(NamedTuple):
    name: str   # lowercased macro name, e.g. "if", "link", "goto"
    args: str   # raw text between the colon and the closing paren
    start: int  # index of "("
    end: int    # index just past ")"


class Hook(NamedTuple):
    start: int  # index of "["
    end: int    # index just past the matching "]"
    body: str


def find_closing_bracket(text: str, open_index: int) -> int:
    """Index of the "]" balancing the "[" at open_index, or -1."""
    if open_index >= len(text) or text[open_index] != "[":
        return -1
    depth = 0
    for i in range(open_index, len(text)):
        ch = text[i]
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return i
    return -1


def find_closing_paren(text: str, open_index: int) -> int:
    """Index of the ")" balancing the "(" at open_index, ignoring quoted text."""
    if open_index >= len(text) or text[open_index] != "(":
        return -1
    depth = 0
    quote: str | None = None
    for i in range(open_index, len(text)):
        ch = text[i]
        if quote:
            if ch == quote:
                quote = None
            continue
        if ch in "\"'":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i
    return -1


def scan_macros(text: str, names: Iterable[str] | None = None) -> list[Macro]:
    """All well-formed macros in text, in document order.

    Macros nested in another macro's arguments are reported too.
    """
    wanted = {n.lower() for n in names} if names is not None else None
    macros: list[Macro] = []
    for match in _MACRO_OPEN.finditer(text):
        name = match.group(1).lower()
        if wanted is not None and name not in wanted:
            continue
        close = find_closing_paren(text, match.start())
        if close == -1:
            continue
        macros.append(Macro(name, text[match.end():close].strip(), match.start(), close + 1))
    return macros


def outermost(macros: list[Macro]) -> list[Macro]:
    """Drop macros nested inside the arguments of an earlier macro."""
    kept: list[Macro] = []
    for macro in macros:
        if kept and macro.start < kept[-1].end:
            continue
        kept.append(macro)
    return kept


def hook_after(text: str, pos: int) -> Hook | None:
    """The hook opening at pos (after optional whitespace), if any."""
    i = pos
    while i < len(text) and text[i].isspace():
        i += 1
    close = find_closing_bracket(text, i)
    if close == -1:
        return None
    return Hook(i, close + 1, text[i + 1:close])


def else_hook_after(text: str, pos: int) -> Hook | None:
    """The `(else:)[...]` hook directly following pos, if any."""
    match = _ELSE.match(text, pos)
    if not match:
        return None
    return hook_after(text, match.end())


def quoted_args(args: str) -> list[str]:
    """String literals in macro arguments: '"a", "b"' -> ["a", "b"]."""
    return [m.group(1) if m.group(1) is not None else m.group(2) for m in _QUOTED.finditer(args)]


def merge_spans(spans: Iterable[tuple[int, int]]) -> list[tuple[int, int]]:
    merged: list[tuple[int, int]] = []
    for start, end in sorted(spans):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def remove_spans(text: str, spans: Iterable[tuple[int, int]], replacement: str = "") -> str:
    """Cut the given (start, end) spans out of text, replacing each."""
    result = text
    for start, end in reversed(merge_spans(spans)):
        result = result[:start] + replacement + result[end:]
    return result


def in_spans(pos: int, spans: Iterable[tuple[int, int]]) -> bool:
    return any(start <= pos < end for start, end in spans)
