"""Harlowe macro argument parsing: conditions, effects, jumps, links, printing."""

from __future__ import annotations

import re
from typing import Any

from transmission.models import Condition

from .scanner import outermost, quoted_args, scan_macros

_COMPARISON = re.compile(
    r"^\$(\w+)\s*(>=|<=|==|!=|>|<|is\s+not|is)\s*(.+)$", re.IGNORECASE
)
_LOGICAL = re.compile(r"\s(?:and|or)\s", re.IGNORECASE)
_SET_DELTA = re.compile(r"^\$(\w+)\s+to\s+(?:\$(\w+)|it)\s*([+-])\s*(\d+(?:\.\d+)?)$")
_SET_ABSOLUTE = re.compile(r"^\$(\w+)\s+to\s+(.+)$")
_NUMBER = re.compile(r"^-?\d+(?:\.\d+)?$")

_INVERSE_OPERATORS = {
    ">=": "<",
    "<=": ">",
    ">": "<=",
    "<": ">=",
    "==": "!=",
    "!=": "==",
}


def parse_literal(raw: str) -> Any:
    """Harlowe literal → Python value. Unknown forms stay as the raw string."""
    value = raw.strip()
    if _NUMBER.match(value):
        return float(value) if "." in value else int(value)
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    return value


def parse_condition(args: str) -> Condition | None:
    """`$clicks >= 3` → Condition(clicks, >=, 3).

    Only a single comparison is understood; compound expressions and
    anything else return None (the condition is dropped, never raised).
    """
    if _LOGICAL.search(args):
        return None
    match = _COMPARISON.match(args.strip())
    if not match:
        return None
    operator = re.sub(r"\s+", " ", match.group(2).lower())
    if operator == "is":
        operator = "=="
    elif operator == "is not":
        operator = "!="
    return Condition(
        variable=match.group(1),
        operator=operator,
        value=parse_literal(match.group(3)),
    )


def invert_operator(operator: str) -> str:
    return _INVERSE_OPERATORS.get(operator, operator)


def inverted(condition: Condition) -> Condition:
    return Condition(
        variable=condition.variable,
        operator=invert_operator(condition.operator),
        value=condition.value,
    )


def split_set_clauses(args: str) -> list[str]:
    """`$a to 1, $b to "x, y"` → ['$a to 1', '$b to "x, y"'].

    Commas inside quotes or parentheses do not split.
    """
    clauses: list[str] = []
    depth = 0
    quote = None
    start = 0
    for i, char in enumerate(args):
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif char == "," and depth == 0:
            clauses.append(args[start:i])
            start = i + 1
    clauses.append(args[start:])
    return [clause.strip() for clause in clauses if clause.strip()]


def parse_set_effects(args: str) -> dict[str, Any] | None:
    """Every assignment of one (set:) macro merged; unparseable clauses are skipped."""
    effects: dict[str, Any] = {}
    for clause in split_set_clauses(args):
        effect = parse_set_effect(clause)
        if effect:
            effects.update(effect)
    return effects or None


def parse_set_effect(args: str) -> dict[str, Any] | None:
    """`$clicks to $clicks + 1` → {"clicks": "+1"}; `$mood to 3` → {"mood": 3}."""
    text = args.strip()
    delta = _SET_DELTA.match(text)
    if delta:
        name, source, sign, amount = delta.groups()
        if source is None or source == name:
            return {name: f"{sign}{amount}"}
    absolute = _SET_ABSOLUTE.match(text)
    if absolute:
        name, raw = absolute.groups()
        if "$" in raw:
            return None
        return {name: parse_literal(raw)}
    return None


def parse_goto(args: str) -> str | None:
    """`"Passage Name"` → "Passage Name"."""
    names = quoted_args(args)
    return names[0] if names else None


def parse_link(link: str) -> tuple[str, str]:
    """Inner text of a [[link]] → (text, destination).

    Forms: text->dest, dest<-text, text|dest, dest.
    """
    if "->" in link:
        text, _, destination = link.rpartition("->")
    elif "<-" in link:
        destination, _, text = link.partition("<-")
    elif "|" in link:
        text, _, destination = link.partition("|")
    else:
        text = destination = link
    return text.strip(), destination.strip()


def interpolate(text: str) -> tuple[str, list[str]]:
    """Turn (print:) and (nth:) into Handlebars expressions.

    Returns the new text and the variable names it references.
    """
    names: list[str] = []
    result = text
    for macro in reversed(outermost(scan_macros(text, ("print", "nth")))):
        var = re.match(r"\$(\w+)", macro.args)
        if not var:
            continue
        name = var.group(1)
        names.append(name)
        if macro.name == "print":
            expression = f"{{{{{name}}}}}"
        else:
            options = " ".join(f'"{item}"' for item in quoted_args(macro.args))
            expression = f"{{{{nth {name} {options}}}}}"
        result = result[:macro.start] + expression + result[macro.end:]
    names.reverse()
    return result, names


def strip_macros(text: str) -> str:
    """Remove every remaining (name: ...) macro from a line."""
    result = text
    for macro in reversed(outermost(scan_macros(text))):
        result = result[:macro.start] + result[macro.end:]
    return result
