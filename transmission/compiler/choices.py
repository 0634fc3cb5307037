"""Choice and redirect extraction from one passage.

Strategies run in a fixed order and the first one that yields choices owns
the node's whole choice list:

  a. (if: $x >= 3)[(goto: "Room")]          node-level redirect
  b. (link: "Go")[(set: ...)(goto: "Room")]  choice with effects
     (link-goto: "Go", "Room")
  c. (if: ...)[ [[A]] ](else:)[ [[B]] ]     conditional choices
  d. [[Go->Room]]                            plain links

Redirects are not choices, so (a) coexists with any other strategy. Every
region consumed by (a)-(c) is reported in `spans` so the line classifier
never sees it. Links on a narrator line are never choices; when a node has
no choices the first of them becomes its `next_node` instead.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, Field

from transmission.models import Condition

from .macros import inverted, parse_condition, parse_goto, parse_link, parse_set_effects
from .messages import is_narrator_line
from .scanner import (
    else_hook_after,
    hook_after,
    in_spans,
    outermost,
    quoted_args,
    scan_macros,
)

_LINK = re.compile(r"\[\[([^\]]+)\]\]")
_PREFIXED_LINK = re.compile(r"(You\s+(?:say\s+nothing|whisper|say)\s*:\s*)?\[\[([^\]]+)\]\]", re.IGNORECASE)
_ECHO_PREFIX = re.compile(r"You\s+(?:say\s+nothing|whisper|say)\s*:\s*$", re.IGNORECASE)
_SILENT = re.compile(r"say\s+nothing", re.IGNORECASE)


class FoundChoice(BaseModel):
    text: str
    destination: str  # passage name, not yet a node id
    echo: bool = False
    effects: dict[str, Any] | None = None
    condition: Condition | None = None


class Redirect(BaseModel):
    condition: Condition
    destination: str


class Extraction(BaseModel):
    choices: list[FoundChoice] = Field(default_factory=list)
    redirects: list[Redirect] = Field(default_factory=list)
    next_node: str | None = None  # passage name from the first narrator link
    spans: list[tuple[int, int]] = Field(default_factory=list)
    strategy: str | None = None  # "link-macro", "if-else" or "links"


def _echo_mode(prefix: str | None) -> bool:
    """A "You say:"/"You whisper:" prefix echoes the choice; "You say nothing:" does not."""
    if not prefix:
        return False
    return not _SILENT.search(prefix)


def _line_prefix(content: str, pos: int) -> tuple[int, str | None]:
    """Start and text of a player prefix directly before pos on the same line."""
    line_start = content.rfind("\n", 0, pos) + 1
    match = _ECHO_PREFIX.search(content[line_start:pos])
    if match is None:
        return pos, None
    return line_start + match.start(), match.group(0)


def _only_goto(body: str) -> str | None:
    """Destination when a hook body holds exactly one (goto:) and nothing else."""
    stripped = body.strip()
    jumps = scan_macros(stripped, ("goto", "go-to"))
    if len(jumps) != 1:
        return None
    jump = jumps[0]
    if jump.start != 0 or jump.end != len(stripped):
        return None
    return parse_goto(jump.args)


# ── (a) conditional redirects ───────────────────────────


def _extract_redirects(content: str, result: Extraction) -> None:
    for macro in outermost(scan_macros(content, ("if",))):
        hook = hook_after(content, macro.end)
        if hook is None:
            continue
        destination = _only_goto(hook.body)
        if destination is None or else_hook_after(content, hook.end) is not None:
            continue
        result.spans.append((macro.start, hook.end))
        condition = parse_condition(macro.args)
        if condition is None:
            continue
        result.redirects.append(Redirect(condition=condition, destination=destination))


# ── (b) explicit choice macros ──────────────────────────


def _effects_in(body: str) -> dict[str, Any] | None:
    effects: dict[str, Any] = {}
    for setter in scan_macros(body, ("set",)):
        effect = parse_set_effects(setter.args)
        if effect:
            effects.update(effect)
    return effects or None


def _extract_link_macros(content: str, result: Extraction) -> list[FoundChoice]:
    found: list[FoundChoice] = []
    for macro in scan_macros(content, ("link", "link-goto")):
        if in_spans(macro.start, result.spans):
            continue
        args = quoted_args(macro.args)
        if not args:
            continue
        start, prefix = _line_prefix(content, macro.start)

        if macro.name == "link-goto":
            text = args[0]
            destination = args[1] if len(args) > 1 else args[0]
            result.spans.append((start, macro.end))
            found.append(FoundChoice(
                text=text, destination=destination, echo=_echo_mode(prefix),
            ))
            continue

        hook = hook_after(content, macro.end)
        if hook is None:
            continue
        result.spans.append((start, hook.end))
        jumps = scan_macros(hook.body, ("goto", "go-to"))
        destination = parse_goto(jumps[0].args) if jumps else None
        if destination is None:
            continue
        found.append(FoundChoice(
            text=args[0],
            destination=destination,
            echo=_echo_mode(prefix),
            effects=_effects_in(hook.body),
        ))
    return found


# ── (c) conditional choice blocks ───────────────────────


def _links_in(body: str, condition: Condition) -> list[FoundChoice]:
    found = []
    for match in _PREFIXED_LINK.finditer(body):
        text, destination = parse_link(match.group(2))
        found.append(FoundChoice(
            text=text,
            destination=destination,
            echo=_echo_mode(match.group(1)),
            condition=condition,
        ))
    return found


def _extract_if_else(content: str, result: Extraction) -> list[FoundChoice]:
    found: list[FoundChoice] = []
    for macro in outermost(scan_macros(content, ("if",))):
        if in_spans(macro.start, result.spans):
            continue
        hook = hook_after(content, macro.end)
        if hook is None:
            continue
        else_hook = else_hook_after(content, hook.end)
        if else_hook is None:
            continue
        if "[[" not in hook.body and "[[" not in else_hook.body:
            continue
        condition = parse_condition(macro.args)
        if condition is None:
            continue
        found.extend(_links_in(hook.body, condition))
        found.extend(_links_in(else_hook.body, inverted(condition)))
        result.spans.append((macro.start, else_hook.end))
    return found


# ── (d) plain links ─────────────────────────────────────


def _narrator_links(content: str, narrator_name: str) -> list[tuple[int, str]]:
    """(position of "[[", destination) for every link on a narrator line."""
    links = []
    offset = 0
    for line in content.splitlines(keepends=True):
        if is_narrator_line(line, narrator_name):
            for match in _LINK.finditer(line):
                links.append((offset + match.start(), parse_link(match.group(1))[1]))
        offset += len(line)
    return links


def _extract_plain_links(
    content: str, result: Extraction, narrator_positions: set[int]
) -> list[FoundChoice]:
    found = []
    for match in _PREFIXED_LINK.finditer(content):
        if match.start(2) - 2 in narrator_positions:
            continue
        if in_spans(match.start(), result.spans):
            continue
        text, destination = parse_link(match.group(2))
        found.append(FoundChoice(text=text, destination=destination, echo=_echo_mode(match.group(1))))
    return found


def extract_choices(content: str, narrator_name: str) -> Extraction:
    """Run the extraction strategies over one passage's raw content."""
    result = Extraction()
    _extract_redirects(content, result)

    strategies = (
        ("link-macro", lambda: _extract_link_macros(content, result)),
        ("if-else", lambda: _extract_if_else(content, result)),
    )
    for name, run in strategies:
        choices = run()
        if choices:
            result.choices = choices
            result.strategy = name
            break

    narrator_links = _narrator_links(content, narrator_name)
    if not result.choices:
        choices = _extract_plain_links(content, result, {pos for pos, _ in narrator_links})
        if choices:
            result.choices = choices
            result.strategy = "links"

    if not result.choices and narrator_links:
        result.next_node = narrator_links[0][1]
    return result
