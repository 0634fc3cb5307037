"""Inline markup normalisation and per-line cleanup."""

from __future__ import annotations

import re

from .macros import parse_link, strip_macros

_LINK = re.compile(r"\[\[([^\]]+)\]\]")


def format_inline_markup(text: str) -> str:
    """Convert emphasis markers to HTML for narrative content.

    ''x'' and **x** → <strong>x</strong>
    //x// and *x*   → <em>x</em>
    ~~x~~           → <s>x</s>
    """
    if not text:
        return text
    text = re.sub(r"''([^']+)''", r"<strong>\1</strong>", text)
    text = re.sub(r"(?<!:)//([^/]+)//", r"<em>\1</em>", text)
    text = re.sub(r"\*\*([^*]+)\*\*", r"<strong>\1</strong>", text)
    text = re.sub(r"(?<!\*)\*([^*]+)\*(?!\*)", r"<em>\1</em>", text)
    text = re.sub(r"~~([^~]+)~~", r"<s>\1</s>", text)
    return text.replace("''", "")


def clean_display_text(text: str) -> str:
    """Strip emphasis markers from choice button text, keeping the words."""
    text = re.sub(r"^<<\s*|\s*>>$", "", text)
    text = re.sub(r"\*\*([^*]*)\*\*", r"\1", text)
    text = re.sub(r"''([^']*)''", r"\1", text)
    text = re.sub(r"//([^/]*)//", r"\1", text)
    text = re.sub(r"~~([^~]*)~~", r"\1", text)
    text = re.sub(r"(?<!\*)\*([^*]+)\*(?!\*)", r"\1", text)
    text = re.sub(r"^==+|==+$", "", text)
    return text.strip()


def strip_html(line: str) -> str:
    line = re.sub(r"<div[^>]*>.*?</div>", "", line, flags=re.DOTALL)
    line = re.sub(r"<span[^>]*>(.*?)</span>", r"\1", line, flags=re.DOTALL)
    return re.sub(r"<[^>]+>", "", line)


def strip_hook_edges(line: str) -> str:
    """Drop unbalanced hook brackets left at the edges of a line."""
    line = line.strip()
    while line.startswith("[") and line.count("[") > line.count("]"):
        line = line[1:].lstrip()
    while line.endswith("]") and line.count("]") > line.count("["):
        line = line[:-1].rstrip()
    return line


def clean_line(line: str) -> str:
    """Remove HTML, leftover macros and stray hook brackets from one line."""
    return strip_hook_edges(strip_macros(strip_html(line)))


def links_to_text(text: str) -> str:
    """Replace every [[link]] with its visible text."""
    return _LINK.sub(lambda m: parse_link(m.group(1))[0], text)


def remove_links(text: str) -> str:
    return _LINK.sub("", text)
