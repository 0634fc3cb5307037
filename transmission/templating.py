"""Handlebars rendering of live dialogue variables into message content.

The compiler turns Harlowe interpolation into Handlebars:

    (print: $clicks)                 → {{clicks}}
    (nth: $visits, "first", "next")  → {{nth visits "first" "next"}}

The runtime renders each message right before it is delivered, so the text
reflects the variables at that moment of the run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import pybars

logger = logging.getLogger(__name__)

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class TemplateError(Exception):
    """Raised when a content template fails to compile or render."""


# ── Custom Handlebars helpers ────────────────────────────


def _helper_nth(this, index, *items):
    """{{nth var "a" "b" "c"}} — 1-based pick from the list, wrapping around."""
    if not items:
        return ""
    try:
        position = int(index)
    except (TypeError, ValueError):
        return ""
    return str(items[(position - 1) % len(items)])


_HELPERS: dict[str, Callable] = {
    "nth": _helper_nth,
}


def render_template(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context, helpers=_HELPERS))
    except Exception as e:
        raise TemplateError(f"Template error: {e}") from e


def render_content(content: str, variables: dict[str, Any]) -> str:
    """Render message content; on a broken template the raw text is kept."""
    if "{{" not in content:
        return content
    try:
        return render_template(content, variables)
    except TemplateError as e:
        logger.warning("Could not render message content %r: %s", content, e)
        return content
