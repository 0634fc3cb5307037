"""Variable effects and condition evaluation."""

from __future__ import annotations

import logging
import operator
from typing import Any

from transmission.models import Condition

logger = logging.getLogger(__name__)

_COMPARE = {
    "==": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}


def _number(text: str) -> int | float | None:
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return None


def _numeric(value: Any) -> int | float:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    return 0


def apply_effects(variables: dict[str, Any], effects: dict[str, Any] | None) -> dict[str, Any]:
    """Apply choice effects in place and return the bindings.

    "+N" / "-N" strings add to the current value (unset counts as 0);
    anything else overwrites.
    """
    for name, value in (effects or {}).items():
        if isinstance(value, str) and value[:1] in "+-":
            delta = _number(value[1:].strip())
            if delta is not None:
                current = variables.get(name, 0)
                if not isinstance(current, (int, float)) or isinstance(current, bool):
                    logger.warning("Variable '%s' is not numeric (%r); treating it as 0", name, current)
                current = _numeric(current)
                variables[name] = current + delta if value[0] == "+" else current - delta
                continue
        variables[name] = value
    return variables


def evaluate_condition(condition: Condition, variables: dict[str, Any]) -> bool:
    """True when the condition holds. Unknown operators and incomparable
    values never match."""
    compare = _COMPARE.get(condition.operator)
    if compare is None:
        logger.warning("Unknown condition operator %r on '%s'", condition.operator, condition.variable)
        return False
    current = variables.get(condition.variable, 0)
    try:
        return bool(compare(current, condition.value))
    except TypeError:
        logger.debug(
            "Cannot compare %r %s %r; condition does not match",
            current, condition.operator, condition.value,
        )
        return False
