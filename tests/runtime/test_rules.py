import logging

import pytest

from transmission.models import Condition
from transmission.runtime import apply_effects, evaluate_condition


# ── apply_effects ────────────────────────────────────────────


def test_increment_and_decrement():
    variables = {"clicks": 2, "trust": 5}
    apply_effects(variables, {"clicks": "+1", "trust": "-2"})
    assert variables == {"clicks": 3, "trust": 3}
    assert isinstance(variables["clicks"], int)


def test_increment_unset_variable_starts_from_zero():
    variables = {}
    apply_effects(variables, {"visits": "+3"})
    assert variables == {"visits": 3}


def test_fractional_delta():
    variables = {"heat": 1}
    apply_effects(variables, {"heat": "+0.5"})
    assert variables["heat"] == 1.5


@pytest.mark.parametrize("deltas", [
    ["+1", "+1", "+1"],
    ["+5", "-2", "+1", "-7"],
    ["-3", "+0.5", "+2.5"],
])
def test_deltas_in_sequence_equal_the_net_delta(deltas):
    stepwise = {"clicks": 2}
    for delta in deltas:
        apply_effects(stepwise, {"clicks": delta})

    net = sum(float(d) for d in deltas)
    once = apply_effects({"clicks": 2}, {"clicks": f"{net:+g}"})
    assert stepwise == once


def test_plain_values_overwrite():
    variables = {"name": "old", "count": 9}
    apply_effects(variables, {"name": "new", "count": 0, "flag": True})
    assert variables == {"name": "new", "count": 0, "flag": True}


def test_non_numeric_delta_string_overwrites():
    variables = {"mood": "calm"}
    apply_effects(variables, {"mood": "-grumpy"})
    assert variables["mood"] == "-grumpy"


def test_delta_on_non_numeric_value_warns(caplog):
    variables = {"mood": "calm"}
    with caplog.at_level(logging.WARNING, logger="transmission.runtime.rules"):
        apply_effects(variables, {"mood": "+1"})
    assert variables["mood"] == 1
    assert "not numeric" in caplog.text


def test_no_effects_is_noop():
    variables = {"x": 1}
    assert apply_effects(variables, None) is variables
    assert variables == {"x": 1}


# ── evaluate_condition ───────────────────────────────────────


@pytest.mark.parametrize("operator, value, expected", [
    ("==", 3, True),
    ("!=", 3, False),
    (">", 2, True),
    (">=", 3, True),
    ("<", 3, False),
    ("<=", 3, True),
])
def test_operators(operator, value, expected):
    condition = Condition(variable="clicks", operator=operator, value=value)
    assert evaluate_condition(condition, {"clicks": 3}) is expected


def test_unset_variable_counts_as_zero():
    condition = Condition(variable="missing", operator="<", value=1)
    assert evaluate_condition(condition, {}) is True


def test_unknown_operator_never_matches(caplog):
    condition = Condition(variable="x", operator="~=", value=1)
    with caplog.at_level(logging.WARNING, logger="transmission.runtime.rules"):
        assert evaluate_condition(condition, {"x": 1}) is False
    assert "~=" in caplog.text


def test_incomparable_values_do_not_match():
    condition = Condition(variable="name", operator=">", value=3)
    assert evaluate_condition(condition, {"name": "liz"}) is False


def test_string_equality():
    condition = Condition(variable="path", operator="==", value="north")
    assert evaluate_condition(condition, {"path": "north"}) is True
