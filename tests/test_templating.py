import logging

import pytest

from transmission.templating import TemplateError, render_content, render_template


def test_render_variables_and_nth():
    text = render_content('{{clicks}} taps, {{nth visit "one" "two" "three"}}', {"clicks": 0, "visit": 4})
    assert text == "0 taps, one"


def test_nth_without_a_number_is_empty():
    assert render_content('x{{nth mood "a" "b"}}y', {"mood": "calm"}) == "xy"


def test_render_without_placeholders_is_untouched():
    assert render_content("<strong>plain</strong>", {}) == "<strong>plain</strong>"


def test_render_template_raises_on_broken_template():
    with pytest.raises(TemplateError):
        render_template("{{> missing_partial}}", {})


def test_broken_template_keeps_raw_text(caplog):
    with caplog.at_level(logging.WARNING, logger="transmission.templating"):
        assert render_content("Hi {{> missing_partial}}", {}) == "Hi {{> missing_partial}}"
    assert "missing_partial" in caplog.text
