"""Tests for choice and redirect extraction."""

from transmission.compiler.choices import extract_choices


def extract(content):
    return extract_choices(content, "Liz")


# ── Plain links ──────────────────────────────────────────


def test_plain_links_in_order():
    result = extract("Text.\n[[Go north->North]]\n[[South]]\n[[West Wing<-Turn left]]")
    assert result.strategy == "links"
    assert [(c.text, c.destination) for c in result.choices] == [
        ("Go north", "North"),
        ("South", "South"),
        ("Turn left", "West Wing"),
    ]
    assert not any(c.echo for c in result.choices)


def test_prefixed_links_echo_unless_silent():
    result = extract("You say: [[Hello?->Reply]]\nYou whisper: [[psst->Reply]]\nYou say nothing: [[...->Reply]]")
    assert [c.echo for c in result.choices] == [True, True, False]


def test_narrator_links_become_next_node():
    result = extract("Liz: Follow me.\nLiz: [[Come along->Hall]]\nLiz: [[Other->Elsewhere]]")
    assert result.choices == []
    assert result.next_node == "Hall"


def test_narrator_links_ignored_when_choices_exist():
    result = extract("Liz: [[Come->Hall]]\n[[Stay->Room]]")
    assert [c.destination for c in result.choices] == ["Room"]
    assert result.next_node is None


# ── Link macros ──────────────────────────────────────────


def test_link_macro_with_effects():
    result = extract('(link: "Tap")[(set: $clicks to $clicks + 1)(set: $seen to true)(goto: "Flicker")]')
    assert result.strategy == "link-macro"
    [choice] = result.choices
    assert choice.text == "Tap"
    assert choice.destination == "Flicker"
    assert choice.effects == {"clicks": "+1", "seen": True}
    assert result.spans == [(0, len('(link: "Tap")[(set: $clicks to $clicks + 1)(set: $seen to true)(goto: "Flicker")]'))]


def test_link_macro_with_multi_assignment():
    result = extract('(link: "Go")[(set: $a to $a + 1, $b to 2)(goto: "End")]')
    [choice] = result.choices
    assert choice.effects == {"a": "+1", "b": 2}
    assert choice.destination == "End"


def test_link_goto_forms():
    result = extract('(link-goto: "Leave", "Exit")\n(link-goto: "Exit")')
    assert [(c.text, c.destination) for c in result.choices] == [("Leave", "Exit"), ("Exit", "Exit")]


def test_link_macro_span_includes_player_prefix():
    content = 'Intro.\nYou say: (link: "Hi")[(goto: "Reply")]'
    result = extract(content)
    assert result.choices[0].echo is True
    assert result.spans == [(content.index("You say:"), len(content))]


def test_link_macros_take_precedence_over_plain_links():
    result = extract('(link: "A")[(goto: "Room A")]\n[[B->Room B]]')
    assert [c.destination for c in result.choices] == ["Room A"]


def test_link_without_goto_is_consumed_but_not_a_choice():
    result = extract('(link: "Look")[You see nothing.]\n[[Leave->Out]]')
    assert result.strategy == "links"
    assert [c.destination for c in result.choices] == ["Out"]


# ── Conditional blocks ───────────────────────────────────


def test_if_else_choices_get_complementary_conditions():
    result = extract(
        "(if: $trust >= 2)[You say: [[I trust you->Trust]]](else:)[You say nothing: [[Stay silent->Static]]]"
    )
    assert result.strategy == "if-else"
    trusted, silent = result.choices
    assert (trusted.condition.operator, trusted.condition.value, trusted.echo) == (">=", 2, True)
    assert (silent.condition.operator, silent.condition.value, silent.echo) == ("<", 2, False)


def test_if_else_with_unparseable_condition_falls_back_to_links():
    result = extract("(if: $a > 1 and $b > 1)[ [[A]] ](else:)[ [[B]] ]")
    assert result.strategy == "links"
    assert [c.condition for c in result.choices] == [None, None]


# ── Redirects ────────────────────────────────────────────


def test_redirect_coexists_with_choices():
    result = extract('(if: $clicks >= 3)[(goto: "Overload")]\nText.\n[[Again->Flicker]]')
    [redirect] = result.redirects
    assert redirect.destination == "Overload"
    assert (redirect.condition.variable, redirect.condition.operator, redirect.condition.value) == ("clicks", ">=", 3)
    assert [c.destination for c in result.choices] == ["Flicker"]


def test_redirects_keep_document_order():
    result = extract('(if: $x > 5)[(goto: "High")]\n(if: $x > 1)[(goto: "Mid")]\n[[Low]]')
    assert [r.destination for r in result.redirects] == ["High", "Mid"]


def test_if_with_more_than_goto_is_not_a_redirect():
    result = extract('(if: $x > 1)[Hi (goto: "Room")]\n[[Stay]]')
    assert result.redirects == []


def test_unparseable_redirect_is_dropped():
    result = extract('(if: $a is 1 or $b is 2)[(goto: "Room")]\n[[Stay]]')
    assert result.redirects == []
    assert len(result.spans) == 1
