"""Tests for passage splitting, story metadata and inline markup."""

from transmission.compiler.markup import clean_display_text, format_inline_markup, strip_hook_edges
from transmission.compiler.passages import declared_defaults, parse_story, split_passages

SOURCE = """\
:: StoryTitle
The Lighthouse

:: StoryData
{"ifid": "X", "start": "Shore"}

:: StoryInit [startup]
(set: $lamp to 0)(set: $name to "Keeper")
(set: $lamp to $lamp + 1)

:: UserScript [script]
window.x = 1;

:: Story Stylesheet [stylesheet]
body { color: red; }

:: Shore [coast wet] {"position":"100,200"}
Waves.

:: Tower
Stairs.
"""


# ── Splitting ────────────────────────────────────────────


def test_split_headers_tags_and_content():
    passages = split_passages(SOURCE)
    shore = next(p for p in passages if p.name == "Shore")
    assert shore.tags == ["coast", "wet"]
    assert shore.content == "Waves."


def test_crlf_line_endings():
    source = (
        ':: StoryData\r\n{"start": "Start"}\r\n\r\n'
        ':: Start [intro] {"position":"100,100"}\r\nHello.\r\n[[End]]\r\n\r\n'
        ':: End {"position":"200,100"}\r\nBye.\r\n'
    )
    story = parse_story(source)
    assert story.start_name == "Start"
    assert [(p.name, p.tags) for p in story.story_passages] == [("Start", ["intro"]), ("End", [])]
    assert story.story_passages[0].content == "Hello.\n[[End]]"


def test_story_metadata():
    story = parse_story(SOURCE)
    assert story.title == "The Lighthouse"
    assert story.start_name == "Shore"
    assert story.warnings == []


def test_story_passages_exclude_special_and_script():
    story = parse_story(SOURCE)
    assert [p.name for p in story.story_passages] == ["Shore", "Tower"]
    assert [p.name for p in story.init_passages] == ["StoryInit"]


def test_defaults_without_metadata():
    story = parse_story(":: Main Portal\nHello\n")
    assert story.title == "Untitled Story"
    assert story.start_name == "main portal"


def test_bad_story_data_warns_and_falls_back():
    story = parse_story(':: StoryData\n{"start": \n\n:: Main Portal\nHi\n')
    assert story.start_name == "main portal"
    assert len(story.warnings) == 1
    assert "StoryData" in story.warnings[0]


def test_declared_defaults_skip_deltas():
    story = parse_story(SOURCE)
    assert declared_defaults(story.init_passages) == {"lamp": 0, "name": "Keeper"}


def test_declared_defaults_from_multi_assignment():
    story = parse_story(':: StoryInit\n(set: $a to 1, $b to "x, y", $a to $a + 1)\n')
    assert declared_defaults(story.init_passages) == {"a": 1, "b": "x, y"}


# ── Inline markup ────────────────────────────────────────


def test_format_inline_markup():
    assert format_inline_markup("''bold'' and **bold**") == "<strong>bold</strong> and <strong>bold</strong>"
    assert format_inline_markup("//soft// and *soft*") == "<em>soft</em> and <em>soft</em>"
    assert format_inline_markup("~~gone~~") == "<s>gone</s>"


def test_format_keeps_urls():
    assert format_inline_markup("see https://example.com//x//") == "see https://example.com<em>x</em>"
    assert format_inline_markup("http://a.b/c") == "http://a.b/c"


def test_clean_display_text():
    assert clean_display_text("''Run!''") == "Run!"
    assert clean_display_text("<< //Wait// >>") == "Wait"
    assert clean_display_text("==Leave==") == "Leave"


def test_strip_hook_edges():
    assert strip_hook_edges("[Hello") == "Hello"
    assert strip_hook_edges("Bye]") == "Bye"
    assert strip_hook_edges("[[Link]]") == "[[Link]]"
