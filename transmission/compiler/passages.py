"""Twee passage splitting and story metadata.

    :: StoryTitle
    Episode One

    :: StoryData
    {"start": "Main Portal"}

    :: Main Portal [tag another-tag] {"position": "100,100"}
    Passage text...

A passage spans from its header line to the next header or end of file.
StoryTitle, StoryData, script/stylesheet passages and init passages
(`StoryInit`, or tagged `startup`) never become dialogue nodes.
"""

from __future__ import annotations

import json
import logging
import re

from pydantic import BaseModel, Field

from .macros import parse_set_effects
from .scanner import scan_macros

logger = logging.getLogger(__name__)

DEFAULT_START = "main portal"
DEFAULT_TITLE = "Untitled Story"

_HEADER = re.compile(
    r"^::[ \t]*(?P<name>.+?)(?:[ \t]+\[(?P<tags>[^\]]*)\])?(?:[ \t]+\{[^}]*\})?[ \t]*$",
    re.MULTILINE,
)
_SPECIAL_NAMES = {"StoryTitle", "StoryData"}
_SCRIPT_PREFIXES = ("StoryScript", "StoryStylesheet", "UserScript", "UserStylesheet")
_SCRIPT_TAGS = {"script", "stylesheet", "style"}
_INIT_NAMES = {"StoryInit"}
_INIT_TAGS = {"startup"}


class Passage(BaseModel):
    name: str
    tags: list[str] = Field(default_factory=list)
    content: str = ""


class StorySource(BaseModel):
    """A markup document split into passages plus its story metadata."""

    title: str = DEFAULT_TITLE
    start_name: str = DEFAULT_START
    passages: list[Passage] = Field(default_factory=list)
    story_passages: list[Passage] = Field(default_factory=list)
    init_passages: list[Passage] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


def _clean_name(raw: str) -> str:
    name = raw.strip()
    if len(name) >= 2 and name[0] == name[-1] and name[0] in "\"'":
        name = name[1:-1]
    return name.strip()


def split_passages(source: str) -> list[Passage]:
    source = source.replace("\r\n", "\n")
    headers = list(_HEADER.finditer(source))
    passages: list[Passage] = []
    for i, header in enumerate(headers):
        end = headers[i + 1].start() if i + 1 < len(headers) else len(source)
        tags = (header.group("tags") or "").split()
        passages.append(Passage(
            name=_clean_name(header.group("name")),
            tags=tags,
            content=source[header.end():end].strip(),
        ))
    return passages


def _is_script(passage: Passage) -> bool:
    if passage.name.startswith(_SCRIPT_PREFIXES):
        return True
    return any(tag.lower() in _SCRIPT_TAGS for tag in passage.tags)


def _is_init(passage: Passage) -> bool:
    if passage.name in _INIT_NAMES:
        return True
    return any(tag.lower() in _INIT_TAGS for tag in passage.tags)


def parse_story(source: str) -> StorySource:
    story = StorySource(passages=split_passages(source))

    for passage in story.passages:
        if passage.name == "StoryTitle" and passage.content:
            story.title = passage.content.strip()
        elif passage.name == "StoryData":
            try:
                data = json.loads(passage.content)
                if not isinstance(data, dict):
                    raise ValueError("StoryData is not a JSON object")
            except ValueError as e:
                message = f"Could not parse StoryData ({e}); using start '{DEFAULT_START}'"
                logger.warning(message)
                story.warnings.append(message)
            else:
                story.start_name = str(data.get("start") or DEFAULT_START)

    for passage in story.passages:
        if passage.name in _SPECIAL_NAMES or _is_script(passage):
            continue
        if _is_init(passage):
            story.init_passages.append(passage)
        else:
            story.story_passages.append(passage)

    return story


def declared_defaults(passages: list[Passage]) -> dict[str, object]:
    """Variable defaults from `(set: $var to value)` in init passages.

    Only absolute assignments declare a default; deltas are ignored.
    """
    defaults: dict[str, object] = {}
    for passage in passages:
        for macro in scan_macros(passage.content, ("set",)):
            for name, value in (parse_set_effects(macro.args) or {}).items():
                if isinstance(value, str) and value[:1] in "+-":
                    continue
                defaults[name] = value
    return defaults
