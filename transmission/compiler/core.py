"""Compile a whole story: passages → nodes → DialogueGraph."""

from __future__ import annotations

import logging
import re

from pydantic import BaseModel, Field

from transmission.models import (
    Choice,
    DialogueGraph,
    GraphMetadata,
    Message,
    NarratorMessage,
    Node,
    NodeCondition,
    SystemMessage,
)

from .choices import Extraction, extract_choices
from .markup import clean_display_text, format_inline_markup
from .messages import build_message_sequence
from .passages import Passage, declared_defaults, parse_story
from .scanner import remove_spans

logger = logging.getLogger(__name__)

NARRATOR_NAME = "Liz"


class CompileResult(BaseModel):
    graph: DialogueGraph
    passage_count: int = 0
    node_count: int = 0
    variables: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


def node_id(name: str) -> str:
    """Passage name → node id: "Main Portal!" → "main_portal"."""
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")


def _formatted(message: Message) -> Message:
    if isinstance(message, (SystemMessage, NarratorMessage)):
        return message.model_copy(update={"content": format_inline_markup(message.content)})
    return message


def _referenced_variables(extraction: Extraction) -> set[str]:
    names: set[str] = set()
    for redirect in extraction.redirects:
        names.add(redirect.condition.variable)
    for found in extraction.choices:
        if found.condition is not None:
            names.add(found.condition.variable)
        names.update(found.effects or {})
    return names


def compile_passage(passage: Passage, narrator_name: str, variables: set[str]) -> Node:
    """Build one node. Variables the passage references are added to `variables`."""
    nid = node_id(passage.name)
    extraction = extract_choices(passage.content, narrator_name)
    variables.update(_referenced_variables(extraction))

    body = remove_spans(passage.content, extraction.spans, "\n")
    messages, _ = build_message_sequence(body, narrator_name, variables)
    messages = [_formatted(m) for m in messages]

    choices = [
        Choice(
            id=f"{nid}_choice_{index}",
            text=format_inline_markup(found.text) if found.echo else None,
            display_text=format_inline_markup(clean_display_text(found.text)),
            next_node=node_id(found.destination),
            effects=found.effects,
            conditions=found.condition,
        )
        for index, found in enumerate(extraction.choices, start=1)
    ]
    conditions = [
        NodeCondition(
            variable=redirect.condition.variable,
            operator=redirect.condition.operator,
            value=redirect.condition.value,
            next_node=node_id(redirect.destination),
        )
        for redirect in extraction.redirects
    ]
    next_node = node_id(extraction.next_node) if extraction.next_node and not choices else None

    if not messages and not choices:
        messages = [SystemMessage(content=passage.name)]

    ending = not choices and not next_node and not conditions
    return Node(
        id=nid,
        type="ending" if ending else "narrative",
        message_sequence=messages,
        choices=choices,
        next_node=next_node,
        conditions=conditions or None,
    )


def compile_story(source: str, *, narrator_name: str = NARRATOR_NAME) -> CompileResult:
    """Compile Twee source into a dialogue graph.

    Never raises on odd markup: unparseable conditions are dropped,
    malformed story metadata falls back to defaults with a warning.
    """
    story = parse_story(source)
    warnings = list(story.warnings)
    discovered: set[str] = set()
    nodes: dict[str, Node] = {}

    for passage in story.story_passages:
        node = compile_passage(passage, narrator_name, discovered)
        if node.id in nodes:
            message = f"Passage '{passage.name}' maps to duplicate node id '{node.id}'; later passage wins"
            logger.warning(message)
            warnings.append(message)
        nodes[node.id] = node

    variables = declared_defaults(story.init_passages)
    for name in sorted(discovered):
        variables.setdefault(name, 0)

    graph = DialogueGraph(
        metadata=GraphMetadata(title=story.title, start_node=node_id(story.start_name)),
        variables=variables,
        nodes=nodes,
    )
    logger.debug(
        "Compiled %d passages into %d nodes (start: %s)",
        len(story.story_passages), len(nodes), graph.start_node,
    )
    return CompileResult(
        graph=graph,
        passage_count=len(story.story_passages),
        node_count=len(nodes),
        variables=sorted(variables),
        warnings=warnings,
    )
