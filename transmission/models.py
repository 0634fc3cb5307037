"""Dialogue graph models.

The graph is the single contract between the compiler and the runtime.
Pydantic is used for validation and serialisation at every boundary: graph
files on disk, the `dialogueData` sent to clients, and request bodies.

Python attributes are snake_case; the JSON form uses the camelCase names
clients and graph files expect (`messageSequence`, `nextNode`, `startNode`,
`displayText`). Optional members listed in `omit_when_none` are left out of
the dump entirely instead of being written as null.

Graph file layout:

    {
      "metadata": {"title": ..., "version": ..., "startNode": ...},
      "variables": {"clicks": 0, ...},
      "nodes": {
        "<id>": {
          "id": ..., "type": "narrative" | "ending",
          "messageSequence": [{"type": "system", "content": ...}, ...],
          "choices": [{"id", "text", "displayText", "nextNode",
                       "effects"?, "conditions"?}],
          "nextNode"?: ..., "conditions"?: [{..., "nextNode"}]
        }
      }
    }
"""

from __future__ import annotations

import copy
from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    model_serializer,
    model_validator,
)
from pydantic.alias_generators import to_camel

NodeType = Literal["narrative", "ending"]

OPERATORS = ("==", "!=", ">", ">=", "<", "<=")


class GraphModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    omit_when_none: ClassVar[tuple[str, ...]] = ()

    @model_serializer(mode="wrap")
    def serialize_without_absent(self, handler):
        data = handler(self)
        for name in self.omit_when_none:
            for key in (name, to_camel(name)):
                if key in data and data[key] is None:
                    del data[key]
        return data


# ---------------------------------------------------------------------------
# Messages, tagged by "type"
# ---------------------------------------------------------------------------

class SystemMessage(GraphModel):
    """Stage direction, or a third-party speaker line when `speaker` is set."""

    omit_when_none: ClassVar[tuple[str, ...]] = ("speaker",)

    type: Literal["system"] = "system"
    content: str
    speaker: str | None = None


class NarratorMessage(GraphModel):
    type: Literal["narrator"] = "narrator"
    content: str


class ImageMessage(GraphModel):
    type: Literal["image"] = "image"
    url: str
    alt: str = "Image"


class PauseMessage(GraphModel):
    type: Literal["pause"] = "pause"
    duration: int = 0  # ms


class UnknownMessage(GraphModel):
    """Any message type this version does not know; kept so the graph loads."""

    model_config = ConfigDict(extra="allow")

    type: str = "unknown"


_MESSAGE_TAGS = {"system", "narrator", "image", "pause"}


def _message_tag(value: Any) -> str:
    if isinstance(value, dict):
        kind = value.get("type")
    else:
        kind = getattr(value, "type", None)
    return kind if kind in _MESSAGE_TAGS else "unknown"


Message = Annotated[
    Union[
        Annotated[SystemMessage, Tag("system")],
        Annotated[NarratorMessage, Tag("narrator")],
        Annotated[ImageMessage, Tag("image")],
        Annotated[PauseMessage, Tag("pause")],
        Annotated[UnknownMessage, Tag("unknown")],
    ],
    Discriminator(_message_tag),
]


# ---------------------------------------------------------------------------
# Conditions and choices
# ---------------------------------------------------------------------------

class Condition(GraphModel):
    """`variable operator value`, e.g. clicks >= 3.

    The operator is a plain string so a graph with an operator this version
    does not understand still loads; such a condition never matches.
    """

    variable: str
    operator: str
    value: Any = None


class NodeCondition(Condition):
    """A node-level redirect: when the condition holds, jump to `next_node`."""

    next_node: str


class Choice(GraphModel):
    omit_when_none: ClassVar[tuple[str, ...]] = ("effects", "conditions")

    id: str
    text: str | None = None  # None = silent, never echoed to chat
    display_text: str = ""
    next_node: str
    effects: dict[str, Any] | None = None
    conditions: Condition | None = None


# ---------------------------------------------------------------------------
# Nodes and the graph
# ---------------------------------------------------------------------------

class Node(GraphModel):
    omit_when_none: ClassVar[tuple[str, ...]] = ("next_node", "conditions")

    id: str
    type: NodeType = "narrative"
    message_sequence: list[Message] = Field(default_factory=list)
    choices: list[Choice] = Field(default_factory=list)
    next_node: str | None = None
    conditions: list[NodeCondition] | None = None

    @model_validator(mode="before")
    @classmethod
    def upgrade_legacy_shape(cls, data: Any) -> Any:
        """Older graphs carried `text` + `narratorMessages` instead of a sequence."""
        if not isinstance(data, dict):
            return data
        if "messageSequence" in data or "message_sequence" in data:
            return data
        if "text" not in data and "narratorMessages" not in data:
            return data

        data = dict(data)
        sequence: list[dict[str, Any]] = []
        text = data.pop("text", None)
        if text:
            sequence.append({"type": "system", "content": text})
        for entry in data.pop("narratorMessages", None) or []:
            if isinstance(entry, dict):
                content = entry.get("content") or entry.get("text") or ""
            else:
                content = str(entry)
            if content:
                sequence.append({"type": "narrator", "content": content})
        data["messageSequence"] = sequence
        return data

    @property
    def is_ending(self) -> bool:
        return self.type == "ending"


class GraphMetadata(GraphModel):
    title: str = "Untitled Story"
    version: str = "1.0.0"
    start_node: str = ""


class DialogueGraph(GraphModel):
    metadata: GraphMetadata = Field(default_factory=GraphMetadata)
    variables: dict[str, Any] = Field(default_factory=dict)
    nodes: dict[str, Node] = Field(default_factory=dict)

    @property
    def start_node(self) -> str:
        return self.metadata.start_node

    def node(self, node_id: str | None) -> Node | None:
        if node_id is None:
            return None
        return self.nodes.get(node_id)

    def default_variables(self) -> dict[str, Any]:
        """Fresh copy of the declared defaults (never shares mutable values)."""
        return copy.deepcopy(self.variables)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)
