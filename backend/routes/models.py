"""Pydantic request models for API endpoints and WebSocket frames.

Bodies use the camelCase keys browser clients send (`dialogueId`,
`choiceId`); snake_case is accepted too.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StartBody(CamelModel):
    dialogue_id: str
    target_room: str | None = None


class ChoiceBody(CamelModel):
    choice_id: str
    username: str | None = None
    choice_text: str | None = None


class RoomBody(CamelModel):
    target_room: str | None = None


class CompileBody(CamelModel):
    source: str
    narrator_name: str | None = None
    save: bool = True


class SocketFrame(BaseModel):
    event: str
    data: dict[str, Any] = Field(default_factory=dict)
