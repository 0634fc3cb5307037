"""Message pacing.

Three modes:
  instant — every delay is 0; used by tests and for debugging a story
  fixed   — every message waits `message_delay_ms`
  dynamic — narrator and speaker lines scale with their length:
              clamp(narrator_base_ms + narrator_per_char_ms * len(content),
                    narrator_min_ms, narrator_max_ms)
            all other messages wait `system_message_delay_ms`

All values are milliseconds.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from .models import Message, NarratorMessage, PauseMessage, SystemMessage

DelayMode = Literal["instant", "fixed", "dynamic"]


class DelaySettings(BaseModel):
    mode: DelayMode = "dynamic"
    message_delay_ms: int = 2000
    system_message_delay_ms: int = 2000
    ending_delay_ms: int = 2000
    narrator_base_ms: int = 500
    narrator_per_char_ms: int = 40
    narrator_min_ms: int = 1000
    narrator_max_ms: int = 6000


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _is_length_scaled(message: Message) -> bool:
    if isinstance(message, NarratorMessage):
        return True
    return isinstance(message, SystemMessage) and bool(message.speaker)


def message_delay(message: Message, settings: DelaySettings) -> int:
    """Delay to wait before `message` is delivered."""
    if settings.mode == "instant":
        return 0
    if isinstance(message, PauseMessage):
        return max(0, message.duration)
    if settings.mode == "fixed":
        return settings.message_delay_ms

    if _is_length_scaled(message):
        length = len(message.content)
        return _clamp(
            settings.narrator_base_ms + settings.narrator_per_char_ms * length,
            settings.narrator_min_ms,
            settings.narrator_max_ms,
        )
    return settings.system_message_delay_ms


def auto_advance_delay(settings: DelaySettings) -> int:
    """Delay after the last message of a node without choices."""
    if settings.mode == "instant":
        return 0
    return settings.ending_delay_ms
