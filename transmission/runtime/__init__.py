"""Per-room dialogue runtime.

    registry = StateRegistry()
    runtime = DialogueRuntime(registry, hub, storage.load_dialogue, LoopScheduler())
    runtime.start("episode1", "game-room")
    runtime.player_choice("game-room", "main_portal_choice_1", "alice")

The runtime is synchronous; the broadcaster must not block and the
scheduler supplies every delay.
"""

from .engine import (  # noqa: F401
    HOST_USERNAME,
    NARRATOR_USERNAME,
    Broadcaster,
    DialogueRuntime,
    GraphLoader,
    RuntimeSettings,
)
from .rules import apply_effects, evaluate_condition  # noqa: F401
from .scheduler import LoopScheduler, Scheduler, TimerHandle  # noqa: F401
from .state import RuntimeState, StateRegistry  # noqa: F401
