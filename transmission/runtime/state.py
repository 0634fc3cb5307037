"""Per-room dialogue state and the registry that owns it."""

from __future__ import annotations

from typing import Any

from transmission.models import DialogueGraph

from .scheduler import TimerHandle


class RuntimeState:
    """One dialogue run in one room.

    Idle rooms have no state at all. A state is Active from start() until
    end(); an ended state lingers until its cleanup timer removes it.
    """

    def __init__(self, dialogue_id: str, graph: DialogueGraph) -> None:
        self.dialogue_id = dialogue_id
        self.dialogue_data = graph
        self.active = True
        self.current_node: str = graph.start_node
        self.variables: dict[str, Any] = graph.default_variables()
        self.pending_timers: list[TimerHandle] = []
        self.dialogue_data_synced = False
        self.deferred_departures: list[str] = []
        self.cleanup_timer: TimerHandle | None = None

    def reset_variables(self) -> None:
        self.variables = self.dialogue_data.default_variables()

    def cancel_timers(self) -> None:
        for handle in self.pending_timers:
            handle.cancel()
        self.pending_timers.clear()

    def __repr__(self) -> str:
        return (
            f"RuntimeState(dialogue_id={self.dialogue_id!r}, active={self.active}, "
            f"current_node={self.current_node!r})"
        )


class StateRegistry:
    """Room id → RuntimeState. At most one state per room."""

    def __init__(self) -> None:
        self._states: dict[str, RuntimeState] = {}

    def get(self, room: str) -> RuntimeState | None:
        return self._states.get(room)

    def set(self, room: str, state: RuntimeState) -> None:
        self._states[room] = state

    def delete(self, room: str) -> None:
        self._states.pop(room, None)

    def rooms(self) -> list[str]:
        return list(self._states)

    def __contains__(self, room: str) -> bool:
        return room in self._states

    def __len__(self) -> int:
        return len(self._states)
