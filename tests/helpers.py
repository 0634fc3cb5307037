"""Deterministic collaborators for runtime tests."""

from typing import Any

from transmission.models import DialogueGraph


class FakeTimer:
    def __init__(self, due: int, seq: int, callback) -> None:
        self.due = due
        self.seq = seq
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Manual clock. Timers fire in (due time, scheduling order)."""

    def __init__(self) -> None:
        self.now = 0
        self._seq = 0
        self.timers: list[FakeTimer] = []

    def call_later(self, delay_ms: int, callback) -> FakeTimer:
        self._seq += 1
        timer = FakeTimer(self.now + max(0, delay_ms), self._seq, callback)
        self.timers.append(timer)
        return timer

    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def advance(self, ms: int) -> None:
        """Move the clock forward, firing every timer that falls due."""
        target = self.now + ms
        while True:
            due = [t for t in self.pending() if t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t.due, t.seq))
            self.now = timer.due
            timer.fired = True
            timer.callback()
        self.now = target

    def run_all(self, limit: int = 10_000_000) -> None:
        """Fire timers until none are pending, skipping the clock ahead."""
        self.advance(limit)


class RecordingBroadcaster:
    def __init__(self) -> None:
        self.events: list[tuple[str, str, dict[str, Any]]] = []

    def emit(self, room: str, event: str, payload: dict[str, Any]) -> None:
        self.events.append((room, event, payload))

    def names(self, room: str | None = None) -> list[str]:
        return [e for r, e, _ in self.events if room is None or r == room]

    def payloads(self, event: str, room: str | None = None) -> list[dict[str, Any]]:
        return [p for r, e, p in self.events if e == event and (room is None or r == room)]

    def clear(self) -> None:
        self.events.clear()


class GraphLibrary:
    """Loader over in-memory graph dicts; each load parses a fresh copy."""

    def __init__(self, **graphs: dict[str, Any]) -> None:
        self.graphs = graphs
        self.loads: list[str] = []

    def __call__(self, dialogue_id: str) -> DialogueGraph | None:
        self.loads.append(dialogue_id)
        data = self.graphs.get(dialogue_id)
        if data is None:
            return None
        return DialogueGraph.model_validate(data)


def graph(start: str, nodes: dict[str, dict[str, Any]], variables: dict[str, Any] | None = None) -> dict[str, Any]:
    """Build graph JSON, filling node ids from their keys."""
    return {
        "metadata": {"title": "Test", "version": "1.0.0", "startNode": start},
        "variables": variables or {},
        "nodes": {node_id: {"id": node_id, **node} for node_id, node in nodes.items()},
    }


def system(content: str, **extra: Any) -> dict[str, Any]:
    return {"type": "system", "content": content, **extra}


def narrator(content: str) -> dict[str, Any]:
    return {"type": "narrator", "content": content}
