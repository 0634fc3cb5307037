import asyncio

from tests.helpers import graph, system
from transmission.models import DialogueGraph
from transmission.runtime import LoopScheduler, RuntimeState, StateRegistry

GRAPH = DialogueGraph.model_validate(
    graph("a", {"a": {"type": "ending", "messageSequence": [system("x")]}}, variables={"bag": [], "n": 1})
)


class TestRuntimeState:
    def test_starts_active_at_start_node(self) -> None:
        state = RuntimeState("demo", GRAPH)
        assert state.active
        assert state.current_node == "a"
        assert state.variables == {"bag": [], "n": 1}
        assert not state.dialogue_data_synced

    def test_reset_variables_copies_defaults(self) -> None:
        state = RuntimeState("demo", GRAPH)
        state.variables["bag"].append("key")
        state.variables["n"] = 9
        state.reset_variables()
        assert state.variables == {"bag": [], "n": 1}
        assert GRAPH.variables == {"bag": [], "n": 1}

    def test_cancel_timers(self) -> None:
        class Handle:
            cancelled = False

            def cancel(self) -> None:
                self.cancelled = True

        state = RuntimeState("demo", GRAPH)
        handles = [Handle(), Handle()]
        state.pending_timers.extend(handles)
        state.cancel_timers()
        assert all(h.cancelled for h in handles)
        assert state.pending_timers == []


class TestStateRegistry:
    def test_one_state_per_room(self) -> None:
        registry = StateRegistry()
        first, second = RuntimeState("a", GRAPH), RuntimeState("b", GRAPH)
        registry.set("room", first)
        registry.set("room", second)
        assert registry.get("room") is second
        assert len(registry) == 1
        assert registry.rooms() == ["room"]

    def test_delete(self) -> None:
        registry = StateRegistry()
        registry.set("room", RuntimeState("a", GRAPH))
        registry.delete("room")
        registry.delete("room")
        assert "room" not in registry
        assert registry.get("room") is None


async def test_loop_scheduler_fires_and_cancels():
    fired = []
    scheduler = LoopScheduler()
    scheduler.call_later(0, lambda: fired.append("now"))
    cancelled = scheduler.call_later(0, lambda: fired.append("never"))
    cancelled.cancel()
    scheduler.call_later(-50, lambda: fired.append("negative"))
    await asyncio.sleep(0.01)
    assert fired == ["now", "negative"]
