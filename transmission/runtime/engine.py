"""Dialogue runtime: drives one DialogueGraph per room.

Room states: Idle (no RuntimeState) → Active → Ended → Idle (after cleanup).

Every operation is synchronous and runs to completion. Pacing is expressed
as scheduler callbacks recorded on the owning state; each callback first
checks that the room still holds that same state and that it is Active, so
a callback surviving a restart or end never acts on the new run.

Outbound events (payload keys camelCase):

    dialogue-started    {dialogueId}
    dialogue-message    {type, content, speaker?, url?, alt?, username, timestamp}
    chat                {username, text, timestamp}      echoed choice text
    dialogue-sync       {active, currentNode, variables, dialogueId, nodeData,
                         dialogueData?}                  full graph on first sync
    player-choice-made  {nodeId, choiceId, username, isEnding}
    dialogue-restart    {dialogueId}
    dialogue-end        {reason}
    user-left           {username}                       deferred host departure
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Protocol

from pydantic import BaseModel, Field

from transmission.delays import DelaySettings, auto_advance_delay, message_delay
from transmission.errors import DialogueNotFound
from transmission.models import (
    DialogueGraph,
    ImageMessage,
    Message,
    NarratorMessage,
    Node,
    PauseMessage,
    SystemMessage,
)
from transmission.templating import render_content
from transmission.validator import validate_graph

from .rules import apply_effects, evaluate_condition
from .scheduler import Scheduler
from .state import RuntimeState, StateRegistry

logger = logging.getLogger(__name__)

NARRATOR_USERNAME = "Liz"
HOST_USERNAME = "Symoné"
SYSTEM_USERNAME = "System"


class Broadcaster(Protocol):
    def emit(self, room: str, event: str, payload: dict[str, Any]) -> None: ...


GraphLoader = Callable[[str], DialogueGraph | None]


class RuntimeSettings(BaseModel):
    delays: DelaySettings = Field(default_factory=DelaySettings)
    narrator_name: str = NARRATOR_USERNAME
    system_name: str = SYSTEM_USERNAME
    host_username: str = HOST_USERNAME
    state_cleanup_ms: int = 5 * 60 * 1000
    max_redirect_depth: int = 50
    choice_gap_ms: int = 2000


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class DialogueRuntime:
    def __init__(
        self,
        registry: StateRegistry,
        broadcaster: Broadcaster,
        loader: GraphLoader,
        scheduler: Scheduler,
        settings: RuntimeSettings | None = None,
    ) -> None:
        self.registry = registry
        self.broadcaster = broadcaster
        self.loader = loader
        self.scheduler = scheduler
        self.settings = settings or RuntimeSettings()

    # ── Lifecycle ────────────────────────────────────────

    def start(self, dialogue_id: str, room: str) -> bool:
        """Start a dialogue in a room. Returns False if one is already active.

        Raises DialogueNotFound or GraphValidationError; the room stays Idle.
        """
        current = self.registry.get(room)
        if current is not None and current.active:
            logger.info(
                "Dialogue '%s' already active in room %s; ignoring start of '%s'",
                current.dialogue_id, room, dialogue_id,
            )
            return False

        graph = self.loader(dialogue_id)
        if graph is None:
            raise DialogueNotFound(f"Dialogue '{dialogue_id}' not found")
        validate_graph(graph)

        if current is not None and current.cleanup_timer is not None:
            current.cleanup_timer.cancel()

        state = RuntimeState(dialogue_id, graph)
        self.registry.set(room, state)
        logger.info("Started dialogue '%s' in room %s at node %s", dialogue_id, room, state.current_node)
        self._emit(room, "dialogue-started", {"dialogueId": dialogue_id})
        self.process_node(room)
        return True

    def restart(self, room: str) -> bool:
        state = self._active_state(room)
        if state is None:
            return False
        state.cancel_timers()
        state.current_node = state.dialogue_data.start_node
        state.reset_variables()
        state.dialogue_data_synced = False
        logger.info("Restarted dialogue '%s' in room %s", state.dialogue_id, room)
        self._emit(room, "dialogue-restart", {"dialogueId": state.dialogue_id})
        self.process_node(room)
        return True

    def end_manual(self, room: str) -> bool:
        state = self._active_state(room)
        if state is None:
            return False
        state.cancel_timers()
        self.end(room, "manual")
        return True

    def end(self, room: str, reason: str = "completed") -> None:
        state = self.registry.get(room)
        if state is None or not state.active:
            return
        state.cancel_timers()
        state.active = False
        state.reset_variables()
        logger.info("Dialogue '%s' ended in room %s (%s)", state.dialogue_id, room, reason)
        self._emit(room, "dialogue-end", {"reason": reason})

        for username in state.deferred_departures:
            self._emit(room, "user-left", {"username": username})
        state.deferred_departures.clear()

        state.cleanup_timer = self.scheduler.call_later(
            self.settings.state_cleanup_ms, lambda: self._cleanup(room, state)
        )

    def _cleanup(self, room: str, state: RuntimeState) -> None:
        if self.registry.get(room) is state and not state.active:
            self.registry.delete(room)
            logger.debug("Cleaned up dialogue state for room %s", room)

    def status(self, room: str) -> dict[str, Any]:
        state = self.registry.get(room)
        if state is None:
            return {"active": False, "dialogueId": None, "currentNode": None}
        return {
            "active": state.active,
            "dialogueId": state.dialogue_id,
            "currentNode": state.current_node,
        }

    def participant_left(self, room: str, username: str) -> bool:
        """True when the departure notice must be held back until the run ends."""
        state = self._active_state(room, quiet=True)
        if state is None or username != self.settings.host_username:
            return False
        if username not in state.deferred_departures:
            state.deferred_departures.append(username)
        logger.debug("Deferring departure of %s from room %s", username, room)
        return True

    # ── Choices ──────────────────────────────────────────

    def player_choice(
        self, room: str, choice_id: str, username: str, choice_text: str | None = None
    ) -> bool:
        state = self._active_state(room)
        if state is None:
            logger.info("Ignoring choice %s in room %s: no active dialogue", choice_id, room)
            return False

        node = state.dialogue_data.node(state.current_node)
        choice = None
        if node is not None:
            choice = next((c for c in node.choices if c.id == choice_id), None)
        if choice is None:
            logger.info(
                "Ignoring unknown choice %s at node %s in room %s",
                choice_id, state.current_node, room,
            )
            return False
        if choice.conditions is not None and not evaluate_condition(choice.conditions, state.variables):
            logger.info("Ignoring choice %s in room %s: condition not met", choice_id, room)
            return False

        self._emit(room, "player-choice-made", {
            "nodeId": node.id,
            "choiceId": choice.id,
            "username": username,
            "isEnding": node.is_ending,
        })

        state.cancel_timers()
        apply_effects(state.variables, choice.effects)
        state.current_node = choice.next_node

        echo = None
        if choice.text is not None:
            echo = choice_text or choice.text
        self.process_node(room, username=username, choice_text=echo)
        return True

    # ── Node processing ──────────────────────────────────

    def process_node(
        self, room: str, *, username: str | None = None, choice_text: str | None = None
    ) -> None:
        """Enter the room's current node.

        Redirects and message-less advances loop here instead of recursing;
        more than `max_redirect_depth` hops in one pass stops the run where
        it stands.
        """
        state = self._active_state(room, quiet=True)
        if state is None:
            return
        graph = state.dialogue_data
        limit = self.settings.max_redirect_depth
        depth = 0

        while True:
            if depth > limit:
                logger.error(
                    "Redirect depth %d exceeded at node %s in room %s; likely cyclic condition",
                    limit, state.current_node, room,
                )
                return

            node = graph.node(state.current_node)
            if node is None:
                logger.warning("Node %s not found in dialogue '%s'", state.current_node, state.dialogue_id)
                return

            if node.id == graph.start_node:
                state.reset_variables()

            target = self._redirect_target(node, state)
            if target is not None:
                logger.debug("Node %s redirects to %s", node.id, target)
                state.current_node = target
                depth += 1
                continue

            if choice_text and username:
                self._emit(room, "chat", {
                    "username": username,
                    "text": render_content(choice_text, state.variables),
                    "timestamp": _timestamp(),
                })
                choice_text = None

            if node.message_sequence:
                self._schedule_sequence(room, state, node, after_choice=username is not None)
                return
            if node.choices:
                self._sync(room, state)
                return
            if node.is_ending:
                self.end(room, "completed")
                return
            if node.next_node:
                state.current_node = node.next_node
                depth += 1
                continue

            logger.warning(
                "Node %s has no messages, choices or nextNode and is not an ending; "
                "dialogue stalled in room %s", node.id, room,
            )
            return

    def _redirect_target(self, node: Node, state: RuntimeState) -> str | None:
        for condition in node.conditions or []:
            if evaluate_condition(condition, state.variables):
                return condition.next_node
        return None

    # ── Sequencing ───────────────────────────────────────

    def _schedule_sequence(
        self, room: str, state: RuntimeState, node: Node, *, after_choice: bool
    ) -> None:
        state.cancel_timers()
        delays = self.settings.delays
        at = 0
        if after_choice and delays.mode != "instant":
            at = self.settings.choice_gap_ms
        last_at = at
        timeline: list[tuple[int, Message]] = []

        for message in node.message_sequence:
            if isinstance(message, PauseMessage):
                at += message_delay(message, delays)
                last_at = at
                continue
            if not isinstance(message, (SystemMessage, NarratorMessage, ImageMessage)):
                logger.warning("Skipping unknown message type %r in node %s", message.type, node.id)
                continue
            timeline.append((at, message))
            last_at = at
            at += message_delay(message, delays)

        # The final message advances the run from its own callback.
        final = None
        if timeline and timeline[-1][0] == last_at:
            final = timeline.pop()[1]
        for when, message in timeline:
            self._later(room, state, when, lambda m=message: self._deliver(room, state, m))
        if final is None:
            self._later(room, state, last_at, lambda: self._finish_sequence(room, state, node))
        else:
            self._later(room, state, last_at, lambda: self._deliver_and_finish(room, state, node, final))

    def _later(self, room: str, state: RuntimeState, delay_ms: int, action: Callable[[], None]) -> None:
        def fire() -> None:
            if self.registry.get(room) is not state or not state.active:
                return
            try:
                action()
            except Exception:
                logger.exception("Dialogue callback failed in room %s", room)

        state.pending_timers.append(self.scheduler.call_later(delay_ms, fire))

    def _deliver(self, room: str, state: RuntimeState, message: Message) -> None:
        self._emit(room, "dialogue-message", self._message_payload(message, state.variables))

    def _deliver_and_finish(self, room: str, state: RuntimeState, node: Node, message: Message) -> None:
        self._deliver(room, state, message)
        self._finish_sequence(room, state, node)

    def _message_payload(self, message: Message, variables: dict[str, Any]) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": message.type}
        if isinstance(message, ImageMessage):
            payload["url"] = message.url
            payload["alt"] = message.alt
            payload["username"] = self.settings.system_name
        elif isinstance(message, NarratorMessage):
            payload["content"] = render_content(message.content, variables)
            payload["username"] = self.settings.narrator_name
        else:
            payload["content"] = render_content(message.content, variables)
            if message.speaker:
                payload["speaker"] = message.speaker
            payload["username"] = self.settings.system_name
        payload["timestamp"] = _timestamp()
        return payload

    def _finish_sequence(self, room: str, state: RuntimeState, node: Node) -> None:
        if node.choices:
            self._sync(room, state)
            return
        self._later(room, state, auto_advance_delay(self.settings.delays),
                    lambda: self._advance(room, state, node))

    def _advance(self, room: str, state: RuntimeState, node: Node) -> None:
        if node.is_ending:
            self.end(room, "completed")
        elif node.next_node:
            state.current_node = node.next_node
            self.process_node(room)
        else:
            logger.warning(
                "Node %s has no choices and no nextNode and is not an ending; "
                "dialogue stalled in room %s", node.id, room,
            )

    def _sync(self, room: str, state: RuntimeState) -> None:
        node = state.dialogue_data.node(state.current_node)
        payload: dict[str, Any] = {
            "active": state.active,
            "currentNode": state.current_node,
            "variables": dict(state.variables),
            "dialogueId": state.dialogue_id,
            "nodeData": node.model_dump(mode="json", by_alias=True) if node else None,
        }
        if not state.dialogue_data_synced:
            payload["dialogueData"] = state.dialogue_data.to_json_dict()
            state.dialogue_data_synced = True
        self._emit(room, "dialogue-sync", payload)

    # ── Helpers ──────────────────────────────────────────

    def _active_state(self, room: str, quiet: bool = False) -> RuntimeState | None:
        state = self.registry.get(room)
        if state is None or not state.active:
            if not quiet:
                logger.debug("No active dialogue in room %s", room)
            return None
        return state

    def _emit(self, room: str, event: str, payload: dict[str, Any]) -> None:
        self.broadcaster.emit(room, event, payload)
