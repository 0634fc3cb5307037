"""Room-scoped dialogue control over HTTP and the room WebSocket.

WebSocket /api/rooms/{room}/ws?username=... joins the room. Inbound frames
are `{"event", "data"}`:

    dialogue-start    {dialogueId, targetRoom?}
    player-choice     {choiceId, username?, choiceText?}
    dialogue-restart  {targetRoom?}
    dialogue-end      {targetRoom?}
    dialogue-status   {targetRoom?}

Failures go back to the requesting socket only, as `dialogue-error`.
"""

import json
import logging

from fastapi import APIRouter, HTTPException, Request, WebSocket, WebSocketDisconnect

from backend.hub import Connection, RoomHub
from transmission.errors import DialogueNotFound, GraphValidationError
from transmission.runtime import DialogueRuntime

from .models import ChoiceBody, RoomBody, SocketFrame, StartBody

logger = logging.getLogger(__name__)

router = APIRouter()


def _runtime(request: Request) -> DialogueRuntime:
    return request.app.state.runtime


@router.post("/rooms/{room}/dialogue/start")
async def start_dialogue(room: str, body: StartBody, request: Request):
    """Start a dialogue in a room. A running dialogue is left untouched."""
    runtime = _runtime(request)
    try:
        started = runtime.start(body.dialogue_id, body.target_room or room)
    except DialogueNotFound as e:
        raise HTTPException(404, str(e))
    except (GraphValidationError, ValueError) as e:
        raise HTTPException(400, str(e))
    return {"started": started, **runtime.status(body.target_room or room)}


@router.post("/rooms/{room}/dialogue/choice")
async def player_choice(room: str, body: ChoiceBody, request: Request):
    """Submit a player's choice for the current node."""
    accepted = _runtime(request).player_choice(
        room, body.choice_id, body.username or "player", body.choice_text
    )
    return {"accepted": accepted}


@router.post("/rooms/{room}/dialogue/restart")
async def restart_dialogue(room: str, request: Request):
    """Restart the active dialogue from its start node."""
    return {"restarted": _runtime(request).restart(room)}


@router.post("/rooms/{room}/dialogue/end")
async def end_dialogue(room: str, request: Request):
    """End the active dialogue now."""
    return {"ended": _runtime(request).end_manual(room)}


@router.get("/rooms/{room}/dialogue")
async def dialogue_status(room: str, request: Request):
    """Whether a dialogue is active in the room, and on which node."""
    return _runtime(request).status(room)


# ── WebSocket ─────────────────────────────────────────────


def _handle_frame(runtime: DialogueRuntime, hub: RoomHub, conn: Connection, frame: SocketFrame) -> None:
    room = conn.room
    if frame.event == "dialogue-start":
        body = StartBody.model_validate(frame.data)
        try:
            runtime.start(body.dialogue_id, body.target_room or room)
        except (DialogueNotFound, GraphValidationError, ValueError) as e:
            logger.warning("Could not start dialogue '%s': %s", body.dialogue_id, e)
            hub.send(conn, "dialogue-error", {"message": str(e)})
    elif frame.event == "player-choice":
        body = ChoiceBody.model_validate(frame.data)
        runtime.player_choice(room, body.choice_id, body.username or conn.username, body.choice_text)
    elif frame.event == "dialogue-restart":
        runtime.restart(RoomBody.model_validate(frame.data).target_room or room)
    elif frame.event == "dialogue-end":
        runtime.end_manual(RoomBody.model_validate(frame.data).target_room or room)
    elif frame.event == "dialogue-status":
        target = RoomBody.model_validate(frame.data).target_room or room
        hub.send(conn, "dialogue-status", runtime.status(target))
    else:
        hub.send(conn, "dialogue-error", {"message": f"Unknown event '{frame.event}'"})


@router.websocket("/rooms/{room}/ws")
async def room_socket(websocket: WebSocket, room: str, username: str = "anonymous"):
    hub: RoomHub = websocket.app.state.hub
    runtime: DialogueRuntime = websocket.app.state.runtime

    await websocket.accept()
    conn = hub.join(room, username, websocket)
    hub.emit(room, "user-joined", {"username": username})
    try:
        while True:
            text = await websocket.receive_text()
            try:
                frame = SocketFrame.model_validate(json.loads(text))
                _handle_frame(runtime, hub, conn, frame)
            except ValueError as e:  # bad JSON or a pydantic ValidationError
                hub.send(conn, "dialogue-error", {"message": f"Bad frame: {e}"})
    except WebSocketDisconnect:
        pass
    finally:
        hub.leave(conn)
        if not runtime.participant_left(room, username):
            hub.emit(room, "user-left", {"username": username})
