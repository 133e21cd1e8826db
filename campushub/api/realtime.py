"""
WebSocket endpoint for live messaging.

Clients connect to `/ws?token=<access token>` and exchange JSON frames
`{"event": <name>, "data": <payload>}`.

Client events
-------------
- join_conversation {conversationId}
- leave_conversation {conversationId}
- send_message {conversationId, content}
- typing {conversationId, isTyping}

Server events
-------------
- joined_conversation / left_conversation {conversationId}
- new_message <message>
- user_typing {userId, isTyping}
- error {message}
"""

import json
import logging
from typing import Optional

import pydantic
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from starlette.concurrency import run_in_threadpool

from campushub.api.broadcaster import RealtimeBroadcaster
from campushub.api.models import MessageOut, RoomPayload, SendMessageRequest, TypingPayload
from campushub.errors import CampusHubError, NotParticipant

log = logging.getLogger(__name__)

# private-use close code: the handshake token did not authenticate
WS_UNAUTHORIZED = 4401

router = APIRouter()


def _payload(model, data):
    # `join_conversation` and `leave_conversation` may send the bare id
    if model is RoomPayload and isinstance(data, (int, str)):
        data = {"conversationId": data}
    return model.model_validate(data)


@router.websocket("/ws")
async def realtime(websocket: WebSocket, token: Optional[str] = Query(None)):
    sessions = websocket.app.state.session_manager
    broadcaster: RealtimeBroadcaster = websocket.app.state.broadcaster

    if not token:
        await websocket.close(code=WS_UNAUTHORIZED, reason="No token provided")
        return
    try:
        user = await run_in_threadpool(sessions.authenticate, token)
    except CampusHubError as e:
        log.info(f"Rejected socket handshake: {e.message}")
        await websocket.close(code=WS_UNAUTHORIZED, reason=e.message)
        return

    await websocket.accept()
    connection_id = broadcaster.register(websocket, user["id"])
    try:
        while True:
            raw = await websocket.receive_text()
            await handle_frame(websocket, broadcaster, connection_id, user["id"], raw)
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.unregister(connection_id)


async def handle_frame(websocket: WebSocket, broadcaster: RealtimeBroadcaster, connection_id: str,
                       user_id: int, raw: str):
    """Dispatch one client frame. Failures are reported to the sender as `error` events."""
    try:
        frame = json.loads(raw)
        event = frame.get("event")
        data = frame.get("data")
    except (ValueError, AttributeError):
        await _error(websocket, "Malformed frame")
        return

    try:
        if event == "join_conversation":
            payload = _payload(RoomPayload, data)
            await broadcaster.join(connection_id, payload.conversation_id)
            await websocket.send_json(
                {"event": "joined_conversation", "data": {"conversationId": payload.conversation_id}}
            )
        elif event == "leave_conversation":
            payload = _payload(RoomPayload, data)
            broadcaster.leave(connection_id, payload.conversation_id)
            await websocket.send_json(
                {"event": "left_conversation", "data": {"conversationId": payload.conversation_id}}
            )
        elif event == "send_message":
            payload = _payload(SendMessageRequest, data)
            store = websocket.app.state.conversation_store
            view = await run_in_threadpool(store.send_message, payload.conversation_id, user_id, payload.content)
            message = MessageOut(**view).model_dump(by_alias=True, mode="json")
            await broadcaster.broadcast_message(payload.conversation_id, message)
        elif event == "typing":
            payload = _payload(TypingPayload, data)
            if connection_id not in broadcaster.members(payload.conversation_id):
                raise NotParticipant()
            await broadcaster.broadcast_typing(payload.conversation_id, user_id, payload.is_typing,
                                               exclude=connection_id)
        else:
            await _error(websocket, f"Unknown event: {event}")
    except pydantic.ValidationError:
        await _error(websocket, f"Invalid payload for {event}")
    except CampusHubError as e:
        await _error(websocket, e.message)


async def _error(websocket: WebSocket, message: str):
    await websocket.send_json({"event": "error", "data": {"message": message}})
