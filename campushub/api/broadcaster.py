"""
Connection manager for the realtime channel.

Tracks open websocket connections and the conversation rooms each one has
joined, and fans events out to a room. Delivery is best-effort: a
connection whose send fails is dropped from every room.
"""

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, Optional, Set

from starlette.concurrency import run_in_threadpool
from starlette.websockets import WebSocket

from campushub.database.core import ConversationStore
from campushub.errors import NotParticipant

log = logging.getLogger(__name__)


def room_name(conversation_id: int) -> str:
    return f"conversation_{conversation_id}"


@dataclass
class Connection:
    id: str
    user_id: int
    websocket: WebSocket


class RealtimeBroadcaster:
    """
    Parameters
    ----------
    store : ConversationStore
        Consulted on every join so only participants enter a room.
    """

    def __init__(self, store: ConversationStore):
        self.store = store
        self.connections: Dict[str, Connection] = {}
        self.rooms: Dict[int, Set[str]] = defaultdict(set)

    def register(self, websocket: WebSocket, user_id: int) -> str:
        connection_id = uuid.uuid4().hex
        self.connections[connection_id] = Connection(connection_id, user_id, websocket)
        log.info(f"Socket {connection_id} connected for user {user_id}")
        return connection_id

    def unregister(self, connection_id: str):
        self.connections.pop(connection_id, None)
        for conversation_id in list(self.rooms):
            self._discard(conversation_id, connection_id)
        log.info(f"Socket {connection_id} disconnected")

    def user_of(self, connection_id: str) -> Optional[int]:
        connection = self.connections.get(connection_id)
        return connection.user_id if connection else None

    def members(self, conversation_id: int) -> Set[str]:
        return set(self.rooms.get(conversation_id, ()))

    async def join(self, connection_id: str, conversation_id: int):
        """
        Add the connection to the conversation's room.

        Raises
        ------
        NotParticipant
            The connection's user is not a participant of the conversation.
        """
        user_id = self.user_of(connection_id)
        if user_id is None:
            raise NotParticipant()
        allowed = await run_in_threadpool(self.store.is_participant, conversation_id, user_id)
        if not allowed:
            raise NotParticipant()
        # the connection may have closed while the lookup ran
        if connection_id in self.connections:
            self.rooms[conversation_id].add(connection_id)
            log.info(f"Socket {connection_id} joined {room_name(conversation_id)}")

    def leave(self, connection_id: str, conversation_id: int):
        self._discard(conversation_id, connection_id)
        log.info(f"Socket {connection_id} left {room_name(conversation_id)}")

    def evict_user(self, conversation_id: int, user_id: int) -> int:
        """Remove every connection of `user_id` from the room. Returns how many were removed."""
        evicted = [cid for cid in self.members(conversation_id) if self.user_of(cid) == user_id]
        for connection_id in evicted:
            self._discard(conversation_id, connection_id)
        if evicted:
            log.info(f"Evicted {len(evicted)} socket(s) of user {user_id} from {room_name(conversation_id)}")
        return len(evicted)

    async def broadcast_message(self, conversation_id: int, message: Dict[str, Any]) -> int:
        """Send `new_message` to every connection in the room. Returns how many were reached."""
        return await self._emit(self.members(conversation_id), "new_message", message)

    async def broadcast_typing(self, conversation_id: int, user_id: int, is_typing: bool,
                               exclude: Optional[str] = None) -> int:
        """Send `user_typing` to the room, skipping the `exclude` connection."""
        targets = self.members(conversation_id)
        targets.discard(exclude)
        return await self._emit(targets, "user_typing", {"userId": user_id, "isTyping": bool(is_typing)})

    async def _emit(self, connection_ids: Set[str], event: str, data: Any) -> int:
        delivered = 0
        frame = {"event": event, "data": data}
        for connection_id in connection_ids:
            connection = self.connections.get(connection_id)
            if connection is None:
                continue
            try:
                await connection.websocket.send_json(frame)
                delivered += 1
            except Exception as e:
                log.warning(f"Dropping socket {connection_id} after failed {event} send: {e!r}")
                self.unregister(connection_id)
        return delivered

    def _discard(self, conversation_id: int, connection_id: str):
        members = self.rooms.get(conversation_id)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self.rooms[conversation_id]
