from collections import deque
from typing import Deque, Iterator, Optional

from constants import WAITING_MESSAGE
from logging_config import get_logger
from room_manager import PrivateRoom, RoomManager
from schemas.events import MatchedEvent, WaitingEvent
from session_registry import RoomKind, SessionRegistry

logger = get_logger(__name__)


class MatchmakingQueue:
    """Strict FIFO of session ids waiting for a one-to-one partner."""

    def __init__(self):
        self._waiting: Deque[str] = deque()

    def enqueue(self, session_id: str) -> None:
        self._waiting.append(session_id)

    def dequeue(self) -> Optional[str]:
        return self._waiting.popleft() if self._waiting else None

    def remove(self, session_id: str) -> bool:
        try:
            self._waiting.remove(session_id)
        except ValueError:
            return False
        return True

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._waiting

    def __len__(self) -> int:
        return len(self._waiting)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._waiting))


class Matchmaker:
    """idle -> waiting -> paired -> idle"""

    def __init__(self, sessions: SessionRegistry, queue: MatchmakingQueue, rooms: RoomManager):
        self.sessions = sessions
        self.queue = queue
        self.rooms = rooms

    def request_match(self, session_id: str) -> bool:
        session = self.sessions.lookup(session_id)
        if session is None:
            return False
        if session.in_room:
            logger.debug(f"Ignoring match request from {session_id}: already in room {session.room_id}")
            return False
        if session_id in self.queue:
            logger.debug(f"Ignoring match request from {session_id}: already waiting")
            return False

        while len(self.queue):
            partner = self.sessions.lookup(self.queue.dequeue())
            if partner is None or partner.in_room:
                logger.warning("Discarded stale entry at the head of the waiting queue")
                continue
            self._pair(session, partner)
            return True

        self.queue.enqueue(session_id)
        session.send(WaitingEvent(message=WAITING_MESSAGE))
        logger.info(f"{session.alias} is waiting for a match (queue: {len(self.queue)})")
        return True

    def _pair(self, requester, waiting) -> PrivateRoom:
        room = self.rooms.create_private_room(requester, waiting)
        requester.send(MatchedEvent(roomId=room.id, partnerAlias=waiting.alias))
        waiting.send(MatchedEvent(roomId=room.id, partnerAlias=requester.alias))
        return room

    def leave_room(self, session_id: str) -> bool:
        """Cancel a pending match or tear down the private room. Idempotent."""
        session = self.sessions.lookup(session_id)
        if session is None:
            return False
        if self.queue.remove(session_id):
            logger.info(f"{session.alias} stopped waiting (queue: {len(self.queue)})")
            return True
        if session.room_kind is RoomKind.PRIVATE:
            self.rooms.leave_private(session)
            return True
        return False
