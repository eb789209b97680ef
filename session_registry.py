import random
import uuid
import weakref
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Iterator, Optional, Protocol

from constants import ALIAS_ADJECTIVES, ALIAS_MAX_NUMBER, ALIAS_NOUNS
from logging_config import get_logger
from schemas.events import OutboundEvent

logger = get_logger(__name__)


class Connection(Protocol):
    """Duplex channel owned by the transport; the core only pushes events into it."""

    def send(self, event: OutboundEvent) -> None:
        ...


class RoomKind(str, Enum):
    NONE = "none"
    PRIVATE = "private"
    NAMED = "named"


@dataclass(eq=False)
class Session:
    id: str
    alias: str
    connection_ref: "weakref.ReferenceType[Connection]"
    room_id: Optional[str] = None
    room_kind: RoomKind = RoomKind.NONE
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def in_room(self) -> bool:
        return self.room_id is not None

    def seat(self, room_id: str, kind: RoomKind) -> None:
        self.room_id = room_id
        self.room_kind = kind

    def clear_room(self) -> None:
        self.room_id = None
        self.room_kind = RoomKind.NONE

    def send(self, event: OutboundEvent) -> None:
        connection = self.connection_ref()
        if connection is None:
            logger.debug(f"Dropping {event.type} for session {self.id}: connection is gone")
            return
        try:
            connection.send(event)
        except Exception as e:
            # One broken connection must not abort a fan-out to the others
            logger.warning(f"Error sending {event.type} to session {self.id}: {e}")


def generate_alias(rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    adjective = rng.choice(ALIAS_ADJECTIVES)
    noun = rng.choice(ALIAS_NOUNS)
    number = rng.randint(1, ALIAS_MAX_NUMBER)
    return f"{adjective}{noun}{number}"


class SessionRegistry:
    """Source of truth for live connections and their current room."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._sessions: Dict[str, Session] = {}
        self._rng = rng

    def register(self, connection: Connection) -> Session:
        session_id = str(uuid.uuid4())
        session = Session(
            id=session_id,
            alias=generate_alias(self._rng),
            connection_ref=weakref.ref(connection),
        )
        self._sessions[session_id] = session
        logger.info(f"Registered session {session_id} as {session.alias} (sessions: {len(self._sessions)})")
        return session

    def lookup(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def remove(self, session_id: str) -> Optional[Session]:
        """Delete a session record.

        The caller is responsible for taking the session out of the queue and
        any room beforehand; see ChatContext.disconnect.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            logger.debug(f"Session {session_id} already removed")
            return None
        if session.in_room:
            logger.warning(f"Session {session_id} removed while still seated in {session.room_id}")
        logger.info(f"Removed session {session_id} ({session.alias}) (sessions: {len(self._sessions)})")
        return session

    def __iter__(self) -> Iterator[Session]:
        return iter(list(self._sessions.values()))

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions
