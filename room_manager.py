"""Room bookkeeping for both room kinds.

Private rooms are created per match, always hold exactly two members and are
deleted as soon as either member leaves. Named rooms come from a fixed roster
established at startup; their membership churns but the rooms never go away.
Rooms only hold session ids, the SessionRegistry owns the sessions.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Tuple

from constants import NAMED_ROOMS, PARTNER_LEFT_MESSAGE
from errors import RoomFull, RoomNotFound
from logging_config import get_logger
from schemas.events import (
    JoinedNamedRoomEvent,
    OutboundEvent,
    PartnerLeftEvent,
    UserJoinedEvent,
    UserLeftEvent,
)
from schemas.rooms import NamedRoomDetailsResponse, NamedRoomInfo
from session_registry import RoomKind, Session, SessionRegistry

if TYPE_CHECKING:
    from matchmaking import MatchmakingQueue

logger = get_logger(__name__)


@dataclass
class PrivateRoom:
    id: str
    members: Tuple[str, str]
    created_at: datetime = field(default_factory=datetime.now)

    def partner_of(self, session_id: str) -> str:
        first, second = self.members
        return second if session_id == first else first


@dataclass
class NamedRoom:
    id: str
    name: str
    description: str
    capacity: int
    members: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def is_full(self) -> bool:
        return len(self.members) >= self.capacity

    def info(self) -> NamedRoomInfo:
        return NamedRoomInfo(
            id=self.id,
            name=self.name,
            description=self.description,
            currentUsers=len(self.members),
            maxUsers=self.capacity,
        )

    def details(self) -> NamedRoomDetailsResponse:
        return NamedRoomDetailsResponse(
            **self.info().model_dump(),
            createdAt=self.created_at.isoformat(),
            isFull=self.is_full,
        )


class RoomManager:
    def __init__(
        self,
        sessions: SessionRegistry,
        queue: "MatchmakingQueue",
        named_rooms: Optional[Iterable[dict]] = None,
    ):
        self.sessions = sessions
        self.queue = queue
        self.private_rooms: Dict[str, PrivateRoom] = {}
        started_at = datetime.now()
        self.named_rooms: Dict[str, NamedRoom] = {}
        for spec in (NAMED_ROOMS if named_rooms is None else named_rooms):
            self.named_rooms[spec["id"]] = NamedRoom(
                id=spec["id"],
                name=spec["name"],
                description=spec.get("description", ""),
                capacity=int(spec["capacity"]),
                created_at=started_at,
            )
        logger.info(f"Room manager initialized with named rooms: {list(self.named_rooms)}")

    def _broadcast(self, member_ids: Iterable[str], event: OutboundEvent, exclude: Optional[str] = None) -> int:
        delivered = 0
        for member_id in member_ids:
            if member_id == exclude:
                continue
            member = self.sessions.lookup(member_id)
            if member is None:
                logger.warning(f"Room member {member_id} has no session, skipping {event.type}")
                continue
            member.send(event)
            delivered += 1
        return delivered

    # Private rooms

    def create_private_room(self, first: Session, second: Session) -> PrivateRoom:
        room = PrivateRoom(id=uuid.uuid4().hex, members=(first.id, second.id))
        self.private_rooms[room.id] = room
        first.seat(room.id, RoomKind.PRIVATE)
        second.seat(room.id, RoomKind.PRIVATE)
        logger.info(f"Private room {room.id} created between {first.alias} and {second.alias}")
        return room

    def leave_private(self, session: Session) -> Optional[Session]:
        """Tear down the private room ``session`` sits in.

        The partner is told and reset to roomless (not re-queued). Returns the
        partner session, or None when there was no private room.
        """
        if session.room_kind is not RoomKind.PRIVATE:
            return None
        room = self.private_rooms.pop(session.room_id, None)
        session.clear_room()
        if room is None:
            logger.warning(f"Session {session.id} pointed at a missing private room")
            return None

        partner = self.sessions.lookup(room.partner_of(session.id))
        if partner is not None:
            partner.clear_room()
            partner.send(PartnerLeftEvent(message=PARTNER_LEFT_MESSAGE))
        logger.info(f"Private room {room.id} deleted after {session.alias} left")
        return partner

    def private_partner(self, session: Session) -> Optional[Session]:
        room = self.private_rooms.get(session.room_id) if session.room_kind is RoomKind.PRIVATE else None
        if room is None:
            return None
        return self.sessions.lookup(room.partner_of(session.id))

    # Named rooms

    def get_named_room(self, room_id: str) -> NamedRoom:
        room = self.named_rooms.get(room_id)
        if room is None:
            raise RoomNotFound()
        return room

    def join(self, session: Session, room_id: str) -> bool:
        """Seat ``session`` in a named room.

        Raises RoomNotFound / RoomFull without touching any membership.
        Returns False when the session was already in that room.
        """
        room = self.get_named_room(room_id)

        if session.room_kind is RoomKind.NAMED and session.room_id == room.id:
            session.send(JoinedNamedRoomEvent(roomId=room.id, roomName=room.name, roomUsers=len(room.members)))
            return False

        if room.is_full:
            logger.info(f"Join rejected: room {room.id} is full ({len(room.members)}/{room.capacity})")
            raise RoomFull()

        # At most one seat per session, and never seated while queued
        if self.queue.remove(session.id):
            logger.debug(f"Session {session.id} left the waiting queue to join {room.id}")
        self.leave_private(session)
        self.leave(session)

        room.members.append(session.id)
        session.seat(room.id, RoomKind.NAMED)
        count = len(room.members)
        logger.info(f"{session.alias} joined room {room.id} ({count}/{room.capacity})")

        session.send(JoinedNamedRoomEvent(roomId=room.id, roomName=room.name, roomUsers=count))
        self._broadcast(room.members, UserJoinedEvent(roomId=room.id, alias=session.alias, roomUsers=count), exclude=session.id)
        return True

    def leave(self, session: Session) -> bool:
        if session.room_kind is not RoomKind.NAMED:
            return False
        room = self.named_rooms.get(session.room_id)
        session.clear_room()
        if room is None or session.id not in room.members:
            logger.warning(f"Session {session.id} pointed at a named room it is not a member of")
            return False

        room.members.remove(session.id)
        count = len(room.members)
        logger.info(f"{session.alias} left room {room.id} ({count}/{room.capacity})")
        self._broadcast(room.members, UserLeftEvent(roomId=room.id, alias=session.alias, roomUsers=count))
        return True

    def named_peers(self, session: Session) -> List[Session]:
        if session.room_kind is not RoomKind.NAMED:
            return []
        room = self.named_rooms.get(session.room_id)
        if room is None:
            return []
        peers = []
        for member_id in room.members:
            if member_id == session.id:
                continue
            member = self.sessions.lookup(member_id)
            if member is not None:
                peers.append(member)
        return peers

    def roster(self) -> List[NamedRoomInfo]:
        return [room.info() for room in self.named_rooms.values()]
