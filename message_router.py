import json
from typing import TYPE_CHECKING, Callable, Dict, List, Tuple, Union

from pydantic import ValidationError

from errors import ChatError, FilteredContent, MalformedPayload, RateLimited, UnknownEventKind
from logging_config import get_logger
from schemas.events import (
    INBOUND_EVENT_TYPES,
    ChatMessageEvent,
    EndChat,
    ErrorEvent,
    FindMatch,
    GetStats,
    InboundEvent,
    JoinNamedRoom,
    LeaveNamedRoom,
    NamedRoomsEvent,
    NextChat,
    SendMessage,
    inbound_event_adapter,
)
from session_registry import RoomKind, Session

if TYPE_CHECKING:
    from chat_context import ChatContext

logger = get_logger(__name__)


def decode_event(raw: Union[str, bytes]) -> InboundEvent:
    """Decode one inbound WebSocket payload into a typed event.

    Raises MalformedPayload when the payload is not a JSON object with a valid
    shape, UnknownEventKind when ``type`` names no known event.
    """
    try:
        data = json.loads(raw)
    except (ValueError, TypeError, RecursionError) as e:
        raise MalformedPayload(f"Payload is not valid JSON: {e}")

    if not isinstance(data, dict) or not isinstance(data.get("type"), str):
        raise MalformedPayload("Payload is not an object with a string 'type'")
    if data["type"] not in INBOUND_EVENT_TYPES:
        raise UnknownEventKind(f"Unknown event kind: {data['type']!r}")

    try:
        return inbound_event_adapter.validate_python(data)
    except ValidationError as e:
        raise MalformedPayload(f"Invalid {data['type']} payload ({e.error_count()} errors)")


class MessageRouter:
    """Dispatches typed events for a session and fans out the results.

    Handlers return True when they changed queue or room state; the router then
    pushes fresh statistics to every connected session, plus the named-room
    roster when named membership moved.
    """

    def __init__(self, context: "ChatContext"):
        self.context = context
        self._handlers: Dict[type, Callable[[Session, InboundEvent], bool]] = {
            FindMatch: self._find_match,
            JoinNamedRoom: self._join_named_room,
            LeaveNamedRoom: self._leave_named_room,
            SendMessage: self._message,
            NextChat: self._next_chat,
            EndChat: self._end_chat,
            GetStats: self._get_stats,
        }

    def handle(self, session_id: str, event: InboundEvent) -> None:
        session = self.context.sessions.lookup(session_id)
        if session is None:
            logger.debug(f"Dropping {event.type} for unknown session {session_id}")
            return

        handler = self._handlers.get(type(event))
        if handler is None:
            logger.warning(f"No handler for event {event.type} from session {session_id}")
            return

        named_before = self._named_counts()
        try:
            changed = handler(session, event)
        except ChatError as e:
            if e.surface:
                logger.info(f"Rejected {event.type} from {session.alias}: {e.code}")
                session.send(ErrorEvent(message=e.message, code=e.code))
            else:
                logger.warning(f"Ignored {event.type} from {session.alias}: {e.message}")
            return

        if changed:
            self.context.broadcast_stats()
            if self._named_counts() != named_before:
                self.context.broadcast_roster()

    def _named_counts(self) -> Tuple[int, ...]:
        return tuple(len(room.members) for room in self.context.rooms.named_rooms.values())

    def _find_match(self, session: Session, event: FindMatch) -> bool:
        return self.context.matchmaker.request_match(session.id)

    def _join_named_room(self, session: Session, event: JoinNamedRoom) -> bool:
        return self.context.rooms.join(session, event.roomId)

    def _leave_named_room(self, session: Session, event: LeaveNamedRoom) -> bool:
        return self.context.rooms.leave(session)

    def _message(self, session: Session, event: SendMessage) -> bool:
        if not session.in_room:
            logger.debug(f"Dropping message from {session.alias}: not in a room")
            return False

        now = self.context.clock()
        # Rate limit is checked before content
        if not self.context.rate_limiter.admit(session.id, now):
            raise RateLimited()
        if not self.context.content_filter.passes(event.message):
            raise FilteredContent()

        outbound = ChatMessageEvent(alias=session.alias, message=event.message, timestamp=now)
        recipients: List[Session] = []
        if session.room_kind is RoomKind.PRIVATE:
            partner = self.context.rooms.private_partner(session)
            if partner is not None:
                recipients.append(partner)
        elif session.room_kind is RoomKind.NAMED:
            recipients = self.context.rooms.named_peers(session)

        for recipient in recipients:
            recipient.send(outbound)
        logger.debug(f"Routed message from {session.alias} in {session.room_id} to {len(recipients)} sessions")
        return False

    def _next_chat(self, session: Session, event: NextChat) -> bool:
        left = self.context.matchmaker.leave_room(session.id)
        requested = self.context.matchmaker.request_match(session.id)
        return left or requested

    def _end_chat(self, session: Session, event: EndChat) -> bool:
        if session.room_kind is RoomKind.NAMED:
            return self.context.rooms.leave(session)
        return self.context.matchmaker.leave_room(session.id)

    def _get_stats(self, session: Session, event: GetStats) -> bool:
        session.send(self.context.stats_event())
        session.send(NamedRoomsEvent(rooms=self.context.rooms.roster()))
        return False
