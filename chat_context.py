"""The single owner of all live chat state.

Every public operation takes the context's coarse lock and runs to completion
without awaiting, so multi-step changes (dequeue + create room + notify) look
atomic to concurrent connects and disconnects. Cross-session effects are
fire-and-forget sends into each session's connection.
"""
import random
import threading
import time
from typing import Callable, Iterable, Optional, Union

from constants import RATE_LIMIT, RATE_LIMIT_WINDOW_MS
from content_filter import ContentFilter
from errors import ChatError
from logging_config import get_logger
from matchmaking import Matchmaker, MatchmakingQueue
from message_router import MessageRouter, decode_event
from rate_limiter import RateLimiter
from room_manager import RoomManager
from schemas.events import AliasEvent, InboundEvent, NamedRoomsEvent, UserStatsEvent
from schemas.rooms import UserStats
from session_registry import Connection, Session, SessionRegistry

logger = get_logger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class ChatContext:
    def __init__(
        self,
        named_rooms: Optional[Iterable[dict]] = None,
        rate_limit: int = RATE_LIMIT,
        rate_window_ms: int = RATE_LIMIT_WINDOW_MS,
        banned_words: Optional[Iterable[str]] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.lock = threading.RLock()
        self.clock = clock
        self.sessions = SessionRegistry(rng=rng)
        self.rate_limiter = RateLimiter(limit=rate_limit, window_ms=rate_window_ms)
        self.content_filter = ContentFilter(banned_words)
        self.queue = MatchmakingQueue()
        self.rooms = RoomManager(self.sessions, self.queue, named_rooms)
        self.matchmaker = Matchmaker(self.sessions, self.queue, self.rooms)
        self.router = MessageRouter(self)

    def connect(self, connection: Connection) -> Session:
        """Register a new connection and send alias, stats and the room roster, in that order."""
        with self.lock:
            session = self.sessions.register(connection)
            session.send(AliasEvent(alias=session.alias))
            # The stats broadcast reaches the new session too
            self.broadcast_stats()
            session.send(NamedRoomsEvent(rooms=self.rooms.roster()))
            return session

    def receive(self, session_id: str, raw: Union[str, bytes]) -> None:
        """Decode and handle one raw payload. Never raises for bad input."""
        try:
            event = decode_event(raw)
        except ChatError as e:
            logger.warning(f"Dropped payload from session {session_id}: {e.message}")
            return

        try:
            self.dispatch(session_id, event)
        except Exception as e:
            logger.error(f"Error handling {event.type} from session {session_id}: {e}", exc_info=True)

    def dispatch(self, session_id: str, event: InboundEvent) -> None:
        with self.lock:
            self.router.handle(session_id, event)

    def disconnect(self, session_id: str) -> None:
        with self.lock:
            session = self.sessions.lookup(session_id)
            if session is None:
                return
            logger.info(f"Cleaning up session {session_id} ({session.alias})")

            self.queue.remove(session_id)
            self.matchmaker.leave_room(session_id)
            left_named = self.rooms.leave(session)
            self.rate_limiter.purge(session_id)
            self.sessions.remove(session_id)

            self.broadcast_stats()
            if left_named:
                self.broadcast_roster()

    def stats(self) -> UserStats:
        with self.lock:
            return UserStats(
                activeChatters=sum(1 for s in self.sessions if s.in_room),
                waitingUsers=len(self.queue),
                totalUsers=len(self.sessions),
            )

    def stats_event(self) -> UserStatsEvent:
        return UserStatsEvent(**self.stats().model_dump())

    def broadcast_stats(self) -> None:
        event = self.stats_event()
        for session in self.sessions:
            session.send(event)
        logger.debug(f"Broadcast stats {event.activeChatters}/{event.waitingUsers}/{event.totalUsers}")

    def broadcast_roster(self) -> None:
        event = NamedRoomsEvent(rooms=self.rooms.roster())
        for session in self.sessions:
            session.send(event)
