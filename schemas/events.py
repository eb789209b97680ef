"""Typed events exchanged with clients over the WebSocket.

Inbound events are decoded with a discriminated union on ``type``; outbound
events serialize to the JSON objects the browser client renders.
"""
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from schemas.rooms import NamedRoomInfo


# Inbound

class FindMatch(BaseModel):
    type: Literal["find_match"]


class JoinNamedRoom(BaseModel):
    # join_static_room is the spelling used by the original browser client
    type: Literal["join_named_room", "join_static_room"]
    roomId: str


class LeaveNamedRoom(BaseModel):
    type: Literal["leave_named_room", "leave_static_room"]


class SendMessage(BaseModel):
    type: Literal["message"]
    message: str


class NextChat(BaseModel):
    type: Literal["next_chat"]


class EndChat(BaseModel):
    type: Literal["end_chat"]


class GetStats(BaseModel):
    type: Literal["get_stats"]


InboundEvent = Annotated[
    Union[FindMatch, JoinNamedRoom, LeaveNamedRoom, SendMessage, NextChat, EndChat, GetStats],
    Field(discriminator="type"),
]

inbound_event_adapter = TypeAdapter(InboundEvent)

INBOUND_EVENT_TYPES = frozenset({
    "find_match",
    "join_named_room",
    "join_static_room",
    "leave_named_room",
    "leave_static_room",
    "message",
    "next_chat",
    "end_chat",
    "get_stats",
})


# Outbound

class OutboundEvent(BaseModel):
    type: str

    def to_payload(self) -> dict:
        return self.model_dump()


class AliasEvent(OutboundEvent):
    type: Literal["alias"] = "alias"
    alias: str


class WaitingEvent(OutboundEvent):
    type: Literal["waiting"] = "waiting"
    message: str


class MatchedEvent(OutboundEvent):
    type: Literal["matched"] = "matched"
    roomId: str
    partnerAlias: str


class JoinedNamedRoomEvent(OutboundEvent):
    type: Literal["joined_static_room"] = "joined_static_room"
    roomId: str
    roomName: str
    roomUsers: int


class UserJoinedEvent(OutboundEvent):
    type: Literal["user_joined"] = "user_joined"
    roomId: str
    alias: str
    roomUsers: int


class UserLeftEvent(OutboundEvent):
    type: Literal["user_left"] = "user_left"
    roomId: str
    alias: str
    roomUsers: int


class ChatMessageEvent(OutboundEvent):
    type: Literal["message"] = "message"
    alias: str
    message: str
    timestamp: int


class PartnerLeftEvent(OutboundEvent):
    type: Literal["partner_left"] = "partner_left"
    message: str


class UserStatsEvent(OutboundEvent):
    type: Literal["user_stats"] = "user_stats"
    activeChatters: int
    waitingUsers: int
    totalUsers: int


class NamedRoomsEvent(OutboundEvent):
    type: Literal["static_rooms"] = "static_rooms"
    rooms: list[NamedRoomInfo]


class ErrorEvent(OutboundEvent):
    type: Literal["error"] = "error"
    message: str
    code: Optional[str] = None
