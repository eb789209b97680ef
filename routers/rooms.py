from fastapi import APIRouter, Depends, HTTPException, Request

from chat_context import ChatContext
from errors import RoomNotFound
from logging_config import get_logger
from schemas.rooms import NamedRoomDetailsResponse, NamedRoomInfo, UserStats

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])
stats_router = APIRouter(tags=["stats"])


def get_chat_context(request: Request) -> ChatContext:
    return request.app.state.chat_context


@rooms_router.get("/", response_model=list[NamedRoomInfo])
async def list_rooms(context: ChatContext = Depends(get_chat_context)):
    with context.lock:
        return context.rooms.roster()


@rooms_router.get("/{room_id}", response_model=NamedRoomDetailsResponse)
async def get_room_details(room_id: str, request: Request, context: ChatContext = Depends(get_chat_context)):
    """
    Get named room details including live member count.

    Returns:
    - id, name, description: Room identity as configured at startup
    - currentUsers: Current number of members
    - maxUsers: Room capacity
    - createdAt: Process start timestamp
    - isFull: Whether the room has reached capacity
    """
    client_host = request.client.host if request.client else "unknown"
    logger.info(f"Room details request for {room_id} from {client_host}")

    with context.lock:
        try:
            room = context.rooms.get_named_room(room_id)
        except RoomNotFound:
            logger.warning(f"Room details failed: Room {room_id} not found")
            raise HTTPException(status_code=404, detail="Room not found")
        return room.details()


@stats_router.get("/stats", response_model=UserStats)
async def get_stats(context: ChatContext = Depends(get_chat_context)):
    return context.stats()
