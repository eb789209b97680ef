from pydantic import BaseModel


class NamedRoomInfo(BaseModel):
    id: str
    name: str
    description: str
    currentUsers: int
    maxUsers: int


class NamedRoomDetailsResponse(NamedRoomInfo):
    createdAt: str
    isFull: bool


class UserStats(BaseModel):
    activeChatters: int
    waitingUsers: int
    totalUsers: int
