from typing import Optional


class ChatError(Exception):
    """Base exception for the chat relay.

    ``surface`` decides whether the router reports the error back to the
    originating session as an ``error`` event or only logs it.
    """

    default_code: Optional[str] = None
    default_message: str = "Chat error"
    surface: bool = False

    def __init__(self, message: Optional[str] = None, *, code: Optional[str] = None):
        self.message = message if message is not None else self.default_message
        self.code = code if code is not None else self.default_code
        super().__init__(self.message)


class RoomNotFound(ChatError):
    default_code = "room_not_found"
    default_message = "Room not found."
    surface = True


class RoomFull(ChatError):
    default_code = "room_full"
    default_message = "Room is full."
    surface = True


class RateLimited(ChatError):
    default_code = "rate_limited"
    default_message = "Rate limit exceeded. Please wait before sending more messages."
    surface = True


class FilteredContent(ChatError):
    default_code = "inappropriate_content"
    default_message = "Message contains inappropriate content."
    surface = True


class MalformedPayload(ChatError):
    default_code = "malformed_payload"
    default_message = "Malformed payload"


class UnknownEventKind(ChatError):
    default_code = "unknown_event_kind"
    default_message = "Unknown event kind"
