from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from routers.rooms import rooms_router, stats_router
from chat_context import ChatContext
from schemas.events import OutboundEvent
from constants import CORS_ORIGINS, LOG_LEVEL, LOG_FILE
from typing import Optional
import asyncio
import json
from logging_config import get_logger, setup_logging

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


class WebSocketConnection:
    """Per-connection outbox drained by a writer task.

    The chat core calls ``send`` synchronously while holding its lock; the
    actual socket write happens later on the event loop.
    """

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self.outbox: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def send(self, event: OutboundEvent) -> None:
        if self.closed:
            logger.debug(f"Dropping {event.type}: writer has stopped")
            return
        self.outbox.put_nowait(event.to_payload())

    async def pump(self, connection_label: str):
        while True:
            payload = await self.outbox.get()
            try:
                await self.websocket.send_text(json.dumps(payload))
            except Exception as e:
                logger.warning(f"Error sending {payload.get('type')} to {connection_label}: {e}")
                break
        await self.shutdown()

    async def shutdown(self):
        """Stop accepting events and close the socket so the read loop ends."""
        if self.closed:
            return
        self.closed = True
        while not self.outbox.empty():
            self.outbox.get_nowait()
        try:
            await self.websocket.close()
        except Exception as e:
            logger.debug(f"Error closing WebSocket: {e}")


def create_app(chat_context: Optional[ChatContext] = None) -> FastAPI:
    app = FastAPI()

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.chat_context = chat_context or ChatContext()
    app.include_router(rooms_router)
    app.include_router(stats_router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Anonymous chat WebSocket.

        On connect the client receives its alias, the current stats and the
        named room roster. Every inbound frame is a JSON object with a ``type``.
        """
        context: ChatContext = websocket.app.state.chat_context
        await websocket.accept()
        logger.info("WebSocket connection accepted")

        connection = WebSocketConnection(websocket)
        session = context.connect(connection)
        writer = asyncio.create_task(connection.pump(session.id))

        try:
            message_count = 0
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000))
                # Text and binary frames both carry JSON
                data = message.get("text")
                if data is None:
                    data = message.get("bytes")
                if data is None:
                    logger.debug(f"Ignoring empty frame from session {session.id}")
                    continue
                message_count += 1
                logger.debug(f"Received frame #{message_count} from session {session.id}")
                context.receive(session.id, data)
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected normally for session {session.id}")
        except Exception as e:
            logger.error(f"WebSocket error for session {session.id}: {e}", exc_info=True)
        finally:
            context.disconnect(session.id)
            writer.cancel()
            try:
                await writer
            except asyncio.CancelledError:
                pass
            logger.debug(f"Writer task stopped for session {session.id}")
            await connection.shutdown()

    logger.info("FastAPI application initialized")
    return app


app = create_app()
