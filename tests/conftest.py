from __future__ import annotations

import random
from typing import Any

import pytest

from chat_context import ChatContext

TEST_ROOMS = [
    {"id": "general", "name": "General Chat", "description": "Talk about anything", "capacity": 50},
    {"id": "tech", "name": "Tech Talk", "description": "Programming and gadgets", "capacity": 30},
    {"id": "tiny", "name": "Tiny Room", "description": "Two seats only", "capacity": 2},
]


class RecordingConnection:
    """Stands in for a WebSocket: keeps every payload the core sends."""

    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []

    def send(self, event) -> None:
        self.events.append(event.to_payload())

    def types(self) -> list[str]:
        return [e["type"] for e in self.events]

    def of_type(self, type_: str) -> list[dict[str, Any]]:
        return [e for e in self.events if e["type"] == type_]

    def last(self, type_: str) -> dict[str, Any]:
        matching = self.of_type(type_)
        assert matching, f"no {type_} event in {self.types()}"
        return matching[-1]

    def clear(self) -> None:
        self.events.clear()


class FakeClock:
    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def context(clock: FakeClock) -> ChatContext:
    return ChatContext(named_rooms=TEST_ROOMS, rng=random.Random(7), clock=clock)


@pytest.fixture
def connect(context: ChatContext):
    """Connect a client; returns (session, connection). Connections stay referenced for the test."""

    connections: list[RecordingConnection] = []

    def _connect():
        connection = RecordingConnection()
        connections.append(connection)
        session = context.connect(connection)
        return session, connection

    return _connect
