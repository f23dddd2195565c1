"""
Pytest will auto-discover / import this file called 'conftest.py'.
Fixtures here give every test an isolated registry driven by a fake clock.
"""

import asyncio
from typing import Any, Callable

import pytest

from chessroom.connections import Connection, ConnectionManager
from chessroom.dispatcher import SessionDispatcher
from chessroom.lobby import LobbyBroadcaster
from chessroom.registry import RoomRegistry
from chessroom.ticker import TickLoop

INITIAL_MS = 5 * 60 * 1000


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeWebSocket:
    """Mock WebSocket that records everything sent through it."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.closed = False

    async def send_json(self, data: dict[str, Any]) -> None:
        if self.closed:
            raise RuntimeError("Cannot call send once a close message has been sent.")
        self.sent.append(data)

    def events(self, event: str) -> list[Any]:
        return [m["data"] for m in self.sent if m["type"] == event]

    def last(self, event: str) -> Any:
        found = self.events(event)
        assert found, f"no {event!r} message was sent"
        return found[-1]

    def acks(self) -> list[dict[str, Any]]:
        return [m for m in self.sent if m["type"] == "ack"]

    def clear(self) -> None:
        self.sent.clear()


class StalledWebSocket(FakeWebSocket):
    """A client whose sends block until the test releases them."""

    def __init__(self) -> None:
        super().__init__()
        self.gate = asyncio.Event()
        self.waiting = asyncio.Event()

    async def send_json(self, data: dict[str, Any]) -> None:
        self.waiting.set()
        await self.gate.wait()
        await super().send_json(data)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock: FakeClock) -> RoomRegistry:
    return RoomRegistry(INITIAL_MS, now_ms=clock, wall_ms=clock)


@pytest.fixture
def connections() -> ConnectionManager:
    return ConnectionManager()


@pytest.fixture
def lobby(registry: RoomRegistry, connections: ConnectionManager) -> LobbyBroadcaster:
    return LobbyBroadcaster(registry, connections)


@pytest.fixture
def dispatcher(
    registry: RoomRegistry, connections: ConnectionManager, lobby: LobbyBroadcaster
) -> SessionDispatcher:
    return SessionDispatcher(registry, connections, lobby)


@pytest.fixture
def ticker(registry: RoomRegistry, lobby: LobbyBroadcaster) -> TickLoop:
    return TickLoop(registry, lobby, interval=0.01)


@pytest.fixture
def make_conn(connections: ConnectionManager) -> Callable[[], Connection]:
    """Factory for connections already registered with the lobby audience."""
    counter = iter(range(1, 1000))

    def _make() -> Connection:
        conn = Connection(FakeWebSocket(), connection_id=f"conn-{next(counter)}")
        connections.add(conn)
        return conn

    return _make
