"""Unit tests for the background clock in chessroom/ticker.py"""

import asyncio

import pytest

from chessroom.connections import Connection
from chessroom.constants import EndReason, RoomStatus, Side
from chessroom.registry import RoomRegistry
from chessroom.room import Room
from chessroom.ticker import TickLoop

from .conftest import INITIAL_MS, FakeClock

pytestmark = pytest.mark.asyncio


def start_room(registry: RoomRegistry, clock: FakeClock, code: str, *watchers: Connection) -> Room:
    room = registry.create(code)
    room.take_seat(f"{code}-white")
    room.take_seat(f"{code}-black")
    room.start_game(clock())
    for conn in watchers:
        room.subscribe(conn)
    return room


async def test_tick_charges_side_to_move_and_pushes_clock(
    ticker: TickLoop, registry: RoomRegistry, clock: FakeClock, make_conn
) -> None:
    watcher = make_conn()
    room = start_room(registry, clock, "ABC123", watcher)
    clock.advance(1_000)

    assert await ticker.tick() == []
    assert room.clock[Side.WHITE] == INITIAL_MS - 1_000
    assert watcher.websocket.last("clock") == {
        "white": INITIAL_MS - 1_000,
        "black": INITIAL_MS,
        "turn": "w",
        "status": "playing",
        "result": None,
    }


async def test_black_flagging_on_the_tick_gives_white_the_win(
    ticker: TickLoop, registry: RoomRegistry, clock: FakeClock, make_conn
) -> None:
    watcher = make_conn()
    room = start_room(registry, clock, "ABC123", watcher)
    room.apply_move(Side.WHITE, "e2", "e4")
    room.reconcile_clock(clock())

    clock.advance(INITIAL_MS - 1)
    await ticker.tick()
    assert room.status is RoomStatus.PLAYING
    assert room.clock[Side.BLACK] == 1

    clock.advance(1)
    assert await ticker.tick() == [room]
    assert room.status is RoomStatus.ENDED
    assert room.result is not None
    assert room.result.reason is EndReason.TIMEOUT
    assert room.result.winner is Side.WHITE
    assert watcher.websocket.last("clock")["result"] == {"reason": "timeout", "winner": "w"}
    assert watcher.websocket.last("lobby_state")[0]["status"] == "ended"


async def test_rooms_not_in_play_are_skipped(
    ticker: TickLoop, registry: RoomRegistry, clock: FakeClock, make_conn
) -> None:
    watcher = make_conn()
    waiting = registry.create("WAIT")
    waiting.subscribe(watcher)
    ended = start_room(registry, clock, "DONE", watcher)
    ended.resign(Side.WHITE)
    clock.advance(5_000)

    await ticker.tick()

    assert watcher.websocket.events("clock") == []
    assert ended.clock[Side.WHITE] == INITIAL_MS


async def test_tick_without_elapsed_time_does_nothing(
    ticker: TickLoop, registry: RoomRegistry, clock: FakeClock, make_conn
) -> None:
    watcher = make_conn()
    start_room(registry, clock, "ABC123", watcher)
    await ticker.tick()
    assert watcher.websocket.events("clock") == []


async def test_empty_registry(ticker: TickLoop) -> None:
    assert await ticker.tick() == []


async def test_a_failing_room_does_not_stop_the_others(
    ticker: TickLoop, registry: RoomRegistry, clock: FakeClock, make_conn, monkeypatch: pytest.MonkeyPatch
) -> None:
    watcher = make_conn()
    broken = start_room(registry, clock, "BROKEN", watcher)
    healthy = start_room(registry, clock, "HEALTH", watcher)

    def explode(now: int) -> bool:
        raise ValueError("boom")

    monkeypatch.setattr(broken, "reconcile_clock", explode)
    clock.advance(500)
    await ticker.tick()

    assert healthy.clock[Side.WHITE] == INITIAL_MS - 500
    assert len(watcher.websocket.events("clock")) == 1


async def test_tick_waits_for_a_handler_holding_the_room(
    ticker: TickLoop, registry: RoomRegistry, clock: FakeClock
) -> None:
    room = start_room(registry, clock, "ABC123")
    clock.advance(1_000)

    async with room.lock:
        pending = asyncio.create_task(ticker.tick())
        await asyncio.sleep(0)
        assert room.clock[Side.WHITE] == INITIAL_MS
    await pending
    assert room.clock[Side.WHITE] == INITIAL_MS - 1_000


async def test_start_and_stop_the_background_task(
    ticker: TickLoop, registry: RoomRegistry, clock: FakeClock
) -> None:
    room = start_room(registry, clock, "ABC123")
    clock.advance(2_000)

    ticker.start()
    await asyncio.sleep(0.05)
    await ticker.stop()

    assert room.clock[Side.WHITE] == INITIAL_MS - 2_000
    assert ticker._task is None
