from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .config import Settings, get_settings
from .connections import ConnectionManager
from .dispatcher import SessionDispatcher
from .lobby import LobbyBroadcaster
from .registry import RoomRegistry
from .routers import rooms as rooms_router
from .routers import websockets as ws_router
from .ticker import TickLoop


# Custom StaticFiles variant that disables caching for the client assets.
class NoCacheStaticFiles(StaticFiles):
    async def get_response(self, path: str, scope):  # type: ignore[override]
        response = await super().get_response(path, scope)
        response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
        response.headers["Pragma"] = "no-cache"
        response.headers["Expires"] = "0"
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.ticker.start()
    try:
        yield
    finally:
        await app.state.ticker.stop()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(title="Chess Rooms", lifespan=lifespan)

    # Allow all origins during development – adjust for production.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------
    # Runtime state (one instance per app, so tests get isolated registries)
    # -----------------------------
    registry = RoomRegistry(settings.initial_ms)
    connections = ConnectionManager()
    lobby = LobbyBroadcaster(registry, connections)
    app.state.settings = settings
    app.state.registry = registry
    app.state.connections = connections
    app.state.lobby = lobby
    app.state.dispatcher = SessionDispatcher(registry, connections, lobby)
    app.state.ticker = TickLoop(registry, lobby, interval=settings.tick_interval)

    app.include_router(rooms_router.router)
    app.include_router(ws_router.router)

    # Mount the browser client (index.html etc.) at root path, if shipped.
    if settings.static_dir and os.path.isdir(settings.static_dir):
        app.mount("/", NoCacheStaticFiles(directory=settings.static_dir, html=True), name="frontend")

    return app


__all__ = ["create_app", "lifespan"]
