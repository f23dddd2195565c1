from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket

from ..connections import Connection
from ..dispatcher import SessionDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["ws"])


@router.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    await ws.accept()
    dispatcher: SessionDispatcher = ws.app.state.dispatcher
    conn = Connection(ws)
    await dispatcher.connect(conn)
    try:
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                break
            # A frame that is not JSON is refused; the connection keeps its seat.
            try:
                data = json.loads(message.get("text") or message.get("bytes") or "")
            except ValueError:
                logger.warning("connection %s sent a malformed frame", conn.id)
                await conn.send("error_message", {"message": "Malformed message"})
                continue
            await dispatcher.handle_message(conn, data)
    except Exception:
        logger.exception("websocket error on connection %s", conn.id)
    finally:
        await dispatcher.disconnect(conn)
