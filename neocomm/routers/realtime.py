"""WebSocket endpoint that delivers messages to signed-in clients."""
from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from starlette.websockets import WebSocketState

from ..services import ConnectionRegistry, Unauthenticated, identity_from_handshake

router = APIRouter()
logger = logging.getLogger(__name__)


@router.websocket("/ws")
async def live_connection(websocket: WebSocket) -> None:
    """Authenticate, register, then keep the socket open for pushed events.

    A bad or missing token closes the socket with a policy violation before
    it is accepted; the client has to reconnect with a fresh token. The loop
    also ends once the dispatcher has closed the socket after a failed push.
    """

    try:
        identity = identity_from_handshake(websocket)
    except Unauthenticated as exc:
        logger.info("Rejected live connection from %s: %s", websocket.client, exc.detail)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    registry: ConnectionRegistry = websocket.app.state.connections
    await websocket.accept()
    await registry.add(identity.user_id, websocket)
    logger.info("Live connection opened for user %s", identity.user_id)
    try:
        sessions = len(await registry.connections_for(identity.user_id))
        await websocket.send_text(
            json.dumps({"type": "ready", "user_id": str(identity.user_id), "sessions": sessions})
        )
        while websocket.application_state == WebSocketState.CONNECTED:
            try:
                raw = await websocket.receive_text()
            except WebSocketDisconnect:
                break

            try:
                payload = json.loads(raw)
            except json.JSONDecodeError:
                payload = {"type": raw}
            if not isinstance(payload, dict):
                continue

            message_type = str(payload.get("type") or "").strip().lower()
            if message_type == "ping" and websocket.application_state == WebSocketState.CONNECTED:
                await websocket.send_text(json.dumps({"type": "pong"}))
            # Anything else only keeps the connection alive.
    finally:
        await registry.remove(websocket)
        logger.info("Live connection closed for user %s", identity.user_id)


__all__ = ["router"]
