"""Realtime fan-out of newly created messages to live connections."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import status

from ..schemas import MessageResponse
from .connection_registry import ConnectionRegistry, PushConnection

logger = logging.getLogger(__name__)

RECEIVE_MESSAGE_EVENT = "receiveMessage"


class DeliveryDispatcher:
    """Push events to every connection in a :class:`ConnectionRegistry`.

    Delivery is best-effort and at most once per connection. Nothing is
    queued for users who are offline; they recover history through the
    conversation endpoint. A connection that fails or exceeds
    ``send_timeout`` is dropped from the registry and closed, so its client
    sees the disconnect and can reconnect.
    """

    def __init__(self, registry: ConnectionRegistry, *, send_timeout: float = 5.0) -> None:
        self.registry = registry
        self.send_timeout = send_timeout
        self._pending: set[asyncio.Task[int]] = set()

    def schedule_message(self, message: MessageResponse) -> asyncio.Task[int]:
        """Start broadcasting ``message`` without waiting for any connection."""

        task = asyncio.create_task(self.dispatch_message(message))
        self._pending.add(task)
        task.add_done_callback(self._forget)
        return task

    def _forget(self, task: asyncio.Task[int]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Message dispatch failed", exc_info=exc)

    async def dispatch_message(self, message: MessageResponse) -> int:
        """Broadcast ``message`` to all registered connections.

        Every live connection receives the event, not only the two parties;
        clients discard messages outside their open conversation. Returns
        the number of connections that accepted the frame.
        """

        payload = {"type": RECEIVE_MESSAGE_EVENT, "message": message.model_dump(mode="json")}
        delivered = await self.broadcast(payload)
        logger.debug("Message %s pushed to %d live connection(s)", message.id, delivered)
        return delivered

    async def broadcast(self, payload: dict[str, Any]) -> int:
        serialized = json.dumps(payload, default=str)
        targets = await self.registry.connections()
        if not targets:
            return 0
        results = await asyncio.gather(*(self._send(connection, serialized) for connection in targets))
        return sum(1 for delivered in results if delivered)

    async def _send(self, connection: PushConnection, serialized: str) -> bool:
        try:
            await asyncio.wait_for(connection.send_text(serialized), timeout=self.send_timeout)
        except asyncio.TimeoutError:
            logger.warning("Dropping connection after send timeout (%.1fs)", self.send_timeout)
        except Exception:
            logger.warning("Dropping connection after failed send", exc_info=True)
        else:
            return True
        await self.registry.remove(connection)
        await self._close(connection)
        return False

    async def _close(self, connection: PushConnection) -> None:
        try:
            await asyncio.wait_for(
                connection.close(code=status.WS_1011_INTERNAL_ERROR),
                timeout=self.send_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Timed out closing dropped connection")
        except Exception:
            logger.info("Dropped connection was already closed", exc_info=True)

    async def aclose(self) -> None:
        """Cancel broadcasts that are still in flight."""

        pending = list(self._pending)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


__all__ = ["DeliveryDispatcher", "RECEIVE_MESSAGE_EVENT"]
