"""In-memory registry of live websocket connections keyed by user."""
from __future__ import annotations

import asyncio
from typing import Any, Protocol
from uuid import UUID


class PushConnection(Protocol):
    """Anything that can receive a text frame and be closed; ``fastapi.WebSocket`` qualifies."""

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = ...) -> None: ...


class ConnectionRegistry:
    """Track which live connections belong to which user.

    Each user maps to a small set of connections (one per device or tab).
    Sets are created on first registration and dropped once their last
    connection is removed, so add/remove cycles leave nothing behind.
    """

    def __init__(self) -> None:
        self._by_user: dict[UUID, set[Any]] = {}
        self._owners: dict[Any, UUID] = {}
        self._lock = asyncio.Lock()

    async def add(self, user_id: UUID, connection: PushConnection) -> None:
        async with self._lock:
            previous = self._owners.get(connection)
            if previous is not None and previous != user_id:
                self._discard(previous, connection)
            self._by_user.setdefault(user_id, set()).add(connection)
            self._owners[connection] = user_id

    async def remove(self, connection: PushConnection) -> UUID | None:
        """Forget ``connection``; returns its owner when it was registered."""

        async with self._lock:
            user_id = self._owners.pop(connection, None)
            if user_id is not None:
                self._discard(user_id, connection)
            return user_id

    def _discard(self, user_id: UUID, connection: Any) -> None:
        group = self._by_user.get(user_id)
        if group is None:
            return
        group.discard(connection)
        if not group:
            self._by_user.pop(user_id, None)

    async def connections(self) -> list[PushConnection]:
        async with self._lock:
            return list(self._owners)

    async def connections_for(self, user_id: UUID) -> list[PushConnection]:
        async with self._lock:
            return list(self._by_user.get(user_id, ()))

    def is_registered(self, user_id: UUID, connection: PushConnection) -> bool:
        return connection in self._by_user.get(user_id, ())

    def __len__(self) -> int:
        return len(self._owners)

    async def clear(self) -> None:
        async with self._lock:
            self._by_user.clear()
            self._owners.clear()


__all__ = ["ConnectionRegistry", "PushConnection"]
