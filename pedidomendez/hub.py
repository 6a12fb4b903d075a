"""Registry of live connections and fan-out of messages to them."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Protocol

from pedidomendez.message import Message

logger = logging.getLogger(__name__)

SEND_BUFFER = 256


class HubInterface(Protocol):
    """Operations that services need from a hub."""

    def send_to_user(self, user_id: str, message: Message) -> None: ...

    def send_to_role(self, role: str, message: Message) -> None: ...

    def broadcast(self, message: Message) -> None: ...


class Client:
    """One live connection with a bounded outgoing queue."""

    def __init__(self, user_id: str, role: str, capacity: int = SEND_BUFFER) -> None:
        self.user_id = user_id
        self.role = role
        self._queue: queue.Queue[Message] = queue.Queue(maxsize=capacity)
        self.closed = False

    def __repr__(self) -> str:
        return f"Client(user_id={self.user_id!r}, role={self.role!r}, closed={self.closed})"

    def _offer(self, message: Message) -> bool:
        """Queue without blocking; False if closed or full."""
        if self.closed:
            return False
        try:
            self._queue.put_nowait(message)
        except queue.Full:
            return False
        return True

    def _put(self, message: Message) -> None:
        if not self.closed:
            self._queue.put(message)

    def _close(self) -> None:
        self.closed = True

    def drain(self) -> list[Message]:
        """Remove and return every queued message, oldest first."""
        messages: list[Message] = []
        while True:
            try:
                messages.append(self._queue.get_nowait())
            except queue.Empty:
                return messages


class Hub:
    """Tracks clients by user and by role and delivers messages to them."""

    def __init__(self) -> None:
        self._clients: dict[str, Client] = {}
        self._by_role: dict[str, dict[str, Client]] = {}
        self._lock = threading.RLock()

    def register(self, client: Client) -> None:
        with self._lock:
            self._clients[client.user_id] = client
            self._by_role.setdefault(client.role, {})[client.user_id] = client

    def unregister(self, client: Client) -> None:
        with self._lock:
            if client.user_id in self._clients:
                del self._clients[client.user_id]
                self._by_role.get(client.role, {}).pop(client.user_id, None)
                client._close()

    def _drop(self, client: Client) -> None:
        client._close()
        self._clients.pop(client.user_id, None)
        self._by_role.get(client.role, {}).pop(client.user_id, None)

    def send_to_user(self, user_id: str, message: Message) -> None:
        """Deliver to one user, waiting for room in the queue if needed."""
        with self._lock:
            client = self._clients.get(user_id)
        if client is not None:
            client._put(message)

    def send_to_role(self, role: str, message: Message) -> None:
        """Deliver to every client of a role, dropping clients whose queue is full."""
        with self._lock:
            logger.info(
                "[WebSocket Hub] Enviando mensaje tipo '%s' a rol '%s'",
                MessageType_value(message),
                role,
            )
            logger.info("[WebSocket Hub] Clientes conectados por rol: %s", self.role_counts())
            clients = self._by_role.get(role, {})
            logger.info(
                "[WebSocket Hub] Enviando a %d clientes del rol '%s'", len(clients), role
            )
            for user_id, client in list(clients.items()):
                if client._offer(message):
                    logger.info(
                        "[WebSocket Hub] Mensaje enviado exitosamente a cliente %s", user_id
                    )
                else:
                    logger.info(
                        "[WebSocket Hub] Canal lleno para cliente %s, cerrando conexión",
                        user_id,
                    )
                    client._close()
                    self._clients.pop(user_id, None)
                    clients.pop(user_id, None)

    def broadcast(self, message: Message) -> None:
        """Deliver to every client, dropping clients whose queue is full."""
        with self._lock:
            for client in list(self._clients.values()):
                if not client._offer(message):
                    self._drop(client)

    def role_counts(self) -> dict[str, int]:
        """Number of connected clients for each role seen so far."""
        with self._lock:
            return {role: len(clients) for role, clients in self._by_role.items()}


def MessageType_value(message: Message) -> str:  # noqa: N802
    kind = message.type
    return getattr(kind, "value", str(kind))