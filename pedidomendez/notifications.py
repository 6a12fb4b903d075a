"""Push notifications to clients, couriers and administrators."""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


class NotificationService:
    """Records push notifications; delivery is only logged for now."""

    def __init__(self, user_repository: Any = None) -> None:
        self.user_repository = user_repository

    def send_to_client(self, client_id: str, message: str, order_id: str) -> None:
        logger.info("Notificación para cliente %s: %s (Pedido: %s)", client_id, message, order_id)

    def send_to_repartidores(self, message: str, order_id: str) -> None:
        logger.info(
            "Notificación para todos los repartidores: %s (Pedido: %s)", message, order_id
        )

    def send_to_specific_repartidor(
        self, repartidor_id: str, message: str, order_id: str
    ) -> None:
        logger.info(
            "Notificación para repartidor %s: %s (Pedido: %s)", repartidor_id, message, order_id
        )

    def send_to_admin(self, message: str, order_id: str) -> None:
        logger.info("Notificación para administradores: %s (Pedido: %s)", message, order_id)

    def register_device_token(self, user_id: str, token: str) -> None:
        logger.info("Registrando token FCM %s para usuario %s", token, user_id)