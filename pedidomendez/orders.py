"""Order lifecycle: creation, status transitions, courier assignment and ETAs."""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Protocol

from pedidomendez.catalog import ProductNotFoundError
from pedidomendez.hub import HubInterface
from pedidomendez.message import Message, MessageType, marshal_payload
from pedidomendez.notifications import NotificationService
from pedidomendez.users import UserNotFoundError, UserRole

logger = logging.getLogger(__name__)


class OrderStatus(str, Enum):
    """Stage an order has reached."""

    PENDING = "PENDING"
    PENDING_OUT_OF_HOURS = "PENDING_OUT_OF_HOURS"
    CONFIRMED = "CONFIRMED"
    ASSIGNED = "ASSIGNED"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class OrderServiceError(Exception):
    """Base class for errors raised by the order service."""

    default_message = "error de pedido"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class OrderNotFoundError(OrderServiceError, LookupError):
    default_message = "pedido no encontrado"


class InvalidOrderStatusError(OrderServiceError, ValueError):
    default_message = "estado de pedido inválido"


class OutsideBusinessHoursError(OrderServiceError):
    default_message = "fuera del horario de atención"


class InvalidTransitionError(OrderServiceError, ValueError):
    default_message = "transición de estado inválida"


class OrderAlreadyAssignedError(OrderServiceError):
    default_message = "pedido ya asignado"


class InvalidRoleError(OrderServiceError, PermissionError):
    default_message = "rol de usuario inválido"


class ProductInactiveError(OrderServiceError):
    default_message = "producto no está activo"


class MissingRepartidorError(OrderServiceError):
    default_message = "no se puede cambiar a 'EN CAMINO' sin asignar un repartidor primero"


_PENDING_STATES = frozenset({OrderStatus.PENDING, OrderStatus.PENDING_OUT_OF_HOURS})
_ASSIGNABLE_STATES = _PENDING_STATES | {OrderStatus.CONFIRMED}
_ETA_STATES = frozenset({OrderStatus.CONFIRMED, OrderStatus.ASSIGNED, OrderStatus.IN_TRANSIT})

_ADMIN_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.PENDING_OUT_OF_HOURS: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.ASSIGNED, OrderStatus.CANCELLED}),
}

_REPARTIDOR_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.ASSIGNED: frozenset({OrderStatus.IN_TRANSIT}),
    OrderStatus.IN_TRANSIT: frozenset({OrderStatus.DELIVERED}),
}

_STATUS_MESSAGES: dict[OrderStatus, str] = {
    OrderStatus.CONFIRMED: "Tu pedido ha sido confirmado.",
    OrderStatus.IN_TRANSIT: "Tu pedido está en camino.",
    OrderStatus.DELIVERED: "Tu pedido ha sido entregado.",
    OrderStatus.CANCELLED: "Tu pedido ha sido cancelado.",
}


class _OrderRepository(Protocol):
    def create(self, order: Any) -> None: ...
    def add_order_item(self, item: Any) -> None: ...
    def find_by_id(self, order_id: str) -> Any: ...
    def find_by_client_id(self, client_id: str) -> list[Any]: ...
    def find_by_repartidor_id(self, repartidor_id: str) -> list[Any]: ...
    def find_pending_orders(self) -> list[Any]: ...
    def find_by_status(self, status: Any) -> list[Any]: ...
    def find_all(self) -> list[Any]: ...
    def update_status(self, order_id: str, status: Any) -> None: ...
    def assign_repartidor(self, order_id: str, repartidor_id: str) -> None: ...
    def set_estimated_arrival_time(self, order_id: str, eta: datetime) -> None: ...
    def find_nearby_orders(self, lat: float, lng: float, radius_km: float) -> list[Any]: ...


def _lookup(find: Callable[[str], Any], key: str) -> Any:
    """Call a repository finder, mapping a lookup failure to None."""
    try:
        return find(key)
    except LookupError:
        return None


def _rfc3339(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.astimezone()
    text = moment.replace(microsecond=0).isoformat()
    return text[:-6] + "Z" if text.endswith("+00:00") else text


def _repartidor_name(order: Any) -> str:
    repartidor = getattr(order, "assigned_repartidor", None)
    if repartidor is not None:
        return repartidor.full_name
    return "un repartidor"


def _eta_text(order: Any) -> str | None:
    eta = getattr(order, "estimated_arrival_time", None)
    return _rfc3339(eta) if eta is not None else None


class OrderService:
    """Coordinates orders, users, products and the notification channels.

    ``within_business_hours`` decides whether a new order counts as placed
    during opening hours; without it every order is taken as in hours.
    ``clock`` supplies the order time.
    """

    def __init__(
        self,
        order_repo: _OrderRepository,
        user_repo: Any,
        product_repo: Any,
        notification_service: NotificationService | None = None,
        ws_hub: HubInterface | None = None,
        *,
        within_business_hours: Callable[[datetime], bool] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._orders = order_repo
        self._users = user_repo
        self._products = product_repo
        self._notifications = notification_service
        self._hub = ws_hub
        self._within_business_hours = within_business_hours
        self._clock = clock or datetime.now

    # Queries

    def get_order_by_id(self, order_id: str) -> Any:
        return self._orders.find_by_id(order_id)

    def get_orders_by_client_id(self, client_id: str) -> list[Any]:
        return self._orders.find_by_client_id(client_id)

    def get_orders_by_repartidor_id(self, repartidor_id: str) -> list[Any]:
        return self._orders.find_by_repartidor_id(repartidor_id)

    def get_pending_orders(self) -> list[Any]:
        return self._orders.find_pending_orders()

    def get_orders_by_status(self, status: OrderStatus | str) -> list[Any]:
        return self._orders.find_by_status(status)

    def get_all_orders(self) -> list[Any]:
        return self._orders.find_all()

    def find_nearby_orders(self, lat: float, lng: float, radius_km: float) -> list[Any]:
        return self._orders.find_nearby_orders(lat, lng, radius_km)

    # Commands

    def create_order(self, order: Any, items: list[Any]) -> Any:
        """Price the items, store the order and announce it to couriers and admins."""
        client = _lookup(self._users.find_by_id, str(order.client_id))
        if client is None:
            raise UserNotFoundError()
        if client.user_role != UserRole.CLIENT:
            raise InvalidRoleError()

        total = 0.0
        for item in items:
            product = _lookup(self._products.find_by_id, str(item.product_id))
            if product is None:
                raise ProductNotFoundError()
            if not product.is_active:
                raise ProductInactiveError()
            item.unit_price = product.price
            item.subtotal = float(item.quantity) * item.unit_price
            total += item.subtotal

        order.total_amount = total
        order.order_time = self._clock()

        in_hours = (
            self._within_business_hours(order.order_time)
            if self._within_business_hours is not None
            else True
        )
        order.order_status = OrderStatus.PENDING if in_hours else OrderStatus.PENDING_OUT_OF_HOURS

        self._orders.create(order)
        for item in items:
            item.order_id = order.order_id
            self._orders.add_order_item(item)

        full_order = _lookup(self._orders.find_by_id, str(order.order_id))
        if full_order is not None:
            order = full_order

        self._notify_new_order(order)
        return order

    def update_order_status(
        self,
        order_id: str,
        new_status: OrderStatus | str,
        user_id: str,
        user_role: UserRole | str,
    ) -> Any:
        """Move an order to a new status if the caller's role allows it."""
        order = _lookup(self._orders.find_by_id, order_id)
        if order is None:
            raise OrderNotFoundError()

        if not self._can_update_status(order, new_status, user_id, user_role):
            raise InvalidTransitionError()

        if (
            user_role == UserRole.REPARTIDOR
            and new_status == OrderStatus.CONFIRMED
            and order.assigned_repartidor_id is None
        ):
            self._orders.assign_repartidor(order_id, user_id)

        if new_status == OrderStatus.IN_TRANSIT and order.assigned_repartidor_id is None:
            raise MissingRepartidorError()

        self._orders.update_status(order_id, new_status)
        updated = self._reload(order_id)
        self._notify_status_change(updated)
        return updated

    def assign_repartidor(self, order_id: str, repartidor_id: str) -> Any:
        """Give an open order to a courier (or admin) and mark it assigned."""
        order = _lookup(self._orders.find_by_id, order_id)
        if order is None:
            raise OrderNotFoundError()

        if order.order_status not in _ASSIGNABLE_STATES:
            raise InvalidOrderStatusError()
        if order.assigned_repartidor_id is not None:
            raise OrderAlreadyAssignedError()

        repartidor = _lookup(self._users.find_by_id, repartidor_id)
        if repartidor is None:
            raise UserNotFoundError()
        if repartidor.user_role not in (UserRole.REPARTIDOR, UserRole.ADMIN):
            raise InvalidRoleError()

        self._orders.assign_repartidor(order_id, repartidor_id)
        self._orders.update_status(order_id, OrderStatus.ASSIGNED)
        updated = self._reload(order_id)
        self._notify_order_assigned(updated)
        return updated

    def set_estimated_arrival_time(self, order_id: str, eta: datetime) -> Any:
        """Record when an order in progress is expected to arrive."""
        order = _lookup(self._orders.find_by_id, order_id)
        if order is None:
            raise OrderNotFoundError()
        if order.order_status not in _ETA_STATES:
            raise InvalidOrderStatusError()

        self._orders.set_estimated_arrival_time(order_id, eta)
        updated = self._reload(order_id)
        self._notify_eta(updated)
        return updated

    # Helpers

    def _reload(self, order_id: str) -> Any:
        order = self._orders.find_by_id(order_id)
        if order is None:
            raise OrderNotFoundError()
        return order

    @staticmethod
    def _can_update_status(
        order: Any, new_status: Any, user_id: str, user_role: Any
    ) -> bool:
        current = order.order_status
        if user_role == UserRole.ADMIN:
            return new_status in _ADMIN_TRANSITIONS.get(current, frozenset())

        if user_role == UserRole.REPARTIDOR:
            if new_status == OrderStatus.CONFIRMED and current in _PENDING_STATES:
                return True
            assigned = order.assigned_repartidor_id
            if assigned is not None and str(assigned) == user_id:
                return new_status in _REPARTIDOR_TRANSITIONS.get(current, frozenset())
            return False

        if user_role == UserRole.CLIENT:
            return (
                new_status == OrderStatus.CANCELLED
                and str(order.client_id) == user_id
                and current in _PENDING_STATES
            )

        return False

    def _push(self, message: Message, *, user_id: str | None = None) -> None:
        if self._hub is None:
            return
        if user_id is not None:
            self._hub.send_to_user(user_id, message)
        self._hub.send_to_role(UserRole.REPARTIDOR.value, message)
        self._hub.send_to_role(UserRole.ADMIN.value, message)

    def _notify_new_order(self, order: Any) -> None:
        order_id = str(order.order_id)
        text = f"Nuevo pedido #{order_id[:8]} disponible"
        if self._notifications is not None:
            self._notifications.send_to_repartidores(text, order_id)

        if self._hub is None:
            logger.info(
                "[WebSocket] Hub not configured, skipping websocket notification for order %s",
                order_id,
            )
            return

        client = getattr(order, "client", None)
        payload = {
            "order_id": order_id,
            "status": OrderStatus(order.order_status).value,
            "client_id": str(order.client_id),
            "client_name": (getattr(client, "full_name", "") or "") if client else "",
            "address": order.delivery_address_text,
            "total_amount": order.total_amount,
            "order_time": _rfc3339(order.order_time),
        }
        logger.info("[WebSocket] Enviando mensaje de nuevo pedido: %s", payload)
        self._push(Message(MessageType.NEW_ORDER_AVAILABLE, marshal_payload(payload)))

    def _notify_status_change(self, order: Any) -> None:
        status = order.order_status
        if status == OrderStatus.ASSIGNED:
            text = f"Tu pedido ha sido asignado a {_repartidor_name(order)}."
        else:
            text = _STATUS_MESSAGES.get(status, "El estado de tu pedido ha sido actualizado.")

        client_id = str(order.client_id)
        if self._notifications is not None:
            self._notifications.send_to_client(client_id, text, str(order.order_id))

        payload: dict[str, Any] = {
            "order_id": str(order.order_id),
            "status": OrderStatus(status).value,
            "message": text,
        }
        eta = _eta_text(order)
        if eta is not None:
            payload["estimated_arrival_time"] = eta
        self._push(
            Message(MessageType.ORDER_STATUS_UPDATE, marshal_payload(payload)),
            user_id=client_id,
        )

    def _notify_order_assigned(self, order: Any) -> None:
        name = _repartidor_name(order)
        text = f"Tu pedido ha sido asignado a {name} y pronto iniciará la entrega."
        client_id = str(order.client_id)
        if self._notifications is not None:
            self._notifications.send_to_client(client_id, text, str(order.order_id))

        payload: dict[str, Any] = {
            "order_id": str(order.order_id),
            "status": OrderStatus(order.order_status).value,
            "message": text,
        }
        eta = _eta_text(order)
        if eta is not None:
            payload["estimated_arrival_time"] = eta
        if name:
            payload["repartidor_name"] = name
        self._push(
            Message(MessageType.ORDER_STATUS_UPDATE, marshal_payload(payload)),
            user_id=client_id,
        )

    def _notify_eta(self, order: Any) -> None:
        eta = getattr(order, "estimated_arrival_time", None)
        if eta is None:
            return
        text = f"Tu pedido llegará aproximadamente a las {eta.strftime('%H:%M')}"
        if self._notifications is not None:
            self._notifications.send_to_client(str(order.client_id), text, str(order.order_id))
        else:
            logger.info("Notificación para cliente %s: %s", order.client_id, text)