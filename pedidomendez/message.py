"""Messages pushed to connected clients over the notification channel."""

from __future__ import annotations

import dataclasses
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class MessageType(str, Enum):
    """Kind of a pushed message."""

    ORDER_STATUS_UPDATE = "order_status_update"
    NEW_ORDER_AVAILABLE = "new_order_available"
    CATEGORY_UPDATE = "category_update"
    PRODUCT_UPDATE = "product_update"
    CHAT_MESSAGE = "chat_message"


@dataclass(frozen=True)
class Message:
    """A typed message whose payload is already-serialised JSON text."""

    type: MessageType
    payload: str | None = None

    def to_json(self) -> str:
        """Serialise the message, embedding the payload text as is."""
        payload = self.payload if self.payload is not None else "null"
        kind = json.dumps(MessageType(self.type).value)
        return f'{{"type":{kind},"payload":{payload}}}'


def _json_field(name: str, *, omitempty: bool = False) -> dict[str, Any]:
    return {"json": name, "omitempty": omitempty}


@dataclass
class OrderStatusUpdatePayload:
    order_id: str
    new_status: str
    message: str
    estimated_arrival: str = field(
        default="", metadata=_json_field("estimated_arrival_time", omitempty=True)
    )


@dataclass
class NewOrderAvailablePayload:
    order_id: str
    client_address: str
    total_amount: str
    order_time: str


@dataclass
class CategoryUpdatePayload:
    category_id: str
    action: str
    category: str = field(default="", metadata=_json_field("category", omitempty=True))


@dataclass
class ProductUpdatePayload:
    product_id: str
    action: str
    product: str = field(default="", metadata=_json_field("product", omitempty=True))


def _is_empty(value: Any) -> bool:
    return value is None or value is False or value == 0 or (
        hasattr(value, "__len__") and len(value) == 0
    )


def _to_plain(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        result: dict[str, Any] = {}
        for f in dataclasses.fields(value):
            item = getattr(value, f.name)
            if f.metadata.get("omitempty") and _is_empty(item):
                continue
            result[f.metadata.get("json", f.name)] = _to_plain(item)
        return result
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: _to_plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(item) for item in value]
    return value


def marshal_payload(value: Any) -> str | None:
    """Serialise a payload to compact JSON text; log and return None on failure."""
    try:
        return json.dumps(_to_plain(value), separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        logger.error("[WebSocket] Error serializando payload: %s", exc)
        return None