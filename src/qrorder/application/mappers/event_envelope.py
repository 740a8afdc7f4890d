from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import uuid4

from qrorder.domain.order.entities import Order, OrderStatus


def _serialize_event(
    *,
    event_type: str,
    occurred_at: datetime,
    restaurant_id: str,
    payload: dict[str, Any],
    trace_id: str | None,
    request_id: str | None,
) -> str:
    envelope = {
        "event_id": str(uuid4()),
        "event_type": event_type,
        "occurred_at": occurred_at.isoformat(),
        "request_id": request_id,
        "trace_id": trace_id,
        "restaurant_id": restaurant_id,
        "payload": payload,
    }
    return json.dumps(envelope, separators=(",", ":"), ensure_ascii=False)


def _order_payload(order: Order) -> dict[str, Any]:
    return {
        "orderId": str(order.order_id),
        "tableId": str(order.table_id),
        "userId": str(order.user_id),
        "status": order.status.value,
        "version": order.version,
        "totalMoney": {
            "amountCents": order.total.amount_cents,
            "currency": order.total.currency,
        },
        "createdAt": order.created_at.isoformat(),
        "lines": [
            {
                "itemId": str(line.item_id),
                "name": line.name,
                "quantity": line.quantity,
                "unitPrice": {
                    "amountCents": line.unit_price.amount_cents,
                    "currency": line.unit_price.currency,
                },
                "notes": line.notes,
            }
            for line in order.lines
        ],
    }


def serialize_order_placed(
    *,
    occurred_at: datetime,
    order: Order,
    trace_id: str | None,
    request_id: str | None,
) -> str:
    return _serialize_event(
        event_type="order.placed",
        occurred_at=occurred_at,
        restaurant_id=str(order.restaurant_id),
        trace_id=trace_id,
        request_id=request_id,
        payload=_order_payload(order),
    )


def serialize_order_status_changed(
    *,
    occurred_at: datetime,
    order: Order,
    previous_status: OrderStatus,
    trace_id: str | None,
    request_id: str | None,
) -> str:
    payload = _order_payload(order)
    payload["previousStatus"] = previous_status.value
    return _serialize_event(
        event_type="order.status_changed",
        occurred_at=occurred_at,
        restaurant_id=str(order.restaurant_id),
        trace_id=trace_id,
        request_id=request_id,
        payload=payload,
    )
