from __future__ import annotations

from datetime import datetime

from qrorder.application.dto.responses import (
    MoneyResponse,
    OrderLineResponse,
    OrderResponse,
)
from qrorder.domain.common.money import Money
from qrorder.domain.order.entities import Order


def to_money_response(money: Money) -> MoneyResponse:
    return MoneyResponse(amountCents=money.amount_cents, currency=money.currency)


def to_order_response(
    order: Order,
    *,
    is_most_recent_for_table: bool | None = None,
    now: datetime | None = None,
) -> OrderResponse:
    cancellable: bool | None = None
    if is_most_recent_for_table is not None and now is not None:
        cancellable = order.is_cancellable(
            is_most_recent_for_table=is_most_recent_for_table,
            now=now,
        )

    return OrderResponse(
        orderId=str(order.order_id),
        restaurantId=str(order.restaurant_id),
        tableId=str(order.table_id),
        userId=str(order.user_id),
        status=order.status.value,
        lines=[
            OrderLineResponse(
                itemId=str(line.item_id),
                name=line.name,
                description=line.description,
                image=line.image,
                categoryId=line.category_id,
                tags=list(line.tags),
                quantity=line.quantity,
                unitPrice=to_money_response(line.unit_price),
                lineTotal=to_money_response(line.line_total),
                notes=line.notes,
            )
            for line in order.lines
        ],
        total=to_money_response(order.total),
        createdAt=order.created_at,
        version=order.version,
        cancellable=cancellable,
        cancelDeadline=order.cancel_deadline if cancellable is not None else None,
    )
