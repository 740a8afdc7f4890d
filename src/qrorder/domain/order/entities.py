from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum

from qrorder.domain.common.ids import (
    GUEST_USER_ID,
    MenuItemId,
    OrderId,
    RestaurantId,
    TableId,
    UserId,
)
from qrorder.domain.common.money import Money, sum_money

CANCELLATION_WINDOW = timedelta(seconds=60)


class OrderStatus(str, Enum):
    RECEIVED = "Received"
    IN_PROGRESS = "In Progress"
    READY = "Ready"
    SERVED = "Served"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({OrderStatus.SERVED, OrderStatus.CANCELLED})

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.RECEIVED: frozenset({OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED}),
    OrderStatus.IN_PROGRESS: frozenset({OrderStatus.READY}),
    OrderStatus.READY: frozenset({OrderStatus.SERVED}),
    OrderStatus.SERVED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

_STATUS_LOOKUP = {re.sub(r"[\s_-]", "", status.value).lower(): status for status in OrderStatus}


def parse_order_status(raw: str) -> OrderStatus:
    """Accepts the wire value as well as spellings like ``InProgress`` or ``in_progress``."""
    status = _STATUS_LOOKUP.get(re.sub(r"[\s_-]", "", raw).lower())
    if status is None:
        raise ValueError(f"unrecognized order status: {raw!r}")
    return status


@dataclass(frozen=True)
class OrderLine:
    item_id: MenuItemId
    name: str
    quantity: int
    unit_price: Money
    line_total: Money
    notes: str | None = None
    description: str | None = None
    image: str | None = None
    category_id: str | None = None
    tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")
        if self.unit_price.currency != self.line_total.currency:
            raise ValueError("line_total currency must match unit_price currency")
        if self.line_total != self.unit_price.times(self.quantity):
            raise ValueError("line_total must equal unit_price * quantity")


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    restaurant_id: RestaurantId
    table_id: TableId
    status: OrderStatus
    lines: list[OrderLine]
    total: Money
    created_at: datetime
    user_id: UserId = GUEST_USER_ID
    version: int = 1
    idempotency_key: str | None = None
    idempotency_hash: str | None = None

    def __post_init__(self) -> None:
        if not self.lines:
            raise ValueError("order must contain at least one line")
        item_ids = [line.item_id for line in self.lines]
        if len(set(item_ids)) != len(item_ids):
            raise ValueError("order lines must reference distinct menu items")
        if self.total != sum_money(line.line_total for line in self.lines):
            raise ValueError("order total must equal sum of line totals")
        if self.version < 1:
            raise ValueError("version must be >= 1")

    @property
    def cancel_deadline(self) -> datetime:
        return self.created_at + CANCELLATION_WINDOW

    def is_cancellable(self, *, is_most_recent_for_table: bool, now: datetime) -> bool:
        # Recomputed on every call; eligibility is never stored.
        return (
            self.status == OrderStatus.RECEIVED
            and is_most_recent_for_table
            and now - self.created_at < CANCELLATION_WINDOW
        )

    def transition_to(
        self,
        target: OrderStatus,
        *,
        now: datetime,
        is_most_recent_for_table: bool = False,
    ) -> Order:
        if target == self.status:
            return self
        if self.status.is_terminal:
            raise OrderTransitionError(
                f"order {self.order_id} is already finished (status={self.status.value})"
            )
        if target not in ALLOWED_TRANSITIONS[self.status]:
            raise OrderTransitionError(
                f"cannot move order from status={self.status.value} to status={target.value}"
            )
        if target == OrderStatus.CANCELLED and not self.is_cancellable(
            is_most_recent_for_table=is_most_recent_for_table,
            now=now,
        ):
            if not is_most_recent_for_table:
                raise CancellationNotAllowedError(
                    f"order {self.order_id} is not the most recent order for table {self.table_id}"
                )
            raise CancellationNotAllowedError(
                f"cancellation window of {int(CANCELLATION_WINDOW.total_seconds())}s has elapsed"
            )
        return replace(self, status=target)


def build_order_line(
    item_id: MenuItemId,
    name: str,
    unit_price: Money,
    quantity: int,
    notes: str | None = None,
    *,
    description: str | None = None,
    image: str | None = None,
    category_id: str | None = None,
    tags: tuple[str, ...] = (),
) -> OrderLine:
    if quantity < 1:
        raise ValueError("quantity must be >= 1")
    return OrderLine(
        item_id=item_id,
        name=name,
        quantity=quantity,
        unit_price=unit_price,
        line_total=unit_price.times(quantity),
        notes=notes,
        description=description,
        image=image,
        category_id=category_id,
        tags=tags,
    )


def create_received_order(
    order_id: OrderId,
    restaurant_id: RestaurantId,
    table_id: TableId,
    lines: list[OrderLine],
    now: datetime,
    user_id: UserId | None = None,
    idempotency_key: str | None = None,
    idempotency_hash: str | None = None,
) -> Order:
    if not lines:
        raise ValueError("order must contain at least one line")

    return Order(
        order_id=order_id,
        restaurant_id=restaurant_id,
        table_id=table_id,
        status=OrderStatus.RECEIVED,
        lines=lines,
        total=sum_money(line.line_total for line in lines),
        created_at=now,
        user_id=user_id or GUEST_USER_ID,
        version=1,
        idempotency_key=idempotency_key,
        idempotency_hash=idempotency_hash,
    )


class OrderTransitionError(Exception):
    pass


class CancellationNotAllowedError(OrderTransitionError):
    pass
