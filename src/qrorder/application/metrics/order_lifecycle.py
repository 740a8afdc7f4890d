from __future__ import annotations

from datetime import datetime, timezone

from prometheus_client import Counter, Gauge, Histogram

from qrorder.domain.order.entities import Order, OrderStatus

ORDERS_PLACED_TOTAL = Counter(
    "qrorder_orders_placed_total",
    "Total number of orders placed.",
    ["restaurant_id"],
)

ORDER_TRANSITION_TOTAL = Counter(
    "qrorder_order_transition_total",
    "Total number of order lifecycle transitions.",
    ["from", "to"],
)

ORDER_TRANSITION_REJECTED_TOTAL = Counter(
    "qrorder_order_transition_rejected_total",
    "Total number of rejected order status changes.",
    ["from", "to", "reason"],
)

ORDER_TIME_IN_LIFECYCLE_SECONDS = Histogram(
    "qrorder_order_time_to_status_seconds",
    "Time between order placement and reaching a status.",
    ["status"],
)

KITCHEN_ACTIVE_ORDERS = Gauge(
    "qrorder_kitchen_active_orders",
    "Number of active orders returned by the last kitchen board query.",
    ["restaurant_id"],
)


def record_order_placed(order: Order) -> None:
    ORDERS_PLACED_TOTAL.labels(restaurant_id=str(order.restaurant_id)).inc()


def record_transition(
    order: Order,
    from_status: OrderStatus,
    now: datetime | None = None,
) -> None:
    ORDER_TRANSITION_TOTAL.labels(**{"from": from_status.value, "to": order.status.value}).inc()
    current = now or datetime.now(timezone.utc)
    ORDER_TIME_IN_LIFECYCLE_SECONDS.labels(status=order.status.value).observe(
        max((current - order.created_at).total_seconds(), 0.0)
    )


def record_transition_rejected(
    from_status: OrderStatus,
    to_status: OrderStatus,
    reason: str,
) -> None:
    ORDER_TRANSITION_REJECTED_TOTAL.labels(
        **{"from": from_status.value, "to": to_status.value, "reason": reason}
    ).inc()


def record_kitchen_queue_size(restaurant_id: str, size: int) -> None:
    KITCHEN_ACTIVE_ORDERS.labels(restaurant_id=restaurant_id).set(size)
