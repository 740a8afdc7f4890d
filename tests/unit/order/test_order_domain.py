from __future__ import annotations

import sys
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from qrorder.domain.common.ids import GUEST_USER_ID, MenuItemId, OrderId, RestaurantId, TableId
from qrorder.domain.common.money import Money, sum_money
from qrorder.domain.order.entities import (
    CancellationNotAllowedError,
    Order,
    OrderLine,
    OrderStatus,
    OrderTransitionError,
    build_order_line,
    create_received_order,
    parse_order_status,
)

CREATED_AT = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


def _order(status: OrderStatus = OrderStatus.RECEIVED) -> Order:
    order = create_received_order(
        order_id=OrderId("ord_001"),
        restaurant_id=RestaurantId("rst_001"),
        table_id=TableId("tbl_001"),
        lines=[
            build_order_line(
                item_id=MenuItemId("itm_001"),
                name="Pizza",
                unit_price=Money(amount_cents=1450, currency="USD"),
                quantity=1,
            )
        ],
        now=CREATED_AT,
    )
    return replace(order, status=status)


def test_create_received_order_sums_line_totals() -> None:
    order = create_received_order(
        order_id=OrderId("ord_001"),
        restaurant_id=RestaurantId("rst_001"),
        table_id=TableId("tbl_001"),
        lines=[
            build_order_line(MenuItemId("itm_001"), "Espresso", Money(300, "USD"), 2),
            build_order_line(MenuItemId("itm_002"), "Croissant", Money(375, "USD"), 2),
        ],
        now=CREATED_AT,
    )

    assert order.status == OrderStatus.RECEIVED
    assert order.total == Money(amount_cents=1350, currency="USD")
    assert order.user_id == GUEST_USER_ID
    assert order.version == 1


def test_order_rejects_total_mismatch() -> None:
    line = build_order_line(MenuItemId("itm_001"), "Pizza", Money(1450, "USD"), 1)
    with pytest.raises(ValueError):
        Order(
            order_id=OrderId("ord_001"),
            restaurant_id=RestaurantId("rst_001"),
            table_id=TableId("tbl_001"),
            status=OrderStatus.RECEIVED,
            lines=[line],
            total=Money(amount_cents=1000, currency="USD"),
            created_at=CREATED_AT,
        )


def test_order_rejects_repeated_menu_item() -> None:
    line = build_order_line(MenuItemId("itm_001"), "Pizza", Money(1450, "USD"), 1)
    with pytest.raises(ValueError):
        create_received_order(
            order_id=OrderId("ord_001"),
            restaurant_id=RestaurantId("rst_001"),
            table_id=TableId("tbl_001"),
            lines=[line, line],
            now=CREATED_AT,
        )


def test_order_line_requires_positive_quantity() -> None:
    with pytest.raises(ValueError):
        OrderLine(
            item_id=MenuItemId("itm_001"),
            name="Pizza",
            quantity=0,
            unit_price=Money(1450, "USD"),
            line_total=Money(0, "USD"),
        )


def test_sum_money_rejects_mixed_currencies() -> None:
    with pytest.raises(ValueError):
        sum_money([Money(100, "USD"), Money(100, "EUR")])


@pytest.mark.parametrize(
    ("current", "target"),
    [
        (OrderStatus.RECEIVED, OrderStatus.IN_PROGRESS),
        (OrderStatus.IN_PROGRESS, OrderStatus.READY),
        (OrderStatus.READY, OrderStatus.SERVED),
    ],
)
def test_forward_transitions_are_allowed(current: OrderStatus, target: OrderStatus) -> None:
    updated = _order(current).transition_to(target, now=CREATED_AT)

    assert updated.status == target
    assert updated.version == 1


@pytest.mark.parametrize(
    ("current", "target"),
    [
        (OrderStatus.RECEIVED, OrderStatus.READY),
        (OrderStatus.RECEIVED, OrderStatus.SERVED),
        (OrderStatus.READY, OrderStatus.IN_PROGRESS),
        (OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED),
        (OrderStatus.SERVED, OrderStatus.READY),
        (OrderStatus.CANCELLED, OrderStatus.RECEIVED),
    ],
)
def test_skips_backward_moves_and_terminal_exits_are_rejected(
    current: OrderStatus,
    target: OrderStatus,
) -> None:
    with pytest.raises(OrderTransitionError):
        _order(current).transition_to(target, now=CREATED_AT, is_most_recent_for_table=True)


@pytest.mark.parametrize("status", list(OrderStatus))
def test_same_status_is_a_no_op(status: OrderStatus) -> None:
    order = _order(status)

    assert order.transition_to(status, now=CREATED_AT + timedelta(hours=1)) is order


def test_cancel_within_window_for_latest_order() -> None:
    order = _order()

    cancelled = order.transition_to(
        OrderStatus.CANCELLED,
        now=CREATED_AT + timedelta(seconds=59),
        is_most_recent_for_table=True,
    )

    assert cancelled.status == OrderStatus.CANCELLED


def test_cancel_after_window_is_rejected() -> None:
    with pytest.raises(CancellationNotAllowedError, match="window"):
        _order().transition_to(
            OrderStatus.CANCELLED,
            now=CREATED_AT + timedelta(seconds=61),
            is_most_recent_for_table=True,
        )


def test_cancel_of_older_order_is_rejected() -> None:
    with pytest.raises(CancellationNotAllowedError, match="most recent"):
        _order().transition_to(
            OrderStatus.CANCELLED,
            now=CREATED_AT + timedelta(seconds=5),
            is_most_recent_for_table=False,
        )


def test_is_cancellable_boundary() -> None:
    order = _order()

    assert order.cancel_deadline == CREATED_AT + timedelta(seconds=60)
    assert order.is_cancellable(is_most_recent_for_table=True, now=CREATED_AT)
    assert not order.is_cancellable(
        is_most_recent_for_table=True,
        now=CREATED_AT + timedelta(seconds=60),
    )
    assert not _order(OrderStatus.IN_PROGRESS).is_cancellable(
        is_most_recent_for_table=True,
        now=CREATED_AT,
    )


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("In Progress", OrderStatus.IN_PROGRESS),
        ("in_progress", OrderStatus.IN_PROGRESS),
        ("InProgress", OrderStatus.IN_PROGRESS),
        ("served", OrderStatus.SERVED),
        ("CANCELLED", OrderStatus.CANCELLED),
    ],
)
def test_parse_order_status_is_tolerant(raw: str, expected: OrderStatus) -> None:
    assert parse_order_status(raw) == expected


def test_parse_order_status_rejects_unknown_value() -> None:
    with pytest.raises(ValueError):
        parse_order_status("Delivered")
