from __future__ import annotations

import sys
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Collection

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from qrorder.application.errors import OrderNotFoundError, TableNotFoundError, ValidationError
from qrorder.application.ports.repositories import RevenueSummaryData
from qrorder.application.use_cases.get_order import GetOrder
from qrorder.application.use_cases.kitchen_queue import ACTIVE_STATUSES, KitchenQueue
from qrorder.application.use_cases.list_orders import ListOrders, parse_status_filter
from qrorder.application.use_cases.revenue_report import RevenueReport
from qrorder.application.use_cases.table_orders import TableOrders
from qrorder.domain.common.ids import MenuItemId, OrderId, RestaurantId, TableId
from qrorder.domain.common.money import Money
from qrorder.domain.order.entities import (
    Order,
    OrderStatus,
    build_order_line,
    create_received_order,
)
from qrorder.domain.table.entities import Table

BASE = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


def _order(order_id: str, seconds: int, status: OrderStatus, table_id: str = "tbl_001") -> Order:
    order = create_received_order(
        order_id=OrderId(order_id),
        restaurant_id=RestaurantId("rst_001"),
        table_id=TableId(table_id),
        lines=[build_order_line(MenuItemId("itm_001"), "Pizza", Money(1450, "USD"), 1)],
        now=BASE + timedelta(seconds=seconds),
    )
    return replace(order, status=status)


class FakeOrderRepository:
    def __init__(self, orders: list[Order]) -> None:
        self._orders = orders
        self.last_statuses: Collection[OrderStatus] | None = None
        self.last_since: datetime | None = None
        self.revenue_status: OrderStatus | None = None

    def _newest_first(self, orders: list[Order]) -> list[Order]:
        return sorted(orders, key=lambda order: (order.created_at, order.order_id), reverse=True)

    def get(self, order_id: OrderId) -> Order | None:
        return next((order for order in self._orders if order.order_id == order_id), None)

    def list_for_restaurant(self, restaurant_id, statuses=None, since=None) -> list[Order]:
        self.last_statuses = statuses
        self.last_since = since
        return self._newest_first(
            [
                order
                for order in self._orders
                if order.restaurant_id == restaurant_id
                and (statuses is None or order.status in statuses)
                and (since is None or order.created_at >= since)
            ]
        )

    def list_for_table(self, restaurant_id, table_id) -> list[Order]:
        return self._newest_first(
            [
                order
                for order in self._orders
                if order.restaurant_id == restaurant_id and order.table_id == table_id
            ]
        )

    def summarize_revenue(self, restaurant_id, status) -> RevenueSummaryData:
        self.revenue_status = status
        matching = [order for order in self._orders if order.status == status]
        return RevenueSummaryData(
            order_count=len(matching),
            amount_cents=sum(order.total.amount_cents for order in matching),
            currency="USD",
        )


class FakeTableRepository:
    def __init__(self, exists: bool = True) -> None:
        self._exists = exists

    def get(self, table_id: TableId, restaurant_id: RestaurantId) -> Table | None:
        if not self._exists:
            return None
        return Table(table_id=table_id, restaurant_id=restaurant_id, name="Table 1")


def _orders() -> list[Order]:
    return [
        _order("ord_001", 0, OrderStatus.SERVED),
        _order("ord_002", 10, OrderStatus.READY),
        _order("ord_003", 20, OrderStatus.CANCELLED, table_id="tbl_002"),
        _order("ord_004", 30, OrderStatus.RECEIVED),
        _order("ord_005", 40, OrderStatus.IN_PROGRESS, table_id="tbl_002"),
    ]


def test_kitchen_queue_excludes_finished_orders_newest_first() -> None:
    repository = FakeOrderRepository(_orders())

    response = KitchenQueue(order_repository=repository).execute(RestaurantId("rst_001"))

    assert [order.orderId for order in response.orders] == ["ord_005", "ord_004", "ord_002"]
    assert set(repository.last_statuses) == set(ACTIVE_STATUSES)
    assert OrderStatus.SERVED not in ACTIVE_STATUSES


def test_list_orders_filters_by_status_and_since() -> None:
    repository = FakeOrderRepository(_orders())
    use_case = ListOrders(order_repository=repository)

    everything = use_case.execute(RestaurantId("rst_001"), status="ALL")
    ready = use_case.execute(RestaurantId("rst_001"), status="ready")
    recent = use_case.execute(RestaurantId("rst_001"), since=BASE + timedelta(seconds=25))

    assert [order.orderId for order in everything.orders][0] == "ord_005"
    assert len(everything.orders) == 5
    assert [order.orderId for order in ready.orders] == ["ord_002"]
    assert [order.orderId for order in recent.orders] == ["ord_005", "ord_004"]


def test_list_orders_requires_restaurant_and_known_status() -> None:
    use_case = ListOrders(order_repository=FakeOrderRepository([]))

    with pytest.raises(ValidationError) as missing:
        use_case.execute(RestaurantId(""))
    with pytest.raises(ValidationError) as unknown:
        use_case.execute(RestaurantId("rst_001"), status="Eaten")

    assert missing.value.field == "restaurantId"
    assert unknown.value.field == "status"


def test_parse_status_filter_treats_all_as_no_filter() -> None:
    assert parse_status_filter(None) is None
    assert parse_status_filter("all") is None
    assert parse_status_filter("In Progress") == OrderStatus.IN_PROGRESS


def test_table_orders_marks_only_latest_order_cancellable() -> None:
    orders = [
        _order("ord_010", 0, OrderStatus.RECEIVED),
        _order("ord_011", 20, OrderStatus.RECEIVED),
    ]
    use_case = TableOrders(
        order_repository=FakeOrderRepository(orders),
        table_repository=FakeTableRepository(),
        clock=lambda: BASE + timedelta(seconds=30),
    )

    response = use_case.execute(RestaurantId("rst_001"), TableId("tbl_001"))

    latest, older = response.orders
    assert latest.orderId == "ord_011"
    assert latest.cancellable is True
    assert latest.cancelDeadline == BASE + timedelta(seconds=80)
    assert older.cancellable is False


def test_table_orders_window_elapsed() -> None:
    use_case = TableOrders(
        order_repository=FakeOrderRepository([_order("ord_010", 0, OrderStatus.RECEIVED)]),
        table_repository=FakeTableRepository(),
        clock=lambda: BASE + timedelta(seconds=61),
    )

    response = use_case.execute(RestaurantId("rst_001"), TableId("tbl_001"))

    assert response.orders[0].cancellable is False


def test_table_orders_unknown_table() -> None:
    use_case = TableOrders(
        order_repository=FakeOrderRepository([]),
        table_repository=FakeTableRepository(exists=False),
    )

    with pytest.raises(TableNotFoundError):
        use_case.execute(RestaurantId("rst_001"), TableId("tbl_404"))


def test_revenue_report_defaults_to_served_orders() -> None:
    repository = FakeOrderRepository(_orders())

    response = RevenueReport(order_repository=repository).execute(RestaurantId("rst_001"))

    assert repository.revenue_status == OrderStatus.SERVED
    assert response.status == "Served"
    assert response.orderCount == 1
    assert response.total.amountCents == 1450


def test_revenue_report_rejects_unknown_status() -> None:
    with pytest.raises(ValidationError):
        RevenueReport(order_repository=FakeOrderRepository([])).execute(
            RestaurantId("rst_001"),
            status="Paid",
        )


def test_get_order_not_found() -> None:
    use_case = GetOrder(order_repository=FakeOrderRepository(_orders()))

    assert use_case.execute(OrderId("ord_002")).status == "Ready"
    with pytest.raises(OrderNotFoundError):
        use_case.execute(OrderId("ord_404"))
