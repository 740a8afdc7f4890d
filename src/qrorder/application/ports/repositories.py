from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Collection, Protocol

from qrorder.domain.common.ids import MenuItemId, OrderId, RestaurantId, TableId
from qrorder.domain.menu.entities import MenuItem
from qrorder.domain.order.entities import Order, OrderStatus
from qrorder.domain.table.entities import Table


class MenuRepository(Protocol):
    def get_items(
        self,
        restaurant_id: RestaurantId,
        item_ids: Collection[MenuItemId],
    ) -> dict[MenuItemId, MenuItem]: ...


class TableRepository(Protocol):
    def get(self, table_id: TableId, restaurant_id: RestaurantId) -> Table | None: ...


class OrderRepository(Protocol):
    def add(self, order: Order) -> None: ...

    def add_with_idempotency(
        self,
        order: Order,
        key: str,
        payload_hash: str,
    ) -> Order: ...

    def get(self, order_id: OrderId) -> Order | None: ...

    def get_by_idempotency_key(
        self,
        restaurant_id: RestaurantId,
        table_id: TableId,
        key: str,
    ) -> Order | None: ...

    def update_status_with_version(
        self,
        order_id: OrderId,
        new_status: OrderStatus,
        expected_version: int,
    ) -> Order: ...

    def list_for_restaurant(
        self,
        restaurant_id: RestaurantId,
        statuses: Collection[OrderStatus] | None = None,
        since: datetime | None = None,
    ) -> list[Order]: ...

    def list_for_table(self, restaurant_id: RestaurantId, table_id: TableId) -> list[Order]: ...

    def latest_for_table(self, restaurant_id: RestaurantId, table_id: TableId) -> Order | None: ...

    def summarize_revenue(
        self,
        restaurant_id: RestaurantId,
        status: OrderStatus,
    ) -> RevenueSummaryData: ...


class IdempotencyReplayMismatchError(Exception):
    pass


class OptimisticConcurrencyError(Exception):
    pass


class StoreWriteError(Exception):
    pass


@dataclass(frozen=True)
class RevenueSummaryData:
    order_count: int
    amount_cents: int
    currency: str
