from __future__ import annotations

from qrorder.application.dto.responses import OrderListResponse
from qrorder.application.errors import TableNotFoundError
from qrorder.application.mappers.order_mapper import to_order_response
from qrorder.application.ports.repositories import OrderRepository, TableRepository
from qrorder.application.use_cases.context import Clock, utc_now
from qrorder.domain.common.ids import RestaurantId, TableId


class TableOrders:
    """Orders of one table, newest first, each with its current cancellation eligibility."""

    def __init__(
        self,
        order_repository: OrderRepository,
        table_repository: TableRepository,
        clock: Clock = utc_now,
    ) -> None:
        self._order_repository = order_repository
        self._table_repository = table_repository
        self._clock = clock

    def execute(self, restaurant_id: RestaurantId, table_id: TableId) -> OrderListResponse:
        table = self._table_repository.get(table_id=table_id, restaurant_id=restaurant_id)
        if table is None:
            raise TableNotFoundError(
                f"table not found for restaurant_id={restaurant_id}, table_id={table_id}"
            )

        orders = self._order_repository.list_for_table(
            restaurant_id=restaurant_id,
            table_id=table_id,
        )
        now = self._clock()
        return OrderListResponse(
            orders=[
                to_order_response(order, is_most_recent_for_table=index == 0, now=now)
                for index, order in enumerate(orders)
            ]
        )
