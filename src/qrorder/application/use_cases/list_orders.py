from __future__ import annotations

from datetime import datetime

from qrorder.application.dto.responses import OrderListResponse
from qrorder.application.errors import ValidationError
from qrorder.application.mappers.order_mapper import to_order_response
from qrorder.application.ports.repositories import OrderRepository
from qrorder.domain.common.ids import RestaurantId
from qrorder.domain.order.entities import OrderStatus, parse_order_status

ALL_STATUSES = "ALL"


def parse_status_filter(status: str | None, field: str = "status") -> OrderStatus | None:
    if status is None or status.strip().upper() == ALL_STATUSES:
        return None
    try:
        return parse_order_status(status)
    except ValueError as exc:
        raise ValidationError(str(exc), field=field) from exc


class ListOrders:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(
        self,
        restaurant_id: RestaurantId,
        *,
        status: str | None = None,
        since: datetime | None = None,
    ) -> OrderListResponse:
        if not restaurant_id:
            raise ValidationError("restaurantId is required", field="restaurantId")

        status_filter = parse_status_filter(status)
        orders = self._order_repository.list_for_restaurant(
            restaurant_id=restaurant_id,
            statuses={status_filter} if status_filter else None,
            since=since,
        )
        return OrderListResponse(orders=[to_order_response(order) for order in orders])
