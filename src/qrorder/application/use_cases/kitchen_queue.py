from __future__ import annotations

from qrorder.application.dto.responses import OrderListResponse
from qrorder.application.mappers.order_mapper import to_order_response
from qrorder.application.metrics.order_lifecycle import record_kitchen_queue_size
from qrorder.application.ports.repositories import OrderRepository
from qrorder.domain.common.ids import RestaurantId
from qrorder.domain.order.entities import OrderStatus

ACTIVE_STATUSES = frozenset(status for status in OrderStatus if not status.is_terminal)


class KitchenQueue:
    """Orders the kitchen still has to act on, newest first."""

    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, restaurant_id: RestaurantId) -> OrderListResponse:
        orders = self._order_repository.list_for_restaurant(
            restaurant_id=restaurant_id,
            statuses=ACTIVE_STATUSES,
        )
        record_kitchen_queue_size(restaurant_id=str(restaurant_id), size=len(orders))
        return OrderListResponse(orders=[to_order_response(order) for order in orders])
