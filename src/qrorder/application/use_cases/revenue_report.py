from __future__ import annotations

from qrorder.application.dto.responses import MoneyResponse, RevenueResponse
from qrorder.application.errors import ValidationError
from qrorder.application.ports.repositories import OrderRepository
from qrorder.domain.common.ids import RestaurantId
from qrorder.domain.order.entities import OrderStatus, parse_order_status


class RevenueReport:
    """Sum of order totals for one status; served orders by default."""

    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(
        self,
        restaurant_id: RestaurantId,
        status: str = OrderStatus.SERVED.value,
    ) -> RevenueResponse:
        try:
            status_filter = parse_order_status(status)
        except ValueError as exc:
            raise ValidationError(str(exc), field="status") from exc

        summary = self._order_repository.summarize_revenue(
            restaurant_id=restaurant_id,
            status=status_filter,
        )
        return RevenueResponse(
            restaurantId=str(restaurant_id),
            status=status_filter.value,
            orderCount=summary.order_count,
            total=MoneyResponse(amountCents=summary.amount_cents, currency=summary.currency),
        )
