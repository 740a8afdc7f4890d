from __future__ import annotations

from fastapi import APIRouter, Query

from qrorder.application.dto.responses import RevenueResponse
from qrorder.application.use_cases.revenue_report import RevenueReport
from qrorder.domain.common.ids import RestaurantId
from qrorder.domain.order.entities import OrderStatus
from qrorder.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository

router = APIRouter()


def _revenue_report_use_case() -> RevenueReport:
    return RevenueReport(order_repository=SqlAlchemyOrderRepository())


@router.get("/v1/restaurants/{restaurant_id}/revenue", response_model=RevenueResponse)
def revenue(
    restaurant_id: str,
    status: str = Query(default=OrderStatus.SERVED.value),
) -> RevenueResponse:
    return _revenue_report_use_case().execute(
        restaurant_id=RestaurantId(restaurant_id),
        status=status,
    )
