from __future__ import annotations

from fastapi import APIRouter

from qrorder.application.dto.responses import OrderListResponse
from qrorder.application.use_cases.kitchen_queue import KitchenQueue
from qrorder.domain.common.ids import RestaurantId
from qrorder.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository

router = APIRouter()


def _kitchen_queue_use_case() -> KitchenQueue:
    return KitchenQueue(order_repository=SqlAlchemyOrderRepository())


@router.get(
    "/v1/restaurants/{restaurant_id}/kitchen/orders",
    response_model=OrderListResponse,
)
def list_active_orders(restaurant_id: str) -> OrderListResponse:
    return _kitchen_queue_use_case().execute(restaurant_id=RestaurantId(restaurant_id))
