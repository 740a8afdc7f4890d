from __future__ import annotations

from fastapi import APIRouter

from qrorder.application.dto.responses import OrderListResponse
from qrorder.application.use_cases.table_orders import TableOrders
from qrorder.domain.common.ids import RestaurantId, TableId
from qrorder.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from qrorder.infrastructure.db.repositories.table_repo import SqlAlchemyTableRepository

router = APIRouter()


def _table_orders_use_case() -> TableOrders:
    return TableOrders(
        order_repository=SqlAlchemyOrderRepository(),
        table_repository=SqlAlchemyTableRepository(),
    )


@router.get(
    "/v1/restaurants/{restaurant_id}/tables/{table_id}/orders",
    response_model=OrderListResponse,
)
def list_table_orders(restaurant_id: str, table_id: str) -> OrderListResponse:
    return _table_orders_use_case().execute(
        restaurant_id=RestaurantId(restaurant_id),
        table_id=TableId(table_id),
    )
