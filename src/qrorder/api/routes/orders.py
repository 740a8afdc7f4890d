from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Header, Query, status

from qrorder.api.middleware.request_id import get_request_id
from qrorder.application.dto.requests import PlaceOrderRequest, UpdateOrderStatusRequest
from qrorder.application.dto.responses import OrderListResponse, OrderResponse
from qrorder.application.use_cases.context import TraceContext
from qrorder.application.use_cases.get_order import GetOrder
from qrorder.application.use_cases.list_orders import ListOrders
from qrorder.application.use_cases.place_order import PlaceOrder
from qrorder.application.use_cases.update_order_status import UpdateOrderStatus
from qrorder.domain.common.ids import OrderId, RestaurantId
from qrorder.infrastructure.db.repositories.menu_repo import SqlAlchemyMenuRepository
from qrorder.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from qrorder.infrastructure.db.repositories.table_repo import SqlAlchemyTableRepository
from qrorder.infrastructure.messaging.redis_publisher import RedisEventPublisher
from qrorder.infrastructure.observability.otel import current_trace_id

router = APIRouter()


def _trace_context() -> TraceContext:
    return TraceContext(trace_id=current_trace_id(), request_id=get_request_id())


def _place_order_use_case() -> PlaceOrder:
    return PlaceOrder(
        menu_repository=SqlAlchemyMenuRepository(),
        table_repository=SqlAlchemyTableRepository(),
        order_repository=SqlAlchemyOrderRepository(),
        publisher=RedisEventPublisher(),
    )


def _update_order_status_use_case() -> UpdateOrderStatus:
    return UpdateOrderStatus(
        order_repository=SqlAlchemyOrderRepository(),
        publisher=RedisEventPublisher(),
    )


def _list_orders_use_case() -> ListOrders:
    return ListOrders(order_repository=SqlAlchemyOrderRepository())


def _get_order_use_case() -> GetOrder:
    return GetOrder(order_repository=SqlAlchemyOrderRepository())


@router.post(
    "/v1/orders",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
)
def place_order(
    request_dto: PlaceOrderRequest,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
) -> OrderResponse:
    return _place_order_use_case().execute(
        request_dto=request_dto,
        trace_ctx=_trace_context(),
        idempotency_key=idempotency_key,
    )


@router.get("/v1/orders", response_model=OrderListResponse)
def list_orders(
    restaurant_id: str | None = Query(default=None, alias="restaurantId"),
    order_status: str | None = Query(default=None, alias="status"),
    since: datetime | None = Query(default=None),
) -> OrderListResponse:
    return _list_orders_use_case().execute(
        restaurant_id=RestaurantId(restaurant_id or ""),
        status=order_status,
        since=since,
    )


@router.get("/v1/orders/{order_id}", response_model=OrderResponse)
def get_order(order_id: str) -> OrderResponse:
    return _get_order_use_case().execute(order_id=OrderId(order_id))


@router.patch("/v1/orders/{order_id}/status", response_model=OrderResponse)
def update_order_status(order_id: str, request_dto: UpdateOrderStatusRequest) -> OrderResponse:
    return _update_order_status_use_case().execute(
        order_id=OrderId(order_id),
        status=request_dto.status,
        trace_ctx=_trace_context(),
    )
