from __future__ import annotations

import hashlib
import json
import logging
from uuid import uuid4

from qrorder.application.dto.requests import PlaceOrderRequest
from qrorder.application.dto.responses import OrderResponse
from qrorder.application.errors import (
    IdempotencyConflictError,
    PersistenceError,
    TableNotFoundError,
    ValidationError,
)
from qrorder.application.mappers.event_envelope import serialize_order_placed
from qrorder.application.mappers.order_mapper import to_order_response
from qrorder.application.metrics.order_lifecycle import record_order_placed
from qrorder.application.ports.publisher import EventPublisher, restaurant_channel
from qrorder.application.ports.repositories import (
    IdempotencyReplayMismatchError,
    MenuRepository,
    OrderRepository,
    StoreWriteError,
    TableRepository,
)
from qrorder.application.use_cases.context import Clock, TraceContext, publish_event, utc_now
from qrorder.domain.common.ids import MenuItemId, OrderId, RestaurantId, TableId, UserId
from qrorder.domain.order.entities import (
    Order,
    OrderLine,
    build_order_line,
    create_received_order,
)

logger = logging.getLogger(__name__)

MAX_ITEM_QUANTITY = 99
# Money columns are 32-bit integers.
_MAX_AMOUNT_CENTS = 2**31 - 1


class PlaceOrder:
    def __init__(
        self,
        menu_repository: MenuRepository,
        table_repository: TableRepository,
        order_repository: OrderRepository,
        publisher: EventPublisher,
        clock: Clock = utc_now,
    ) -> None:
        self._menu_repository = menu_repository
        self._table_repository = table_repository
        self._order_repository = order_repository
        self._publisher = publisher
        self._clock = clock

    def execute(
        self,
        request_dto: PlaceOrderRequest,
        trace_ctx: TraceContext,
        idempotency_key: str | None = None,
    ) -> OrderResponse:
        _validate_items(request_dto)

        restaurant_id = RestaurantId(request_dto.restaurant_id)
        table_id = TableId(request_dto.table_id)
        payload_hash = _request_hash(request_dto)
        if idempotency_key:
            # A retry gets its committed order back even if the menu has changed since.
            replayed = self._stored_replay(restaurant_id, table_id, idempotency_key, payload_hash)
            if replayed is not None:
                return to_order_response(replayed)

        table = self._table_repository.get(table_id=table_id, restaurant_id=restaurant_id)
        if table is None:
            raise TableNotFoundError(
                f"table not found for restaurant_id={restaurant_id}, table_id={table_id}"
            )

        menu_items = self._menu_repository.get_items(
            restaurant_id,
            [MenuItemId(item.menu_item_id) for item in request_dto.items],
        )
        order_lines: list[OrderLine] = []
        for index, request_item in enumerate(request_dto.items):
            field = f"items[{index}].menuItemId"
            menu_item = menu_items.get(MenuItemId(request_item.menu_item_id))
            if menu_item is None:
                raise ValidationError(
                    f"menu item {request_item.menu_item_id} does not exist", field=field
                )
            if not menu_item.is_available:
                raise ValidationError(
                    f"menu item {request_item.menu_item_id} is unavailable", field=field
                )
            # The current menu price becomes the price-at-order-time snapshot.
            order_lines.append(
                build_order_line(
                    item_id=menu_item.item_id,
                    name=menu_item.name,
                    unit_price=menu_item.price_money,
                    quantity=request_item.quantity,
                    notes=request_item.notes,
                    description=menu_item.description,
                    image=menu_item.image,
                    category_id=menu_item.category_id,
                    tags=menu_item.tags,
                )
            )

        if len({line.unit_price.currency for line in order_lines}) > 1:
            raise ValidationError("order items must share one currency", field="items")
        if sum(line.line_total.amount_cents for line in order_lines) > _MAX_AMOUNT_CENTS:
            raise ValidationError("order total is too large", field="items")

        order = create_received_order(
            order_id=OrderId(f"ord_{uuid4().hex[:12]}"),
            restaurant_id=restaurant_id,
            table_id=table_id,
            lines=order_lines,
            now=self._clock(),
            user_id=UserId(request_dto.user_id) if request_dto.user_id else None,
            idempotency_key=idempotency_key,
            idempotency_hash=payload_hash if idempotency_key else None,
        )

        created = True
        persisted_order = order
        try:
            if idempotency_key:
                persisted_order = self._order_repository.add_with_idempotency(
                    order=order,
                    key=idempotency_key,
                    payload_hash=payload_hash,
                )
                created = persisted_order.order_id == order.order_id
            else:
                self._order_repository.add(order)
        except IdempotencyReplayMismatchError as exc:
            raise IdempotencyConflictError(str(exc)) from exc
        except StoreWriteError as exc:
            logger.error(
                "order_persist_failed",
                extra={"restaurant_id": str(restaurant_id), "order_id": str(order.order_id)},
            )
            raise PersistenceError("failed to place order; nothing was written") from exc

        if created:
            logger.info(
                "order_placed",
                extra={
                    "restaurant_id": str(restaurant_id),
                    "order_id": str(persisted_order.order_id),
                },
            )
            record_order_placed(persisted_order)
            message = serialize_order_placed(
                occurred_at=persisted_order.created_at,
                order=persisted_order,
                trace_id=trace_ctx.trace_id,
                request_id=trace_ctx.request_id,
            )
            publish_event(self._publisher, restaurant_channel(str(restaurant_id)), message)

        return to_order_response(persisted_order)

    def _stored_replay(
        self,
        restaurant_id: RestaurantId,
        table_id: TableId,
        idempotency_key: str,
        payload_hash: str,
    ) -> Order | None:
        existing = self._order_repository.get_by_idempotency_key(
            restaurant_id=restaurant_id,
            table_id=table_id,
            key=idempotency_key,
        )
        if existing is None:
            return None
        if existing.idempotency_hash != payload_hash:
            raise IdempotencyConflictError(
                f"idempotency key replay with different payload: {idempotency_key}"
            )
        logger.info(
            "order_replayed",
            extra={"restaurant_id": str(restaurant_id), "order_id": str(existing.order_id)},
        )
        return existing


def _validate_items(request_dto: PlaceOrderRequest) -> None:
    if not request_dto.items:
        raise ValidationError("order must contain at least one item", field="items")

    seen: set[str] = set()
    for index, item in enumerate(request_dto.items):
        if item.quantity < 1 or item.quantity > MAX_ITEM_QUANTITY:
            raise ValidationError(
                f"quantity must be between 1 and {MAX_ITEM_QUANTITY}",
                field=f"items[{index}].quantity",
            )
        if item.menu_item_id in seen:
            raise ValidationError(
                f"menu item {item.menu_item_id} appears more than once",
                field=f"items[{index}].menuItemId",
            )
        seen.add(item.menu_item_id)


def _request_hash(request_dto: PlaceOrderRequest) -> str:
    normalized_payload = request_dto.model_dump(mode="json", by_alias=True, exclude_none=False)
    canonical = json.dumps(normalized_payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
