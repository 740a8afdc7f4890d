from __future__ import annotations

import logging
from datetime import datetime

from qrorder.application.dto.responses import OrderResponse
from qrorder.application.errors import (
    CancellationNotAllowedError,
    InvalidTransitionError,
    OrderConflictError,
    OrderNotFoundError,
    PersistenceError,
    ValidationError,
)
from qrorder.application.mappers.event_envelope import serialize_order_status_changed
from qrorder.application.mappers.order_mapper import to_order_response
from qrorder.application.metrics.order_lifecycle import (
    record_transition,
    record_transition_rejected,
)
from qrorder.application.ports.publisher import EventPublisher, restaurant_channel
from qrorder.application.ports.repositories import (
    OptimisticConcurrencyError,
    OrderRepository,
    StoreWriteError,
)
from qrorder.application.use_cases.context import Clock, TraceContext, publish_event, utc_now
from qrorder.domain.common.ids import OrderId
from qrorder.domain.order.entities import (
    CancellationNotAllowedError as DomainCancellationNotAllowedError,
)
from qrorder.domain.order.entities import (
    Order,
    OrderStatus,
    OrderTransitionError,
    parse_order_status,
)

logger = logging.getLogger(__name__)

# One re-read after a lost race; a second lost race is reported as a conflict.
_MAX_ATTEMPTS = 2


class UpdateOrderStatus:
    """Applies a kitchen or customer status change through the order state machine.

    Setting the status an order already has is a successful no-op, so duplicate
    button presses never fail. Cancellation eligibility is recomputed here from
    the stored timestamp and the table's most recent order, whatever the client
    displayed.
    """

    def __init__(
        self,
        order_repository: OrderRepository,
        publisher: EventPublisher,
        clock: Clock = utc_now,
    ) -> None:
        self._order_repository = order_repository
        self._publisher = publisher
        self._clock = clock

    def execute(self, order_id: OrderId, status: str, trace_ctx: TraceContext) -> OrderResponse:
        try:
            target = parse_order_status(status)
        except ValueError as exc:
            raise ValidationError(str(exc), field="status") from exc

        order = self._get(order_id)
        for _ in range(_MAX_ATTEMPTS):
            if order.status == target:
                return to_order_response(order)

            now = self._clock()
            updated = self._apply(order, target, now)
            try:
                persisted_order = self._order_repository.update_status_with_version(
                    order_id=order.order_id,
                    new_status=updated.status,
                    expected_version=order.version,
                )
            except OptimisticConcurrencyError:
                logger.info(
                    "order_status_race_lost",
                    extra={"order_id": str(order_id), "to_status": target.value},
                )
                order = self._get(order_id)
                continue
            except StoreWriteError as exc:
                raise PersistenceError(f"failed to update order {order_id}") from exc

            self._after_transition(persisted_order, order.status, trace_ctx, now)
            return to_order_response(persisted_order)

        raise OrderConflictError(f"order {order_id} status update conflict")

    def _get(self, order_id: OrderId) -> Order:
        order = self._order_repository.get(order_id)
        if order is None:
            raise OrderNotFoundError(f"order {order_id} not found")
        return order

    def _apply(self, order: Order, target: OrderStatus, now: datetime) -> Order:
        is_most_recent = False
        if target == OrderStatus.CANCELLED:
            latest = self._order_repository.latest_for_table(order.restaurant_id, order.table_id)
            is_most_recent = latest is not None and latest.order_id == order.order_id

        try:
            return order.transition_to(target, now=now, is_most_recent_for_table=is_most_recent)
        except DomainCancellationNotAllowedError as exc:
            record_transition_rejected(order.status, target, reason="not_cancellable")
            raise CancellationNotAllowedError(str(exc)) from exc
        except OrderTransitionError as exc:
            reason = "terminal" if order.status.is_terminal else "not_allowed"
            record_transition_rejected(order.status, target, reason=reason)
            raise InvalidTransitionError(str(exc)) from exc

    def _after_transition(
        self,
        order: Order,
        previous_status: OrderStatus,
        trace_ctx: TraceContext,
        now: datetime,
    ) -> None:
        logger.info(
            "order_status_changed",
            extra={
                "restaurant_id": str(order.restaurant_id),
                "order_id": str(order.order_id),
                "from_status": previous_status.value,
                "to_status": order.status.value,
            },
        )
        record_transition(order, from_status=previous_status, now=now)
        message = serialize_order_status_changed(
            occurred_at=now,
            order=order,
            previous_status=previous_status,
            trace_id=trace_ctx.trace_id,
            request_id=trace_ctx.request_id,
        )
        publish_event(self._publisher, restaurant_channel(str(order.restaurant_id)), message)
