from __future__ import annotations

from datetime import datetime, timezone
from typing import Collection

from sqlalchemy import Engine, Select, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from qrorder.application.ports.repositories import (
    IdempotencyReplayMismatchError,
    OptimisticConcurrencyError,
    OrderRepository,
    RevenueSummaryData,
    StoreWriteError,
)
from qrorder.domain.common.ids import MenuItemId, OrderId, RestaurantId, TableId, UserId
from qrorder.domain.common.money import Money
from qrorder.domain.order.entities import Order, OrderLine, OrderStatus
from qrorder.infrastructure.db.models.order import OrderItemModel, OrderModel
from qrorder.infrastructure.db.session import get_engine

_DEFAULT_CURRENCY = "USD"


def _as_utc(value: datetime) -> datetime:
    # Timestamps are written in UTC; SQLite keeps them as naive text.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SqlAlchemyOrderRepository(OrderRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def add(self, order: Order) -> None:
        # Header and lines are flushed in one transaction; any failure rolls back both.
        with Session(self._engine) as session:
            session.add(self._to_model(order))
            try:
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise StoreWriteError(f"failed to persist order {order.order_id}") from exc

    def add_with_idempotency(
        self,
        order: Order,
        key: str,
        payload_hash: str,
    ) -> Order:
        statement = self._idempotency_lookup(order.restaurant_id, order.table_id, key)

        with Session(self._engine) as session:
            existing = session.execute(statement.limit(1)).unique().scalar_one_or_none()
            if existing is not None:
                return self._replay(existing, key, payload_hash)

            model = self._to_model(order)
            model.idempotency_key = key
            model.idempotency_hash = payload_hash
            session.add(model)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                existing = session.execute(statement.limit(1)).unique().scalar_one_or_none()
                if existing is None:
                    raise StoreWriteError(f"failed to persist order {order.order_id}") from exc
                return self._replay(existing, key, payload_hash)
            except SQLAlchemyError as exc:
                session.rollback()
                raise StoreWriteError(f"failed to persist order {order.order_id}") from exc

        return order

    def get_by_idempotency_key(
        self,
        restaurant_id: RestaurantId,
        table_id: TableId,
        key: str,
    ) -> Order | None:
        statement = self._idempotency_lookup(restaurant_id, table_id, key)
        with Session(self._engine) as session:
            model = session.execute(statement.limit(1)).unique().scalar_one_or_none()

        if model is None:
            return None

        return self._to_domain(model)

    def get(self, order_id: OrderId) -> Order | None:
        statement = self._select_orders().where(OrderModel.id == str(order_id)).limit(1)
        with Session(self._engine) as session:
            model = session.execute(statement).unique().scalar_one_or_none()

        if model is None:
            return None

        return self._to_domain(model)

    def update_status_with_version(
        self,
        order_id: OrderId,
        new_status: OrderStatus,
        expected_version: int,
    ) -> Order:
        statement = (
            update(OrderModel)
            .where(
                OrderModel.id == str(order_id),
                OrderModel.version == expected_version,
            )
            .values(
                status=new_status.value,
                version=OrderModel.version + 1,
            )
        )
        with Session(self._engine) as session:
            try:
                result = session.execute(statement)
                if result.rowcount != 1:
                    session.rollback()
                    raise OptimisticConcurrencyError(f"order {order_id} version conflict")
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise StoreWriteError(f"failed to update order {order_id}") from exc

        updated = self.get(order_id)
        if updated is None:
            raise StoreWriteError(f"order {order_id} not found after status update")
        return updated

    def list_for_restaurant(
        self,
        restaurant_id: RestaurantId,
        statuses: Collection[OrderStatus] | None = None,
        since: datetime | None = None,
    ) -> list[Order]:
        statement = self._select_orders().where(OrderModel.restaurant_id == str(restaurant_id))
        if statuses is not None:
            statement = statement.where(OrderModel.status.in_([s.value for s in statuses]))
        if since is not None:
            statement = statement.where(OrderModel.created_at >= _as_utc(since))
        return self._fetch(self._newest_first(statement))

    def list_for_table(self, restaurant_id: RestaurantId, table_id: TableId) -> list[Order]:
        statement = self._select_orders().where(
            OrderModel.restaurant_id == str(restaurant_id),
            OrderModel.table_id == str(table_id),
        )
        return self._fetch(self._newest_first(statement))

    def latest_for_table(self, restaurant_id: RestaurantId, table_id: TableId) -> Order | None:
        statement = self._select_orders().where(
            OrderModel.restaurant_id == str(restaurant_id),
            OrderModel.table_id == str(table_id),
        )
        orders = self._fetch(self._newest_first(statement).limit(1))
        return orders[0] if orders else None

    def summarize_revenue(
        self,
        restaurant_id: RestaurantId,
        status: OrderStatus,
    ) -> RevenueSummaryData:
        statement = select(
            func.count(OrderModel.id),
            func.coalesce(func.sum(OrderModel.total_cents), 0),
            func.max(OrderModel.currency),
        ).where(
            OrderModel.restaurant_id == str(restaurant_id),
            OrderModel.status == status.value,
        )
        with Session(self._engine) as session:
            row = session.execute(statement).one()

        return RevenueSummaryData(
            order_count=int(row[0] or 0),
            amount_cents=int(row[1] or 0),
            currency=str(row[2] or _DEFAULT_CURRENCY),
        )

    def _select_orders(self) -> Select[tuple[OrderModel]]:
        return select(OrderModel).options(joinedload(OrderModel.lines))

    def _idempotency_lookup(
        self,
        restaurant_id: RestaurantId,
        table_id: TableId,
        key: str,
    ) -> Select[tuple[OrderModel]]:
        return self._select_orders().where(
            OrderModel.restaurant_id == str(restaurant_id),
            OrderModel.table_id == str(table_id),
            OrderModel.idempotency_key == key,
        )

    def _newest_first(self, statement: Select[tuple[OrderModel]]) -> Select[tuple[OrderModel]]:
        return statement.order_by(OrderModel.created_at.desc(), OrderModel.id.desc())

    def _fetch(self, statement: Select[tuple[OrderModel]]) -> list[Order]:
        with Session(self._engine) as session:
            models = list(session.execute(statement).unique().scalars().all())
        return [self._to_domain(model) for model in models]

    def _replay(self, existing: OrderModel, key: str, payload_hash: str) -> Order:
        if existing.idempotency_hash != payload_hash:
            raise IdempotencyReplayMismatchError(
                f"idempotency key replay with different payload: {key}"
            )
        return self._to_domain(existing)

    def _to_model(self, order: Order) -> OrderModel:
        order_model = OrderModel(
            id=str(order.order_id),
            restaurant_id=str(order.restaurant_id),
            table_id=str(order.table_id),
            user_id=str(order.user_id),
            status=order.status.value,
            version=order.version,
            created_at=order.created_at,
            total_cents=order.total.amount_cents,
            currency=order.total.currency,
            idempotency_key=order.idempotency_key,
            idempotency_hash=order.idempotency_hash,
        )
        order_model.lines = [
            OrderItemModel(
                order_id=str(order.order_id),
                item_id=str(line.item_id),
                position=position,
                name=line.name,
                description=line.description,
                image=line.image,
                category_id=line.category_id,
                tags=",".join(line.tags) or None,
                quantity=line.quantity,
                unit_price_cents=line.unit_price.amount_cents,
                currency=line.unit_price.currency,
                line_total_cents=line.line_total.amount_cents,
                notes=line.notes,
            )
            for position, line in enumerate(order.lines)
        ]
        return order_model

    def _to_domain(self, model: OrderModel) -> Order:
        created_at = model.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        lines = [
            OrderLine(
                item_id=MenuItemId(line.item_id),
                name=line.name,
                quantity=line.quantity,
                unit_price=Money(amount_cents=line.unit_price_cents, currency=line.currency),
                line_total=Money(amount_cents=line.line_total_cents, currency=line.currency),
                notes=line.notes,
                description=line.description,
                image=line.image,
                category_id=line.category_id,
                tags=tuple(tag for tag in (line.tags or "").split(",") if tag),
            )
            for line in model.lines
        ]
        return Order(
            order_id=OrderId(model.id),
            restaurant_id=RestaurantId(model.restaurant_id),
            table_id=TableId(model.table_id),
            user_id=UserId(model.user_id),
            status=OrderStatus(model.status),
            lines=lines,
            total=Money(amount_cents=model.total_cents, currency=model.currency),
            created_at=created_at,
            version=model.version,
            idempotency_key=model.idempotency_key,
            idempotency_hash=model.idempotency_hash,
        )
