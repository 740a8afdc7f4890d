from __future__ import annotations

from typing import Collection

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from qrorder.application.ports.repositories import MenuRepository
from qrorder.domain.common.ids import MenuItemId, RestaurantId
from qrorder.domain.common.money import Money
from qrorder.domain.menu.entities import MenuItem
from qrorder.infrastructure.db.models.menu import MenuItemModel
from qrorder.infrastructure.db.session import get_engine


class SqlAlchemyMenuRepository(MenuRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get_items(
        self,
        restaurant_id: RestaurantId,
        item_ids: Collection[MenuItemId],
    ) -> dict[MenuItemId, MenuItem]:
        if not item_ids:
            return {}

        statement = select(MenuItemModel).where(
            MenuItemModel.restaurant_id == str(restaurant_id),
            MenuItemModel.id.in_([str(item_id) for item_id in item_ids]),
        )
        with Session(self._engine) as session:
            models = list(session.execute(statement).scalars().all())

        return {MenuItemId(model.id): self._to_domain(model) for model in models}

    def _to_domain(self, model: MenuItemModel) -> MenuItem:
        return MenuItem(
            item_id=MenuItemId(model.id),
            restaurant_id=RestaurantId(model.restaurant_id),
            name=model.name,
            description=model.description,
            price_money=Money(amount_cents=model.price_cents, currency=model.currency),
            is_available=model.is_available,
            image=model.image,
            category_id=model.category_id,
            tags=tuple(tag for tag in (model.tags or "").split(",") if tag),
        )
