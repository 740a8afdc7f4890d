from __future__ import annotations

from dataclasses import dataclass

from qrorder.domain.common.ids import MenuItemId, RestaurantId
from qrorder.domain.common.money import Money


@dataclass(frozen=True)
class MenuItem:
    item_id: MenuItemId
    restaurant_id: RestaurantId
    name: str
    description: str | None
    price_money: Money
    is_available: bool
    image: str | None = None
    category_id: str | None = None
    tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name must be non-empty")
