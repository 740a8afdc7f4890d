from __future__ import annotations

from dataclasses import dataclass

from qrorder.domain.common.ids import RestaurantId, TableId


@dataclass(frozen=True)
class Table:
    table_id: TableId
    restaurant_id: RestaurantId
    name: str
