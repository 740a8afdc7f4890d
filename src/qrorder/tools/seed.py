from __future__ import annotations

from sqlalchemy import inspect
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from qrorder.infrastructure.db.models.menu import MenuItemModel, RestaurantModel
from qrorder.infrastructure.db.models.table import TableModel
from qrorder.infrastructure.db.session import get_engine

RESTAURANT = {"id": "rst_001", "name": "Downtown Test Kitchen"}

TABLES = [
    {"id": "tbl_001", "restaurant_id": "rst_001", "name": "Table 1"},
    {"id": "tbl_002", "restaurant_id": "rst_001", "name": "Table 2"},
    {"id": "tbl_003", "restaurant_id": "rst_001", "name": "Patio 1"},
]

MENU_ITEMS = [
    {
        "id": "itm_001",
        "restaurant_id": "rst_001",
        "name": "Margherita Pizza",
        "description": "Tomato, mozzarella, basil",
        "image": None,
        "category_id": "cat_mains",
        "tags": "vegetarian",
        "price_cents": 1450,
        "currency": "USD",
        "is_available": True,
    },
    {
        "id": "itm_002",
        "restaurant_id": "rst_001",
        "name": "Chicken Alfredo",
        "description": "Fettuccine, creamy parmesan sauce",
        "image": None,
        "category_id": "cat_mains",
        "tags": None,
        "price_cents": 1690,
        "currency": "USD",
        "is_available": True,
    },
    {
        "id": "itm_003",
        "restaurant_id": "rst_001",
        "name": "Caesar Salad",
        "description": "Romaine, croutons, parmesan",
        "image": None,
        "category_id": "cat_starters",
        "tags": None,
        "price_cents": 990,
        "currency": "USD",
        "is_available": True,
    },
    {
        "id": "itm_004",
        "restaurant_id": "rst_001",
        "name": "Tiramisu",
        "description": "Espresso-soaked ladyfingers",
        "image": None,
        "category_id": "cat_desserts",
        "tags": "vegetarian",
        "price_cents": 850,
        "currency": "USD",
        "is_available": False,
    },
]


def _upsert(session: Session, model: type, rows: list[dict[str, object]]) -> None:
    for row in rows:
        session.execute(
            insert(model)
            .values(**row)
            .on_conflict_do_update(
                index_elements=[model.id],
                set_={key: value for key, value in row.items() if key != "id"},
            )
        )


def main() -> None:
    engine = get_engine(timeout_seconds=2.0)
    inspector = inspect(engine)
    required_tables = {"restaurants", "tables", "menu_items"}
    if not required_tables.issubset(set(inspector.get_table_names(schema="public"))):
        print("no schema yet")
        return

    with Session(engine) as session:
        _upsert(session, RestaurantModel, [RESTAURANT])
        _upsert(session, TableModel, TABLES)
        _upsert(session, MenuItemModel, MENU_ITEMS)
        session.commit()
        print("seed complete")


if __name__ == "__main__":
    main()
