from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Column widths of the order tables.
NOTES_MAX_LENGTH = 1000
ID_MAX_LENGTH = 50


def _to_camel(value: str) -> str:
    parts = value.split("_")
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


class CamelBaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
    )


class PlaceOrderItemRequest(CamelBaseModel):
    menu_item_id: str = Field(min_length=1, max_length=ID_MAX_LENGTH)
    quantity: int
    notes: str | None = Field(default=None, max_length=NOTES_MAX_LENGTH)


class PlaceOrderRequest(CamelBaseModel):
    table_id: str = Field(min_length=1, max_length=ID_MAX_LENGTH)
    restaurant_id: str = Field(min_length=1, max_length=ID_MAX_LENGTH)
    user_id: str | None = Field(default=None, max_length=ID_MAX_LENGTH)
    # Emptiness and quantities are checked by the use case so the error names the field.
    items: list[PlaceOrderItemRequest] = Field(default_factory=list)


class UpdateOrderStatusRequest(CamelBaseModel):
    status: str
