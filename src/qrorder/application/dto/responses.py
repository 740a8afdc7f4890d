from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class MoneyResponse(BaseModel):
    amountCents: int
    currency: str


class OrderLineResponse(BaseModel):
    itemId: str
    name: str
    description: str | None = None
    image: str | None = None
    categoryId: str | None = None
    tags: list[str] = Field(default_factory=list)
    quantity: int
    unitPrice: MoneyResponse
    lineTotal: MoneyResponse
    notes: str | None = None


class OrderResponse(BaseModel):
    orderId: str
    restaurantId: str
    tableId: str
    userId: str
    status: str
    lines: list[OrderLineResponse] = Field(default_factory=list)
    total: MoneyResponse
    createdAt: datetime
    version: int
    cancellable: bool | None = None
    cancelDeadline: datetime | None = None


class OrderListResponse(BaseModel):
    orders: list[OrderResponse] = Field(default_factory=list)


class RevenueResponse(BaseModel):
    restaurantId: str
    status: str
    orderCount: int
    total: MoneyResponse
