from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class Money:
    amount_cents: int
    currency: str

    def __post_init__(self) -> None:
        if self.amount_cents < 0:
            raise ValueError("amount_cents must be >= 0")
        if len(self.currency) != 3 or not self.currency.isalpha() or not self.currency.isupper():
            raise ValueError("currency must be a 3-letter uppercase code")

    def times(self, quantity: int) -> Money:
        return Money(amount_cents=self.amount_cents * quantity, currency=self.currency)


def sum_money(amounts: Iterable[Money]) -> Money:
    """Add amounts that share one currency; an empty iterable is an error."""
    values = list(amounts)
    if not values:
        raise ValueError("cannot sum an empty list of amounts")
    currency = values[0].currency
    if any(value.currency != currency for value in values):
        raise ValueError("cannot sum amounts in different currencies")
    return Money(amount_cents=sum(value.amount_cents for value in values), currency=currency)
