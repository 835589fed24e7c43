"""Money Value Object and fixed-point arithmetic

Amounts are kept as an integer count of the currency's smallest unit
(centavos for PHP). The only place a fractional unit can appear is the
advance-payment percentage, which is rounded to the nearest unit with ties
going up.
"""
from decimal import Decimal, ROUND_FLOOR, InvalidOperation
from typing import Iterable, Union

from pydantic import BaseModel, ConfigDict

MINOR_UNITS_PER_MAJOR = 100
DEFAULT_CURRENCY = "PHP"

Fraction = Union[Decimal, str, int, float]


def _to_decimal(value: Fraction) -> Decimal:
    if isinstance(value, float):
        # go through str so 0.3 stays 0.3 and not 0.29999...
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError):
        raise ValueError(f"Not a decimal number: {value!r}")


class Money(BaseModel):
    """Value Object for monetary amounts in minor units"""
    amount: int
    currency: str = DEFAULT_CURRENCY

    model_config = ConfigDict(frozen=True)

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> "Money":
        return cls(amount=0, currency=currency)

    @classmethod
    def from_major(cls, value: Union[Decimal, str, int], currency: str = DEFAULT_CURRENCY) -> "Money":
        """Build from a major-unit amount, e.g. ``Money.from_major("7999.50")``"""
        minor = _to_decimal(value) * MINOR_UNITS_PER_MAJOR
        if minor != minor.to_integral_value():
            raise ValueError(f"{value} has more precision than the currency allows")
        return cls(amount=int(minor), currency=currency)

    def _check_currency(self, other: "Money") -> None:
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot combine money in {self.currency} with money in {other.currency}"
            )

    def add(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def subtract(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def multiply(self, quantity: int) -> "Money":
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValueError("Quantity must be a whole number")
        return Money(amount=self.amount * quantity, currency=self.currency)

    def is_negative(self) -> bool:
        return self.amount < 0

    def to_major(self) -> Decimal:
        return Decimal(self.amount) / MINOR_UNITS_PER_MAJOR

    def __str__(self) -> str:
        return f"{self.to_major():.2f} {self.currency}"


def multiply(rate: Money, quantity: int) -> Money:
    """Rate times a whole quantity, exact"""
    return rate.multiply(quantity)


def add(left: Money, right: Money) -> Money:
    return left.add(right)


def subtract(left: Money, right: Money) -> Money:
    return left.subtract(right)


def sum_money(amounts: Iterable[Money], currency: str = DEFAULT_CURRENCY) -> Money:
    """Sum a sequence of amounts; an empty sequence sums to zero"""
    total = Money.zero(currency)
    for amount in amounts:
        total = total.add(amount)
    return total


def percentage_of(amount: Money, fraction: Fraction) -> Money:
    """Fraction of an amount rounded to the nearest minor unit, ties up"""
    factor = _to_decimal(fraction)
    if factor < 0 or factor > 1:
        raise ValueError("Fraction must be between 0 and 1")
    exact = Decimal(amount.amount) * factor
    rounded = (exact + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR)
    return Money(amount=int(rounded), currency=amount.currency)
