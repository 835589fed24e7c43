"""Display helpers; nothing here feeds back into billing arithmetic"""
from decimal import Decimal

from domain.money import MINOR_UNITS_PER_MAJOR, Money

CURRENCY_SYMBOLS = {
    "PHP": "₱",
    "USD": "$",
    "EUR": "€",
    "IDR": "Rp",
}


def format_money(money: Money) -> str:
    """``Money(amount=760000)`` -> ``'₱7,600.00'``"""
    symbol = CURRENCY_SYMBOLS.get(money.currency, money.currency + " ")
    major = Decimal(abs(money.amount)) / MINOR_UNITS_PER_MAJOR
    sign = "-" if money.amount < 0 else ""
    return f"{sign}{symbol}{major:,.2f}"


def display_balance(balance: Money) -> Money:
    """Balance shown to a guest; an overpayment displays as nothing owed"""
    if balance.is_negative():
        return Money.zero(balance.currency)
    return balance
