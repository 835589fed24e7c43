"""Domain Value Objects"""
import math
import re
from datetime import date, datetime, timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from domain.enums import ChargeActor, ChargeCategory, UnitCategory
from domain.exceptions import InvalidChargeError, InvalidStayWindowError
from domain.money import Money

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^[\d\s\-\+\(\)]+$")


def digits_only(value: str) -> str:
    """Strip everything but digits from a phone number"""
    return re.sub(r"\D", "", value or "")


class GuestProfile(BaseModel):
    """Value Object for the guest who made a booking"""
    name: str
    email: str
    phone: str
    address: Optional[str] = None
    special_requests: Optional[str] = None

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("email")
    @classmethod
    def email_well_formed(cls, v):
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Please enter a valid email address")
        return v

    @field_validator("phone")
    @classmethod
    def phone_well_formed(cls, v):
        if not PHONE_PATTERN.match(v) or not digits_only(v):
            raise ValueError("Please enter a valid phone number")
        return v

    @property
    def phone_digits(self) -> str:
        return digits_only(self.phone)


class BookableUnit(BaseModel):
    """Snapshot of a catalog item taken when it is booked"""
    unit_id: str
    name: str
    category: UnitCategory
    rate: Money
    capacity: int

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def rate_and_capacity_valid(self):
        if self.rate.is_negative():
            raise ValueError("Rate cannot be negative")
        if self.capacity < 1:
            raise ValueError("Capacity must be at least 1")
        return self


class StayWindow(BaseModel):
    """Value Object for the booked dates and party size"""
    check_in: date
    check_out: date
    party_size: int = 1

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_out_after_check_in(self):
        if self.check_out <= self.check_in:
            raise InvalidStayWindowError("Check-out must be after check-in")
        if self.party_size < 1:
            raise InvalidStayWindowError("Party size must be at least 1")
        return self

    @property
    def duration_units(self) -> int:
        """Billable nights/events, never fewer than one"""
        return billable_units(self.check_in, self.check_out)


def billable_units(check_in: date, check_out: date) -> int:
    """Ceiling of the day difference with a floor of one unit"""
    delta: timedelta = check_out - check_in
    days = math.ceil(delta.total_seconds() / timedelta(days=1).total_seconds())
    return max(1, days)


def validate_charge(unit_price: Money, quantity: int) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidChargeError(f"Quantity must be at least 1, got {quantity!r}")
    if unit_price.is_negative():
        raise InvalidChargeError(f"Unit price cannot be negative, got {unit_price}")


class ChargeLineInput(BaseModel):
    """A charge that has been requested but not yet posted to a ledger"""
    category: ChargeCategory
    description: str
    unit_price: Money
    quantity: int = 1
    added_by: ChargeActor = ChargeActor.STAFF

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @model_validator(mode="after")
    def charge_valid(self):
        if not self.description:
            raise InvalidChargeError("Charge description is required")
        validate_charge(self.unit_price, self.quantity)
        return self

    @property
    def amount(self) -> Money:
        return self.unit_price.multiply(self.quantity)


class ChargeLine(BaseModel):
    """Posted charge line; immutable once appended"""
    line_id: int
    category: ChargeCategory
    description: str
    unit_price: Money
    quantity: int
    amount: Money
    timestamp: datetime
    added_by: ChargeActor

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def amount_matches(self):
        if self.amount != self.unit_price.multiply(self.quantity):
            raise ValueError("Line amount must equal unit price times quantity")
        return self


class Settlement(BaseModel):
    """Final figures frozen at checkout"""
    total: Money
    advance_paid: Money
    balance_due: Money
    settled_at: datetime

    model_config = ConfigDict(frozen=True)
