"""Domain Entities - Aggregates"""
import random
import string
from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from domain.enums import ChargeCategory, ReservationStatus
from domain.money import Money, sum_money
from domain.value_objects import BookableUnit, ChargeLine, GuestProfile, Settlement, StayWindow


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity

    Owns its charge lines exclusively. Status changes go through
    ``domain.lifecycle`` and line changes through ``domain.ledger``; the
    entity itself only answers questions about its current state.
    """

    # Identity
    reservation_id: str

    # Snapshots taken at booking time
    guest: GuestProfile
    unit: BookableUnit
    stay: StayWindow

    # Ledger
    charge_lines: List[ChargeLine] = Field(default_factory=list)
    retracted_lines: List[ChargeLine] = Field(default_factory=list)
    line_sequence: int = 0
    advance_paid: Money

    # Status
    status: ReservationStatus = ReservationStatus.BOOKED
    checked_in_at: Optional[datetime] = None
    settlement: Optional[Settlement] = None

    # Metadata
    created_at: datetime = Field(default_factory=utcnow)
    modified_at: datetime = Field(default_factory=utcnow)
    version: int = 1

    model_config = ConfigDict(from_attributes=True)

    @staticmethod
    def generate_id() -> str:
        """Opaque booking reference such as ``BK3F09A1C2D4``"""
        return "BK" + uuid4().hex[:10].upper()

    # ==================== QUERY METHODS ====================
    @property
    def currency(self) -> str:
        return self.advance_paid.currency

    def total_charges(self) -> Money:
        """Sum of all current lines, recomputed on every call"""
        return sum_money((line.amount for line in self.charge_lines), self.currency)

    def balance_due(self) -> Money:
        """Signed balance; may be negative after retractions"""
        return self.total_charges().subtract(self.advance_paid)

    def lines_in(self, category: ChargeCategory) -> List[ChargeLine]:
        return [line for line in self.charge_lines if line.category == category]

    def find_line(self, line_id: int) -> Optional[ChargeLine]:
        for line in self.charge_lines:
            if line.line_id == line_id:
                return line
        return None

    @property
    def room_charge(self) -> Optional[ChargeLine]:
        lines = self.lines_in(ChargeCategory.ROOM_CHARGE)
        return lines[0] if lines else None

    def is_completed(self) -> bool:
        return self.status == ReservationStatus.COMPLETED

    def is_checked_in(self) -> bool:
        return self.status == ReservationStatus.CHECKED_IN

    # ==================== MODIFICATION METHODS ====================
    def next_line_id(self) -> int:
        self.line_sequence += 1
        return self.line_sequence

    def touch(self, now: Optional[datetime] = None) -> None:
        """Record that the aggregate changed"""
        self.modified_at = now or utcnow()
        self.version += 1


class RegisteredGuest(BaseModel):
    """Customer who signed up for the self-service portal"""
    guest_id: str
    name: str
    email: str
    phone: str
    registered_at: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(from_attributes=True)

    @staticmethod
    def generate_id() -> str:
        return "CUST" + "".join(random.choices(string.digits, k=6))

    @property
    def email_key(self) -> str:
        return self.email.strip().lower()
