"""Charge Ledger - append-only charge lines and derived totals"""
import logging
from datetime import datetime
from typing import Callable, Dict, Optional

from domain.entities import Reservation, utcnow
from domain.enums import ChargeCategory
from domain.exceptions import ImmutableLineError, InvalidChargeError, NotFoundError
from domain.money import Money, sum_money
from domain.value_objects import ChargeLine, ChargeLineInput, validate_charge

logger = logging.getLogger(__name__)


class ChargeLedger:
    """Posts and retracts charge lines on a reservation.

    The ledger keeps no state of its own: totals are always recomputed from
    ``reservation.charge_lines`` so they can never drift from the lines.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or utcnow

    def _next_timestamp(self, reservation: Reservation) -> datetime:
        now = self._clock()
        if reservation.charge_lines:
            last = reservation.charge_lines[-1].timestamp
            if now < last:
                return last
        return now

    def append_line(self, reservation: Reservation, line_input: ChargeLineInput) -> ChargeLine:
        """Validate and post one line; returns the posted line"""
        validate_charge(line_input.unit_price, line_input.quantity)

        if reservation.is_completed():
            raise ImmutableLineError(
                f"Reservation {reservation.reservation_id} is completed; its ledger is frozen"
            )
        if line_input.category == ChargeCategory.ROOM_CHARGE and reservation.room_charge is not None:
            raise ImmutableLineError("A reservation carries exactly one room charge")
        if line_input.unit_price.currency != reservation.currency:
            raise InvalidChargeError(
                f"Charge currency {line_input.unit_price.currency} does not match "
                f"reservation currency {reservation.currency}"
            )

        line = ChargeLine(
            line_id=reservation.next_line_id(),
            category=line_input.category,
            description=line_input.description,
            unit_price=line_input.unit_price,
            quantity=line_input.quantity,
            amount=line_input.amount,
            timestamp=self._next_timestamp(reservation),
            added_by=line_input.added_by,
        )
        reservation.charge_lines.append(line)
        logger.debug(
            "Posted line %s (%s, %s) to %s",
            line.line_id, line.category.value, line.amount, reservation.reservation_id
        )
        return line

    def retract_line(self, reservation: Reservation, line_id: int) -> ChargeLine:
        """Remove an unsettled line; the removed line is kept for audit"""
        line = reservation.find_line(line_id)
        if line is None:
            raise NotFoundError(
                f"Charge line {line_id} not found on reservation {reservation.reservation_id}"
            )
        if reservation.is_completed():
            raise ImmutableLineError(
                f"Reservation {reservation.reservation_id} is completed; its ledger is frozen"
            )
        if line.category == ChargeCategory.ROOM_CHARGE:
            raise ImmutableLineError(
                "Room charges cannot be retracted; post an AD_HOC correction instead"
            )

        reservation.charge_lines = [
            kept for kept in reservation.charge_lines if kept.line_id != line_id
        ]
        reservation.retracted_lines.append(line)
        logger.debug("Retracted line %s from %s", line_id, reservation.reservation_id)
        return line

    def total(self, reservation: Reservation) -> Money:
        return reservation.total_charges()

    def balance_due(self, reservation: Reservation) -> Money:
        return self.total(reservation).subtract(reservation.advance_paid)

    def subtotal(self, reservation: Reservation, category: ChargeCategory) -> Money:
        return sum_money(
            (line.amount for line in reservation.lines_in(category)), reservation.currency
        )

    def breakdown(self, reservation: Reservation) -> Dict[ChargeCategory, Money]:
        """Per-category subtotals, every category present"""
        return {category: self.subtotal(reservation, category) for category in ChargeCategory}
