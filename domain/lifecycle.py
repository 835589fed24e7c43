"""Lifecycle State Machine

BOOKED -> CHECKED_IN -> COMPLETED. Every other request is rejected and
leaves the reservation untouched.
"""
import logging
from datetime import datetime
from typing import Annotated, Callable, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from domain.entities import Reservation, utcnow
from domain.enums import ChargeCategory, LifecycleAction, ReservationStatus
from domain.exceptions import IllegalTransitionError, InvalidChargeError
from domain.ledger import ChargeLedger
from domain.value_objects import ChargeLine, ChargeLineInput, Settlement, validate_charge

logger = logging.getLogger(__name__)


TRANSITIONS: Dict[Tuple[ReservationStatus, LifecycleAction], ReservationStatus] = {
    (ReservationStatus.BOOKED, LifecycleAction.CHECK_IN): ReservationStatus.CHECKED_IN,
    (ReservationStatus.CHECKED_IN, LifecycleAction.ADD_IN_STAY_CHARGES): ReservationStatus.CHECKED_IN,
    (ReservationStatus.CHECKED_IN, LifecycleAction.CHECK_OUT): ReservationStatus.COMPLETED,
}


def _require_category(lines: List[ChargeLineInput], category: ChargeCategory) -> None:
    for line in lines:
        if line.category != category:
            raise InvalidChargeError(
                f"Expected {category.value} charges, got {line.category.value} for '{line.description}'"
            )


class CheckIn(BaseModel):
    kind: Literal[LifecycleAction.CHECK_IN] = LifecycleAction.CHECK_IN

    model_config = ConfigDict(frozen=True)


class AddInStayCharges(BaseModel):
    kind: Literal[LifecycleAction.ADD_IN_STAY_CHARGES] = LifecycleAction.ADD_IN_STAY_CHARGES
    items: List[ChargeLineInput]

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def items_are_in_stay_additions(self):
        if not self.items:
            raise InvalidChargeError("At least one in-stay item is required")
        _require_category(self.items, ChargeCategory.IN_STAY_ADDITION)
        return self


class CheckOut(BaseModel):
    kind: Literal[LifecycleAction.CHECK_OUT] = LifecycleAction.CHECK_OUT
    ad_hoc_charges: List[ChargeLineInput] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def charges_are_ad_hoc(self):
        _require_category(self.ad_hoc_charges, ChargeCategory.AD_HOC)
        return self


ReservationAction = Annotated[
    Union[CheckIn, AddInStayCharges, CheckOut],
    Field(discriminator="kind"),
]


def allowed_actions(status: ReservationStatus) -> List[LifecycleAction]:
    return [action for (source, action) in TRANSITIONS if source == status]


class ReservationLifecycle:
    """Applies lifecycle actions and their ledger side effects"""

    def __init__(self, ledger: ChargeLedger, clock: Optional[Callable[[], datetime]] = None):
        self.ledger = ledger
        self._clock = clock or utcnow

    def target_status(self, reservation: Reservation, action: LifecycleAction) -> ReservationStatus:
        target = TRANSITIONS.get((reservation.status, action))
        if target is None:
            raise IllegalTransitionError(
                f"Cannot {action.value} reservation {reservation.reservation_id} "
                f"with status {reservation.status.value}"
            )
        return target

    def apply(
        self,
        reservation: Reservation,
        action: Union[CheckIn, AddInStayCharges, CheckOut],
    ) -> List[ChargeLine]:
        """Apply ``action`` in place and return the lines it posted.

        All preconditions and every charge in a batch are checked before the
        reservation is touched, so a failure leaves it as it was.
        """
        target = self.target_status(reservation, action.kind)

        if isinstance(action, CheckIn):
            reservation.status = target
            reservation.checked_in_at = self._clock()
            posted: List[ChargeLine] = []
        elif isinstance(action, AddInStayCharges):
            posted = self._post_batch(reservation, action.items)
        elif isinstance(action, CheckOut):
            posted = self._post_batch(reservation, action.ad_hoc_charges)
            reservation.settlement = Settlement(
                total=self.ledger.total(reservation),
                advance_paid=reservation.advance_paid,
                balance_due=self.ledger.balance_due(reservation),
                settled_at=self._clock(),
            )
            reservation.status = target
        else:
            raise IllegalTransitionError(f"Unknown lifecycle action: {action!r}")

        logger.info(
            "Reservation %s: %s -> %s (%d line(s) posted)",
            reservation.reservation_id, action.kind.value, reservation.status.value, len(posted)
        )
        return posted

    def _post_batch(self, reservation: Reservation, items: List[ChargeLineInput]) -> List[ChargeLine]:
        for item in items:
            validate_charge(item.unit_price, item.quantity)
            if item.unit_price.currency != reservation.currency:
                raise InvalidChargeError(
                    f"'{item.description}' is priced in {item.unit_price.currency}, "
                    f"reservation bills in {reservation.currency}"
                )
        return [self.ledger.append_line(reservation, item) for item in items]
