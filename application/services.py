"""Application Services - Business use cases"""
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

from pydantic import BaseModel

from domain.entities import RegisteredGuest, Reservation, utcnow
from domain.enums import ChargeActor, ChargeCategory, LookupField, ReservationStatus, UnitCategory
from domain.exceptions import (
    DomainError, InvalidChargeError, InvalidStateError, InvalidStayWindowError, NotFoundError
)
from domain.ledger import ChargeLedger
from domain.lifecycle import AddInStayCharges, CheckIn, CheckOut, ReservationLifecycle
from domain.money import Money, percentage_of
from domain.repositories import GuestRepository, ReservationRepository
from domain.value_objects import (
    BookableUnit, ChargeLineInput, GuestProfile, StayWindow, billable_units, digits_only
)
from infrastructure.locking import ReservationLockRegistry

logger = logging.getLogger(__name__)

UNIT_LABELS = {
    UnitCategory.ROOM: "night(s)",
    UnitCategory.BANQUET: "event day(s)",
    UnitCategory.RESTAURANT: "day(s)",
}


class ReservationService:
    """Service for Reservation business use cases

    Every mutation runs under the reservation's lock against a working copy
    fetched from the repository. The copy is committed only if the whole
    operation succeeded, so a failure never leaves a partial change behind.
    """

    def __init__(self,
                 repository: ReservationRepository,
                 locks: ReservationLockRegistry,
                 lifecycle: ReservationLifecycle,
                 advance_fraction: Decimal = Decimal("0.30"),
                 clock: Optional[Callable[[], datetime]] = None):
        self.repository = repository
        self.locks = locks
        self.lifecycle = lifecycle
        self.ledger: ChargeLedger = lifecycle.ledger
        self.advance_fraction = advance_fraction
        self._clock = clock or utcnow

    async def _new_reservation_id(self) -> str:
        while True:
            reservation_id = Reservation.generate_id()
            if not await self.repository.exists(reservation_id):
                return reservation_id

    @staticmethod
    def _validate_stay_window(stay: StayWindow) -> None:
        if stay.check_out <= stay.check_in:
            raise InvalidStayWindowError("Check-out must be after check-in")
        if stay.party_size < 1:
            raise InvalidStayWindowError("Party size must be at least 1")

    async def create_reservation(
        self,
        guest: GuestProfile,
        unit: BookableUnit,
        stay: StayWindow,
        extras: Optional[Iterable[ChargeLineInput]] = None
    ) -> Reservation:
        """Book a unit: room charge, booking extras and the advance payment"""
        self._validate_stay_window(stay)
        extras = list(extras or [])
        for extra in extras:
            if extra.category != ChargeCategory.EXTRA:
                raise InvalidChargeError(
                    f"Booking extras must be {ChargeCategory.EXTRA.value}, got {extra.category.value}"
                )

        reservation_id = await self._new_reservation_id()
        async with self.locks.hold(reservation_id):
            now = self._clock()
            reservation = Reservation(
                reservation_id=reservation_id,
                guest=guest,
                unit=unit,
                stay=stay,
                advance_paid=Money.zero(unit.rate.currency),
                created_at=now,
                modified_at=now,
            )
            units = billable_units(stay.check_in, stay.check_out)
            self.ledger.append_line(reservation, ChargeLineInput(
                category=ChargeCategory.ROOM_CHARGE,
                description=f"{unit.name} x {units} {UNIT_LABELS[unit.category]}",
                unit_price=unit.rate,
                quantity=units,
                added_by=ChargeActor.SYSTEM,
            ))
            for extra in extras:
                self.ledger.append_line(reservation, extra)
            reservation.advance_paid = percentage_of(
                self.ledger.total(reservation), self.advance_fraction
            )
            saved = await self.repository.add(reservation)

        logger.info(
            "Created reservation %s for %s: total %s, advance %s",
            saved.reservation_id, guest.email, saved.total_charges(), saved.advance_paid
        )
        return saved

    async def get_reservation(self, reservation_id: str) -> Reservation:
        """Get reservation by ID"""
        reservation = await self.repository.find_by_id(reservation_id)
        if reservation is None:
            raise NotFoundError(f"Reservation {reservation_id} not found")
        return reservation

    async def get_statement(self, reservation_id: str) -> Reservation:
        """Completed reservation suitable for a final receipt"""
        reservation = await self.get_reservation(reservation_id)
        if not reservation.is_completed():
            raise InvalidStateError(
                f"Reservation {reservation_id} is {reservation.status.value}; "
                "a final statement is only available after checkout"
            )
        return reservation

    async def _mutate(
        self,
        reservation_id: str,
        change: Callable[[Reservation], object],
        operation: str
    ) -> Reservation:
        async with self.locks.hold(reservation_id):
            working = await self.repository.find_by_id(reservation_id)
            if working is None:
                raise NotFoundError(f"Reservation {reservation_id} not found")
            expected_version = working.version
            try:
                change(working)
            except DomainError as e:
                logger.warning("Rejected %s on %s: %s", operation, reservation_id, e)
                raise
            working.touch(self._clock())
            return await self.repository.update(working, expected_version)

    async def mutate_status(self, reservation_id: str, action) -> Reservation:
        """Apply a lifecycle action (CheckIn, AddInStayCharges, CheckOut)"""
        return await self._mutate(
            reservation_id,
            lambda reservation: self.lifecycle.apply(reservation, action),
            action.kind.value,
        )

    async def check_in(self, reservation_id: str) -> Reservation:
        return await self.mutate_status(reservation_id, CheckIn())

    async def check_out(
        self,
        reservation_id: str,
        ad_hoc_charges: Optional[Iterable[ChargeLineInput]] = None
    ) -> Reservation:
        return await self.mutate_status(
            reservation_id, CheckOut(ad_hoc_charges=list(ad_hoc_charges or []))
        )

    async def add_extras_during_stay(
        self,
        reservation_id: str,
        items: Iterable[ChargeLineInput]
    ) -> Reservation:
        """Post in-stay additions; only while the guest is checked in"""
        action = AddInStayCharges(items=list(items))

        def change(reservation: Reservation) -> None:
            if not reservation.is_checked_in():
                raise InvalidStateError(
                    f"In-stay additions need a checked-in reservation; "
                    f"{reservation_id} is {reservation.status.value}"
                )
            self.lifecycle.apply(reservation, action)

        return await self._mutate(reservation_id, change, "ADD_IN_STAY_CHARGES")

    async def add_checkout_charge(self, reservation_id: str, item: ChargeLineInput) -> Reservation:
        """Post an ad-hoc charge during the checkout review"""
        if item.category != ChargeCategory.AD_HOC:
            raise InvalidChargeError(
                f"Checkout charges must be {ChargeCategory.AD_HOC.value}, got {item.category.value}"
            )

        def change(reservation: Reservation) -> None:
            if not reservation.is_checked_in():
                raise InvalidStateError(
                    f"Checkout charges need a checked-in reservation; "
                    f"{reservation_id} is {reservation.status.value}"
                )
            self.ledger.append_line(reservation, item)

        return await self._mutate(reservation_id, change, "ADD_CHECKOUT_CHARGE")

    async def retract_charge(self, reservation_id: str, line_id: int) -> Reservation:
        """Remove an unsettled charge line"""
        return await self._mutate(
            reservation_id,
            lambda reservation: self.ledger.retract_line(reservation, line_id),
            "RETRACT_CHARGE",
        )


class DateWindow(BaseModel):
    """Front-desk arrivals views for one calendar day"""
    day: date
    today: List[Reservation]
    upcoming: List[Reservation]


class LookupService:
    """Read-only queries over reservation snapshots; never takes locks"""

    def __init__(self, repository: ReservationRepository):
        self.repository = repository

    async def find_by_id(self, reservation_id: str) -> Optional[Reservation]:
        return await self.repository.find_by_id(reservation_id)

    async def list_all(self) -> List[Reservation]:
        return await self.repository.find_all()

    @staticmethod
    def _email_matches(reservation: Reservation, email: str, exact: bool) -> bool:
        stored = reservation.guest.email.lower()
        wanted = email.strip().lower()
        return stored == wanted if exact else wanted in stored

    @staticmethod
    def _phone_matches(reservation: Reservation, phone: str) -> bool:
        wanted = digits_only(phone)
        return bool(wanted) and wanted in reservation.guest.phone_digits

    async def find_by_guest_contact(
        self,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        exact: bool = False
    ) -> List[Reservation]:
        """Reservations whose guest matches every contact detail given"""
        email = email.strip() if email else None
        phone = phone.strip() if phone else None
        if not email and not phone:
            return []

        results = []
        for reservation in await self.repository.find_all():
            if email and not self._email_matches(reservation, email, exact):
                continue
            if phone and not self._phone_matches(reservation, phone):
                continue
            results.append(reservation)
        return results

    async def find_checked_in(self, field: LookupField, value: str) -> List[Reservation]:
        """Self-checkout lookup, restricted to stays that are checked in"""
        value = (value or "").strip()
        if not value:
            return []

        checked_in = [
            r for r in await self.repository.find_all()
            if r.status == ReservationStatus.CHECKED_IN
        ]
        if field == LookupField.BY_ID:
            return [r for r in checked_in if value.lower() in r.reservation_id.lower()]
        if field == LookupField.BY_EMAIL:
            return [r for r in checked_in if self._email_matches(r, value, exact=False)]
        if field == LookupField.BY_PHONE:
            return [r for r in checked_in if self._phone_matches(r, value)]
        raise ValueError(f"Unsupported lookup field: {field}")

    async def list_by_date_window(self, day: date) -> DateWindow:
        """Split reservations into arrivals on ``day`` and later arrivals"""
        if isinstance(day, datetime):
            day = day.date()
        reservations = await self.repository.find_all()
        return DateWindow(
            day=day,
            today=[r for r in reservations if r.stay.check_in == day],
            upcoming=[r for r in reservations if r.stay.check_in > day],
        )

    async def search(self, term: Optional[str] = None) -> List[Reservation]:
        """Front-desk search over guest name, email and reservation ID"""
        reservations = await self.repository.find_all()
        term = (term or "").strip().lower()
        if not term:
            return reservations
        return [
            r for r in reservations
            if term in r.guest.name.lower()
            or term in r.guest.email.lower()
            or term in r.reservation_id.lower()
        ]

    async def status_counts(self) -> Dict[ReservationStatus, int]:
        counts = {status: 0 for status in ReservationStatus}
        for reservation in await self.repository.find_all():
            counts[reservation.status] += 1
        return counts


class GuestService:
    """Service for customer registration and portal login"""

    PASSWORD_DIGITS = 5

    def __init__(self, repository: GuestRepository, clock: Optional[Callable[[], datetime]] = None):
        self.repository = repository
        self._clock = clock or utcnow

    async def _new_guest_id(self) -> str:
        taken = {g.guest_id for g in await self.repository.find_all()}
        while True:
            guest_id = RegisteredGuest.generate_id()
            if guest_id not in taken:
                return guest_id

    async def register_customer(self, name: str, email: str, phone: str) -> RegisteredGuest:
        """Register a customer; email is unique ignoring case"""
        profile = GuestProfile(name=name, email=email, phone=phone)
        guest = RegisteredGuest(
            guest_id=await self._new_guest_id(),
            name=profile.name,
            email=profile.email,
            phone=profile.phone,
            registered_at=self._clock(),
        )
        saved = await self.repository.add(guest)
        logger.info("Registered customer %s (%s)", saved.guest_id, saved.email)
        return saved

    async def get_customer(self, email: str) -> RegisteredGuest:
        guest = await self.repository.find_by_email(email)
        if guest is None:
            raise NotFoundError(f"No customer registered with {email}")
        return guest

    @classmethod
    def portal_password(cls, guest: RegisteredGuest) -> str:
        """Customers sign in with the last five digits of their phone number"""
        return digits_only(guest.phone)[-cls.PASSWORD_DIGITS:]

    async def authenticate_customer(self, email: str, password: str) -> Optional[RegisteredGuest]:
        guest = await self.repository.find_by_email(email)
        if guest is None or password.strip() != self.portal_password(guest):
            logger.warning("Failed customer login for %s", email)
            return None
        return guest
