"""In-Memory Repository Implementations"""
import logging
from typing import Dict, List, Optional

from domain.entities import RegisteredGuest, Reservation
from domain.exceptions import ConcurrentModificationError, DuplicateGuestError, NotFoundError
from domain.repositories import GuestRepository, ReservationRepository

logger = logging.getLogger(__name__)


class InMemoryReservationRepository(ReservationRepository):
    """In-memory implementation of ReservationRepository

    Stored reservations are private copies. Every read returns a fresh deep
    copy and every write swaps in a new copy in one dict assignment, so a
    reader sees either the old or the new state of a reservation and never
    a half-applied change.
    """

    def __init__(self):
        self._storage: Dict[str, Reservation] = {}

    async def add(self, reservation: Reservation) -> Reservation:
        """Save new reservation to memory"""
        if reservation.reservation_id in self._storage:
            raise ConcurrentModificationError(
                f"Reservation {reservation.reservation_id} already exists"
            )
        self._storage[reservation.reservation_id] = reservation.model_copy(deep=True)
        return reservation.model_copy(deep=True)

    async def find_by_id(self, reservation_id: str) -> Optional[Reservation]:
        """Find reservation by ID"""
        stored = self._storage.get(reservation_id)
        return stored.model_copy(deep=True) if stored is not None else None

    async def find_all(self) -> List[Reservation]:
        """Find all reservations"""
        return [r.model_copy(deep=True) for r in list(self._storage.values())]

    async def exists(self, reservation_id: str) -> bool:
        return reservation_id in self._storage

    async def update(self, reservation: Reservation, expected_version: int) -> Reservation:
        """Commit a working copy if nobody else committed first"""
        stored = self._storage.get(reservation.reservation_id)
        if stored is None:
            raise NotFoundError(f"Reservation {reservation.reservation_id} not found")
        if stored.version != expected_version:
            logger.warning(
                "Version conflict on %s: stored %s, expected %s",
                reservation.reservation_id, stored.version, expected_version
            )
            raise ConcurrentModificationError(
                f"Reservation {reservation.reservation_id} was modified by another request"
            )
        self._storage[reservation.reservation_id] = reservation.model_copy(deep=True)
        return reservation.model_copy(deep=True)


class InMemoryGuestRepository(GuestRepository):
    """In-memory implementation of GuestRepository"""

    def __init__(self):
        self._storage: Dict[str, RegisteredGuest] = {}

    async def add(self, guest: RegisteredGuest) -> RegisteredGuest:
        """Save guest keyed by lower-cased email"""
        if guest.email_key in self._storage:
            raise DuplicateGuestError(f"A guest is already registered with {guest.email}")
        self._storage[guest.email_key] = guest.model_copy()
        return guest

    async def find_by_email(self, email: str) -> Optional[RegisteredGuest]:
        """Find guest by email"""
        stored = self._storage.get((email or "").strip().lower())
        return stored.model_copy() if stored is not None else None

    async def find_by_id(self, guest_id: str) -> Optional[RegisteredGuest]:
        """Find guest by ID"""
        for guest in self._storage.values():
            if guest.guest_id == guest_id:
                return guest.model_copy()
        return None

    async def find_all(self) -> List[RegisteredGuest]:
        """Find all registered guests"""
        return [g.model_copy() for g in self._storage.values()]
