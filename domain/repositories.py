"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import List, Optional

from domain.entities import RegisteredGuest, Reservation


class ReservationRepository(ABC):
    """Repository interface for Reservation Aggregate

    Implementations hand out snapshots: mutating a returned reservation has
    no effect until it is passed back through ``update``.
    """

    @abstractmethod
    async def add(self, reservation: Reservation) -> Reservation:
        """Store a new reservation"""
        pass

    @abstractmethod
    async def find_by_id(self, reservation_id: str) -> Optional[Reservation]:
        """Find reservation by ID"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Reservation]:
        """Find all reservations in creation order"""
        pass

    @abstractmethod
    async def exists(self, reservation_id: str) -> bool:
        """Check whether an ID is already taken"""
        pass

    @abstractmethod
    async def update(self, reservation: Reservation, expected_version: int) -> Reservation:
        """Replace the stored reservation if it is still at ``expected_version``"""
        pass


class GuestRepository(ABC):
    """Repository interface for registered guests"""

    @abstractmethod
    async def add(self, guest: RegisteredGuest) -> RegisteredGuest:
        """Store a new guest; email must be unused (case-insensitive)"""
        pass

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[RegisteredGuest]:
        """Find guest by email, ignoring case"""
        pass

    @abstractmethod
    async def find_by_id(self, guest_id: str) -> Optional[RegisteredGuest]:
        """Find guest by ID"""
        pass

    @abstractmethod
    async def find_all(self) -> List[RegisteredGuest]:
        """Find all registered guests"""
        pass
