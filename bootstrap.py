"""Wires repositories, locks and services into one container"""
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from application.services import GuestService, LookupService, ReservationService
from config import Settings
from domain.entities import utcnow
from domain.ledger import ChargeLedger
from domain.lifecycle import ReservationLifecycle
from infrastructure.catalog import InMemoryCatalog
from infrastructure.locking import ReservationLockRegistry
from infrastructure.repositories.in_memory_repositories import (
    InMemoryGuestRepository, InMemoryReservationRepository
)


@dataclass
class AppContainer:
    settings: Settings
    catalog: InMemoryCatalog
    reservation_repo: InMemoryReservationRepository
    guest_repo: InMemoryGuestRepository
    locks: ReservationLockRegistry
    reservation_service: ReservationService
    lookup_service: LookupService
    guest_service: GuestService


def bootstrap_app(
    settings: Settings,
    clock: Optional[Callable[[], datetime]] = None
) -> AppContainer:
    """Build a fresh, isolated set of stores and services"""
    clock = clock or utcnow
    catalog = InMemoryCatalog.default(settings.CURRENCY)
    reservation_repo = InMemoryReservationRepository()
    guest_repo = InMemoryGuestRepository()
    locks = ReservationLockRegistry(timeout_seconds=settings.LOCK_TIMEOUT_SECONDS)

    ledger = ChargeLedger(clock=clock)
    lifecycle = ReservationLifecycle(ledger, clock=clock)

    return AppContainer(
        settings=settings,
        catalog=catalog,
        reservation_repo=reservation_repo,
        guest_repo=guest_repo,
        locks=locks,
        reservation_service=ReservationService(
            reservation_repo,
            locks,
            lifecycle,
            advance_fraction=settings.ADVANCE_PAYMENT_FRACTION,
            clock=clock,
        ),
        lookup_service=LookupService(reservation_repo),
        guest_service=GuestService(guest_repo, clock=clock),
    )
