"""Domain Enums"""
from enum import Enum


class ReservationStatus(str, Enum):
    BOOKED = "BOOKED"
    CHECKED_IN = "CHECKED_IN"
    COMPLETED = "COMPLETED"


class UnitCategory(str, Enum):
    ROOM = "ROOM"
    BANQUET = "BANQUET"
    RESTAURANT = "RESTAURANT"


class ChargeCategory(str, Enum):
    ROOM_CHARGE = "ROOM_CHARGE"
    EXTRA = "EXTRA"
    IN_STAY_ADDITION = "IN_STAY_ADDITION"
    AD_HOC = "AD_HOC"


class ChargeActor(str, Enum):
    SYSTEM = "SYSTEM"
    GUEST = "GUEST"
    STAFF = "STAFF"


class LifecycleAction(str, Enum):
    CHECK_IN = "CHECK_IN"
    ADD_IN_STAY_CHARGES = "ADD_IN_STAY_CHARGES"
    CHECK_OUT = "CHECK_OUT"


class LookupField(str, Enum):
    BY_ID = "BY_ID"
    BY_EMAIL = "BY_EMAIL"
    BY_PHONE = "BY_PHONE"


class UserRole(str, Enum):
    STAFF = "STAFF"
    CUSTOMER = "CUSTOMER"
