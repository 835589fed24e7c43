"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Dict, List, Optional


# ============================================================================
# RESERVATION SCHEMAS
# ============================================================================

class GuestProfileRequest(BaseModel):
    """Guest details DTO"""
    name: str
    email: str
    phone: str
    address: Optional[str] = None
    special_requests: Optional[str] = None


class ItemQuantityRequest(BaseModel):
    """Catalog item and quantity DTO"""
    item_id: str
    quantity: int = 1


class CreateReservationRequest(BaseModel):
    """Create reservation request DTO"""
    guest: GuestProfileRequest
    unit_id: str
    check_in: date
    check_out: date
    party_size: int = 1
    extras: List[ItemQuantityRequest] = []


class InStayItemsRequest(BaseModel):
    """In-stay additions request DTO"""
    items: List[ItemQuantityRequest]


class AdHocChargeRequest(BaseModel):
    """Ad-hoc checkout charge DTO; prices in minor units"""
    description: str
    unit_price: int
    quantity: int = 1


class CheckOutRequest(BaseModel):
    """Check-out request DTO"""
    ad_hoc_charges: List[AdHocChargeRequest] = []


class MoneyResponse(BaseModel):
    """Money response DTO"""
    amount: int
    currency: str
    display: str


class GuestResponse(BaseModel):
    """Guest profile response DTO"""
    name: str
    email: str
    phone: str
    address: Optional[str] = None
    special_requests: Optional[str] = None


class UnitResponse(BaseModel):
    """Bookable unit response DTO"""
    unit_id: str
    name: str
    category: str
    rate: MoneyResponse
    capacity: int


class ChargeLineResponse(BaseModel):
    """Charge line response DTO"""
    line_id: int
    category: str
    description: str
    unit_price: MoneyResponse
    quantity: int
    amount: MoneyResponse
    timestamp: datetime
    added_by: str


class SettlementResponse(BaseModel):
    """Settlement response DTO"""
    total: MoneyResponse
    advance_paid: MoneyResponse
    balance_due: MoneyResponse
    settled_at: datetime


class ReservationResponse(BaseModel):
    """Reservation response DTO"""
    reservation_id: str
    status: str
    guest: GuestResponse
    unit: UnitResponse
    check_in: date
    check_out: date
    party_size: int
    duration_units: int
    charge_lines: List[ChargeLineResponse]
    total: MoneyResponse
    advance_paid: MoneyResponse
    balance_due: MoneyResponse
    amount_payable: MoneyResponse
    settlement: Optional[SettlementResponse] = None
    allowed_actions: List[str]
    checked_in_at: Optional[datetime] = None
    created_at: datetime
    modified_at: datetime
    version: int


class BillResponse(BaseModel):
    """Itemized bill DTO; ``final`` is true only for completed stays"""
    reservation_id: str
    status: str
    final: bool
    guest_name: str
    unit_name: str
    check_in: date
    check_out: date
    lines: List[ChargeLineResponse]
    subtotals: Dict[str, MoneyResponse]
    total: MoneyResponse
    advance_paid: MoneyResponse
    balance_due: MoneyResponse
    amount_payable: MoneyResponse
    settled_at: Optional[datetime] = None


class DateWindowResponse(BaseModel):
    """Arrivals response DTO"""
    day: date
    today: List[ReservationResponse]
    upcoming: List[ReservationResponse]


class DashboardSummaryResponse(BaseModel):
    """Front-desk dashboard counters"""
    total_reservations: int
    by_status: Dict[str, int]
    arrivals_today: int
    upcoming_arrivals: int


# ============================================================================
# CATALOG SCHEMAS
# ============================================================================

class CatalogItemResponse(BaseModel):
    """Catalog item response DTO"""
    item_id: str
    name: str
    price: MoneyResponse


# ============================================================================
# CUSTOMER SCHEMAS
# ============================================================================

class RegisterCustomerRequest(BaseModel):
    """Customer registration request DTO"""
    name: str
    email: str
    phone: str


class CustomerLoginRequest(BaseModel):
    """Customer login request DTO"""
    email: str
    password: str = Field(description="Last five digits of the registered phone number")


class CustomerResponse(BaseModel):
    """Registered customer response DTO"""
    guest_id: str
    name: str
    email: str
    phone: str
    registered_at: datetime


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str

class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None
    role: Optional[str] = None

class UserResponse(BaseModel):
    """User response DTO"""
    username: str
    role: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    disabled: bool
