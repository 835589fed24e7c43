import logging
from datetime import date, datetime, timezone
from typing import Callable, List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    # Reservation
    CreateReservationRequest, InStayItemsRequest, AdHocChargeRequest, CheckOutRequest,
    ItemQuantityRequest, ReservationResponse, BillResponse, ChargeLineResponse, MoneyResponse,
    GuestResponse, UnitResponse, SettlementResponse, DateWindowResponse, DashboardSummaryResponse,
    # Catalog
    CatalogItemResponse,
    # Customers
    RegisterCustomerRequest, CustomerLoginRequest, CustomerResponse,
    # Auth
    Token, UserResponse
)
from api.dependencies import (
    get_catalog, get_current_active_user, get_current_customer, get_current_staff_user,
    get_guest_service, get_lookup_service, get_reservation_service, get_settings, get_staff_user
)
from api.formatting import display_balance, format_money
from application.services import GuestService, LookupService, ReservationService
from bootstrap import bootstrap_app
from config import Settings, settings as default_settings
from domain.auth import User
from domain.entities import Reservation
from domain.enums import (
    ChargeActor, ChargeCategory, LookupField, ReservationStatus, UnitCategory
)
from domain.exceptions import (
    DomainError, InvalidChargeError, InvalidStayWindowError, NotFoundError
)
from domain.ledger import ChargeLedger
from domain.lifecycle import allowed_actions
from domain.money import Money
from domain.value_objects import ChargeLine, ChargeLineInput, GuestProfile, StayWindow
from infrastructure.catalog import CatalogItem, InMemoryCatalog
from infrastructure.security import verify_password, create_access_token

logger = logging.getLogger(__name__)

router = APIRouter()


def _raise_http(e: DomainError) -> None:
    """Translate a domain failure into the matching HTTP error"""
    if isinstance(e, NotFoundError):
        raise HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (InvalidStayWindowError, InvalidChargeError)):
        raise HTTPException(status_code=400, detail=str(e))
    raise HTTPException(status_code=409, detail=str(e))

# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@router.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

@router.get("/api/enums/reservation-status", tags=["Enum Reference"])
async def get_reservation_statuses():
    """Get all ReservationStatus enum values"""
    return {
        "values": [item.name for item in ReservationStatus],
        "description": "Reservation status values: BOOKED, CHECKED_IN, COMPLETED"
    }

@router.get("/api/enums/charge-category", tags=["Enum Reference"])
async def get_charge_categories():
    """Get all ChargeCategory enum values"""
    return {
        "values": [item.name for item in ChargeCategory],
        "description": "Charge categories: ROOM_CHARGE, EXTRA, IN_STAY_ADDITION, AD_HOC"
    }

@router.get("/api/enums/unit-category", tags=["Enum Reference"])
async def get_unit_categories():
    """Get all UnitCategory enum values"""
    return {
        "values": [item.name for item in UnitCategory],
        "description": "Bookable unit categories: ROOM, BANQUET, RESTAURANT"
    }

@router.get("/api/enums/lookup-field", tags=["Enum Reference"])
async def get_lookup_fields():
    """Get all LookupField enum values"""
    return {
        "values": [item.name for item in LookupField],
        "description": "Self-checkout lookup fields: BY_ID, BY_EMAIL, BY_PHONE"
    }

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@router.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    settings: Settings = Depends(get_settings)
):
    user = get_staff_user(settings, form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        logger.warning("Failed staff login for %s", form_data.username)
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(
        data={"sub": user.username, "role": user.role.value}, settings=settings
    )
    return {"access_token": access_token, "token_type": "bearer"}

@router.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return UserResponse(
        username=current_user.username,
        role=current_user.role.value,
        email=current_user.email,
        full_name=current_user.full_name,
        disabled=current_user.disabled
    )

# ============================================================================
# CUSTOMER ENDPOINTS
# ============================================================================

@router.post("/api/customers", response_model=CustomerResponse, status_code=201, tags=["Customers"])
async def register_customer(
    request: RegisterCustomerRequest,
    service: GuestService = Depends(get_guest_service)
):
    """Register for the self-service portal"""
    try:
        guest = await service.register_customer(
            name=request.name,
            email=request.email,
            phone=request.phone
        )
        return CustomerResponse(**guest.model_dump())
    except DomainError as e:
        _raise_http(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.post("/api/customers/token", response_model=Token, tags=["Customers"])
async def customer_login(
    request: CustomerLoginRequest,
    service: GuestService = Depends(get_guest_service),
    settings: Settings = Depends(get_settings)
):
    """Customer login: email plus the last five digits of the phone number"""
    guest = await service.authenticate_customer(request.email, request.password)
    if guest is None:
        raise HTTPException(
            status_code=401,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(
        data={"sub": guest.email, "role": "CUSTOMER"}, settings=settings
    )
    return {"access_token": access_token, "token_type": "bearer"}

@router.get("/api/me/reservations", response_model=List[ReservationResponse], tags=["Customers"])
async def get_my_reservations(
    lookup: LookupService = Depends(get_lookup_service),
    current_user: User = Depends(get_current_customer)
):
    """Booking history for the signed-in customer (read-only)"""
    reservations = await lookup.find_by_guest_contact(email=current_user.email, exact=True)
    return [_reservation_to_response(r) for r in reservations]

# ============================================================================
# CATALOG ENDPOINTS
# ============================================================================

@router.get("/api/catalog/units", response_model=List[UnitResponse], tags=["Catalog"])
async def list_units(
    category: Optional[UnitCategory] = None,
    catalog: InMemoryCatalog = Depends(get_catalog)
):
    """Bookable rooms, halls and tables"""
    return [_unit_to_response(u) for u in catalog.list_units(category)]

@router.get("/api/catalog/extras", response_model=List[CatalogItemResponse], tags=["Catalog"])
async def list_booking_extras(catalog: InMemoryCatalog = Depends(get_catalog)):
    """Extras that can be added while booking"""
    return [_item_to_response(i) for i in catalog.list_booking_extras()]

@router.get("/api/catalog/in-stay-items", response_model=List[CatalogItemResponse], tags=["Catalog"])
async def list_in_stay_items(catalog: InMemoryCatalog = Depends(get_catalog)):
    """Items the front desk can add during a stay"""
    return [_item_to_response(i) for i in catalog.list_in_stay_items()]

# ============================================================================
# RESERVATION ENDPOINTS
# ============================================================================

@router.post("/api/reservations", response_model=ReservationResponse, status_code=201, tags=["Reservations"])
async def create_reservation(
    request: CreateReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    catalog: InMemoryCatalog = Depends(get_catalog)
):
    """Create new reservation (booking intake)"""
    try:
        guest = GuestProfile(**request.guest.model_dump())
        stay = StayWindow(
            check_in=request.check_in,
            check_out=request.check_out,
            party_size=request.party_size
        )
        extras = _catalog_charges(
            request.extras, catalog.get_booking_extra, ChargeCategory.EXTRA, ChargeActor.GUEST
        )
        reservation = await service.create_reservation(
            guest=guest,
            unit=catalog.get_unit(request.unit_id),
            stay=stay,
            extras=extras
        )
        return _reservation_to_response(reservation)
    except DomainError as e:
        _raise_http(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.get("/api/reservations", response_model=List[ReservationResponse], tags=["Reservations"])
async def search_reservations(
    search: Optional[str] = None,
    lookup: LookupService = Depends(get_lookup_service),
    current_user: User = Depends(get_current_staff_user)
):
    """All reservations, optionally filtered by guest name, email or ID"""
    reservations = await lookup.search(search)
    return [_reservation_to_response(r) for r in reservations]

@router.get("/api/reservations/arrivals", response_model=DateWindowResponse, tags=["Reservations"])
async def get_arrivals(
    on: Optional[date] = None,
    lookup: LookupService = Depends(get_lookup_service),
    current_user: User = Depends(get_current_staff_user)
):
    """Today's arrivals and upcoming arrivals"""
    window = await lookup.list_by_date_window(on or _today())
    return DateWindowResponse(
        day=window.day,
        today=[_reservation_to_response(r) for r in window.today],
        upcoming=[_reservation_to_response(r) for r in window.upcoming]
    )

@router.get("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation(
    reservation_id: str,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_staff_user)
):
    """Get reservation by ID"""
    try:
        reservation = await service.get_reservation(reservation_id)
        return _reservation_to_response(reservation)
    except DomainError as e:
        _raise_http(e)

@router.get("/api/reservations/{reservation_id}/bill", response_model=BillResponse, tags=["Reservations"])
async def get_bill(
    reservation_id: str,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_staff_user)
):
    """Itemized bill; not final until the reservation is completed"""
    try:
        reservation = await service.get_reservation(reservation_id)
        return _bill_to_response(reservation, service.ledger)
    except DomainError as e:
        _raise_http(e)

@router.get("/api/reservations/{reservation_id}/statement", response_model=BillResponse, tags=["Reservations"])
async def get_statement(
    reservation_id: str,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_staff_user)
):
    """Final statement for receipts; only for completed reservations"""
    try:
        reservation = await service.get_statement(reservation_id)
        return _bill_to_response(reservation, service.ledger)
    except DomainError as e:
        _raise_http(e)

@router.post("/api/reservations/{reservation_id}/check-in", response_model=ReservationResponse, tags=["Reservations"])
async def check_in_guest(
    reservation_id: str,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_staff_user)
):
    """Check in guest"""
    try:
        reservation = await service.check_in(reservation_id)
        return _reservation_to_response(reservation)
    except DomainError as e:
        _raise_http(e)

@router.post("/api/reservations/{reservation_id}/in-stay-items", response_model=ReservationResponse, tags=["Reservations"])
async def add_in_stay_items(
    reservation_id: str,
    request: InStayItemsRequest,
    service: ReservationService = Depends(get_reservation_service),
    catalog: InMemoryCatalog = Depends(get_catalog),
    current_user: User = Depends(get_current_staff_user)
):
    """Add in-stay items to a checked-in reservation"""
    try:
        items = _catalog_charges(
            request.items, catalog.get_in_stay_item, ChargeCategory.IN_STAY_ADDITION, ChargeActor.STAFF
        )
        reservation = await service.add_extras_during_stay(reservation_id, items)
        return _reservation_to_response(reservation)
    except DomainError as e:
        _raise_http(e)

@router.post("/api/reservations/{reservation_id}/charges", response_model=ReservationResponse, tags=["Reservations"])
async def add_checkout_charge(
    reservation_id: str,
    request: AdHocChargeRequest,
    service: ReservationService = Depends(get_reservation_service),
    settings: Settings = Depends(get_settings),
    current_user: User = Depends(get_current_staff_user)
):
    """Add an ad-hoc charge during the checkout review"""
    try:
        charge = _ad_hoc_charge(request, settings.CURRENCY, ChargeActor.STAFF)
        reservation = await service.add_checkout_charge(reservation_id, charge)
        return _reservation_to_response(reservation)
    except DomainError as e:
        _raise_http(e)

@router.delete("/api/reservations/{reservation_id}/charges/{line_id}", response_model=ReservationResponse, tags=["Reservations"])
async def retract_charge(
    reservation_id: str,
    line_id: int,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_staff_user)
):
    """Remove an unsettled charge line"""
    try:
        reservation = await service.retract_charge(reservation_id, line_id)
        return _reservation_to_response(reservation)
    except DomainError as e:
        _raise_http(e)

@router.post("/api/reservations/{reservation_id}/check-out", response_model=ReservationResponse, tags=["Reservations"])
async def check_out_guest(
    reservation_id: str,
    request: CheckOutRequest,
    service: ReservationService = Depends(get_reservation_service),
    settings: Settings = Depends(get_settings),
    current_user: User = Depends(get_current_staff_user)
):
    """Check out guest, posting any final ad-hoc charges with it"""
    try:
        charges = [_ad_hoc_charge(c, settings.CURRENCY, ChargeActor.STAFF) for c in request.ad_hoc_charges]
        reservation = await service.check_out(reservation_id, charges)
        return _reservation_to_response(reservation)
    except DomainError as e:
        _raise_http(e)

@router.get("/api/dashboard/summary", response_model=DashboardSummaryResponse, tags=["Reservations"])
async def get_dashboard_summary(
    on: Optional[date] = None,
    lookup: LookupService = Depends(get_lookup_service),
    current_user: User = Depends(get_current_staff_user)
):
    """Front-desk counters"""
    counts = await lookup.status_counts()
    window = await lookup.list_by_date_window(on or _today())
    return DashboardSummaryResponse(
        total_reservations=sum(counts.values()),
        by_status={status.value: count for status, count in counts.items()},
        arrivals_today=len(window.today),
        upcoming_arrivals=len(window.upcoming)
    )

# ============================================================================
# GUEST SELF-CHECKOUT ENDPOINTS
# ============================================================================

@router.get("/api/self-checkout/lookup", response_model=List[ReservationResponse], tags=["Self Checkout"])
async def self_checkout_lookup(
    by: LookupField = Query(...),
    value: str = Query(...),
    lookup: LookupService = Depends(get_lookup_service)
):
    """Find the caller's checked-in stay by booking ID, email or phone"""
    reservations = await lookup.find_checked_in(by, value)
    return [_reservation_to_response(r) for r in reservations]

@router.get("/api/self-checkout/{reservation_id}/bill", response_model=BillResponse, tags=["Self Checkout"])
async def self_checkout_bill(
    reservation_id: str,
    service: ReservationService = Depends(get_reservation_service)
):
    """In-progress bill for a checked-in stay"""
    try:
        reservation = await service.get_reservation(reservation_id)
    except DomainError as e:
        _raise_http(e)
    if not reservation.is_checked_in():
        raise HTTPException(status_code=409, detail="Only checked-in stays can be reviewed for checkout")
    return _bill_to_response(reservation, service.ledger)

@router.post("/api/self-checkout/{reservation_id}/check-out", response_model=ReservationResponse, tags=["Self Checkout"])
async def self_checkout(
    reservation_id: str,
    request: CheckOutRequest,
    service: ReservationService = Depends(get_reservation_service),
    settings: Settings = Depends(get_settings)
):
    """Guest checks themselves out"""
    try:
        charges = [_ad_hoc_charge(c, settings.CURRENCY, ChargeActor.GUEST) for c in request.ad_hoc_charges]
        reservation = await service.check_out(reservation_id, charges)
        return _reservation_to_response(reservation)
    except DomainError as e:
        _raise_http(e)

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _today() -> date:
    return datetime.now(timezone.utc).date()

def _catalog_charges(
    requested: List[ItemQuantityRequest],
    lookup_item: Callable[[str], CatalogItem],
    category: ChargeCategory,
    added_by: ChargeActor
) -> List[ChargeLineInput]:
    """Price catalog items into charge inputs"""
    charges = []
    for entry in requested:
        item = lookup_item(entry.item_id)
        charges.append(ChargeLineInput(
            category=category,
            description=item.name,
            unit_price=item.price,
            quantity=entry.quantity,
            added_by=added_by
        ))
    return charges

def _ad_hoc_charge(request: AdHocChargeRequest, currency: str, added_by: ChargeActor) -> ChargeLineInput:
    return ChargeLineInput(
        category=ChargeCategory.AD_HOC,
        description=request.description,
        unit_price=Money(amount=request.unit_price, currency=currency),
        quantity=request.quantity,
        added_by=added_by
    )

def _money_to_response(money: Money) -> MoneyResponse:
    return MoneyResponse(amount=money.amount, currency=money.currency, display=format_money(money))

def _unit_to_response(unit) -> UnitResponse:
    return UnitResponse(
        unit_id=unit.unit_id,
        name=unit.name,
        category=unit.category.value,
        rate=_money_to_response(unit.rate),
        capacity=unit.capacity
    )

def _item_to_response(item: CatalogItem) -> CatalogItemResponse:
    return CatalogItemResponse(item_id=item.item_id, name=item.name, price=_money_to_response(item.price))

def _line_to_response(line: ChargeLine) -> ChargeLineResponse:
    return ChargeLineResponse(
        line_id=line.line_id,
        category=line.category.value,
        description=line.description,
        unit_price=_money_to_response(line.unit_price),
        quantity=line.quantity,
        amount=_money_to_response(line.amount),
        timestamp=line.timestamp,
        added_by=line.added_by.value
    )

def _reservation_to_response(reservation: Reservation) -> ReservationResponse:
    """Convert Reservation entity to ReservationResponse"""
    balance = reservation.balance_due()
    settlement = None
    if reservation.settlement is not None:
        settlement = SettlementResponse(
            total=_money_to_response(reservation.settlement.total),
            advance_paid=_money_to_response(reservation.settlement.advance_paid),
            balance_due=_money_to_response(reservation.settlement.balance_due),
            settled_at=reservation.settlement.settled_at
        )
    return ReservationResponse(
        reservation_id=reservation.reservation_id,
        status=reservation.status.value,
        guest=GuestResponse(**reservation.guest.model_dump()),
        unit=_unit_to_response(reservation.unit),
        check_in=reservation.stay.check_in,
        check_out=reservation.stay.check_out,
        party_size=reservation.stay.party_size,
        duration_units=reservation.stay.duration_units,
        charge_lines=[_line_to_response(line) for line in reservation.charge_lines],
        total=_money_to_response(reservation.total_charges()),
        advance_paid=_money_to_response(reservation.advance_paid),
        balance_due=_money_to_response(balance),
        amount_payable=_money_to_response(display_balance(balance)),
        settlement=settlement,
        allowed_actions=[action.value for action in allowed_actions(reservation.status)],
        checked_in_at=reservation.checked_in_at,
        created_at=reservation.created_at,
        modified_at=reservation.modified_at,
        version=reservation.version
    )

def _bill_to_response(reservation: Reservation, ledger: ChargeLedger) -> BillResponse:
    """Convert Reservation entity to an itemized BillResponse"""
    subtotals = {
        category.value: _money_to_response(amount)
        for category, amount in ledger.breakdown(reservation).items()
    }
    balance = reservation.balance_due()
    return BillResponse(
        reservation_id=reservation.reservation_id,
        status=reservation.status.value,
        final=reservation.is_completed(),
        guest_name=reservation.guest.name,
        unit_name=reservation.unit.name,
        check_in=reservation.stay.check_in,
        check_out=reservation.stay.check_out,
        lines=[_line_to_response(line) for line in reservation.charge_lines],
        subtotals=subtotals,
        total=_money_to_response(reservation.total_charges()),
        advance_paid=_money_to_response(reservation.advance_paid),
        balance_due=_money_to_response(balance),
        amount_payable=_money_to_response(display_balance(balance)),
        settled_at=reservation.settlement.settled_at if reservation.settlement else None
    )

# ============================================================================
# APPLICATION FACTORY
# ============================================================================

def create_app(settings: Optional[Settings] = None, clock=None) -> FastAPI:
    """Build an app with its own stores; tests get a fresh one per call"""
    settings = settings or default_settings
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
    )
    app = FastAPI(
        title=settings.APP_NAME,
        description="Reservation lifecycle and billing ledger for the hotel front desk",
        version="1.0.0",
        debug=settings.DEBUG
    )
    app.state.container = bootstrap_app(settings, clock=clock)
    app.include_router(router)
    logger.info("%s started (currency %s)", settings.APP_NAME, settings.CURRENCY)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
