"""API Dependencies - Services and Authentication"""
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from api.schemas import TokenData
from application.services import GuestService, LookupService, ReservationService
from bootstrap import AppContainer
from config import Settings
from domain.auth import User, UserInDB
from domain.enums import UserRole
from domain.exceptions import NotFoundError
from infrastructure.catalog import InMemoryCatalog
from infrastructure.security import decode_access_token, get_password_hash

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")


# ============================================================================
# CONTAINER ACCESS
# ============================================================================

def get_container(request: Request) -> AppContainer:
    return request.app.state.container

def get_settings(container: AppContainer = Depends(get_container)) -> Settings:
    return container.settings

def get_reservation_service(container: AppContainer = Depends(get_container)) -> ReservationService:
    return container.reservation_service

def get_lookup_service(container: AppContainer = Depends(get_container)) -> LookupService:
    return container.lookup_service

def get_guest_service(container: AppContainer = Depends(get_container)) -> GuestService:
    return container.guest_service

def get_catalog(container: AppContainer = Depends(get_container)) -> InMemoryCatalog:
    return container.catalog


# ============================================================================
# AUTHENTICATION
# ============================================================================

@lru_cache(maxsize=8)
def _hash_staff_password(password: str) -> str:
    """Hash the configured staff password once per value"""
    return get_password_hash(password)

def get_staff_user(settings: Settings, username: str) -> Optional[UserInDB]:
    """Front-desk account configured through settings"""
    if username != settings.STAFF_USERNAME:
        return None
    return UserInDB(
        username=settings.STAFF_USERNAME,
        role=UserRole.STAFF,
        full_name="Front Desk",
        hashed_password=_hash_staff_password(settings.STAFF_PASSWORD),
    )

async def get_current_user(
    token: str = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings),
    guest_service: GuestService = Depends(get_guest_service),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token, settings)
        token_data = TokenData(username=payload.get("sub"), role=payload.get("role"))
    except JWTError:
        raise credentials_exception
    if token_data.username is None or token_data.role is None:
        raise credentials_exception

    if token_data.role == UserRole.STAFF.value:
        user = get_staff_user(settings, token_data.username)
        if user is None:
            raise credentials_exception
        return User(**user.model_dump(exclude={"hashed_password"}))

    if token_data.role == UserRole.CUSTOMER.value:
        try:
            guest = await guest_service.get_customer(token_data.username)
        except NotFoundError:
            raise credentials_exception
        return User(
            username=guest.email,
            role=UserRole.CUSTOMER,
            email=guest.email,
            full_name=guest.name,
        )

    raise credentials_exception

async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user

async def get_current_staff_user(current_user: User = Depends(get_current_active_user)) -> User:
    if current_user.role != UserRole.STAFF:
        raise HTTPException(status_code=403, detail="Front desk access required")
    return current_user

async def get_current_customer(current_user: User = Depends(get_current_active_user)) -> User:
    if current_user.role != UserRole.CUSTOMER:
        raise HTTPException(status_code=403, detail="Customer access required")
    return current_user
