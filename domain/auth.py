"""Domain Entities - Auth"""
from typing import Optional

from pydantic import BaseModel, ConfigDict

from domain.enums import UserRole


class User(BaseModel):
    """Authenticated caller: a front-desk user or a registered customer"""
    username: str
    role: UserRole
    email: Optional[str] = None
    full_name: Optional[str] = None
    disabled: bool = False

    model_config = ConfigDict(from_attributes=True)


class UserInDB(User):
    """User with hashed password for DB storage"""
    hashed_password: str
