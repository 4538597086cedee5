from app.domains.identity.entities import User
from app.domains.identity.schemas import (
    UserBase, UserCreate, UserLogin, UserUpdate, UserResponse, Token
)
from app.domains.identity.services import IdentityService

__all__ = [
    "User",
    "UserBase", "UserCreate", "UserLogin", "UserUpdate", "UserResponse", "Token",
    "IdentityService"
]
