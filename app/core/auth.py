from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.db import get_db
from app.core.errors import NotFound, Unauthenticated
from app.core.security import IdentityClaim, extract_token_from_header, verify_credential
from app.domains.collaboration.rooms import RoomManager
from app.domains.identity.entities import User
from app.domains.identity.services import IdentityService


def credential_from_request(request: Request) -> Optional[str]:
    """Токен из заголовка Authorization, иначе из cookie"""
    token = extract_token_from_header(request.headers.get("Authorization"))
    return token or request.cookies.get(settings.token_cookie_name)


async def get_identity(request: Request) -> IdentityClaim:
    return verify_credential(credential_from_request(request))


async def get_current_user(
    claim: IdentityClaim = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
) -> User:
    try:
        return await IdentityService(db).get_user(claim.user_id)
    except NotFound:
        raise Unauthenticated("User not found")


def get_room_manager(request: Request) -> RoomManager:
    return request.app.state.room_manager
