import logging
import uuid
from typing import Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import Conflict, NotFound, Unauthenticated
from app.core.security import create_access_token
from app.db.repositories.user_repository import UserRepository
from app.domains.identity.entities import User
from app.domains.identity.schemas import UserCreate, UserLogin, UserUpdate

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class IdentityService:
    """Сервис для работы с идентификацией и аутентификацией пользователей"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repository = UserRepository(session)

    async def register_user(self, user_data: UserCreate) -> User:
        """Регистрация нового пользователя"""
        email = normalize_email(user_data.email)
        if await self.user_repository.email_exists(email):
            raise Conflict("Email already registered")

        user = User.create_user(
            email=email,
            name=user_data.name,
            password=user_data.password,
            avatar=user_data.avatar
        )

        created = await self.user_repository.create(user)
        logger.info(f"Registered user {created.uuid}")
        return created

    async def authenticate_user(self, login_data: UserLogin) -> User:
        """Аутентификация пользователя"""
        user = await self.user_repository.get_by_email(normalize_email(login_data.email))

        if not user or not user.authenticate(login_data.password):
            raise Unauthenticated("Incorrect email or password")

        return user

    async def login_user(self, login_data: UserLogin) -> Tuple[str, User]:
        """Вход пользователя и создание JWT токена"""
        user = await self.authenticate_user(login_data)
        return create_access_token(user.uuid), user

    async def get_user(self, user_uuid: uuid.UUID) -> User:
        """Получение пользователя по UUID"""
        user = await self.user_repository.get_by_uuid(user_uuid)
        if user is None:
            raise NotFound("User not found")
        return user

    async def get_user_by_email(self, email: str) -> User:
        user = await self.user_repository.get_by_email(normalize_email(email))
        if user is None:
            raise NotFound("User not found")
        return user

    async def update_user_profile(self, user_uuid: uuid.UUID, update_data: UserUpdate) -> User:
        """Обновление профиля пользователя"""
        user = await self.get_user(user_uuid)

        user.update_profile(
            name=update_data.name,
            password=update_data.password,
            avatar=update_data.avatar
        )

        return await self.user_repository.update(user)
