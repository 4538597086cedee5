import uuid
from datetime import datetime, timezone
from typing import Optional

from app.core.security import get_password_hash, verify_password


class User:
    """Сущность пользователя домена Identity"""

    def __init__(
        self,
        uuid: uuid.UUID,
        email: str,
        name: str,
        password_hash: str,
        avatar: str = "",
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        self.uuid = uuid
        self.email = email
        self.name = name
        self.password_hash = password_hash
        self.avatar = avatar
        self.created_at = created_at or datetime.now(timezone.utc)
        self.updated_at = updated_at or datetime.now(timezone.utc)

    def authenticate(self, password: str) -> bool:
        """Проверка пароля пользователя"""
        return verify_password(password, self.password_hash)

    def update_profile(
        self,
        name: Optional[str] = None,
        password: Optional[str] = None,
        avatar: Optional[str] = None
    ) -> None:
        """Обновление профиля пользователя"""
        if name:
            self.name = name
        if password:
            self.password_hash = get_password_hash(password)
        if avatar is not None:
            self.avatar = avatar
        self.updated_at = datetime.now(timezone.utc)

    @classmethod
    def create_user(cls, email: str, name: str, password: str, avatar: str = "") -> "User":
        """Создание нового пользователя с хешированием пароля"""
        return cls(
            uuid=uuid.uuid4(),
            email=email,
            name=name,
            password_hash=get_password_hash(password),
            avatar=avatar
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, User):
            return False
        return self.uuid == other.uuid

    def __repr__(self) -> str:
        return f"User(uuid={self.uuid}, email={self.email}, name={self.name})"
