import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional


class CollaboratorRole(str, Enum):
    """Роли, которые хранятся в списке соавторов"""
    EDITOR = "editor"
    VIEWER = "viewer"


class Role(str, Enum):
    """Итоговая роль пользователя по отношению к документу"""
    OWNER = "owner"
    EDITOR = "editor"
    VIEWER = "viewer"
    NONE = "none"


@dataclass
class UserSummary:
    """Отображаемые данные пользователя"""
    id: uuid.UUID
    name: str = ""
    email: str = ""
    avatar: str = ""


@dataclass
class Collaborator:
    user_id: uuid.UUID
    role: CollaboratorRole
    name: str = ""
    email: str = ""
    avatar: str = ""


class Document:
    """Сущность документа домена Documents.

    Владелец неявно имеет роль owner и никогда не хранится в списке
    соавторов; на каждого пользователя в списке не больше одной записи.
    """

    def __init__(
        self,
        uuid: uuid.UUID,
        title: str,
        owner_id: uuid.UUID,
        content: str = "",
        owner: Optional[UserSummary] = None,
        collaborators: Optional[List[Collaborator]] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        self.uuid = uuid
        self.title = title
        self.owner_id = owner_id
        self.content = content
        self.owner = owner
        self.collaborators = list(collaborators or [])
        self.created_at = created_at or datetime.now(timezone.utc)
        self.updated_at = updated_at or datetime.now(timezone.utc)

    def find_collaborator(self, user_id: uuid.UUID) -> Optional[Collaborator]:
        for collaborator in self.collaborators:
            if collaborator.user_id == user_id:
                return collaborator
        return None

    def update_title(self, new_title: str) -> None:
        self.title = new_title
        self.touch()

    def update_content(self, new_content: str) -> None:
        self.content = new_content
        self.touch()

    def touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)

    def get_content_length(self) -> int:
        return len(self.content)

    def get_word_count(self) -> int:
        if not self.content.strip():
            return 0
        return len(self.content.split())

    @classmethod
    def create_document(cls, title: str, owner_id: uuid.UUID, content: str = "") -> "Document":
        """Создание нового документа"""
        return cls(
            uuid=uuid.uuid4(),
            title=title,
            owner_id=owner_id,
            content=content
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Document):
            return False
        return self.uuid == other.uuid

    def __repr__(self) -> str:
        return f"Document(uuid={self.uuid}, title={self.title}, owner_id={self.owner_id})"
