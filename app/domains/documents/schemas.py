from pydantic import BaseModel, EmailStr, Field, field_validator, ConfigDict
from typing import Optional, List
import uuid
from datetime import datetime

from app.domains.documents.entities import CollaboratorRole, Role

MAX_CONTENT_LENGTH = 1000000  # 1MB max content


class DocumentBase(BaseModel):
    """Базовая схема документа"""
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(default="", max_length=MAX_CONTENT_LENGTH)

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        if not v.strip():
            raise ValueError('Title cannot be empty')
        return v.strip()


class DocumentCreate(DocumentBase):
    """Схема для создания документа"""
    pass


class DocumentUpdate(BaseModel):
    """Схема для частичного обновления документа"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = Field(None, max_length=MAX_CONTENT_LENGTH)

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        if v is not None and not v.strip():
            raise ValueError('Title cannot be empty')
        return v.strip() if v else v


class UserSummaryResponse(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    avatar: str

    model_config = ConfigDict(from_attributes=True)


class CollaboratorResponse(BaseModel):
    user_id: uuid.UUID
    name: str
    email: str
    avatar: str
    role: CollaboratorRole

    model_config = ConfigDict(from_attributes=True)


class DocumentResponse(DocumentBase):
    """Схема для ответа с данными документа"""
    uuid: uuid.UUID
    owner_id: uuid.UUID
    owner: Optional[UserSummaryResponse] = None
    collaborators: List[CollaboratorResponse] = []
    created_at: datetime
    updated_at: datetime
    word_count: int
    content_length: int


class DocumentWithRoleResponse(DocumentResponse):
    """Документ вместе с ролью запрашивающего пользователя"""
    user_role: Role


class DocumentSaveResponse(BaseModel):
    message: str = "Saved"
    saved_at: datetime


class DocumentShareRequest(BaseModel):
    """Схема для запроса на предоставление доступа к документу"""
    email: EmailStr
    role: CollaboratorRole = CollaboratorRole.VIEWER


class CollaboratorRoleUpdate(BaseModel):
    role: CollaboratorRole
