from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
import uuid

from app.core.errors import Conflict
from app.db.models.document import Document as DocumentModel, Collaborator as CollaboratorModel
from app.domains.documents.entities import (
    Collaborator, CollaboratorRole, Document, UserSummary
)


class DocumentRepository:
    """Репозиторий для работы с документами и списками соавторов"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _select(self):
        # владелец и пользователи соавторов нужны для отображения
        return (
            select(DocumentModel)
            .options(
                selectinload(DocumentModel.owner),
                selectinload(DocumentModel.collaborators).selectinload(CollaboratorModel.user),
            )
            .execution_options(populate_existing=True)
        )

    async def create(self, document: Document) -> Document:
        """Создание нового документа"""
        db_document = DocumentModel(
            uuid=document.uuid,
            title=document.title,
            content=document.content,
            owner_id=document.owner_id,
            created_at=document.created_at,
            updated_at=document.updated_at
        )

        self.session.add(db_document)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ValueError("Invalid owner_id")

        return await self.get_by_uuid(document.uuid)

    async def get_by_uuid(self, document_uuid: uuid.UUID) -> Optional[Document]:
        """Получение документа по UUID"""
        result = await self.session.execute(
            self._select().where(DocumentModel.uuid == document_uuid)
        )
        db_document = result.scalar_one_or_none()
        return self._to_domain(db_document) if db_document else None

    async def get_by_owner(self, owner_id: uuid.UUID) -> List[Document]:
        """Документы, которыми владеет пользователь"""
        result = await self.session.execute(
            self._select()
            .where(DocumentModel.owner_id == owner_id)
            .order_by(DocumentModel.updated_at.desc())
        )
        return [self._to_domain(doc) for doc in result.scalars().all()]

    async def get_shared_with(self, user_id: uuid.UUID) -> List[Document]:
        """Документы, где пользователь указан соавтором"""
        shared_ids = select(CollaboratorModel.document_id).where(CollaboratorModel.user_id == user_id)
        result = await self.session.execute(
            self._select()
            .where(DocumentModel.uuid.in_(shared_ids))
            .order_by(DocumentModel.updated_at.desc())
        )
        return [self._to_domain(doc) for doc in result.scalars().all()]

    async def get_accessible(self, user_id: uuid.UUID) -> List[Document]:
        """Собственные и доступные пользователю документы"""
        shared_ids = select(CollaboratorModel.document_id).where(CollaboratorModel.user_id == user_id)
        result = await self.session.execute(
            self._select()
            .where(or_(DocumentModel.owner_id == user_id, DocumentModel.uuid.in_(shared_ids)))
            .order_by(DocumentModel.updated_at.desc())
        )
        return [self._to_domain(doc) for doc in result.scalars().all()]

    async def update(self, document: Document) -> Document:
        """Обновление документа"""
        stmt = (
            update(DocumentModel)
            .where(DocumentModel.uuid == document.uuid)
            .values(
                title=document.title,
                content=document.content,
                updated_at=document.updated_at
            )
        )

        await self.session.execute(stmt)
        await self.session.commit()

        return await self.get_by_uuid(document.uuid)

    async def delete(self, document_uuid: uuid.UUID) -> bool:
        """Удаление документа вместе со списком соавторов"""
        await self.session.execute(
            delete(CollaboratorModel).where(CollaboratorModel.document_id == document_uuid)
        )
        result = await self.session.execute(
            delete(DocumentModel).where(DocumentModel.uuid == document_uuid)
        )
        await self.session.commit()
        return result.rowcount > 0

    async def add_collaborator(
        self,
        document_uuid: uuid.UUID,
        user_id: uuid.UUID,
        role: CollaboratorRole
    ) -> Document:
        """Добавление соавтора"""
        self.session.add(CollaboratorModel(document_id=document_uuid, user_id=user_id, role=role))
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise Conflict("Document already shared with this user")

        return await self.get_by_uuid(document_uuid)

    async def set_collaborator_role(
        self,
        document_uuid: uuid.UUID,
        user_id: uuid.UUID,
        role: CollaboratorRole
    ) -> bool:
        result = await self.session.execute(
            update(CollaboratorModel)
            .where(
                CollaboratorModel.document_id == document_uuid,
                CollaboratorModel.user_id == user_id
            )
            .values(role=role)
        )
        await self.session.commit()
        return result.rowcount > 0

    async def remove_collaborator(self, document_uuid: uuid.UUID, user_id: uuid.UUID) -> bool:
        result = await self.session.execute(
            delete(CollaboratorModel).where(
                CollaboratorModel.document_id == document_uuid,
                CollaboratorModel.user_id == user_id
            )
        )
        await self.session.commit()
        return result.rowcount > 0

    def _to_domain(self, db_document: DocumentModel) -> Document:
        """Преобразование модели БД в доменную сущность"""
        owner = None
        if db_document.owner is not None:
            owner = UserSummary(
                id=db_document.owner.uuid,
                name=db_document.owner.name,
                email=db_document.owner.email,
                avatar=db_document.owner.avatar or ""
            )

        collaborators = [
            Collaborator(
                user_id=db_collaborator.user_id,
                role=db_collaborator.role,
                name=db_collaborator.user.name if db_collaborator.user else "",
                email=db_collaborator.user.email if db_collaborator.user else "",
                avatar=(db_collaborator.user.avatar or "") if db_collaborator.user else ""
            )
            for db_collaborator in db_document.collaborators
        ]

        return Document(
            uuid=db_document.uuid,
            title=db_document.title,
            content=db_document.content or "",
            owner_id=db_document.owner_id,
            owner=owner,
            collaborators=collaborators,
            created_at=db_document.created_at,
            updated_at=db_document.updated_at
        )
