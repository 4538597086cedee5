import logging
import uuid
from typing import List, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import Conflict, Forbidden, NotFound, ValidationError
from app.db.repositories.document_repository import DocumentRepository
from app.domains.documents import access
from app.domains.documents.entities import Collaborator, CollaboratorRole, Document, Role
from app.domains.documents.schemas import DocumentCreate, DocumentUpdate
from app.domains.identity.services import IdentityService

logger = logging.getLogger(__name__)


class DocumentService:
    """Сервис для работы с документами.

    Каждая операция загружает документ и спрашивает модель доступа
    (``app.domains.documents.access``); собственных проверок прав здесь нет.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.document_repository = DocumentRepository(session)
        self.identity_service = IdentityService(session)

    async def _load(self, document_uuid: uuid.UUID) -> Document:
        document = await self.document_repository.get_by_uuid(document_uuid)
        if document is None:
            raise NotFound("Document not found")
        return document

    async def create_document(self, document_data: DocumentCreate, owner_id: uuid.UUID) -> Document:
        """Создание нового документа"""
        if not document_data.title or not document_data.title.strip():
            raise ValidationError("Title is required")

        document = Document.create_document(
            title=document_data.title,
            owner_id=owner_id,
            content=document_data.content or ""
        )
        created = await self.document_repository.create(document)
        logger.info(f"User {owner_id} created document {created.uuid}")
        return created

    async def list_my_documents(self, user_id: uuid.UUID) -> List[Document]:
        """Собственные и доступные пользователю документы"""
        return await self.document_repository.get_accessible(user_id)

    async def list_owned_documents(self, user_id: uuid.UUID) -> List[Document]:
        return await self.document_repository.get_by_owner(user_id)

    async def list_shared_documents(self, user_id: uuid.UUID) -> List[Tuple[Document, Role]]:
        """Документы, которыми поделились с пользователем, вместе с его ролью"""
        documents = await self.document_repository.get_shared_with(user_id)
        return [(document, access.role_of(document, user_id)) for document in documents]

    async def get_document(self, document_uuid: uuid.UUID, user_id: uuid.UUID) -> Tuple[Document, Role]:
        """Получение документа и роли пользователя"""
        document = await self._load(document_uuid)
        if not access.can_read(document, user_id):
            raise Forbidden("Access denied")
        return document, access.role_of(document, user_id)

    async def update_document(
        self,
        document_uuid: uuid.UUID,
        update_data: DocumentUpdate,
        user_id: uuid.UUID
    ) -> Document:
        """Частичное обновление документа"""
        document = await self._load(document_uuid)
        if not access.can_write(document, user_id):
            raise Forbidden("No edit permission")

        if update_data.title is not None:
            document.update_title(update_data.title)
        if update_data.content is not None:
            document.update_content(update_data.content)
        document.touch()

        return await self.document_repository.update(document)

    async def save_content(self, document_uuid: uuid.UUID, content: str, user_id: uuid.UUID) -> Document:
        return await self.update_document(document_uuid, DocumentUpdate(content=content), user_id)

    async def delete_document(self, document_uuid: uuid.UUID, user_id: uuid.UUID) -> None:
        """Удаление документа (только владелец)"""
        document = await self._load(document_uuid)
        if not access.can_delete(document, user_id):
            raise Forbidden("Not authorized to delete this document")

        await self.document_repository.delete(document_uuid)
        logger.info(f"User {user_id} deleted document {document_uuid}")

    async def share_document(
        self,
        document_uuid: uuid.UUID,
        email: str,
        role: CollaboratorRole,
        user_id: uuid.UUID
    ) -> Document:
        """Предоставление доступа пользователю по email"""
        if not email:
            raise ValidationError("Email is required")

        document = await self._load(document_uuid)
        if not access.can_manage_sharing(document, user_id):
            raise Forbidden("Only the owner can share this document")

        target = await self.identity_service.get_user_by_email(email)

        if access.can_read(document, target.uuid):
            raise Conflict("Document already shared with this user")

        updated = await self.document_repository.add_collaborator(document_uuid, target.uuid, role)
        logger.info(f"Document {document_uuid} shared with {target.uuid} as {role.value}")
        return updated

    async def change_collaborator_role(
        self,
        document_uuid: uuid.UUID,
        collaborator_id: uuid.UUID,
        role: CollaboratorRole,
        user_id: uuid.UUID
    ) -> Document:
        document = await self._load(document_uuid)
        if not access.can_manage_sharing(document, user_id):
            raise Forbidden("Only the owner can modify permissions")

        if document.find_collaborator(collaborator_id) is None:
            raise NotFound("Collaborator not found")

        await self.document_repository.set_collaborator_role(document_uuid, collaborator_id, role)
        return await self._load(document_uuid)

    async def remove_collaborator(
        self,
        document_uuid: uuid.UUID,
        collaborator_id: uuid.UUID,
        user_id: uuid.UUID
    ) -> Document:
        document = await self._load(document_uuid)
        if not access.can_manage_sharing(document, user_id):
            raise Forbidden("Only the owner can remove collaborators")

        if document.find_collaborator(collaborator_id) is None:
            raise NotFound("Collaborator not found")

        await self.document_repository.remove_collaborator(document_uuid, collaborator_id)
        return await self._load(document_uuid)

    async def list_collaborators(self, document_uuid: uuid.UUID, user_id: uuid.UUID) -> List[Collaborator]:
        document = await self._load(document_uuid)
        if not access.can_read(document, user_id):
            raise Forbidden("Access denied")
        return document.collaborators
