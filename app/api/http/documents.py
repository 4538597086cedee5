from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import uuid

from app.core.auth import get_identity, get_room_manager
from app.core.db import get_db
from app.core.security import IdentityClaim
from app.domains.collaboration.rooms import RoomManager
from app.domains.documents.entities import Collaborator, CollaboratorRole, Document, Role
from app.domains.documents.schemas import (
    CollaboratorResponse, CollaboratorRoleUpdate, DocumentCreate, DocumentResponse,
    DocumentSaveResponse, DocumentShareRequest, DocumentUpdate, DocumentWithRoleResponse,
    UserSummaryResponse
)
from app.domains.documents.services import DocumentService

router = APIRouter(prefix="/documents", tags=["documents"])


def _collaborator_response(collaborator: Collaborator) -> CollaboratorResponse:
    return CollaboratorResponse(
        user_id=collaborator.user_id,
        name=collaborator.name,
        email=collaborator.email,
        avatar=collaborator.avatar,
        role=collaborator.role
    )


def _document_fields(document: Document) -> dict:
    owner = None
    if document.owner is not None:
        owner = UserSummaryResponse.model_validate(document.owner)

    return dict(
        uuid=document.uuid,
        title=document.title,
        content=document.content,
        owner_id=document.owner_id,
        owner=owner,
        collaborators=[_collaborator_response(c) for c in document.collaborators],
        created_at=document.created_at,
        updated_at=document.updated_at,
        word_count=document.get_word_count(),
        content_length=document.get_content_length()
    )


def _document_response(document: Document) -> DocumentResponse:
    return DocumentResponse(**_document_fields(document))


def _document_with_role(document: Document, role: Role) -> DocumentWithRoleResponse:
    return DocumentWithRoleResponse(**_document_fields(document), user_role=role)


@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_document(
    document_data: DocumentCreate,
    claim: IdentityClaim = Depends(get_identity),
    db: AsyncSession = Depends(get_db)
):
    """Создание нового документа"""
    document = await DocumentService(db).create_document(document_data, claim.user_id)
    return _document_response(document)


@router.get("/mine", response_model=List[DocumentResponse])
async def get_my_documents(
    claim: IdentityClaim = Depends(get_identity),
    db: AsyncSession = Depends(get_db)
):
    """Собственные и доступные пользователю документы"""
    documents = await DocumentService(db).list_my_documents(claim.user_id)
    return [_document_response(document) for document in documents]


@router.get("/owned", response_model=List[DocumentResponse])
async def get_owned_documents(
    claim: IdentityClaim = Depends(get_identity),
    db: AsyncSession = Depends(get_db)
):
    documents = await DocumentService(db).list_owned_documents(claim.user_id)
    return [_document_response(document) for document in documents]


@router.get("/shared", response_model=List[DocumentWithRoleResponse])
async def get_shared_documents(
    claim: IdentityClaim = Depends(get_identity),
    db: AsyncSession = Depends(get_db)
):
    """Документы, которыми поделились с пользователем"""
    shared = await DocumentService(db).list_shared_documents(claim.user_id)
    return [_document_with_role(document, role) for document, role in shared]


@router.get("/{document_uuid}", response_model=DocumentWithRoleResponse)
async def get_document(
    document_uuid: uuid.UUID,
    claim: IdentityClaim = Depends(get_identity),
    db: AsyncSession = Depends(get_db)
):
    """Получение документа вместе с ролью пользователя"""
    document, role = await DocumentService(db).get_document(document_uuid, claim.user_id)
    return _document_with_role(document, role)


@router.put("/{document_uuid}", response_model=DocumentSaveResponse)
async def update_document(
    document_uuid: uuid.UUID,
    update_data: DocumentUpdate,
    claim: IdentityClaim = Depends(get_identity),
    db: AsyncSession = Depends(get_db)
):
    """Редактирование и автосохранение документа"""
    document = await DocumentService(db).update_document(document_uuid, update_data, claim.user_id)
    return DocumentSaveResponse(saved_at=document.updated_at)


@router.delete("/{document_uuid}")
async def delete_document(
    document_uuid: uuid.UUID,
    claim: IdentityClaim = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    room_manager: RoomManager = Depends(get_room_manager)
):
    """Удаление документа"""
    await DocumentService(db).delete_document(document_uuid, claim.user_id)
    room_manager.close_room(str(document_uuid))
    return {"message": "Document deleted"}


@router.post("/{document_uuid}/share", response_model=DocumentResponse)
async def share_document(
    document_uuid: uuid.UUID,
    share_request: DocumentShareRequest,
    claim: IdentityClaim = Depends(get_identity),
    db: AsyncSession = Depends(get_db)
):
    """Предоставление доступа к документу по email"""
    document = await DocumentService(db).share_document(
        document_uuid,
        share_request.email,
        share_request.role,
        claim.user_id
    )
    return _document_response(document)


@router.put("/{document_uuid}/collaborators/{user_uuid}", response_model=DocumentResponse)
async def update_collaborator_role(
    document_uuid: uuid.UUID,
    user_uuid: uuid.UUID,
    role_update: CollaboratorRoleUpdate,
    claim: IdentityClaim = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    room_manager: RoomManager = Depends(get_room_manager)
):
    """Изменение роли соавтора"""
    document = await DocumentService(db).change_collaborator_role(
        document_uuid,
        user_uuid,
        role_update.role,
        claim.user_id
    )
    room_manager.update_access(
        str(document_uuid), user_uuid, can_write=role_update.role == CollaboratorRole.EDITOR
    )
    return _document_response(document)


@router.delete("/{document_uuid}/collaborators/{user_uuid}", response_model=DocumentResponse)
async def remove_collaborator(
    document_uuid: uuid.UUID,
    user_uuid: uuid.UUID,
    claim: IdentityClaim = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    room_manager: RoomManager = Depends(get_room_manager)
):
    """Удаление соавтора"""
    document = await DocumentService(db).remove_collaborator(document_uuid, user_uuid, claim.user_id)
    room_manager.revoke_access(str(document_uuid), user_uuid)
    return _document_response(document)


@router.get("/{document_uuid}/collaborators", response_model=List[CollaboratorResponse])
async def get_collaborators(
    document_uuid: uuid.UUID,
    claim: IdentityClaim = Depends(get_identity),
    db: AsyncSession = Depends(get_db)
):
    """Список соавторов документа"""
    collaborators = await DocumentService(db).list_collaborators(document_uuid, claim.user_id)
    return [_collaborator_response(c) for c in collaborators]
