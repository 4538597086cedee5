"""Правила доступа к документу.

Чистые функции без ввода-вывода: единственный источник решений о правах
и для HTTP обработчиков, и для менеджера комнат.
"""
import uuid

from app.domains.documents.entities import Document, Role

WRITE_ROLES = frozenset({Role.OWNER, Role.EDITOR})


def role_of(document: Document, user_id: uuid.UUID) -> Role:
    if document.owner_id == user_id:
        return Role.OWNER
    collaborator = document.find_collaborator(user_id)
    if collaborator is None:
        return Role.NONE
    return Role(collaborator.role.value)


def can_read(document: Document, user_id: uuid.UUID) -> bool:
    return role_of(document, user_id) != Role.NONE


def can_write(document: Document, user_id: uuid.UUID) -> bool:
    return role_of(document, user_id) in WRITE_ROLES


def can_manage_sharing(document: Document, user_id: uuid.UUID) -> bool:
    return role_of(document, user_id) == Role.OWNER


def can_delete(document: Document, user_id: uuid.UUID) -> bool:
    return role_of(document, user_id) == Role.OWNER
