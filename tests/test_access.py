import uuid

import pytest

from app.domains.documents import access
from app.domains.documents.entities import Collaborator, CollaboratorRole, Document, Role

OWNER = uuid.uuid4()
EDITOR = uuid.uuid4()
VIEWER = uuid.uuid4()
STRANGER = uuid.uuid4()


@pytest.fixture
def document():
    document = Document.create_document("Notes", OWNER)
    document.collaborators = [
        Collaborator(user_id=EDITOR, role=CollaboratorRole.EDITOR),
        Collaborator(user_id=VIEWER, role=CollaboratorRole.VIEWER),
    ]
    return document


@pytest.mark.parametrize(
    "user_id, role",
    [(OWNER, Role.OWNER), (EDITOR, Role.EDITOR), (VIEWER, Role.VIEWER), (STRANGER, Role.NONE)],
)
def test_role_of(document, user_id, role):
    assert access.role_of(document, user_id) == role


@pytest.mark.parametrize("user_id", [OWNER, EDITOR, VIEWER, STRANGER])
def test_permission_implications(document, user_id):
    if access.can_write(document, user_id):
        assert access.can_read(document, user_id)
    if access.can_delete(document, user_id) or access.can_manage_sharing(document, user_id):
        assert access.role_of(document, user_id) == Role.OWNER


def test_permission_table(document):
    assert access.can_read(document, VIEWER)
    assert not access.can_write(document, VIEWER)
    assert access.can_write(document, EDITOR)
    assert not access.can_manage_sharing(document, EDITOR)
    assert not access.can_delete(document, EDITOR)
    assert access.can_manage_sharing(document, OWNER)
    assert access.can_delete(document, OWNER)
    assert not access.can_read(document, STRANGER)


def test_owner_role_wins_without_collaborator_entry():
    document = Document.create_document("Solo", OWNER)

    assert document.collaborators == []
    assert access.role_of(document, OWNER) == Role.OWNER
