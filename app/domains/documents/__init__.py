from app.domains.documents.entities import (
    Collaborator, CollaboratorRole, Document, Role, UserSummary
)
from app.domains.documents.schemas import (
    DocumentBase, DocumentCreate, DocumentUpdate, DocumentResponse,
    DocumentWithRoleResponse, DocumentSaveResponse, DocumentShareRequest,
    CollaboratorResponse, CollaboratorRoleUpdate, UserSummaryResponse
)

__all__ = [
    "Collaborator", "CollaboratorRole", "Document", "Role", "UserSummary",
    "DocumentBase", "DocumentCreate", "DocumentUpdate", "DocumentResponse",
    "DocumentWithRoleResponse", "DocumentSaveResponse", "DocumentShareRequest",
    "CollaboratorResponse", "CollaboratorRoleUpdate", "UserSummaryResponse"
]
