from sqlalchemy import (
    Column, DateTime, Enum, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
)
from sqlalchemy.orm import relationship

from app.db.base import Base, BaseModel, utcnow
from app.domains.documents.entities import CollaboratorRole


class Document(BaseModel):
    __tablename__ = "documents"

    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False, default="")
    owner_id = Column(Uuid, ForeignKey("users.uuid"), nullable=False, index=True)

    # Relationships
    owner = relationship("User", back_populates="owned_documents")
    collaborators = relationship(
        "Collaborator",
        back_populates="document",
        cascade="all, delete-orphan",
        order_by="Collaborator.id",
    )


class Collaborator(Base):
    __tablename__ = "document_collaborators"
    __table_args__ = (
        UniqueConstraint("document_id", "user_id", name="uq_collaborator_document_user"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(Uuid, ForeignKey("documents.uuid", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.uuid"), nullable=False, index=True)
    role = Column(
        Enum(
            CollaboratorRole,
            name="collaborator_role",
            native_enum=False,
            length=16,
            values_callable=lambda roles: [role.value for role in roles],
        ),
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    document = relationship("Document", back_populates="collaborators")
    user = relationship("User")
