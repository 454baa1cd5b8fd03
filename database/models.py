"""
SQLAlchemy ORM models for the knowledge-base retrieval engine
Defines the rag_documents table consumed read-only by retrieval
"""

from datetime import datetime
from typing import List, Optional
from sqlalchemy import String, DateTime, Text, Boolean, Index, ARRAY
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
import uuid

from database.connection import Base


class KnowledgeDocument(Base):
    """Knowledge-base document owned by one organization (or none for legacy rows)"""
    __tablename__ = 'rag_documents'

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    tags: Mapped[List[str]] = mapped_column(ARRAY(String(100)), nullable=False, default=list)
    organization_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.current_timestamp())
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.current_timestamp(), onupdate=func.current_timestamp())

    __table_args__ = (
        Index('idx_rag_documents_organization_id', 'organization_id'),
        Index('idx_rag_documents_is_active', 'is_active'),
    )

    def __repr__(self):
        return f"<KnowledgeDocument(id={self.id}, organization_id={self.organization_id}, title='{self.title}')>"
