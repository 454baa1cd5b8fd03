"""
Document store adapter for knowledge-base retrieval
Translates disjunctive keyword filters into tenant-scoped SQL over rag_documents
"""

import logging
import time
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple, Union
from uuid import UUID

from sqlalchemy import select, or_, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from database.models import KnowledgeDocument
from monitoring.metrics import observe as metrics_observe, inc as metrics_inc

logger = logging.getLogger(__name__)

OrganizationId = Union[UUID, str]


class StoreQueryError(Exception):
    """Raised when a document store query fails (connectivity, malformed filter, permission)"""
    pass


@dataclass(frozen=True)
class DocumentFilter:
    """
    Disjunctive match predicate over document fields.

    A document matches when any term is a case-insensitive substring of its
    title or content, or equals one of its tags ignoring case. Tags are
    compared literally, so LIKE wildcards inside a tag match nothing extra.
    Each field can be switched off independently.
    """
    terms: Tuple[str, ...]
    match_title: bool = True
    match_content: bool = True
    match_tags: bool = True

    @classmethod
    def for_keywords(cls, keywords: Iterable[str]) -> "DocumentFilter":
        """Title, content and tag matching used by the primary search"""
        return cls(terms=tuple(k.lower() for k in keywords))

    @classmethod
    def for_words(cls, words: Iterable[str]) -> "DocumentFilter":
        """Title and content matching only, used by the fallback search"""
        return cls(terms=tuple(w.lower() for w in words), match_tags=False)

    def is_empty(self) -> bool:
        return not self.terms


def _escape_like(term: str) -> str:
    return term.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def _tag_equals(term: str):
    """EXISTS over unnest(tags) comparing lower(tag) = term; NULL elements never match"""
    document_tag = func.unnest(KnowledgeDocument.tags).table_valued("tag").render_derived(name="document_tag")
    return (
        select(document_tag.c.tag)
        .where(func.lower(document_tag.c.tag) == term)
        .correlate(KnowledgeDocument)
        .exists()
    )


class DocumentStore:
    """Read-only, tenant-scoped queries against the rag_documents table"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_active_documents(
        self,
        document_filter: DocumentFilter,
        organization_id: Optional[OrganizationId] = None,
        limit: int = 10
    ) -> List[KnowledgeDocument]:
        """
        Find active documents matching any filter term

        Args:
            document_filter: Disjunctive title/content/tag predicate
            organization_id: Tenant scope; None searches unscoped documents
            limit: Maximum number of rows returned

        Returns:
            Matching documents, newest first

        Raises:
            StoreQueryError: If the query cannot be built or executed
        """
        if document_filter.is_empty():
            return []

        stmt = self._scoped_select(organization_id)
        stmt = stmt.where(self._build_filter_condition(document_filter))
        stmt = stmt.order_by(KnowledgeDocument.created_at.desc(), KnowledgeDocument.id).limit(limit)

        return await self._execute(stmt, "find_active_documents")

    async def find_recent_documents(
        self,
        organization_id: Optional[OrganizationId] = None,
        limit: int = 5
    ) -> List[KnowledgeDocument]:
        """Most recently created active documents in scope"""
        stmt = self._scoped_select(organization_id)
        stmt = stmt.order_by(KnowledgeDocument.created_at.desc(), KnowledgeDocument.id).limit(limit)

        return await self._execute(stmt, "find_recent_documents")

    async def list_active_documents(
        self,
        organization_id: Optional[OrganizationId] = None
    ) -> List[KnowledgeDocument]:
        """All active documents in scope for admin review, newest first"""
        stmt = self._scoped_select(organization_id)
        stmt = stmt.order_by(KnowledgeDocument.created_at.desc(), KnowledgeDocument.id)

        return await self._execute(stmt, "list_active_documents")

    # Private helper methods
    def _scoped_select(self, organization_id: Optional[OrganizationId]):
        stmt = select(KnowledgeDocument).where(KnowledgeDocument.is_active.is_(True))
        if organization_id is not None:
            stmt = stmt.where(KnowledgeDocument.organization_id == self._normalize_organization_id(organization_id))
        return stmt

    @staticmethod
    def _normalize_organization_id(organization_id: OrganizationId) -> UUID:
        if isinstance(organization_id, UUID):
            return organization_id
        try:
            return UUID(str(organization_id))
        except ValueError:
            raise StoreQueryError(f"Invalid organization id: {organization_id!r}")

    @staticmethod
    def _build_filter_condition(document_filter: DocumentFilter):
        clauses = []
        for term in document_filter.terms:
            pattern = f"%{_escape_like(term)}%"
            if document_filter.match_title:
                clauses.append(KnowledgeDocument.title.ilike(pattern, escape='\\'))
            if document_filter.match_content:
                clauses.append(KnowledgeDocument.content.ilike(pattern, escape='\\'))
            if document_filter.match_tags:
                clauses.append(_tag_equals(term))
        return or_(*clauses)

    async def _execute(self, stmt, operation: str) -> List[KnowledgeDocument]:
        start_time = time.time()
        try:
            result = await self.session.execute(stmt)
            documents = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Database error in {operation}: {e}")
            await metrics_inc("document_store_errors_total", labels={"operation": operation})
            raise StoreQueryError(f"Database error: {str(e)}") from e
        except Exception as e:
            logger.error(f"Unexpected error in {operation}: {e}")
            await metrics_inc("document_store_errors_total", labels={"operation": operation})
            raise StoreQueryError(f"Query error: {str(e)}") from e

        query_time_ms = (time.time() - start_time) * 1000
        await metrics_observe("document_store_query_ms", query_time_ms, labels={"operation": operation})
        logger.debug(f"{operation} returned {len(documents)} documents in {query_time_ms:.2f}ms")
        return documents


async def get_document_store(session: AsyncSession) -> DocumentStore:
    """Factory function to create document store with session"""
    return DocumentStore(session)
