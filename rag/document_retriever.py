"""
Tenant-scoped document retrieval for the RAG engine.

The primary search matches extracted keywords against title, content and tags,
over-fetches candidates and ranks them with the relevance scorer. When it finds
nothing, a broader fallback search matches longer raw query words against
title and content only, or returns the most recent documents when the query
has no usable words. Fallback results are returned unscored, in store order.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Union
from uuid import UUID

from database.document_store import DocumentStore, DocumentFilter, StoreQueryError
from monitoring.metrics import inc as metrics_inc
from rag.config import RAG_CONFIG
from rag.keyword_extractor import extract_keywords, fallback_terms
from rag.relevance_scorer import RelevanceScorer


class RetrievalError(Exception):
    """Raised when a retrieval stage cannot query the document store"""

    def __init__(self, message: str, stage: str):
        super().__init__(message)
        self.stage = stage


@dataclass(frozen=True)
class RetrievalScope:
    """Tenant scope bound to one engine; None means no organization filter.

    A blank organization id is treated as no scope.
    """
    organization_id: Optional[Union[UUID, str]] = None

    def __post_init__(self):
        if isinstance(self.organization_id, str) and not self.organization_id.strip():
            object.__setattr__(self, "organization_id", None)

    @property
    def is_scoped(self) -> bool:
        return self.organization_id is not None

    def describe(self) -> str:
        return str(self.organization_id) if self.is_scoped else "unscoped"


class DocumentRetriever:
    """Primary keyword search with scoring, plus the broader fallback search."""

    def __init__(
        self,
        store: DocumentStore,
        scope: RetrievalScope,
        scorer: Optional[RelevanceScorer] = None
    ):
        self.store = store
        self.scope = scope
        self.scorer = scorer or RelevanceScorer()
        self.candidate_multiplier = RAG_CONFIG['candidate_multiplier']
        self.logger = logging.getLogger(__name__)

    async def retrieve(self, query: str, limit: int) -> List[Any]:
        """
        Retrieve up to `limit` relevant active documents for a query.

        Args:
            query: Raw user query
            limit: Maximum number of documents returned

        Returns:
            Ranked documents (primary path) or unscored documents (fallback path)

        Raises:
            RetrievalError: If a store query fails
        """
        keywords = extract_keywords(query)
        if not keywords:
            self.logger.info("No keywords extracted, skipping document search")
            await metrics_inc("rag_empty_keywords_total")
            return []

        self.logger.info(f"Searching documents (scope={self.scope.describe()}) with keywords {keywords}")

        candidates = await self._query_store(
            self.store.find_active_documents(
                DocumentFilter.for_keywords(keywords),
                self.scope.organization_id,
                limit * self.candidate_multiplier
            ),
            stage="primary"
        )

        if not candidates:
            self.logger.info("Primary search found no documents, trying fallback search")
            await metrics_inc("rag_fallback_total")
            return await self.fallback_retrieve(query, limit)

        results = self.scorer.rank(candidates, keywords, query, limit)
        self.logger.info(f"Primary search ranked {len(candidates)} candidates, returning {len(results)}")
        return results

    async def fallback_retrieve(self, query: str, limit: int) -> List[Any]:
        """
        Broader search used when the primary search finds nothing.

        Args:
            query: Raw user query
            limit: Maximum number of documents returned

        Returns:
            Documents in store order, without relevance scoring

        Raises:
            RetrievalError: If a store query fails
        """
        words = fallback_terms(query)

        if not words:
            documents = await self._query_store(
                self.store.find_recent_documents(self.scope.organization_id, limit),
                stage="fallback_recent"
            )
            self.logger.info(f"Fallback search using {len(documents)} recent documents")
            return documents

        documents = await self._query_store(
            self.store.find_active_documents(
                DocumentFilter.for_words(words),
                self.scope.organization_id,
                limit
            ),
            stage="fallback"
        )
        self.logger.info(f"Fallback search found {len(documents)} documents")
        return documents

    async def _query_store(self, pending, stage: str) -> List[Any]:
        try:
            return list(await pending)
        except StoreQueryError as e:
            self.logger.error(f"Document store query failed during {stage} search: {e}")
            raise RetrievalError(f"{stage} search failed: {e}", stage=stage) from e
