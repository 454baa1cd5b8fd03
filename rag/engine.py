"""
Retrieval engine facade for the chat orchestration layer.

Composes keyword extraction, document retrieval, relevance scoring and context
assembly for one immutable tenant scope. Retrieval failures never propagate to
the chat flow: they are logged, counted and degraded to "no documents".
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union
from uuid import UUID

import structlog

from database.document_store import DocumentStore, StoreQueryError
from monitoring.metrics import inc as metrics_inc, observe as metrics_observe
from rag.config import RAG_CONFIG
from rag.context_builder import ContextBuilder
from rag.document_retriever import DocumentRetriever, RetrievalError, RetrievalScope
from rag.error_handling import Severity, classify_error
from rag.keyword_extractor import extract_keywords
from rag.logging_config import RAGLogContext, get_rag_logger
from rag.relevance_scorer import RelevanceScorer

perf_logger = structlog.get_logger("rag_retrieval_performance")


@dataclass
class RAGDebugResult:
    """Everything the engine derived for one query, for operator diagnostics."""
    query: str
    keywords: List[str]
    documents: List[Any] = field(default_factory=list)
    context_block: str = ""


class RAGEngine:
    """
    Knowledge-base retrieval for a single organization scope.

    The scope is fixed at construction; use `with_scope` to obtain an engine
    for another organization.
    """

    def __init__(
        self,
        store: DocumentStore,
        organization_id: Optional[Union[UUID, str]] = None,
        scorer: Optional[RelevanceScorer] = None,
        context_builder: Optional[ContextBuilder] = None
    ):
        self._store = store
        self._scope = RetrievalScope(organization_id)
        self._scorer = scorer or RelevanceScorer()
        self._retriever = DocumentRetriever(store, self._scope, self._scorer)
        self.context_builder = context_builder or ContextBuilder()
        self.logger = get_rag_logger(__name__, organization_id=organization_id)

    @property
    def scope(self) -> RetrievalScope:
        return self._scope

    def with_scope(self, organization_id: Optional[Union[UUID, str]]) -> "RAGEngine":
        """New engine over the same store and stages, bound to another organization."""
        return RAGEngine(
            self._store,
            organization_id=organization_id,
            scorer=self._scorer,
            context_builder=self.context_builder
        )

    async def retrieve_relevant_documents(self, query: str, limit: Optional[int] = None) -> List[Any]:
        """
        Retrieve the documents most relevant to a user query.

        Args:
            query: Raw user query
            limit: Maximum number of documents (defaults to config)

        Returns:
            Ranked documents; empty when nothing matches or the store fails
        """
        if limit is None:
            limit = RAG_CONFIG['default_limit']

        start_time = time.time()
        documents: List[Any] = []
        try:
            with RAGLogContext(self.logger, "document retrieval", self._scope.organization_id, logging.DEBUG):
                documents = await self._retriever.retrieve(query, limit)
        except RetrievalError as e:
            await self._record_failure(e)
            return []

        elapsed_ms = (time.time() - start_time) * 1000
        await metrics_observe("rag_retrieval_ms", elapsed_ms)
        await metrics_observe("rag_documents_returned", len(documents))
        perf_logger.info(
            "Document retrieval completed",
            organization_id=self._scope.describe(),
            documents=len(documents),
            elapsed_ms=round(elapsed_ms, 2)
        )
        return documents

    async def search_documents(self, query: str) -> List[Any]:
        """Wider search used by the knowledge-base search box."""
        return await self.retrieve_relevant_documents(query, RAG_CONFIG['search_limit'])

    def generate_context_block(self, documents: List[Any]) -> str:
        """Prompt context block for the given documents ('' when none)."""
        return self.context_builder.assemble_context(documents)

    async def debug_search(self, query: str) -> RAGDebugResult:
        """Keywords, documents and context block for one query."""
        keywords = extract_keywords(query)
        documents = await self.retrieve_relevant_documents(query)
        return RAGDebugResult(
            query=query,
            keywords=keywords,
            documents=documents,
            context_block=self.generate_context_block(documents)
        )

    async def list_documents(self) -> List[Any]:
        """All active documents in scope, newest first; empty on store failure."""
        try:
            return await self._store.list_active_documents(self._scope.organization_id)
        except StoreQueryError as e:
            failure = RetrievalError(f"list search failed: {e}", stage="list")
            failure.__cause__ = e
            await self._record_failure(failure)
            return []

    async def _record_failure(self, error: RetrievalError) -> None:
        error_type, severity, retryable = classify_error(error)
        self.logger.warning(
            f"Retrieval degraded to empty result ({error.stage}): {error}",
            extra={'stage': error.stage, 'error_type': error_type.value}
        )
        await metrics_inc(
            "rag_retrieval_errors_total",
            labels={"stage": error.stage, "error_type": error_type.value, "retryable": retryable}
        )
        if severity == Severity.CRITICAL:
            self.logger.error(f"Critical document store failure for scope {self._scope.describe()}")
