"""
Knowledge-base retrieval diagnostic API endpoints

Lets operators run a query through the retrieval engine for one organization
and inspect the extracted keywords, ranked documents and prompt context block.
"""

import logging
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database.connection import get_async_session
from database.document_store import get_document_store
from database.schemas import DocumentResponse
from monitoring.metrics import get_metrics
from rag.config import RAG_CONFIG
from rag.engine import RAGEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rag", tags=["Knowledge Base Retrieval"])


# Pydantic models for API
class SearchRequest(BaseModel):
    """Document search request model"""
    query: str = Field(..., min_length=1, max_length=2000, description="Free-text user query")
    limit: int = Field(default=RAG_CONFIG['default_limit'], ge=1, le=50, description="Maximum documents returned")
    organization_id: Optional[str] = Field(default=None, description="Organization scope")


class SearchResponse(BaseModel):
    """Document search response model"""
    query: str
    organization_id: Optional[str]
    documents: List[DocumentResponse]


class DebugRequest(BaseModel):
    """Diagnostic search request model"""
    query: str = Field(..., min_length=1, max_length=2000, description="Free-text user query")
    organization_id: Optional[str] = Field(default=None, description="Organization scope")


class DebugResponse(BaseModel):
    """Diagnostic search response model"""
    query: str
    organization_id: Optional[str]
    keywords: List[str]
    documents: List[DocumentResponse]
    context_block: str
    estimated_tokens: int


# Dependency injection
async def get_rag_engine(session: AsyncSession = Depends(get_async_session)) -> RAGEngine:
    """Unscoped engine for the request; endpoints rebind it with with_scope"""
    return RAGEngine(await get_document_store(session))


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """Retrieval service health check"""
    return {"status": "healthy", "service": "knowledge-base-retrieval"}


@router.post("/search", response_model=SearchResponse)
async def search_documents(
    request: SearchRequest,
    engine: RAGEngine = Depends(get_rag_engine)
) -> SearchResponse:
    """Run a query through the retrieval engine for one organization"""
    scoped = engine.with_scope(request.organization_id)
    documents = await scoped.retrieve_relevant_documents(request.query, request.limit)

    logger.info(f"Search for organization {request.organization_id} returned {len(documents)} documents")
    return SearchResponse(
        query=request.query,
        organization_id=request.organization_id,
        documents=[DocumentResponse.model_validate(doc) for doc in documents]
    )


@router.post("/debug", response_model=DebugResponse)
async def debug_search(
    request: DebugRequest,
    engine: RAGEngine = Depends(get_rag_engine)
) -> DebugResponse:
    """Keywords, documents and context block the engine derives for a query"""
    scoped = engine.with_scope(request.organization_id)
    result = await scoped.debug_search(request.query)

    return DebugResponse(
        query=result.query,
        organization_id=request.organization_id,
        keywords=result.keywords,
        documents=[DocumentResponse.model_validate(doc) for doc in result.documents],
        context_block=result.context_block,
        estimated_tokens=scoped.context_builder.estimate_token_count(result.context_block)
    )


@router.get("/documents", response_model=List[DocumentResponse])
async def list_documents(
    organization_id: Optional[str] = Query(None, description="Organization scope"),
    engine: RAGEngine = Depends(get_rag_engine)
) -> List[DocumentResponse]:
    """All active documents visible in the organization scope"""
    documents = await engine.with_scope(organization_id).list_documents()
    return [DocumentResponse.model_validate(doc) for doc in documents]


@router.get("/metrics")
async def retrieval_metrics() -> Dict[str, Any]:
    """In-process retrieval and document store metrics"""
    return await get_metrics()
