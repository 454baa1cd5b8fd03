"""
Database package for the knowledge-base retrieval engine
Provides connection management, the document model and the document store
"""

from .connection import (
    DatabaseConfig,
    DatabaseManager,
    db_manager,
    get_async_session,
    init_database,
    Base
)

from .models import KnowledgeDocument

from .document_store import (
    DocumentFilter,
    DocumentStore,
    StoreQueryError,
    get_document_store
)

__all__ = [
    # Connection utilities
    'DatabaseConfig',
    'DatabaseManager',
    'db_manager',
    'get_async_session',
    'init_database',
    'Base',

    # Models
    'KnowledgeDocument',

    # Document store
    'DocumentFilter',
    'DocumentStore',
    'StoreQueryError',
    'get_document_store'
]
