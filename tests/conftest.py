"""
Shared fixtures for retrieval engine tests
"""

import pytest
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from database.document_store import DocumentFilter, StoreQueryError
from monitoring.metrics import MetricsRegistry


@dataclass
class FakeDocument:
    """Stand-in for KnowledgeDocument rows."""
    id: str
    title: str
    content: str
    tags: List[str] = field(default_factory=list)
    organization_id: Optional[str] = None
    is_active: bool = True
    created_at: datetime = field(default_factory=datetime.now)


def filter_matches(document_filter: DocumentFilter, document) -> bool:
    """Python rendition of the store's SQL predicate: substring on title/content, exact tag ignoring case."""
    title = (document.title or "").lower()
    content = (document.content or "").lower()
    tags = {tag.lower() for tag in (document.tags or []) if tag}

    return any(
        (document_filter.match_title and term in title)
        or (document_filter.match_content and term in content)
        or (document_filter.match_tags and term in tags)
        for term in document_filter.terms
    )


class FakeDocumentStore:
    """In-memory document store honouring scope, activity, filter and limit."""

    def __init__(self, documents: List[FakeDocument], fail_on: Optional[set] = None):
        self.documents = list(documents)
        self.fail_on = fail_on or set()
        self.calls: List[tuple] = []

    def _scoped(self, organization_id):
        return [
            doc for doc in self.documents
            if doc.is_active and (organization_id is None or doc.organization_id == organization_id)
        ]

    def _check_failure(self, operation: str) -> None:
        if operation in self.fail_on:
            raise StoreQueryError("Database error: connection refused")

    async def find_active_documents(self, document_filter: DocumentFilter, organization_id=None, limit=10):
        self.calls.append(("find_active_documents", document_filter, organization_id, limit))
        self._check_failure("find_active_documents")
        return [doc for doc in self._scoped(organization_id) if filter_matches(document_filter, doc)][:limit]

    async def find_recent_documents(self, organization_id=None, limit=5):
        self.calls.append(("find_recent_documents", organization_id, limit))
        self._check_failure("find_recent_documents")
        recent = sorted(self._scoped(organization_id), key=lambda d: d.created_at, reverse=True)
        return recent[:limit]

    async def list_active_documents(self, organization_id=None):
        self.calls.append(("list_active_documents", organization_id))
        self._check_failure("list_active_documents")
        return sorted(self._scoped(organization_id), key=lambda d: d.created_at, reverse=True)


def make_document(doc_id: str, title: str, content: str, tags=None, organization_id=None,
                  is_active: bool = True, age_days: int = 0) -> FakeDocument:
    return FakeDocument(
        id=doc_id,
        title=title,
        content=content,
        tags=list(tags or []),
        organization_id=organization_id,
        is_active=is_active,
        created_at=datetime(2024, 1, 1) - timedelta(days=age_days),
    )


@pytest.fixture
def knowledge_base() -> List[FakeDocument]:
    """Small two-tenant knowledge base."""
    return [
        make_document(
            "doc-reset", "Password Reset Guide",
            "To reset your password open Settings, choose Security and click Reset password.",
            tags=["account", "security"], organization_id="org-a", age_days=3
        ),
        make_document(
            "doc-billing", "Billing FAQ",
            "Invoices are issued monthly. " + "Payment details and billing cycles. " * 60
            + "Your password is never required for billing.",
            tags=["billing"], organization_id="org-a", age_days=2
        ),
        make_document(
            "doc-onboarding", "Onboarding Checklist",
            "Create your workspace, invite teammates and connect integrations.",
            tags=["onboarding"], organization_id="org-a", age_days=1
        ),
        make_document(
            "doc-other-tenant", "Password Reset Guide",
            "Organization B instructions to reset a password.",
            tags=["password"], organization_id="org-b", age_days=0
        ),
        make_document(
            "doc-archived", "Legacy VPN Setup",
            "Old VPN configuration steps.",
            tags=["vpn"], organization_id="org-a", is_active=False, age_days=10
        ),
    ]


@pytest.fixture
def fake_store(knowledge_base) -> FakeDocumentStore:
    return FakeDocumentStore(knowledge_base)


@pytest.fixture(autouse=True)
def fresh_metrics():
    """Each test gets its own metrics registry."""
    MetricsRegistry._instance = None
    yield
    MetricsRegistry._instance = None
