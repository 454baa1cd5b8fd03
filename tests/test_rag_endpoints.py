"""
Tests for the retrieval diagnostic API endpoints
"""

import math
import pytest
from unittest.mock import Mock
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from api.rag_endpoints import get_rag_engine
from conftest import FakeDocumentStore
from database.document_store import DocumentStore
from main import app
from rag.engine import RAGEngine

client = TestClient(app)


@pytest.fixture
def store(knowledge_base):
    store = FakeDocumentStore(knowledge_base)
    app.dependency_overrides[get_rag_engine] = lambda: RAGEngine(store)
    yield store
    app.dependency_overrides.clear()


class TestRAGEndpoints:
    """Test diagnostic endpoints against an in-memory store"""

    def test_root(self):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["endpoints"]["rag"] == "/api/rag"

    def test_health(self):
        response = client.get("/api/rag/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_search_scoped(self, store):
        response = client.post("/api/rag/search", json={
            "query": "How do I reset my password?",
            "organization_id": "org-a"
        })

        assert response.status_code == 200
        data = response.json()
        assert data["organization_id"] == "org-a"
        assert [d["id"] for d in data["documents"]] == ["doc-reset", "doc-billing"]
        assert data["documents"][0]["tags"] == ["account", "security"]
        assert store.calls[0][2] == "org-a"

    def test_search_respects_limit(self, store):
        response = client.post("/api/rag/search", json={
            "query": "reset password",
            "organization_id": "org-a",
            "limit": 1
        })

        assert response.status_code == 200
        assert len(response.json()["documents"]) == 1

    @pytest.mark.parametrize("payload", [
        {"query": ""},
        {"query": "reset", "limit": 0},
        {"limit": 3},
    ])
    def test_search_validation(self, store, payload):
        response = client.post("/api/rag/search", json=payload)

        assert response.status_code == 422

    def test_search_store_failure_returns_empty(self, knowledge_base):
        failing = FakeDocumentStore(knowledge_base, fail_on={"find_active_documents"})
        app.dependency_overrides[get_rag_engine] = lambda: RAGEngine(failing)
        try:
            response = client.post("/api/rag/search", json={"query": "reset password"})
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 200
        assert response.json()["documents"] == []

    def test_debug(self, store):
        response = client.post("/api/rag/debug", json={
            "query": "how do I reset my password",
            "organization_id": "org-b"
        })

        assert response.status_code == 200
        data = response.json()
        assert data["keywords"] == ["reset", "password"]
        assert [d["id"] for d in data["documents"]] == ["doc-other-tenant"]
        assert data["context_block"].count("Document 1:") == 1
        assert data["estimated_tokens"] == math.ceil(len(data["context_block"]) / 4)

    def test_debug_no_keywords(self, store):
        response = client.post("/api/rag/debug", json={"query": "what is the"})

        data = response.json()
        assert data["keywords"] == []
        assert data["documents"] == []
        assert data["context_block"] == ""
        assert data["estimated_tokens"] == 0
        assert store.calls == []

    def test_list_documents(self, store):
        response = client.get("/api/rag/documents", params={"organization_id": "org-b"})

        assert response.status_code == 200
        assert [d["id"] for d in response.json()] == ["doc-other-tenant"]

    def test_list_documents_unscoped_excludes_inactive(self, store):
        response = client.get("/api/rag/documents")

        ids = [d["id"] for d in response.json()]
        assert len(ids) == 4
        assert "doc-archived" not in ids

    def test_metrics_after_search(self, store):
        client.post("/api/rag/search", json={"query": "vpn xyz", "organization_id": "org-a"})

        response = client.get("/api/rag/metrics")

        assert response.status_code == 200
        counters = {c["name"]: c["value"] for c in response.json()["counters"]}
        assert counters["rag_fallback_total"] == 1

    def test_blank_organization_lists_every_tenant(self, store):
        response = client.get("/api/rag/documents", params={"organization_id": ""})

        assert response.status_code == 200
        assert len(response.json()) == 4
        assert store.calls == [("list_active_documents", None)]


@pytest.mark.asyncio
async def test_engine_dependency_wraps_request_session():
    session = Mock(spec=AsyncSession)

    engine = await get_rag_engine(session=session)

    assert isinstance(engine._store, DocumentStore)
    assert engine._store.session is session
    assert not engine.scope.is_scoped
