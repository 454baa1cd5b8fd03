"""
Tests for the document store adapter
"""

import uuid
import pytest
from unittest.mock import Mock, AsyncMock
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import SQLAlchemyError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import make_document
from database.document_store import (
    DocumentFilter, DocumentStore, StoreQueryError, _escape_like, get_document_store
)
from monitoring.metrics import counter_value, get_metrics

ORG_ID = uuid.UUID("6f1c2f4e-8a51-4d3b-9a57-2f0c1d7e9b10")


@pytest.fixture
def mock_session():
    session = Mock(spec=AsyncSession)
    result = Mock()
    result.scalars.return_value.all.return_value = [
        make_document("d1", "Password Reset Guide", "Reset steps", organization_id=ORG_ID)
    ]
    session.execute = AsyncMock(return_value=result)
    return session


def _compiled(session):
    stmt = session.execute.call_args[0][0]
    return stmt.compile(dialect=postgresql.dialect())


class TestDocumentFilter:
    def test_keyword_filter_lowercases_and_matches_tags(self):
        document_filter = DocumentFilter.for_keywords(["Reset", "VPN"])

        assert document_filter.terms == ("reset", "vpn")
        assert document_filter.match_title and document_filter.match_content and document_filter.match_tags

    def test_word_filter_ignores_tags(self):
        document_filter = DocumentFilter.for_words(["Billing"])

        assert document_filter.terms == ("billing",)
        assert not document_filter.match_tags

    def test_empty_filter(self):
        assert DocumentFilter.for_keywords([]).is_empty()
        assert not DocumentFilter.for_keywords(["x"]).is_empty()


def test_escape_like():
    assert _escape_like("100%_done\\") == "100\\%\\_done\\\\"


class TestDocumentStore:
    @pytest.mark.asyncio
    async def test_find_active_documents_query(self, mock_session):
        store = DocumentStore(mock_session)

        documents = await store.find_active_documents(
            DocumentFilter.for_keywords(["reset", "pass_word"]), str(ORG_ID), limit=10
        )

        assert [d.id for d in documents] == ["d1"]
        compiled = _compiled(mock_session)
        sql = str(compiled)
        assert "rag_documents.is_active IS true" in sql
        assert "rag_documents.organization_id =" in sql
        assert sql.count("unnest(rag_documents.tags)") == 2
        assert sql.count("ILIKE") == 4
        assert "ORDER BY rag_documents.created_at DESC, rag_documents.id" in sql
        assert "LIMIT" in sql

        params = list(compiled.params.values())
        assert "%reset%" in params
        assert "%pass\\_word%" in params
        assert "reset" in params
        assert ORG_ID in params
        assert 10 in params

    @pytest.mark.asyncio
    async def test_tag_match_is_literal_equality(self, mock_session):
        store = DocumentStore(mock_session)

        await store.find_active_documents(DocumentFilter.for_keywords(["500"]))

        compiled = _compiled(mock_session)
        sql = str(compiled)
        # tags are never used as LIKE patterns, so "50%" or "%" tags cannot match "500"
        assert "ANY (" not in sql
        assert "EXISTS (SELECT document_tag.tag" in sql
        assert "FROM unnest(rag_documents.tags)" in sql
        assert "lower(document_tag.tag) = " in sql
        assert sql.count("ILIKE") == 2
        params = list(compiled.params.values())
        assert "500" in params
        assert "%500%" in params

    @pytest.mark.asyncio
    async def test_word_filter_has_no_tag_clause(self, mock_session):
        store = DocumentStore(mock_session)

        await store.find_active_documents(DocumentFilter.for_words(["reset"]), limit=5)

        sql = str(_compiled(mock_session))
        assert "unnest" not in sql
        assert "organization_id" not in sql.split("WHERE")[1]

    @pytest.mark.asyncio
    async def test_empty_filter_skips_query(self, mock_session):
        store = DocumentStore(mock_session)

        assert await store.find_active_documents(DocumentFilter(terms=())) == []
        mock_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_find_recent_documents_query(self, mock_session):
        store = DocumentStore(mock_session)

        await store.find_recent_documents(ORG_ID, limit=5)

        compiled = _compiled(mock_session)
        sql = str(compiled)
        assert "ILIKE" not in sql
        assert "ORDER BY rag_documents.created_at DESC" in sql
        assert 5 in compiled.params.values()

    @pytest.mark.asyncio
    async def test_list_active_documents_has_no_limit(self, mock_session):
        store = DocumentStore(mock_session)

        await store.list_active_documents(ORG_ID)

        sql = str(_compiled(mock_session))
        assert "LIMIT" not in sql
        assert "rag_documents.is_active IS true" in sql

    @pytest.mark.asyncio
    async def test_query_time_recorded(self, mock_session):
        store = DocumentStore(mock_session)

        await store.find_recent_documents()

        snapshot = await get_metrics()
        [histogram] = snapshot["histograms"]
        assert histogram["name"] == "document_store_query_ms"
        assert histogram["labels"] == {"operation": "find_recent_documents"}

    @pytest.mark.asyncio
    async def test_invalid_organization_id(self, mock_session):
        store = DocumentStore(mock_session)

        with pytest.raises(StoreQueryError, match="Invalid organization id"):
            await store.find_recent_documents("org-a")
        mock_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_database_error_wrapped(self, mock_session):
        mock_session.execute = AsyncMock(
            side_effect=OperationalError("SELECT", {}, Exception("connection refused"))
        )
        store = DocumentStore(mock_session)

        with pytest.raises(StoreQueryError, match="Database error") as exc_info:
            await store.find_active_documents(DocumentFilter.for_keywords(["reset"]))

        assert isinstance(exc_info.value.__cause__, SQLAlchemyError)
        assert await counter_value(
            "document_store_errors_total", labels={"operation": "find_active_documents"}
        ) == 1

    @pytest.mark.asyncio
    async def test_unexpected_error_wrapped(self, mock_session):
        mock_session.execute = AsyncMock(side_effect=RuntimeError("driver crashed"))
        store = DocumentStore(mock_session)

        with pytest.raises(StoreQueryError, match="Query error: driver crashed"):
            await store.list_active_documents()

    @pytest.mark.asyncio
    async def test_factory(self, mock_session):
        store = await get_document_store(mock_session)

        assert isinstance(store, DocumentStore)
        assert store.session is mock_session
