"""Tests for the vector matcher."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from healthkb.core.exceptions import VectorSearchError
from healthkb.core.models.chunk import SearchResult
from healthkb.core.services.vector_matcher import VectorMatcher


def _result(cid: str, similarity: float) -> SearchResult:
    return SearchResult(chunk_id=cid, source_id="s", text="t", similarity=similarity)


class TestVectorMatcher:

    @pytest.mark.asyncio
    async def test_delegates_to_store(self) -> None:
        store = MagicMock()
        store.similarity_search = AsyncMock(return_value=[_result("a", 0.9)])

        results = await VectorMatcher(store).search([0.1, 0.2], threshold=0.4, limit=3)

        assert [r.chunk_id for r in results] == ["a"]
        store.similarity_search.assert_awaited_once_with([0.1, 0.2], 0.4, 3)

    @pytest.mark.asyncio
    async def test_store_error_returns_empty(self) -> None:
        """Should swallow store failures and return no results."""
        store = MagicMock()
        store.similarity_search = AsyncMock(
            side_effect=VectorSearchError("operator does not exist: vector <=> text")
        )

        assert await VectorMatcher(store).search([0.1]) == []

    @pytest.mark.asyncio
    async def test_transport_error_returns_empty(self) -> None:
        store = MagicMock()
        store.similarity_search = AsyncMock(side_effect=ConnectionError("reset"))

        assert await VectorMatcher(store).search([0.1]) == []

    @pytest.mark.asyncio
    async def test_retries_on_next_call(self) -> None:
        """A failure should not disable later searches."""
        store = MagicMock()
        store.similarity_search = AsyncMock(
            side_effect=[VectorSearchError("down"), [_result("b", 0.7)]]
        )
        matcher = VectorMatcher(store)

        assert await matcher.search([0.1]) == []
        assert [r.chunk_id for r in await matcher.search([0.1])] == ["b"]
        assert store.similarity_search.await_count == 2
