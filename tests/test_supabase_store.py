"""Tests for the Supabase REST adapter."""

import json

import httpx
import pytest

from healthkb.core.exceptions import StoreReadError, StoreWriteError, VectorSearchError
from healthkb.core.models.chunk import Chunk, EmbeddingRecord
from healthkb.infrastructure.stores.supabase_store import SupabaseKnowledgeStore


def make_store(handler) -> SupabaseKnowledgeStore:
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url="https://x.supabase.co/rest/v1",
    )
    return SupabaseKnowledgeStore("https://x.supabase.co", "key", client=client)


CHUNK_ROW = {
    "id": "c1",
    "card_id": "src-1",
    "chunk_text": "Magnesium supports sleep.",
    "chunk_index": 0,
    "token_count": 7,
    "section_type": "main_content",
    "heading": "Main Content",
}


class TestChunkRequests:
    """Test PostgREST requests for chunk rows."""

    @pytest.mark.asyncio
    async def test_insert_chunks(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["prefer"] = request.headers.get("Prefer")
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json=[CHUNK_ROW])

        store = make_store(handler)
        chunk = Chunk("src-1", "Magnesium supports sleep.", 0, 7, "main_content", "Main Content")

        saved = await store.insert_chunks([chunk])

        assert seen["method"] == "POST"
        assert seen["path"] == "/rest/v1/kb_card_chunks"
        assert seen["prefer"] == "return=representation"
        assert seen["body"] == [{k: v for k, v in CHUNK_ROW.items() if k != "id"}]
        assert saved[0].id == "c1"
        assert saved[0].source_id == "src-1"

    @pytest.mark.asyncio
    async def test_insert_nothing_skips_request(self) -> None:
        def handler(request):
            raise AssertionError("no request expected")

        assert await make_store(handler).insert_chunks([]) == []

    @pytest.mark.asyncio
    async def test_select_by_source(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["card_id"] == "eq.src-1"
            assert request.url.params["order"] == "chunk_index.asc"
            return httpx.Response(200, json=[CHUNK_ROW])

        chunks = await make_store(handler).select_chunks_by_source("src-1")

        assert [c.text for c in chunks] == ["Magnesium supports sleep."]

    @pytest.mark.asyncio
    async def test_delete_with_filters(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["params"] = dict(request.url.params)
            return httpx.Response(204)

        await make_store(handler).delete_chunks_by_source(
            "src-1", section_type="document", heading="Document: d1"
        )

        assert seen["method"] == "DELETE"
        assert seen["params"] == {
            "card_id": "eq.src-1",
            "section_type": "eq.document",
            "heading": "eq.Document: d1",
        }

    @pytest.mark.asyncio
    async def test_lexical_queries(self) -> None:
        params = []

        def handler(request: httpx.Request) -> httpx.Response:
            params.append(dict(request.url.params))
            return httpx.Response(200, json=[CHUNK_ROW])

        store = make_store(handler)
        await store.substring_search("magnesium", 5)
        await store.full_text_search("magnesium & sleep", 5)

        assert params[0]["chunk_text"] == "ilike.*magnesium*"
        assert params[0]["limit"] == "5"
        assert params[1]["chunk_text"] == "fts.magnesium & sleep"

    @pytest.mark.asyncio
    async def test_http_error_becomes_read_error(self) -> None:
        def handler(request):
            return httpx.Response(500, text="boom")

        with pytest.raises(StoreReadError) as exc_info:
            await make_store(handler).substring_search("zinc", 5)
        assert exc_info.value.details["status"] == 500

    @pytest.mark.asyncio
    async def test_transport_error_becomes_write_error(self) -> None:
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(StoreWriteError):
            await make_store(handler).delete_chunks_by_source("src-1")


class TestEmbeddingRequests:

    @pytest.mark.asyncio
    async def test_similarity_search_rpc(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json=[{
                    "chunk_id": "c1",
                    "card_id": "src-1",
                    "chunk_text": "text",
                    "similarity": 0.82,
                    "section_type": "main_content",
                    "heading": "Main Content",
                }],
            )

        results = await make_store(handler).similarity_search([0.5, 0.25], 0.3, 4)

        assert seen["path"] == "/rest/v1/rpc/vector_search_kb"
        assert seen["body"] == {
            "query_embedding": "[0.5,0.25]",
            "similarity_threshold": 0.3,
            "match_count": 4,
        }
        assert results[0].chunk_id == "c1"
        assert results[0].similarity == 0.82

    @pytest.mark.asyncio
    async def test_similarity_failure(self) -> None:
        def handler(request):
            return httpx.Response(404, json={"message": "function not found"})

        with pytest.raises(VectorSearchError):
            await make_store(handler).similarity_search([0.1], 0.3, 4)

    @pytest.mark.asyncio
    async def test_insert_and_delete_embeddings(self) -> None:
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(201)

        store = make_store(handler)
        await store.insert_embeddings([EmbeddingRecord("c1", [0.1, 0.2])])
        await store.delete_embeddings_by_chunk(["c1", "c2"])

        assert json.loads(requests[0].content) == [{"chunk_id": "c1", "embedding": [0.1, 0.2]}]
        assert requests[1].url.params["chunk_id"] == "in.(c1,c2)"


@pytest.mark.asyncio
async def test_select_active_sources() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["status"] == "eq.active"
        return httpx.Response(
            200,
            json=[{
                "id": 7,
                "title": "Zinc",
                "content": "Zinc text.",
                "issues_resolutions": "[]",
                "status": "active",
                "general_info": "General.",
                "specific_details": None,
                "change_log": "",
            }],
        )

    sources = await make_store(handler).select_active_sources()

    assert sources[0].id == "7"
    assert sources[0].sections == {"general_info": "General."}
