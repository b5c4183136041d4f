import logging
from typing import Any, Optional

import httpx

from healthkb.core.exceptions import StoreReadError, StoreWriteError, VectorSearchError
from healthkb.core.models.chunk import Chunk, EmbeddingRecord, SearchResult
from healthkb.core.models.source import SourceRecord

logger = logging.getLogger(__name__)

CHUNKS_TABLE = "kb_card_chunks"
EMBEDDINGS_TABLE = "kb_embeddings"
SOURCES_TABLE = "kb_cards"
VECTOR_SEARCH_RPC = "vector_search_kb"

SOURCE_SECTION_COLUMNS = ("general_info", "specific_details", "change_log")


def _row_to_chunk(row: dict[str, Any]) -> Chunk:
    return Chunk(
        id=str(row["id"]) if row.get("id") is not None else None,
        source_id=str(row["card_id"]),
        text=row.get("chunk_text") or "",
        index=row.get("chunk_index", 0),
        token_estimate=row.get("token_count") or 0,
        section_type=row.get("section_type") or "",
        heading=row.get("heading"),
    )


def _chunk_to_row(chunk: Chunk) -> dict[str, Any]:
    return {
        "card_id": chunk.source_id,
        "chunk_text": chunk.text,
        "chunk_index": chunk.index,
        "token_count": chunk.token_estimate,
        "section_type": chunk.section_type,
        "heading": chunk.heading,
    }


def _row_to_source(row: dict[str, Any]) -> SourceRecord:
    sections = {
        column: row[column] for column in SOURCE_SECTION_COLUMNS if row.get(column)
    }
    return SourceRecord(
        id=str(row["id"]),
        title=row.get("title") or "",
        content=row.get("content"),
        sections=sections,
        issues_resolutions=row.get("issues_resolutions"),
        status=row.get("status") or "active",
    )


class SupabaseKnowledgeStore:
    """Knowledge store over the Supabase PostgREST API."""

    def __init__(
        self,
        url: str,
        service_key: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize store.

        Args:
            url: Supabase project URL.
            service_key: Service role key.
            timeout: Request timeout in seconds.
            client: Preconfigured HTTP client (tests).
        """
        self._base_url = f"{url.rstrip('/')}/rest/v1"
        self._client = client or httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            headers={
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
                "Content-Type": "application/json",
            },
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        error_cls: type,
        action: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send request and translate failures into store errors."""
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise error_cls(f"Failed to {action}: {e}") from e

        if resp.is_error:
            raise error_cls(
                f"Failed to {action}: {resp.text}",
                {"status": resp.status_code, "path": path},
            )
        return resp

    async def insert_chunks(self, chunks: list[Chunk]) -> list[Chunk]:
        if not chunks:
            return []
        resp = await self._request(
            "POST",
            f"/{CHUNKS_TABLE}",
            StoreWriteError,
            "save chunks",
            json=[_chunk_to_row(c) for c in chunks],
            headers={"Prefer": "return=representation"},
        )
        return [_row_to_chunk(row) for row in resp.json() or []]

    async def select_chunks_by_source(self, source_id: str) -> list[Chunk]:
        resp = await self._request(
            "GET",
            f"/{CHUNKS_TABLE}",
            StoreReadError,
            "get source chunks",
            params={
                "select": "*",
                "card_id": f"eq.{source_id}",
                "order": "chunk_index.asc",
            },
        )
        return [_row_to_chunk(row) for row in resp.json() or []]

    async def delete_chunks_by_source(
        self,
        source_id: str,
        section_type: Optional[str] = None,
        heading: Optional[str] = None,
    ) -> None:
        params = {"card_id": f"eq.{source_id}"}
        if section_type is not None:
            params["section_type"] = f"eq.{section_type}"
        if heading is not None:
            params["heading"] = f"eq.{heading}"

        await self._request(
            "DELETE", f"/{CHUNKS_TABLE}", StoreWriteError, "delete source chunks",
            params=params,
        )

    async def substring_search(self, term: str, limit: int) -> list[Chunk]:
        resp = await self._request(
            "GET",
            f"/{CHUNKS_TABLE}",
            StoreReadError,
            f"search chunks for '{term}'",
            params={"select": "*", "chunk_text": f"ilike.*{term}*", "limit": limit},
        )
        return [_row_to_chunk(row) for row in resp.json() or []]

    async def full_text_search(self, query: str, limit: int) -> list[Chunk]:
        resp = await self._request(
            "GET",
            f"/{CHUNKS_TABLE}",
            StoreReadError,
            "full-text search chunks",
            params={"select": "*", "chunk_text": f"fts.{query}", "limit": limit},
        )
        return [_row_to_chunk(row) for row in resp.json() or []]

    async def similarity_search(
        self, vector: list[float], threshold: float, limit: int
    ) -> list[SearchResult]:
        # pgvector accepts the textual "[x,y,...]" form
        embedding = "[" + ",".join(str(v) for v in vector) + "]"
        resp = await self._request(
            "POST",
            f"/rpc/{VECTOR_SEARCH_RPC}",
            VectorSearchError,
            "run vector search",
            json={
                "query_embedding": embedding,
                "similarity_threshold": threshold,
                "match_count": limit,
            },
        )
        return [
            SearchResult(
                chunk_id=str(row["chunk_id"]),
                source_id=str(row["card_id"]),
                text=row.get("chunk_text") or "",
                similarity=float(row.get("similarity") or 0.0),
                section_type=row.get("section_type"),
                heading=row.get("heading"),
            )
            for row in resp.json() or []
        ]

    async def insert_embeddings(self, records: list[EmbeddingRecord]) -> None:
        if not records:
            return
        await self._request(
            "POST",
            f"/{EMBEDDINGS_TABLE}",
            StoreWriteError,
            "save embeddings",
            json=[{"chunk_id": r.chunk_id, "embedding": r.vector} for r in records],
        )

    async def delete_embeddings_by_chunk(self, chunk_ids: list[str]) -> None:
        if not chunk_ids:
            return
        await self._request(
            "DELETE",
            f"/{EMBEDDINGS_TABLE}",
            StoreWriteError,
            "delete embeddings",
            params={"chunk_id": f"in.({','.join(chunk_ids)})"},
        )

    async def select_active_sources(self) -> list[SourceRecord]:
        columns = ",".join(
            ("id", "title", "content", "issues_resolutions", "status")
            + SOURCE_SECTION_COLUMNS
        )
        resp = await self._request(
            "GET",
            f"/{SOURCES_TABLE}",
            StoreReadError,
            "get sources for reprocessing",
            params={"select": columns, "status": "eq.active"},
        )
        sources = [_row_to_source(row) for row in resp.json() or []]
        logger.info(f"Loaded {len(sources)} active sources")
        return sources
