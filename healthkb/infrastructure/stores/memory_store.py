import logging
import uuid
from dataclasses import replace
from typing import Optional

import numpy as np

from healthkb.core.exceptions import StoreWriteError
from healthkb.core.models.chunk import Chunk, EmbeddingRecord, SearchResult
from healthkb.core.models.source import SourceRecord
from healthkb.core.services.lexical_matcher import normalize_query

logger = logging.getLogger(__name__)


class InMemoryKnowledgeStore:
    """Process-local store with the same semantics as the database backend.

    Embeddings cascade with their chunk; similarity is cosine.
    """

    def __init__(self):
        self._chunks: dict[str, Chunk] = {}
        self._embeddings: dict[str, EmbeddingRecord] = {}  # keyed by chunk id
        self._sources: dict[str, SourceRecord] = {}

    def add_source(self, source: SourceRecord) -> None:
        """Register a source for bulk reprocessing."""
        self._sources[source.id] = source

    @property
    def chunks(self) -> list[Chunk]:
        return list(self._chunks.values())

    @property
    def embeddings(self) -> list[EmbeddingRecord]:
        return list(self._embeddings.values())

    async def insert_chunks(self, chunks: list[Chunk]) -> list[Chunk]:
        saved = []
        for chunk in chunks:
            stored = replace(chunk, id=str(uuid.uuid4()))
            self._chunks[stored.id] = stored
            saved.append(replace(stored))
        return saved

    async def select_chunks_by_source(self, source_id: str) -> list[Chunk]:
        chunks = [c for c in self._chunks.values() if c.source_id == source_id]
        return [replace(c) for c in sorted(chunks, key=lambda c: c.index)]

    async def delete_chunks_by_source(
        self,
        source_id: str,
        section_type: Optional[str] = None,
        heading: Optional[str] = None,
    ) -> None:
        doomed = [
            c.id
            for c in self._chunks.values()
            if c.source_id == source_id
            and (section_type is None or c.section_type == section_type)
            and (heading is None or c.heading == heading)
        ]
        for chunk_id in doomed:
            del self._chunks[chunk_id]
        await self.delete_embeddings_by_chunk(doomed)

    async def substring_search(self, term: str, limit: int) -> list[Chunk]:
        needle = term.lower()
        hits = [replace(c) for c in self._chunks.values() if needle in c.text.lower()]
        return hits[:limit]

    async def full_text_search(self, query: str, limit: int) -> list[Chunk]:
        terms = [t.strip().lower() for t in query.split("&") if t.strip()]
        if not terms:
            return []
        hits = []
        for chunk in self._chunks.values():
            words = set(normalize_query(chunk.text))
            if all(t in words for t in terms):
                hits.append(replace(chunk))
        return hits[:limit]

    async def similarity_search(
        self, vector: list[float], threshold: float, limit: int
    ) -> list[SearchResult]:
        if not self._embeddings:
            return []

        chunk_ids = list(self._embeddings)
        matrix = np.array([self._embeddings[cid].vector for cid in chunk_ids], dtype=float)
        query = np.array(vector, dtype=float)

        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        norms[norms == 0] = 1.0
        scores = matrix @ query / norms

        results = []
        for idx in np.argsort(-scores, kind="stable"):
            score = float(scores[idx])
            if score < threshold:
                break
            chunk = self._chunks[chunk_ids[idx]]
            results.append(SearchResult.from_chunk(chunk, score))
            if len(results) >= limit:
                break
        return results

    async def insert_embeddings(self, records: list[EmbeddingRecord]) -> None:
        missing = [r.chunk_id for r in records if r.chunk_id not in self._chunks]
        if missing:
            raise StoreWriteError(
                "Failed to save embeddings: unknown chunk ids", {"chunk_ids": missing}
            )
        for record in records:
            self._embeddings[record.chunk_id] = replace(record, id=str(uuid.uuid4()))

    async def delete_embeddings_by_chunk(self, chunk_ids: list[str]) -> None:
        for chunk_id in chunk_ids:
            self._embeddings.pop(chunk_id, None)

    async def select_active_sources(self) -> list[SourceRecord]:
        return [s for s in self._sources.values() if s.status == "active"]

    async def close(self) -> None:
        pass
