"""Knowledge store protocol for dependency injection."""
from typing import Optional, Protocol, runtime_checkable

from ..models.chunk import Chunk, EmbeddingRecord, SearchResult
from ..models.source import SourceRecord


@runtime_checkable
class KnowledgeStoreProtocol(Protocol):
    """Protocol for chunk/embedding storage with lexical and vector search."""

    async def insert_chunks(self, chunks: list[Chunk]) -> list[Chunk]:
        """Persist chunks in one batch.

        Args:
            chunks: Chunks without ids.

        Returns:
            Persisted chunks with store-assigned ids, in input order.
        """
        ...

    async def select_chunks_by_source(self, source_id: str) -> list[Chunk]:
        """Get all chunks of a source ordered by index."""
        ...

    async def delete_chunks_by_source(
        self,
        source_id: str,
        section_type: Optional[str] = None,
        heading: Optional[str] = None,
    ) -> None:
        """Delete chunks of a source (embeddings cascade).

        Args:
            source_id: Source ID.
            section_type: Only delete this section slice.
            heading: Only delete chunks with this heading.
        """
        ...

    async def substring_search(self, term: str, limit: int) -> list[Chunk]:
        """Case-insensitive "contains" search over chunk text."""
        ...

    async def full_text_search(self, query: str, limit: int) -> list[Chunk]:
        """Native full-text search; terms joined with ``&``."""
        ...

    async def similarity_search(
        self, vector: list[float], threshold: float, limit: int
    ) -> list[SearchResult]:
        """Vector similarity search.

        Args:
            vector: Query vector.
            threshold: Minimum similarity.
            limit: Max results.

        Returns:
            Results ordered by similarity (descending).
        """
        ...

    async def insert_embeddings(self, records: list[EmbeddingRecord]) -> None:
        """Persist embedding records."""
        ...

    async def delete_embeddings_by_chunk(self, chunk_ids: list[str]) -> None:
        """Delete embeddings for chunks."""
        ...

    async def select_active_sources(self) -> list[SourceRecord]:
        """Get all active sources for bulk reprocessing."""
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...
