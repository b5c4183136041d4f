"""Search service - hybrid lexical + vector retrieval."""

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from ..models.chunk import SearchResult
from ..protocols.embedder import EmbedderProtocol
from .fusion import fuse
from .lexical_matcher import LexicalMatcher
from .vector_matcher import VectorMatcher

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _gather_all_or_nothing(*aws: Awaitable[T]) -> list[T]:
    """Run awaitables concurrently; cancel the rest if one fails or we are cancelled."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class SearchService:
    """Hybrid search over the knowledge base."""

    def __init__(
        self,
        embedder: EmbedderProtocol,
        lexical: LexicalMatcher,
        vector: VectorMatcher,
        limit: int = 10,
        vector_threshold: float = 0.3,
        text_weight: float = 0.5,
        vector_weight: float = 0.5,
    ):
        """Initialize search service.

        Args:
            embedder: Embedding service for queries.
            lexical: Lexical matcher.
            vector: Vector matcher.
            limit: Default number of results.
            vector_threshold: Default minimum vector similarity.
            text_weight: Fusion weight of lexical rank.
            vector_weight: Fusion weight of vector similarity.
        """
        self._embedder = embedder
        self._lexical = lexical
        self._vector = vector
        self._limit = limit
        self._vector_threshold = vector_threshold
        self._text_weight = text_weight
        self._vector_weight = vector_weight

    async def _embed_query(self, query: str) -> Optional[list[float]]:
        try:
            vectors = await self._embedder.embed([query])
        except Exception as e:
            logger.error(f"Query embedding failed, lexical-only search: {e}")
            return None
        return vectors[0] if vectors else None

    async def _embed_and_search(
        self, query: str, threshold: float, limit: int
    ) -> list[SearchResult]:
        """Vector branch: embed the query, then search by similarity."""
        query_vector = await self._embed_query(query)
        if query_vector is None:
            return []
        return await self._vector.search(query_vector, threshold, limit)

    async def hybrid_search(
        self,
        query: str,
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> list[SearchResult]:
        """Search with lexical and vector matchers and fuse the results.

        Args:
            query: User query.
            limit: Override number of results.
            threshold: Override vector similarity threshold.

        Returns:
            Fused results, best first.
        """
        limit = self._limit if limit is None else limit
        threshold = self._vector_threshold if threshold is None else threshold

        # Embedding belongs to the vector branch so lexical starts immediately
        text_results, vector_results = await _gather_all_or_nothing(
            self._lexical.search(query, limit),
            self._embed_and_search(query, threshold, limit),
        )

        if not vector_results:
            logger.warning(f"Hybrid: no vector results for '{query[:50]}'")

        results = fuse(
            text_results,
            vector_results,
            limit=limit,
            text_weight=self._text_weight,
            vector_weight=self._vector_weight,
        )

        logger.info(
            f"Hybrid: text={len(text_results)} vector={len(vector_results)} "
            f"returned={len(results)} for '{query[:50]}'"
        )
        return results

    async def text_search(self, query: str, limit: Optional[int] = None) -> list[SearchResult]:
        """Lexical-only search."""
        return await self._lexical.search(
            query, self._limit if limit is None else limit
        )

    async def vector_search(
        self,
        query: str,
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> list[SearchResult]:
        """Vector-only search; empty if the query cannot be embedded."""
        threshold = self._vector_threshold if threshold is None else threshold
        limit = self._limit if limit is None else limit
        return await self._embed_and_search(query, threshold, limit)
