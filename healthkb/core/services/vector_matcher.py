"""Vector matcher - similarity search that never hard-fails."""

import logging

from ..models.chunk import SearchResult
from ..protocols.store import KnowledgeStoreProtocol

logger = logging.getLogger(__name__)


class VectorMatcher:
    """Delegates to the store's similarity search, degrading to empty."""

    def __init__(self, store: KnowledgeStoreProtocol):
        self._store = store

    async def search(
        self, vector: list[float], threshold: float = 0.3, limit: int = 10
    ) -> list[SearchResult]:
        """Search by embedding.

        Errors only affect this call; the next call queries the store again.

        Args:
            vector: Query vector.
            threshold: Minimum similarity.
            limit: Max results.

        Returns:
            Results by similarity, or an empty list if the store failed.
        """
        try:
            results = await self._store.similarity_search(vector, threshold, limit)
        except Exception as e:
            logger.error(
                f"Vector search failed, continuing without vector results: {e} "
                f"(dims={len(vector)}, threshold={threshold}, limit={limit})"
            )
            return []

        logger.info(f"Vector: {len(results)} results (threshold={threshold})")
        return results
