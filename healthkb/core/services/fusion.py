"""Fusion ranker - weighted merge of lexical and vector results."""

import logging
from dataclasses import replace

from ..models.chunk import SearchResult

logger = logging.getLogger(__name__)


def fuse(
    text_results: list[SearchResult],
    vector_results: list[SearchResult],
    limit: int = 10,
    text_weight: float = 0.5,
    vector_weight: float = 0.5,
) -> list[SearchResult]:
    """Merge two ranked lists into one by chunk id.

    Lexical results contribute by rank position, vector results by raw
    similarity; a chunk present in both gets the sum. Ties keep insertion
    order (lexical first, then vector-only).

    Args:
        text_results: Lexical matcher output, best first.
        vector_results: Vector matcher output.
        limit: Max results.
        text_weight: Weight of the rank-based lexical score.
        vector_weight: Weight of the vector similarity.

    Returns:
        Fused results, ``similarity`` holding the fused score.
    """
    combined: dict[str, SearchResult] = {}
    n = len(text_results)

    for i, result in enumerate(text_results):
        if result.chunk_id in combined:
            continue
        text_score = (1 - i / n) * text_weight
        combined[result.chunk_id] = replace(result, similarity=text_score)

    for result in vector_results:
        vec_score = result.similarity * vector_weight
        existing = combined.get(result.chunk_id)
        if existing is not None:
            existing.similarity += vec_score
        else:
            combined[result.chunk_id] = replace(result, similarity=vec_score)

    # sorted() is stable
    ranked = sorted(combined.values(), key=lambda r: r.similarity, reverse=True)

    logger.debug(
        f"Fusion: {len(text_results)} text + {len(vector_results)} vector "
        f"-> {len(combined)} unique"
    )
    return ranked[:limit]
