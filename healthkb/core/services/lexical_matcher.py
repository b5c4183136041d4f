"""Lexical matcher - term extraction and substring retrieval."""

import asyncio
import logging
import re
from typing import Optional

from ..models.chunk import Chunk, SearchResult, SectionType
from ..protocols.store import KnowledgeStoreProtocol
from ..strategies.scoring import (
    KeywordRuleStrategy,
    ScoreFloorStrategy,
    ScoreRule,
    ScoringStrategy,
)

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset({
    "what", "where", "when", "which", "who", "whom", "whose", "why", "how",
    "the", "this", "that", "these", "those", "there", "here",
    "and", "but", "for", "nor", "yet", "both", "either", "neither",
    "can", "could", "may", "might", "must", "shall", "should", "will", "would",
    "have", "has", "had", "having", "does", "did", "doing", "done",
    "are", "was", "were", "been", "being", "get", "got", "gets",
    "about", "above", "across", "after", "against", "along", "among", "around",
    "before", "behind", "below", "beneath", "beside", "between", "beyond",
    "from", "into", "onto", "upon", "with", "within", "without",
    "your", "our", "their", "its", "his", "her", "any", "all", "some", "most",
    "tell", "give", "know", "find", "help", "please", "need", "want", "take",
})

_PUNCT_RE = re.compile(r"[^\w\s]")

DOCUMENT_BASE, DOCUMENT_STEP = 0.9, 0.1
OTHER_BASE, OTHER_STEP = 0.5, 0.05


def normalize_query(query: str) -> list[str]:
    """Lowercase, strip punctuation and split on whitespace."""
    return _PUNCT_RE.sub("", query.lower()).split()


def extract_terms(query: str, max_terms: int = 4) -> list[str]:
    """Meaningful query terms: no stop words, longer than 2 chars."""
    terms = [
        t for t in normalize_query(query)
        if len(t) > 2 and t not in STOP_WORDS
    ]
    return terms[:max_terms]


class LexicalMatcher:
    """Term-based retrieval with tiering and heuristic re-scoring."""

    def __init__(
        self,
        store: KnowledgeStoreProtocol,
        rules: Optional[list[ScoreRule]] = None,
        max_terms: int = 4,
        score_floor: float = 0.1,
    ):
        """Initialize lexical matcher.

        Args:
            store: Knowledge store.
            rules: Ordered content rules (defaults apply when None).
            max_terms: Max query terms fanned out to the store.
            score_floor: Minimum final score.
        """
        self._store = store
        self._max_terms = max_terms
        self._strategies: list[ScoringStrategy] = [
            KeywordRuleStrategy(rules),
            ScoreFloorStrategy(score_floor),
        ]

    async def _term_search(self, term: str, limit: int) -> list[Chunk]:
        try:
            chunks = await self._store.substring_search(term, limit)
        except Exception as e:
            logger.warning(f"Lexical: term '{term}' failed: {e}")
            return []
        logger.debug(f"Lexical: term '{term}' found {len(chunks)} results")
        return chunks

    async def _collect(self, query: str, limit: int) -> list[Chunk]:
        """Union of per-term hits, falling back to full-text search."""
        terms = extract_terms(query, self._max_terms)
        logger.info(f"Lexical: searching terms {terms}")

        per_term = await asyncio.gather(
            *(self._term_search(term, limit) for term in terms)
        )

        seen: set[str] = set()
        unique: list[Chunk] = []
        for chunks in per_term:
            for chunk in chunks:
                if chunk.id in seen:
                    continue
                seen.add(chunk.id)
                unique.append(chunk)

        if unique:
            return unique

        tokens = normalize_query(query)
        if not tokens:
            return []

        ts_query = " & ".join(tokens)
        logger.info(f"Lexical: no term hits, full-text fallback '{ts_query}'")
        try:
            return await self._store.full_text_search(ts_query, limit)
        except Exception as e:
            logger.error(f"Lexical: substring and full-text search both failed: {e}")
            return []

    def _rank(self, chunks: list[Chunk]) -> list[SearchResult]:
        """Document chunks first, base score by position."""
        documents = [c for c in chunks if c.section_type == SectionType.DOCUMENT]
        others = [c for c in chunks if c.section_type != SectionType.DOCUMENT]

        results = []
        for i, chunk in enumerate(documents + others):
            if chunk.section_type == SectionType.DOCUMENT:
                score = DOCUMENT_BASE - i * DOCUMENT_STEP
            else:
                score = OTHER_BASE - i * OTHER_STEP
            results.append(SearchResult.from_chunk(chunk, score))
        return results

    async def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        """Find chunks matching query terms.

        Args:
            query: User query.
            limit: Max results (also per-term fetch size).

        Returns:
            Results in tiered order (documents first), scores adjusted.
        """
        chunks = await self._collect(query, limit)
        if not chunks:
            return []

        results = self._rank(chunks)
        for strategy in self._strategies:
            results = strategy.apply(query, results)

        # Rules adjust scores only; tiered order is kept
        results = results[:limit]

        logger.info(f"Lexical: {len(results)} results for '{query[:50]}'")
        return results
