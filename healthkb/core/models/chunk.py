"""Chunk domain models."""
from dataclasses import dataclass, field
from typing import Optional


class SectionType:
    """Well-known section type tags."""
    MAIN_CONTENT = "main_content"
    ISSUES_RESOLUTIONS = "issues_resolutions"
    DOCUMENT = "document"


@dataclass
class Chunk:
    """Bounded slice of source text, the unit of lexical and vector indexing."""
    source_id: str
    text: str
    index: int
    token_estimate: int
    section_type: str
    heading: Optional[str] = None
    id: Optional[str] = None  # assigned by the store


@dataclass
class EmbeddingRecord:
    """Embedding vector owned by exactly one chunk."""
    chunk_id: str
    vector: list[float] = field(default_factory=list)
    id: Optional[str] = None


@dataclass
class SearchResult:
    """Search hit returned at query time (never persisted)."""
    chunk_id: str
    source_id: str
    text: str
    similarity: float
    section_type: Optional[str] = None
    heading: Optional[str] = None

    @classmethod
    def from_chunk(cls, chunk: Chunk, similarity: float) -> "SearchResult":
        return cls(
            chunk_id=chunk.id or "",
            source_id=chunk.source_id,
            text=chunk.text,
            similarity=similarity,
            section_type=chunk.section_type,
            heading=chunk.heading,
        )


@dataclass
class ContentWindow:
    """Fixed-size window over document content."""
    text: str
    start: int
    end: int
