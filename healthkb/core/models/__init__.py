"""Domain models."""
from .chunk import (
    Chunk,
    ContentWindow,
    EmbeddingRecord,
    SearchResult,
    SectionType,
)
from .source import IssueRecord, SourceRecord
from .processing import ProcessOutcome, ProcessStatus, ReprocessSummary

__all__ = [
    "Chunk",
    "ContentWindow",
    "EmbeddingRecord",
    "SearchResult",
    "SectionType",
    "IssueRecord",
    "SourceRecord",
    "ProcessOutcome",
    "ProcessStatus",
    "ReprocessSummary",
]
