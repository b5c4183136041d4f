"""Exception hierarchy for the knowledge-base engine.

Store and embedding adapters translate transport failures into these
types so services can decide what is fatal and what degrades.
"""
from typing import Any


class KnowledgeBaseError(Exception):
    """Base exception for all knowledge-base errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize error.

        Args:
            message: Human-readable error message.
            details: Optional extra context for logs.
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class StoreWriteError(KnowledgeBaseError):
    """Insert or delete of chunks/embeddings failed."""


class StoreReadError(KnowledgeBaseError):
    """Select or lexical query against the store failed."""


class VectorSearchError(KnowledgeBaseError):
    """Similarity search failed."""


class EmbeddingServiceError(KnowledgeBaseError):
    """Remote embedding generation failed or returned a bad batch."""
