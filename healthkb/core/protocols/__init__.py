"""Protocol interfaces for dependency injection."""
from .embedder import EmbedderProtocol
from .store import KnowledgeStoreProtocol

__all__ = [
    "EmbedderProtocol",
    "KnowledgeStoreProtocol",
]
