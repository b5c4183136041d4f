"""Embedder protocol for dependency injection."""
from typing import Protocol, runtime_checkable


@runtime_checkable
class EmbedderProtocol(Protocol):
    """Protocol for embedding service."""

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch of texts in a single remote call.

        Args:
            texts: Texts to embed.

        Returns:
            One vector per text, in the same order as ``texts``.

        Raises:
            EmbeddingServiceError: If the remote model fails.
        """
        ...
