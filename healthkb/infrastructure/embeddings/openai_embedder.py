import logging
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from healthkb.core.exceptions import EmbeddingServiceError

logger = logging.getLogger(__name__)


class OpenAIEmbedder:
    """Embedding client for OpenAI-compatible embedding APIs."""

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        base_url: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        """Initialize embedder.

        Args:
            api_key: API key.
            model: Embedding model name.
            base_url: Optional API URL (OpenAI-compatible servers).
            client: Preconfigured client (tests).
        """
        self._client = client or AsyncOpenAI(api_key=api_key, base_url=base_url)
        self._model = model

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        try:
            response = await self._client.embeddings.create(
                model=self._model,
                input=texts,
                encoding_format="float",
            )
        except OpenAIError as e:
            raise EmbeddingServiceError(
                f"Failed to generate embeddings: {e}",
                {"model": self._model, "texts": len(texts)},
            ) from e

        # Items carry their input position
        data = sorted(response.data, key=lambda item: item.index)
        logger.debug(f"Embedded {len(data)} texts with {self._model}")
        return [list(item.embedding) for item in data]
