import asyncio
import logging
from functools import cached_property

from sentence_transformers import SentenceTransformer

from healthkb.core.exceptions import EmbeddingServiceError

logger = logging.getLogger(__name__)


class SentenceTransformerEmbedder:
    """Local embedding model, run off the event loop."""

    def __init__(self, model_name: str = "sentence-transformers/all-MiniLM-L6-v2"):
        self._model_name = model_name

    @cached_property
    def model(self) -> SentenceTransformer:
        logger.info(f"Loading embedding model: {self._model_name}")
        return SentenceTransformer(self._model_name)

    def warmup(self) -> None:
        _ = self.model
        logger.info("Embedding model warmed up")

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        try:
            embeddings = await asyncio.to_thread(
                self.model.encode, texts, convert_to_numpy=True
            )
        except Exception as e:
            raise EmbeddingServiceError(
                f"Local embedding failed: {e}", {"model": self._model_name}
            ) from e
        return embeddings.tolist()
