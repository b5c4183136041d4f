"""Tests for embedding adapters."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import numpy as np
import openai
import pytest

from healthkb.core.exceptions import EmbeddingServiceError
from healthkb.infrastructure.embeddings.openai_embedder import OpenAIEmbedder
from healthkb.infrastructure.embeddings.sentence_transformer import (
    SentenceTransformerEmbedder,
)


def _openai_client(create: AsyncMock) -> MagicMock:
    client = MagicMock()
    client.embeddings.create = create
    return client


class TestOpenAIEmbedder:

    @pytest.mark.asyncio
    async def test_restores_input_order(self) -> None:
        """Vectors are matched to inputs by their reported index."""
        create = AsyncMock(return_value=SimpleNamespace(data=[
            SimpleNamespace(index=1, embedding=[0.2]),
            SimpleNamespace(index=0, embedding=[0.1]),
        ]))
        embedder = OpenAIEmbedder("sk-test", model="m", client=_openai_client(create))

        vectors = await embedder.embed(["a", "b"])

        assert vectors == [[0.1], [0.2]]
        create.assert_awaited_once_with(model="m", input=["a", "b"], encoding_format="float")

    @pytest.mark.asyncio
    async def test_empty_input(self) -> None:
        create = AsyncMock()
        embedder = OpenAIEmbedder("sk-test", client=_openai_client(create))

        assert await embedder.embed([]) == []
        create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_api_error_wrapped(self) -> None:
        request = httpx.Request("POST", "https://api.openai.com/v1/embeddings")
        create = AsyncMock(side_effect=openai.APIConnectionError(request=request))
        embedder = OpenAIEmbedder("sk-test", client=_openai_client(create))

        with pytest.raises(EmbeddingServiceError):
            await embedder.embed(["a"])


class TestSentenceTransformerEmbedder:

    @pytest.mark.asyncio
    async def test_encodes_off_loop(self) -> None:
        embedder = SentenceTransformerEmbedder("local-model")
        model = MagicMock()
        model.encode.return_value = np.array([[0.5, 0.5], [1.0, 0.0]])
        embedder.__dict__["model"] = model

        vectors = await embedder.embed(["a", "b"])

        assert vectors == [[0.5, 0.5], [1.0, 0.0]]
        model.encode.assert_called_once_with(["a", "b"], convert_to_numpy=True)

    @pytest.mark.asyncio
    async def test_failure_wrapped(self) -> None:
        embedder = SentenceTransformerEmbedder("local-model")
        model = MagicMock()
        model.encode.side_effect = RuntimeError("CUDA out of memory")
        embedder.__dict__["model"] = model

        with pytest.raises(EmbeddingServiceError):
            await embedder.embed(["a"])
