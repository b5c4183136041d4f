"""Shared fixtures: in-memory store and deterministic embedder."""

import hashlib

import pytest

from healthkb.core.services.chunker import TextChunker
from healthkb.core.services.pipeline import KnowledgePipeline
from healthkb.infrastructure.stores.memory_store import InMemoryKnowledgeStore


class FakeEmbedder:
    """Deterministic embedder recording every batch it receives."""

    def __init__(self, dims: int = 8):
        self.dims = dims
        self.calls: list[list[str]] = []

    def vector_for(self, text: str) -> list[float]:
        digest = hashlib.sha256(text.encode()).digest()
        return [b / 255.0 + 0.01 for b in digest[: self.dims]]

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self.vector_for(t) for t in texts]


@pytest.fixture
def store() -> InMemoryKnowledgeStore:
    return InMemoryKnowledgeStore()


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def chunker() -> TextChunker:
    return TextChunker()


@pytest.fixture
def pipeline(store, embedder, chunker) -> KnowledgePipeline:
    return KnowledgePipeline(store=store, embedder=embedder, chunker=chunker)
