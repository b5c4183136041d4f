import logging
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from .config.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Container:
    _factories: dict[type, Callable[[], Any]] = field(default_factory=dict)
    _singletons: dict[type, Any] = field(default_factory=dict)
    _singleton_flags: set[type] = field(default_factory=set)

    def register(
        self, interface: type[T], factory: Callable[[], T], singleton: bool = False
    ) -> None:
        """Register factory for interface.

        Args:
            interface: Interface type.
            factory: Factory function.
            singleton: Whether to cache instance.
        """
        self._factories[interface] = factory
        if singleton:
            self._singleton_flags.add(interface)

    def resolve(self, interface: type[T]) -> T:
        if interface in self._singletons:
            return self._singletons[interface]

        if interface not in self._factories:
            raise KeyError(f"No factory registered for {interface}")

        instance = self._factories[interface]()

        if interface in self._singleton_flags:
            self._singletons[interface] = instance

        return instance

    def reset(self) -> None:
        """Reset singletons (for testing)."""
        self._singletons.clear()


container = Container()


def _build_store(settings: Settings):
    if settings.store_backend == "memory":
        from .infrastructure.stores.memory_store import InMemoryKnowledgeStore

        return InMemoryKnowledgeStore()
    if settings.store_backend == "supabase":
        from .infrastructure.stores.supabase_store import SupabaseKnowledgeStore

        return SupabaseKnowledgeStore(
            url=settings.supabase_url,
            service_key=settings.supabase_service_role_key,
            timeout=settings.http_timeout,
        )
    raise ValueError(f"Unknown store backend: {settings.store_backend}")


def _build_embedder(settings: Settings):
    if settings.embedding_backend == "sentence_transformer":
        from .infrastructure.embeddings.sentence_transformer import (
            SentenceTransformerEmbedder,
        )

        return SentenceTransformerEmbedder(settings.local_embedding_model)
    if settings.embedding_backend == "openai":
        from .infrastructure.embeddings.openai_embedder import OpenAIEmbedder

        return OpenAIEmbedder(
            api_key=settings.openai_api_key,
            model=settings.embedding_model,
            base_url=settings.openai_base_url,
        )
    raise ValueError(f"Unknown embedding backend: {settings.embedding_backend}")


def configure_container(settings: Settings) -> Container:
    """Configure container with all dependencies.

    Args:
        settings: Application settings.

    Returns:
        Configured container.
    """
    from .core.protocols.embedder import EmbedderProtocol
    from .core.protocols.store import KnowledgeStoreProtocol
    from .core.services.chunker import TextChunker
    from .core.services.lexical_matcher import LexicalMatcher
    from .core.services.pipeline import KnowledgePipeline
    from .core.services.search_service import SearchService
    from .core.services.vector_matcher import VectorMatcher

    container.register(
        KnowledgeStoreProtocol, lambda: _build_store(settings), singleton=True
    )

    container.register(
        EmbedderProtocol, lambda: _build_embedder(settings), singleton=True
    )

    container.register(
        TextChunker,
        lambda: TextChunker(settings.chunk_size, settings.chunk_overlap),
        singleton=True,
    )

    container.register(
        LexicalMatcher,
        lambda: LexicalMatcher(
            store=container.resolve(KnowledgeStoreProtocol),
            max_terms=settings.lexical_max_terms,
            score_floor=settings.lexical_score_floor,
        ),
        singleton=True,
    )

    container.register(
        VectorMatcher,
        lambda: VectorMatcher(container.resolve(KnowledgeStoreProtocol)),
        singleton=True,
    )

    container.register(
        SearchService,
        lambda: SearchService(
            embedder=container.resolve(EmbedderProtocol),
            lexical=container.resolve(LexicalMatcher),
            vector=container.resolve(VectorMatcher),
            limit=settings.search_limit,
            vector_threshold=settings.vector_threshold,
            text_weight=settings.fusion_text_weight,
            vector_weight=settings.fusion_vector_weight,
        ),
        singleton=True,
    )

    container.register(
        KnowledgePipeline,
        lambda: KnowledgePipeline(
            store=container.resolve(KnowledgeStoreProtocol),
            embedder=container.resolve(EmbedderProtocol),
            chunker=container.resolve(TextChunker),
            batch_size=settings.embedding_batch_size,
        ),
        singleton=True,
    )

    logger.info("Container configured")
    return container
