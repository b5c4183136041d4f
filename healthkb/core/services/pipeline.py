"""Pipeline service - chunk, persist and embed knowledge-base content."""

import asyncio
import json
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Optional, Union

from ..exceptions import EmbeddingServiceError, StoreWriteError
from ..models.chunk import Chunk, EmbeddingRecord, SectionType
from ..models.processing import ProcessOutcome, ProcessStatus, ReprocessSummary
from ..models.source import IssueRecord, SourceRecord
from ..protocols.embedder import EmbedderProtocol
from ..protocols.store import KnowledgeStoreProtocol
from .chunker import TextChunker

logger = logging.getLogger(__name__)

MAIN_CONTENT_HEADING = "Main Content"
ISSUES_HEADING = "Common Issues/Questions & Resolution/Answer"
ISSUE_SEPARATOR = "\n\n---\n\n"

_RESOLUTION_LABELS = {
    "QUESTION": "Answer",
    "TOPICINFO": "Information",
    "GUIDANCE": "Details",
}


def _decode_issues(raw: Union[str, list, None]) -> list[IssueRecord]:
    if not raw:
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("issues_resolutions is not valid JSON, skipping")
            return []
    if not isinstance(raw, list):
        return []
    return [
        IssueRecord.from_dict(item) if isinstance(item, dict) else item
        for item in raw
        if isinstance(item, (dict, IssueRecord))
    ]


def format_issues_resolutions(raw: Union[str, list, None]) -> str:
    """Flatten issue/question records into label-prefixed text blocks.

    Args:
        raw: JSON string or list of ``{type, content, resolution}`` records.

    Returns:
        Blocks joined by a ``---`` separator, or "" if there is nothing usable.
    """
    blocks = []
    for record in _decode_issues(raw):
        kind = (record.type or "issue").upper()
        text = f"{kind}: {record.content}"
        if record.resolution:
            label = _RESOLUTION_LABELS.get(kind, "Resolution")
            text += f"\n{label}: {record.resolution}"
        blocks.append(text)
    return ISSUE_SEPARATOR.join(blocks)


def document_heading(document_id: str) -> str:
    return f"Document: {document_id}"


class KnowledgePipeline:
    """Delete → chunk → persist → embed → persist embeddings."""

    def __init__(
        self,
        store: KnowledgeStoreProtocol,
        embedder: EmbedderProtocol,
        chunker: Optional[TextChunker] = None,
        batch_size: int = 100,
    ):
        """Initialize pipeline.

        Args:
            store: Knowledge store.
            embedder: Embedding service.
            chunker: Text chunker.
            batch_size: Texts per embedding call.
        """
        self._store = store
        self._embedder = embedder
        self._chunker = chunker or TextChunker()
        self._batch_size = batch_size
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: defaultdict[str, int] = defaultdict(int)

    @asynccontextmanager
    async def source_lock(self, source_id: str) -> AsyncIterator[None]:
        """Serialize writes for one source.

        The lock is dropped once no caller holds or waits on it.
        """
        lock = self._locks.setdefault(source_id, asyncio.Lock())
        self._lock_users[source_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[source_id] -= 1
            if not self._lock_users[source_id]:
                del self._lock_users[source_id]
                del self._locks[source_id]

    async def _embed(self, texts: list[str]) -> list[list[float]]:
        """Embed texts batch by batch, keeping submission order."""
        vectors: list[list[float]] = []
        for i in range(0, len(texts), self._batch_size):
            batch = texts[i : i + self._batch_size]
            batch_vectors = await self._embedder.embed(batch)
            if len(batch_vectors) != len(batch):
                raise EmbeddingServiceError(
                    "Embedding count does not match submitted texts",
                    {"submitted": len(batch), "returned": len(batch_vectors)},
                )
            vectors.extend(batch_vectors)
        return vectors

    async def _persist(self, chunks: list[Chunk]) -> list[Chunk]:
        """Save chunks, embed them and save one embedding per chunk."""
        saved = await self._store.insert_chunks(chunks)
        if len(saved) != len(chunks) or any(c.id is None for c in saved):
            raise StoreWriteError(
                "Store did not return ids for all inserted chunks",
                {"submitted": len(chunks), "returned": len(saved)},
            )

        vectors = await self._embed([c.text for c in saved])

        records = [
            EmbeddingRecord(chunk_id=chunk.id, vector=vector)
            for chunk, vector in zip(saved, vectors)
        ]
        await self._store.insert_embeddings(records)
        return saved

    async def _next_index(self, source_id: str) -> int:
        existing = await self._store.select_chunks_by_source(source_id)
        return max((c.index for c in existing), default=-1) + 1

    async def process_content(
        self,
        source_id: str,
        main_content: Optional[str],
        sections: Optional[dict[str, str]] = None,
    ) -> list[Chunk]:
        """Rebuild all chunks and embeddings of a source.

        Args:
            source_id: Source ID.
            main_content: Main text of the source.
            sections: Section type → section text.

        Returns:
            Persisted chunks.
        """
        async with self.source_lock(source_id):
            await self._store.delete_chunks_by_source(source_id)

            chunks: list[Chunk] = []
            if main_content:
                chunks.extend(
                    self._chunker.chunk_text(
                        main_content,
                        source_id,
                        SectionType.MAIN_CONTENT,
                        MAIN_CONTENT_HEADING,
                    )
                )

            for section_type, section_text in (sections or {}).items():
                if not section_text:
                    continue
                chunks.extend(
                    self._chunker.chunk_text(
                        section_text,
                        source_id,
                        section_type,
                        section_type,
                        start_index=len(chunks),
                    )
                )

            if not chunks:
                logger.info(f"Source {source_id}: no content to chunk")
                return []

            saved = await self._persist(chunks)
            logger.info(f"Source {source_id}: {len(saved)} chunks embedded")
            return saved

    async def process_issues_resolutions(
        self, source_id: str, issues_resolutions: Union[str, list, None]
    ) -> int:
        """Rebuild only the issues/resolutions slice of a source.

        Returns:
            Number of chunks created.
        """
        text = format_issues_resolutions(issues_resolutions)
        if not text:
            logger.info(f"Source {source_id}: no issues_resolutions content")
            return 0

        async with self.source_lock(source_id):
            await self._store.delete_chunks_by_source(
                source_id, section_type=SectionType.ISSUES_RESOLUTIONS
            )

            chunks = self._chunker.chunk_text(
                text,
                source_id,
                SectionType.ISSUES_RESOLUTIONS,
                ISSUES_HEADING,
                start_index=await self._next_index(source_id),
            )
            if not chunks:
                return 0

            saved = await self._persist(chunks)
            logger.info(f"Source {source_id}: {len(saved)} issues_resolutions chunks")
            return len(saved)

    async def process_document(
        self, source_id: str, document_id: str, content: str
    ) -> list[Chunk]:
        """Index an attached document with fixed-window chunking.

        Replaces previous chunks of the same document only.

        Returns:
            Persisted chunks.
        """
        heading = document_heading(document_id)

        async with self.source_lock(source_id):
            await self._store.delete_chunks_by_source(
                source_id, section_type=SectionType.DOCUMENT, heading=heading
            )

            windows = self._chunker.chunk_content(content)
            if not windows:
                logger.info(f"Document {document_id}: empty content")
                return []

            chunks = self._chunker.windows_to_chunks(
                windows,
                source_id,
                SectionType.DOCUMENT,
                heading,
                start_index=await self._next_index(source_id),
            )
            saved = await self._persist(chunks)
            logger.info(
                f"Document {document_id} (source {source_id}): {len(saved)} chunks"
            )
            return saved

    async def remove_source(self, source_id: str) -> None:
        """Delete every chunk (and embedding) of a source."""
        async with self.source_lock(source_id):
            await self._store.delete_chunks_by_source(source_id)
        logger.info(f"Source {source_id}: chunks removed")

    async def _content_outcome(self, source: SourceRecord) -> ProcessOutcome:
        if not source.content:
            return ProcessOutcome(source.id, ProcessStatus.SKIPPED)
        saved = await self.process_content(source.id, source.content, source.sections)
        return ProcessOutcome(source.id, ProcessStatus.PROCESSED, chunks=len(saved))

    async def _issues_outcome(self, source: SourceRecord) -> ProcessOutcome:
        if not format_issues_resolutions(source.issues_resolutions):
            return ProcessOutcome(source.id, ProcessStatus.SKIPPED)
        created = await self.process_issues_resolutions(source.id, source.issues_resolutions)
        status = ProcessStatus.PROCESSED if created > 0 else ProcessStatus.SKIPPED
        return ProcessOutcome(source.id, status, chunks=created)

    async def _run_isolated(
        self,
        source: SourceRecord,
        handler: Callable[[SourceRecord], Awaitable[ProcessOutcome]],
    ) -> ProcessOutcome:
        """Run one source, turning any failure into a FAILED outcome."""
        try:
            return await handler(source)
        except Exception as e:
            logger.error(f"Failed to process source {source.id}: {e}")
            return ProcessOutcome(source.id, ProcessStatus.FAILED, error=str(e))

    async def _reprocess(
        self,
        name: str,
        handler: Callable[[SourceRecord], Awaitable[ProcessOutcome]],
    ) -> ReprocessSummary:
        sources = await self._store.select_active_sources()
        logger.info(f"[{name}] Starting: {len(sources)} active sources")

        summary = ReprocessSummary()
        for source in sources:
            outcome = await self._run_isolated(source, handler)
            summary.add(outcome)
            if outcome.status is ProcessStatus.PROCESSED:
                logger.info(
                    f"[{name}] Processed source {source.id} ({source.title}): "
                    f"{outcome.chunks} chunks"
                )

        logger.info(
            f"[{name}] Complete: {summary.processed} processed, "
            f"{summary.failed} failed, {summary.skipped} skipped"
        )
        return summary

    async def reprocess_all_sources(self) -> ReprocessSummary:
        """Rebuild chunks and embeddings for every active source."""
        return await self._reprocess("reprocess_all_sources", self._content_outcome)

    async def reprocess_all_issues_resolutions(self) -> ReprocessSummary:
        """Rebuild the issues/resolutions slice of every active source."""
        return await self._reprocess(
            "reprocess_all_issues_resolutions", self._issues_outcome
        )
