"""Text chunking - paragraph-aware and fixed-window."""

import math
import re
from typing import Optional

from ..models.chunk import Chunk, ContentWindow

CHUNK_SIZE = 1200
CHUNK_OVERLAP = 200

_PARAGRAPH_RE = re.compile(r"\n\s*\n")


def estimate_tokens(text: str) -> int:
    """Rough token estimate: ~4 characters per token."""
    return math.ceil(len(text) / 4)


class TextChunker:
    """Splits source text into bounded, overlapping chunks."""

    def __init__(self, chunk_size: int = CHUNK_SIZE, chunk_overlap: int = CHUNK_OVERLAP):
        """Initialize chunker.

        Args:
            chunk_size: Target chunk size in characters.
            chunk_overlap: Overlap budget in characters.
        """
        if chunk_overlap >= chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")
        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def chunk_overlap(self) -> int:
        return self._chunk_overlap

    @property
    def overlap_words(self) -> int:
        """Number of trailing words carried into the next chunk."""
        return self._chunk_overlap // 5

    def _seed_with_overlap(self, previous: str, paragraph: str) -> str:
        """Start a new buffer with the tail words of the previous one.

        Words are dropped from the front of the overlap while the seeded
        buffer would exceed the chunk size.
        """
        words = previous.split()[-self.overlap_words:] if self.overlap_words else []
        budget = self._chunk_size - len(paragraph) - 2
        while words and len(" ".join(words)) > budget:
            words.pop(0)
        if not words:
            return paragraph
        return " ".join(words) + "\n\n" + paragraph

    def chunk_text(
        self,
        text: str,
        source_id: str,
        section_type: str,
        heading: Optional[str] = None,
        start_index: int = 0,
    ) -> list[Chunk]:
        """Split text on paragraph boundaries into overlapping chunks.

        A single paragraph longer than the chunk size is kept whole.

        Args:
            text: Section text.
            source_id: Owning source.
            section_type: Section tag.
            heading: Optional heading tag.
            start_index: Index of the first emitted chunk.

        Returns:
            Chunks with contiguous indices starting at ``start_index``.
        """
        pieces: list[str] = []
        current = ""

        for para in _PARAGRAPH_RE.split(text or ""):
            para = para.strip()
            if not para:
                continue

            candidate = f"{current}\n\n{para}" if current else para
            if len(candidate) > self._chunk_size and current:
                pieces.append(current)
                current = self._seed_with_overlap(current, para)
            else:
                current = candidate

        if current.strip():
            pieces.append(current)

        return [
            Chunk(
                source_id=source_id,
                text=piece,
                index=start_index + i,
                token_estimate=estimate_tokens(piece),
                section_type=section_type,
                heading=heading,
            )
            for i, piece in enumerate(pieces)
        ]

    def chunk_content(self, text: str) -> list[ContentWindow]:
        """Slide a fixed window over unstructured content.

        Args:
            text: Full document text.

        Returns:
            Windows of ``chunk_size`` characters overlapping by ``chunk_overlap``.
        """
        windows: list[ContentWindow] = []
        start = 0
        length = len(text or "")

        while start < length:
            end = min(start + self._chunk_size, length)
            windows.append(ContentWindow(text=text[start:end], start=start, end=end))
            if end >= length:
                break

            next_start = end - self._chunk_overlap
            # Never move backwards or stall
            if next_start <= start:
                next_start = end
            start = next_start

        return windows

    def windows_to_chunks(
        self,
        windows: list[ContentWindow],
        source_id: str,
        section_type: str,
        heading: Optional[str] = None,
        start_index: int = 0,
    ) -> list[Chunk]:
        """Tag fixed windows as chunks."""
        return [
            Chunk(
                source_id=source_id,
                text=w.text,
                index=start_index + i,
                token_estimate=estimate_tokens(w.text),
                section_type=section_type,
                heading=heading,
            )
            for i, w in enumerate(windows)
        ]
