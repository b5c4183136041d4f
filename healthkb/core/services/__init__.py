"""Core business services."""
from .chunker import TextChunker
from .fusion import fuse
from .lexical_matcher import LexicalMatcher
from .pipeline import KnowledgePipeline, format_issues_resolutions
from .search_service import SearchService
from .vector_matcher import VectorMatcher

__all__ = [
    "TextChunker",
    "fuse",
    "LexicalMatcher",
    "KnowledgePipeline",
    "format_issues_resolutions",
    "SearchService",
    "VectorMatcher",
]
