"""Knowledge-base retrieval engine: chunking, indexing and hybrid search."""

__version__ = "0.1.0"
