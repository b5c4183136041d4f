
import asyncio
import logging
import sys
from typing import Awaitable, Callable, TypeVar

from healthkb.config.settings import settings
from healthkb.container import configure_container, container
from healthkb.core.protocols.store import KnowledgeStoreProtocol
from healthkb.core.services.pipeline import KnowledgePipeline
from healthkb.core.services.search_service import SearchService

logging.basicConfig(level=settings.log_level, format="%(message)s")
logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _run(operation: Callable[[], Awaitable[T]]) -> T:
    """Run an operation, then close the store inside the same event loop."""
    store = container.resolve(KnowledgeStoreProtocol)
    try:
        return await operation()
    finally:
        await store.close()


def cmd_reprocess() -> int:
    """Reprocess command - rebuild chunks for every active source."""
    configure_container(settings)
    pipeline = container.resolve(KnowledgePipeline)
    summary = asyncio.run(_run(pipeline.reprocess_all_sources))
    logger.info(f"Reprocess: {summary.to_dict()}")
    return 1 if summary.failed else 0


def cmd_reprocess_issues() -> int:
    """Reprocess-issues command - rebuild issues/resolutions chunks only."""
    configure_container(settings)
    pipeline = container.resolve(KnowledgePipeline)
    summary = asyncio.run(_run(pipeline.reprocess_all_issues_resolutions))
    logger.info(f"Reprocess issues: {summary.to_dict()}")
    return 1 if summary.failed else 0


def cmd_search(query: str) -> int:
    """Search command - hybrid search and print ranked chunks."""
    configure_container(settings)
    search_service = container.resolve(SearchService)
    results = asyncio.run(_run(lambda: search_service.hybrid_search(query)))

    if not results:
        print("No results")
        return 0

    for i, r in enumerate(results, 1):
        preview = r.text[:120].replace("\n", " ")
        print(f"[{i}] {r.similarity:.3f} {r.section_type or '-'} {r.source_id}: {preview}")
    return 0


def main():
    """CLI entry point."""
    if len(sys.argv) < 2:
        print("Usage: healthkb <command> [args]")
        print("Commands: reprocess, reprocess-issues, search <query>")
        sys.exit(1)

    command = sys.argv[1]

    if command == "reprocess":
        sys.exit(cmd_reprocess())
    elif command == "reprocess-issues":
        sys.exit(cmd_reprocess_issues())
    elif command == "search":
        if len(sys.argv) < 3:
            print("Usage: healthkb search <query>")
            sys.exit(1)
        sys.exit(cmd_search(" ".join(sys.argv[2:])))
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)


if __name__ == "__main__":
    main()
