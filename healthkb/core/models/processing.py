"""Processing outcome models for bulk reprocessing."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ProcessStatus(Enum):
    """Outcome of processing one source."""
    PROCESSED = "processed"
    SKIPPED = "skipped"    # nothing to process
    FAILED = "failed"


@dataclass
class ProcessOutcome:
    """Result of processing a single source."""
    source_id: str
    status: ProcessStatus
    chunks: int = 0
    error: Optional[str] = None


@dataclass
class ReprocessSummary:
    """Counters folded from per-source outcomes."""
    processed: int = 0
    failed: int = 0
    skipped: int = 0

    def add(self, outcome: ProcessOutcome) -> None:
        """Count one outcome."""
        if outcome.status is ProcessStatus.PROCESSED:
            self.processed += 1
        elif outcome.status is ProcessStatus.FAILED:
            self.failed += 1
        else:
            self.skipped += 1

    def to_dict(self) -> dict[str, int]:
        return {
            "processed": self.processed,
            "failed": self.failed,
            "skipped": self.skipped,
        }
