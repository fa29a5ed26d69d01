"""
BatchReport - Per-file outcomes and aggregate counts for one pipeline run.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class ConversionOutcome(str, Enum):
    """Result of converting a single source file."""
    PROCESSED = 'processed'
    SKIPPED = 'skipped'
    FAILED = 'failed'


@dataclass
class BatchReport:
    """
    Statistics for a conversion batch.

    Attributes:
        total_to_process: Number of candidate source files
        processed: Files that produced a new master or derivative
        skipped: Files whose outputs were already fresh
        failed_files: Names of files that failed to convert
        start_time: Start timestamp
        finish_time: Set once the batch has been joined
    """
    total_to_process: int = 0
    processed: int = 0
    skipped: int = 0
    failed_files: List[str] = field(default_factory=list)
    start_time: float = field(default_factory=time.time)
    finish_time: Optional[float] = None

    def record(self, filename: str, outcome: ConversionOutcome) -> None:
        """Fold one file's outcome into the counts."""
        if outcome == ConversionOutcome.PROCESSED:
            self.processed += 1
        elif outcome == ConversionOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed_files.append(filename)

    def finish(self) -> None:
        self.failed_files.sort()
        self.finish_time = time.time()

    @property
    def failed(self) -> int:
        return len(self.failed_files)

    @property
    def has_failures(self) -> bool:
        return bool(self.failed_files)

    @property
    def completed_count(self) -> int:
        """Total completed (processed + skipped + failed)."""
        return self.processed + self.skipped + self.failed

    @property
    def remaining_count(self) -> int:
        return self.total_to_process - self.completed_count

    @property
    def elapsed_seconds(self) -> float:
        end = self.finish_time if self.finish_time is not None else time.time()
        return end - self.start_time

    def summary_line(self) -> str:
        if self.has_failures:
            return (
                f"Processed {self.completed_count} files, "
                f"but failed: {', '.join(self.failed_files)}"
            )
        return f"Processed {self.completed_count} files"

    def to_dict(self) -> dict:
        """Summary in the batch job's output shape."""
        return {
            'processed': self.processed,
            'skipped': self.skipped,
            'failed': list(self.failed_files),
        }
