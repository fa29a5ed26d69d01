"""
ConversionProgress - Tracks and displays batch conversion progress.
"""

import logging
from typing import Optional

from .conversion_stats import BatchReport, ConversionOutcome
from .source_asset import SourceAsset


class ConversionProgress:
    """
    Tracks and displays conversion progress with optional per-file output.
    """

    LABELS = {
        ConversionOutcome.PROCESSED: 'OK',
        ConversionOutcome.SKIPPED: 'SKIP',
        ConversionOutcome.FAILED: 'ERROR',
    }

    def __init__(
        self,
        show_files: bool = False,
        log_interval: int = 100,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize progress tracker.

        Args:
            show_files: If True, print each file as it completes
            log_interval: Log summary progress every N files (when not show_files)
            logger: Optional logger instance
        """
        self.show_files = show_files
        self.log_interval = log_interval
        self.logger = logger or logging.getLogger(__name__)
        self.last_logged = 0

    def on_file_converted(
        self,
        asset: SourceAsset,
        outcome: ConversionOutcome,
        report: BatchReport
    ) -> None:
        """Called from the orchestrating thread as each file completes."""
        if self.show_files:
            print(f"  [{self.LABELS[outcome]}] {asset.filename}")
            return

        done = report.completed_count
        if done - self.last_logged >= self.log_interval:
            self.last_logged = done
            self.logger.info(
                f"Progress: {done}/{report.total_to_process} "
                f"({report.processed} processed, {report.failed} failed)"
            )

    def __call__(
        self,
        asset: SourceAsset,
        outcome: ConversionOutcome,
        report: BatchReport
    ) -> None:
        """Allow use as callback."""
        self.on_file_converted(asset, outcome, report)
