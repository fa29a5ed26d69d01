"""
ImagePipeline - Fans conversions out over a bounded worker pool and joins one report.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Optional

from .conversion_stats import BatchReport, ConversionOutcome
from .image_converter import ImageConverter
from .scanner import Scanner
from .source_asset import SourceAsset

ProgressCallback = Callable[[SourceAsset, ConversionOutcome, BatchReport], None]


class ImagePipeline:
    """
    Converts every candidate source file concurrently.

    A failed file never fails the batch; only directory-level errors
    (listing the sources, creating the derivative directory) propagate.
    """

    def __init__(
        self,
        source_dir: str,
        converter: Optional[ImageConverter] = None,
        derivative_dirname: str = 'webp',
        max_workers: Optional[int] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize pipeline.

        Args:
            source_dir: Directory holding .jpg masters and .png uploads
            converter: Converter instance (default: ImageConverter())
            derivative_dirname: Subdirectory of source_dir receiving .webp files
            max_workers: Worker pool size (default: CPU count)
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self.source_dir = source_dir
        self.derivative_dir = os.path.join(source_dir, derivative_dirname)
        self.converter = converter or ImageConverter(logger=self.logger)
        self.max_workers = max_workers or os.cpu_count() or 4
        self.scanner = Scanner(source_dir, logger=self.logger)

    def run(self, progress: Optional[ProgressCallback] = None) -> BatchReport:
        """
        Run one conversion batch.

        Args:
            progress: Optional callback invoked as each file completes

        Returns:
            BatchReport with processed/skipped counts and failed file names

        Raises:
            OSError: on directory-level failures
        """
        assets = self.scanner.scan()
        os.makedirs(self.derivative_dir, exist_ok=True)

        report = BatchReport(total_to_process=len(assets))
        self.logger.debug(
            f"Converting {len(assets)} files with {self.max_workers} workers"
        )

        if assets:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = {
                    executor.submit(self.converter.convert, asset, self.derivative_dir): asset
                    for asset in assets
                }
                for future in as_completed(futures):
                    asset = futures[future]
                    try:
                        outcome = future.result()
                    except Exception as e:
                        # Converters are expected to contain their own errors.
                        self.logger.error(f"Error converting {asset.filename}: {e}")
                        outcome = ConversionOutcome.FAILED
                    report.record(asset.filename, outcome)
                    if progress:
                        progress(asset, outcome, report)

        report.finish()

        if report.has_failures:
            self.logger.warning(report.summary_line())
        else:
            self.logger.info(
                f"{report.summary_line()} ({report.processed} processed, "
                f"{report.skipped} skipped, {report.elapsed_seconds:.1f}s)"
            )
        return report


def run_pipeline(
    source_dir: str,
    derivative_dirname: str = 'webp',
    max_workers: Optional[int] = None,
    progress: Optional[ProgressCallback] = None,
    logger: Optional[logging.Logger] = None
) -> BatchReport:
    """Convert everything under source_dir with default converter settings."""
    pipeline = ImagePipeline(
        source_dir,
        derivative_dirname=derivative_dirname,
        max_workers=max_workers,
        logger=logger,
    )
    return pipeline.run(progress=progress)
