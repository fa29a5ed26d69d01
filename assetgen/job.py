"""
PipelineJob - Runs the image pipeline after admin mutations and records its status.
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from .conversion_stats import BatchReport
from .derivative_index import regenerate_index
from .image_converter import ImageConverter
from .pipeline import ImagePipeline


class PipelineJob:
    """
    Wraps one ImagePipeline so that "did the edit save" and "are the assets
    regenerated" are separately observable.

    run() never raises: failures are logged and kept in the job status.
    In background mode trigger() queues runs on a single worker thread, so
    runs are serialised but not coalesced.
    """

    IDLE = 'idle'
    QUEUED = 'queued'
    RUNNING = 'running'
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'

    def __init__(
        self,
        pipeline: ImagePipeline,
        background: bool = False,
        build_index: bool = True,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize job.

        Args:
            pipeline: Pipeline to run
            background: If True, trigger() returns immediately and the run is queued
            build_index: Rebuild the derivative index after each batch
            logger: Optional logger instance
        """
        self.pipeline = pipeline
        self.background = background
        self.build_index = build_index
        self.logger = logger or logging.getLogger(__name__)

        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._pending = 0

        self.state = self.IDLE
        self.last_started: Optional[float] = None
        self.last_finished: Optional[float] = None
        self.last_report: Optional[BatchReport] = None
        self.last_error: Optional[str] = None
        self.run_count = 0

    def run(self) -> Optional[BatchReport]:
        """Run the pipeline now. Returns the report, or None if the run failed."""
        with self._lock:
            self.state = self.RUNNING
            self.last_started = time.time()
            self.run_count += 1

        try:
            report = self.pipeline.run()
            if self.build_index:
                index = regenerate_index(self.pipeline.derivative_dir)
                self.logger.debug(f"Derivative index rebuilt: {len(index)} entries")
        except Exception as e:
            self.logger.exception(f"[image-pipeline] failed: {e}")
            with self._lock:
                self.last_error = str(e)
                self.last_finished = time.time()
                self._settle(self.FAILED)
            return None

        self.logger.info(f"[image-pipeline] updated images in {self.pipeline.derivative_dir}")
        with self._lock:
            self.last_report = report
            self.last_error = None
            self.last_finished = time.time()
            self._settle(self.SUCCEEDED)
        return report

    def trigger(self) -> Optional[Future]:
        """
        Start a run after a mutation.

        Inline mode waits for the run; background mode returns a Future.
        Neither raises pipeline errors to the caller.
        """
        if not self.background:
            self.run()
            return None

        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix='image-pipeline'
                )
            self._pending += 1
            if self.state != self.RUNNING:
                self.state = self.QUEUED
            executor = self._executor
        return executor.submit(self._run_queued)

    def _run_queued(self) -> Optional[BatchReport]:
        with self._lock:
            self._pending -= 1
        return self.run()

    def _settle(self, final_state: str) -> None:
        # Caller holds the lock.
        self.state = self.QUEUED if self._pending > 0 else final_state

    def status(self) -> dict:
        """Snapshot of the job status."""
        with self._lock:
            return {
                'state': self.state,
                'run_count': self.run_count,
                'pending': self._pending,
                'last_started': self.last_started,
                'last_finished': self.last_finished,
                'last_error': self.last_error,
                'last_report': self.last_report.to_dict() if self.last_report else None,
            }

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)


def create_job(
    source_dir: str,
    derivative_dirname: str = 'webp',
    background: bool = False,
    max_workers: Optional[int] = None,
    converter: Optional[ImageConverter] = None,
    logger: Optional[logging.Logger] = None
) -> PipelineJob:
    """Build a PipelineJob around a fresh ImagePipeline."""
    pipeline = ImagePipeline(
        source_dir,
        converter=converter,
        derivative_dirname=derivative_dirname,
        max_workers=max_workers,
        logger=logger,
    )
    return PipelineJob(pipeline, background=background, logger=logger)
