"""Tests for PipelineJob class."""

import os

import pytest

from assetgen.conversion_stats import BatchReport
from assetgen.job import PipelineJob, create_job
from assetgen.pipeline import ImagePipeline


@pytest.fixture
def job(images_dir, logger):
    return create_job(images_dir, max_workers=2, logger=logger)


@pytest.fixture
def failing_pipeline(mocker, webp_dir):
    pipeline = mocker.Mock(spec=ImagePipeline)
    pipeline.derivative_dir = webp_dir
    pipeline.run.side_effect = OSError('disk on fire')
    return pipeline


class TestPipelineJob:
    """Tests for inline job runs."""

    def test_initial_status(self, job):
        """Test a new job is idle with no history."""
        status = job.status()

        assert status['state'] == PipelineJob.IDLE
        assert status['run_count'] == 0
        assert status['last_report'] is None

    def test_run_success(self, job, images_dir, webp_dir, make_jpeg):
        """Test a successful run records its report and rebuilds the index."""
        make_jpeg(os.path.join(images_dir, 'a.jpg'))

        report = job.run()

        assert isinstance(report, BatchReport)
        status = job.status()
        assert status['state'] == PipelineJob.SUCCEEDED
        assert status['run_count'] == 1
        assert status['last_report'] == {'processed': 1, 'skipped': 0, 'failed': []}
        assert status['last_finished'] >= status['last_started']
        assert os.path.exists(os.path.join(webp_dir, 'index.json'))

    def test_run_failure_is_contained(self, failing_pipeline, logger, caplog):
        """Test pipeline errors are logged and kept in status, never raised."""
        job = PipelineJob(failing_pipeline, logger=logger)

        with caplog.at_level('ERROR', logger='test'):
            result = job.run()

        assert result is None
        status = job.status()
        assert status['state'] == PipelineJob.FAILED
        assert status['last_error'] == 'disk on fire'
        assert '[image-pipeline] failed' in caplog.text

    def test_success_clears_previous_error(self, failing_pipeline, logger):
        job = PipelineJob(failing_pipeline, build_index=False, logger=logger)
        job.run()
        failing_pipeline.run.side_effect = None
        failing_pipeline.run.return_value = BatchReport()

        job.run()

        assert job.status()['last_error'] is None
        assert job.run_count == 2

    def test_inline_trigger_runs_now(self, job, images_dir, make_jpeg):
        """Test inline trigger waits for the run."""
        make_jpeg(os.path.join(images_dir, 'a.jpg'))

        assert job.trigger() is None
        assert job.state == PipelineJob.SUCCEEDED

    def test_build_index_disabled(self, images_dir, webp_dir, logger):
        job = PipelineJob(ImagePipeline(images_dir, logger=logger), build_index=False, logger=logger)

        job.run()

        assert not os.path.exists(os.path.join(webp_dir, 'index.json'))


class TestBackgroundJob:
    """Tests for background job runs."""

    def test_trigger_returns_future(self, images_dir, make_jpeg, logger):
        """Test background trigger queues the run on a worker thread."""
        make_jpeg(os.path.join(images_dir, 'a.jpg'))
        job = create_job(images_dir, background=True, logger=logger)

        try:
            future = job.trigger()
            report = future.result(timeout=30)
        finally:
            job.shutdown()

        assert report.processed == 1
        assert job.status()['state'] == PipelineJob.SUCCEEDED
        assert job.status()['pending'] == 0

    def test_runs_are_not_coalesced(self, images_dir, logger):
        """Test each trigger produces its own run."""
        job = create_job(images_dir, background=True, logger=logger)

        try:
            futures = [job.trigger() for _ in range(3)]
            for future in futures:
                future.result(timeout=30)
        finally:
            job.shutdown()

        assert job.run_count == 3

    def test_background_failure_resolves_future(self, failing_pipeline, logger):
        """Test failures do not surface through the future."""
        job = PipelineJob(failing_pipeline, background=True, logger=logger)

        try:
            result = job.trigger().result(timeout=30)
        finally:
            job.shutdown()

        assert result is None
        assert job.state == PipelineJob.FAILED
