"""Tests for ConversionProgress class."""

from assetgen.conversion_progress import ConversionProgress
from assetgen.conversion_stats import BatchReport, ConversionOutcome


class TestConversionProgress:
    """Tests for ConversionProgress class."""

    def test_init_defaults(self, logger):
        """Test default initialization."""
        progress = ConversionProgress(logger=logger)

        assert progress.show_files is False
        assert progress.log_interval == 100

    def test_show_files_ok(self, logger, sample_asset, capsys):
        """Test show_files output for a processed file."""
        progress = ConversionProgress(show_files=True, logger=logger)

        progress.on_file_converted(sample_asset, ConversionOutcome.PROCESSED, BatchReport())

        captured = capsys.readouterr()
        assert '[OK] photo.jpg' in captured.out

    def test_show_files_error(self, logger, sample_asset, capsys):
        """Test show_files output for a failed file."""
        progress = ConversionProgress(show_files=True, logger=logger)

        progress.on_file_converted(sample_asset, ConversionOutcome.FAILED, BatchReport())

        captured = capsys.readouterr()
        assert 'ERROR' in captured.out

    def test_interval_logging(self, logger, sample_asset, caplog):
        """Test a progress line is logged every log_interval files."""
        progress = ConversionProgress(log_interval=2, logger=logger)
        report = BatchReport(total_to_process=4)

        with caplog.at_level('INFO', logger='test'):
            for name in ('a.jpg', 'b.jpg', 'c.jpg'):
                report.record(name, ConversionOutcome.PROCESSED)
                progress(sample_asset, ConversionOutcome.PROCESSED, report)

        assert caplog.text.count('Progress:') == 1
        assert 'Progress: 2/4' in caplog.text
        assert progress.last_logged == 2
