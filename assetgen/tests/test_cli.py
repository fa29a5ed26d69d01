"""Tests for CLI module."""

import json
import os

from assetgen.cli import create_parser, main


class TestCreateParser:
    """Tests for argument parser creation."""

    def test_parser_created(self):
        """Test parser is created successfully."""
        parser = create_parser()
        assert parser is not None

    def test_convert_command(self):
        """Test convert command parsing."""
        parser = create_parser()
        args = parser.parse_args([
            'convert', '-d', 'public/images', '-w', '3', '--webp-quality', '70'
        ])

        assert args.command == 'convert'
        assert args.images_dir == 'public/images'
        assert args.workers == 3
        assert args.webp_quality == 70
        assert args.jpeg_quality == 95
        assert args.webp_dirname == 'webp'

    def test_convert_flags(self):
        """Test convert boolean flags."""
        parser = create_parser()
        args = parser.parse_args(['convert', '--no-index', '-q', '--show-files'])

        assert args.no_index is True
        assert args.quiet is True
        assert args.show_files is True

    def test_index_command(self):
        """Test index command parsing."""
        parser = create_parser()
        args = parser.parse_args(['index', '--webp-dirname', 'delivery'])

        assert args.command == 'index'
        assert args.webp_dirname == 'delivery'


class TestMain:
    """Tests for main entry point."""

    def test_no_command(self):
        """Test running without command shows help."""
        result = main([])
        assert result == 1

    def test_convert_prints_summary(self, images_dir, webp_dir, make_jpeg, make_corrupt, capsys):
        """Test convert prints the batch summary as JSON and exits 0 despite failures."""
        make_jpeg(os.path.join(images_dir, 'a.jpg'))
        make_corrupt(os.path.join(images_dir, 'bad.jpg'))

        result = main(['convert', '-d', images_dir, '-q'])

        assert result == 0
        summary = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert summary == {'processed': 1, 'skipped': 0, 'failed': ['bad.jpg']}
        assert os.path.exists(os.path.join(webp_dir, 'index.json'))

    def test_convert_no_index(self, images_dir, webp_dir, make_jpeg):
        make_jpeg(os.path.join(images_dir, 'a.jpg'))

        assert main(['convert', '-d', images_dir, '-q', '--no-index']) == 0
        assert not os.path.exists(os.path.join(webp_dir, 'index.json'))

    def test_convert_missing_dir(self, tmp_path):
        """Test directory-level failures exit non-zero."""
        result = main(['convert', '-d', str(tmp_path / 'missing'), '-q'])

        assert result == 1

    def test_index_command(self, images_dir, webp_dir):
        os.makedirs(webp_dir)

        assert main(['index', '-d', images_dir]) == 0
        assert os.path.exists(os.path.join(webp_dir, 'index.json'))

    def test_index_missing_dir(self, tmp_path):
        assert main(['index', '-d', str(tmp_path / 'missing')]) == 1
