"""
Pytest fixtures for assetgen tests.
"""

import os
import time

import pytest


@pytest.fixture
def logger():
    """Fixture providing a logger."""
    import logging
    return logging.getLogger('test')


@pytest.fixture
def images_dir(tmp_path):
    """Fixture providing an empty source images directory."""
    path = tmp_path / 'images'
    path.mkdir()
    return str(path)


@pytest.fixture
def webp_dir(images_dir):
    """Path of the derivative directory (not created)."""
    return os.path.join(images_dir, 'webp')


@pytest.fixture
def make_jpeg():
    """Fixture providing a factory that writes a small JPEG."""
    from PIL import Image

    def _make(path, color='red', size=(64, 48), mtime=None):
        img = Image.new('RGB', size, color=color)
        img.save(path, format='JPEG')
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path

    return _make


@pytest.fixture
def make_png():
    """Fixture providing a factory that writes a small RGBA PNG."""
    from PIL import Image

    def _make(path, color=(0, 0, 255, 128), size=(64, 48), mtime=None):
        img = Image.new('RGBA', size, color=color)
        img.save(path, format='PNG')
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path

    return _make


@pytest.fixture
def make_corrupt():
    """Fixture providing a factory that writes bytes no codec can read."""
    def _make(path):
        with open(path, 'wb') as f:
            f.write(b'not an image at all')
        return path

    return _make


@pytest.fixture
def past():
    """A timestamp comfortably in the past, for mtime ordering."""
    return time.time() - 3600


@pytest.fixture
def sample_asset(images_dir, make_jpeg):
    """Fixture providing a SourceAsset for an existing JPEG master."""
    from assetgen.source_asset import SourceAsset

    path = make_jpeg(os.path.join(images_dir, 'photo.jpg'))
    return SourceAsset.from_path(path)
