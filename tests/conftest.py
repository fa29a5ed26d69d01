"""
Pytest fixtures for the gallery store, admin actions and server.
"""

import logging

import pytest

from gallery_db import GalleryDb


@pytest.fixture
def logger():
    """Fixture providing a logger."""
    return logging.getLogger('test')


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / 'data' / 'commissions.db')


@pytest.fixture
def db(db_path, logger):
    """Fixture providing an empty store with its tables created."""
    gallery_db = GalleryDb(db_path, busy_timeout_ms=5000, logger=logger)
    gallery_db.create_tables()
    return gallery_db


@pytest.fixture
def three_characters(db):
    """Ids of A, B and C, created in that order."""
    return [db.create_character(name) for name in ('A', 'B', 'C')]


@pytest.fixture
def job(mocker):
    """Fixture providing a stand-in pipeline job."""
    pipeline_job = mocker.Mock()
    pipeline_job.status.return_value = {'state': 'idle', 'run_count': 0}
    return pipeline_job
