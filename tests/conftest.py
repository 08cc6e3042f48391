"""
Pytest fixtures and configuration for ArcShelf tests
"""
import threading

import pytest

from arcshelf.catalog import CatalogStore
from arcshelf.deployment import DeploymentController
from arcshelf.exceptions import ArchiveEngineException


class FakeBackend:
    """Dict-backed persistence backend"""

    def __init__(self, records=None):
        self.records = dict(records or {})
        self.unreachable = False
        self.saved = []
        self.deleted = []

    def _check(self):
        if self.unreachable:
            raise OSError("backing store unreachable")

    def load_all(self):
        self._check()
        return {k: v.copy() for k, v in self.records.items()}

    def save(self, record):
        self._check()
        self.saved.append(record.id)
        self.records[record.id] = record.copy()

    def delete(self, id):
        self._check()
        self.deleted.append(id)
        return self.records.pop(id, None) is not None


class FakeEngine:
    """Archive engine double that records calls and can fail or block"""

    def __init__(self):
        self.extract_calls = []
        self.remove_calls = []
        self.fail = False
        self.started = threading.Event()
        self.release = None
        self.on_extract = None

    def extract(self, archive_path, password, target_path):
        self.extract_calls.append((archive_path, password, target_path))
        self.started.set()
        if self.release is not None:
            self.release.wait(timeout=5)
        if self.fail:
            raise ArchiveEngineException("extraction failed")
        if self.on_extract is not None:
            self.on_extract()

    def remove(self, target_path):
        self.remove_calls.append(target_path)
        if self.fail:
            raise ArchiveEngineException("removal failed")


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def catalog(backend, tmp_path):
    return CatalogStore(backend=backend, data_dir=str(tmp_path))


@pytest.fixture
def deployer(catalog, engine):
    return DeploymentController(catalog, engine)


@pytest.fixture
def sample_record_data():
    """Creation request for an archived game"""
    return {
        'title': 'Foo',
        'content_type': 'Game',
        'platform': {'platform': 'Other', 'id': 'X'},
        'archive_path': '/a.zip',
    }


@pytest.fixture
def sample_records():
    """Sample creation requests covering every platform kind"""
    return [
        {
            'title': 'Test Game 1',
            'original_title': 'テストゲーム',
            'content_type': 'Game',
            'platform': {'platform': 'Steam'},
            'platform_id': '620',
            'developer': 'Test Studio',
            'archive_path': '/archives/test1.zip',
            'size_bytes': 1024,
            'tags': [{'name': 'Puzzle', 'category': 'genre'}],
        },
        {
            'title': 'Test Comic',
            'content_type': 'Comic',
            'platform': {'platform': 'DLSite'},
            'platform_id': 'RJ123456',
            'archive_path': '/archives/comic.zip',
            'archive_password': 'hunter22',
            'tags': [{'name': 'Drama'}, {'name': 'Drama'}],
        },
        {
            'title': 'Manual Entry',
            'content_type': 'Music',
            'platform': {'platform': 'Unknown'},
        },
    ]


@pytest.fixture
def app_settings(tmp_path):
    return {
        'library': {'data_dir': str(tmp_path / 'data'), 'backup_keep': 4},
        'deployment': {'compression_level': 6},
    }


@pytest.fixture
def app(app_settings, engine):
    from arcshelf.app import create_app

    _app = create_app(
        config={'TESTING': True, 'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:'},
        settings=app_settings,
        engine=engine,
    )
    yield _app

    from arcshelf.db import db
    with _app.app_context():
        db.drop_all()


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client
