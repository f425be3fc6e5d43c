"""Service test fixtures — real SQL store on in-memory SQLite, fake label source.

Invariants:
    - Every test gets a fresh in-memory database and a fresh LabelCache
    - The label source is a scripted fake: no network, call count recorded
    - Blob store writes under tmp_path

Design Decisions:
    - Mock at the LabelSource/ChatModel boundary, real repository and cache
"""

import pytest

from rxguard.config import Settings
from rxguard.db.base import Base
from rxguard.infrastructure.blob_store import FileBlobStore
from rxguard.infrastructure.database import DatabaseSessionManager
from rxguard.infrastructure.label_store import SqlLabelRepository
from rxguard.services.label_cache import LabelCache
from rxguard.services.rxguard_answer import RxGuardAnswerService
import rxguard.models  # noqa: F401

from tests.services.fakes import FakeLabelSource


@pytest.fixture
async def db_manager():
    mgr = DatabaseSessionManager("sqlite+aiosqlite:///:memory:")
    await mgr.create_all()
    yield mgr
    async with mgr.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await mgr.dispose()


@pytest.fixture
def repository(db_manager):
    return SqlLabelRepository(db_manager.session)


@pytest.fixture
def blob_store(tmp_path):
    return FileBlobStore(tmp_path / "blobs")


@pytest.fixture
def label_source():
    return FakeLabelSource()


@pytest.fixture
def label_cache(label_source, repository, blob_store):
    return LabelCache(label_source, repository, blob_store)


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        rxguard_llm_base_url=None,
        baseline_timeout_seconds=1.0,
    )


@pytest.fixture
def answer_service(label_cache, settings):
    return RxGuardAnswerService(label_cache, settings)
