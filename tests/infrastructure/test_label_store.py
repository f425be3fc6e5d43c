"""SQL label store — primary store + secondary index on in-memory SQLite.

Tests:
    - upsert_label then get_label round-trips all row fields
    - Overflow rows keep the blob pointer and no inline text
    - Upserts are idempotent (second write overwrites, no IntegrityError)
    - Index maps drug keys to doc ids; unknown keys → None
"""

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from rxguard.core.domain_types import DocId, DrugKey, SectionId
from rxguard.db.base import Base
from rxguard.infrastructure.database import DatabaseSessionManager
from rxguard.infrastructure.label_store import SqlLabelRepository
import rxguard.models  # noqa: F401

from tests.factories import make_snapshot


@pytest.fixture
async def manager():
    mgr = DatabaseSessionManager("sqlite+aiosqlite:///:memory:")
    await mgr.create_all()
    yield mgr
    async with mgr.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await mgr.dispose()


@pytest.fixture
def repo(manager):
    return SqlLabelRepository(manager.session)


async def test_label_round_trip(repo):
    snap = make_snapshot(warnings="Stomach bleeding warning.")
    doc_id = await repo.upsert_label(snap, snap.evidence_text, None)
    assert doc_id == snap.doc_id

    stored = await repo.get_label(doc_id)
    assert stored["set_id"] == snap.set_id
    assert stored["evidence_hash"] == snap.evidence_hash
    assert stored["evidence_text"] == snap.evidence_text
    assert stored["evidence_storage_path"] is None
    assert stored["sections"][SectionId.WARNINGS.value] == "Stomach bleeding warning."
    assert stored["brand_names"] == ["Advil"]
    assert stored["active_ingredients"] == ["Ibuprofen 200 mg"]


async def test_overflow_row_keeps_pointer_only(repo):
    snap = make_snapshot()
    await repo.upsert_label(snap, None, "rxguard/labels/x.txt")
    stored = await repo.get_label(snap.doc_id)
    assert stored["evidence_text"] is None
    assert stored["evidence_storage_path"] == "rxguard/labels/x.txt"


async def test_upsert_is_idempotent(repo):
    snap = make_snapshot()
    await repo.upsert_label(snap, snap.evidence_text, None)
    await repo.upsert_label(snap, None, "rxguard/labels/moved.txt")
    stored = await repo.get_label(snap.doc_id)
    assert stored["evidence_storage_path"] == "rxguard/labels/moved.txt"


async def test_missing_label_is_none(repo):
    assert await repo.get_label(DocId("nope_1")) is None


async def test_index_round_trip(repo):
    first = make_snapshot(set_id="s1")
    second = make_snapshot(set_id="s2")
    key = DrugKey("advil")
    assert await repo.get_indexed_doc_id(key) is None

    await repo.upsert_index(key, first)
    assert await repo.get_indexed_doc_id(key) == first.doc_id

    await repo.upsert_index(key, second)
    assert await repo.get_indexed_doc_id(key) == second.doc_id


async def test_health_check(manager):
    assert await manager.health_check() is True
