"""SQL Label Store — durable primary store and secondary index for pinned labels.

Invariants:
    - Every write is an upsert (INSERT ... ON CONFLICT DO UPDATE): concurrent
      first-resolutions of the same label overwrite each other harmlessly
    - One short session per operation; no session is held across another await
    - Reads return row-shaped dicts (StoredLabel), never ORM instances
    - All SQLAlchemy failures surface as DatabaseError (via DatabaseSessionManager)

Design Decisions:
    - Dialect-specific insert (postgresql / sqlite): both expose the same
      on_conflict_do_update API, so one code path serves prod and tests
    - sections persisted keyed by SectionId value strings (JSON-safe)
"""

import logging
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from rxguard.core.domain_types import DocId, DrugKey, LABEL_SOURCE
from rxguard.core.evidence_types import LabelSnapshot
from rxguard.core.repository_protocols import StoredLabel
from rxguard.models.drug_index import DrugIndexEntry
from rxguard.models.label_record import LabelRecord

logger = logging.getLogger(__name__)

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]


def _upsert(session: AsyncSession, model, values: dict, key: str):
    """Build an idempotent upsert for the session's dialect."""
    dialect = session.get_bind().dialect.name
    insert_fn = pg_insert if dialect == "postgresql" else sqlite_insert
    stmt = insert_fn(model).values(**values)
    return stmt.on_conflict_do_update(
        index_elements=[key],
        set_={col: stmt.excluded[col] for col in values if col != key},
    )


def _to_stored(row: LabelRecord) -> StoredLabel:
    return StoredLabel(
        doc_id=row.doc_id,
        set_id=row.set_id,
        effective_time=row.effective_time,
        evidence_hash=row.evidence_hash,
        evidence_text=row.evidence_text,
        evidence_storage_path=row.evidence_storage_path,
        sections=dict(row.sections or {}),
        brand_names=list(row.brand_names or []),
        generic_names=list(row.generic_names or []),
        active_ingredients=list(row.active_ingredients or []),
    )


class SqlLabelRepository:
    """LabelRepository backed by the rxguard_labels / rxguard_drug_index tables."""

    def __init__(self, session_scope: SessionScope):
        self._session_scope = session_scope

    async def get_label(self, doc_id: DocId) -> StoredLabel | None:
        async with self._session_scope() as db:
            result = await db.execute(
                select(LabelRecord).where(LabelRecord.doc_id == doc_id),
            )
            row = result.scalar_one_or_none()
            return _to_stored(row) if row else None

    async def upsert_label(
        self,
        snapshot: LabelSnapshot,
        evidence_text: str | None,
        evidence_storage_path: str | None,
    ) -> DocId:
        doc_id = snapshot.doc_id
        values = {
            "doc_id": doc_id,
            "set_id": snapshot.set_id,
            "effective_time": snapshot.effective_time,
            "evidence_hash": snapshot.evidence_hash,
            "evidence_text": evidence_text,
            "evidence_storage_path": evidence_storage_path,
            "sections": {sid.value: text for sid, text in snapshot.sections.items()},
            "brand_names": list(snapshot.brand_names),
            "generic_names": list(snapshot.generic_names),
            "active_ingredients": list(snapshot.active_ingredients_list),
            "source": LABEL_SOURCE,
            "updated_at": datetime.now(timezone.utc),
        }
        async with self._session_scope() as db:
            await db.execute(_upsert(db, LabelRecord, values, "doc_id"))
            await db.commit()
        logger.info("Label snapshot persisted", extra={"doc_id": doc_id})
        return doc_id

    async def get_indexed_doc_id(self, drug_key: DrugKey) -> DocId | None:
        async with self._session_scope() as db:
            result = await db.execute(
                select(DrugIndexEntry.doc_id).where(
                    DrugIndexEntry.drug_key == drug_key,
                ),
            )
            doc_id = result.scalar_one_or_none()
            return DocId(doc_id) if doc_id else None

    async def upsert_index(self, drug_key: DrugKey, snapshot: LabelSnapshot) -> None:
        values = {
            "drug_key": drug_key,
            "doc_id": snapshot.doc_id,
            "set_id": snapshot.set_id,
            "effective_time": snapshot.effective_time,
            "updated_at": datetime.now(timezone.utc),
        }
        async with self._session_scope() as db:
            await db.execute(_upsert(db, DrugIndexEntry, values, "drug_key"))
            await db.commit()
