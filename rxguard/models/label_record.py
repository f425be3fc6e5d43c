"""LabelRecord ORM — persists one pinned label snapshot per (set_id, effective_time).

Invariants:
    - doc_id is "{set_id}_{effective_time}" (primary key, never reassigned)
    - Exactly one of evidence_text / evidence_storage_path is set for a loadable row
    - evidence_hash is the SHA-256 of the evidence text wherever it is stored
    - sections JSON is keyed by SectionId values (camelCase)

Design Decisions:
    - JSON columns for sections and name lists: read back whole, never queried
    - Oversized evidence moves to the blob store; the row keeps only the pointer
"""

from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from rxguard.core.domain_types import LABEL_SOURCE
from rxguard.db.base import Base


class LabelRecord(Base):
    """Primary store entry — immutable evidence for one label version."""
    __tablename__ = "rxguard_labels"

    doc_id: Mapped[str] = mapped_column(String(300), primary_key=True)
    set_id: Mapped[str] = mapped_column(String(100), nullable=False)
    effective_time: Mapped[str] = mapped_column(String(40), nullable=False)
    evidence_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    evidence_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    evidence_storage_path: Mapped[str | None] = mapped_column(
        String(500), nullable=True,
    )
    sections: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    brand_names: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    generic_names: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    active_ingredients: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list,
    )
    source: Mapped[str] = mapped_column(
        String(20), nullable=False, default=LABEL_SOURCE,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
