"""DrugIndexEntry ORM — secondary index from normalized drug query to label doc.

Invariants:
    - drug_key is normalize_for_key(query) (primary key)
    - doc_id points at rxguard_labels.doc_id
    - set_id / effective_time denormalized for inspection without a join
"""

from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from rxguard.db.base import Base


class DrugIndexEntry(Base):
    """Query → label mapping populated on first successful resolution."""
    __tablename__ = "rxguard_drug_index"

    drug_key: Mapped[str] = mapped_column(String(500), primary_key=True)
    doc_id: Mapped[str] = mapped_column(String(300), nullable=False, index=True)
    set_id: Mapped[str] = mapped_column(String(100), nullable=False)
    effective_time: Mapped[str] = mapped_column(String(40), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
