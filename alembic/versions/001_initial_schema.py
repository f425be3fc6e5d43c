"""Initial schema — label primary store and drug-name secondary index.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "rxguard_labels",
        sa.Column("doc_id", sa.String(300), primary_key=True),
        sa.Column("set_id", sa.String(100), nullable=False),
        sa.Column("effective_time", sa.String(40), nullable=False),
        sa.Column("evidence_hash", sa.String(64), nullable=False),
        sa.Column("evidence_text", sa.Text, nullable=True),
        sa.Column("evidence_storage_path", sa.String(500), nullable=True),
        sa.Column("sections", sa.JSON, nullable=False),
        sa.Column("brand_names", sa.JSON, nullable=False),
        sa.Column("generic_names", sa.JSON, nullable=False),
        sa.Column("active_ingredients", sa.JSON, nullable=False),
        sa.Column("source", sa.String(20), nullable=False, server_default="openFDA"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "rxguard_drug_index",
        sa.Column("drug_key", sa.String(500), primary_key=True),
        sa.Column("doc_id", sa.String(300), nullable=False),
        sa.Column("set_id", sa.String(100), nullable=False),
        sa.Column("effective_time", sa.String(40), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_rxguard_drug_index_doc_id", "rxguard_drug_index", ["doc_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_rxguard_drug_index_doc_id", table_name="rxguard_drug_index")
    op.drop_table("rxguard_drug_index")
    op.drop_table("rxguard_labels")
