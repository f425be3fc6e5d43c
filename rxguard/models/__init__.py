"""ORM Models — durable tiers of the resolution cache.

Invariants:
    - All models inherit from Base (db/base.py)
    - LabelRecord is the primary store; DrugIndexEntry is the secondary index
    - No foreign key from index to label: index rows are written after label
      rows, and a dangling index entry is treated as a cache miss

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all / autogenerate
"""

from rxguard.models.label_record import LabelRecord  # noqa: F401
from rxguard.models.drug_index import DrugIndexEntry  # noqa: F401
