"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection (LabelCache ctor)

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - StoredLabel is a plain dict (row-shaped): the primary store returns what it
      persisted, LabelCache decides whether it is loadable
"""

from typing import Protocol, TypedDict

from rxguard.core.domain_types import DocId, DrugKey
from rxguard.core.evidence_types import LabelSnapshot
from rxguard.schemas.openfda import OpenFdaSearchPayload


class StoredLabel(TypedDict):
    doc_id: str
    set_id: str
    effective_time: str
    evidence_hash: str
    evidence_text: str | None
    evidence_storage_path: str | None
    sections: dict[str, str]
    brand_names: list[str]
    generic_names: list[str]
    active_ingredients: list[str]


class LabelSource(Protocol):
    """Contract for the external label source — implemented by OpenFdaClient."""
    async def fetch_label_candidates(
        self, drug_name: str, limit: int | None = None,
    ) -> OpenFdaSearchPayload: ...


class LabelRepository(Protocol):
    """Durable primary store (doc id → snapshot fields) + secondary index."""
    async def get_label(self, doc_id: DocId) -> StoredLabel | None: ...
    async def upsert_label(
        self,
        snapshot: LabelSnapshot,
        evidence_text: str | None,
        evidence_storage_path: str | None,
    ) -> DocId: ...
    async def get_indexed_doc_id(self, drug_key: DrugKey) -> DocId | None: ...
    async def upsert_index(self, drug_key: DrugKey, snapshot: LabelSnapshot) -> None: ...


class BlobStore(Protocol):
    """Overflow storage for evidence text too large to inline."""
    async def read_text(self, path: str) -> str: ...
    async def write_text(self, path: str, text: str) -> None: ...


class ChatModel(Protocol):
    """Baseline collaborator — one chat call, returns the assistant text."""
    async def chat(
        self,
        *,
        model: str,
        messages: list[dict],
        temperature: float,
        max_tokens: int,
    ) -> str: ...
