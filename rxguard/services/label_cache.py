"""Resolution Cache — drug query → pinned LabelSnapshot through four tiers.

Invariants:
    - Lookup order: memory → secondary index → primary store → blob (pointer only)
    - A query key is normalize_for_key(query); nothing else keys any tier
    - An empty key never reads or writes the memory/index key tiers: such
      queries always resolve upstream
    - Ambiguous and not-found outcomes are NEVER persisted in any tier
    - Write-through order on miss: blob (if oversized) → primary record →
      index → memory; the blob exists before any row points at it
    - Evidence over inline_max_bytes (UTF-8) lives only in the blob store
    - Snapshots are never refreshed or invalidated once pinned

Design Decisions:
    - Explicit object built once in the lifespan and passed by reference:
      no module-level caches, tests get a fresh cache per case
    - Memory tier is two dicts (key → doc id, doc id → snapshot); asyncio runs
      one coroutine at a time, so dict reads/writes need no lock
    - No in-flight de-duplication: concurrent first resolutions may both fetch
      upstream; upserts make the duplicate writes harmless (see DESIGN.md)
    - A row with neither inline text nor blob pointer is a miss, not an error
"""

import logging

from rxguard.core.domain_types import DocId, DrugKey, MAX_AMBIGUITY_OPTIONS
from rxguard.core.evidence import build_label_snapshot
from rxguard.core.evidence_types import (
    LabelSnapshot, ResolutionAmbiguous, ResolutionNotFound, ResolutionOk,
    ResolutionOutcome,
)
from rxguard.core.label_selection import (
    ambiguity_options, choose_deterministic_record, detect_ambiguity,
)
from rxguard.core.repository_protocols import (
    BlobStore, LabelRepository, LabelSource, StoredLabel,
)
from rxguard.core.text_normalize import normalize_for_key, utf8_size
from rxguard.infrastructure.blob_store import label_blob_path

logger = logging.getLogger(__name__)

DEFAULT_CANDIDATE_LIMIT = 8
DEFAULT_INLINE_MAX_BYTES = 900_000

NOT_FOUND_REASON = "No openFDA label records matched this medication name."
UNSELECTABLE_REASON = "No suitable openFDA label record could be selected."
AMBIGUOUS_REASON = (
    "Multiple label records matched this name with different active "
    "ingredients / formulations."
)


class LabelCache:
    """Tiered resolver with write-through persistence."""

    def __init__(
        self,
        label_source: LabelSource,
        repository: LabelRepository,
        blob_store: BlobStore,
        candidate_limit: int = DEFAULT_CANDIDATE_LIMIT,
        inline_max_bytes: int = DEFAULT_INLINE_MAX_BYTES,
    ):
        self.label_source = label_source
        self.repository = repository
        self.blob_store = blob_store
        self.candidate_limit = candidate_limit
        self.inline_max_bytes = inline_max_bytes
        self._drug_to_doc_id: dict[DrugKey, DocId] = {}
        self._doc_id_to_snapshot: dict[DocId, LabelSnapshot] = {}

    def memory_stats(self) -> dict[str, int]:
        return {
            "drug_keys": len(self._drug_to_doc_id),
            "snapshots": len(self._doc_id_to_snapshot),
        }

    # ─── Read path ──────────────────────────────────────────────

    async def resolve(self, drug_query: str) -> ResolutionOutcome:
        """Resolve a free-text drug name to a pinned snapshot, or explain why not."""
        key = DrugKey(normalize_for_key(drug_query))

        # An empty key would be shared by every non-Latin or punctuation-only query
        if key:
            cached = await self._lookup_cached(key)
            if cached:
                return ResolutionOk(drug_query, key, cached)
        else:
            logger.info("Query has no cacheable key", extra={"drug_query": drug_query})

        return await self._resolve_upstream(drug_query, key)

    async def _lookup_cached(self, key: DrugKey) -> LabelSnapshot | None:
        mem_doc_id = self._drug_to_doc_id.get(key)
        if mem_doc_id:
            snapshot = await self.get_snapshot(mem_doc_id)
            if snapshot:
                logger.debug("Label cache hit", extra={"drug_key": key, "tier": "memory"})
                return snapshot

        indexed_doc_id = await self.repository.get_indexed_doc_id(key)
        if indexed_doc_id:
            snapshot = await self.get_snapshot(indexed_doc_id)
            if snapshot:
                self._drug_to_doc_id[key] = indexed_doc_id
                logger.info(
                    "Label cache hit",
                    extra={"drug_key": key, "doc_id": indexed_doc_id, "tier": "index"},
                )
                return snapshot
            logger.warning(
                "Index entry points at an unloadable label",
                extra={"drug_key": key, "doc_id": indexed_doc_id},
            )
        return None

    async def get_snapshot(self, doc_id: DocId) -> LabelSnapshot | None:
        """Memory → primary store → blob store for one doc id."""
        mem = self._doc_id_to_snapshot.get(doc_id)
        if mem:
            return mem

        stored = await self.repository.get_label(doc_id)
        if not stored:
            return None
        evidence_text = await self._load_evidence_text(stored)
        if not evidence_text:
            return None

        snapshot = LabelSnapshot(
            set_id=stored["set_id"],
            effective_time=stored["effective_time"],
            evidence_hash=stored["evidence_hash"],
            evidence_text=evidence_text,
            sections=stored["sections"],
            brand_names=tuple(stored["brand_names"]),
            generic_names=tuple(stored["generic_names"]),
            active_ingredients_list=tuple(stored["active_ingredients"]),
        )
        self._doc_id_to_snapshot[doc_id] = snapshot
        return snapshot

    async def _load_evidence_text(self, stored: StoredLabel) -> str:
        if stored["evidence_text"]:
            return stored["evidence_text"]
        if stored["evidence_storage_path"]:
            logger.debug(
                "Reading overflow evidence",
                extra={"doc_id": stored["doc_id"], "tier": "blob"},
            )
            return await self.blob_store.read_text(stored["evidence_storage_path"])
        return ""

    # ─── Miss path ──────────────────────────────────────────────

    async def _resolve_upstream(self, drug_query: str, key: DrugKey) -> ResolutionOutcome:
        payload = await self.label_source.fetch_label_candidates(
            drug_query, limit=self.candidate_limit,
        )
        records = payload.results
        if not records:
            logger.info("No label candidates", extra={"drug_key": key})
            return ResolutionNotFound(drug_query, key, NOT_FOUND_REASON)

        report = detect_ambiguity(records)
        if report.ambiguous:
            logger.info(
                "Ambiguous label candidates",
                extra={"drug_key": key, "candidates": len(records)},
            )
            return ResolutionAmbiguous(
                drug_query, key,
                ambiguity_options(report, MAX_AMBIGUITY_OPTIONS),
                AMBIGUOUS_REASON,
            )

        record = choose_deterministic_record(records)
        if record is None:
            return ResolutionNotFound(drug_query, key, UNSELECTABLE_REASON)

        snapshot = build_label_snapshot(record)
        doc_id = await self.upsert_snapshot(snapshot, key)
        # Reload so an overflow round-trip is exercised before we answer
        saved = await self.get_snapshot(doc_id) or snapshot
        return ResolutionOk(drug_query, key, saved)

    async def upsert_snapshot(self, snapshot: LabelSnapshot, key: DrugKey) -> DocId:
        """Write-through all durable tiers, then memory."""
        doc_id = snapshot.doc_id
        evidence_bytes = utf8_size(snapshot.evidence_text)
        inline_text: str | None = snapshot.evidence_text
        storage_path: str | None = None

        if evidence_bytes > self.inline_max_bytes:
            storage_path = label_blob_path(doc_id)
            inline_text = None
            await self.blob_store.write_text(storage_path, snapshot.evidence_text)

        await self.repository.upsert_label(snapshot, inline_text, storage_path)
        if key:
            await self.repository.upsert_index(key, snapshot)
            self._drug_to_doc_id[key] = doc_id
        self._doc_id_to_snapshot[doc_id] = snapshot
        logger.info(
            "Label pinned",
            extra={
                "drug_key": key, "doc_id": doc_id,
                "evidence_bytes": evidence_bytes,
                "tier": "blob" if storage_path else "primary",
            },
        )
        return doc_id
