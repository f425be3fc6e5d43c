"""Resolution cache — tier order, write-through, overflow, non-persistence.

Tests:
    - First resolution fetches upstream and writes primary + index + memory
    - Second resolution of an equivalent query is a memory hit (no fetch)
    - A fresh cache over the same store resolves from the index tier
    - Evidence over the inline limit goes to the blob store, row keeps pointer
    - Not-found and ambiguous outcomes are never persisted
    - Stored row without text or pointer is treated as a miss
    - Queries with an empty key never share a cached snapshot
    - Upstream and identity errors propagate
"""

import pytest

from rxguard.core.domain_types import DocId, DrugKey, ResolutionKind
from rxguard.core.errors import MissingIdentityError, UpstreamError
from rxguard.core.evidence_types import ResolutionAmbiguous, ResolutionNotFound, ResolutionOk
from rxguard.infrastructure.blob_store import label_blob_path
from rxguard.services.label_cache import (
    AMBIGUOUS_REASON, DEFAULT_CANDIDATE_LIMIT, NOT_FOUND_REASON, LabelCache,
)

from tests.factories import make_payload, make_record, make_snapshot


async def test_miss_fetches_and_persists(label_cache, label_source, repository):
    label_source.payloads["Advil"] = make_payload(
        make_record(set_id="old", effective_time="20200101"),
        make_record(set_id="new", effective_time="20240101"),
    )
    outcome = await label_cache.resolve("Advil")

    assert isinstance(outcome, ResolutionOk)
    assert outcome.kind is ResolutionKind.OK
    assert outcome.normalized_query == "advil"
    assert outcome.snapshot.doc_id == "new_20240101"
    assert label_source.calls == [("Advil", DEFAULT_CANDIDATE_LIMIT)]

    stored = await repository.get_label(DocId("new_20240101"))
    assert stored["evidence_text"] == outcome.snapshot.evidence_text
    assert await repository.get_indexed_doc_id(DrugKey("advil")) == "new_20240101"
    assert label_cache.memory_stats() == {"drug_keys": 1, "snapshots": 1}


async def test_equivalent_query_hits_memory(label_cache, label_source):
    label_source.payloads["Advil"] = make_payload(make_record())
    first = await label_cache.resolve("Advil")
    second = await label_cache.resolve("  ADVIL!! ")

    assert len(label_source.calls) == 1
    assert second.snapshot is first.snapshot


async def test_fresh_cache_resolves_from_index(label_cache, label_source, repository, blob_store):
    label_source.payloads["advil"] = make_payload(make_record(warnings="Allergy alert"))
    first = await label_cache.resolve("advil")

    cold = LabelCache(label_source, repository, blob_store)
    second = await cold.resolve("advil")

    assert len(label_source.calls) == 1
    assert second.snapshot.evidence_hash == first.snapshot.evidence_hash
    assert second.snapshot is not first.snapshot


async def test_oversized_evidence_goes_to_blob(label_source, repository, blob_store):
    cache = LabelCache(label_source, repository, blob_store, inline_max_bytes=1_000)
    label_source.payloads["advil"] = make_payload(make_record(warnings="ulcer " * 500))

    outcome = await cache.resolve("advil")
    doc_id = outcome.snapshot.doc_id
    stored = await repository.get_label(doc_id)

    assert stored["evidence_text"] is None
    assert stored["evidence_storage_path"] == label_blob_path(doc_id)
    assert await blob_store.read_text(label_blob_path(doc_id)) == outcome.snapshot.evidence_text

    cold = LabelCache(label_source, repository, blob_store, inline_max_bytes=1_000)
    reloaded = await cold.resolve("advil")
    assert reloaded.snapshot.evidence_hash == outcome.snapshot.evidence_hash
    assert len(label_source.calls) == 1


async def test_not_found_not_persisted(label_cache, label_source, repository):
    outcome = await label_cache.resolve("Advlil")
    assert isinstance(outcome, ResolutionNotFound)
    assert outcome.reason == NOT_FOUND_REASON
    assert await repository.get_indexed_doc_id(DrugKey("advlil")) is None

    await label_cache.resolve("Advlil")
    assert len(label_source.calls) == 2
    assert label_cache.memory_stats() == {"drug_keys": 0, "snapshots": 0}


async def test_ambiguous_not_persisted(label_cache, label_source, repository):
    label_source.payloads["advil"] = make_payload(
        make_record(set_id="s1"),
        make_record(set_id="s2", brand=["Advil PM"], active=["Ibuprofen", "Diphenhydramine"]),
    )
    outcome = await label_cache.resolve("advil")

    assert isinstance(outcome, ResolutionAmbiguous)
    assert outcome.reason == AMBIGUOUS_REASON
    assert [o.display_name for o in outcome.options] == ["Advil", "Advil PM"]
    assert await repository.get_indexed_doc_id(DrugKey("advil")) is None
    assert await repository.get_label(DocId("s1_20240101")) is None


async def test_row_without_evidence_is_a_miss(label_cache, label_source, repository):
    snap = make_snapshot()
    await repository.upsert_label(snap, None, None)
    await repository.upsert_index(DrugKey("advil"), snap)
    label_source.payloads["advil"] = make_payload(make_record())

    outcome = await label_cache.resolve("advil")

    assert isinstance(outcome, ResolutionOk)
    assert len(label_source.calls) == 1
    stored = await repository.get_label(snap.doc_id)
    assert stored["evidence_text"] == outcome.snapshot.evidence_text


async def test_upstream_error_propagates(label_cache, label_source):
    label_source.error = UpstreamError("HTTP 500", "http_status", status_code=500)
    with pytest.raises(UpstreamError):
        await label_cache.resolve("advil")


async def test_missing_identity_propagates(label_cache, label_source, repository):
    label_source.payloads["advil"] = make_payload(make_record(set_id=None))
    with pytest.raises(MissingIdentityError):
        await label_cache.resolve("advil")
    assert await repository.get_indexed_doc_id(DrugKey("advil")) is None


async def test_empty_key_queries_never_share_a_snapshot(label_cache, label_source, repository):
    label_source.payloads["アスピリン"] = make_payload(make_record(set_id="set-aspirin"))
    label_source.payloads["ワルファリン"] = make_payload(make_record(set_id="set-warfarin"))

    first = await label_cache.resolve("アスピリン")
    second = await label_cache.resolve("ワルファリン")

    assert first.normalized_query == ""
    assert first.snapshot.set_id == "set-aspirin"
    assert second.snapshot.set_id == "set-warfarin"
    assert [q for q, _ in label_source.calls] == ["アスピリン", "ワルファリン"]
    assert await repository.get_indexed_doc_id(DrugKey("")) is None
    assert label_cache.memory_stats() == {"drug_keys": 0, "snapshots": 2}
    assert await repository.get_label(second.snapshot.doc_id) is not None
