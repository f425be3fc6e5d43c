"""Response composer — every branch of RxGuardAnswerService.answer.

Tests:
    - Blank primaryDrug → CLARIFY/UNKNOWN, MISSING_PRIMARY_DRUG, no lookup, no baseline
    - not_found / ambiguous → CLARIFY/UNKNOWN with debug rule and baseline when asked
    - Boxed warning label → BLOCK/HIGH with verified proof card and snippets
    - Warfarin in currentMeds → INTERACTION_OTHER_MED_MENTIONED with drugInteractions quote
    - Every message ends with the disclaimer
    - A failing baseline model never fails the primary answer
"""

import httpx
import pytest

from rxguard.core.domain_types import Decision, RiskLevel
from rxguard.core.evidence import quote_exists_in_evidence
from rxguard.core.format_messages import AMBIGUOUS_QUESTION, DISCLAIMER, NOT_FOUND_QUESTION
from rxguard.infrastructure.baseline_client import BaselineModelClient
from rxguard.schemas.rxguard import RxGuardRequest
from rxguard.services.baseline_answers import NOT_CONFIGURED
from rxguard.services.rxguard_answer import RxGuardAnswerService

from tests.factories import make_payload, make_record
from tests.services.fakes import FakeChatModel


@pytest.mark.asyncio
@pytest.mark.parametrize("drug", [None, "", "   "])
async def test_missing_drug_clarifies_without_io(answer_service, label_source, drug):
    req = RxGuardRequest(
        question="Is it safe?", primary_drug=drug, include_baseline_answer=True,
        profile={"currentMeds": ["Warfarin"]},
    )
    resp = await answer_service.answer(req)
    assert resp.decision is Decision.CLARIFY
    assert resp.risk is RiskLevel.UNKNOWN
    assert resp.debug.rules_triggered == ["MISSING_PRIMARY_DRUG"]
    assert resp.baseline is None
    assert resp.proof_card is None
    assert label_source.calls == []
    assert resp.message.endswith(DISCLAIMER)


@pytest.mark.asyncio
async def test_not_found_clarifies_with_baseline(answer_service):
    req = RxGuardRequest(question="q", primary_drug="Advlil", include_baseline_answer=True)
    resp = await answer_service.answer(req)
    assert resp.decision is Decision.CLARIFY
    assert resp.clarifying_question == NOT_FOUND_QUESTION
    assert resp.debug.rules_triggered == ["LABEL_NOT_FOUND"]
    assert resp.baseline.model_a == NOT_CONFIGURED
    assert '"Advlil"' in resp.message


@pytest.mark.asyncio
async def test_ambiguous_lists_options(answer_service, label_source):
    label_source.payloads["Advil"] = make_payload(
        make_record(set_id="s1"),
        make_record(set_id="s2", brand=["Advil PM"], active=["Ibuprofen", "Diphenhydramine"]),
    )
    resp = await answer_service.answer(RxGuardRequest(question="q", primary_drug="Advil"))
    assert resp.decision is Decision.CLARIFY
    assert resp.clarifying_question == AMBIGUOUS_QUESTION
    assert resp.debug.rules_triggered == ["LABEL_AMBIGUOUS"]
    assert "2) Advil PM — Active ingredients: Ibuprofen; Diphenhydramine" in resp.message
    assert resp.baseline is None


@pytest.mark.asyncio
async def test_boxed_warning_blocks_with_proof(answer_service, label_source, label_cache):
    label_source.payloads["Advil"] = make_payload(
        make_record(boxed_warning="WARNING: RISK OF SERIOUS CARDIOVASCULAR AND GASTROINTESTINAL EVENTS"),
    )
    resp = await answer_service.answer(RxGuardRequest(question="q", primary_drug="Advil"))

    assert resp.decision is Decision.BLOCK
    assert resp.risk is RiskLevel.HIGH
    assert "BOXED_WARNING_PRESENT" in resp.debug.rules_triggered
    assert resp.debug.resolved_drug == "Advil"
    assert resp.debug.label_doc_id == "set-ibu_20240101"
    assert resp.proof_card.quotes

    snapshot = (await label_cache.resolve("Advil")).snapshot
    assert resp.proof_card.evidence_hash == snapshot.evidence_hash
    for q in resp.proof_card.quotes:
        assert quote_exists_in_evidence(snapshot.evidence_text, q.quote)
    assert "(1) [boxedWarning]" in resp.message
    assert resp.message.endswith(DISCLAIMER)


@pytest.mark.asyncio
async def test_current_med_interaction(answer_service, label_source):
    label_source.payloads["Advil"] = make_payload(
        make_record(drug_interactions="Ask a doctor before use if you are taking warfarin."),
    )
    req = RxGuardRequest.model_validate({
        "question": "q", "primaryDrug": "Advil",
        "profile": {"currentMeds": ["Warfarin"]},
    })
    resp = await answer_service.answer(req)
    assert "INTERACTION_OTHER_MED_MENTIONED" in resp.debug.rules_triggered
    assert resp.decision is Decision.BLOCK
    assert any(q.section == "drugInteractions" for q in resp.proof_card.quotes)


@pytest.mark.asyncio
async def test_quiet_label_clarifies_with_unknown_risk(answer_service, label_source):
    label_source.payloads["Advil"] = make_payload(make_record(warnings="Allergy alert."))
    resp = await answer_service.answer(RxGuardRequest(question="q", primary_drug="Advil"))
    assert resp.decision is Decision.CLARIFY
    assert resp.risk is RiskLevel.UNKNOWN
    assert resp.clarifying_question
    assert resp.proof_card is not None
    assert resp.proof_card.quotes == []


@pytest.mark.asyncio
async def test_baseline_error_does_not_fail_answer(label_cache, settings):
    llm_settings = settings.model_copy(update={"rxguard_llm_base_url": "http://llm.local"})
    chat = FakeChatModel({"mistral-7b": RuntimeError("boom")})
    service = RxGuardAnswerService(label_cache, llm_settings, baseline_client=chat)

    req = RxGuardRequest(question="q", primary_drug="Advlil", include_baseline_answer=True)
    resp = await service.answer(req)

    assert resp.decision is Decision.CLARIFY
    assert resp.baseline.model_a == "[Model A error] boom"
    assert resp.baseline.model_b == "answer from llama3-8b"


@pytest.mark.asyncio
async def test_malformed_baseline_url_reported_inline(label_cache, settings):
    llm_settings = settings.model_copy(update={"rxguard_llm_base_url": "http://[::1"})
    client = BaselineModelClient(
        base_url="http://[::1",
        http_client=httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(200)),
        ),
    )
    service = RxGuardAnswerService(label_cache, llm_settings, baseline_client=client)

    req = RxGuardRequest(question="q", primary_drug="Advlil", include_baseline_answer=True)
    resp = await service.answer(req)
    await client.aclose()

    assert resp.decision is Decision.CLARIFY
    assert resp.baseline.model_a.startswith("[Model A error] LLM base URL invalid")
    assert resp.baseline.model_b.startswith("[Model B error] LLM base URL invalid")
