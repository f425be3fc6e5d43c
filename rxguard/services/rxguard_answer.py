"""Response Composer — one request → one RxGuardResponse (impureim sandwich).

Invariants:
    - Blank primaryDrug short-circuits to CLARIFY before any IO (no cache, no baseline)
    - not_found / ambiguous are recovered outcomes: CLARIFY / UNKNOWN, never raised
    - Messages are built from proof-card quotes only (verified), never raw policy quotes
    - Baseline answers, when requested, are attached but never influence decision/risk
    - Fatal errors (UpstreamError, DatabaseError, ...) propagate to the global handler

Design Decisions:
    - Impure edges (resolve, baseline) around a pure middle (policy, proof card, format)
    - Baseline client is optional: None means "not configured", handled in fan-out
"""

import logging

from rxguard.config import Settings
from rxguard.core.domain_types import Decision, RiskLevel
from rxguard.core.evidence_types import (
    ResolutionAmbiguous, ResolutionNotFound, ResolutionOk,
)
from rxguard.core.format_messages import (
    AMBIGUOUS_QUESTION, MISSING_DRUG_QUESTION, NOT_FOUND_QUESTION,
    format_ambiguous_message, format_decision_message,
    format_missing_drug_message, format_not_found_message,
)
from rxguard.core.policy import evaluate_policy
from rxguard.core.proof_card import build_proof_card
from rxguard.core.repository_protocols import ChatModel
from rxguard.schemas.rxguard import (
    BaselineAnswers, DebugInfo, ProofCardOut, RxGuardRequest, RxGuardResponse,
)
from rxguard.services.baseline_answers import collect_baseline_answers
from rxguard.services.label_cache import LabelCache

logger = logging.getLogger(__name__)

MISSING_PRIMARY_DRUG = "MISSING_PRIMARY_DRUG"
LABEL_NOT_FOUND = "LABEL_NOT_FOUND"
LABEL_AMBIGUOUS = "LABEL_AMBIGUOUS"


class RxGuardAnswerService:
    """Resolves, evaluates and formats one medication-safety answer."""

    def __init__(
        self,
        label_cache: LabelCache,
        settings: Settings,
        baseline_client: ChatModel | None = None,
    ):
        self.label_cache = label_cache
        self.settings = settings
        self.baseline_client = baseline_client

    async def answer(self, request: RxGuardRequest) -> RxGuardResponse:
        primary_drug = (request.primary_drug or "").strip()
        if not primary_drug:
            return self._log(RxGuardResponse(
                decision=Decision.CLARIFY,
                risk=RiskLevel.UNKNOWN,
                message=format_missing_drug_message(),
                clarifying_question=MISSING_DRUG_QUESTION,
                debug=DebugInfo(rules_triggered=[MISSING_PRIMARY_DRUG]),
            ))

        outcome = await self.label_cache.resolve(primary_drug)

        if isinstance(outcome, ResolutionNotFound):
            response = RxGuardResponse(
                decision=Decision.CLARIFY,
                risk=RiskLevel.UNKNOWN,
                message=format_not_found_message(primary_drug),
                clarifying_question=NOT_FOUND_QUESTION,
                debug=DebugInfo(rules_triggered=[LABEL_NOT_FOUND]),
            )
        elif isinstance(outcome, ResolutionAmbiguous):
            response = RxGuardResponse(
                decision=Decision.CLARIFY,
                risk=RiskLevel.UNKNOWN,
                message=format_ambiguous_message(primary_drug, outcome.options),
                clarifying_question=AMBIGUOUS_QUESTION,
                debug=DebugInfo(rules_triggered=[LABEL_AMBIGUOUS]),
            )
        else:
            response = self._evaluate(request, primary_drug, outcome)

        response.baseline = await self._maybe_baseline(request)
        return self._log(response)

    def _evaluate(
        self, request: RxGuardRequest, primary_drug: str, outcome: ResolutionOk,
    ) -> RxGuardResponse:
        snapshot = outcome.snapshot
        policy = evaluate_policy(snapshot, request.profile, request.other_meds)
        card = build_proof_card(snapshot, policy.quotes)
        message = format_decision_message(
            policy.decision, policy.risk, primary_drug,
            card.quotes, policy.clarifying_question,
        )
        return RxGuardResponse(
            decision=policy.decision,
            risk=policy.risk,
            message=message,
            clarifying_question=policy.clarifying_question,
            proof_card=ProofCardOut.from_proof_card(card),
            debug=DebugInfo(
                resolved_drug=primary_drug,
                rules_triggered=policy.rules_triggered,
                label_doc_id=snapshot.doc_id,
            ),
        )

    async def _maybe_baseline(self, request: RxGuardRequest) -> BaselineAnswers | None:
        if not request.include_baseline_answer:
            return None
        return await collect_baseline_answers(
            self.baseline_client, request, self.settings,
        )

    @staticmethod
    def _log(response: RxGuardResponse) -> RxGuardResponse:
        logger.info(
            "RxGuard answer composed",
            extra={
                "decision": response.decision.value,
                "risk": response.risk.value,
                "doc_id": response.debug.label_doc_id if response.debug else None,
            },
        )
        return response
