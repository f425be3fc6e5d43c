"""RxGuard Schemas — public request/response contract with field-level validation.

Invariants:
    - Wire format is camelCase (primaryDrug, currentMeds, proofCard, ...);
      Python attributes are snake_case; both spellings accepted on input
    - Free-text lists are stripped, blank entries dropped, duplicates removed
      (first occurrence wins, order preserved)
    - primaryDrug is NOT length-validated here: a blank drug must reach the
      composer and come back as CLARIFY, not as a 400
    - Responses serialize with by_alias=True and exclude_none=True

Design Decisions:
    - alias_generator=to_camel over per-field aliases: one rule for the whole contract
    - Enums from core/domain_types for decision/risk/pregnancy: no raw string matching
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from rxguard.core.domain_types import (
    BaselineSelector, Decision, LABEL_SOURCE, PregnancyStatus, RiskLevel, Sex,
)
from rxguard.core.evidence_types import ProofCard


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _clean_list(values: list[str] | None) -> list[str]:
    seen: set[str] = set()
    out = []
    for v in values or []:
        v = v.strip()
        if v and v not in seen:
            seen.add(v)
            out.append(v)
    return out


class RxGuardProfile(_CamelModel):
    """Optional structured user context."""
    age: int | None = Field(None, gt=0, le=150)
    sex: Sex | None = None
    pregnancy: PregnancyStatus | None = None
    conditions: list[str] = Field(default_factory=list)
    current_meds: list[str] = Field(default_factory=list)
    allergies: list[str] = Field(default_factory=list)

    @field_validator("conditions", "current_meds", "allergies", mode="after")
    @classmethod
    def clean_lists(cls, v: list[str]) -> list[str]:
        return _clean_list(v)


class RxGuardRequest(_CamelModel):
    """One medication-safety question."""
    question: str = Field(max_length=10_000)
    primary_drug: str | None = Field(None, max_length=500)
    other_meds: list[str] = Field(default_factory=list)
    profile: RxGuardProfile | None = None
    include_baseline_answer: bool = False
    baseline_selector: BaselineSelector = BaselineSelector.BOTH

    @field_validator("question")
    @classmethod
    def strip_question(cls, v: str) -> str:
        return v.strip()

    @field_validator("other_meds", mode="after")
    @classmethod
    def clean_other_meds(cls, v: list[str]) -> list[str]:
        return _clean_list(v)


# --- Response -----------------------------------------------------------------

class EvidenceQuoteOut(_CamelModel):
    section: str
    quote: str
    reason: str | None = None


class ProofCardOut(_CamelModel):
    source: str = LABEL_SOURCE
    set_id: str
    effective_time: str
    evidence_hash: str
    quotes: list[EvidenceQuoteOut] = Field(default_factory=list)

    @classmethod
    def from_proof_card(cls, card: ProofCard) -> "ProofCardOut":
        return cls(
            source=card.source,
            set_id=card.set_id,
            effective_time=card.effective_time,
            evidence_hash=card.evidence_hash,
            quotes=[
                EvidenceQuoteOut(section=q.section, quote=q.quote, reason=q.reason)
                for q in card.quotes
            ],
        )


class BaselineAnswers(_CamelModel):
    model_a: str | None = None
    model_b: str | None = None


class DebugInfo(_CamelModel):
    resolved_drug: str | None = None
    rules_triggered: list[str] = Field(default_factory=list)
    label_doc_id: str | None = None


class RxGuardResponse(_CamelModel):
    decision: Decision
    risk: RiskLevel
    message: str
    clarifying_question: str | None = None
    proof_card: ProofCardOut | None = None
    baseline: BaselineAnswers | None = None
    debug: DebugInfo | None = None
