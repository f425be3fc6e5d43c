"""Policy Engine — deterministic, explainable safety classification.

Invariants:
    - Pure function: same snapshot + profile + meds → same PolicyResult
    - Rules evaluated in LABEL_RULES order; rules_triggered preserves that order
    - Risk only ever rises (combine_risk); no rule lowers it
    - PREGNANCY_RISK_LANGUAGE fires only for pregnant-or-trying profiles
    - Empty evidence text → CLARIFY / UNKNOWN regardless of any rule outcome
    - BLOCK / CAUTION always carry at least one quote

Design Decisions:
    - Label-text patterns, not clinical logic: conservative by construction,
      over-flagging is accepted (see DESIGN.md)
    - Interaction cross-check covers other_meds AND profile.current_meds, so a
      medication the user already takes is never skipped
    - Quote windows use a fixed radius (220 chars); the proof card builder is
      the final authority on which quotes survive
"""

import re
from dataclasses import dataclass
from typing import Iterable

from rxguard.core.domain_types import (
    Decision, RiskLevel, SectionId, WHOLE_LABEL_SECTION, combine_risk,
)
from rxguard.core.evidence_types import EvidenceQuote, LabelSnapshot, PolicyResult
from rxguard.core.text_normalize import (
    chunk_text_around, find_loose, normalize_for_match,
)
from rxguard.schemas.rxguard import RxGuardProfile

QUOTE_RADIUS = 220
FALLBACK_QUOTE_CHARS = 280
MAX_INTERACTION_QUOTES = 3

ANTICOAGULANTS = ("warfarin", "apixaban", "rivaroxaban", "dabigatran")
RENAL_CONDITION_KEYWORDS = ("ckd", "kidney", "renal")

NO_EVIDENCE_QUESTION = (
    "I could not retrieve the FDA label evidence for this medication. "
    "Can you provide the exact product name (and strength) from the package?"
)
UNKNOWN_RISK_QUESTION = (
    "To check safety, I need more context (dose/formulation, your conditions, "
    "and other meds). What exact product are you using (including strength), "
    "and are you taking any other medications?"
)


@dataclass(frozen=True)
class LabelRule:
    id: str
    # None targets the whole canonical evidence text
    section: SectionId | None
    pattern: re.Pattern
    reason: str
    severity: RiskLevel


LABEL_RULES: tuple[LabelRule, ...] = (
    LabelRule(
        "BOXED_WARNING_PRESENT", SectionId.BOXED_WARNING,
        re.compile(r"\b.+", re.IGNORECASE),
        "Boxed warning section is present.", RiskLevel.HIGH,
    ),
    LabelRule(
        "CONTRAINDICATION_MENTION", SectionId.CONTRAINDICATIONS,
        re.compile(
            r"contraindicat(ed|ion)|\bdo not use\b|\bshould not\b|\bmust not\b",
            re.IGNORECASE,
        ),
        "Contraindication / strong avoidance language appears.", RiskLevel.HIGH,
    ),
    LabelRule(
        "PREGNANCY_RISK_LANGUAGE", SectionId.PREGNANCY,
        re.compile(r"pregnan|fetal|embryo|teratogen|ductus arteriosus", re.IGNORECASE),
        "Pregnancy-related risk language appears.", RiskLevel.HIGH,
    ),
    LabelRule(
        "BLEEDING_RISK_LANGUAGE", None,
        re.compile(r"bleed|hemorrhag|gastrointestinal|ulcer", re.IGNORECASE),
        "Bleeding risk language appears.", RiskLevel.MODERATE,
    ),
    LabelRule(
        "RENAL_RISK_LANGUAGE", None,
        re.compile(r"renal|kidney|nephro", re.IGNORECASE),
        "Kidney/renal risk language appears.", RiskLevel.MODERATE,
    ),
    LabelRule(
        "DRUG_INTERACTION_SECTION", SectionId.DRUG_INTERACTIONS,
        re.compile(r"interact|concomitant|co-administration|avoid", re.IGNORECASE),
        "Drug interaction language appears.", RiskLevel.MODERATE,
    ),
)

PREGNANCY_RULE_ID = "PREGNANCY_RISK_LANGUAGE"
BLEEDING_RULE_ID = "BLEEDING_RISK_LANGUAGE"
RENAL_RULE_ID = "RENAL_RISK_LANGUAGE"
ANTICOAGULANT_UPGRADE = "PROFILE_ANTICOAGULANT_UPGRADE"
CKD_UPGRADE = "PROFILE_CKD_UPGRADE"
INTERACTION_HIT = "INTERACTION_OTHER_MED_MENTIONED"


# ─── Helpers ─────────────────────────────────────────────────────

def _rule_text(snapshot: LabelSnapshot, rule: LabelRule) -> str:
    if rule.section is None:
        return snapshot.evidence_text
    return snapshot.section(rule.section)


def _quote_section(rule: LabelRule) -> str:
    return WHOLE_LABEL_SECTION if rule.section is None else rule.section.value


def extract_quote(text: str, pattern: re.Pattern) -> str | None:
    """Window around the first match, or None."""
    m = pattern.search(text)
    if not m:
        return None
    return chunk_text_around(text, m.start(), QUOTE_RADIUS) or None


def profile_is_pregnant_or_trying(profile: RxGuardProfile | None) -> bool:
    return bool(profile and profile.pregnancy and profile.pregnancy.is_pregnant_or_trying)


def _contains_any(values: Iterable[str], keywords: Iterable[str]) -> bool:
    normalized = [normalize_for_match(v) for v in values]
    return any(
        normalize_for_match(k) in v for k in keywords for v in normalized
    )


def profile_has_anticoagulant(profile: RxGuardProfile | None) -> bool:
    return bool(profile) and _contains_any(profile.current_meds, ANTICOAGULANTS)


def profile_has_renal_condition(profile: RxGuardProfile | None) -> bool:
    return bool(profile) and _contains_any(profile.conditions, RENAL_CONDITION_KEYWORDS)


def _meds_to_check(
    other_meds: list[str] | None, profile: RxGuardProfile | None,
) -> list[str]:
    """other_meds then profile.current_meds, blanks dropped, deduped by normalized form."""
    combined = list(other_meds or []) + list(profile.current_meds if profile else [])
    seen: set[str] = set()
    meds = []
    for med in combined:
        key = normalize_for_match(med or "")
        if key and key not in seen:
            seen.add(key)
            meds.append(med.strip())
    return meds


def find_interaction_hits(interactions: str, meds: list[str]) -> list[str]:
    """Meds whose normalized name appears in the normalized interaction text."""
    haystack = normalize_for_match(interactions)
    if not haystack:
        return []
    return [m for m in meds if normalize_for_match(m) in haystack]


def quote_around_substring(haystack: str, needle: str) -> str | None:
    """Verbatim window centred on needle's location in the original text."""
    idx = find_loose(haystack, needle)
    if idx < 0:
        return None
    return chunk_text_around(haystack, idx, QUOTE_RADIUS) or None


def _decide(
    risk: RiskLevel, has_evidence: bool,
) -> tuple[Decision, RiskLevel, str | None]:
    if not has_evidence:
        return Decision.CLARIFY, RiskLevel.UNKNOWN, NO_EVIDENCE_QUESTION
    if risk is RiskLevel.HIGH:
        return Decision.BLOCK, risk, None
    if risk is RiskLevel.MODERATE:
        return Decision.CAUTION, risk, None
    if risk is RiskLevel.LOW:
        return Decision.INFO, risk, None
    return Decision.CLARIFY, risk, UNKNOWN_RISK_QUESTION


def fallback_quote(evidence_text: str) -> EvidenceQuote:
    """Bounded prefix of the evidence — verifiable, never empty for non-empty text."""
    return EvidenceQuote(
        section=WHOLE_LABEL_SECTION,
        quote=evidence_text[:FALLBACK_QUOTE_CHARS].strip(),
        reason="Label evidence snapshot (preview).",
    )


# ─── Evaluation ──────────────────────────────────────────────────

def evaluate_policy(
    snapshot: LabelSnapshot,
    profile: RxGuardProfile | None = None,
    other_meds: list[str] | None = None,
) -> PolicyResult:
    """Run label rules, profile upgrades and interaction cross-check."""
    rules_triggered: list[str] = []
    quotes: list[EvidenceQuote] = []
    risk = RiskLevel.UNKNOWN

    for rule in LABEL_RULES:
        text = _rule_text(snapshot, rule)
        if not text or not rule.pattern.search(text):
            continue
        if rule.id == PREGNANCY_RULE_ID and not profile_is_pregnant_or_trying(profile):
            continue
        rules_triggered.append(rule.id)
        risk = combine_risk(risk, rule.severity)
        quote = extract_quote(text, rule.pattern)
        if quote:
            quotes.append(EvidenceQuote(_quote_section(rule), quote, rule.reason))

    if profile_has_anticoagulant(profile) and BLEEDING_RULE_ID in rules_triggered:
        risk = combine_risk(risk, RiskLevel.HIGH)
        rules_triggered.append(ANTICOAGULANT_UPGRADE)

    if profile_has_renal_condition(profile) and RENAL_RULE_ID in rules_triggered:
        risk = combine_risk(risk, RiskLevel.HIGH)
        rules_triggered.append(CKD_UPGRADE)

    interactions = snapshot.section(SectionId.DRUG_INTERACTIONS)
    hits = find_interaction_hits(interactions, _meds_to_check(other_meds, profile))
    if hits:
        risk = combine_risk(risk, RiskLevel.HIGH)
        rules_triggered.append(INTERACTION_HIT)
        for hit in hits[:MAX_INTERACTION_QUOTES]:
            q = quote_around_substring(interactions, hit)
            if q:
                quotes.append(EvidenceQuote(
                    SectionId.DRUG_INTERACTIONS.value, q,
                    f'The interaction section mentions "{hit}".',
                ))

    decision, risk, question = _decide(risk, bool(snapshot.evidence_text))

    if decision in (Decision.BLOCK, Decision.CAUTION) and not quotes:
        quotes.append(fallback_quote(snapshot.evidence_text))

    return PolicyResult(
        decision=decision,
        risk=risk,
        rules_triggered=rules_triggered,
        quotes=quotes,
        clarifying_question=question,
    )
