"""Message Formatting — pure functions for every user-facing RxGuard message.

Invariants:
    - All functions are pure (no IO, no async, no DB)
    - Every message returned to a user ends with DISCLAIMER
    - Evidence snippets are rendered from verified proof-card quotes only, max 3
    - Ambiguity messages list at most 4 formulations

Design Decisions:
    - Extracted from the composer so wording is testable without the cache or DB
    - Baseline prompts live here too: they are text templates, not IO
"""

import json

from rxguard.core.domain_types import Decision, RiskLevel
from rxguard.core.evidence_types import EvidenceQuote, FormulationOption

DISCLAIMER = (
    "Educational use only. RxGuard is NOT medical advice and cannot confirm safety. "
    "Always consult a licensed clinician or pharmacist for medication decisions."
)

MAX_MESSAGE_SNIPPETS = 3
MAX_MESSAGE_OPTIONS = 4

MISSING_DRUG_QUESTION = "What exact medication name (and strength) is on the package?"
NOT_FOUND_QUESTION = "Can you provide the exact product name (and strength) from the package?"
AMBIGUOUS_QUESTION = "Which formulation is yours (active ingredients + strength)?"

BASELINE_SYSTEM_PROMPT = (
    "You are a helpful assistant. Answer the user's question directly. "
    "Do not mention policies or FDA labels unless asked. "
    "Be concise."
)


def format_snippets(quotes: list[EvidenceQuote] | tuple[EvidenceQuote, ...]) -> str:
    return "\n".join(
        f"({i}) [{q.section}] {q.quote}"
        for i, q in enumerate(quotes[:MAX_MESSAGE_SNIPPETS], start=1)
    )


def format_missing_drug_message() -> str:
    return (
        "RxGuard needs the exact medication name from the package to look up "
        "the correct FDA label.\n"
        "Please enter the medication name (and ideally strength/dose).\n\n"
        f"{DISCLAIMER}"
    )


def format_not_found_message(primary_drug: str) -> str:
    return (
        f'RxGuard could not find an FDA drug label match for "{primary_drug}".\n'
        "Try the generic name, or the exact product name from the bottle/box.\n\n"
        f"{DISCLAIMER}"
    )


def format_option_lines(options: tuple[FormulationOption, ...]) -> str:
    lines = []
    for i, option in enumerate(options[:MAX_MESSAGE_OPTIONS], start=1):
        ingredients = "; ".join(option.active_ingredients) or "unknown"
        lines.append(f"{i}) {option.display_name} — Active ingredients: {ingredients}")
    return "\n".join(lines)


def format_ambiguous_message(
    primary_drug: str, options: tuple[FormulationOption, ...],
) -> str:
    return (
        f'Multiple different FDA label records matched "{primary_drug}".\n'
        "To avoid mixing up formulations, RxGuard needs you to pick one.\n\n"
        f"{format_option_lines(options)}\n\n"
        f"{DISCLAIMER}"
    )


def format_decision_message(
    decision: Decision,
    risk: RiskLevel,
    primary_drug: str,
    quotes: tuple[EvidenceQuote, ...],
    clarifying_question: str | None = None,
) -> str:
    """Deterministic safe message for a policy decision."""
    snippets = format_snippets(quotes)

    if decision is Decision.CLARIFY:
        question = f"\nQuestion: {clarifying_question}\n" if clarifying_question else ""
        return (
            f'RxGuard needs clarification before it can evaluate "{primary_drug}".\n'
            f"{question}\n{DISCLAIMER}"
        )

    if decision is Decision.BLOCK:
        return (
            f"RxGuard BLOCKED the request (risk: {risk.value}) for "
            f'"{primary_drug}" based on FDA label evidence.\n'
            f"\nEvidence snippets (verbatim):\n{snippets}\n\n{DISCLAIMER}"
        )

    if decision is Decision.CAUTION:
        return (
            f"RxGuard flags CAUTION (risk: {risk.value}) for "
            f'"{primary_drug}" based on FDA label evidence.\n'
            f"\nEvidence snippets (verbatim):\n{snippets}\n\n{DISCLAIMER}"
        )

    evidence = f"\nEvidence snippets (verbatim):\n{snippets}\n" if snippets else ""
    return (
        "RxGuard found no high-severity matches in the FDA label snapshot for "
        f'"{primary_drug}" given the info provided.\n'
        "This does NOT mean it is safe. Review the label and consult a "
        "clinician/pharmacist.\n"
        f"{evidence}\n{DISCLAIMER}"
    )


def build_baseline_user_prompt(
    question: str,
    primary_drug: str | None,
    other_meds: list[str],
    profile: dict | None,
) -> str:
    ctx = {
        "primaryDrug": primary_drug,
        "otherMeds": other_meds,
        "profile": profile,
    }
    return (
        f"User context (may be incomplete):\n{json.dumps(ctx, indent=2)}\n\n"
        f"Question: {question}"
    )
