"""Evidence Extractor — raw label record → canonical sections, text and hash.

Invariants:
    - Pure function: no IO, no clock, no randomness
    - Canonical order is SectionId declaration order; every section emits its
      header even when empty, so offsets and hashes are stable across records
    - Body text inside canonical evidence is single-line, single-spaced, trimmed
    - A record without set_id AND effective_time never becomes a snapshot

Design Decisions:
    - Sections keep "\\n" between list entries (readable in proof cards) while
      canonical text collapses them (stable hashing); quote verification
      normalizes whitespace so both forms verify against each other
    - `=== HEADER ===` lines: unambiguous block boundaries for human review
"""

from rxguard.core.domain_types import SectionId
from rxguard.core.errors import MissingIdentityError, ErrorContext
from rxguard.core.evidence_types import LabelSnapshot
from rxguard.core.text_normalize import (
    collapse_whitespace, normalize_for_match, safe_one_line, sha256_hex,
)
from rxguard.schemas.openfda import OpenFdaLabelRecord, SectionValue

# SectionId → (record field, canonical header)
SECTION_SOURCES: dict[SectionId, tuple[str, str]] = {
    SectionId.ACTIVE_INGREDIENTS: ("active_ingredient", "ACTIVE INGREDIENTS"),
    SectionId.BOXED_WARNING: ("boxed_warning", "BOXED WARNING"),
    SectionId.CONTRAINDICATIONS: ("contraindications", "CONTRAINDICATIONS"),
    SectionId.WARNINGS: ("warnings", "WARNINGS"),
    SectionId.WARNINGS_AND_CAUTIONS: ("warnings_and_cautions", "WARNINGS AND CAUTIONS"),
    SectionId.DRUG_INTERACTIONS: ("drug_interactions", "DRUG INTERACTIONS"),
    SectionId.PREGNANCY: ("pregnancy", "PREGNANCY"),
    SectionId.LACTATION: ("lactation", "LACTATION"),
    SectionId.PEDIATRIC_USE: ("pediatric_use", "PEDIATRIC USE"),
    SectionId.GERIATRIC_USE: ("geriatric_use", "GERIATRIC USE"),
    SectionId.DO_NOT_USE: ("do_not_use", "DO NOT USE"),
    SectionId.ASK_DOCTOR: ("ask_doctor", "ASK A DOCTOR"),
}


def join_section(value: SectionValue) -> str:
    """Reduce a section (absent / string / list) to one normalized string."""
    if not value:
        return ""
    if isinstance(value, list):
        return "\n".join(safe_one_line(s) for s in value)
    return safe_one_line(value)


def extract_evidence_sections(record: OpenFdaLabelRecord) -> dict[SectionId, str]:
    """Exhaustive SectionId → text mapping for a record."""
    return {
        sid: join_section(getattr(record, field_name))
        for sid, (field_name, _) in SECTION_SOURCES.items()
    }


def build_canonical_evidence_text(sections: dict[SectionId, str]) -> str:
    """Stable, reproducible canonical text in SectionId order."""
    blocks = []
    for sid in SectionId:
        header = SECTION_SOURCES[sid][1]
        body = collapse_whitespace(safe_one_line(sections.get(sid, "")))
        blocks.append(f"=== {header} ===\n{body}")
    return "\n\n".join(blocks)


def build_label_snapshot(record: OpenFdaLabelRecord) -> LabelSnapshot:
    """Pin a record: canonical evidence + SHA-256. Raises MissingIdentityError."""
    set_id = (record.set_id or "").strip()
    effective_time = (record.effective_time or "").strip()
    if not set_id or not effective_time:
        raise MissingIdentityError(
            ErrorContext(debug_info={"id": record.id, "set_id": record.set_id}),
        )

    sections = extract_evidence_sections(record)
    evidence_text = build_canonical_evidence_text(sections)
    return LabelSnapshot(
        set_id=set_id,
        effective_time=effective_time,
        evidence_hash=sha256_hex(evidence_text),
        evidence_text=evidence_text,
        sections=sections,
        brand_names=tuple(record.openfda.brand_name),
        generic_names=tuple(record.openfda.generic_name),
        active_ingredients_list=tuple(record.active_ingredients),
    )


def quote_exists_in_evidence(evidence_text: str, quote: str) -> bool:
    """True iff the normalized, non-empty quote is inside normalized evidence."""
    q = normalize_for_match(quote)
    return bool(q) and q in normalize_for_match(evidence_text)
