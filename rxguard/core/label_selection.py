"""Label Selection — deterministic choice and ambiguity detection over candidates.

Invariants:
    - Pure: same candidate list (in any order) → same canonical record
    - Sort key: effective_time numeric DESC, then stable id (id or set_id) ASC
    - Ambiguous iff > 1 candidate AND > 1 distinct active-ingredient group
    - Ambiguity never guesses: the caller gets groups, not a pick
    - Search terms never carry quotes or backslashes into the query language

Design Decisions:
    - Non-numeric / missing effective_time ranks as 0 (oldest), never raises
    - Ingredient group = sorted, deduplicated, lower-cased one-line ingredients;
      order or casing differences in the upstream data do not create ambiguity
"""

import math
from dataclasses import dataclass, field

from rxguard.core.domain_types import MAX_AMBIGUITY_OPTIONS
from rxguard.core.evidence_types import FormulationOption
from rxguard.core.text_normalize import clamp, collapse_whitespace, safe_one_line
from rxguard.schemas.openfda import OpenFdaLabelRecord

DEFAULT_LIMIT = 5
MAX_LIMIT = 25

_SEARCH_FIELDS = (
    "openfda.brand_name", "openfda.generic_name", "openfda.substance_name",
)


def sanitize_term(term: str) -> str:
    """One line, no quote/backslash characters, single-spaced."""
    one_line = safe_one_line(term).replace('"', "").replace("\\", "")
    return collapse_whitespace(one_line)


def build_search_expr(drug_name: str) -> str:
    """OR search over brand, generic and substance names."""
    t = sanitize_term(drug_name)
    clauses = " OR ".join(f'{name}:"{t}"' for name in _SEARCH_FIELDS)
    return f"({clauses})"


def clamp_limit(limit: int | None) -> int:
    return clamp(DEFAULT_LIMIT if limit is None else int(limit), 1, MAX_LIMIT)


def effective_time_to_number(effective_time: str | None) -> float:
    """effective_time is usually YYYYMMDD; anything unparseable ranks as 0."""
    if not effective_time:
        return 0
    try:
        n = float(effective_time)
    except (TypeError, ValueError):
        return 0
    return n if math.isfinite(n) else 0


def _sort_key(record: OpenFdaLabelRecord) -> tuple[float, str]:
    return (-effective_time_to_number(record.effective_time), record.stable_id)


def choose_deterministic_record(
    records: list[OpenFdaLabelRecord],
) -> OpenFdaLabelRecord | None:
    """Latest effective_time wins; ties resolve by ascending stable id."""
    if not records:
        return None
    return sorted(records, key=_sort_key)[0]


def normalized_active_ingredients(record: OpenFdaLabelRecord) -> tuple[str, ...]:
    cleaned = {safe_one_line(s).lower() for s in record.active_ingredients}
    return tuple(sorted(s for s in cleaned if s))


@dataclass
class AmbiguityReport:
    ambiguous: bool
    # One representative record per distinct ingredient group, first-seen order
    groups: list[OpenFdaLabelRecord] = field(default_factory=list)


def detect_ambiguity(records: list[OpenFdaLabelRecord]) -> AmbiguityReport:
    """Group candidates by ingredient set; > 1 group among > 1 records is ambiguous."""
    groups: dict[tuple[str, ...], OpenFdaLabelRecord] = {}
    for record in records:
        groups.setdefault(normalized_active_ingredients(record), record)
    ambiguous = len(records) > 1 and len(groups) > 1
    return AmbiguityReport(ambiguous=ambiguous, groups=list(groups.values()))


def to_formulation_option(record: OpenFdaLabelRecord) -> FormulationOption:
    return FormulationOption(
        brand_names=tuple(record.openfda.brand_name),
        generic_names=tuple(record.openfda.generic_name),
        active_ingredients=tuple(record.active_ingredients),
        set_id=record.set_id,
        effective_time=record.effective_time,
    )


def ambiguity_options(
    report: AmbiguityReport, limit: int = MAX_AMBIGUITY_OPTIONS,
) -> tuple[FormulationOption, ...]:
    return tuple(to_formulation_option(r) for r in report.groups[:limit])
