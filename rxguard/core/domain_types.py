"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - RiskLevel is totally ordered: UNKNOWN < LOW < MODERATE < HIGH
    - combine_risk never lowers a risk (max of both operands)
    - SectionId is the closed set of label sections; declaration order IS the
      canonical evidence order (changing it changes every evidence hash)
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType for identifiers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (pydantic response models)
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

DocId = NewType("DocId", str)        # "{set_id}_{effective_time}"
DrugKey = NewType("DrugKey", str)    # normalize_for_key(query)


# ─── Constants ───────────────────────────────────────────────────

LABEL_SOURCE = "openFDA"
WHOLE_LABEL_SECTION = "LABEL"
MAX_AMBIGUITY_OPTIONS = 5


# ─── Enums ───────────────────────────────────────────────────────

class RiskLevel(str, Enum):
    """Ordered risk scale — compare with rank, combine with combine_risk."""
    UNKNOWN = "UNKNOWN"
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]


_RISK_RANK = {
    RiskLevel.UNKNOWN: 0,
    RiskLevel.LOW: 1,
    RiskLevel.MODERATE: 2,
    RiskLevel.HIGH: 3,
}


def combine_risk(current: RiskLevel, other: RiskLevel) -> RiskLevel:
    """Return the higher of two risks (monotonic, idempotent, commutative)."""
    return other if other.rank > current.rank else current


class Decision(str, Enum):
    """Gate outcome surfaced to the caller."""
    BLOCK = "BLOCK"
    CAUTION = "CAUTION"
    CLARIFY = "CLARIFY"
    INFO = "INFO"


class PregnancyStatus(str, Enum):
    """Profile pregnancy status. Only TRYING and trimesters gate pregnancy rules."""
    NOT_PREGNANT = "no"
    TRYING = "trying"
    FIRST_TRIMESTER = "pregnant_t1"
    SECOND_TRIMESTER = "pregnant_t2"
    THIRD_TRIMESTER = "pregnant_t3"
    UNKNOWN = "unknown"

    @property
    def is_pregnant_or_trying(self) -> bool:
        return self not in (PregnancyStatus.NOT_PREGNANT, PregnancyStatus.UNKNOWN)


class Sex(str, Enum):
    MALE = "M"
    FEMALE = "F"
    OTHER = "Other"
    UNKNOWN = "Unknown"


class SectionId(str, Enum):
    """Closed set of label sections, in canonical evidence order."""
    ACTIVE_INGREDIENTS = "activeIngredients"
    BOXED_WARNING = "boxedWarning"
    CONTRAINDICATIONS = "contraindications"
    WARNINGS = "warnings"
    WARNINGS_AND_CAUTIONS = "warningsAndCautions"
    DRUG_INTERACTIONS = "drugInteractions"
    PREGNANCY = "pregnancy"
    LACTATION = "lactation"
    PEDIATRIC_USE = "pediatricUse"
    GERIATRIC_USE = "geriatricUse"
    DO_NOT_USE = "doNotUse"
    ASK_DOCTOR = "askDoctor"


class BaselineSelector(str, Enum):
    """Which baseline model(s) to call for the side-by-side demo."""
    A = "A"
    B = "B"
    BOTH = "both"


class ResolutionKind(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"
