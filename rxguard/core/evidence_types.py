"""Evidence Types — immutable value objects flowing from resolution to response.

Invariants:
    - LabelSnapshot.sections has exactly one entry per SectionId (no more, no less)
    - LabelSnapshot.evidence_hash == sha256_hex(evidence_text), checked at construction
    - ProofCard.quotes only ever holds quotes verified against evidence_text
    - ResolutionOutcome is a closed union: ResolutionOk | ResolutionNotFound | ResolutionAmbiguous

Design Decisions:
    - frozen dataclasses (not pydantic): core stays free of validation machinery
      and snapshots are hashable-by-identity values safe to share across requests
    - sections wrapped in MappingProxyType: read-only view, mutation is a TypeError
    - Tagged union via `kind` field + isinstance: exhaustive matching in the composer
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Union

from rxguard.core.domain_types import (
    Decision, DocId, LABEL_SOURCE, ResolutionKind, RiskLevel, SectionId,
)
from rxguard.core.errors import EvidenceIntegrityError, ErrorContext
from rxguard.core.text_normalize import sha256_hex


@dataclass(frozen=True)
class LabelSnapshot:
    """Hash-pinned, canonical evidence for one label record version."""

    set_id: str
    effective_time: str
    evidence_hash: str
    evidence_text: str
    sections: Mapping[SectionId, str]
    brand_names: tuple[str, ...] = ()
    generic_names: tuple[str, ...] = ()
    active_ingredients_list: tuple[str, ...] = ()

    def __post_init__(self):
        ctx = ErrorContext(doc_id=f"{self.set_id}_{self.effective_time}")
        # Keys may arrive as SectionId or as their string values (stored JSON)
        try:
            by_id = {SectionId(k): str(v or "") for k, v in self.sections.items()}
        except ValueError as e:
            raise EvidenceIntegrityError(f"Unknown label section: {e}", ctx)
        missing = set(SectionId) - set(by_id)
        if missing:
            raise EvidenceIntegrityError(
                f"Label sections incomplete: missing {sorted(m.value for m in missing)}",
                ctx,
            )
        if sha256_hex(self.evidence_text) != self.evidence_hash:
            raise EvidenceIntegrityError(
                "Evidence hash does not match evidence text", ctx,
            )
        ordered = {sid: by_id[sid] for sid in SectionId}
        object.__setattr__(self, "sections", MappingProxyType(ordered))
        object.__setattr__(self, "brand_names", tuple(self.brand_names))
        object.__setattr__(self, "generic_names", tuple(self.generic_names))
        object.__setattr__(
            self, "active_ingredients_list", tuple(self.active_ingredients_list),
        )

    @property
    def doc_id(self) -> DocId:
        return DocId(f"{self.set_id}_{self.effective_time}")

    def section(self, section_id: SectionId) -> str:
        return self.sections[section_id]


@dataclass(frozen=True)
class EvidenceQuote:
    """A candidate citation. Must be verified before reaching a ProofCard."""
    section: str
    quote: str
    reason: str | None = None


@dataclass(frozen=True)
class ProofCard:
    """Verifiable evidence bundle — identity + hash + verified quotes."""
    set_id: str
    effective_time: str
    evidence_hash: str
    quotes: tuple[EvidenceQuote, ...] = ()
    source: str = LABEL_SOURCE


@dataclass
class PolicyResult:
    """Deterministic policy evaluation output."""
    decision: Decision
    risk: RiskLevel
    rules_triggered: list[str] = field(default_factory=list)
    quotes: list[EvidenceQuote] = field(default_factory=list)
    clarifying_question: str | None = None


@dataclass(frozen=True)
class FormulationOption:
    """One distinguishable formulation shown when a query is ambiguous."""
    brand_names: tuple[str, ...]
    generic_names: tuple[str, ...]
    active_ingredients: tuple[str, ...]
    set_id: str | None = None
    effective_time: str | None = None

    @property
    def display_name(self) -> str:
        if self.brand_names:
            return self.brand_names[0]
        if self.generic_names:
            return self.generic_names[0]
        return "Unknown"


# ─── Resolution Outcome (tagged union) ──────────────────────────

@dataclass(frozen=True)
class ResolutionOk:
    drug_query: str
    normalized_query: str
    snapshot: LabelSnapshot
    kind: ResolutionKind = ResolutionKind.OK


@dataclass(frozen=True)
class ResolutionNotFound:
    drug_query: str
    normalized_query: str
    reason: str
    kind: ResolutionKind = ResolutionKind.NOT_FOUND


@dataclass(frozen=True)
class ResolutionAmbiguous:
    drug_query: str
    normalized_query: str
    options: tuple[FormulationOption, ...]
    reason: str
    kind: ResolutionKind = ResolutionKind.AMBIGUOUS


ResolutionOutcome = Union[ResolutionOk, ResolutionNotFound, ResolutionAmbiguous]
