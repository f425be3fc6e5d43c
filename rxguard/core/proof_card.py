"""Proof Card Builder — keeps only quotes provably present in the pinned evidence.

Invariants:
    - Every surviving quote satisfies quote_exists_in_evidence(snapshot.evidence_text, quote)
    - Failing quotes are dropped silently (extraction-window artifacts, not errors)
    - Input order of surviving quotes is preserved
    - Identity fields and hash copied verbatim so consumers can re-verify provenance
"""

from typing import Iterable

from rxguard.core.evidence import quote_exists_in_evidence
from rxguard.core.evidence_types import EvidenceQuote, LabelSnapshot, ProofCard


def build_proof_card(
    snapshot: LabelSnapshot, quotes: Iterable[EvidenceQuote],
) -> ProofCard:
    verified = tuple(
        q for q in quotes
        if quote_exists_in_evidence(snapshot.evidence_text, q.quote)
    )
    return ProofCard(
        set_id=snapshot.set_id,
        effective_time=snapshot.effective_time,
        evidence_hash=snapshot.evidence_hash,
        quotes=verified,
    )
