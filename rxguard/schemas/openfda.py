"""openFDA Schemas — typed validation boundary for drug/label search payloads.

Invariants:
    - Unknown upstream fields are ignored; known fields are type-checked
    - Label sections accept a string, a list of strings, or nothing
    - openfda name lists always materialize as lists (string → [string])
    - Records are frozen once validated

Design Decisions:
    - pydantic over dict access: a malformed payload fails once, here, instead
      of as a KeyError deep inside selection or extraction
    - coerce_numbers_to_str: effective_time occasionally arrives as a number
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

SectionValue = str | list[str] | None


def _as_list(v):
    if v is None:
        return []
    if isinstance(v, str):
        return [v]
    return v


class OpenFdaNames(BaseModel):
    """The harmonized `openfda` block of a label record."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    brand_name: list[str] = Field(default_factory=list)
    generic_name: list[str] = Field(default_factory=list)
    substance_name: list[str] = Field(default_factory=list)
    manufacturer_name: list[str] = Field(default_factory=list)

    @field_validator(
        "brand_name", "generic_name", "substance_name", "manufacturer_name",
        mode="before",
    )
    @classmethod
    def wrap_scalar(cls, v):
        return _as_list(v)


class OpenFdaLabelRecord(BaseModel):
    """One label record version. Only fields RxGuard reads are declared."""
    model_config = ConfigDict(
        extra="ignore", frozen=True, coerce_numbers_to_str=True,
    )

    id: str | None = None
    set_id: str | None = None
    effective_time: str | None = None
    openfda: OpenFdaNames = Field(default_factory=OpenFdaNames)

    active_ingredient: SectionValue = None
    boxed_warning: SectionValue = None
    contraindications: SectionValue = None
    warnings: SectionValue = None
    warnings_and_cautions: SectionValue = None
    drug_interactions: SectionValue = None
    pregnancy: SectionValue = None
    lactation: SectionValue = None
    pediatric_use: SectionValue = None
    geriatric_use: SectionValue = None
    do_not_use: SectionValue = None
    ask_doctor: SectionValue = None

    @field_validator("openfda", mode="before")
    @classmethod
    def default_openfda(cls, v):
        return v if v is not None else {}

    @property
    def active_ingredients(self) -> list[str]:
        """active_ingredient as a list regardless of upstream shape."""
        return _as_list(self.active_ingredient)

    @property
    def stable_id(self) -> str:
        """Tie-break identifier: id, then set_id, then empty."""
        return str(self.id or self.set_id or "")


class OpenFdaMetaResults(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total: int | None = None


class OpenFdaMeta(BaseModel):
    model_config = ConfigDict(extra="ignore")

    results: OpenFdaMetaResults | None = None


class OpenFdaSearchPayload(BaseModel):
    """Top-level drug/label.json response."""
    model_config = ConfigDict(extra="ignore")

    meta: OpenFdaMeta | None = None
    results: list[OpenFdaLabelRecord] = Field(default_factory=list)

    @property
    def total(self) -> int:
        if self.meta and self.meta.results and self.meta.results.total is not None:
            return self.meta.results.total
        return len(self.results)
