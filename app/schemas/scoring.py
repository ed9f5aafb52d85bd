"""Scoring configuration schemas (rules, fields, config) and audit output."""

from typing import List, Optional, Union

from pydantic import Field, model_validator
from typing_extensions import Self

from app.core.constants import (
    MAX_FIELD_WEIGHT,
    MIN_FIELD_WEIGHT,
    STRING_VALUE_CONDITIONS,
)
from app.schemas.common import CamelModel, ScorableField, ScoringCondition


class ScoringRule(CamelModel):
    """A single condition/value/points triple attached to a scoring field."""

    id: str = Field(..., min_length=1, max_length=100)
    condition: ScoringCondition
    value: Union[str, List[str], None] = None
    points: int

    @model_validator(mode="after")
    def validate_value_for_condition(self) -> Self:
        """Enforce the value shape each condition expects.

        ``isOneOf`` needs a non-empty list of strings, ``equals`` and
        ``contains`` need a non-empty string, ``isNotEmpty`` ignores the
        value entirely.
        """
        if self.condition is ScoringCondition.IS_ONE_OF:
            if not isinstance(self.value, list) or not self.value:
                raise ValueError(
                    f"Rule '{self.id}': isOneOf requires a non-empty list of values"
                )
        elif self.condition.value in STRING_VALUE_CONDITIONS:
            if not isinstance(self.value, str) or not self.value.strip():
                raise ValueError(
                    f"Rule '{self.id}': {self.condition.value} requires a "
                    f"non-empty string value"
                )
        return self


class ScoringFieldConfig(CamelModel):
    """Weight, active flag and rule list for one scorable lead attribute."""

    field_name: ScorableField
    label: str = Field(default="", max_length=100)
    is_active: bool = True
    weight: int = Field(..., ge=MIN_FIELD_WEIGHT, le=MAX_FIELD_WEIGHT)
    rules: List[ScoringRule] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_rule_ids(self) -> Self:
        seen = set()
        for rule in self.rules:
            if rule.id in seen:
                raise ValueError(
                    f"Duplicate rule id '{rule.id}' in field "
                    f"'{self.field_name.value}'"
                )
            seen.add(rule.id)
        return self


class ScoringConfig(CamelModel):
    """A tenant's complete scoring configuration, always replaced whole."""

    fields: List[ScoringFieldConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_field_names(self) -> Self:
        seen = set()
        for field in self.fields:
            if field.field_name in seen:
                raise ValueError(
                    f"Field '{field.field_name.value}' is configured more than once"
                )
            seen.add(field.field_name)
        return self

    def to_storage(self) -> List[dict]:
        """Return the ``fields`` list in its JSONB storage form."""
        return self.model_dump(by_alias=True, mode="json")["fields"]


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ComputationWarningOut(CamelModel):
    lead_id: str
    message: str


class RescanSummary(CamelModel):
    """Outcome of a batch rescore over a tenant's leads."""

    scanned: int = 0
    updated: int = 0
    warnings: List[ComputationWarningOut] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result) -> "RescanSummary":
        return cls(
            scanned=result.scanned,
            updated=result.updated,
            warnings=[
                ComputationWarningOut(lead_id=w.lead_id, message=w.message)
                for w in result.warnings
            ],
        )


class ScoringConfigUpdateResponse(ScoringConfig):
    """The stored configuration plus the rescan it triggered."""

    version: int
    rescan: RescanSummary


class FieldContributionOut(CamelModel):
    field_name: ScorableField
    lead_value: Optional[str] = None
    field_score: int
    max_field_points: int
    weight: int
    weighted_score: float
    matched_rule_ids: List[str] = Field(default_factory=list)


class ScoreBreakdownOut(CamelModel):
    """Audit view of how a lead's score was derived."""

    lead_id: str
    score: int = Field(..., ge=0, le=100)
    weighted_score: float
    max_weighted_score: float
    total_active_weight: int
    fields: List[FieldContributionOut] = Field(default_factory=list)
