import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from app.core.constants import MAX_SCORE, MIN_SCORE
from app.core.exceptions import InvalidScoringConfigError
from app.schemas.common import ScorableField, ScoringCondition
from app.schemas.scoring import ScoringConfig, ScoringFieldConfig

logger = logging.getLogger(__name__)


def _attribute(name: str) -> Callable[[Any], Any]:
    def accessor(lead: Any) -> Any:
        if isinstance(lead, Mapping):
            return lead.get(name)
        return getattr(lead, name, None)

    return accessor


# Closed mapping from scorable field to lead attribute
FIELD_ACCESSORS: Dict[ScorableField, Callable[[Any], Any]] = {
    ScorableField.category: _attribute("category"),
    ScorableField.location: _attribute("location"),
    ScorableField.designation: _attribute("designation"),
    ScorableField.status: _attribute("status"),
    ScorableField.industry: _attribute("industry"),
}


@dataclass(frozen=True)
class FieldContribution:
    field_name: ScorableField
    lead_value: Optional[str]
    field_score: int
    max_field_points: int
    weight: int
    weighted_score: float
    matched_rule_ids: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ScoreBreakdown:
    score: int
    weighted_score: float
    max_weighted_score: float
    total_active_weight: int
    fields: List[FieldContribution] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Condition evaluation
# ---------------------------------------------------------------------------


def evaluate_condition(
    condition: Any,
    rule_value: Any,
    lead_value: Any,
    rule_id: Optional[str] = None,
) -> bool:
    """Return ``True`` when *lead_value* satisfies one rule's condition.

    All string comparisons are case-insensitive.  A malformed rule (an
    unknown condition, an ``isOneOf`` whose value is not a list, a
    non-string value for ``equals``/``contains``) never raises: the
    problem is logged and the rule simply does not match.
    """
    try:
        condition = ScoringCondition(condition)

        if condition is ScoringCondition.IS_NOT_EMPTY:
            return isinstance(lead_value, str) and lead_value != ""

        lowered = lead_value.lower()

        if condition is ScoringCondition.EQUALS:
            return lowered == _expect_str(rule_value).lower()

        if condition is ScoringCondition.CONTAINS:
            return _expect_str(rule_value).lower() in lowered

        if condition is ScoringCondition.IS_ONE_OF:
            if not isinstance(rule_value, list):
                raise TypeError(
                    f"isOneOf expects a list value, got {type(rule_value).__name__}"
                )
            return any(
                isinstance(candidate, str) and candidate.lower() == lowered
                for candidate in rule_value
            )
    except Exception as exc:
        logger.warning(
            "Scoring rule %s (condition=%r) could not be evaluated: %s",
            rule_id or "<unnamed>",
            condition,
            exc,
        )
    return False


def _expect_str(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected a string value, got {type(value).__name__}")
    return value


# ---------------------------------------------------------------------------
# Field scoring
# ---------------------------------------------------------------------------


def is_field_scored(field_config: ScoringFieldConfig) -> bool:
    """Inactive and zero-weight fields are left out of scoring entirely."""
    return bool(field_config.is_active) and field_config.weight > 0


def read_field_value(field_config: ScoringFieldConfig, lead: Any) -> Any:
    """Read the lead attribute a field config points at."""
    try:
        accessor = FIELD_ACCESSORS[ScorableField(field_config.field_name)]
    except (KeyError, ValueError):
        raise InvalidScoringConfigError(
            f"Field '{field_config.field_name}' is not a scorable lead attribute",
            {"field_name": str(field_config.field_name)},
        )
    return accessor(lead)


def _usable(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def _matched_rules(field_config: ScoringFieldConfig, value: str) -> List[Any]:
    return [
        rule
        for rule in field_config.rules
        if evaluate_condition(rule.condition, rule.value, value, rule_id=rule.id)
    ]


def score_field(field_config: ScoringFieldConfig, lead: Any) -> int:
    """Sum the points of every rule that matches the lead's field value.

    Rules are cumulative: several matching rules on the same field all
    add their points.  A missing, non-string or blank value scores 0.
    """
    if not is_field_scored(field_config):
        return 0
    value = read_field_value(field_config, lead)
    if not _usable(value):
        return 0
    return sum(rule.points for rule in _matched_rules(field_config, value))


def max_field_points(field_config: ScoringFieldConfig) -> int:
    """Best single-rule points for a field, never below 0."""
    return max([0] + [rule.points for rule in field_config.rules])


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def _normalize(raw_score: float) -> int:
    if not math.isfinite(raw_score):
        logger.warning("Non-finite raw score %r reset to 0", raw_score)
        return 0
    # Half-up rounding, matching how scores were rounded historically
    rounded = math.floor(raw_score + 0.5)
    return max(MIN_SCORE, min(MAX_SCORE, rounded))


def score_breakdown(lead: Any, config: ScoringConfig) -> ScoreBreakdown:
    """Score *lead* against *config* and keep the per-field detail.

    The weighted sum is normalised against the best score the active
    fields could possibly reach, so a tenant whose rules only award a
    few points still spreads leads over the full 0–100 range.
    """
    contributions: List[FieldContribution] = []
    weighted_score = 0.0
    max_weighted_score = 0.0
    total_active_weight = 0

    for field_config in config.fields:
        if not is_field_scored(field_config):
            continue

        factor = field_config.weight / 100
        value = read_field_value(field_config, lead)
        matched = _matched_rules(field_config, value) if _usable(value) else []
        field_points = sum(rule.points for rule in matched)
        best_points = max_field_points(field_config)

        weighted_score += field_points * factor
        max_weighted_score += best_points * factor
        total_active_weight += field_config.weight

        contributions.append(
            FieldContribution(
                field_name=ScorableField(field_config.field_name),
                lead_value=value if isinstance(value, str) else None,
                field_score=field_points,
                max_field_points=best_points,
                weight=field_config.weight,
                weighted_score=field_points * factor,
                matched_rule_ids=[rule.id for rule in matched],
            )
        )

    if max_weighted_score > 0:
        raw_score = (weighted_score / max_weighted_score) * 100
    else:
        raw_score = 0.0

    return ScoreBreakdown(
        score=_normalize(raw_score),
        weighted_score=weighted_score,
        max_weighted_score=max_weighted_score,
        total_active_weight=total_active_weight,
        fields=contributions,
    )


def aggregate_score(lead: Any, config: ScoringConfig) -> int:
    """Compute the normalised 0–100 score for *lead*."""
    return score_breakdown(lead, config).score
