import re
from typing import FrozenSet, Pattern

from app.schemas.common import ActivityType, ScorableField, ScoringCondition

SCORABLE_FIELDS: FrozenSet[str] = frozenset(f.value for f in ScorableField)

SCORING_CONDITIONS: FrozenSet[str] = frozenset(c.value for c in ScoringCondition)

# Conditions whose rule value must be a non-empty string
STRING_VALUE_CONDITIONS: FrozenSet[str] = frozenset(
    {ScoringCondition.EQUALS.value, ScoringCondition.CONTAINS.value}
)

ACTIVITY_TYPES: FrozenSet[str] = frozenset(a.value for a in ActivityType)

# Author recorded on activity entries the service writes itself
SYSTEM_ACTIVITY_USER: str = "system"

MIN_FIELD_WEIGHT: int = 0
MAX_FIELD_WEIGHT: int = 100

MIN_SCORE: int = 0
MAX_SCORE: int = 100

# Stage ids are stored in leads.status (VARCHAR(50)) and used in URLs
MAX_STAGE_ID_LENGTH: int = 50
STAGE_ID_PATTERN: Pattern[str] = re.compile(r"^[^\s/?#]+$")

# Values a stage id may never take: they read as "no stage" to clients
RESERVED_STAGE_IDS: FrozenSet[str] = frozenset(
    {"undefined", "null", "none", "nan"}
)
