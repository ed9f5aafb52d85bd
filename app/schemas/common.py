from enum import Enum
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ScoringCondition(str, Enum):
    EQUALS = "equals"
    CONTAINS = "contains"
    IS_ONE_OF = "isOneOf"
    IS_NOT_EMPTY = "isNotEmpty"


class ScorableField(str, Enum):
    """Categorical lead attributes a scoring field may reference."""

    category = "category"
    location = "location"
    designation = "designation"  # Job Title
    status = "status"  # Pipeline stage id
    industry = "industry"


class ActivityType(str, Enum):
    """Kinds of entries in a lead's activity log."""

    CALL = "Call"
    EMAIL = "Email"
    NOTE = "Note"
    MEETING = "Meeting"
    STAGE_CHANGE = "StageChange"


class CamelModel(BaseModel):
    """Base model that speaks camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

