"""Lead-specific Pydantic schemas (create, update, import, response)."""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import ConfigDict, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel
from typing_extensions import Self

from app.schemas.common import ActivityType, CamelModel


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class LeadCreate(CamelModel):
    """Lead data submitted on create or import.

    Unknown keys, including any client-supplied ``score``, are dropped
    during parsing; the score is always computed server-side.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    company: Optional[str] = Field(default=None, max_length=200)
    designation: Optional[str] = Field(default=None, max_length=200)
    location: Optional[str] = Field(default=None, max_length=200)
    category: Optional[str] = Field(default=None, max_length=100)
    industry: Optional[str] = Field(default=None, max_length=100)
    status: Optional[str] = Field(default=None, max_length=50)
    value: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None
    last_contact: Optional[date] = None
    next_follow_up: Optional[date] = None

    @model_validator(mode="after")
    def validate_name_not_blank(self) -> Self:
        if not self.name.strip():
            raise ValueError("name must not be blank")
        return self


class LeadUpdate(CamelModel):
    """Partial lead update; only fields present in the body are applied."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    company: Optional[str] = Field(default=None, max_length=200)
    designation: Optional[str] = Field(default=None, max_length=200)
    location: Optional[str] = Field(default=None, max_length=200)
    category: Optional[str] = Field(default=None, max_length=100)
    industry: Optional[str] = Field(default=None, max_length=100)
    status: Optional[str] = Field(default=None, max_length=50)
    value: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None
    last_contact: Optional[date] = None
    next_follow_up: Optional[date] = None

    @model_validator(mode="after")
    def validate_required_fields_not_cleared(self) -> Self:
        """``name`` and ``status`` may change but never be nulled out."""
        for required in ("name", "status"):
            if required in self.model_fields_set and getattr(self, required) is None:
                raise ValueError(f"{required} cannot be cleared")
        return self


class LeadImportRequest(CamelModel):
    """Already-parsed records from a client-side import (e.g. CSV)."""

    leads: List[LeadCreate] = Field(..., min_length=1)


class LeadActivityCreate(CamelModel):
    """A manual activity log entry.

    ``type`` and ``details`` are checked by the service so that a missing
    or blank value is reported like any other invalid input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    type: Optional[str] = None
    details: Optional[str] = None
    user_id: Optional[str] = Field(default=None, max_length=100)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeadOut(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    lead_id: UUID
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    designation: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None
    industry: Optional[str] = None
    status: str
    value: Optional[float] = None
    notes: Optional[str] = None
    last_contact: Optional[date] = None
    next_follow_up: Optional[date] = None
    score: int = Field(..., ge=0, le=100)
    score_stale: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LeadImportResponse(CamelModel):
    imported: int
    skipped: int
    lead_ids: List[UUID] = Field(default_factory=list)


class LeadActivityOut(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    activity_id: UUID
    lead_id: UUID
    type: ActivityType
    details: str
    user_id: Optional[str] = None
    timestamp: Optional[datetime] = None
