"""Pipeline-stage request and response schemas."""

from typing import List, Optional

from pydantic import Field

from app.schemas.common import CamelModel
from app.schemas.scoring import RescanSummary


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class PipelineStageCreate(CamelModel):
    """Body for creating a stage; the id is derived from ``name``."""

    name: str = Field(..., max_length=100)
    color: Optional[str] = Field(default=None, max_length=50)
    description: Optional[str] = None


class PipelineStageUpdate(CamelModel):
    """Partial rename or recolor; the stage id never changes."""

    name: Optional[str] = Field(default=None, max_length=100)
    color: Optional[str] = Field(default=None, max_length=50)
    description: Optional[str] = None


class StageOrderUpdate(CamelModel):
    id: str
    order: int


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class PipelineStageOut(CamelModel):
    id: str
    name: str
    order: int
    color: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_stage(cls, stage) -> "PipelineStageOut":
        return cls(
            id=stage.stage_id,
            name=stage.name,
            order=stage.order,
            color=stage.color,
            description=stage.description,
        )


class StageDeletionOut(CamelModel):
    """What a stage deletion did to the tenant's leads."""

    deleted_stage_id: str
    fallback_stage_id: Optional[str] = None
    reassigned_lead_ids: List[str] = Field(default_factory=list)
    degraded: bool = False
    rescan: RescanSummary
