"""Pydantic schemas package – re-exports for convenience."""

# Common enums
from app.schemas.common import (
    ActivityType as ActivityType,
    CamelModel as CamelModel,
    ScorableField as ScorableField,
    ScoringCondition as ScoringCondition,
)

# Scoring configuration schemas
from app.schemas.scoring import (
    ScoringRule as ScoringRule,
    ScoringFieldConfig as ScoringFieldConfig,
    ScoringConfig as ScoringConfig,
    ScoringConfigUpdateResponse as ScoringConfigUpdateResponse,
    RescanSummary as RescanSummary,
    ComputationWarningOut as ComputationWarningOut,
    FieldContributionOut as FieldContributionOut,
    ScoreBreakdownOut as ScoreBreakdownOut,
)

# Pipeline stage schemas
from app.schemas.stage import (
    PipelineStageCreate as PipelineStageCreate,
    PipelineStageUpdate as PipelineStageUpdate,
    StageOrderUpdate as StageOrderUpdate,
    PipelineStageOut as PipelineStageOut,
    StageDeletionOut as StageDeletionOut,
)

# Lead schemas
from app.schemas.lead import (
    LeadCreate as LeadCreate,
    LeadUpdate as LeadUpdate,
    LeadImportRequest as LeadImportRequest,
    LeadImportResponse as LeadImportResponse,
    LeadOut as LeadOut,
    LeadActivityCreate as LeadActivityCreate,
    LeadActivityOut as LeadActivityOut,
)
