"""Repository layer – all database access goes through here.

Repositories encapsulate SQLAlchemy queries so that the service layer
only contains business logic.
"""

from app.repositories.lead_activity_repository import LeadActivityRepository
from app.repositories.lead_repository import LeadRepository
from app.repositories.pipeline_stage_repository import PipelineStageRepository
from app.repositories.tenant_settings_repository import TenantSettingsRepository

__all__ = [
    "LeadActivityRepository",
    "LeadRepository",
    "PipelineStageRepository",
    "TenantSettingsRepository",
]
