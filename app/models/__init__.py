from app.models.base import Base
from app.models.lead import Lead
from app.models.lead_activity import LeadActivity
from app.models.pipeline_stage import PipelineStage
from app.models.tenant_settings import TenantSettings

# Import event listeners to register them
from app.models import listeners  # noqa: F401

__all__ = [
    "Base",
    "Lead",
    "LeadActivity",
    "PipelineStage",
    "TenantSettings",
]
