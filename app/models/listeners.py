from datetime import datetime, timezone

from sqlalchemy import event

from app.models.lead import Lead
from app.models.pipeline_stage import PipelineStage
from app.models.tenant_settings import TenantSettings


# Auto updated_at
@event.listens_for(Lead, "before_update")
@event.listens_for(PipelineStage, "before_update")
@event.listens_for(TenantSettings, "before_update")
def update_timestamp(mapper, connection, target):
    target.updated_at = datetime.now(timezone.utc)
