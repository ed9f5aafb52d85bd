from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from app.models.base import Base


class PipelineStage(Base):
    """One named step of a tenant's sales pipeline.

    ``stage_id`` is the value stored in ``leads.status``; it is derived
    from the stage name on creation and never changes afterwards.
    ``order`` sorts stages ascending and picks the fallback stage when a
    stage is deleted.
    """

    __tablename__ = "pipeline_stages"
    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String(64), nullable=False)
    stage_id = Column(String(50), nullable=False)
    name = Column(String(100), nullable=False)
    order = Column("stage_order", Integer, nullable=False)
    color = Column(String(50))
    description = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "stage_id", name="uq_pipeline_stage_tenant_id"),
    )
    __mapper_args__ = {"eager_defaults": True}
