import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from app.models.base import Base


class LeadActivity(Base):
    """One entry in a lead's activity log (call, email, note, stage change)."""

    __tablename__ = "lead_activities"
    activity_id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=func.gen_random_uuid(),
    )
    tenant_id = Column(String(64), nullable=False)
    lead_id = Column(
        UUID(as_uuid=True),
        ForeignKey("leads.lead_id", ondelete="CASCADE"),
        nullable=False,
    )
    type = Column(String(20), nullable=False)
    details = Column(Text, nullable=False)
    user_id = Column(String(100))
    timestamp = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_lead_activities_tenant_lead", "tenant_id", "lead_id", "timestamp"),
        CheckConstraint(
            "type IN ('Call', 'Email', 'Note', 'Meeting', 'StageChange')",
            name="ck_activity_type",
        ),
    )
    __mapper_args__ = {"eager_defaults": True}
