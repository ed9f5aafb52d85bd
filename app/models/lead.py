import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from app.models.base import Base


class Lead(Base):
    """Sales prospect tracked through a tenant's pipeline.

    ``status`` holds the id of one of the tenant's pipeline stages.
    ``score`` is derived: it is recomputed from the categorical
    attributes and the tenant's scoring configuration on every write and
    is never accepted from clients.  ``score_stale`` marks a lead whose
    rescoring failed during a batch rescan so a later pass can repair it.
    """

    __tablename__ = "leads"
    lead_id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=func.gen_random_uuid(),
    )
    tenant_id = Column(String(64), nullable=False)
    name = Column(String(200), nullable=False)
    email = Column(String(255))
    phone = Column(String(50))
    company = Column(String(200))
    designation = Column(String(200))
    location = Column(String(200))
    category = Column(String(100))
    industry = Column(String(100))
    status = Column(String(50), nullable=False)
    value = Column(Numeric(15, 2))
    notes = Column(Text)
    last_contact = Column(Date)
    next_follow_up = Column(Date)
    score = Column(Integer, nullable=False, server_default=text("0"))
    score_stale = Column(Boolean, nullable=False, server_default=text("false"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_leads_tenant_status", "tenant_id", "status"),
        Index("ix_leads_tenant_email", "tenant_id", "email"),
        CheckConstraint("score BETWEEN 0 AND 100", name="ck_score_range"),
    )
    # Fetch server-side timestamps on flush so responses never lazy-load
    __mapper_args__ = {"eager_defaults": True}
