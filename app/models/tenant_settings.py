from sqlalchemy import Column, DateTime, Integer, String, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from app.models.base import Base


class TenantSettings(Base):
    """Per-tenant scoring configuration.

    ``scoring_fields`` stores the complete ``ScoringConfig.fields`` list
    in its camelCase wire form; it is only ever replaced whole and
    ``config_version`` is bumped on each replace.  The row doubles as the
    tenant's database lock: structural mutations select it ``FOR UPDATE``
    and lead writes select it ``FOR SHARE``.
    """

    __tablename__ = "tenant_settings"
    tenant_id = Column(String(64), primary_key=True)
    scoring_fields = Column(JSONB, nullable=False, server_default=text("'[]'::jsonb"))
    config_version = Column(Integer, nullable=False, server_default=text("1"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
