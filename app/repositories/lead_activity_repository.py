from typing import Any, List
from uuid import UUID

from sqlalchemy import select

from app.models.lead_activity import LeadActivity
from app.repositories.base import BaseRepository


class LeadActivityRepository(BaseRepository):
    """Encapsulates queries against the ``lead_activities`` table."""

    async def create(self, **kwargs: Any) -> LeadActivity:
        """Insert a new activity log entry."""
        activity = LeadActivity(**kwargs)
        self._db.add(activity)
        return activity

    async def list_for_lead(self, tenant_id: str, lead_id: UUID) -> List[LeadActivity]:
        """Return the lead's activity log, oldest entry first."""
        result = await self._db.execute(
            select(LeadActivity)
            .where(
                LeadActivity.tenant_id == tenant_id,
                LeadActivity.lead_id == lead_id,
            )
            .order_by(LeadActivity.timestamp.asc())
        )
        return list(result.scalars().all())
