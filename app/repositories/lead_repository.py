from typing import Any, List, Optional, Set
from uuid import UUID

from sqlalchemy import func, select

from app.models.lead import Lead
from app.repositories.base import BaseRepository


class LeadRepository(BaseRepository):
    """Encapsulates every SQL query that touches the ``leads`` table.

    All lookups are tenant-scoped; a lead id from another tenant behaves
    exactly like an unknown id.
    """

    async def get_by_id(self, tenant_id: str, lead_id: UUID) -> Optional[Lead]:
        """Return a single lead by primary key, or ``None``."""
        result = await self._db.execute(
            select(Lead).where(Lead.tenant_id == tenant_id, Lead.lead_id == lead_id)
        )
        return result.scalar_one_or_none()

    async def list_for_tenant(
        self,
        tenant_id: str,
        status: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Lead]:
        """Return the tenant's leads, best score first."""
        query = select(Lead).where(Lead.tenant_id == tenant_id)
        if status is not None:
            query = query.where(Lead.status == status)
        query = query.order_by(Lead.score.desc(), Lead.created_at).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        result = await self._db.execute(query)
        return list(result.scalars().all())

    async def list_all(self, tenant_id: str) -> List[Lead]:
        """Return every lead of the tenant, for a full rescan."""
        result = await self._db.execute(
            select(Lead).where(Lead.tenant_id == tenant_id).order_by(Lead.created_at)
        )
        return list(result.scalars().all())

    async def list_by_status(self, tenant_id: str, status: str) -> List[Lead]:
        """Return the leads currently sitting in pipeline stage *status*."""
        result = await self._db.execute(
            select(Lead).where(Lead.tenant_id == tenant_id, Lead.status == status)
        )
        return list(result.scalars().all())

    async def list_stale(self, tenant_id: str) -> List[Lead]:
        """Return leads whose last rescoring attempt failed."""
        result = await self._db.execute(
            select(Lead).where(Lead.tenant_id == tenant_id, Lead.score_stale.is_(True))
        )
        return list(result.scalars().all())

    async def get_existing_emails(self, tenant_id: str) -> Set[str]:
        """Return the lower-cased emails already on file for the tenant."""
        result = await self._db.execute(
            select(func.lower(Lead.email)).where(
                Lead.tenant_id == tenant_id, Lead.email.is_not(None)
            )
        )
        return {email for email in result.scalars().all() if email}

    async def create(self, **kwargs: Any) -> Lead:
        """Insert a new lead and return the model instance."""
        lead = Lead(**kwargs)
        self._db.add(lead)
        return lead

    async def delete(self, lead: Lead) -> None:
        """Mark *lead* for deletion in the current unit-of-work."""
        await self._db.delete(lead)
