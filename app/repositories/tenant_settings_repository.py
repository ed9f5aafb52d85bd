import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert

from app.models.tenant_settings import TenantSettings
from app.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class TenantSettingsRepository(BaseRepository):
    """Encapsulates queries against the ``tenant_settings`` table."""

    async def get(self, tenant_id: str, lock: Optional[str] = None) -> Optional[TenantSettings]:
        """Return the tenant's settings row, optionally row-locked.

        ``lock="update"`` takes ``FOR UPDATE`` (structural mutations),
        ``lock="share"`` takes ``FOR SHARE`` (lead writes).
        """
        query = select(TenantSettings).where(TenantSettings.tenant_id == tenant_id)
        if lock == "update":
            query = query.with_for_update()
        elif lock == "share":
            query = query.with_for_update(read=True)
        result = await self._db.execute(query)
        return result.scalar_one_or_none()

    async def create_if_missing(
        self, tenant_id: str, default_fields: List[Dict[str, Any]]
    ) -> bool:
        """Insert the tenant's row with *default_fields* unless it exists.

        Uses ``INSERT … ON CONFLICT DO NOTHING`` so concurrent first
        requests for the same tenant never collide.  Returns ``True`` when
        this call created the row.
        """
        result = await self._db.execute(
            insert(TenantSettings)
            .values(tenant_id=tenant_id, scoring_fields=default_fields)
            .on_conflict_do_nothing(index_elements=[TenantSettings.tenant_id])
        )
        created = bool(result.rowcount)
        if created:
            logger.info("Created default scoring configuration for tenant %s", tenant_id)
        return created

    async def replace_scoring_fields(
        self, settings_row: TenantSettings, fields: List[Dict[str, Any]]
    ) -> None:
        """Swap in a new scoring field list and bump the config version."""
        settings_row.scoring_fields = fields
        settings_row.config_version = (settings_row.config_version or 0) + 1
