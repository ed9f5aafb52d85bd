from typing import Any, List, Optional

from sqlalchemy import select

from app.models.pipeline_stage import PipelineStage
from app.repositories.base import BaseRepository


class PipelineStageRepository(BaseRepository):
    """Encapsulates queries against the ``pipeline_stages`` table."""

    async def list_for_tenant(self, tenant_id: str) -> List[PipelineStage]:
        """Return the tenant's stages ordered by ``order`` ascending."""
        result = await self._db.execute(
            select(PipelineStage)
            .where(PipelineStage.tenant_id == tenant_id)
            .order_by(PipelineStage.order, PipelineStage.stage_id)
        )
        return list(result.scalars().all())

    async def get(self, tenant_id: str, stage_id: str) -> Optional[PipelineStage]:
        """Return one stage by its id, or ``None``."""
        result = await self._db.execute(
            select(PipelineStage).where(
                PipelineStage.tenant_id == tenant_id,
                PipelineStage.stage_id == stage_id,
            )
        )
        return result.scalar_one_or_none()

    async def create(self, tenant_id: str, **kwargs: Any) -> PipelineStage:
        """Insert a new stage and return the model instance."""
        stage = PipelineStage(tenant_id=tenant_id, **kwargs)
        self._db.add(stage)
        return stage

    async def delete(self, stage: PipelineStage) -> None:
        """Mark *stage* for deletion in the current unit-of-work."""
        await self._db.delete(stage)
