import logging
import re
from typing import Iterable, List, Optional, Tuple

from app.core.constants import (
    MAX_STAGE_ID_LENGTH,
    RESERVED_STAGE_IDS,
    STAGE_ID_PATTERN,
)
from app.core.default_scoring_config import DEFAULT_PIPELINE_STAGES
from app.core.exceptions import (
    DuplicateStageError,
    StageNotFoundError,
    ValidationError,
)
from app.models.pipeline_stage import PipelineStage
from app.repositories.pipeline_stage_repository import PipelineStageRepository
from app.schemas.stage import StageOrderUpdate

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


def slugify_stage_name(name: str) -> str:
    """Derive a stage id from its display name ("Proposal Sent" → "proposal-sent")."""
    return _WHITESPACE_RE.sub("-", name.strip().lower())


def is_valid_stage_id(stage_id: Optional[str]) -> bool:
    """Whether *stage_id* may be stored in ``leads.status``."""
    return (
        isinstance(stage_id, str)
        and 0 < len(stage_id) <= MAX_STAGE_ID_LENGTH
        and STAGE_ID_PATTERN.match(stage_id) is not None
        and stage_id.lower() not in RESERVED_STAGE_IDS
    )


def pick_fallback_stage(stages: Iterable[PipelineStage]) -> Optional[PipelineStage]:
    """Return the stage with the lowest ``order``, or ``None`` if empty."""
    return min(stages, key=lambda s: (s.order, s.stage_id), default=None)


class PipelineStageRegistry:
    """Owns the tenant's ordered set of valid pipeline stages.

    The registry only stages changes in the session; committing (and any
    lead rescoring a change implies) is the coordinator's job.
    """

    def __init__(self, stage_repo: PipelineStageRepository) -> None:
        self._repo = stage_repo

    async def list(self, tenant_id: str) -> List[PipelineStage]:
        return await self._repo.list_for_tenant(tenant_id)

    async def get(self, tenant_id: str, stage_id: str) -> PipelineStage:
        stage = await self._repo.get(tenant_id, stage_id)
        if stage is None:
            raise StageNotFoundError(stage_id)
        return stage

    async def seed_defaults(self, tenant_id: str) -> List[PipelineStage]:
        """Insert the default New → Lost pipeline for a fresh tenant."""
        stages = [
            await self._repo.create(tenant_id, **stage_data)
            for stage_data in DEFAULT_PIPELINE_STAGES
        ]
        await self._repo.flush()
        logger.info("Seeded %d default pipeline stages for tenant %s", len(stages), tenant_id)
        return stages

    async def add(
        self,
        tenant_id: str,
        name: str,
        color: Optional[str] = None,
        description: Optional[str] = None,
    ) -> PipelineStage:
        """Append a stage after the current last one.

        Raises:
            ValidationError: blank name, or a name whose derived id is
                not a usable stage identifier.
            DuplicateStageError: the derived id already exists.
        """
        if not name or not name.strip():
            raise ValidationError("Stage name is required", {"field": "name"})

        stage_id = slugify_stage_name(name)
        if not is_valid_stage_id(stage_id):
            raise ValidationError(
                f"Stage name '{name}' does not produce a valid stage id",
                {"field": "name", "stage_id": stage_id},
            )

        existing = await self._repo.list_for_tenant(tenant_id)
        if any(stage.stage_id == stage_id for stage in existing):
            raise DuplicateStageError(stage_id)

        next_order = max((stage.order for stage in existing), default=-1) + 1
        stage = await self._repo.create(
            tenant_id,
            stage_id=stage_id,
            name=name.strip(),
            order=next_order,
            color=color,
            description=description,
        )
        await self._repo.flush()
        return stage

    async def update(
        self,
        tenant_id: str,
        stage_id: str,
        name: Optional[str] = None,
        color: Optional[str] = None,
        description: Optional[str] = None,
    ) -> PipelineStage:
        """Rename and/or recolor a stage; omitted values are kept."""
        stage = await self.get(tenant_id, stage_id)
        if name is not None:
            if not name.strip():
                raise ValidationError("Stage name cannot be blank", {"field": "name"})
            stage.name = name.strip()
        if color is not None:
            stage.color = color
        if description is not None:
            stage.description = description
        await self._repo.flush()
        return stage

    async def reorder(
        self, tenant_id: str, updates: List[StageOrderUpdate]
    ) -> List[PipelineStage]:
        """Apply a batch of ``{id, order}`` updates.

        Unknown ids are skipped with a warning.  The batch is rejected when
        nothing matched or when it would leave two stages sharing an order.
        """
        stages = await self._repo.list_for_tenant(tenant_id)
        by_id = {stage.stage_id: stage for stage in stages}
        new_orders = {stage.stage_id: stage.order for stage in stages}

        matched = 0
        for update in updates:
            if update.id not in by_id:
                logger.warning(
                    "Ignoring reorder entry for unknown stage %s (tenant %s)",
                    update.id,
                    tenant_id,
                )
                continue
            new_orders[update.id] = update.order
            matched += 1

        if not matched:
            raise ValidationError(
                "No valid stage updates provided",
                {"stage_ids": [update.id for update in updates]},
            )

        if len(set(new_orders.values())) != len(new_orders):
            raise ValidationError(
                "Stage orders must be unique after reordering",
                {"orders": new_orders},
            )

        for stage_id, order in new_orders.items():
            by_id[stage_id].order = order
        await self._repo.flush()
        return sorted(stages, key=lambda s: (s.order, s.stage_id))

    async def plan_removal(
        self, tenant_id: str, stage_id: str
    ) -> Tuple[PipelineStage, Optional[PipelineStage]]:
        """Return the stage to delete and the stage its leads fall back to.

        Nothing is changed yet; the fallback is the remaining stage with the
        lowest order (``None`` when *stage_id* is the last stage).
        """
        stages = await self._repo.list_for_tenant(tenant_id)
        target = next((s for s in stages if s.stage_id == stage_id), None)
        if target is None:
            raise StageNotFoundError(stage_id)
        fallback = pick_fallback_stage(s for s in stages if s.stage_id != stage_id)
        return target, fallback

    async def remove(self, stage: PipelineStage) -> None:
        await self._repo.delete(stage)
        await self._repo.flush()
