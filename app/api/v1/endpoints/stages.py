from typing import List

from fastapi import APIRouter, Body, Depends

from app.api.deps import get_consistency_coordinator, get_tenant_id
from app.schemas.scoring import RescanSummary
from app.schemas.stage import (
    PipelineStageCreate,
    PipelineStageOut,
    PipelineStageUpdate,
    StageDeletionOut,
    StageOrderUpdate,
)
from app.services.consistency import ConsistencyCoordinator

router = APIRouter(prefix="/pipeline-stages", tags=["Pipeline Stages"])


@router.get("", response_model=List[PipelineStageOut])
async def list_stages(
    tenant_id: str = Depends(get_tenant_id),
    coordinator: ConsistencyCoordinator = Depends(get_consistency_coordinator),
) -> List[PipelineStageOut]:
    """Return the tenant's stages ordered by ``order``."""
    return await coordinator.list_stages(tenant_id)


@router.post("", response_model=PipelineStageOut, status_code=201)
async def create_stage(
    body: PipelineStageCreate,
    tenant_id: str = Depends(get_tenant_id),
    coordinator: ConsistencyCoordinator = Depends(get_consistency_coordinator),
) -> PipelineStageOut:
    """Append a stage; its id is derived from the name."""
    stage = await coordinator.create_stage(
        tenant_id, body.name, color=body.color, description=body.description
    )
    return PipelineStageOut.from_stage(stage)


@router.patch("", response_model=List[PipelineStageOut])
async def reorder_stages(
    updates: List[StageOrderUpdate] = Body(...),
    tenant_id: str = Depends(get_tenant_id),
    coordinator: ConsistencyCoordinator = Depends(get_consistency_coordinator),
) -> List[PipelineStageOut]:
    stages = await coordinator.reorder_stages(tenant_id, updates)
    return [PipelineStageOut.from_stage(stage) for stage in stages]


@router.put("/{stage_id}", response_model=PipelineStageOut)
async def rename_stage(
    stage_id: str,
    body: PipelineStageUpdate,
    tenant_id: str = Depends(get_tenant_id),
    coordinator: ConsistencyCoordinator = Depends(get_consistency_coordinator),
) -> PipelineStageOut:
    """Rename or recolor a stage. The id, and so every lead's status, is kept."""
    stage = await coordinator.rename_stage(
        tenant_id,
        stage_id,
        name=body.name,
        color=body.color,
        description=body.description,
    )
    return PipelineStageOut.from_stage(stage)


@router.delete("/{stage_id}", response_model=StageDeletionOut)
async def delete_stage(
    stage_id: str,
    tenant_id: str = Depends(get_tenant_id),
    coordinator: ConsistencyCoordinator = Depends(get_consistency_coordinator),
) -> StageDeletionOut:
    """Delete a stage, moving its leads to the first remaining stage.

    ``degraded`` is true when no usable fallback existed; the stage is
    removed anyway and its leads keep their status.
    """
    result = await coordinator.delete_stage(tenant_id, stage_id)
    return StageDeletionOut(
        deleted_stage_id=result.deleted_stage_id,
        fallback_stage_id=result.fallback_stage_id,
        reassigned_lead_ids=result.reassigned_lead_ids,
        degraded=result.degraded,
        rescan=RescanSummary.from_result(result.rescan),
    )
