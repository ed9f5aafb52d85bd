from fastapi import APIRouter, Depends

from app.api.deps import get_consistency_coordinator, get_tenant_id
from app.schemas.scoring import (
    RescanSummary,
    ScoringConfig,
    ScoringConfigUpdateResponse,
)
from app.services.consistency import ConsistencyCoordinator

router = APIRouter(prefix="/scoring-config", tags=["Scoring"])


@router.get("", response_model=ScoringConfig)
async def get_scoring_config(
    tenant_id: str = Depends(get_tenant_id),
    coordinator: ConsistencyCoordinator = Depends(get_consistency_coordinator),
) -> ScoringConfig:
    """Return the tenant's scoring configuration (defaults on first access)."""
    return await coordinator.get_scoring_config(tenant_id)


@router.put("", response_model=ScoringConfigUpdateResponse)
async def replace_scoring_config(
    config: ScoringConfig,
    tenant_id: str = Depends(get_tenant_id),
    coordinator: ConsistencyCoordinator = Depends(get_consistency_coordinator),
) -> ScoringConfigUpdateResponse:
    """Replace the whole configuration and rescore every lead.

    Leads that could not be rescored are listed in ``rescan.warnings`` and
    flagged ``scoreStale``; the replacement still succeeds.
    """
    result = await coordinator.replace_scoring_config(tenant_id, config)
    return ScoringConfigUpdateResponse(
        fields=result.config.fields,
        version=result.version,
        rescan=RescanSummary.from_result(result.rescan),
    )
