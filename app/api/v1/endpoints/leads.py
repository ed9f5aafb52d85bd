from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response

from app.api.deps import (
    get_consistency_coordinator,
    get_lead_service,
    get_tenant_id,
)
from app.core.config import settings
from app.core.rate_limit import limiter
from app.schemas.lead import (
    LeadActivityCreate,
    LeadActivityOut,
    LeadCreate,
    LeadImportRequest,
    LeadImportResponse,
    LeadOut,
    LeadUpdate,
)
from app.schemas.scoring import (
    FieldContributionOut,
    RescanSummary,
    ScoreBreakdownOut,
)
from app.services.consistency import ConsistencyCoordinator
from app.services.lead_service import LeadService

router = APIRouter(prefix="/leads", tags=["Leads"])


@router.post("", response_model=LeadOut, status_code=201)
@limiter.limit(settings.LEAD_WRITE_RATE_LIMIT)
async def create_lead(
    request: Request,
    body: LeadCreate,
    tenant_id: str = Depends(get_tenant_id),
    service: LeadService = Depends(get_lead_service),
) -> LeadOut:
    """Create a lead. Any ``score`` in the body is ignored and recomputed."""
    lead = await service.create_lead(tenant_id, body)
    return LeadOut.model_validate(lead)


@router.post("/import", response_model=LeadImportResponse)
@limiter.limit(settings.LEAD_IMPORT_RATE_LIMIT)
async def import_leads(
    request: Request,
    body: LeadImportRequest,
    tenant_id: str = Depends(get_tenant_id),
    service: LeadService = Depends(get_lead_service),
) -> LeadImportResponse:
    """Bulk-create already parsed records, skipping duplicate emails."""
    result = await service.import_leads(tenant_id, body.leads)
    return LeadImportResponse(**result)


@router.post("/rescore-stale", response_model=RescanSummary)
async def rescore_stale_leads(
    tenant_id: str = Depends(get_tenant_id),
    coordinator: ConsistencyCoordinator = Depends(get_consistency_coordinator),
) -> RescanSummary:
    result = await coordinator.rescore_stale_leads(tenant_id)
    return RescanSummary.from_result(result)


@router.get("", response_model=List[LeadOut])
async def list_leads(
    status: Optional[str] = Query(None, description="Only leads in this stage"),
    limit: Optional[int] = Query(None, ge=1, le=500),
    offset: int = Query(0, ge=0),
    tenant_id: str = Depends(get_tenant_id),
    service: LeadService = Depends(get_lead_service),
) -> List[LeadOut]:
    leads = await service.list_leads(tenant_id, status=status, limit=limit, offset=offset)
    return [LeadOut.model_validate(lead) for lead in leads]


@router.get("/{lead_id}", response_model=LeadOut)
async def get_lead(
    lead_id: UUID,
    tenant_id: str = Depends(get_tenant_id),
    service: LeadService = Depends(get_lead_service),
) -> LeadOut:
    lead = await service.get_lead(tenant_id, lead_id)
    return LeadOut.model_validate(lead)


@router.get("/{lead_id}/score-breakdown", response_model=ScoreBreakdownOut)
async def get_score_breakdown(
    lead_id: UUID,
    tenant_id: str = Depends(get_tenant_id),
    service: LeadService = Depends(get_lead_service),
) -> ScoreBreakdownOut:
    """Explain the lead's score field by field against the current config."""
    breakdown = await service.explain_score(tenant_id, lead_id)
    return ScoreBreakdownOut(
        lead_id=str(lead_id),
        score=breakdown.score,
        weighted_score=breakdown.weighted_score,
        max_weighted_score=breakdown.max_weighted_score,
        total_active_weight=breakdown.total_active_weight,
        fields=[
            FieldContributionOut(
                field_name=item.field_name,
                lead_value=item.lead_value,
                field_score=item.field_score,
                max_field_points=item.max_field_points,
                weight=item.weight,
                weighted_score=item.weighted_score,
                matched_rule_ids=item.matched_rule_ids,
            )
            for item in breakdown.fields
        ],
    )


@router.get("/{lead_id}/activity", response_model=List[LeadActivityOut])
async def list_lead_activity(
    lead_id: UUID,
    tenant_id: str = Depends(get_tenant_id),
    service: LeadService = Depends(get_lead_service),
) -> List[LeadActivityOut]:
    """Return the lead's activity log, oldest entry first."""
    activities = await service.list_activity(tenant_id, lead_id)
    return [LeadActivityOut.model_validate(activity) for activity in activities]


@router.post("/{lead_id}/activity", response_model=LeadActivityOut, status_code=201)
@limiter.limit(settings.LEAD_WRITE_RATE_LIMIT)
async def add_lead_activity(
    request: Request,
    lead_id: UUID,
    body: LeadActivityCreate,
    tenant_id: str = Depends(get_tenant_id),
    service: LeadService = Depends(get_lead_service),
) -> LeadActivityOut:
    activity = await service.add_activity(tenant_id, lead_id, body)
    return LeadActivityOut.model_validate(activity)


@router.put("/{lead_id}", response_model=LeadOut)
async def update_lead(
    lead_id: UUID,
    body: LeadUpdate,
    tenant_id: str = Depends(get_tenant_id),
    service: LeadService = Depends(get_lead_service),
) -> LeadOut:
    """Apply a partial update and recompute the score."""
    lead = await service.update_lead(tenant_id, lead_id, body)
    return LeadOut.model_validate(lead)


@router.delete("/{lead_id}", status_code=204)
async def delete_lead(
    lead_id: UUID,
    tenant_id: str = Depends(get_tenant_id),
    service: LeadService = Depends(get_lead_service),
) -> Response:
    await service.delete_lead(tenant_id, lead_id)
    return Response(status_code=204)
