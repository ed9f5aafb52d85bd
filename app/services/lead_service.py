import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from app.core.config import settings
from app.core.constants import ACTIVITY_TYPES, SYSTEM_ACTIVITY_USER
from app.core.exceptions import LeadNotFoundError, ValidationError
from app.models.lead import Lead
from app.models.lead_activity import LeadActivity
from app.models.pipeline_stage import PipelineStage
from app.repositories.lead_activity_repository import LeadActivityRepository
from app.repositories.lead_repository import LeadRepository
from app.schemas.common import ActivityType
from app.schemas.lead import LeadActivityCreate, LeadCreate, LeadUpdate
from app.services.consistency import ConsistencyCoordinator
from app.services.lead_scoring import ScoreBreakdown, score_breakdown
from app.services.stage_registry import pick_fallback_stage

logger = logging.getLogger(__name__)


class LeadService:
    """Create, update, import and delete leads with a fresh score.

    Every write recomputes ``score`` from the tenant's current scoring
    configuration before it is persisted; lead writes share the tenant
    lock with each other but never overlap a structural mutation.
    """

    def __init__(
        self,
        lead_repo: LeadRepository,
        coordinator: ConsistencyCoordinator,
        activity_repo: LeadActivityRepository,
    ) -> None:
        self._lead_repo = lead_repo
        self._coordinator = coordinator
        self._activity_repo = activity_repo

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _resolve_status(
        requested: Optional[str], stages: Sequence[PipelineStage]
    ) -> str:
        """Validate *requested* against the tenant's stages.

        An omitted status defaults to the first stage by order.
        """
        if requested is None:
            first = pick_fallback_stage(stages)
            if first is None:
                raise ValidationError(
                    "Tenant has no pipeline stages; a lead cannot be placed",
                    {"field": "status"},
                )
            return first.stage_id
        if not any(stage.stage_id == requested for stage in stages):
            raise ValidationError(
                f"Unknown pipeline stage '{requested}'",
                {"field": "status", "stage_id": requested},
            )
        return requested

    async def _build_lead(
        self,
        tenant_id: str,
        data: LeadCreate,
        stages: Sequence[PipelineStage],
        config,
    ) -> Lead:
        values: Dict[str, Any] = data.model_dump(exclude={"status"})
        if values.get("last_contact") is None:
            values["last_contact"] = datetime.now(timezone.utc).date()
        status = self._resolve_status(data.status, stages)
        lead = await self._lead_repo.create(
            tenant_id=tenant_id,
            status=status,
            score_stale=False,
            **values,
        )
        lead.score = self._coordinator.scorer(lead, config)
        return lead

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_lead(self, tenant_id: str, data: LeadCreate) -> Lead:
        coordinator = self._coordinator
        async with coordinator.locks.for_tenant(tenant_id).read():
            async with coordinator.transaction():
                _, config = await coordinator.load_tenant(tenant_id, lock="share")
                stages = await coordinator.stage_registry.list(tenant_id)
                lead = await self._build_lead(tenant_id, data, stages, config)
                await self._lead_repo.flush()
        logger.info("Created lead %s for tenant %s (score %s)", lead.lead_id, tenant_id, lead.score)
        return lead

    async def update_lead(
        self, tenant_id: str, lead_id: UUID, data: LeadUpdate
    ) -> Lead:
        changes = data.model_dump(exclude_unset=True)
        coordinator = self._coordinator
        async with coordinator.locks.for_tenant(tenant_id).read():
            async with coordinator.transaction():
                _, config = await coordinator.load_tenant(tenant_id, lock="share")
                lead = await self._lead_repo.get_by_id(tenant_id, lead_id)
                if lead is None:
                    raise LeadNotFoundError(lead_id)
                previous_status = lead.status
                if "status" in changes:
                    stages = await coordinator.stage_registry.list(tenant_id)
                    changes["status"] = self._resolve_status(changes["status"], stages)
                for attr, value in changes.items():
                    setattr(lead, attr, value)
                lead.score = coordinator.scorer(lead, config)
                lead.score_stale = False
                if lead.status != previous_status:
                    await self._activity_repo.create(
                        tenant_id=tenant_id,
                        lead_id=lead.lead_id,
                        type=ActivityType.STAGE_CHANGE.value,
                        details=f"Stage changed from {previous_status} to {lead.status}.",
                        user_id=SYSTEM_ACTIVITY_USER,
                    )
                await self._lead_repo.flush()
        return lead

    async def delete_lead(self, tenant_id: str, lead_id: UUID) -> None:
        coordinator = self._coordinator
        async with coordinator.locks.for_tenant(tenant_id).read():
            async with coordinator.transaction():
                lead = await self._lead_repo.get_by_id(tenant_id, lead_id)
                if lead is None:
                    raise LeadNotFoundError(lead_id)
                await self._lead_repo.delete(lead)
        logger.info("Deleted lead %s for tenant %s", lead_id, tenant_id)

    async def import_leads(
        self, tenant_id: str, records: Sequence[LeadCreate]
    ) -> Dict[str, Any]:
        """Create each record as :meth:`create_lead` would.

        Records whose email already exists in the tenant, or earlier in the
        same batch, are skipped.  The batch is atomic: a record with an
        unknown stage rejects the whole import.
        """
        if len(records) > settings.LEAD_IMPORT_MAX_BATCH:
            raise ValidationError(
                f"Import batch exceeds {settings.LEAD_IMPORT_MAX_BATCH} records",
                {"records": len(records)},
            )

        coordinator = self._coordinator
        created: List[Lead] = []
        skipped = 0
        async with coordinator.locks.for_tenant(tenant_id).read():
            async with coordinator.transaction():
                _, config = await coordinator.load_tenant(tenant_id, lock="share")
                stages = await coordinator.stage_registry.list(tenant_id)
                seen_emails = await self._lead_repo.get_existing_emails(tenant_id)

                for index, record in enumerate(records):
                    email = record.email.lower() if record.email else None
                    if email and email in seen_emails:
                        skipped += 1
                        continue
                    try:
                        lead = await self._build_lead(tenant_id, record, stages, config)
                    except ValidationError as exc:
                        exc.context["record"] = index
                        raise
                    if email:
                        seen_emails.add(email)
                    created.append(lead)
                await self._lead_repo.flush()

        logger.info(
            "Imported %d lead(s) for tenant %s, skipped %d duplicate(s)",
            len(created),
            tenant_id,
            skipped,
        )
        return {
            "imported": len(created),
            "skipped": skipped,
            "lead_ids": [lead.lead_id for lead in created],
        }

    async def add_activity(
        self, tenant_id: str, lead_id: UUID, data: LeadActivityCreate
    ) -> LeadActivity:
        """Append a manual entry to the lead's activity log."""
        activity_type = (data.type or "").strip()
        details = (data.details or "").strip()
        if not activity_type or not details:
            raise ValidationError(
                "Missing type or details", {"fields": ["type", "details"]}
            )
        if activity_type not in ACTIVITY_TYPES:
            raise ValidationError(
                f"Unknown activity type '{activity_type}'",
                {"field": "type", "allowed": sorted(ACTIVITY_TYPES)},
            )

        async with self._coordinator.transaction():
            lead = await self._lead_repo.get_by_id(tenant_id, lead_id)
            if lead is None:
                raise LeadNotFoundError(lead_id)
            activity = await self._activity_repo.create(
                tenant_id=tenant_id,
                lead_id=lead.lead_id,
                type=activity_type,
                details=details,
                user_id=data.user_id,
            )
            await self._activity_repo.flush()
        logger.info("Logged %s activity on lead %s", activity_type, lead_id)
        return activity

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_activity(self, tenant_id: str, lead_id: UUID) -> List[LeadActivity]:
        await self.get_lead(tenant_id, lead_id)
        return await self._activity_repo.list_for_lead(tenant_id, lead_id)

    async def get_lead(self, tenant_id: str, lead_id: UUID) -> Lead:
        lead = await self._lead_repo.get_by_id(tenant_id, lead_id)
        if lead is None:
            raise LeadNotFoundError(lead_id)
        return lead

    async def list_leads(
        self,
        tenant_id: str,
        status: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Lead]:
        return await self._lead_repo.list_for_tenant(
            tenant_id, status=status, limit=limit, offset=offset
        )

    async def explain_score(self, tenant_id: str, lead_id: UUID) -> ScoreBreakdown:
        """Recompute the lead's score against the current config, with detail."""
        lead = await self.get_lead(tenant_id, lead_id)
        config = await self._coordinator.get_scoring_config(tenant_id)
        return score_breakdown(lead, config)
