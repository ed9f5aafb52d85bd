import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Sequence, Tuple

from app.core.cache import CacheService
from app.core.exceptions import ComputationWarning
from app.core.locks import TenantLockRegistry, tenant_locks
from app.models.lead import Lead
from app.models.pipeline_stage import PipelineStage
from app.models.tenant_settings import TenantSettings
from app.repositories.lead_repository import LeadRepository
from app.schemas.common import ScorableField
from app.schemas.scoring import ScoringConfig
from app.schemas.stage import PipelineStageOut, StageOrderUpdate
from app.services.lead_scoring import aggregate_score
from app.services.scoring_config_store import ScoringConfigStore
from app.services.stage_registry import PipelineStageRegistry, is_valid_stage_id

logger = logging.getLogger(__name__)

Scorer = Callable[[Any, ScoringConfig], int]


def lead_snapshot(lead: Lead, **overrides: Any) -> Dict[str, Any]:
    """Scorable attributes of *lead*, with *overrides* applied on top."""
    snapshot = {f.value: getattr(lead, f.value, None) for f in ScorableField}
    snapshot.update(overrides)
    return snapshot


@dataclass
class RescanResult:
    scanned: int = 0
    updated: int = 0
    warnings: List[ComputationWarning] = field(default_factory=list)


@dataclass
class StageDeletionResult:
    deleted_stage_id: str
    fallback_stage_id: Optional[str] = None
    reassigned_lead_ids: List[str] = field(default_factory=list)
    degraded: bool = False
    rescan: RescanResult = field(default_factory=RescanResult)


@dataclass
class ConfigReplaceResult:
    config: ScoringConfig
    version: int
    rescan: RescanResult


class ConsistencyCoordinator:
    """Keeps every lead's cached score consistent with its tenant's state.

    Structural changes (replacing the scoring config, adding, renaming,
    reordering or deleting stages) run under the tenant's write lock and
    its ``tenant_settings`` row lock.  Each runs as one transaction: plan
    every lead change first, then apply and commit together.  A lead
    whose rescoring fails keeps its previous score, is flagged
    ``score_stale`` and reported as a :class:`ComputationWarning`; it never
    aborts the batch.
    """

    def __init__(
        self,
        lead_repo: LeadRepository,
        config_store: ScoringConfigStore,
        stage_registry: PipelineStageRegistry,
        cache: Optional[CacheService] = None,
        locks: Optional[TenantLockRegistry] = None,
        scorer: Scorer = aggregate_score,
    ) -> None:
        self._lead_repo = lead_repo
        self._config_store = config_store
        self._stages = stage_registry
        self._cache: CacheService = cache or CacheService()
        self._locks = locks or tenant_locks
        self._scorer = scorer

    # ------------------------------------------------------------------
    # Shared plumbing (also used by LeadService)
    # ------------------------------------------------------------------

    @property
    def locks(self) -> TenantLockRegistry:
        return self._locks

    @property
    def scorer(self) -> Scorer:
        return self._scorer

    @property
    def stage_registry(self) -> PipelineStageRegistry:
        return self._stages

    async def load_tenant(
        self, tenant_id: str, lock: Optional[str] = None
    ) -> Tuple[TenantSettings, ScoringConfig]:
        """Load (creating on first access) the tenant's settings row.

        A tenant created by this call also gets the default pipeline.
        """
        row, config, created = await self._config_store.load(tenant_id, lock=lock)
        if created:
            await self._stages.seed_defaults(tenant_id)
        return row, config

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Commit on success; roll everything back on any error."""
        try:
            yield
            await self._lead_repo.commit()
        except Exception:
            await self._lead_repo.rollback()
            raise

    def plan_rescores(
        self,
        leads: Sequence[Lead],
        config: ScoringConfig,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> Tuple[List[Tuple[Lead, int]], List[ComputationWarning]]:
        """Score every lead without touching it.

        Returns ``(planned, warnings)``: ``planned`` pairs each lead with its
        new score; leads that could not be scored appear only in
        ``warnings``.
        """
        planned: List[Tuple[Lead, int]] = []
        warnings: List[ComputationWarning] = []
        for lead in leads:
            try:
                score = self._scorer(lead_snapshot(lead, **(overrides or {})), config)
            except Exception as exc:
                logger.warning(
                    "Rescoring lead %s failed; keeping score %s: %s",
                    lead.lead_id,
                    lead.score,
                    exc,
                )
                warnings.append(ComputationWarning(str(lead.lead_id), str(exc)))
                continue
            planned.append((lead, score))
        return planned, warnings

    @staticmethod
    def apply_rescores(
        planned: Sequence[Tuple[Lead, int]],
        warnings: Sequence[ComputationWarning],
        leads: Sequence[Lead],
    ) -> RescanResult:
        """Write planned scores back and flag the leads that failed."""
        result = RescanResult(scanned=len(leads), warnings=list(warnings))
        for lead, score in planned:
            if lead.score != score or lead.score_stale:
                result.updated += 1
            lead.score = score
            lead.score_stale = False
        failed = {warning.lead_id for warning in warnings}
        for lead in leads:
            if str(lead.lead_id) in failed:
                lead.score_stale = True
        return result

    async def _rescan(self, leads: Sequence[Lead], config: ScoringConfig) -> RescanResult:
        planned, warnings = self.plan_rescores(leads, config)
        result = self.apply_rescores(planned, warnings, leads)
        await self._lead_repo.flush()
        return result

    # ------------------------------------------------------------------
    # Scoring configuration
    # ------------------------------------------------------------------

    async def get_scoring_config(self, tenant_id: str) -> ScoringConfig:
        cached = await self._config_store.get_cached(tenant_id)
        if cached is not None:
            return cached
        async with self.transaction():
            _, config = await self.load_tenant(tenant_id)
        await self._config_store.cache(tenant_id, config)
        return config

    async def replace_scoring_config(
        self, tenant_id: str, new_config: ScoringConfig
    ) -> ConfigReplaceResult:
        """Replace the whole config, then rescore every lead of the tenant."""
        async with self._locks.for_tenant(tenant_id).write():
            async with self.transaction():
                row, _ = await self.load_tenant(tenant_id, lock="update")
                config = await self._config_store.replace(row, new_config)
                leads = await self._lead_repo.list_all(tenant_id)
                rescan = await self._rescan(leads, config)
                version = row.config_version
        await self._cache.invalidate_tenant(tenant_id)
        logger.info(
            "Rescored %d lead(s) for tenant %s after config replace: %d changed, %d stale",
            rescan.scanned,
            tenant_id,
            rescan.updated,
            len(rescan.warnings),
        )
        return ConfigReplaceResult(config=config, version=version, rescan=rescan)

    async def rescore_stale_leads(self, tenant_id: str) -> RescanResult:
        """Retry the leads a previous batch left flagged ``score_stale``."""
        async with self._locks.for_tenant(tenant_id).write():
            async with self.transaction():
                _, config = await self.load_tenant(tenant_id, lock="update")
                leads = await self._lead_repo.list_stale(tenant_id)
                rescan = await self._rescan(leads, config)
        return rescan

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    async def list_stages(self, tenant_id: str) -> List[PipelineStageOut]:
        cached = await self._cache.get_stages(tenant_id)
        if cached is not None:
            return [PipelineStageOut.model_validate(item) for item in cached]
        async with self.transaction():
            await self.load_tenant(tenant_id)
            stages = [
                PipelineStageOut.from_stage(stage)
                for stage in await self._stages.list(tenant_id)
            ]
        await self._cache.set_stages(
            tenant_id, [stage.model_dump(mode="json") for stage in stages]
        )
        return stages

    async def create_stage(
        self,
        tenant_id: str,
        name: str,
        color: Optional[str] = None,
        description: Optional[str] = None,
    ) -> PipelineStage:
        async with self._locks.for_tenant(tenant_id).write():
            async with self.transaction():
                await self.load_tenant(tenant_id, lock="update")
                stage = await self._stages.add(tenant_id, name, color, description)
        await self._cache.invalidate_tenant(tenant_id)
        logger.info("Created pipeline stage %s for tenant %s", stage.stage_id, tenant_id)
        return stage

    async def rename_stage(
        self,
        tenant_id: str,
        stage_id: str,
        name: Optional[str] = None,
        color: Optional[str] = None,
        description: Optional[str] = None,
    ) -> PipelineStage:
        async with self._locks.for_tenant(tenant_id).write():
            async with self.transaction():
                await self.load_tenant(tenant_id, lock="update")
                stage = await self._stages.update(
                    tenant_id, stage_id, name=name, color=color, description=description
                )
        await self._cache.invalidate_tenant(tenant_id)
        return stage

    async def reorder_stages(
        self, tenant_id: str, updates: List[StageOrderUpdate]
    ) -> List[PipelineStage]:
        async with self._locks.for_tenant(tenant_id).write():
            async with self.transaction():
                await self.load_tenant(tenant_id, lock="update")
                stages = await self._stages.reorder(tenant_id, updates)
        await self._cache.invalidate_tenant(tenant_id)
        return stages

    async def delete_stage(self, tenant_id: str, stage_id: str) -> StageDeletionResult:
        """Delete a stage and move its leads to the first remaining stage.

        Phase one plans every affected lead's new ``(status, score)``;
        phase two removes the stage and applies the plan in the same
        transaction.  When no usable fallback exists the stage is still
        removed, but its leads keep their status and a warning is logged.
        """
        async with self._locks.for_tenant(tenant_id).write():
            async with self.transaction():
                _, config = await self.load_tenant(tenant_id, lock="update")
                stage, fallback = await self._stages.plan_removal(tenant_id, stage_id)
                affected = await self._lead_repo.list_by_status(tenant_id, stage_id)
                result = StageDeletionResult(deleted_stage_id=stage_id)

                if fallback is None or not is_valid_stage_id(fallback.stage_id):
                    result.degraded = True
                    if affected:
                        logger.warning(
                            "Stage %s deleted for tenant %s without a usable fallback "
                            "(%s); %d lead(s) keep status %s",
                            stage_id,
                            tenant_id,
                            fallback.stage_id if fallback is not None else "no stages left",
                            len(affected),
                            stage_id,
                        )
                    result.rescan = RescanResult(scanned=0)
                else:
                    result.fallback_stage_id = fallback.stage_id
                    planned, warnings = self.plan_rescores(
                        affected, config, overrides={"status": fallback.stage_id}
                    )
                    for lead in affected:
                        lead.status = fallback.stage_id
                    result.reassigned_lead_ids = [str(lead.lead_id) for lead in affected]
                    result.rescan = self.apply_rescores(planned, warnings, affected)

                await self._stages.remove(stage)
                await self._lead_repo.flush()

        await self._cache.invalidate_tenant(tenant_id)
        logger.info(
            "Deleted pipeline stage %s for tenant %s; %d lead(s) moved to %s",
            stage_id,
            tenant_id,
            len(result.reassigned_lead_ids),
            result.fallback_stage_id,
        )
        return result
