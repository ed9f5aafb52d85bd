import logging
from typing import AsyncGenerator, Optional

from fastapi import Depends, Header
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import CacheService
from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import ValidationError
from app.core.locks import tenant_locks
from app.repositories.lead_activity_repository import LeadActivityRepository
from app.repositories.lead_repository import LeadRepository
from app.repositories.pipeline_stage_repository import PipelineStageRepository
from app.repositories.tenant_settings_repository import TenantSettingsRepository
from app.services.consistency import ConsistencyCoordinator
from app.services.lead_service import LeadService
from app.services.scoring_config_store import ScoringConfigStore
from app.services.stage_registry import PipelineStageRegistry

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tenant resolution
# ---------------------------------------------------------------------------


async def get_tenant_id(
    x_tenant_id: Optional[str] = Header(default=None, alias=settings.TENANT_HEADER),
) -> str:
    """Resolve the calling tenant from the request header.

    Authentication happens upstream; requests without the header fall
    back to ``settings.DEFAULT_TENANT_ID``.
    """
    if x_tenant_id is None:
        return settings.DEFAULT_TENANT_ID
    tenant_id = x_tenant_id.strip()
    if not tenant_id or len(tenant_id) > 64:
        raise ValidationError(
            "Tenant id must be 1-64 characters", {"header": settings.TENANT_HEADER}
        )
    return tenant_id


# ---------------------------------------------------------------------------
# Redis client factory
# ---------------------------------------------------------------------------


async def get_redis_client() -> AsyncGenerator[Optional[Redis], None]:
    """Yield a Redis client for the request and close it afterwards.

    Yields ``None`` when Redis cannot be reached so callers fall back to
    uncached reads.
    """
    client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        await client.ping()
    except Exception:
        logger.warning("Redis unavailable – caching disabled for this request")
        await client.aclose()
        yield None
        return
    try:
        yield client
    finally:
        await client.aclose()


async def get_cache_service(
    redis_client: Optional[Redis] = Depends(get_redis_client),
) -> CacheService:
    """Build a :class:`CacheService` backed by the request's Redis client."""
    return CacheService(redis_client=redis_client)


# ---------------------------------------------------------------------------
# Repository factory functions (one per repository, each gets the shared db)
# ---------------------------------------------------------------------------


async def get_lead_repo(
    db: AsyncSession = Depends(get_db),
) -> LeadRepository:
    return LeadRepository(db)


async def get_activity_repo(
    db: AsyncSession = Depends(get_db),
) -> LeadActivityRepository:
    return LeadActivityRepository(db)


async def get_stage_repo(
    db: AsyncSession = Depends(get_db),
) -> PipelineStageRepository:
    return PipelineStageRepository(db)


async def get_tenant_settings_repo(
    db: AsyncSession = Depends(get_db),
) -> TenantSettingsRepository:
    return TenantSettingsRepository(db)


# ---------------------------------------------------------------------------
# Service factory functions
# ---------------------------------------------------------------------------


async def get_config_store(
    settings_repo: TenantSettingsRepository = Depends(get_tenant_settings_repo),
    cache: CacheService = Depends(get_cache_service),
) -> ScoringConfigStore:
    return ScoringConfigStore(settings_repo, cache=cache)


async def get_stage_registry(
    stage_repo: PipelineStageRepository = Depends(get_stage_repo),
) -> PipelineStageRegistry:
    return PipelineStageRegistry(stage_repo)


async def get_consistency_coordinator(
    lead_repo: LeadRepository = Depends(get_lead_repo),
    config_store: ScoringConfigStore = Depends(get_config_store),
    stage_registry: PipelineStageRegistry = Depends(get_stage_registry),
    cache: CacheService = Depends(get_cache_service),
) -> ConsistencyCoordinator:
    """Build a :class:`ConsistencyCoordinator` sharing the request session."""
    return ConsistencyCoordinator(
        lead_repo=lead_repo,
        config_store=config_store,
        stage_registry=stage_registry,
        cache=cache,
        locks=tenant_locks,
    )


async def get_lead_service(
    lead_repo: LeadRepository = Depends(get_lead_repo),
    coordinator: ConsistencyCoordinator = Depends(get_consistency_coordinator),
    activity_repo: LeadActivityRepository = Depends(get_activity_repo),
) -> LeadService:
    """Build a :class:`LeadService` with injected dependencies."""
    return LeadService(
        lead_repo=lead_repo, coordinator=coordinator, activity_repo=activity_repo
    )
