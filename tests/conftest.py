import copy
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, AsyncGenerator, Dict, List, Optional, Set
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

if TYPE_CHECKING:
    from app.core.cache import CacheService

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.core.locks import TenantLockRegistry
from app.main import app
from app.models.lead import Lead
from app.models.lead_activity import LeadActivity
from app.models.pipeline_stage import PipelineStage
from app.models.tenant_settings import TenantSettings
from app.services.consistency import ConsistencyCoordinator
from app.services.lead_service import LeadService
from app.services.scoring_config_store import ScoringConfigStore
from app.services.stage_registry import PipelineStageRegistry

TENANT = "acme"


# ---------------------------------------------------------------------------
# In-memory repositories
# ---------------------------------------------------------------------------


class FakeUnitOfWork:
    """Counts the transaction calls the repositories forward to the session."""

    def __init__(self) -> None:
        self.flushes = 0
        self.commits = 0
        self.rollbacks = 0

    async def flush(self) -> None:
        self.flushes += 1

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1


class FakeLeadRepository:
    def __init__(self, uow: FakeUnitOfWork) -> None:
        self.uow = uow
        self.leads: List[Lead] = []
        self.flush = uow.flush
        self.commit = uow.commit
        self.rollback = uow.rollback

    def _tenant(self, tenant_id: str) -> List[Lead]:
        return [lead for lead in self.leads if lead.tenant_id == tenant_id]

    async def get_by_id(self, tenant_id: str, lead_id: UUID) -> Optional[Lead]:
        return next(
            (lead for lead in self._tenant(tenant_id) if lead.lead_id == lead_id), None
        )

    async def list_for_tenant(
        self,
        tenant_id: str,
        status: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Lead]:
        leads = [
            lead
            for lead in self._tenant(tenant_id)
            if status is None or lead.status == status
        ]
        leads.sort(key=lambda lead: -lead.score)
        leads = leads[offset:]
        return leads[:limit] if limit is not None else leads

    async def list_all(self, tenant_id: str) -> List[Lead]:
        return self._tenant(tenant_id)

    async def list_by_status(self, tenant_id: str, status: str) -> List[Lead]:
        return [lead for lead in self._tenant(tenant_id) if lead.status == status]

    async def list_stale(self, tenant_id: str) -> List[Lead]:
        return [lead for lead in self._tenant(tenant_id) if lead.score_stale]

    async def get_existing_emails(self, tenant_id: str) -> Set[str]:
        return {lead.email.lower() for lead in self._tenant(tenant_id) if lead.email}

    async def create(self, **kwargs: Any) -> Lead:
        kwargs.setdefault("lead_id", uuid4())
        lead = Lead(**kwargs)
        self.leads.append(lead)
        return lead

    async def delete(self, lead: Lead) -> None:
        self.leads.remove(lead)

    def add(self, tenant_id: str = TENANT, **kwargs: Any) -> Lead:
        """Insert a lead directly, bypassing scoring."""
        kwargs.setdefault("lead_id", uuid4())
        kwargs.setdefault("name", "Test Lead")
        kwargs.setdefault("score", 0)
        kwargs.setdefault("score_stale", False)
        lead = Lead(tenant_id=tenant_id, **kwargs)
        self.leads.append(lead)
        return lead


class FakeActivityRepository:
    def __init__(self, uow: FakeUnitOfWork) -> None:
        self.activities: List[LeadActivity] = []
        self.flush = uow.flush
        self._clock = datetime(2025, 3, 28, 10, 30, tzinfo=timezone.utc)

    async def create(self, **kwargs: Any) -> LeadActivity:
        kwargs.setdefault("activity_id", uuid4())
        self._clock += timedelta(minutes=1)
        kwargs.setdefault("timestamp", self._clock)
        activity = LeadActivity(**kwargs)
        self.activities.append(activity)
        return activity

    async def list_for_lead(self, tenant_id: str, lead_id: UUID) -> List[LeadActivity]:
        return sorted(
            (
                activity
                for activity in self.activities
                if activity.tenant_id == tenant_id and activity.lead_id == lead_id
            ),
            key=lambda activity: activity.timestamp,
        )


class FakeStageRepository:
    def __init__(self, uow: FakeUnitOfWork) -> None:
        self.stages: List[PipelineStage] = []
        self.flush = uow.flush

    async def list_for_tenant(self, tenant_id: str) -> List[PipelineStage]:
        return sorted(
            (stage for stage in self.stages if stage.tenant_id == tenant_id),
            key=lambda stage: (stage.order, stage.stage_id),
        )

    async def get(self, tenant_id: str, stage_id: str) -> Optional[PipelineStage]:
        return next(
            (
                stage
                for stage in self.stages
                if stage.tenant_id == tenant_id and stage.stage_id == stage_id
            ),
            None,
        )

    async def create(self, tenant_id: str, **kwargs: Any) -> PipelineStage:
        stage = PipelineStage(tenant_id=tenant_id, **kwargs)
        self.stages.append(stage)
        return stage

    async def delete(self, stage: PipelineStage) -> None:
        self.stages.remove(stage)


class FakeTenantSettingsRepository:
    def __init__(self, uow: FakeUnitOfWork) -> None:
        self.rows: Dict[str, TenantSettings] = {}
        self.lock_requests: List[Optional[str]] = []
        self.flush = uow.flush

    async def get(self, tenant_id: str, lock: Optional[str] = None) -> Optional[TenantSettings]:
        self.lock_requests.append(lock)
        return self.rows.get(tenant_id)

    async def create_if_missing(
        self, tenant_id: str, default_fields: List[Dict[str, Any]]
    ) -> bool:
        if tenant_id in self.rows:
            return False
        self.rows[tenant_id] = TenantSettings(
            tenant_id=tenant_id,
            scoring_fields=copy.deepcopy(default_fields),
            config_version=1,
        )
        return True

    async def replace_scoring_fields(
        self, settings_row: TenantSettings, fields: List[Dict[str, Any]]
    ) -> None:
        settings_row.scoring_fields = fields
        settings_row.config_version = (settings_row.config_version or 0) + 1


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Yield an ``httpx.AsyncClient`` wired to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Return an ``AsyncMock`` that behaves like ``redis.asyncio.Redis``."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock()
    redis.setex = AsyncMock()
    redis.delete = AsyncMock()
    redis.ping = AsyncMock()
    return redis


@pytest.fixture
def mock_cache(mock_redis) -> "CacheService":
    """Return a ``CacheService`` backed by the mock Redis client."""
    from app.core.cache import CacheService

    return CacheService(redis_client=mock_redis)


@pytest.fixture
def uow() -> FakeUnitOfWork:
    return FakeUnitOfWork()


@pytest.fixture
def lead_repo(uow) -> FakeLeadRepository:
    return FakeLeadRepository(uow)


@pytest.fixture
def activity_repo(uow) -> FakeActivityRepository:
    return FakeActivityRepository(uow)


@pytest.fixture
def stage_repo(uow) -> FakeStageRepository:
    return FakeStageRepository(uow)


@pytest.fixture
def settings_repo(uow) -> FakeTenantSettingsRepository:
    return FakeTenantSettingsRepository(uow)


@pytest.fixture
def stage_registry(stage_repo) -> PipelineStageRegistry:
    return PipelineStageRegistry(stage_repo)


@pytest.fixture
def coordinator(lead_repo, settings_repo, stage_registry, mock_cache) -> ConsistencyCoordinator:
    """Coordinator over in-memory repositories with a private lock registry."""
    return ConsistencyCoordinator(
        lead_repo=lead_repo,
        config_store=ScoringConfigStore(settings_repo, cache=mock_cache),
        stage_registry=stage_registry,
        cache=mock_cache,
        locks=TenantLockRegistry(),
    )


@pytest.fixture
def lead_service(lead_repo, coordinator, activity_repo) -> LeadService:
    return LeadService(
        lead_repo=lead_repo, coordinator=coordinator, activity_repo=activity_repo
    )
