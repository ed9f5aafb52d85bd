"""Demo-tenant seeder: default config, default stages, three sample leads
and an activity log entry on each.

Usage:
    python -m app.scripts.seed [tenant_id]
"""

import asyncio
import sys

from sqlalchemy import delete

from app.core.database import AsyncSessionLocal, engine
from app.models import Lead, LeadActivity, PipelineStage, TenantSettings
from app.repositories import (
    LeadActivityRepository,
    LeadRepository,
    PipelineStageRepository,
    TenantSettingsRepository,
)
from app.schemas.lead import LeadActivityCreate, LeadCreate
from app.services.consistency import ConsistencyCoordinator
from app.services.lead_service import LeadService
from app.services.scoring_config_store import ScoringConfigStore
from app.services.stage_registry import PipelineStageRegistry

DEMO_TENANT_ID = "demo"

SAMPLE_LEADS = [
    {
        "name": "Somnath Ghosh",
        "email": "somnath@example.com",
        "company": "Acme Analytics",
        "designation": "CEO",
        "category": "Regional",
        "industry": "Technology",
        "location": "Kolkata, India",
        "status": "Qualified",
        "value": 50000,
        "lastContact": "2025-03-23",
        "nextFollowUp": "2025-03-29",
    },
    {
        "name": "Sanchita Ghosh",
        "email": "sanchita@example.com",
        "company": "Bright Minds Academy",
        "designation": "CTO",
        "category": "Local",
        "industry": "Education",
        "location": "Mumbai, India",
        "status": "New",
        "value": 12000,
        "lastContact": "2025-03-23",
    },
    {
        "name": "Sanchita Ghosh",
        "email": "sanchita.ghosh@example.co.uk",
        "company": "Northbank Capital",
        "designation": "Head of Marketing",
        "category": "MNC",
        "industry": "Finance",
        "location": "London, UK",
        "status": "Won",
        "value": 85000,
        "lastContact": "2025-03-23",
        "nextFollowUp": "2025-03-27",
    },
]


async def seed(tenant_id: str = DEMO_TENANT_ID) -> None:
    async with AsyncSessionLocal() as session:
        print(f"Seeding tenant '{tenant_id}'")

        # Re-running the seed starts the tenant over from the defaults
        for model in (LeadActivity, Lead, PipelineStage, TenantSettings):
            await session.execute(delete(model).where(model.tenant_id == tenant_id))
        await session.commit()
        print("Cleared existing tenant data")

        lead_repo = LeadRepository(session)
        coordinator = ConsistencyCoordinator(
            lead_repo=lead_repo,
            config_store=ScoringConfigStore(TenantSettingsRepository(session)),
            stage_registry=PipelineStageRegistry(PipelineStageRepository(session)),
        )
        service = LeadService(
            lead_repo=lead_repo,
            coordinator=coordinator,
            activity_repo=LeadActivityRepository(session),
        )

        stages = await coordinator.list_stages(tenant_id)
        print(f"Created {len(stages)} pipeline stages: {', '.join(s.id for s in stages)}")

        for data in SAMPLE_LEADS:
            lead = await service.create_lead(tenant_id, LeadCreate(**data))
            print(f"  {lead.name:<16} {lead.designation:<18} {lead.status:<10} score={lead.score}")
            await service.add_activity(
                tenant_id,
                lead.lead_id,
                LeadActivityCreate(
                    type="Call",
                    details="Initial contact call, discussed needs.",
                    user_id="user1",
                ),
            )

        print(f"Seeding complete: {len(SAMPLE_LEADS)} leads")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed(sys.argv[1] if len(sys.argv) > 1 else DEMO_TENANT_ID))
