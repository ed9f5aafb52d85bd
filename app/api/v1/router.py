from fastapi import APIRouter

from app.api.v1.endpoints import health, leads, scoring, stages

router = APIRouter(prefix="/api/v1")

router.include_router(scoring.router)
router.include_router(stages.router)
router.include_router(leads.router)
router.include_router(health.router)
