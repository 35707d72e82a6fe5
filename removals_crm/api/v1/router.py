from fastapi import APIRouter

from removals_crm.api.v1.endpoints import assignment, health, ingestion, leads

router = APIRouter(prefix="/api/v1")

router.include_router(ingestion.router)
router.include_router(assignment.router)
router.include_router(leads.router)
router.include_router(health.router)
