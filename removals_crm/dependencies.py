import logging
from typing import Optional

from fastapi import Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from removals_crm.core.cache import CacheService
from removals_crm.core.config import settings
from removals_crm.core.database import get_db
from removals_crm.repositories.activity_repository import ActivityRepository
from removals_crm.repositories.inbound_message_repository import (
    InboundMessageRepository,
)
from removals_crm.repositories.lead_repository import LeadRepository
from removals_crm.repositories.staff_repository import StaffRepository
from removals_crm.services.extractors.registry import ExtractorRegistry
from removals_crm.services.ingestion_service import LeadIngestionService
from removals_crm.services.lead_assignment import (
    AssignmentRuleStore,
    LeadAssignmentManager,
)
from removals_crm.services.lead_review_service import LeadReviewService

logger = logging.getLogger(__name__)

# Process-wide state: rules live as long as the process does
_rule_store = AssignmentRuleStore()
_extractor_registry = ExtractorRegistry()


# ---------------------------------------------------------------------------
# Redis client factory
# ---------------------------------------------------------------------------


async def get_redis_client() -> Optional[Redis]:
    """Get an async Redis client, or ``None`` when Redis is unreachable."""
    try:
        client = Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
        )
        await client.ping()
        return client
    except Exception:
        logger.warning("Redis unavailable – ingestion runs without a lock")
        return None


async def get_cache_service(
    redis_client: Optional[Redis] = Depends(get_redis_client),
) -> CacheService:
    """Build a :class:`CacheService` backed by the shared Redis client."""
    return CacheService(redis_client=redis_client)


# ---------------------------------------------------------------------------
# Repository factory functions (one per repository, each gets the shared db)
# ---------------------------------------------------------------------------


async def get_lead_repo(db: AsyncSession = Depends(get_db)) -> LeadRepository:
    return LeadRepository(db)


async def get_staff_repo(db: AsyncSession = Depends(get_db)) -> StaffRepository:
    return StaffRepository(db)


async def get_activity_repo(db: AsyncSession = Depends(get_db)) -> ActivityRepository:
    return ActivityRepository(db)


async def get_message_repo(
    db: AsyncSession = Depends(get_db),
) -> InboundMessageRepository:
    return InboundMessageRepository(db)


# ---------------------------------------------------------------------------
# Service factory functions
# ---------------------------------------------------------------------------


def get_rule_store() -> AssignmentRuleStore:
    return _rule_store


def get_extractor_registry() -> ExtractorRegistry:
    return _extractor_registry


async def get_assignment_manager(
    rule_store: AssignmentRuleStore = Depends(get_rule_store),
) -> LeadAssignmentManager:
    return LeadAssignmentManager(rule_store=rule_store)


async def get_ingestion_service(
    registry: ExtractorRegistry = Depends(get_extractor_registry),
    cache: CacheService = Depends(get_cache_service),
) -> LeadIngestionService:
    """Build a :class:`LeadIngestionService` sharing the run lock in Redis."""
    return LeadIngestionService(registry=registry, cache=cache)


async def get_lead_review_service(
    assignment_manager: LeadAssignmentManager = Depends(get_assignment_manager),
) -> LeadReviewService:
    return LeadReviewService(assignment_manager=assignment_manager)
