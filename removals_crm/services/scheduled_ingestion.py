import asyncio
import logging
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from removals_crm.core.cache import CacheService
from removals_crm.core.config import settings
from removals_crm.core.exceptions import IngestionInProgressError
from removals_crm.repositories.activity_repository import ActivityRepository
from removals_crm.repositories.inbound_message_repository import (
    InboundMessageRepository,
)
from removals_crm.repositories.lead_repository import LeadRepository
from removals_crm.schemas.ingestion import IngestionSummary
from removals_crm.services.extractors.registry import ExtractorRegistry
from removals_crm.services.ingestion_service import LeadIngestionService

logger = logging.getLogger(__name__)


async def run_ingestion_cycle(
    session_factory: Callable[..., AsyncSession],
    cache: Optional[CacheService] = None,
) -> Optional[IngestionSummary]:
    """One-shot: sweep the unlinked backlog once.

    Parameters:
        session_factory: An async context-manager callable that yields
            an ``AsyncSession`` (e.g. ``AsyncSessionLocal``).
        cache: Holds the run lock shared with operator-triggered runs.

    Returns the summary, or ``None`` when another run holds the lock.
    """
    service = LeadIngestionService(ExtractorRegistry(), cache=cache)

    async with session_factory() as session:
        try:
            return await service.process_pending_messages(
                message_repo=InboundMessageRepository(session),
                lead_repo=LeadRepository(session),
                activity_repo=ActivityRepository(session),
            )
        except IngestionInProgressError:
            logger.info("Skipping scheduled ingestion: another run is in progress")
            return None


async def start_ingestion_loop(
    session_factory: Callable[..., AsyncSession],
    cache: Optional[CacheService] = None,
    interval_seconds: int = settings.INGESTION_INTERVAL_SECONDS,
) -> None:
    """Infinite loop that sweeps the inbound backlog on a fixed interval.

    Parameters:
        session_factory: An async context-manager callable that yields
            an ``AsyncSession``.
    """
    logger.info(
        "Scheduled ingestion background task started (interval=%ds)",
        interval_seconds,
    )
    while True:
        try:
            summary = await run_ingestion_cycle(session_factory, cache)
            if summary is not None and summary.processed:
                logger.info(
                    "Scheduled ingestion cycle complete: %d processed, %d created",
                    summary.processed,
                    summary.leads_created,
                )
        except Exception:
            logger.error("Scheduled ingestion cycle failed", exc_info=True)
        await asyncio.sleep(interval_seconds)
