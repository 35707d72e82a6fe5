from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Request

from removals_crm.api.deps import (
    get_activity_repo,
    get_extractor_registry,
    get_ingestion_service,
    get_lead_repo,
    get_message_repo,
)
from removals_crm.core.config import settings
from removals_crm.core.rate_limit import limiter
from removals_crm.repositories.activity_repository import ActivityRepository
from removals_crm.repositories.inbound_message_repository import (
    InboundMessageRepository,
)
from removals_crm.repositories.lead_repository import LeadRepository
from removals_crm.schemas.ingestion import (
    IngestionSummary,
    MessageProcessingResult,
    PreviewRequest,
    PreviewResult,
    ProcessingStats,
)
from removals_crm.services.extractors.registry import ExtractorRegistry
from removals_crm.services.ingestion_service import LeadIngestionService

router = APIRouter(prefix="/ingestion", tags=["Ingestion"])


@router.post("/process", response_model=IngestionSummary)
@limiter.limit(settings.PROCESS_RATE_LIMIT)
async def process_pending_messages(
    request: Request,
    service: LeadIngestionService = Depends(get_ingestion_service),
    message_repo: InboundMessageRepository = Depends(get_message_repo),
    lead_repo: LeadRepository = Depends(get_lead_repo),
    activity_repo: ActivityRepository = Depends(get_activity_repo),
) -> IngestionSummary:
    """Sweep the unlinked inbound backlog once.

    Per-message problems are listed in ``errors``; the request itself
    only fails (409) when another sweep is already running.
    """
    return await service.process_pending_messages(
        message_repo=message_repo,
        lead_repo=lead_repo,
        activity_repo=activity_repo,
    )


@router.post("/messages/{message_id}/process", response_model=MessageProcessingResult)
async def process_single_message(
    message_id: UUID,
    service: LeadIngestionService = Depends(get_ingestion_service),
    message_repo: InboundMessageRepository = Depends(get_message_repo),
    lead_repo: LeadRepository = Depends(get_lead_repo),
    activity_repo: ActivityRepository = Depends(get_activity_repo),
) -> MessageProcessingResult:
    return await service.process_single_message(
        message_id,
        message_repo=message_repo,
        lead_repo=lead_repo,
        activity_repo=activity_repo,
    )


@router.post("/preview", response_model=PreviewResult)
async def preview_message(
    payload: PreviewRequest,
    service: LeadIngestionService = Depends(get_ingestion_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
) -> PreviewResult:
    """Show what would be extracted from a sample message; nothing is saved."""
    return await service.preview(
        payload.sender_address,
        payload.subject,
        payload.body,
        html_body=payload.html_body,
        lead_repo=lead_repo,
    )


@router.get("/stats", response_model=ProcessingStats)
async def get_processing_stats(
    service: LeadIngestionService = Depends(get_ingestion_service),
    message_repo: InboundMessageRepository = Depends(get_message_repo),
) -> ProcessingStats:
    return await service.get_processing_stats(message_repo)


@router.get("/extractors", response_model=List[str])
async def list_extractors(
    registry: ExtractorRegistry = Depends(get_extractor_registry),
) -> List[str]:
    """Registered extractors in the order they are tried."""
    return registry.names()
