import logging
from collections import Counter
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

from sqlalchemy.exc import IntegrityError

from removals_crm.core.cache import CacheService
from removals_crm.core.config import settings
from removals_crm.core.constants import (
    DEFAULT_FIRST_NAME,
    INGESTION_LOCK_KEY,
    MAX_INGESTION_BATCH,
)
from removals_crm.core.exceptions import IngestionInProgressError
from removals_crm.models.lead import Lead
from removals_crm.repositories.activity_repository import ActivityRepository
from removals_crm.repositories.inbound_message_repository import (
    InboundMessageRepository,
)
from removals_crm.repositories.lead_repository import LeadRepository
from removals_crm.schemas.common import (
    ActivityType,
    ContactStatus,
    LeadSource,
    LeadStatus,
    ProcessingOutcome,
)
from removals_crm.schemas.ingestion import (
    CreatedLead,
    ExtractionResult,
    InboundMessageData,
    IngestionSummary,
    MessageProcessingResult,
    PreviewResult,
    ProcessingStats,
)
from removals_crm.schemas.lead import LeadCandidate
from removals_crm.services.extractors.fields import extract_email
from removals_crm.services.extractors.registry import ExtractorRegistry

logger = logging.getLogger(__name__)


class LeadIngestionService:
    """Turns unlinked inbound messages into new or existing leads.

    Messages are handled one at a time, each in its own savepoint and
    committed on its own, so one bad message never costs the rest of the
    batch.  A message is only ever linked to a lead, never deleted; a
    message that could not be handled stays unlinked for the next run.
    """

    def __init__(
        self,
        registry: ExtractorRegistry,
        cache: Optional[CacheService] = None,
        batch_size: int = settings.INGESTION_BATCH_SIZE,
    ) -> None:
        self._registry = registry
        self._cache: CacheService = cache or CacheService()
        self._batch_size = max(1, min(batch_size, MAX_INGESTION_BATCH))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def process_pending_messages(
        self,
        message_repo: InboundMessageRepository,
        lead_repo: LeadRepository,
        activity_repo: ActivityRepository,
    ) -> IngestionSummary:
        """Sweep the backlog of unlinked messages, oldest first.

        Raises:
            IngestionInProgressError: If another run holds the run lock.
        """
        owner = uuid4().hex
        if not await self._cache.acquire_lock(
            INGESTION_LOCK_KEY, owner, settings.INGESTION_LOCK_TTL
        ):
            raise IngestionInProgressError()

        try:
            return await self._process_batch(message_repo, lead_repo, activity_repo)
        finally:
            await self._cache.release_lock(INGESTION_LOCK_KEY, owner)

    async def process_single_message(
        self,
        message_id: UUID,
        message_repo: InboundMessageRepository,
        lead_repo: LeadRepository,
        activity_repo: ActivityRepository,
    ) -> MessageProcessingResult:
        """Manual retry of one message; reports the outcome instead of raising."""
        message = await message_repo.get_by_id(message_id)
        if message is None:
            return MessageProcessingResult(
                success=False,
                outcome=ProcessingOutcome.failed,
                error="Message not found",
            )
        if message.lead_id is not None:
            return MessageProcessingResult(
                success=False,
                outcome=ProcessingOutcome.skipped,
                lead_id=message.lead_id,
                error="Message already linked to a lead",
            )

        data = self._snapshot(message)
        extraction = self._registry.parse(
            data.sender_address, data.subject, data.plain_body, data.html_body
        )
        if not extraction.parser_found:
            return MessageProcessingResult(
                success=False,
                outcome=ProcessingOutcome.skipped,
                error="No parser available for this message format",
            )
        if not extraction.success or extraction.candidate is None:
            return MessageProcessingResult(
                success=False,
                outcome=ProcessingOutcome.failed,
                error=extraction.error,
            )

        try:
            async with message_repo.savepoint():
                outcome, lead = await self._link_or_create(
                    data, extraction, message_repo, lead_repo, activity_repo
                )
            await message_repo.commit()
        except Exception as exc:
            logger.error("Failed to process message %s", data.id, exc_info=True)
            await message_repo.rollback()
            return MessageProcessingResult(
                success=False,
                outcome=ProcessingOutcome.failed,
                error=f"Error processing message {data.id}: {exc}",
            )

        return MessageProcessingResult(success=True, outcome=outcome, lead_id=lead.id)

    async def preview(
        self,
        sender: str,
        subject: str,
        body: str,
        html_body: Optional[str] = None,
        lead_repo: Optional[LeadRepository] = None,
    ) -> PreviewResult:
        """Run detection, extraction and the duplicate lookup; write nothing."""
        extractor = self._registry.detect(sender, subject)
        if extractor is None:
            existing = None
            if lead_repo is not None:
                existing = await lead_repo.find_by_email(extract_email(sender) or "")
            return PreviewResult(
                parser_found=False,
                error="No parser found for this message",
                existing_lead_id=existing.id if existing else None,
            )

        extraction = extractor.extract(subject, body, html_body)
        existing = None
        if lead_repo is not None and extraction.success and extraction.candidate:
            existing = await self._find_existing(extraction.candidate, lead_repo)

        return PreviewResult(
            parser_found=True,
            parser_name=extractor.name,
            result=extraction.candidate,
            error=extraction.error,
            existing_lead_id=existing.id if existing else None,
        )

    async def get_processing_stats(
        self, message_repo: InboundMessageRepository
    ) -> ProcessingStats:
        """Size of the unlinked backlog, broken down by detected source."""
        total = await message_repo.count_unlinked()
        headers = await message_repo.get_unlinked_headers()
        by_source = Counter(
            self._registry.detect_source(sender, subject).value
            for sender, subject in headers
        )
        return ProcessingStats(total_unprocessed=total, by_source=dict(by_source))

    # ------------------------------------------------------------------
    # Batch internals
    # ------------------------------------------------------------------

    async def _process_batch(
        self,
        message_repo: InboundMessageRepository,
        lead_repo: LeadRepository,
        activity_repo: ActivityRepository,
    ) -> IngestionSummary:
        summary = IngestionSummary()

        # Plain copies: a rollback below must not expire what we iterate over
        messages = [
            self._snapshot(message)
            for message in await message_repo.get_unlinked(self._batch_size)
        ]
        logger.info("Found %d unprocessed message(s)", len(messages))

        for message in messages:
            summary.processed += 1
            try:
                async with message_repo.savepoint():
                    await self._process_one(
                        message, summary, message_repo, lead_repo, activity_repo
                    )
                await message_repo.commit()
            except Exception as exc:
                logger.error(
                    "Failed to process message %s", message.id, exc_info=True
                )
                summary.errors.append(f"Error processing message {message.id}: {exc}")
                await message_repo.rollback()

        logger.info(
            "Processing complete: %d lead(s) created, %d linked, %d skipped, "
            "%d error(s)",
            summary.leads_created,
            summary.linked,
            summary.skipped,
            len(summary.errors),
        )
        return summary

    async def _process_one(
        self,
        message: InboundMessageData,
        summary: IngestionSummary,
        message_repo: InboundMessageRepository,
        lead_repo: LeadRepository,
        activity_repo: ActivityRepository,
    ) -> None:
        extraction = self._registry.parse(
            message.sender_address,
            message.subject,
            message.plain_body,
            message.html_body,
        )

        if not extraction.parser_found:
            # Not a lead email; it may still be correspondence from a customer
            existing = await lead_repo.find_by_email(
                extract_email(message.sender_address) or ""
            )
            if existing is not None:
                await message_repo.link_to_lead(message.id, existing.id)
                summary.linked += 1
                logger.info(
                    "Linked message %s to existing lead %s", message.id, existing.id
                )
            summary.skipped += 1
            return

        if not extraction.success or extraction.candidate is None:
            summary.errors.append(
                f"Failed to parse message {message.id}: {extraction.error}"
            )
            summary.skipped += 1
            return

        outcome, lead = await self._link_or_create(
            message, extraction, message_repo, lead_repo, activity_repo
        )
        if outcome is ProcessingOutcome.linked:
            summary.linked += 1
            summary.skipped += 1
            return

        summary.leads_created += 1
        summary.leads.append(
            CreatedLead(id=lead.id, email=lead.email, source=lead.source)
        )
        logger.info("Created lead %s from %s", lead.id, lead.source)

    async def _link_or_create(
        self,
        message: InboundMessageData,
        extraction: ExtractionResult,
        message_repo: InboundMessageRepository,
        lead_repo: LeadRepository,
        activity_repo: ActivityRepository,
    ) -> tuple:
        """Link *message* to a matching lead, or create one.

        Returns ``(ProcessingOutcome, Lead)``.
        """
        candidate = extraction.candidate

        existing = await self._find_existing(candidate, lead_repo)
        if existing is not None:
            await message_repo.link_to_lead(message.id, existing.id)
            logger.info(
                "Message %s linked to existing lead %s", message.id, existing.id
            )
            return ProcessingOutcome.linked, existing

        try:
            async with lead_repo.savepoint():
                lead = await lead_repo.create(**self._lead_fields(candidate))
        except IntegrityError:
            # Another run inserted the same email between our lookup and insert
            winner = await self._find_existing(candidate, lead_repo)
            if winner is None:
                raise
            logger.info(
                "Lost lead-create race for message %s; linking to %s",
                message.id,
                winner.id,
            )
            await message_repo.link_to_lead(message.id, winner.id)
            return ProcessingOutcome.linked, winner

        await message_repo.link_to_lead(message.id, lead.id)
        await activity_repo.create(
            lead_id=lead.id,
            type=ActivityType.status_change.value,
            description=f"Lead created from {lead.source} email",
            details={
                "origin": "email_ingestion",
                "source": lead.source,
                "message_id": str(message.id),
                "extractor": extraction.parser_name,
            },
        )
        return ProcessingOutcome.created, lead

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _find_existing(
        candidate: LeadCandidate, lead_repo: LeadRepository
    ) -> Optional[Lead]:
        """Email first (case-insensitive), then phone."""
        if candidate.email:
            by_email = await lead_repo.find_by_email(candidate.email)
            if by_email is not None:
                return by_email
        if candidate.phone:
            return await lead_repo.find_by_phone(candidate.phone)
        return None

    @staticmethod
    def _lead_fields(candidate: LeadCandidate) -> Dict[str, Any]:
        source = candidate.source or LeadSource.MANUAL
        return {
            "first_name": candidate.first_name or DEFAULT_FIRST_NAME,
            "last_name": candidate.last_name or "",
            "email": (candidate.email or "").strip().lower(),
            "phone": (candidate.phone or "").strip(),
            "source": source.value,
            "external_ref": candidate.external_ref,
            "status": LeadStatus.pending.value,
            "contact_status": ContactStatus.not_contacted.value,
            "move_date": candidate.move_date,
            "from_address": candidate.from_address,
            "from_postcode": (
                candidate.from_postcode.upper() if candidate.from_postcode else None
            ),
            "from_property_type": candidate.from_property_type,
            "to_address": candidate.to_address,
            "to_postcode": (
                candidate.to_postcode.upper() if candidate.to_postcode else None
            ),
            "to_property_type": candidate.to_property_type,
            "bedrooms": candidate.bedrooms,
            "distance_miles": candidate.distance_miles,
            "packing_required": bool(candidate.packing_required),
            "cleaning_required": bool(candidate.cleaning_required),
            "notes": candidate.notes,
        }

    @staticmethod
    def _snapshot(message: Any) -> InboundMessageData:
        return InboundMessageData(
            id=message.id,
            sender_address=message.sender_address or "",
            subject=message.subject or "",
            plain_body=message.plain_body or "",
            html_body=message.html_body,
            received_at=message.received_at,
            lead_id=message.lead_id,
        )

