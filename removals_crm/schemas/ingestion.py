"""Ingestion pipeline payloads (summary, per-message result, preview)."""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import Field

from removals_crm.schemas.common import CamelModel, LeadSource, ProcessingOutcome
from removals_crm.schemas.lead import LeadCandidate


class InboundMessageData(CamelModel):
    """Detached snapshot of an inbound message taken at the start of a run."""

    id: UUID
    sender_address: str
    subject: str = ""
    plain_body: str = ""
    html_body: Optional[str] = None
    received_at: Optional[datetime] = None
    lead_id: Optional[UUID] = None


class ExtractionResult(CamelModel):
    """Outcome of running one extractor over one message."""

    success: bool
    parser_found: bool = True
    parser_name: Optional[str] = None
    candidate: Optional[LeadCandidate] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, parser_name: str, candidate: LeadCandidate) -> "ExtractionResult":
        return cls(success=True, parser_name=parser_name, candidate=candidate)

    @classmethod
    def failed(cls, parser_name: str, error: str) -> "ExtractionResult":
        return cls(success=False, parser_name=parser_name, error=error)

    @classmethod
    def no_parser(cls) -> "ExtractionResult":
        return cls(
            success=False,
            parser_found=False,
            error="No suitable parser found for this message format",
        )


class CreatedLead(CamelModel):
    id: UUID
    email: str
    source: LeadSource


class IngestionSummary(CamelModel):
    """Returned by every batch sweep; never replaced by an exception."""

    processed: int = 0
    leads_created: int = 0
    linked: int = 0
    skipped: int = 0
    errors: List[str] = Field(default_factory=list)
    leads: List[CreatedLead] = Field(default_factory=list)


class MessageProcessingResult(CamelModel):
    success: bool
    outcome: ProcessingOutcome
    lead_id: Optional[UUID] = None
    error: Optional[str] = None


class PreviewRequest(CamelModel):
    sender_address: str = Field(..., alias="from")
    subject: str = ""
    body: str = ""
    html_body: Optional[str] = None


class PreviewResult(CamelModel):
    parser_found: bool
    parser_name: Optional[str] = None
    result: Optional[LeadCandidate] = None
    error: Optional[str] = None
    existing_lead_id: Optional[UUID] = None


class ProcessingStats(CamelModel):
    total_unprocessed: int
    by_source: Dict[str, int] = Field(default_factory=dict)
