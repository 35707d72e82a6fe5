"""Pydantic schemas package – re-exports for convenience."""

# Common enums
from removals_crm.schemas.common import (
    LeadSource as LeadSource,
    LeadStatus as LeadStatus,
    ContactStatus as ContactStatus,
    ActivityType as ActivityType,
    StaffRole as StaffRole,
    ProcessingOutcome as ProcessingOutcome,
)

# Lead schemas
from removals_crm.schemas.lead import (
    LeadCandidate as LeadCandidate,
    LeadOut as LeadOut,
    LeadReviewRequest as LeadReviewRequest,
    ManualAssignRequest as ManualAssignRequest,
    LeadAssignmentResponse as LeadAssignmentResponse,
)

# Ingestion schemas
from removals_crm.schemas.ingestion import (
    InboundMessageData as InboundMessageData,
    ExtractionResult as ExtractionResult,
    CreatedLead as CreatedLead,
    IngestionSummary as IngestionSummary,
    MessageProcessingResult as MessageProcessingResult,
    PreviewRequest as PreviewRequest,
    PreviewResult as PreviewResult,
    ProcessingStats as ProcessingStats,
)

# Assignment schemas
from removals_crm.schemas.assignment import (
    AssignmentConditions as AssignmentConditions,
    AssignmentRuleCreate as AssignmentRuleCreate,
    AssignmentRuleUpdate as AssignmentRuleUpdate,
    AssignmentRule as AssignmentRule,
    StaffWorkload as StaffWorkload,
)
