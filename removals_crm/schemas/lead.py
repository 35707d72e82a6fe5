"""Lead-specific schemas: the extraction candidate and API views."""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import ConfigDict

from removals_crm.schemas.common import (
    CamelModel,
    ContactStatus,
    LeadSource,
    LeadStatus,
)


class LeadCandidate(CamelModel):
    """Possibly partial customer data pulled out of one inbound message.

    Every field is optional; an empty candidate is still a valid
    extraction result.
    """

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    source: Optional[LeadSource] = None
    external_ref: Optional[str] = None
    move_date: Optional[date] = None
    from_address: Optional[str] = None
    from_postcode: Optional[str] = None
    from_property_type: Optional[str] = None
    to_address: Optional[str] = None
    to_postcode: Optional[str] = None
    to_property_type: Optional[str] = None
    bedrooms: Optional[int] = None
    distance_miles: Optional[int] = None
    packing_required: Optional[bool] = None
    cleaning_required: Optional[bool] = None
    notes: Optional[str] = None


class LeadOut(CamelModel):
    """Read model returned by lead review / assignment endpoints."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    first_name: str
    last_name: str
    email: str
    phone: str
    source: LeadSource
    status: LeadStatus
    contact_status: ContactStatus
    from_postcode: Optional[str] = None
    to_postcode: Optional[str] = None
    bedrooms: Optional[int] = None
    move_date: Optional[date] = None
    assigned_to_id: Optional[UUID] = None
    created_at: Optional[datetime] = None


class LeadReviewRequest(CamelModel):
    """Body for accept / reject; the acting staff member is optional."""

    acting_user_id: Optional[UUID] = None


class ManualAssignRequest(CamelModel):
    """Body for POST /api/v1/leads/{lead_id}/assign."""

    user_id: UUID
    acting_user_id: Optional[UUID] = None


class LeadAssignmentResponse(CamelModel):
    """Result of an assignment attempt; ``assigned`` is false on a no-op."""

    assigned: bool
    lead: LeadOut
    assigned_to_id: Optional[UUID] = None
