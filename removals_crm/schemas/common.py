from enum import Enum
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class LeadSource(str, Enum):
    COMPAREMYMOVE = "comparemymove"
    REALLYMOVING = "reallymoving"
    GETAMOVER = "getamover"
    WEBSITE = "website"
    MANUAL = "manual"


class LeadStatus(str, Enum):
    pending = "pending"
    new = "new"
    contacted = "contacted"
    qualified = "qualified"
    proposal = "proposal"
    won = "won"
    lost = "lost"
    rejected = "rejected"


class ContactStatus(str, Enum):
    not_contacted = "not_contacted"
    contacted = "contacted"
    responded = "responded"
    no_response = "no_response"


class ActivityType(str, Enum):
    email = "email"
    call = "call"
    note = "note"
    status_change = "status_change"
    milestone = "milestone"
    assessment = "assessment"
    assignment = "assignment"
    sms = "sms"


class StaffRole(str, Enum):
    admin = "admin"
    staff = "staff"


class ProcessingOutcome(str, Enum):
    created = "created"
    linked = "linked"
    skipped = "skipped"
    failed = "failed"


class CamelModel(BaseModel):
    """Base for payloads exchanged with the orchestrating service.

    Attributes stay snake_case in Python; the wire format is camelCase.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
