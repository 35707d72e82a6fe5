"""Repository layer – all database access goes through here.

Repositories encapsulate SQLAlchemy queries so that the service layer
only contains business logic.
"""

from removals_crm.repositories.lead_repository import LeadRepository
from removals_crm.repositories.staff_repository import StaffRepository
from removals_crm.repositories.activity_repository import ActivityRepository
from removals_crm.repositories.inbound_message_repository import (
    InboundMessageRepository,
)

__all__ = [
    "LeadRepository",
    "StaffRepository",
    "ActivityRepository",
    "InboundMessageRepository",
]
