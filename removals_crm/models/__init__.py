from removals_crm.models.base import Base
from removals_crm.models.staff import StaffMember
from removals_crm.models.lead import Lead
from removals_crm.models.activity import Activity
from removals_crm.models.inbound_message import InboundMessage

# Import event listeners to register them
from removals_crm.models import listeners  # noqa: F401

__all__ = [
    "Base",
    "StaffMember",
    "Lead",
    "Activity",
    "InboundMessage",
]
