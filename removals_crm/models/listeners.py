from datetime import datetime, timezone

from sqlalchemy import event

from removals_crm.models.lead import Lead
from removals_crm.models.staff import StaffMember


# Auto updated_at
@event.listens_for(Lead, "before_update")
@event.listens_for(StaffMember, "before_update")
def update_timestamp(mapper, connection, target):
    target.updated_at = datetime.now(timezone.utc)
