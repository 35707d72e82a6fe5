from typing import Any, List
from uuid import UUID

from sqlalchemy import select

from removals_crm.models.activity import Activity
from removals_crm.repositories.base import BaseRepository


class ActivityRepository(BaseRepository):
    """Encapsulates queries against the ``activities`` table."""

    async def create(self, **kwargs: Any) -> Activity:
        """Insert a new activity record."""
        activity = Activity(**kwargs)
        self._db.add(activity)
        return activity

    async def list_for_lead(self, lead_id: UUID) -> List[Activity]:
        """Return a lead's activities, oldest first."""
        result = await self._db.execute(
            select(Activity)
            .where(Activity.lead_id == lead_id)
            .order_by(Activity.created_at.asc())
        )
        return list(result.scalars().all())
