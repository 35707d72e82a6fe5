from typing import Any, Dict, Iterable, Optional
from uuid import UUID

from sqlalchemy import func, select

from removals_crm.models.lead import Lead
from removals_crm.repositories.base import BaseRepository


class LeadRepository(BaseRepository):
    """Encapsulates every SQL query that touches the ``leads`` table."""

    async def get_by_id(self, lead_id: UUID) -> Optional[Lead]:
        """Return a single lead by primary key, or ``None``."""
        result = await self._db.execute(select(Lead).where(Lead.id == lead_id))
        return result.scalar_one_or_none()

    async def find_by_email(self, email: str) -> Optional[Lead]:
        """Case-insensitive lookup; blank input never matches."""
        if not email or not email.strip():
            return None
        result = await self._db.execute(
            select(Lead)
            .where(func.lower(Lead.email) == email.strip().lower())
            .order_by(Lead.created_at.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def find_by_phone(self, phone: str) -> Optional[Lead]:
        """Exact lookup on the whitespace-free phone; blank never matches."""
        if not phone or not phone.strip():
            return None
        result = await self._db.execute(
            select(Lead)
            .where(Lead.phone == phone.strip())
            .order_by(Lead.created_at.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def create(self, **kwargs: Any) -> Lead:
        """Insert a new lead and flush so constraint violations surface here."""
        lead = Lead(**kwargs)
        self._db.add(lead)
        await self._db.flush()
        return lead

    async def save(self, lead: Lead) -> Lead:
        """Persist changes made to an existing lead instance."""
        self._db.add(lead)
        await self._db.flush()
        return lead

    async def count_by_owner_and_status(
        self, owner_ids: Iterable[UUID], statuses: Iterable[str]
    ) -> Dict[UUID, int]:
        """Return ``{owner_id: count}`` of leads in *statuses*.

        Computed with a single grouped query so every owner's count comes
        from the same snapshot.  Owners with no matching leads are
        reported as ``0``.
        """
        owner_ids = list(owner_ids)
        if not owner_ids:
            return {}
        result = await self._db.execute(
            select(Lead.assigned_to_id, func.count(Lead.id))
            .where(
                Lead.assigned_to_id.in_(owner_ids),
                Lead.status.in_(list(statuses)),
            )
            .group_by(Lead.assigned_to_id)
        )
        counts = {owner_id: 0 for owner_id in owner_ids}
        counts.update({owner_id: count for owner_id, count in result.all()})
        return counts

    async def count_by_owner(self, owner_ids: Iterable[UUID]) -> Dict[UUID, int]:
        """Return ``{owner_id: total leads}`` regardless of status."""
        owner_ids = list(owner_ids)
        if not owner_ids:
            return {}
        result = await self._db.execute(
            select(Lead.assigned_to_id, func.count(Lead.id))
            .where(Lead.assigned_to_id.in_(owner_ids))
            .group_by(Lead.assigned_to_id)
        )
        counts = {owner_id: 0 for owner_id in owner_ids}
        counts.update({owner_id: count for owner_id, count in result.all()})
        return counts

    async def update_status(self, lead: Lead, new_status: str) -> None:
        """Update the status column on an existing lead instance."""
        lead.status = new_status
        await self._db.flush()
