from typing import List, Optional
from uuid import UUID

from sqlalchemy import select

from removals_crm.models.staff import StaffMember
from removals_crm.repositories.base import BaseRepository


class StaffRepository(BaseRepository):
    """Encapsulates every SQL query that touches the ``staff_members`` table."""

    async def get_by_id(self, staff_id: UUID) -> Optional[StaffMember]:
        """Return a single staff member by primary key, or ``None``."""
        result = await self._db.execute(
            select(StaffMember).where(StaffMember.id == staff_id)
        )
        return result.scalar_one_or_none()

    async def get_active_staff(self) -> List[StaffMember]:
        """Return active staff ordered by name (the round-robin tiebreak)."""
        result = await self._db.execute(
            select(StaffMember)
            .where(StaffMember.is_active.is_(True))
            .order_by(StaffMember.name.asc(), StaffMember.id.asc())
        )
        return list(result.scalars().all())
