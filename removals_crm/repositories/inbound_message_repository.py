"""Inbound message repository – the ingestion side of the mailbox store."""

from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select, update

from removals_crm.models.inbound_message import InboundMessage
from removals_crm.repositories.base import BaseRepository


class InboundMessageRepository(BaseRepository):
    """Encapsulates queries against the ``inbound_messages`` table."""

    async def get_by_id(self, message_id: UUID) -> Optional[InboundMessage]:
        """Return a single message by primary key, or ``None``."""
        result = await self._db.execute(
            select(InboundMessage).where(InboundMessage.id == message_id)
        )
        return result.scalar_one_or_none()

    async def get_unlinked(self, limit: int) -> List[InboundMessage]:
        """Return up to *limit* messages with no lead link, oldest first."""
        result = await self._db.execute(
            select(InboundMessage)
            .where(InboundMessage.lead_id.is_(None))
            .order_by(InboundMessage.received_at.asc(), InboundMessage.id.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_unlinked_headers(self) -> List[Tuple[str, str]]:
        """Return ``(sender_address, subject)`` for every unlinked message."""
        result = await self._db.execute(
            select(InboundMessage.sender_address, InboundMessage.subject).where(
                InboundMessage.lead_id.is_(None)
            )
        )
        return [(sender, subject) for sender, subject in result.all()]

    async def count_unlinked(self) -> int:
        """Return the size of the unprocessed backlog."""
        result = await self._db.execute(
            select(func.count())
            .select_from(InboundMessage)
            .where(InboundMessage.lead_id.is_(None))
        )
        return result.scalar() or 0

    async def link_to_lead(self, message_id: UUID, lead_id: UUID) -> None:
        """Attach a message to a lead.

        Guarded by ``lead_id IS NULL`` so an already-linked message is
        never moved to a different lead.
        """
        await self._db.execute(
            update(InboundMessage)
            .where(
                InboundMessage.id == message_id,
                InboundMessage.lead_id.is_(None),
            )
            .values(lead_id=lead_id)
        )
