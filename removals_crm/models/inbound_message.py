from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from removals_crm.models.base import Base


class InboundMessage(Base):
    """Raw email stored by the mail-transport layer.

    Ingestion only ever reads these rows and sets ``lead_id``; a message
    that already carries a lead link is never reprocessed.
    """

    __tablename__ = "inbound_messages"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    message_id = Column(String(255), unique=True)
    sender_address = Column(String(320), nullable=False)
    subject = Column(String(998), nullable=False, server_default="")
    plain_body = Column(Text, nullable=False, server_default="")
    html_body = Column(Text)
    received_at = Column(DateTime(timezone=True), server_default=func.now())
    lead_id = Column(
        UUID(as_uuid=True), ForeignKey("leads.id", ondelete="SET NULL"), nullable=True
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    lead = relationship("Lead", back_populates="messages")

    __table_args__ = (
        Index(
            "idx_inbound_messages_unlinked",
            "received_at",
            postgresql_where=lead_id.is_(None),
        ),
    )
