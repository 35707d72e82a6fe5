from uuid import uuid4

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from removals_crm.models.base import Base


class Activity(Base):
    """Immutable audit entry attached to a lead.

    The ``metadata`` column name is reserved by declarative models, so it
    is mapped to the ``details`` attribute.
    """

    __tablename__ = "activities"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    lead_id = Column(
        UUID(as_uuid=True), ForeignKey("leads.id", ondelete="CASCADE"), nullable=False
    )
    staff_id = Column(
        UUID(as_uuid=True),
        ForeignKey("staff_members.id", ondelete="SET NULL"),
        nullable=True,
    )
    type = Column(String(30), nullable=False)
    description = Column(Text, nullable=False)
    details = Column("metadata", JSONB)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    lead = relationship("Lead", back_populates="activities")
    staff = relationship("StaffMember", back_populates="activities")

    __table_args__ = (Index("idx_activities_lead_created", "lead_id", "created_at"),)
