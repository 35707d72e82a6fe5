from uuid import uuid4

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from removals_crm.models.base import Base


class StaffMember(Base):
    """Office user who can own leads.

    Only active staff take part in rule-based or round-robin assignment;
    deactivating someone keeps their historic leads and activities intact.
    """

    __tablename__ = "staff_members"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    role = Column(String(20), nullable=False, server_default="staff")
    is_active = Column(Boolean, nullable=False, server_default="true")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    leads = relationship("Lead", back_populates="assigned_to")
    activities = relationship("Activity", back_populates="staff")

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'staff')", name="ck_staff_role"),
    )
