from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from removals_crm.core.constants import SOURCE_CHECK_CLAUSE, STATUS_CHECK_CLAUSE
from removals_crm.models.base import Base


class Lead(Base):
    """Prospective removals job, one row per distinct customer.

    Identity is not a single natural key: ingestion treats email and phone
    as independent matching keys.  Email (when present) is additionally
    protected by a partial UNIQUE index so that two racing ingestion runs
    cannot both insert the same customer.
    """

    __tablename__ = "leads"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    assigned_to_id = Column(
        UUID(as_uuid=True),
        ForeignKey("staff_members.id", ondelete="SET NULL"),
        nullable=True,
    )
    email = Column(String, nullable=False, server_default="")
    phone = Column(String, nullable=False, server_default="")
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False, server_default="")
    status = Column(String(20), nullable=False, server_default="pending")
    contact_status = Column(String(20), nullable=False, server_default="not_contacted")
    source = Column(String(20), nullable=False, server_default="manual")
    external_ref = Column(String)
    move_date = Column(Date)
    from_address = Column(String(255))
    from_postcode = Column(String)
    from_property_type = Column(String)
    to_address = Column(String(255))
    to_postcode = Column(String)
    to_property_type = Column(String)
    bedrooms = Column(Integer)
    distance_miles = Column(Integer)
    packing_required = Column(Boolean, nullable=False, server_default="false")
    cleaning_required = Column(Boolean, nullable=False, server_default="false")
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    assigned_to = relationship("StaffMember", back_populates="leads")
    activities = relationship(
        "Activity", back_populates="lead", cascade="all, delete-orphan"
    )
    messages = relationship("InboundMessage", back_populates="lead")

    __table_args__ = (
        Index(
            "uq_leads_email",
            "email",
            unique=True,
            postgresql_where=text("email <> ''"),
        ),
        Index("idx_leads_phone", "phone"),
        Index("idx_leads_status", "status"),
        Index("idx_leads_from_postcode", "from_postcode"),
        Index("idx_leads_assigned_status", "assigned_to_id", "status"),
        CheckConstraint(STATUS_CHECK_CLAUSE, name="ck_lead_status"),
        CheckConstraint(SOURCE_CHECK_CLAUSE, name="ck_lead_source"),
        CheckConstraint(
            "bedrooms IS NULL OR bedrooms >= 0", name="ck_lead_bedrooms_nonneg"
        ),
    )
