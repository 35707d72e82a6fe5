"""In-memory stand-ins for the repository layer and record builders.

The fakes honour the same contract as the SQLAlchemy repositories
(lookups, grouped counts, the guarded message link, column widths and the
email uniqueness constraint) without a database.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, AsyncIterator, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy.exc import DataError, IntegrityError

from removals_crm.models import Lead


# ---------------------------------------------------------------------------
# In-memory stand-ins for the repository layer
# ---------------------------------------------------------------------------


class _FakeUnitOfWork:
    """commit / rollback / savepoint bookkeeping shared by the fakes."""

    def __init__(self) -> None:
        self.commits = 0
        self.rollbacks = 0

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        yield


def _check_lengths(values: Dict[str, Any]) -> None:
    """Reject values wider than their ``leads`` column, as Postgres does."""
    for column in Lead.__table__.columns:
        length = getattr(column.type, "length", None)
        value = values.get(column.name)
        if length is not None and isinstance(value, str) and len(value) > length:
            raise DataError(
                "INSERT INTO leads",
                {},
                Exception(f"value too long for {column.name} ({length})"),
            )


class FakeLeadRepository(_FakeUnitOfWork):
    def __init__(self, leads: Optional[List[Any]] = None) -> None:
        super().__init__()
        self.leads: List[Any] = list(leads or [])

    async def get_by_id(self, lead_id: UUID):
        return next((lead for lead in self.leads if lead.id == lead_id), None)

    async def find_by_email(self, email: str):
        if not email or not email.strip():
            return None
        wanted = email.strip().lower()
        return next(
            (lead for lead in self.leads if (lead.email or "").lower() == wanted), None
        )

    async def find_by_phone(self, phone: str):
        if not phone or not phone.strip():
            return None
        return next((lead for lead in self.leads if lead.phone == phone.strip()), None)

    async def create(self, **kwargs: Any):
        _check_lengths(kwargs)
        email = kwargs.get("email") or ""
        if email and any(lead.email == email for lead in self.leads):
            raise IntegrityError(
                "INSERT INTO leads", {}, Exception("duplicate key uq_leads_email")
            )
        lead = make_lead(**kwargs)
        self.leads.append(lead)
        return lead

    async def save(self, lead):
        return lead

    async def count_by_owner_and_status(self, owner_ids, statuses) -> Dict[UUID, int]:
        statuses = set(statuses)
        return {
            owner_id: sum(
                1
                for lead in self.leads
                if lead.assigned_to_id == owner_id and lead.status in statuses
            )
            for owner_id in owner_ids
        }

    async def count_by_owner(self, owner_ids) -> Dict[UUID, int]:
        return {
            owner_id: sum(1 for lead in self.leads if lead.assigned_to_id == owner_id)
            for owner_id in owner_ids
        }

    async def update_status(self, lead, new_status: str) -> None:
        lead.status = new_status


class FakeStaffRepository(_FakeUnitOfWork):
    def __init__(self, staff: Optional[List[Any]] = None) -> None:
        super().__init__()
        self.staff: List[Any] = list(staff or [])

    async def get_by_id(self, staff_id: UUID):
        return next((member for member in self.staff if member.id == staff_id), None)

    async def get_active_staff(self):
        return sorted(
            (member for member in self.staff if member.is_active),
            key=lambda member: (member.name, str(member.id)),
        )


class FakeActivityRepository(_FakeUnitOfWork):
    def __init__(self) -> None:
        super().__init__()
        self.activities: List[SimpleNamespace] = []

    async def create(self, **kwargs: Any):
        kwargs.setdefault("staff_id", None)
        activity = SimpleNamespace(id=uuid4(), **kwargs)
        self.activities.append(activity)
        return activity

    async def list_for_lead(self, lead_id: UUID):
        return [a for a in self.activities if a.lead_id == lead_id]


class FakeMessageRepository(_FakeUnitOfWork):
    def __init__(self, messages: Optional[List[Any]] = None) -> None:
        super().__init__()
        self.messages: List[Any] = list(messages or [])

    def add(self, **kwargs: Any):
        message = make_message(**kwargs)
        self.messages.append(message)
        return message

    async def get_by_id(self, message_id: UUID):
        return next((m for m in self.messages if m.id == message_id), None)

    async def get_unlinked(self, limit: int):
        unlinked = [m for m in self.messages if m.lead_id is None]
        unlinked.sort(key=lambda m: (m.received_at, str(m.id)))
        return unlinked[:limit]

    async def get_unlinked_headers(self):
        return [(m.sender_address, m.subject) for m in self.messages if m.lead_id is None]

    async def count_unlinked(self) -> int:
        return sum(1 for m in self.messages if m.lead_id is None)

    async def link_to_lead(self, message_id: UUID, lead_id: UUID) -> None:
        message = await self.get_by_id(message_id)
        if message is not None and message.lead_id is None:
            message.lead_id = lead_id


# ---------------------------------------------------------------------------
# Record builders
# ---------------------------------------------------------------------------

_BASE_TIME = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def make_lead(**overrides: Any) -> SimpleNamespace:
    """Plain lead record with the same attributes as the ORM model."""
    fields: Dict[str, Any] = {
        "id": uuid4(),
        "assigned_to_id": None,
        "email": "",
        "phone": "",
        "first_name": "Unknown",
        "last_name": "",
        "status": "pending",
        "contact_status": "not_contacted",
        "source": "manual",
        "external_ref": None,
        "move_date": None,
        "from_address": None,
        "from_postcode": None,
        "from_property_type": None,
        "to_address": None,
        "to_postcode": None,
        "to_property_type": None,
        "bedrooms": None,
        "distance_miles": None,
        "packing_required": False,
        "cleaning_required": False,
        "notes": None,
        "created_at": _BASE_TIME,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


def make_staff(name: str, *, is_active: bool = True, staff_id=None) -> SimpleNamespace:
    return SimpleNamespace(id=staff_id or uuid4(), name=name, is_active=is_active)


_message_counter = 0


def make_message(**overrides: Any) -> SimpleNamespace:
    global _message_counter
    _message_counter += 1
    fields: Dict[str, Any] = {
        "id": uuid4(),
        "sender_address": "someone@example.com",
        "subject": "",
        "plain_body": "",
        "html_body": None,
        "received_at": _BASE_TIME + timedelta(minutes=_message_counter),
        "lead_id": None,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)
