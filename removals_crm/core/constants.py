from typing import Dict, FrozenSet, List, Tuple

from removals_crm.schemas.common import LeadSource, LeadStatus

VALID_LEAD_SOURCES: FrozenSet[str] = frozenset(s.value for s in LeadSource)
LEAD_STATUSES: FrozenSet[str] = frozenset(s.value for s in LeadStatus)

SOURCE_CHECK_CLAUSE: str = (
    f"source IN ({', '.join(repr(s.value) for s in LeadSource)})"
)
STATUS_CHECK_CLAUSE: str = (
    f"status IN ({', '.join(repr(s.value) for s in LeadStatus)})"
)

# Statuses this service is allowed to move a lead between.  Anything past
# ``new`` belongs to the sales workflow.
ALLOWED_TRANSITIONS: Dict[str, List[str]] = {
    "pending": ["new", "rejected"],
    "rejected": [],  # terminal
}

# Lead statuses that count towards a staff member's load when the
# round-robin fallback picks an owner.
WORKLOAD_STATUSES: Tuple[str, ...] = ("new",)

MAX_INGESTION_BATCH: int = 100
MAX_ADDRESS_LENGTH: int = 200

DEFAULT_FIRST_NAME: str = "Unknown"

INGESTION_LOCK_KEY: str = "ingestion:run"
