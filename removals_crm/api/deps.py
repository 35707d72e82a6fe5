"""API-layer dependency functions.

Re-exports the dependency factories from ``removals_crm.dependencies`` so
that endpoint modules only need to import from ``removals_crm.api.deps``.
"""

from removals_crm.dependencies import (
    # Repository factories
    get_lead_repo,
    get_staff_repo,
    get_activity_repo,
    get_message_repo,
    # Service factories
    get_rule_store,
    get_extractor_registry,
    get_assignment_manager,
    get_ingestion_service,
    get_lead_review_service,
    # Redis
    get_redis_client,
    get_cache_service,
)

__all__ = [
    "get_lead_repo",
    "get_staff_repo",
    "get_activity_repo",
    "get_message_repo",
    "get_rule_store",
    "get_extractor_registry",
    "get_assignment_manager",
    "get_ingestion_service",
    "get_lead_review_service",
    "get_redis_client",
    "get_cache_service",
]
