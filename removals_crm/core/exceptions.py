class RemovalsCrmError(Exception):
    """Base class for all domain exceptions raised by this service.

    Every custom exception in this module inherits from here so that a
    single ``except RemovalsCrmError`` clause can catch any domain error.
    """

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(detail)


class LeadNotFoundError(RemovalsCrmError):
    """Raised when a requested lead does not exist."""

    def __init__(self, detail: str = "Lead not found"):
        super().__init__(detail)


class StaffNotFoundError(RemovalsCrmError):
    """Raised when a requested staff member does not exist."""

    def __init__(self, detail: str = "Staff member not found"):
        super().__init__(detail)


class AssignmentRuleNotFoundError(RemovalsCrmError):
    """Raised when an assignment rule id is unknown."""

    def __init__(self, detail: str = "Assignment rule not found"):
        super().__init__(detail)


class InvalidStatusTransitionError(RemovalsCrmError):
    """Raised when an invalid status transition is attempted."""

    def __init__(self, detail: str = "Invalid status transition"):
        super().__init__(detail)


class IngestionInProgressError(RemovalsCrmError):
    """Raised when another ingestion sweep already holds the run lock.

    This is the only failure that stops a batch before it starts; every
    per-message problem is reported inside the ingestion summary instead.
    """

    def __init__(self, detail: str = "Another ingestion run is in progress"):
        super().__init__(detail)
