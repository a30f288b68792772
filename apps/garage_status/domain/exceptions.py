"""
Garage Status Errors

Every failure of the status engine is one of these. The API layer turns
them into the response envelope; nothing here is swallowed or replaced by
a default status.
"""

from typing import Iterable


class GarageStatusError(Exception):
    """Base class for status engine errors"""

    code = 'garage_status_error'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(GarageStatusError):
    """Malformed or out-of-range input"""

    code = 'validation_error'


class InvalidSchedule(ValidationError):
    """Weekly schedule rejected"""

    code = 'invalid_schedule'


class InvalidOverrideWindow(ValidationError):
    """Override expiry is not in the future"""

    code = 'invalid_override_window'


class ActiveBookingsConflict(GarageStatusError):
    """Closing a garage is blocked by upcoming or active bookings"""

    code = 'active_bookings_conflict'

    def __init__(self, count: int):
        self.count = count
        noun = 'booking' if count == 1 else 'bookings'
        super().__init__(f"Cannot close: {count} active {noun}; use Force Close")


class NotFound(GarageStatusError):
    """
    Status or schedule rows are missing for a garage

    Rows are seeded when the garage is created, so this points at an
    initialization defect rather than a normal runtime state.
    """

    code = 'not_found'

    def __init__(self, garage_ids: Iterable[int], what: str = 'status rows'):
        self.garage_ids = sorted(garage_ids)
        ids = ', '.join(str(garage_id) for garage_id in self.garage_ids)
        super().__init__(f"Garage {what} not initialized for garage(s): {ids}")


class ConcurrencyConflict(GarageStatusError):
    """Another admin changed the same garage while this mutation ran"""

    code = 'concurrency_conflict'

    def __init__(self, garage_id: int, message: str = ""):
        self.garage_id = garage_id
        super().__init__(
            message or f"Garage {garage_id} was modified concurrently; reload and try again"
        )


class LockTimeout(ConcurrencyConflict):
    """Waiting for another admin's lock on the garage exceeded the statement timeout"""

    code = 'lock_timeout'

    def __init__(self, garage_id: int):
        super().__init__(garage_id, f"Garage {garage_id} is being changed by another admin; try again shortly")
