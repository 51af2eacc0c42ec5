"""Domain errors raised by the occupancy core.

Routers translate these into HTTP responses; see ``main.domain_error_handler``.
"""


class DormStayError(Exception):
    """Base class for every error the core raises."""

    code = "error"
    status_code = 500

    def __init__(self, message: str = "", **context):
        super().__init__(message or self.__class__.__name__)
        self.context = context


class StoreError(DormStayError):
    """The record store could not complete a read or write."""

    code = "store_error"


# ---- Allocation ----

class AllocationError(DormStayError):
    pass


class RoomLookupFailed(AllocationError):
    code = "room_lookup_failed"
    status_code = 404


class OccupancyQueryFailed(AllocationError):
    code = "occupancy_query_failed"


class RoomFull(AllocationError):
    """Expected business rejection: the room has no free bed."""

    code = "room_full"
    status_code = 409


class RoomUnavailable(AllocationError):
    """The room is under maintenance and takes no new admissions."""

    code = "room_unavailable"
    status_code = 409


class TenantCreateFailed(AllocationError):
    code = "tenant_create_failed"


class OccupancyCreateFailed(AllocationError):
    """The tenant row exists but its occupancy row could not be written.

    This is a partial success: ``tenant`` holds the orphaned record so the
    caller can reconcile it.
    """

    code = "occupancy_create_failed"

    def __init__(self, message: str = "", tenant=None, **context):
        super().__init__(message, **context)
        self.tenant = tenant


# ---- Room status ----

class TransitionError(DormStayError):
    pass


class InvalidTransition(TransitionError):
    code = "invalid_transition"
    status_code = 409


class PersistFailed(TransitionError):
    code = "persist_failed"


# ---- Queries and records ----

class QueryError(DormStayError):
    code = "query_error"


class NotFound(DormStayError):
    code = "not_found"
    status_code = 404


class ValidationFailed(DormStayError):
    code = "validation_failed"
    status_code = 400


class DuplicateRoomNumber(DormStayError):
    code = "duplicate_room_number"
    status_code = 409
