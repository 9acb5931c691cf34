class SchedulingError(Exception):
    """Base class for every failure the scheduling core reports to its callers."""

    code = "scheduling_error"
    http_status = 400
    retryable = False
    default_message = "Scheduling request failed"

    def __init__(self, message: str = None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        out = {"error": self.message, "code": self.code, "retryable": self.retryable}
        if self.details:
            out["details"] = self.details
        return out


class ValidationError(SchedulingError):
    code = "validation_error"
    default_message = "Invalid request"


class PermissionDenied(SchedulingError):
    code = "forbidden"
    http_status = 403
    default_message = "Forbidden"


class NotFound(SchedulingError):
    code = "not_found"
    http_status = 404
    default_message = "Not found"


class CourtUnavailable(SchedulingError):
    """The court does not exist or is not bookable. Distinct from a fully booked day."""

    code = "court_unavailable"
    http_status = 404
    default_message = "Court unavailable"


class SlotConflict(SchedulingError):
    """The requested range overlaps an active booking or blocking. Re-query and resubmit."""

    code = "slot_conflict"
    http_status = 409
    retryable = True
    default_message = "Requested time is no longer available"

    def __init__(self, message: str = None, hours=None, **details):
        if hours:
            details["hours"] = sorted(hours)
        super().__init__(message, **details)
        self.hours = sorted(hours) if hours else []


class StoreFailure(SchedulingError):
    code = "store_failure"
    http_status = 503
    retryable = True
    default_message = "Storage temporarily unavailable, please retry"
