from .errors import (
    SchedulingError,
    ValidationError,
    PermissionDenied,
    NotFound,
    CourtUnavailable,
    SlotConflict,
    StoreFailure,
)
from .interval import Interval
from .availability import Availability, Slot, get_available_slots
from .reservation import Payer, reserve, cancel_booking, mark_booking_paid, expire_pending_bookings
from .blocking import create_blocking, release_blocking
from .dashboard import DashboardFilter, compute_dashboard_metrics
