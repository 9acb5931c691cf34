from .db import db
from .user import User, Role, user_roles, user_venues
from .audit_log import AuditLog
from .session import Session
from .rate_limit import RateLimitCounter
from .venue import Venue
from .court import Court
from .booking import Booking
from .blocking import Blocking
from .dynamic_price import DynamicPrice
from .slot_claim import SlotClaim
from .payment import Payment
from .operating_hours import CourtOperatingHours
from .order import Order
