from .health import health_bp
from .courts import court_bp
from .booking import booking_bp
from .admin import admin_bp
from .blockings import blocking_bp
from .pricing import pricing_bp
from .orders import order_bp
