import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the app as padelslot.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "padelslot.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session cookie issued by the login service
    AUTH_COOKIE_NAME = "padelslot_session"

    # 8 hours session lifetime
    SESSION_LIFETIME_SECONDS = 8 * 60 * 60

    # Idle timeout: 20 minutes
    IDLE_TIMEOUT_SECONDS = 20 * 60

    # Venue-local calendar used when a venue has no timezone of its own
    VENUE_DEFAULT_TIMEZONE = os.getenv("VENUE_DEFAULT_TIMEZONE", "Asia/Jakarta")

    # Unpaid PENDING bookings stop holding their slots after this window
    PENDING_BOOKING_EXPIRY_MINUTES = int(os.getenv("PENDING_BOOKING_EXPIRY_MINUTES", "15"))

    # Cancellation policy (players; staff may cancel any time)
    CANCEL_CUTOFF_HOURS = 12

    # Longest admin blocking, in days
    MAX_BLOCKING_DAYS = 366

    # Most court bookings one order may reserve together
    MAX_ORDER_BOOKINGS = 10

    # Reservation rate limit per client IP (shared counter in the database)
    BOOKING_RATE_WINDOW_SECONDS = 60
    BOOKING_RATE_MAX_REQUESTS = int(os.getenv("BOOKING_RATE_MAX_REQUESTS", "20"))

    # Payments (Stripe Checkout)
    BOOKING_CURRENCY = os.getenv("BOOKING_CURRENCY", "IDR")
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    STRIPE_SUCCESS_URL = os.getenv("STRIPE_SUCCESS_URL")
    STRIPE_CANCEL_URL = os.getenv("STRIPE_CANCEL_URL")
    STRIPE_AMOUNT_MULTIPLIER = int(os.getenv("STRIPE_AMOUNT_MULTIPLIER", "100"))

    # Email (SMTP)
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL")
    SMTP_FROM_NAME = os.getenv("SMTP_FROM_NAME", "PadelSlot")
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

    # Basic app settings
    DEBUG = False
    SEED_ROLES_ON_STARTUP = True
