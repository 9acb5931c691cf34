import logging

from flask import Flask, jsonify
from config import Config
from routes import health_bp, court_bp, booking_bp, order_bp, admin_bp, blocking_bp, pricing_bp

from models import db
from flask_migrate import Migrate
from sqlalchemy.exc import SQLAlchemyError
from scheduling.errors import SchedulingError
from utils.seed import seed_roles
from utils.auth_context import load_current_user


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(logging.DEBUG if app.config.get("DEBUG") else logging.INFO)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(court_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(order_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(blocking_bp)
    app.register_blueprint(pricing_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    # Seed default roles at startup (safe & idempotent)
    if app.config.get("SEED_ROLES_ON_STARTUP"):
        with app.app_context():
            seed_roles()

    @app.before_request
    def _load_user():
        load_current_user()

    @app.errorhandler(SchedulingError)
    def _scheduling_error(exc):
        return jsonify(**exc.to_dict()), exc.http_status

    @app.errorhandler(SQLAlchemyError)
    def _store_error(exc):
        db.session.rollback()
        app.logger.exception("Unhandled store error")
        return jsonify(error="Storage temporarily unavailable, please retry", code="store_failure", retryable=True), 503

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app

#-------------------------
import click
from models.user import User, Role as RoleRow
from scheduling.reservation import expire_pending_bookings
from security.rbac import Role
from utils.audit import log_event

def register_cli(app):
    @app.cli.command("make-admin")
    @click.argument("email")
    def make_admin(email):
        """Promote a user to ADMIN by email (bootstrap)."""
        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            click.echo("User not found")
            return

        admin_role = RoleRow.query.filter_by(name=Role.ADMIN.name).first()
        if not admin_role:
            admin_role = RoleRow(name=Role.ADMIN.name)
            db.session.add(admin_role)
            db.session.commit()

        if admin_role not in user.roles:
            user.roles.append(admin_role)
            db.session.commit()

        click.echo(f"{user.email} promoted to ADMIN")

    @app.cli.command("seed-roles")
    def seed_roles_command():
        """Create the USER/STAFF/ADMIN role rows."""
        seed_roles()
        click.echo("Roles seeded")

    @app.cli.command("expire-bookings")
    def expire_bookings_command():
        """Expire unpaid PENDING bookings past their window and free their slots (run from cron)."""
        count = expire_pending_bookings()
        if count:
            log_event("BOOKING_EXPIRE_SWEEP", metadata={"expired": count})
        click.echo(f"Expired {count} booking(s)")

#-------------------------


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
