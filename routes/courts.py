from flask import Blueprint, request, jsonify

from models.court import Court
from scheduling.availability import get_available_slots
from scheduling.calendar import parse_date

court_bp = Blueprint("court", __name__, url_prefix="/courts")


def court_json(c: Court) -> dict:
    return {
        "id": c.id,
        "venue_id": c.venue_id,
        "venue": c.venue.name if c.venue else None,
        "name": c.name,
        "price": c.price,
        "open_hour": c.open_hour,
        "close_hour": c.close_hour,
        "is_active": c.is_active,
    }


@court_bp.get("")
def list_courts():
    venue_id = request.args.get("venue_id", type=int)
    q = Court.query.filter(Court.is_active.is_(True))
    if venue_id:
        q = q.filter(Court.venue_id == venue_id)
    rows = q.order_by(Court.venue_id.asc(), Court.name.asc()).limit(200).all()
    return jsonify([court_json(c) for c in rows]), 200


@court_bp.get("/<int:court_id>/available-slots")
def available_slots(court_id: int):
    # CourtUnavailable and ValidationError are rendered by the app error handler
    day = parse_date(request.args.get("date"))
    availability = get_available_slots(court_id, day)
    return jsonify(availability.to_dict()), 200
