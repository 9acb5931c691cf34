from flask import Blueprint, jsonify, g, request

from models.blocking import Blocking
from models.court import Court
from scheduling.blocking import create_blocking, release_blocking
from scheduling.calendar import parse_date
from security.rbac import Role, require_role
from utils.audit import log_event
from utils.auth_context import current_actor, managed_venue_ids

blocking_bp = Blueprint("blocking", __name__, url_prefix="/admin/blockings")


def blocking_json(b: Blocking) -> dict:
    return {
        "id": b.id,
        "court_id": b.court_id,
        "date_from": b.date_from.isoformat(),
        "date_to": b.date_to.isoformat(),
        "start_hour": b.start_hour,
        "end_hour": b.end_hour,
        "reason": b.reason,
        "is_active": b.is_active,
        "created_by": b.created_by,
        "created_at": b.created_at.isoformat() if b.created_at else None,
        "released_at": b.released_at.isoformat() if b.released_at else None,
    }


@blocking_bp.post("")
@require_role(Role.STAFF)
def create():
    data = request.get_json(silent=True) or {}
    blocking = create_blocking(
        data.get("court_id"),
        data.get("date_from") or data.get("date"),
        data.get("date_to"),
        data.get("start_hour"),
        data.get("end_hour"),
        data.get("reason"),
        current_actor(),
    )
    log_event("BLOCKING_CREATE", user_id=g.user.id, entity="blocking", entity_id=blocking.id,
              metadata={"court_id": blocking.court_id, "date_from": blocking.date_from.isoformat(),
                        "date_to": blocking.date_to.isoformat(), "hours": [blocking.start_hour, blocking.end_hour]})
    return jsonify(blocking_json(blocking)), 201


@blocking_bp.get("")
@require_role(Role.STAFF)
def list_blockings():
    q = Blocking.query.join(Court, Blocking.court_id == Court.id).filter(Blocking.is_active.is_(True))

    venue_ids = managed_venue_ids(current_actor())
    if venue_ids is not None:
        q = q.filter(Court.venue_id.in_(venue_ids))

    court_id = request.args.get("court_id", type=int)
    if court_id:
        q = q.filter(Blocking.court_id == court_id)
    if request.args.get("date"):
        day = parse_date(request.args.get("date"))
        q = q.filter(Blocking.covers_date(day))

    rows = q.order_by(Blocking.date_from.asc(), Blocking.start_hour.asc()).limit(200).all()
    return jsonify([blocking_json(b) for b in rows]), 200


@blocking_bp.post("/<int:blocking_id>/release")
@require_role(Role.STAFF)
def release(blocking_id: int):
    blocking = release_blocking(blocking_id, current_actor())
    log_event("BLOCKING_RELEASE", user_id=g.user.id, entity="blocking", entity_id=blocking.id)
    return jsonify(message="Blocking released", blocking=blocking_json(blocking)), 200
