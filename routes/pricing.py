from flask import Blueprint, jsonify, g, request

from models import db
from models.court import Court
from models.dynamic_price import DynamicPrice
from scheduling.errors import NotFound
from scheduling.pricing import validate_rule_fields, validate_rule_payload
from scheduling.reservation import require_venue_scope
from security.rbac import Role, require_role
from utils.audit import log_event
from utils.auth_context import current_actor

pricing_bp = Blueprint("pricing", __name__, url_prefix="/admin")


def price_json(p: DynamicPrice) -> dict:
    return {
        "id": p.id,
        "court_id": p.court_id,
        "date": p.date.isoformat() if p.date else None,
        "day_of_week": p.day_of_week,
        "start_hour": p.start_hour,
        "end_hour": p.end_hour,
        "price": p.price,
        "is_active": p.is_active,
        "created_at": p.created_at.isoformat() if p.created_at else None,
    }


def _court_in_scope(court_id: int) -> Court:
    court = Court.query.get(court_id)
    if not court:
        raise NotFound("Court not found")
    require_venue_scope(current_actor(), court.venue_id, "managing prices")
    return court


def _rule_in_scope(price_id: int) -> DynamicPrice:
    rule = DynamicPrice.query.get(price_id)
    if not rule:
        raise NotFound("Dynamic price not found")
    _court_in_scope(rule.court_id)
    return rule


@pricing_bp.get("/courts/<int:court_id>/dynamic-prices")
@require_role(Role.STAFF)
def list_prices(court_id: int):
    _court_in_scope(court_id)
    rows = (
        DynamicPrice.query
        .filter_by(court_id=court_id)
        .order_by(DynamicPrice.created_at.desc())
        .all()
    )
    return jsonify([price_json(p) for p in rows]), 200


@pricing_bp.post("/courts/<int:court_id>/dynamic-prices")
@require_role(Role.STAFF)
def create_price(court_id: int):
    court = _court_in_scope(court_id)
    fields = validate_rule_payload(request.get_json(silent=True) or {})

    rule = DynamicPrice(court_id=court.id, **fields)
    db.session.add(rule)
    db.session.commit()

    log_event("DYNAMIC_PRICE_CREATE", user_id=g.user.id, entity="dynamic_price", entity_id=rule.id,
              metadata={"court_id": court.id})
    return jsonify(price_json(rule)), 201


@pricing_bp.patch("/dynamic-prices/<int:price_id>")
@require_role(Role.STAFF)
def update_price(price_id: int):
    rule = _rule_in_scope(price_id)
    changes = validate_rule_payload(request.get_json(silent=True) or {}, partial=True)

    # switching selector: setting one of date/day_of_week clears the other
    if changes.get("date"):
        changes.setdefault("day_of_week", None)
    if changes.get("day_of_week"):
        changes.setdefault("date", None)

    merged = {
        "start_hour": changes.get("start_hour", rule.start_hour),
        "end_hour": changes.get("end_hour", rule.end_hour),
        "date": changes.get("date", rule.date),
        "day_of_week": changes.get("day_of_week", rule.day_of_week),
    }
    validate_rule_fields(merged)

    for key, value in changes.items():
        setattr(rule, key, value)
    db.session.commit()

    log_event("DYNAMIC_PRICE_UPDATE", user_id=g.user.id, entity="dynamic_price", entity_id=rule.id,
              metadata={k: str(v) for k, v in changes.items()})
    return jsonify(price_json(rule)), 200


@pricing_bp.delete("/dynamic-prices/<int:price_id>")
@require_role(Role.STAFF)
def delete_price(price_id: int):
    rule = _rule_in_scope(price_id)
    db.session.delete(rule)
    db.session.commit()

    log_event("DYNAMIC_PRICE_DELETE", user_id=g.user.id, entity="dynamic_price", entity_id=price_id)
    return jsonify(message="Dynamic price deleted"), 200
