import json
from flask import has_request_context, request

from models import db
from models.audit_log import AuditLog


def _request_origin():
    # CLI jobs (expiry sweep) have no request to attribute
    if not has_request_context():
        return None, None
    ip = request.headers.get("X-Forwarded-For", request.remote_addr)
    agent = (request.headers.get("User-Agent") or "")[:255] or None
    return ip, agent


def log_event(action: str, user_id=None, entity=None, entity_id=None, metadata=None):
    """Appends one AuditLog row and commits it."""
    ip, agent = _request_origin()
    db.session.add(AuditLog(
        user_id=user_id,
        action=action,
        entity=entity,
        entity_id=None if entity_id is None else str(entity_id),
        ip=ip,
        user_agent=agent,
        # dates and enums in booking metadata are stored as text
        metadata_json=json.dumps(metadata, default=str, sort_keys=True) if metadata else None,
    ))
    db.session.commit()
