from functools import wraps
from flask import g, jsonify
from security.rbac import ActorContext, Role
from security.session import get_session_from_request
from models.user import User

def load_current_user():
    sess = get_session_from_request()
    if not sess:
        g.user = None
        g.session = None
        return
    g.session = sess
    user = User.query.get(sess.user_id)
    g.user = user if user and user.is_active else None

def current_actor():
    """ActorContext for the signed-in user, or None for guests."""
    user = getattr(g, "user", None)
    if user is None:
        return None
    return ActorContext.from_user(user)

def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "user", None) is None:
            return jsonify(error="Authentication required"), 401
        return fn(*args, **kwargs)
    return wrapper

def managed_venue_ids(actor):
    """Venue ids an actor may see in admin listings; None means every venue."""
    if actor.role >= Role.ADMIN:
        return None
    return sorted(actor.venue_ids)
