# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .extensions import db
from .models import User

# Set by the upstream identity gateway after it has authenticated the caller
USER_HEADER = "X-User-Id"


def require_user(f):
    """
    Resolve the requesting staff member.

    Authentication happens upstream; the gateway forwards the authenticated
    user's id in the X-User-Id header. Sets g.current_user.

    Returns 401 if:
    - No X-User-Id header, or it is not an integer
    - No such user
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        raw = request.headers.get(USER_HEADER, "").strip()
        if not raw:
            return jsonify({"error": "Authentication required"}), 401

        try:
            user_id = int(raw)
        except ValueError:
            return jsonify({"error": "Invalid user identity"}), 401

        user = db.session.get(User, user_id)
        if user is None or not user.is_active:
            return jsonify({"error": "Invalid or inactive user"}), 401

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function
