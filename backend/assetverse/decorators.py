# Overview: Request decorators for API routes (identity gate and role gate).

from functools import wraps
from flask import request, jsonify, g, current_app

from .services import identity_service
from .services.identity_service import AuthenticationError


def _is_authenticated() -> bool:
    return hasattr(g, 'identity_email')


def require_auth(f):
    """
    Require a verified identity-provider token.

    Sets the following Flask g attributes:
    - g.identity_email: The verified email from the token
    - g.current_user: The matching User row, or None before signup

    Returns 401 if:
    - No Authorization header
    - Invalid, expired or unverified token
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"message": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1].strip()

        try:
            identity = identity_service.resolve_identity(token)
        except AuthenticationError as e:
            current_app.logger.warning("Rejected bearer token on %s: %s", request.path, e)
            return jsonify({"message": "Unauthorized access"}), 401

        g.identity_email = identity.email
        g.current_user = identity.user

        return f(*args, **kwargs)

    return decorated_function


def require_user(f):
    """Require that the authenticated caller has a User row."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return jsonify({"message": "Authentication required"}), 401
        if g.current_user is None:
            return jsonify({"message": "User not found"}), 404
        return f(*args, **kwargs)
    return decorated_function


def require_hr(f):
    """
    Require the authenticated caller to be an HR manager.

    Must be stacked under @require_auth.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return jsonify({"message": "Authentication required"}), 401
        if g.current_user is None:
            return jsonify({"message": "User not found"}), 404
        if not g.current_user.is_hr:
            return jsonify({"message": "Forbidden: HR access required"}), 403
        return f(*args, **kwargs)
    return decorated_function
