# backend/assetverse/routes/users.py
"""
User account routes: signup, role lookup and the caller's own profile.
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..models import User
from ..errors import ServiceError, error_response, internal_error_response
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    enforce_rules_user,
    normalize_email,
    require_json_object,
)
from ..decorators import require_auth, require_user
from ..services import user_service


users_bp = Blueprint("users", __name__, url_prefix="/users")

USER_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "role", "photo_url", "date_of_birth", "company_name", "company_logo"},
    required_on_create={"name"},
)

PROFILE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "photo_url", "date_of_birth", "company_name", "company_logo"},
)


@users_bp.post("")
@require_auth
def create_user_route():
    """
    Register the authenticated caller.

    Request body:
    {
        "email": "hr@company.com",    (must match the token)
        "name": "Alex Morgan",
        "role": "hr" | "employee",    (default employee)
        "company_name": "Acme",       (required for hr)
        "company_logo": "https://...",
        "photo_url": "https://...",
        "date_of_birth": "1990-04-01"
    }

    Returns:
        201: User created
        200: {"message": "User already exists", "inserted_id": null}
        400: Invalid input
        403: email does not match the token
    """
    try:
        payload = require_json_object(request.get_json(silent=True))
        email = normalize_email(payload.pop("email", g.identity_email))
        patch = validate_payload(model=User, payload=payload, policy=USER_CREATE_POLICY, partial=False)
        enforce_rules_user(patch, creating=True)
        user, created = user_service.create_user(
            patch=patch, email=email, authenticated_email=g.identity_email
        )
        if not created:
            return jsonify({"message": "User already exists", "inserted_id": None}), 200
        return jsonify({"user": user.to_dict(), "inserted_id": user.id}), 201
    except (ServiceError, ValidationError) as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create user")
        return internal_error_response()


@users_bp.get("/role/<email>")
@require_auth
def get_role_route(email: str):
    try:
        return jsonify({"role": user_service.get_role(email.strip().lower())}), 200
    except ServiceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to retrieve role")
        return jsonify({"message": "Error retrieving role"}), 500


@users_bp.get("/me")
@require_auth
@require_user
def get_profile_route():
    return jsonify({"user": g.current_user.to_dict()}), 200


@users_bp.patch("/me")
@require_auth
@require_user
def update_profile_route():
    """Update the caller's profile. Role and employee limit are not writable."""
    try:
        payload = require_json_object(request.get_json(silent=True))
        patch = validate_payload(model=User, payload=payload, policy=PROFILE_POLICY, partial=True)
        enforce_rules_user(patch, creating=False)
        user = user_service.update_profile(g.current_user, patch)
        return jsonify({"user": user.to_dict(), "modified_count": 1 if patch else 0}), 200
    except (ServiceError, ValidationError) as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update profile")
        return internal_error_response()
