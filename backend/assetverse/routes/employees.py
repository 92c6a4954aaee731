# backend/assetverse/routes/employees.py
"""
Roster routes: the HR's team, an employee's companies, and offboarding.
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..errors import ServiceError, error_response, internal_error_response
from ..validation import ValidationError, normalize_email
from ..decorators import require_auth, require_hr, require_user
from ..services import employee_service, request_service


employees_bp = Blueprint("employees", __name__, url_prefix="/employees")


@employees_bp.get("")
@require_auth
@require_hr
def list_employees_route():
    """
    The caller's roster with per-employee asset counts.

    Returns items plus current_count and employee_limit.
    """
    try:
        result = employee_service.list_roster(
            g.identity_email,
            page=request.args.get("page", type=int),
            per_page=request.args.get("per_page", type=int),
        )
        return jsonify(result), 200
    except Exception:
        current_app.logger.exception("Failed to list employees")
        return internal_error_response()


@employees_bp.get("/affiliations")
@require_auth
@require_user
def list_affiliations_route():
    """Companies the calling employee currently belongs to."""
    try:
        items = employee_service.list_affiliations(g.identity_email)
        return jsonify({"items": items, "count": len(items)}), 200
    except Exception:
        current_app.logger.exception("Failed to list affiliations")
        return internal_error_response()


@employees_bp.delete("/<employee_email>")
@require_auth
@require_hr
def remove_employee_route(employee_email: str):
    """
    Remove an employee from the caller's roster.

    Returns every asset they hold to inventory and rejects all their
    requests under this HR.
    """
    try:
        result = request_service.remove_employee(
            hr_email=g.identity_email,
            employee_email=normalize_email(employee_email),
        )
        return jsonify({"message": "Employee removed", **result}), 200
    except (ServiceError, ValidationError) as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to remove employee")
        return internal_error_response()
