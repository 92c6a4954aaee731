# backend/assetverse/routes/requests.py
"""
Asset Request API Routes

WHY: Employees ask for assets; HR approves, denies or assigns directly.

SECURITY:
- Submission: the body email must be the authenticated caller
- Decisions and direct assignment: HR only, and only for their own
  requests/assets (checked in request_service)
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import ServiceError, error_response, internal_error_response
from ..validation import ValidationError, require_positive_int, require_json_object, normalize_email
from ..decorators import require_auth, require_hr, require_user
from ..services import request_service


requests_bp = Blueprint("requests", __name__)


def _optional_str(payload: dict, key: str, max_len: int = 255) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    value = value.strip()
    if len(value) > max_len:
        raise ValidationError(f"{key} exceeds max length {max_len}")
    return value or None


# =============================================================================
# EMPLOYEE SIDE
# =============================================================================

@requests_bp.post("/requests")
@require_auth
def submit_request_route():
    """
    Request one unit of an asset.

    Request body:
    {
        "asset_id": 12,
        "email": "employee@company.com",
        "name": "Jane Doe",          (optional)
        "asset_name": "Laptop",      (optional)
        "note": "New joiner"         (optional)
    }

    Returns:
        201: Request created (status pending)
        400: Invalid input or asset out of stock
        403: email is not the authenticated caller
        404: User or asset not found
    """
    try:
        payload = require_json_object(request.get_json(silent=True))
        asset_id = require_positive_int(payload, "asset_id")
        email = normalize_email(payload.get("email", g.identity_email))
        req = request_service.submit_request(
            asset_id=asset_id,
            requester_email=email,
            requester_name=_optional_str(payload, "name"),
            asset_name=_optional_str(payload, "asset_name"),
            note=_optional_str(payload, "note", 500),
            authenticated_email=g.identity_email,
        )
        return jsonify({"request": req.to_dict(), "inserted_id": req.id}), 201
    except (ServiceError, ValidationError) as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to submit request")
        return internal_error_response()


@requests_bp.get("/requests/mine")
@require_auth
@require_user
def list_my_requests_route():
    """
    The caller's own requests.

    Query params: status, type, search (asset name), page, per_page
    """
    try:
        result = request_service.list_employee_requests(
            g.identity_email,
            status=request.args.get("status") or None,
            asset_type=request.args.get("type") or None,
            search=request.args.get("search"),
            page=request.args.get("page", type=int),
            per_page=request.args.get("per_page", type=int),
        )
        return jsonify(result), 200
    except ServiceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list own requests")
        return internal_error_response()


# =============================================================================
# HR SIDE
# =============================================================================

@requests_bp.get("/requests")
@require_auth
@require_hr
def list_requests_route():
    """
    Requests addressed to the calling HR.

    Query params: status, search (requester name/email), page, per_page
    """
    try:
        result = request_service.list_hr_requests(
            g.identity_email,
            status=request.args.get("status") or None,
            search=request.args.get("search"),
            page=request.args.get("page", type=int),
            per_page=request.args.get("per_page", type=int),
        )
        return jsonify(result), 200
    except ServiceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list requests")
        return internal_error_response()


@requests_bp.patch("/requests/<int:request_id>/approve")
@require_auth
@require_hr
def approve_request_route(request_id: int):
    """
    Approve a pending request.

    Returns:
        200: {"message", "request", "modified_count"}
        400: Not pending, asset out of stock, or employee limit reached
        403: Request belongs to another HR
        404: Request or asset not found
    """
    try:
        result = request_service.approve_request(request_id, hr_email=g.identity_email)
        return jsonify({"message": "Request Approved Successfully", **result}), 200
    except ServiceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to approve request")
        return internal_error_response()


@requests_bp.patch("/requests/<int:request_id>/status")
@require_auth
@require_hr
def decide_request_route(request_id: int):
    """
    Approve or deny a pending request.

    Request body: {"status": "approved" | "denied"}
    """
    try:
        payload = require_json_object(request.get_json(silent=True))
        result = request_service.decide_request(
            request_id, payload.get("status"), hr_email=g.identity_email
        )
        return jsonify(result), 200
    except (ServiceError, ValidationError) as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update request status")
        return internal_error_response()


@requests_bp.post("/assignments")
@require_auth
@require_hr
def assign_asset_route():
    """
    Assign an asset straight to an employee.

    Request body:
    {
        "asset_id": 12,
        "employee_email": "employee@company.com",
        "employee_name": "Jane Doe",  (optional)
        "note": "..."                 (optional)
    }

    Applies the same employee-limit rule as approval.
    """
    try:
        payload = require_json_object(request.get_json(silent=True))
        req = request_service.assign_directly(
            asset_id=require_positive_int(payload, "asset_id"),
            employee_email=normalize_email(payload.get("employee_email"), field="employee_email"),
            employee_name=_optional_str(payload, "employee_name"),
            note=_optional_str(payload, "note", 500),
            hr_email=g.identity_email,
        )
        return jsonify({"request": req.to_dict(), "inserted_id": req.id}), 201
    except (ServiceError, ValidationError) as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to assign asset")
        return internal_error_response()
