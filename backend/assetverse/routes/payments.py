# backend/assetverse/routes/payments.py
"""
Package & Payment API Routes

WHY: HR accounts raise their employee limit by buying a package.

DESIGN:
- List packages (public)
- Open a provider checkout session for a package
- Confirm a paid session (idempotent per session id)
- Payment history grouped by package

SECURITY:
- Checkout, confirmation and history require an HR caller
- Confirmation refuses sessions paid by another account
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import ServiceError, error_response, internal_error_response
from ..validation import ValidationError, require_positive_int, require_json_object
from ..decorators import require_auth, require_hr
from ..services import payment_service


payments_bp = Blueprint("payments", __name__)


@payments_bp.get("/packages")
def list_packages_route():
    try:
        packages = payment_service.list_packages()
        return jsonify([p.to_dict() for p in packages]), 200
    except Exception:
        current_app.logger.exception("Failed to list packages")
        return internal_error_response()


@payments_bp.post("/payments/checkout")
@require_auth
@require_hr
def create_checkout_route():
    """
    Open a checkout session.

    Request body: {"package_id": 2}

    Returns:
        201: {"session_id": ..., "url": ...}
        400: Invalid input or package does not raise the limit
        404: Package not found
        500: Payment provider failure
    """
    try:
        payload = require_json_object(request.get_json(silent=True))
        result = payment_service.create_checkout(
            package_id=require_positive_int(payload, "package_id"),
            hr=g.current_user,
        )
        return jsonify(result), 201
    except (ServiceError, ValidationError) as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create checkout session")
        return internal_error_response()


@payments_bp.post("/payments/confirm")
@require_auth
@require_hr
def confirm_payment_route():
    """
    Confirm a paid checkout session.

    Request body: {"session_id": "cs_test_..."}

    Returns:
        200: {"status": "processed" | "already_processed", "payment": ...}
        400: Payment not verified
        403: Session paid by another account
    """
    try:
        payload = require_json_object(request.get_json(silent=True))
        result = payment_service.confirm_payment(
            payload.get("session_id"), payer_email=g.identity_email
        )
        return jsonify(result), 200
    except (ServiceError, ValidationError) as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to confirm payment")
        return internal_error_response()


@payments_bp.get("/payments/history")
@require_auth
@require_hr
def payment_history_route():
    try:
        items = payment_service.payment_history(g.identity_email)
        return jsonify({"items": items, "count": len(items)}), 200
    except Exception:
        current_app.logger.exception("Failed to load payment history")
        return internal_error_response()
