# backend/assetverse/routes/assets.py
"""
Asset routes.

SECURITY: All routes require authentication.
- Create, update and delete require an HR caller; update/delete also
  require ownership (checked in the service layer)
- Listing is open to any authenticated caller
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..models import Asset
from ..errors import ServiceError, error_response, internal_error_response
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    enforce_rules_asset,
    require_json_object,
)
from ..decorators import require_auth, require_hr
from ..services import asset_service


assets_bp = Blueprint("assets", __name__, url_prefix="/assets")

ASSET_POLICY = ModelValidationPolicy(
    writable_fields={"product_name", "product_type", "product_image", "quantity"},
    required_on_create={"product_name", "product_type", "quantity"},
)


def _available_arg():
    raw = request.args.get("available")
    if raw is None or raw == "":
        return None
    return raw.lower() in ("1", "true", "yes")


def _list_args() -> dict:
    return {
        "search": request.args.get("search"),
        "product_type": request.args.get("type"),
        "available": _available_arg(),
        "page": request.args.get("page", type=int),
        "per_page": request.args.get("per_page", type=int),
    }


@assets_bp.post("")
@require_auth
def create_asset_route():
    """
    Create an asset owned by the caller.

    Request body:
    {
        "product_name": "Dell Latitude 5440",
        "product_type": "Returnable",
        "product_image": "https://...",  (optional)
        "quantity": 10
    }

    Returns:
        201: Asset created
        400: Invalid input
        403: Caller is not HR
        404: Caller has not signed up
    """
    try:
        payload = require_json_object(request.get_json(silent=True))
        # Legacy clients send hrEmail; ownership always comes from the token
        payload.pop("hr_email", None)
        patch = validate_payload(model=Asset, payload=payload, policy=ASSET_POLICY, partial=False)
        enforce_rules_asset(patch)
        asset = asset_service.create_asset(patch=patch, hr_email=g.identity_email)
        return jsonify({"asset": asset.to_dict(), "inserted_id": asset.id}), 201
    except (ServiceError, ValidationError) as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create asset")
        return internal_error_response()


@assets_bp.get("")
@require_auth
def list_assets_route():
    """
    List all assets.

    Query params:
    - search: case-insensitive product name match
    - type: exact product type
    - available: true -> in stock only, false -> out of stock only
    - page / per_page: pagination (default 20, max 100)
    """
    try:
        return jsonify(asset_service.list_assets(**_list_args())), 200
    except Exception:
        current_app.logger.exception("Failed to list assets")
        return internal_error_response()


@assets_bp.get("/mine")
@require_auth
@require_hr
def list_my_assets_route():
    """List the caller's own assets (same query params as /assets)."""
    try:
        return jsonify(asset_service.list_hr_assets(g.identity_email, **_list_args())), 200
    except Exception:
        current_app.logger.exception("Failed to list HR assets")
        return internal_error_response()


@assets_bp.get("/<int:asset_id>")
@require_auth
def get_asset_route(asset_id: int):
    try:
        return jsonify({"asset": asset_service.get_asset(asset_id).to_dict()}), 200
    except ServiceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load asset")
        return internal_error_response()


@assets_bp.patch("/<int:asset_id>")
@require_auth
@require_hr
def update_asset_route(asset_id: int):
    try:
        payload = require_json_object(request.get_json(silent=True))
        patch = validate_payload(model=Asset, payload=payload, policy=ASSET_POLICY, partial=True)
        enforce_rules_asset(patch)
        asset = asset_service.update_asset(asset_id, patch=patch, hr_email=g.identity_email)
        return jsonify({"asset": asset.to_dict()}), 200
    except (ServiceError, ValidationError) as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update asset")
        return internal_error_response()


@assets_bp.delete("/<int:asset_id>")
@require_auth
@require_hr
def delete_asset_route(asset_id: int):
    try:
        return jsonify(asset_service.delete_asset(asset_id, hr_email=g.identity_email)), 200
    except ServiceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete asset")
        return internal_error_response()
