from flask import Blueprint, jsonify, g, current_app

from assetverse.decorators import require_auth, require_hr
from assetverse.errors import internal_error_response
from assetverse.services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/reports")


@reports_bp.get("/asset-types")
@require_auth
@require_hr
def asset_type_report():
    try:
        return jsonify({"items": reporting_service.asset_type_distribution(g.identity_email)}), 200
    except Exception:
        current_app.logger.exception("Failed to build asset type report")
        return internal_error_response()


@reports_bp.get("/top-requested")
@require_auth
@require_hr
def top_requested_report():
    try:
        return jsonify({"items": reporting_service.top_requested_assets(g.identity_email)}), 200
    except Exception:
        current_app.logger.exception("Failed to build top requested report")
        return internal_error_response()
