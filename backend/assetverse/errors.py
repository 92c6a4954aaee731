# Overview: Service-layer exception taxonomy and its HTTP translation.

"""
Errors raised by the service layer.

Each class carries the HTTP status the routes answer with. Routes catch
ServiceError (and validation.ValidationError) and reply with
{"message": str(e)}; anything else is logged and answered with a 500.
"""

from __future__ import annotations

from flask import jsonify


class ServiceError(Exception):
    """Base class for expected, client-facing failures."""
    status_code = 400


class NotFoundError(ServiceError):
    """Referenced user, asset, request, package or membership is absent."""
    status_code = 404


class ForbiddenError(ServiceError):
    """Role or identity mismatch."""
    status_code = 403


class InvalidInputError(ServiceError):
    """Malformed value, missing field or disallowed status transition."""
    status_code = 400


class CapacityError(ServiceError):
    """Business capacity exhausted (stock or seats)."""
    status_code = 400


class OutOfStockError(CapacityError):
    pass


class SeatLimitReachedError(CapacityError):
    pass


class PaymentNotVerifiedError(ServiceError):
    status_code = 400


class UpstreamError(ServiceError):
    """An external collaborator (payment gateway) failed."""
    status_code = 500


def error_response(exc: Exception):
    status = getattr(exc, "status_code", 400)
    return jsonify({"message": str(exc)}), status


def internal_error_response():
    return jsonify({"message": "Internal server error"}), 500
