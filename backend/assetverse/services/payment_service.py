# Overview: Service-layer operations for package purchases; encapsulates business logic and database work.

"""
Package Payment Service

WHY: An HR's seat limit (employee_limit) is raised by buying a package
through the external payment provider.

FLOW:
1. create_checkout: open a provider checkout session for a package. The
   session metadata carries package_id, hr_email and employee_limit.
2. The client pays on the provider's page and comes back with the session id.
3. confirm_payment: verify the session is paid, set the HR's seat limit
   and record the Payment, exactly once per session id.

IDEMPOTENCY:
- A Payment row that already exists for the session short-circuits with
  "already processed" before the provider is even called.
- Payment.session_id is UNIQUE; a concurrent duplicate that slips past the
  check fails its insert and is reported as already processed too.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..extensions import db, get_payment_gateway
from ..models import Package, Payment, User
from ..errors import NotFoundError, ForbiddenError, InvalidInputError, PaymentNotVerifiedError
from assetverse.time_utils import utcnow, to_utc_z
from .concurrency import lock_for_update, run_with_retry


ALREADY_PROCESSED = "already_processed"
PROCESSED = "processed"


# =============================================================================
# PACKAGES
# =============================================================================

def list_packages() -> list[Package]:
    return db.session.query(Package).order_by(Package.employee_limit.asc(), Package.id.asc()).all()


def get_package(package_id: int) -> Package:
    package = db.session.query(Package).filter_by(id=package_id).first()
    if not package:
        raise NotFoundError("Package not found")
    return package


# =============================================================================
# CHECKOUT
# =============================================================================

def create_checkout(*, package_id: int, hr: User) -> dict:
    """
    Open a checkout session for a package.

    Returns:
        {"session_id": ..., "url": ...}

    Raises:
        NotFoundError: unknown package
        InvalidInputError: package would not raise the HR's seat limit
        UpstreamError: provider failure
    """
    package = get_package(package_id)
    if package.employee_limit <= hr.employee_limit:
        raise InvalidInputError("Package does not increase your employee limit")

    config = current_app.config
    session = get_payment_gateway().create_checkout_session(
        amount_cents=package.price_cents,
        currency=config["PAYMENT_CURRENCY"],
        product_name=f"{package.name} package",
        customer_email=hr.email,
        metadata={
            "package_id": package.id,
            "hr_email": hr.email,
            "employee_limit": package.employee_limit,
        },
        success_url=config["CHECKOUT_SUCCESS_URL"],
        cancel_url=config["CHECKOUT_CANCEL_URL"],
    )

    current_app.logger.info("Checkout session %s opened by %s for package %s", session.id, hr.email, package.id)
    return {"session_id": session.id, "url": session.url}


# =============================================================================
# CONFIRMATION
# =============================================================================

def _metadata_int(metadata: dict, key: str) -> int | None:
    value = metadata.get(key)
    if value is None or str(value).strip() == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise PaymentNotVerifiedError(f"Payment metadata has an invalid {key}")


def confirm_payment(session_id: str, *, payer_email: str | None = None) -> dict:
    """
    Turn a paid checkout session into a seat-limit increase, once.

    Args:
        session_id: Provider checkout session id
        payer_email: Authenticated caller; when given it must be the payer

    Returns:
        {"status": "processed" | "already_processed", "payment": <dict>, ...}

    Raises:
        PaymentNotVerifiedError: the provider does not report the session paid
        ForbiddenError: the session was paid by someone else
        NotFoundError: payer or session unknown
    """
    if not session_id or not isinstance(session_id, str):
        raise InvalidInputError("session_id is required")

    existing = db.session.query(Payment).filter_by(session_id=session_id).first()
    if existing:
        return {"status": ALREADY_PROCESSED, "message": "Payment already processed", "payment": existing.to_dict()}

    session = get_payment_gateway().retrieve_checkout_session(session_id)
    if not session.is_paid:
        raise PaymentNotVerifiedError("Payment not verified")

    metadata = session.metadata or {}
    hr_email = (metadata.get("hr_email") or session.customer_email or "").strip().lower()
    if not hr_email:
        raise PaymentNotVerifiedError("Payment has no payer")
    if payer_email is not None and hr_email != payer_email:
        raise ForbiddenError("Forbidden: payment belongs to another user")

    package_id = _metadata_int(metadata, "package_id")
    package = db.session.query(Package).filter_by(id=package_id).first() if package_id else None
    employee_limit = package.employee_limit if package else _metadata_int(metadata, "employee_limit")
    if employee_limit is None:
        raise PaymentNotVerifiedError("Payment has no package")

    def _op():
        user = lock_for_update(db.session.query(User).filter_by(email=hr_email)).first()
        if not user:
            raise NotFoundError("User not found")

        user.employee_limit = employee_limit
        payment = Payment(
            session_id=session_id,
            hr_email=hr_email,
            package_id=package.id if package else None,
            package_name=package.name if package else None,
            employee_limit=employee_limit,
            amount_cents=session.amount_total if session.amount_total is not None else (package.price_cents if package else 0),
            currency=session.currency or current_app.config["PAYMENT_CURRENCY"],
            status="completed",
            paid_at=utcnow(),
        )
        db.session.add(payment)
        db.session.commit()
        return payment

    try:
        payment = run_with_retry(_op)
    except IntegrityError:
        # Lost the race against a concurrent confirmation of the same session
        db.session.rollback()
        payment = db.session.query(Payment).filter_by(session_id=session_id).first()
        if payment is None:
            raise
        return {"status": ALREADY_PROCESSED, "message": "Payment already processed", "payment": payment.to_dict()}

    current_app.logger.info(
        "Payment %s confirmed: %s seat limit set to %s", session_id, hr_email, employee_limit
    )
    return {
        "status": PROCESSED,
        "message": "Payment processed",
        "payment": payment.to_dict(),
        "employee_limit": employee_limit,
    }


# =============================================================================
# HISTORY
# =============================================================================

def payment_history(hr_email: str) -> list[dict]:
    """One row per purchased package: latest payment, purchase count and total spent."""
    rows = (
        db.session.query(
            Payment.package_id,
            func.max(Payment.package_name).label("package_name"),
            func.max(Payment.employee_limit).label("employee_limit"),
            func.count(Payment.id).label("purchase_count"),
            func.sum(Payment.amount_cents).label("total_amount_cents"),
            func.max(Payment.paid_at).label("last_paid_at"),
            func.max(Payment.currency).label("currency"),
        )
        .filter(Payment.hr_email == hr_email)
        .group_by(Payment.package_id)
        .order_by(func.max(Payment.paid_at).desc())
        .all()
    )
    return [
        {
            "package_id": r.package_id,
            "package_name": r.package_name,
            "employee_limit": r.employee_limit,
            "purchase_count": int(r.purchase_count),
            "total_amount_cents": int(r.total_amount_cents or 0),
            "currency": r.currency,
            "last_paid_at": to_utc_z(r.last_paid_at),
        }
        for r in rows
    ]
