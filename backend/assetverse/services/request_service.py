# Overview: Service-layer operations for asset requests; the request approval workflow.

"""
Asset Request Workflow

Owns every status transition of an AssetRequest and keeps Asset inventory
and EmployeeMembership consistent with it.

INVARIANTS:
- Asset.quantity never goes negative. Submission only reads stock (soft
  check, no reservation); the approval decrement is itself gated on
  quantity > 0 and fails the whole approval when the asset ran dry.
- One EmployeeMembership per (employee, hr). The UNIQUE constraint is the
  authoritative guard; a concurrent duplicate insert rolls the transaction
  back and the retry sees the existing row.
- A new employee (not yet on the roster) is admitted only while the HR's
  membership count is below the HR's employee_limit. Re-approving for an
  existing member never re-checks the limit.
- Only pending requests can be approved or denied, so inventory is never
  counted twice for one request.

TRANSACTIONS:
Approve, direct assignment and employee removal each run as ONE database
transaction via run_with_retry: rows are locked FOR UPDATE (ignored by
SQLite), Asset carries an optimistic version_id, and any failure rolls back
every step already taken.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Asset, AssetRequest, EmployeeMembership, User
from ..models.assets import (
    REQUEST_STATUS_PENDING,
    REQUEST_STATUS_APPROVED,
    REQUEST_STATUS_DENIED,
    REQUEST_STATUS_REJECTED,
    VALID_REQUEST_STATUSES,
)
from ..errors import (
    NotFoundError,
    ForbiddenError,
    InvalidInputError,
    OutOfStockError,
    SeatLimitReachedError,
)
from assetverse.time_utils import utcnow
from .concurrency import lock_for_update, run_with_retry
from .pagination import paginate, escape_like


# Statuses accepted by the HR decision endpoint
DECISION_STATUSES = (REQUEST_STATUS_APPROVED, REQUEST_STATUS_DENIED)


# =============================================================================
# SUBMISSION
# =============================================================================

def submit_request(
    *,
    asset_id: int,
    requester_email: str,
    requester_name: str | None = None,
    asset_name: str | None = None,
    note: str | None = None,
    authenticated_email: str | None = None,
) -> AssetRequest:
    """
    Create a pending request for one unit of an asset.

    Args:
        asset_id: Asset being requested
        requester_email: Employee asking for it
        requester_name: Display name (falls back to the user's stored name)
        asset_name: Display name (falls back to the asset's product name)
        note: Free-text reason
        authenticated_email: Verified caller email; must equal requester_email

    Raises:
        ForbiddenError: requester_email is not the authenticated caller
        NotFoundError: requester or asset missing
        OutOfStockError: asset quantity is 0
    """
    if authenticated_email is not None and requester_email != authenticated_email:
        raise ForbiddenError("Forbidden: cannot request assets for another user")

    user = db.session.query(User).filter_by(email=requester_email).first()
    if not user:
        raise NotFoundError("User not found")

    asset = db.session.query(Asset).filter_by(id=asset_id).first()
    if not asset:
        raise NotFoundError("Asset not found")

    if asset.quantity <= 0:
        raise OutOfStockError("Asset is out of stock")

    request_row = AssetRequest(
        asset_id=asset.id,
        asset_name=asset_name or asset.product_name,
        asset_type=asset.product_type,
        requester_email=requester_email,
        requester_name=requester_name or user.name,
        hr_email=asset.hr_email,
        company_name=asset.company_name,
        status=REQUEST_STATUS_PENDING,
        note=note,
        requested_at=utcnow(),
    )
    db.session.add(request_row)
    db.session.commit()

    current_app.logger.info(
        "Request %s submitted by %s for asset %s", request_row.id, requester_email, asset.id
    )
    return request_row


# =============================================================================
# ROSTER ADMISSION (shared by approval and direct assignment)
# =============================================================================

def _admit_to_roster(*, employee_email: str, employee_name: str | None, hr_email: str) -> bool:
    """
    Ensure the employee is on the HR's roster, enforcing the seat limit for
    newcomers. Runs inside the caller's transaction.

    Returns True when a new membership row was added.
    """
    existing = (
        db.session.query(EmployeeMembership.id)
        .filter_by(employee_email=employee_email, hr_email=hr_email)
        .first()
    )
    if existing:
        return False

    hr = lock_for_update(db.session.query(User).filter_by(email=hr_email)).first()
    if not hr:
        raise NotFoundError("HR account not found")

    current_count = (
        db.session.query(func.count(EmployeeMembership.id))
        .filter_by(hr_email=hr_email)
        .scalar()
    )
    if current_count >= hr.employee_limit:
        raise SeatLimitReachedError(
            f"Employee limit reached ({current_count}/{hr.employee_limit}). Upgrade your package to add more employees."
        )

    db.session.add(EmployeeMembership(
        employee_email=employee_email,
        employee_name=employee_name,
        hr_email=hr_email,
        company_name=hr.company_name,
        added_at=utcnow(),
    ))
    # Surface a concurrent duplicate insert here, inside the retry loop
    db.session.flush()
    return True


def _take_one_unit(asset_id: int | None) -> Asset:
    asset = None
    if asset_id is not None:
        asset = lock_for_update(db.session.query(Asset).filter_by(id=asset_id)).first()
    if not asset:
        raise NotFoundError("Asset not found")
    if asset.quantity <= 0:
        raise OutOfStockError("Asset is out of stock")
    asset.quantity -= 1
    return asset


# =============================================================================
# APPROVAL / DENIAL
# =============================================================================

def approve_request(request_id: int, *, hr_email: str | None = None) -> dict:
    """
    Approve a pending request.

    In one transaction: admit the requester to the HR's roster (seat limit
    enforced for newcomers only), mark the request approved, and take one
    unit of the asset.

    Args:
        request_id: Request to approve
        hr_email: Acting HR; when given it must own the request

    Returns:
        {"request": <dict>, "modified_count": <rows changed>}

    Raises:
        NotFoundError, ForbiddenError, InvalidInputError (not pending),
        OutOfStockError, SeatLimitReachedError
    """
    def _op():
        req = lock_for_update(db.session.query(AssetRequest).filter_by(id=request_id)).first()
        if not req:
            raise NotFoundError("Request not found")
        if hr_email is not None and req.hr_email != hr_email:
            raise ForbiddenError("Forbidden: request belongs to another HR")
        if req.status != REQUEST_STATUS_PENDING:
            raise InvalidInputError(f"Request is already {req.status}")

        joined = _admit_to_roster(
            employee_email=req.requester_email,
            employee_name=req.requester_name,
            hr_email=req.hr_email,
        )

        now = utcnow()
        req.status = REQUEST_STATUS_APPROVED
        req.approved_at = now
        req.processed_at = now

        _take_one_unit(req.asset_id)

        db.session.commit()
        return req, joined

    req, joined = run_with_retry(_op, retry_on=(IntegrityError,))

    current_app.logger.info(
        "Request %s approved for %s (new roster member: %s)", req.id, req.requester_email, joined
    )
    return {
        "request": req.to_dict(),
        # request + asset, plus the membership row when one was created
        "modified_count": 3 if joined else 2,
    }


def deny_request(request_id: int, *, hr_email: str | None = None) -> AssetRequest:
    """Deny a pending request. Status only; no inventory or roster effects."""
    req = db.session.query(AssetRequest).filter_by(id=request_id).first()
    if not req:
        raise NotFoundError("Request not found")
    if hr_email is not None and req.hr_email != hr_email:
        raise ForbiddenError("Forbidden: request belongs to another HR")
    if req.status != REQUEST_STATUS_PENDING:
        raise InvalidInputError(f"Request is already {req.status}")

    req.status = REQUEST_STATUS_DENIED
    req.processed_at = utcnow()
    db.session.commit()

    current_app.logger.info("Request %s denied", req.id)
    return req


def decide_request(request_id: int, status: str | None, *, hr_email: str | None = None) -> dict:
    """Route an HR decision ("approved" or "denied") to the matching transition."""
    if status not in DECISION_STATUSES:
        raise InvalidInputError("Invalid Status")
    if status == REQUEST_STATUS_APPROVED:
        return approve_request(request_id, hr_email=hr_email)
    req = deny_request(request_id, hr_email=hr_email)
    return {"request": req.to_dict(), "modified_count": 1}


# =============================================================================
# DIRECT ASSIGNMENT
# =============================================================================

def assign_directly(
    *,
    asset_id: int,
    employee_email: str,
    hr_email: str,
    employee_name: str | None = None,
    note: str | None = None,
) -> AssetRequest:
    """
    HR hands an asset to an employee without a prior request.

    Goes through the same roster admission and seat-limit check as
    approve_request, then records an already-approved request and takes one
    unit, all in one transaction.
    """
    def _op():
        asset = lock_for_update(db.session.query(Asset).filter_by(id=asset_id)).first()
        if not asset:
            raise NotFoundError("Asset not found")
        if asset.hr_email != hr_email:
            raise ForbiddenError("Forbidden: asset belongs to another HR")
        if asset.quantity <= 0:
            raise OutOfStockError("Asset is out of stock")

        employee = db.session.query(User).filter_by(email=employee_email).first()
        if not employee:
            raise NotFoundError("Employee not found")
        if employee.is_hr:
            raise InvalidInputError("Assets can only be assigned to employees")

        name = employee_name or employee.name
        _admit_to_roster(employee_email=employee_email, employee_name=name, hr_email=hr_email)

        now = utcnow()
        req = AssetRequest(
            asset_id=asset.id,
            asset_name=asset.product_name,
            asset_type=asset.product_type,
            requester_email=employee_email,
            requester_name=name,
            hr_email=hr_email,
            company_name=asset.company_name,
            status=REQUEST_STATUS_APPROVED,
            note=note,
            assigned_directly=True,
            requested_at=now,
            approved_at=now,
            processed_at=now,
        )
        db.session.add(req)
        asset.quantity -= 1

        db.session.commit()
        return req

    req = run_with_retry(_op, retry_on=(IntegrityError,))
    current_app.logger.info("Asset %s assigned directly to %s by %s", asset_id, employee_email, hr_email)
    return req


# =============================================================================
# OFFBOARDING
# =============================================================================

def remove_employee(*, hr_email: str, employee_email: str) -> dict:
    """
    Remove an employee from the HR's roster.

    In one transaction:
    1. Every approved request of the employee under this HR returns one unit
       to its asset (skipped when the asset has since been deleted).
    2. Every request of the employee under this HR becomes rejected.
    3. The membership row is deleted.

    Raises:
        NotFoundError: employee is not on this HR's roster
    """
    def _op():
        membership = lock_for_update(
            db.session.query(EmployeeMembership).filter_by(
                employee_email=employee_email, hr_email=hr_email
            )
        ).first()
        if not membership:
            raise NotFoundError("Employee not found in your team")

        requests = (
            db.session.query(AssetRequest)
            .filter_by(requester_email=employee_email, hr_email=hr_email)
            .order_by(AssetRequest.id.asc())
            .all()
        )

        returned = 0
        now = utcnow()
        for req in requests:
            if req.status == REQUEST_STATUS_APPROVED and req.asset_id is not None:
                asset = lock_for_update(db.session.query(Asset).filter_by(id=req.asset_id)).first()
                if asset:
                    asset.quantity += 1
                    returned += 1
            if req.status != REQUEST_STATUS_REJECTED:
                req.status = REQUEST_STATUS_REJECTED
                req.processed_at = now

        db.session.delete(membership)
        db.session.commit()
        return {"returned_assets": returned, "closed_requests": len(requests)}

    result = run_with_retry(_op)
    current_app.logger.info(
        "Employee %s removed from %s roster (%d assets returned)",
        employee_email, hr_email, result["returned_assets"],
    )
    return result


# =============================================================================
# QUERIES
# =============================================================================

def _check_status_filter(status: str | None) -> None:
    if status is not None and status not in VALID_REQUEST_STATUSES:
        raise InvalidInputError(f"status must be one of {', '.join(VALID_REQUEST_STATUSES)}")


def list_hr_requests(
    hr_email: str,
    *,
    status: str | None = None,
    search: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """Requests addressed to an HR, newest first; search matches requester name or email."""
    _check_status_filter(status)

    query = db.session.query(AssetRequest).filter(AssetRequest.hr_email == hr_email)
    if status:
        query = query.filter(AssetRequest.status == status)
    if search:
        pattern = f"%{escape_like(search.strip())}%"
        query = query.filter(or_(
            AssetRequest.requester_name.ilike(pattern, escape="\\"),
            AssetRequest.requester_email.ilike(pattern, escape="\\"),
        ))
    query = query.order_by(AssetRequest.requested_at.desc(), AssetRequest.id.desc())
    return paginate(query, page=page, per_page=per_page)


def list_employee_requests(
    employee_email: str,
    *,
    status: str | None = None,
    asset_type: str | None = None,
    search: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """An employee's own requests across all HRs; search matches the asset name."""
    _check_status_filter(status)

    query = db.session.query(AssetRequest).filter(AssetRequest.requester_email == employee_email)
    if status:
        query = query.filter(AssetRequest.status == status)
    if asset_type:
        query = query.filter(AssetRequest.asset_type == asset_type)
    if search:
        pattern = f"%{escape_like(search.strip())}%"
        query = query.filter(AssetRequest.asset_name.ilike(pattern, escape="\\"))
    query = query.order_by(AssetRequest.requested_at.desc(), AssetRequest.id.desc())
    return paginate(query, page=page, per_page=per_page)
