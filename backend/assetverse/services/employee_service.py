from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import AssetRequest, EmployeeMembership, User
from ..models.assets import REQUEST_STATUS_APPROVED
from .pagination import paginate


def list_roster(hr_email: str, *, page: int | None = None, per_page: int | None = None) -> dict:
    """
    The HR's current employees, each with the number of assets they hold,
    plus the seat usage summary.
    """
    hr = db.session.query(User).filter_by(email=hr_email).first()

    held = (
        db.session.query(
            AssetRequest.requester_email.label("email"),
            func.count(AssetRequest.id).label("asset_count"),
        )
        .filter(
            AssetRequest.hr_email == hr_email,
            AssetRequest.status == REQUEST_STATUS_APPROVED,
        )
        .group_by(AssetRequest.requester_email)
        .subquery()
    )

    query = (
        db.session.query(EmployeeMembership, func.coalesce(held.c.asset_count, 0))
        .outerjoin(held, held.c.email == EmployeeMembership.employee_email)
        .filter(EmployeeMembership.hr_email == hr_email)
        .order_by(EmployeeMembership.added_at.asc(), EmployeeMembership.id.asc())
    )

    def _serialize(row):
        membership, asset_count = row
        data = membership.to_dict()
        data["asset_count"] = int(asset_count)
        return data

    result = paginate(query, page=page, per_page=per_page, serialize=_serialize)
    result["current_count"] = (
        db.session.query(func.count(EmployeeMembership.id)).filter_by(hr_email=hr_email).scalar()
    )
    result["employee_limit"] = hr.employee_limit if hr else 0
    return result


def list_affiliations(employee_email: str) -> list[dict]:
    """Companies (HR rosters) the employee currently belongs to."""
    rows = (
        db.session.query(EmployeeMembership, User)
        .join(User, User.email == EmployeeMembership.hr_email)
        .filter(EmployeeMembership.employee_email == employee_email)
        .order_by(EmployeeMembership.added_at.asc())
        .all()
    )
    return [
        {
            "hr_email": hr.email,
            "hr_name": hr.name,
            "company_name": hr.company_name,
            "company_logo": hr.company_logo,
            "added_at": membership.to_dict()["added_at"],
        }
        for membership, hr in rows
    ]
