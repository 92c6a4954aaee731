# Overview: Service-layer operations for user accounts and profiles.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import User
from ..models.accounts import ROLE_HR, ROLE_EMPLOYEE
from ..errors import NotFoundError, ForbiddenError

# Fields a caller may change on their own profile
PROFILE_FIELDS = {"name", "photo_url", "date_of_birth"}
HR_PROFILE_FIELDS = PROFILE_FIELDS | {"company_name", "company_logo"}


def get_user_by_email(email: str) -> User | None:
    return db.session.query(User).filter_by(email=email).first()


def create_user(*, patch: dict, email: str, authenticated_email: str | None = None) -> tuple[User | None, bool]:
    """
    Sign up a user.

    Returns (user, created). When the email is already registered nothing is
    written and (existing_user, False) is returned.

    Raises:
        ForbiddenError: email differs from the authenticated caller
    """
    if authenticated_email is not None and email != authenticated_email:
        raise ForbiddenError("Forbidden: cannot register another email")

    existing = get_user_by_email(email)
    if existing:
        return existing, False

    role = patch.get("role") or ROLE_EMPLOYEE
    user = User(email=email, role=role)
    for key in HR_PROFILE_FIELDS:
        if key in patch:
            setattr(user, key, patch[key])

    if role == ROLE_HR:
        user.employee_limit = current_app.config["DEFAULT_HR_EMPLOYEE_LIMIT"]
    else:
        # Company fields only describe HR accounts
        user.company_name = None
        user.company_logo = None
        user.employee_limit = 0

    db.session.add(user)
    db.session.commit()

    current_app.logger.info("User %s registered as %s", email, role)
    return user, True


def get_role(email: str) -> str:
    user = get_user_by_email(email)
    if not user:
        raise NotFoundError("User not found")
    return user.role


def update_profile(user: User, patch: dict) -> User:
    allowed = HR_PROFILE_FIELDS if user.is_hr else PROFILE_FIELDS
    for key, value in patch.items():
        if key not in allowed:
            raise ForbiddenError(f"Field cannot be changed: {key}")
        setattr(user, key, value)
    db.session.commit()
    return user
