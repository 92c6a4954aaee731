from __future__ import annotations

from ..extensions import db
from assetverse.time_utils import to_utc_z


ROLE_HR = "hr"
ROLE_EMPLOYEE = "employee"
VALID_ROLES = (ROLE_HR, ROLE_EMPLOYEE)


class User(db.Model):
    """
    An account, either an HR manager or an employee.

    Identity is the email asserted by the external identity provider; there
    are no passwords or sessions stored here.

    employee_limit is the HR's seat limit: the maximum number of distinct
    employees that may hold an EmployeeMembership under this HR. It is raised
    only by payment confirmation (or the CLI). Employees keep 0.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.CheckConstraint("employee_limit >= 0", name="ck_users_employee_limit_nonnegative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    name = db.Column(db.String(255), nullable=True)
    role = db.Column(db.String(16), nullable=False, default=ROLE_EMPLOYEE, index=True)

    photo_url = db.Column(db.String(512), nullable=True)
    date_of_birth = db.Column(db.String(10), nullable=True)  # YYYY-MM-DD

    # HR-only company profile
    company_name = db.Column(db.String(255), nullable=True)
    company_logo = db.Column(db.String(512), nullable=True)

    employee_limit = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    @property
    def is_hr(self) -> bool:
        return self.role == ROLE_HR

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role!r}>"

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "photo_url": self.photo_url,
            "date_of_birth": self.date_of_birth,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if self.is_hr:
            data.update({
                "company_name": self.company_name,
                "company_logo": self.company_logo,
                "employee_limit": self.employee_limit,
            })
        return data


class Package(db.Model):
    """Purchasable subscription tier; buying one sets the HR's seat limit."""
    __tablename__ = "packages"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False, unique=True)
    employee_limit = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)
    features = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Package id={self.id} name={self.name!r} employee_limit={self.employee_limit}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "employee_limit": self.employee_limit,
            "price_cents": self.price_cents,
            "features": list(self.features or []),
        }
