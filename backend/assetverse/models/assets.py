from __future__ import annotations

from ..extensions import db
from assetverse.time_utils import to_utc_z


REQUEST_STATUS_PENDING = "pending"
REQUEST_STATUS_APPROVED = "approved"
REQUEST_STATUS_DENIED = "denied"
REQUEST_STATUS_REJECTED = "rejected"

VALID_REQUEST_STATUSES = (
    REQUEST_STATUS_PENDING,
    REQUEST_STATUS_APPROVED,
    REQUEST_STATUS_DENIED,
    REQUEST_STATUS_REJECTED,
)


class Asset(db.Model):
    """
    A company item owned by one HR account.

    INVENTORY MODEL:
    - quantity is the mutable quantity-on-hand; the database refuses negatives.
    - Only the request workflow changes quantity after creation (approve and
      direct assignment take one unit, employee removal returns them).
      HR edits through the asset update endpoint are the one exception.
    - version_id enables optimistic locking; a concurrent writer gets
      StaleDataError and the workflow retries.
    """
    __tablename__ = "assets"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_assets_quantity_nonnegative"),
        db.Index("ix_assets_hr_product_name", "hr_email", "product_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    hr_email = db.Column(db.String(255), db.ForeignKey("users.email"), nullable=False, index=True)
    company_name = db.Column(db.String(255), nullable=True)

    product_name = db.Column(db.String(255), nullable=False)
    product_type = db.Column(db.String(64), nullable=False, index=True)
    product_image = db.Column(db.String(512), nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Asset id={self.id} product_name={self.product_name!r} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "hr_email": self.hr_email,
            "company_name": self.company_name,
            "product_name": self.product_name,
            "product_type": self.product_type,
            "product_image": self.product_image,
            "quantity": self.quantity,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class AssetRequest(db.Model):
    """
    One employee's claim on one asset.

    LIFECYCLE:
    - pending  -> approved  (HR approval, or created approved by direct assignment)
    - pending  -> denied    (HR denial)
    - any      -> rejected  (HR removed the employee from the roster)

    asset_name, asset_type, hr_email and company_name are copied from the
    asset at submission so the request stays readable after the asset is
    deleted (asset_id becomes NULL then).
    """
    __tablename__ = "asset_requests"
    __table_args__ = (
        db.Index("ix_asset_requests_hr_status", "hr_email", "status"),
        db.Index("ix_asset_requests_requester_hr", "requester_email", "hr_email"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    asset_id = db.Column(
        db.Integer,
        db.ForeignKey("assets.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    asset_name = db.Column(db.String(255), nullable=False)
    asset_type = db.Column(db.String(64), nullable=True)

    requester_email = db.Column(db.String(255), nullable=False, index=True)
    requester_name = db.Column(db.String(255), nullable=True)

    hr_email = db.Column(db.String(255), nullable=False, index=True)
    company_name = db.Column(db.String(255), nullable=True)

    status = db.Column(db.String(16), nullable=False, default=REQUEST_STATUS_PENDING, index=True)
    note = db.Column(db.String(500), nullable=True)
    assigned_directly = db.Column(db.Boolean, nullable=False, default=False)

    requested_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    processed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    asset = db.relationship("Asset", backref=db.backref("requests", lazy=True))

    def __repr__(self) -> str:
        return f"<AssetRequest id={self.id} asset_id={self.asset_id} requester={self.requester_email!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "asset_id": self.asset_id,
            "asset_name": self.asset_name,
            "asset_type": self.asset_type,
            "requester_email": self.requester_email,
            "requester_name": self.requester_name,
            "hr_email": self.hr_email,
            "company_name": self.company_name,
            "status": self.status,
            "note": self.note,
            "assigned_directly": self.assigned_directly,
            "requested_at": to_utc_z(self.requested_at),
            "approved_at": to_utc_z(self.approved_at),
            "processed_at": to_utc_z(self.processed_at),
        }


class EmployeeMembership(db.Model):
    """
    An employee currently on an HR's roster.

    UNIQUE(employee_email, hr_email) is the authoritative guard against
    duplicate memberships; the workflow's existence check is only a fast path.
    """
    __tablename__ = "employee_memberships"
    __table_args__ = (
        db.UniqueConstraint("employee_email", "hr_email", name="uq_employee_memberships_employee_hr"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    employee_email = db.Column(db.String(255), nullable=False, index=True)
    employee_name = db.Column(db.String(255), nullable=True)

    hr_email = db.Column(db.String(255), db.ForeignKey("users.email"), nullable=False, index=True)
    company_name = db.Column(db.String(255), nullable=True)

    added_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<EmployeeMembership employee={self.employee_email!r} hr={self.hr_email!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "employee_email": self.employee_email,
            "employee_name": self.employee_name,
            "hr_email": self.hr_email,
            "company_name": self.company_name,
            "added_at": to_utc_z(self.added_at),
        }
