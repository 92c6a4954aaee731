from __future__ import annotations

from ..extensions import db
from assetverse.time_utils import to_utc_z


class Payment(db.Model):
    """
    A completed package purchase.

    IDEMPOTENCY: session_id is the payment provider's checkout session id and
    is UNIQUE, so a duplicated confirmation can never create a second row.
    """
    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)

    session_id = db.Column(db.String(255), nullable=False, unique=True, index=True)

    hr_email = db.Column(db.String(255), db.ForeignKey("users.email"), nullable=False, index=True)
    package_id = db.Column(db.Integer, db.ForeignKey("packages.id"), nullable=True, index=True)
    package_name = db.Column(db.String(64), nullable=True)
    employee_limit = db.Column(db.Integer, nullable=False)

    # Authoritative storage in cents
    amount_cents = db.Column(db.Integer, nullable=False)
    currency = db.Column(db.String(8), nullable=False, default="usd")

    status = db.Column(db.String(16), nullable=False, default="completed")

    paid_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Payment id={self.id} session_id={self.session_id!r} hr_email={self.hr_email!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "hr_email": self.hr_email,
            "package_id": self.package_id,
            "package_name": self.package_name,
            "employee_limit": self.employee_limit,
            "amount_cents": self.amount_cents,
            "currency": self.currency,
            "status": self.status,
            "paid_at": to_utc_z(self.paid_at),
        }
