# backend/assetverse/config.py
from __future__ import annotations
import os


def _csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///assetverse.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Identity provider tokens (bearer JWTs carrying a verified "email" claim)
    IDENTITY_JWT_SECRET = os.environ.get("IDENTITY_JWT_SECRET", "dev-identity-secret")
    IDENTITY_JWT_ALGORITHMS = _csv(os.environ.get("IDENTITY_JWT_ALGORITHMS", "HS256"))
    IDENTITY_JWT_AUDIENCE = os.environ.get("IDENTITY_JWT_AUDIENCE") or None
    IDENTITY_JWT_ISSUER = os.environ.get("IDENTITY_JWT_ISSUER") or None

    # Payment provider (Stripe Checkout)
    STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY", "")
    PAYMENT_CURRENCY = os.environ.get("PAYMENT_CURRENCY", "usd")
    CHECKOUT_SUCCESS_URL = os.environ.get(
        "CHECKOUT_SUCCESS_URL",
        "http://localhost:5173/payment-success?session_id={CHECKOUT_SESSION_ID}",
    )
    CHECKOUT_CANCEL_URL = os.environ.get("CHECKOUT_CANCEL_URL", "http://localhost:5173/upgrade-package")

    # Seats granted to a new HR account before any package is purchased
    DEFAULT_HR_EMPLOYEE_LIMIT = int(os.environ.get("DEFAULT_HR_EMPLOYEE_LIMIT", "5"))

    CORS_ALLOWED_ORIGINS = _csv(
        os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        )
    )

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    PORT = int(os.environ.get("PORT", "3000"))
