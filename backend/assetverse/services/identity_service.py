# Overview: Verifies identity-provider bearer tokens and resolves the caller.

"""
Identity Gate

Authentication is delegated to an external identity provider. Clients send
the provider's signed JWT as `Authorization: Bearer <token>`; this module
verifies the signature (and audience/issuer when configured) and returns
the verified email. The role is NOT taken from the token: it is read from
the users table, so a caller cannot promote themselves by minting claims.

A token whose "email_verified" claim is present and false is refused.
"""

from __future__ import annotations

from dataclasses import dataclass

import jwt
from flask import current_app

from ..extensions import db
from ..models import User


class AuthenticationError(Exception):
    """Raised when a bearer token cannot be turned into a verified email."""
    pass


@dataclass
class Identity:
    email: str
    user: User | None  # None until the caller has signed up


def _normalize_email(value: str) -> str:
    return value.strip().lower()


def verify_token(token: str) -> str:
    """Verify a bearer token and return the caller's normalized email."""
    config = current_app.config
    options = {"require": ["exp"]}
    try:
        claims = jwt.decode(
            token,
            config["IDENTITY_JWT_SECRET"],
            algorithms=config["IDENTITY_JWT_ALGORITHMS"],
            audience=config.get("IDENTITY_JWT_AUDIENCE"),
            issuer=config.get("IDENTITY_JWT_ISSUER"),
            options=options,
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationError("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthenticationError("Invalid token") from exc

    email = claims.get("email")
    if not email or not isinstance(email, str):
        raise AuthenticationError("Token has no email claim")
    if claims.get("email_verified") is False:
        raise AuthenticationError("Email not verified")
    return _normalize_email(email)


def resolve_identity(token: str) -> Identity:
    email = verify_token(token)
    user = db.session.query(User).filter_by(email=email).first()
    return Identity(email=email, user=user)
