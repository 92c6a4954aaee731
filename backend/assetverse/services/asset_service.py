# backend/assetverse/services/asset_service.py
"""
Assets Service

Assets belong to the HR account that created them (hr_email).
- create_asset requires an HR caller
- update_asset and delete_asset require the owning HR
- listings are public to authenticated callers; list_hr_assets scopes to one HR
"""
from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Asset, AssetRequest, User
from ..models.assets import REQUEST_STATUS_PENDING, REQUEST_STATUS_REJECTED
from ..errors import NotFoundError, ForbiddenError
from assetverse.time_utils import utcnow
from .pagination import paginate, escape_like

ASSET_MUTABLE_FIELDS = {"product_name", "product_type", "product_image", "quantity"}


def apply_asset_patch(asset: Asset, patch: dict) -> None:
    for k, v in patch.items():
        if k not in ASSET_MUTABLE_FIELDS:
            continue
        setattr(asset, k, v)


def create_asset(*, patch: dict, hr_email: str) -> Asset:
    """
    Create an asset owned by hr_email.

    Raises:
        NotFoundError: no user with that email
        ForbiddenError: the user is not an HR manager
    """
    user = db.session.query(User).filter_by(email=hr_email).first()
    if not user:
        raise NotFoundError("User not found")
    if not user.is_hr:
        raise ForbiddenError("Access Denied: Only HR managers can add assets.")

    asset = Asset(hr_email=user.email, company_name=user.company_name)
    apply_asset_patch(asset, patch)
    db.session.add(asset)
    db.session.commit()

    current_app.logger.info("Asset %s created by %s (quantity %s)", asset.id, hr_email, asset.quantity)
    return asset


def get_asset(asset_id: int) -> Asset:
    asset = db.session.query(Asset).filter_by(id=asset_id).first()
    if not asset:
        raise NotFoundError("Asset not found")
    return asset


def _get_owned_asset(asset_id: int, hr_email: str) -> Asset:
    asset = get_asset(asset_id)
    if asset.hr_email != hr_email:
        raise ForbiddenError("Forbidden: asset belongs to another HR")
    return asset


def update_asset(asset_id: int, *, patch: dict, hr_email: str) -> Asset:
    asset = _get_owned_asset(asset_id, hr_email)
    apply_asset_patch(asset, patch)
    db.session.commit()
    return asset


def delete_asset(asset_id: int, *, hr_email: str) -> dict:
    """
    Delete an asset.

    Pending requests for it are rejected; every request keeps its
    denormalized asset name and loses the asset link.
    """
    asset = _get_owned_asset(asset_id, hr_email)

    requests = db.session.query(AssetRequest).filter_by(asset_id=asset.id).all()
    now = utcnow()
    rejected = 0
    for req in requests:
        if req.status == REQUEST_STATUS_PENDING:
            req.status = REQUEST_STATUS_REJECTED
            req.processed_at = now
            rejected += 1
        req.asset_id = None

    db.session.delete(asset)
    db.session.commit()

    current_app.logger.info("Asset %s deleted by %s (%d pending requests rejected)", asset_id, hr_email, rejected)
    return {"deleted_count": 1, "rejected_requests": rejected}


def _filtered(query, *, search: str | None, product_type: str | None, available: bool | None):
    if search:
        pattern = f"%{escape_like(search.strip())}%"
        query = query.filter(Asset.product_name.ilike(pattern, escape="\\"))
    if product_type:
        query = query.filter(Asset.product_type == product_type)
    if available is True:
        query = query.filter(Asset.quantity > 0)
    elif available is False:
        query = query.filter(Asset.quantity == 0)
    return query


def list_assets(
    *,
    search: str | None = None,
    product_type: str | None = None,
    available: bool | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """All assets, case-insensitive product-name search, newest first."""
    query = _filtered(db.session.query(Asset), search=search, product_type=product_type, available=available)
    query = query.order_by(Asset.created_at.desc(), Asset.id.desc())
    return paginate(query, page=page, per_page=per_page)


def list_hr_assets(
    hr_email: str,
    *,
    search: str | None = None,
    product_type: str | None = None,
    available: bool | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """Assets owned by one HR."""
    query = db.session.query(Asset).filter(Asset.hr_email == hr_email)
    query = _filtered(query, search=search, product_type=product_type, available=available)
    query = query.order_by(Asset.created_at.desc(), Asset.id.desc())
    return paginate(query, page=page, per_page=per_page)
