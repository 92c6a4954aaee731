# Overview: Service-layer operations for reporting; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy import case, func

from assetverse.extensions import db
from assetverse.models import Asset, AssetRequest


TOP_REQUESTED_LIMIT = 5


def asset_type_distribution(hr_email: str) -> list[dict]:
    """Count of the HR's asset rows per product type, most common first."""
    rows = (
        db.session.query(Asset.product_type, func.count(Asset.id).label("count"))
        .filter(Asset.hr_email == hr_email)
        .group_by(Asset.product_type)
        .order_by(func.count(Asset.id).desc(), Asset.product_type.asc())
        .all()
    )
    return [{"product_type": r.product_type, "count": int(r.count)} for r in rows]


def top_requested_assets(hr_email: str, limit: int = TOP_REQUESTED_LIMIT) -> list[dict]:
    """
    The HR's most requested assets by number of requests (any status).

    Requests are grouped by asset whatever name they were submitted under;
    requests for deleted assets are grouped under their remembered name.
    """
    request_count = func.count(AssetRequest.id)
    first_name = func.min(AssetRequest.asset_name)
    orphan_name = case((AssetRequest.asset_id.is_(None), AssetRequest.asset_name), else_=None)
    rows = (
        db.session.query(
            AssetRequest.asset_id,
            first_name.label("asset_name"),
            request_count.label("request_count"),
        )
        .filter(AssetRequest.hr_email == hr_email)
        .group_by(AssetRequest.asset_id, orphan_name)
        .order_by(request_count.desc(), first_name.asc())
        .limit(limit)
        .all()
    )
    return [
        {"asset_id": r.asset_id, "asset_name": r.asset_name, "request_count": int(r.request_count)}
        for r in rows
    ]
