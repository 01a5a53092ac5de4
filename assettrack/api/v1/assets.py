# assettrack/api/v1/assets.py
"""
Asset API endpoints.
Listing, creating, viewing and editing tracked assets.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Any, Dict, Optional

from assettrack.api.deps import get_asset_store, get_current_user, get_qr_service
from assettrack.schemas.asset import (
    AssetCreate, AssetUpdate, AssetRecord, AssetListResponse, AssetStatus
)
from assettrack.services.asset_store import AssetStore, RecordConflict, RecordNotFound, StoreError
from assettrack.services.qr_service import QRCodeService

router = APIRouter()
log = logging.getLogger("assettrack.assets")

IDENTITY_FIELDS = ("name", "category")


def _load_asset(store: AssetStore, asset_id: str) -> AssetRecord:
    try:
        return store.get_by_asset_id(asset_id)
    except RecordNotFound:
        raise HTTPException(404, "Asset not found")
    except StoreError as e:
        log.error(f"❌ Failed to load asset {asset_id!r}: {e}")
        raise HTTPException(503, "Failed to load asset")


@router.get("/", response_model=AssetListResponse)
def list_assets(
    q: Optional[str] = Query(None, min_length=1, max_length=200, description="Match name or asset ID"),
    category: Optional[str] = Query(None, max_length=100),
    status: Optional[AssetStatus] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    store: AssetStore = Depends(get_asset_store),
    user: Dict[str, Any] = Depends(get_current_user)
):
    """List assets, newest first"""
    try:
        total, items = store.list_assets(
            q=q,
            category=category,
            status=status.value if status else None,
            skip=skip,
            limit=limit,
        )
    except StoreError as e:
        log.error(f"❌ Failed to list assets: {e}")
        raise HTTPException(503, "Failed to list assets")

    return AssetListResponse(
        total=total,
        items=items,
        page=skip // limit + 1,
        page_size=limit
    )


@router.post("/", response_model=AssetRecord, status_code=201)
def create_asset(
    data: AssetCreate,
    store: AssetStore = Depends(get_asset_store),
    user: Dict[str, Any] = Depends(get_current_user)
):
    """
    Add an asset.

    The asset ID must be unique. The caller's profile must exist, since
    the asset records who created it.
    """
    user_id = user["user_id"]
    try:
        if not store.profile_exists(user_id):
            raise HTTPException(
                400,
                "Your user profile is missing. Complete your profile setup before adding assets."
            )
        return store.add_asset(data, created_by=user_id)
    except RecordConflict:
        raise HTTPException(400, f'Asset ID "{data.asset_id}" already exists. Please use a unique Asset ID.')
    except StoreError as e:
        log.error(f"❌ Failed to create asset {data.asset_id!r}: {e}")
        raise HTTPException(503, "Failed to create asset")


@router.get("/{asset_id}", response_model=AssetRecord)
def get_asset(
    asset_id: str,
    store: AssetStore = Depends(get_asset_store),
    user: Dict[str, Any] = Depends(get_current_user)
):
    """Asset detail, with assignee and creator names"""
    return _load_asset(store, asset_id)


@router.patch("/{asset_id}", response_model=AssetRecord)
def update_asset(
    asset_id: str,
    data: AssetUpdate,
    store: AssetStore = Depends(get_asset_store),
    qr_service: QRCodeService = Depends(get_qr_service),
    user: Dict[str, Any] = Depends(get_current_user)
):
    """
    Update an asset.

    If the asset already carries a QR code and its name or category
    changes, the QR code is regenerated so the printed payload matches.
    """
    current = _load_asset(store, asset_id)
    changes = data.model_dump(exclude_unset=True)

    try:
        updated = store.update_asset(current.id, data)
    except RecordConflict:
        raise HTTPException(400, "Update violates a constraint (unknown assignee?)")
    except StoreError as e:
        log.error(f"❌ Failed to update asset {asset_id!r}: {e}")
        raise HTTPException(503, "Failed to update asset")

    identity_changed = any(
        field in changes and changes[field] != getattr(current, field)
        for field in IDENTITY_FIELDS
    )
    if identity_changed and current.qr_code:
        result = qr_service.regenerate(updated)
        if not result.success:
            log.warning(f"QR regeneration after edit of {asset_id} failed: {result.error}")
            return updated
        updated = updated.model_copy(update={"qr_code": result.qr_code})

    return updated
