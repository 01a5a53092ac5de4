# assettrack/api/v1/qr_codes.py
"""
Asset QR Code API endpoints.
Handles QR code generation, parsing, lookup and stored image retrieval.
"""
import binascii
from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile
from typing import Any, Dict, Optional

from assettrack.api.deps import (
    get_asset_store, get_current_user, get_frame_decoder, get_qr_service, get_settings
)
from assettrack.core.config import Settings
from assettrack.core.logging_config import get_qr_logger
from assettrack.schemas.qr_code import (
    QRBulkRequest, QRBulkResponse, QRDataRequest, QRErrorKind, QRGenerateRequest,
    QRGenerationResult, QRLookupResult, QRParseResponse
)
from assettrack.services.asset_store import AssetStore, RecordNotFound, StoreError
from assettrack.services.qr_code_utils import decode_data_uri, parse_qr_data
from assettrack.services.qr_service import FrameDecoder, QRCodeService

router = APIRouter()
log = get_qr_logger()

STATUS_BY_KIND = {
    QRErrorKind.INVALID_PAYLOAD: 422,
    QRErrorKind.ENCODING_FAILURE: 422,
    QRErrorKind.NOT_FOUND: 404,
    QRErrorKind.PERSIST_FAILURE: 503,
    QRErrorKind.STORE_FAILURE: 503,
}

MAX_SCAN_BYTES = 10 * 1024 * 1024


def _status_for(kind: Optional[QRErrorKind]) -> int:
    return STATUS_BY_KIND.get(kind, 500)


# ────────────────────────────────────────────
# Generation
# ────────────────────────────────────────────

@router.post("/assets/{asset_id}", response_model=QRGenerationResult)
def generate_asset_qr_code(
    asset_id: str,
    response: Response,
    data: Optional[QRGenerateRequest] = None,
    qr_service: QRCodeService = Depends(get_qr_service),
    user: Dict[str, Any] = Depends(get_current_user)
):
    """
    Generate (or regenerate) the QR code of an asset.

    The image encodes the asset's ID, name, category and canonical URL and
    replaces any QR code previously stored on the asset.
    """
    result = qr_service.generate_asset_qr_code(asset_id, data.options if data else None)
    if not result.success:
        response.status_code = _status_for(result.kind)
    return result


@router.post("/bulk", response_model=QRBulkResponse)
def generate_bulk_qr_codes(
    data: QRBulkRequest,
    qr_service: QRCodeService = Depends(get_qr_service),
    settings: Settings = Depends(get_settings),
    user: Dict[str, Any] = Depends(get_current_user)
):
    """
    Generate QR codes for several assets.

    Always answers 200; each item carries its own success flag and error,
    in the order the asset IDs were given.
    """
    if len(data.asset_ids) > settings.QR_BULK_MAX_ITEMS:
        raise HTTPException(400, f"At most {settings.QR_BULK_MAX_ITEMS} assets per request")

    results = qr_service.generate_bulk_qr_codes(data.asset_ids, data.options)
    succeeded = sum(1 for r in results if r.success)
    return QRBulkResponse(
        total=len(results),
        succeeded=succeeded,
        failed=len(results) - succeeded,
        results=results
    )


# ────────────────────────────────────────────
# Parse / Lookup
# ────────────────────────────────────────────

@router.post("/parse", response_model=QRParseResponse)
def parse_qr_code(
    data: QRDataRequest,
    user: Dict[str, Any] = Depends(get_current_user)
):
    """
    Parse scanned text without touching the database.

    The embedded fields may be stale; use /lookup for the current record.
    """
    qr_data = parse_qr_data(data.data)
    return QRParseResponse(valid=qr_data is not None, qr_data=qr_data)


@router.post("/lookup", response_model=QRLookupResult)
def lookup_asset_by_qr(
    data: QRDataRequest,
    response: Response,
    qr_service: QRCodeService = Depends(get_qr_service),
    user: Dict[str, Any] = Depends(get_current_user)
):
    """
    Resolve scanned text to the current asset record.

    422 when the text is not an asset QR code, 404 when the asset it names
    no longer exists.
    """
    result = qr_service.lookup_asset_by_qr(data.data)
    if not result.success:
        response.status_code = _status_for(result.kind)
    return result


@router.post("/scan", response_model=QRLookupResult)
async def scan_qr_image(
    response: Response,
    file: UploadFile = File(...),
    decoder: Optional[FrameDecoder] = Depends(get_frame_decoder),
    qr_service: QRCodeService = Depends(get_qr_service),
    user: Dict[str, Any] = Depends(get_current_user)
):
    """Decode an uploaded image or camera frame, then resolve it like /lookup"""
    if decoder is None:
        raise HTTPException(501, "No QR frame decoder is configured")

    frame = await file.read()
    if not frame:
        raise HTTPException(400, "Empty upload")
    if len(frame) > MAX_SCAN_BYTES:
        raise HTTPException(413, "Image too large")

    result = qr_service.lookup_asset_by_frame(frame, decoder)
    if not result.success:
        response.status_code = _status_for(result.kind)
    return result


# ────────────────────────────────────────────
# Stored image
# ────────────────────────────────────────────

@router.get("/assets/{asset_id}/image")
def get_asset_qr_image(
    asset_id: str,
    store: AssetStore = Depends(get_asset_store),
    user: Dict[str, Any] = Depends(get_current_user)
):
    """Stored QR code of an asset as PNG"""
    try:
        asset = store.get_by_asset_id(asset_id)
    except RecordNotFound:
        raise HTTPException(404, "Asset not found")
    except StoreError as e:
        log.error(f"❌ Failed to load asset {asset_id!r}: {e}")
        raise HTTPException(503, "Failed to load asset")

    if not asset.qr_code:
        raise HTTPException(404, "No QR code generated for this asset")

    try:
        png = decode_data_uri(asset.qr_code)
    except (ValueError, binascii.Error):
        raise HTTPException(500, "Stored QR code is not a PNG image")

    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f'inline; filename="{asset_id}-qr.png"'}
    )
