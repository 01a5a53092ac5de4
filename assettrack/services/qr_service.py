# assettrack/services/qr_service.py
"""
QR service - generation, persistence and lookup of asset QR codes.

Every public method returns a structured result; store and encoder
failures are mapped to a QRErrorKind instead of escaping to the caller.
"""
from __future__ import annotations
import logging
from typing import Callable, Dict, List, Optional, Sequence

from assettrack.core.config import Settings
from assettrack.core.logging_config import get_qr_logger
from assettrack.schemas.asset import AssetRecord
from assettrack.schemas.qr_code import (
    AssetIdentity, QRCodeOptions, QRErrorKind, QRGenerationResult, QRLookupResult
)
from assettrack.services.asset_store import AssetStore, RecordNotFound, StoreError
from assettrack.services.qr_code_utils import (
    EncodingFailure, PillowQRRenderer, QRRenderer, RenderOptions,
    generate_asset_qr, generate_bulk_qr_codes, parse_qr_data
)

log = logging.getLogger("assettrack.qr_service")
qr_log = get_qr_logger()

# Decodes one camera frame / uploaded image to text, None when no code is visible
FrameDecoder = Callable[[bytes], Optional[str]]

INVALID_PAYLOAD_MESSAGE = "Not a recognized asset QR code"
NOT_FOUND_MESSAGE = "Asset no longer exists"


class QRCodeService:
    """Service for asset QR code operations"""

    def __init__(
        self,
        store: AssetStore,
        settings: Settings,
        renderer: Optional[QRRenderer] = None,
    ):
        """
        Args:
            store: Record store for assets
            settings: Supplies the base URL and render defaults
            renderer: QR renderer (PNG via qrcode/Pillow when omitted)
        """
        self.store = store
        self.settings = settings
        self.renderer = renderer or PillowQRRenderer()
        self.default_options = RenderOptions(
            size=settings.QR_DEFAULT_SIZE,
            margin=settings.QR_DEFAULT_MARGIN,
            error_correction=settings.QR_DEFAULT_ERROR_CORRECTION,
        )

    def identity_for(self, asset: AssetRecord) -> AssetIdentity:
        return AssetIdentity(
            asset_id=asset.asset_id,
            name=asset.name,
            category=asset.category,
            url=self.settings.asset_url(asset.asset_id),
        )

    # ────────────────────────────────────────────
    # Generation
    # ────────────────────────────────────────────

    def generate_asset_qr_code(
        self,
        asset_id: str,
        options: Optional[QRCodeOptions] = None,
    ) -> QRGenerationResult:
        """Generate an asset's QR code and store it on the asset row"""
        try:
            asset = self.store.get_by_asset_id(asset_id)
        except RecordNotFound:
            return _failure(asset_id, QRErrorKind.NOT_FOUND, "Asset not found")
        except StoreError as e:
            log.error(f"❌ Could not load asset {asset_id!r}: {e}")
            return _failure(asset_id, QRErrorKind.STORE_FAILURE, "Failed to load asset")

        return self.regenerate(asset, options)

    def regenerate(
        self,
        asset: AssetRecord,
        options: Optional[QRCodeOptions] = None,
    ) -> QRGenerationResult:
        """Render and persist the QR code for an already loaded asset"""
        identity = self.identity_for(asset)
        try:
            qr_code = generate_asset_qr(
                identity,
                RenderOptions.resolve(options, self.default_options),
                self.renderer,
            )
        except EncodingFailure as e:
            qr_log.warning(f"Encoding failed for {asset.asset_id}: {e}")
            return _failure(asset.asset_id, QRErrorKind.ENCODING_FAILURE, str(e))

        return self._persist(asset, qr_code, identity.url)

    def _persist(self, asset: AssetRecord, qr_code: str, asset_url: str) -> QRGenerationResult:
        # Keyed by internal id: the row was already resolved
        try:
            self.store.update_qr_code(asset.id, qr_code)
        except StoreError as e:
            log.error(f"❌ Failed to save QR code to asset {asset.asset_id!r}: {e}")
            return _failure(asset.asset_id, QRErrorKind.PERSIST_FAILURE, "Failed to save QR code to asset")

        qr_log.info(f"✅ QR code generated for {asset.asset_id}")
        return QRGenerationResult(
            asset_id=asset.asset_id,
            success=True,
            qr_code=qr_code,
            asset_url=asset_url,
        )

    def generate_bulk_qr_codes(
        self,
        asset_ids: Sequence[str],
        options: Optional[QRCodeOptions] = None,
    ) -> List[QRGenerationResult]:
        """
        Generate QR codes for several assets.

        One result per requested id, in request order. Unknown ids and
        per-item encode or persist failures do not affect other items.
        """
        try:
            found = self.store.get_many_by_asset_ids(asset_ids)
        except StoreError as e:
            log.error(f"❌ Bulk fetch of {len(asset_ids)} assets failed: {e}")
            return [
                _failure(asset_id, QRErrorKind.STORE_FAILURE, "Failed to fetch assets")
                for asset_id in asset_ids
            ]

        by_key: Dict[str, AssetRecord] = {asset.asset_id: asset for asset in found}
        targets = [by_key[asset_id] for asset_id in asset_ids if asset_id in by_key]

        encoded = generate_bulk_qr_codes(
            [self.identity_for(asset) for asset in targets],
            RenderOptions.resolve(options, self.default_options),
            self.renderer,
            max_workers=self.settings.QR_BULK_MAX_WORKERS,
        )

        outcomes: List[QRGenerationResult] = []
        for asset, item in zip(targets, encoded):
            if item.success:
                outcomes.append(self._persist(asset, item.qr_code, self.settings.asset_url(asset.asset_id)))
            else:
                outcomes.append(_failure(asset.asset_id, QRErrorKind.ENCODING_FAILURE, item.error))
        by_target = iter(outcomes)

        results = []
        for asset_id in asset_ids:
            if asset_id in by_key:
                results.append(next(by_target))
            else:
                results.append(_failure(asset_id, QRErrorKind.NOT_FOUND, "Asset not found"))

        succeeded = sum(1 for r in results if r.success)
        qr_log.info(f"Bulk QR generation: {succeeded}/{len(results)} succeeded")
        return results

    # ────────────────────────────────────────────
    # Lookup
    # ────────────────────────────────────────────

    def lookup_asset_by_qr(self, raw: str) -> QRLookupResult:
        """
        Resolve scanned text to the current asset record.

        Only the embedded asset id is used for the lookup; the embedded
        name/category/url are returned as qr_data, never as the asset.
        """
        qr_data = parse_qr_data(raw)
        if qr_data is None:
            qr_log.info("Lookup rejected: not an asset payload")
            return QRLookupResult(
                success=False,
                kind=QRErrorKind.INVALID_PAYLOAD,
                error=INVALID_PAYLOAD_MESSAGE,
            )

        try:
            asset = self.store.get_by_asset_id(qr_data.asset_id)
        except RecordNotFound:
            qr_log.info(f"Lookup miss for {qr_data.asset_id}")
            return QRLookupResult(
                success=False,
                qr_data=qr_data,
                kind=QRErrorKind.NOT_FOUND,
                error=NOT_FOUND_MESSAGE,
            )
        except StoreError as e:
            log.error(f"❌ QR lookup for {qr_data.asset_id!r} failed: {e}")
            return QRLookupResult(
                success=False,
                qr_data=qr_data,
                kind=QRErrorKind.STORE_FAILURE,
                error="Failed to lookup asset",
            )

        qr_log.info(f"Lookup hit for {qr_data.asset_id} -> #{asset.id}")
        return QRLookupResult(success=True, asset=asset, qr_data=qr_data)

    def lookup_asset_by_frame(self, frame: bytes, decoder: FrameDecoder) -> QRLookupResult:
        """Decode one camera frame / uploaded image, then resolve it"""
        try:
            raw = decoder(frame)
        except Exception as e:
            log.warning(f"Frame decoder failed: {e}")
            raw = None

        if not raw:
            return QRLookupResult(
                success=False,
                kind=QRErrorKind.INVALID_PAYLOAD,
                error="No QR code found in image",
            )
        return self.lookup_asset_by_qr(raw)


def _failure(asset_id: str, kind: QRErrorKind, error: Optional[str]) -> QRGenerationResult:
    return QRGenerationResult(asset_id=asset_id, success=False, kind=kind, error=error)
