"""
Service layer initialization.
Services are constructed per request from injected collaborators; there
is no process-wide client.
"""
from assettrack.services.asset_store import (
    AssetStore, SqlAlchemyAssetStore, StoreError,
    RecordNotFound, RecordConflict, PermissionDenied, StoreUnavailable
)
from assettrack.services.qr_service import QRCodeService, FrameDecoder

__all__ = [
    'AssetStore',
    'SqlAlchemyAssetStore',
    'StoreError',
    'RecordNotFound',
    'RecordConflict',
    'PermissionDenied',
    'StoreUnavailable',
    'QRCodeService',
    'FrameDecoder',
]
