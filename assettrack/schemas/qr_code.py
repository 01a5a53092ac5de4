# assettrack/schemas/qr_code.py
"""
Pydantic schemas for asset QR codes.
Covers the embedded identity, the wire payload, render options and the
structured results of generation and lookup.
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from enum import Enum

from assettrack.schemas.asset import AssetRecord


# ────────────────────────────────────────────
# Enums
# ────────────────────────────────────────────

class ErrorCorrectionLevel(str, Enum):
    """QR error-correction levels, lowest density first"""
    L = "L"  # ~7% recoverable
    M = "M"  # ~15%
    Q = "Q"  # ~25%
    H = "H"  # ~30%


class QRErrorKind(str, Enum):
    """Why a QR operation did not succeed"""
    ENCODING_FAILURE = "encoding_failure"
    INVALID_PAYLOAD = "invalid_payload"
    NOT_FOUND = "not_found"
    PERSIST_FAILURE = "persist_failure"
    STORE_FAILURE = "store_failure"


# ────────────────────────────────────────────
# Identity / Payload
# ────────────────────────────────────────────

PAYLOAD_TYPE = "asset"


class AssetIdentity(BaseModel):
    """Identity fields embedded in a QR payload"""
    asset_id: str
    name: str
    category: str = "unknown"
    url: str = ""

    class Config:
        frozen = True


class QRPayload(BaseModel):
    """
    Wire envelope. Field order is the serialization order:
    {"type":"asset","id":...,"name":...,"category":...,"url":...,"timestamp":...}
    """
    type: Literal["asset"] = PAYLOAD_TYPE
    id: str
    name: str
    category: str
    url: str
    timestamp: str


class QRCodeOptions(BaseModel):
    """Render options; unset fields fall back to configured defaults"""
    size: Optional[int] = Field(default=None, ge=50, le=2000, description="Image width/height in pixels")
    margin: Optional[int] = Field(default=None, ge=0, le=20, description="Quiet zone in modules")
    dark: str = Field(default="#000000", pattern=r"^#([0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$")
    light: str = Field(default="#FFFFFF", pattern=r"^#([0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$")
    error_correction: Optional[ErrorCorrectionLevel] = None


# ────────────────────────────────────────────
# Results
# ────────────────────────────────────────────

class BulkQRResult(BaseModel):
    """One item of a bulk encode, in input order"""
    asset_id: str
    success: bool
    qr_code: str = ""
    error: Optional[str] = None


class QRGenerationResult(BaseModel):
    """Outcome of generating and persisting one asset's QR code"""
    asset_id: str
    success: bool
    qr_code: Optional[str] = None
    asset_url: Optional[str] = None
    kind: Optional[QRErrorKind] = None
    error: Optional[str] = None


class QRLookupResult(BaseModel):
    """
    Outcome of resolving scanned text.
    asset is the store's current record; qr_data is only what the code
    claimed when it was printed.
    """
    success: bool
    asset: Optional[AssetRecord] = None
    qr_data: Optional[AssetIdentity] = None
    kind: Optional[QRErrorKind] = None
    error: Optional[str] = None


# ────────────────────────────────────────────
# Request / Response Schemas
# ────────────────────────────────────────────

class QRGenerateRequest(BaseModel):
    """Optional render options for single generation"""
    options: Optional[QRCodeOptions] = None


class QRBulkRequest(BaseModel):
    """Generate QR codes for several assets"""
    asset_ids: List[str] = Field(..., min_length=1)
    options: Optional[QRCodeOptions] = None

    class Config:
        json_schema_extra = {
            "example": {"asset_ids": ["AST-001", "AST-002"]}
        }


class QRBulkResponse(BaseModel):
    """Per-item results in request order"""
    total: int
    succeeded: int
    failed: int
    results: List[QRGenerationResult]


class QRDataRequest(BaseModel):
    """Raw text decoded from a QR image"""
    data: str = Field(..., max_length=8000)


class QRParseResponse(BaseModel):
    valid: bool
    qr_data: Optional[AssetIdentity] = None
