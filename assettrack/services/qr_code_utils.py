# assettrack/services/qr_code_utils.py
"""
Asset QR code encoding and parsing.

generate_asset_qr() serializes an asset's identity into the "asset"
envelope and renders it as a PNG data URI; parse_qr_data() turns scanned
text back into an AssetIdentity. Neither touches the record store.
"""
from __future__ import annotations
import base64
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from io import BytesIO
from typing import Callable, List, Optional, Protocol, Sequence

import qrcode
from qrcode.constants import ERROR_CORRECT_H, ERROR_CORRECT_L, ERROR_CORRECT_M, ERROR_CORRECT_Q
from qrcode.exceptions import DataOverflowError
from qrcode.image.pil import PilImage
from PIL import Image

from assettrack.schemas.qr_code import (
    PAYLOAD_TYPE, AssetIdentity, BulkQRResult, ErrorCorrectionLevel, QRCodeOptions, QRPayload
)

log = logging.getLogger("assettrack.qr_code_utils")

DATA_URI_PREFIX = "data:image/png;base64,"
FALLBACK_SCALE = 4

ERROR_CORRECTION = {
    ErrorCorrectionLevel.L: ERROR_CORRECT_L,
    ErrorCorrectionLevel.M: ERROR_CORRECT_M,
    ErrorCorrectionLevel.Q: ERROR_CORRECT_Q,
    ErrorCorrectionLevel.H: ERROR_CORRECT_H,
}


class EncodingFailure(Exception):
    """The identity could not be turned into a QR image"""


class InvalidIdentity(EncodingFailure):
    """Identity lacks asset_id or name"""


# ────────────────────────────────────────────
# Render Options
# ────────────────────────────────────────────

class RenderOptions:
    """Fully resolved render parameters"""

    def __init__(
        self,
        size: int = 200,
        margin: int = 2,
        dark: str = "#000000",
        light: str = "#FFFFFF",
        error_correction: ErrorCorrectionLevel = ErrorCorrectionLevel.M,
    ):
        self.size = size
        self.margin = margin
        self.dark = dark
        self.light = light
        self.error_correction = ErrorCorrectionLevel(error_correction)

    @classmethod
    def resolve(
        cls,
        options: Optional[QRCodeOptions] = None,
        defaults: Optional["RenderOptions"] = None,
    ) -> "RenderOptions":
        """Overlay request options on defaults"""
        base = defaults or cls()
        if options is None:
            return base
        return cls(
            size=options.size or base.size,
            margin=options.margin if options.margin is not None else base.margin,
            dark=options.dark,
            light=options.light,
            error_correction=options.error_correction or base.error_correction,
        )

    def __repr__(self):
        return (
            f"<RenderOptions {self.size}px margin={self.margin} "
            f"{self.dark}/{self.light} ec={self.error_correction.value}>"
        )


# ────────────────────────────────────────────
# Renderer
# ────────────────────────────────────────────

class QRRenderer(Protocol):
    def render(self, text: str, options: RenderOptions) -> str:
        """Render text as an image reference (data URI)"""
        ...


class PillowQRRenderer:
    """Renders PNG data URIs with the qrcode library"""

    def render(self, text: str, options: RenderOptions) -> str:
        qr = qrcode.QRCode(
            version=None,
            error_correction=ERROR_CORRECTION[options.error_correction],
            box_size=1,
            border=options.margin,
        )
        qr.add_data(text)
        qr.make(fit=True)

        # Scale so the whole symbol (quiet zone included) fills size pixels.
        # Too small a size never drops modules: the symbol keeps FALLBACK_SCALE
        # and comes out larger than requested.
        modules = qr.modules_count + 2 * options.margin
        qr.box_size = options.size // modules or FALLBACK_SCALE

        img = qr.make_image(
            image_factory=PilImage, fill_color=options.dark, back_color=options.light
        ).get_image()
        if img.size[0] < options.size:
            img = img.resize((options.size, options.size), Image.NEAREST)

        buffer = BytesIO()
        img.save(buffer, format="PNG")
        return DATA_URI_PREFIX + base64.b64encode(buffer.getvalue()).decode()


def decode_data_uri(data_uri: str) -> bytes:
    """PNG bytes of a data URI produced by PillowQRRenderer"""
    if not data_uri.startswith(DATA_URI_PREFIX):
        raise ValueError("Not a PNG data URI")
    return base64.b64decode(data_uri[len(DATA_URI_PREFIX):])


# ────────────────────────────────────────────
# Payload
# ────────────────────────────────────────────

def _iso_timestamp(now: datetime) -> str:
    now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def build_payload(identity: AssetIdentity, now: Optional[datetime] = None) -> QRPayload:
    if not identity.asset_id or not identity.name:
        raise InvalidIdentity("Asset identity requires a non-empty asset_id and name")
    return QRPayload(
        type=PAYLOAD_TYPE,
        id=identity.asset_id,
        name=identity.name,
        category=identity.category,
        url=identity.url,
        timestamp=_iso_timestamp(now or datetime.now(timezone.utc)),
    )


def serialize_payload(payload: QRPayload) -> str:
    """Compact JSON in declared field order; non-ASCII kept verbatim"""
    return json.dumps(payload.model_dump(), separators=(",", ":"), ensure_ascii=False)


# ────────────────────────────────────────────
# Encoder
# ────────────────────────────────────────────

def generate_asset_qr(
    identity: AssetIdentity,
    options: Optional[RenderOptions] = None,
    renderer: Optional[QRRenderer] = None,
    clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
) -> str:
    """
    Render an asset's identity as a QR image.

    Returns:
        The renderer's image reference (PNG data URI by default)

    Raises:
        EncodingFailure: invalid identity, payload too large for the
            error-correction level, or any renderer error
    """
    options = options or RenderOptions()
    renderer = renderer or PillowQRRenderer()

    text = serialize_payload(build_payload(identity, clock()))
    try:
        return renderer.render(text, options)
    except DataOverflowError as e:
        raise EncodingFailure(
            f"Payload of {len(text.encode('utf-8'))} bytes exceeds QR capacity "
            f"at error correction {options.error_correction.value}"
        ) from e
    except Exception as e:
        raise EncodingFailure(f"Failed to generate QR code: {e}") from e


def generate_bulk_qr_codes(
    identities: Sequence[AssetIdentity],
    options: Optional[RenderOptions] = None,
    renderer: Optional[QRRenderer] = None,
    max_workers: int = 8,
) -> List[BulkQRResult]:
    """
    Encode every identity independently on a thread pool.

    All items run to completion; a failure is reported on its own
    result. Results follow input order.
    """
    if not identities:
        return []

    renderer = renderer or PillowQRRenderer()
    workers = max(1, min(max_workers, len(identities)))

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="qr-bulk") as pool:
        futures = [
            pool.submit(generate_asset_qr, identity, options, renderer)
            for identity in identities
        ]

    results = []
    for identity, future in zip(identities, futures):
        try:
            results.append(BulkQRResult(asset_id=identity.asset_id, success=True, qr_code=future.result()))
        except Exception as e:
            log.warning(f"Bulk QR item {identity.asset_id!r} failed: {e}")
            results.append(BulkQRResult(asset_id=identity.asset_id, success=False, error=str(e)))
    return results


# ────────────────────────────────────────────
# Decoder
# ────────────────────────────────────────────

def parse_qr_data(raw: str) -> Optional[AssetIdentity]:
    """
    Parse scanned text into an AssetIdentity.

    Foreign or malformed codes are expected input: anything that is not
    an "asset" envelope with a non-empty id and name yields None.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError, RecursionError):
        return None

    if not isinstance(data, dict) or data.get("type") != PAYLOAD_TYPE:
        return None

    asset_id = data.get("id")
    name = data.get("name")
    if not isinstance(asset_id, str) or not asset_id or not isinstance(name, str) or not name:
        return None

    category = data.get("category")
    url = data.get("url")
    return AssetIdentity(
        asset_id=asset_id,
        name=name,
        category=category if isinstance(category, str) and category else "unknown",
        url=url if isinstance(url, str) and url else "",
    )
