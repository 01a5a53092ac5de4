# assettrack/api/deps.py
"""
API dependencies for authentication, settings and service wiring.
Everything is read from app.state, which the app factory populates.
"""
from typing import Optional, Dict, Any
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from assettrack.core.config import Settings
from assettrack.core.jwt_auth import JWTAuth
from assettrack.db.session import get_db
from assettrack.services.asset_store import AssetStore, SqlAlchemyAssetStore
from assettrack.services.qr_service import FrameDecoder, QRCodeService

# Security scheme (auto_error off so we control the 401 message)
security = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


# ────────────────────────────────────────────
# Authentication
# ────────────────────────────────────────────

async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Dict[str, Any]:
    """
    Require a valid Bearer token.

    Returns user info dict with user_id, email and the raw payload.
    """
    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="You must be logged in",
            headers={"WWW-Authenticate": "Bearer"},
        )

    auth: JWTAuth = request.app.state.jwt_auth
    payload = auth.decode_token(credentials.credentials)
    user_id = JWTAuth.get_user_id(payload)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token does not identify a user",
        )

    return {
        "user_id": user_id,
        "email": JWTAuth.get_email(payload),
        "payload": payload,
    }


# ────────────────────────────────────────────
# Services
# ────────────────────────────────────────────

def get_asset_store(db: Session = Depends(get_db)) -> AssetStore:
    """Request-scoped record store; tests override this dependency"""
    return SqlAlchemyAssetStore(db)


def get_qr_service(
    request: Request,
    store: AssetStore = Depends(get_asset_store),
    settings: Settings = Depends(get_settings),
) -> QRCodeService:
    return QRCodeService(store, settings, renderer=request.app.state.qr_renderer)


def get_frame_decoder(request: Request) -> Optional[FrameDecoder]:
    return request.app.state.frame_decoder
