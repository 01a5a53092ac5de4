# assettrack/api/v1/router.py
"""Main API router combining all v1 endpoints"""
from fastapi import APIRouter

from assettrack.api.v1 import assets, auth, qr_codes

api_router = APIRouter()

# Include all routers
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(assets.router, prefix="/assets", tags=["Assets"])
api_router.include_router(qr_codes.router, prefix="/qr-codes", tags=["QR Codes"])
