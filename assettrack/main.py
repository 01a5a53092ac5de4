# assettrack/main.py
"""
FastAPI application factory.

All collaborators (settings, database engine, JWT validator, QR renderer,
optional frame decoder) are built here and kept on app.state; request
dependencies read them from there.

Run with:
    uvicorn assettrack.main:create_app --factory
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from assettrack.api.v1.router import api_router
from assettrack.core.config import Settings
from assettrack.core.jwt_auth import JWTAuth
from assettrack.core.logging_config import setup_logging
from assettrack.db.session import create_db_engine, create_session_factory, init_db, test_db_connection
from assettrack.services.qr_code_utils import PillowQRRenderer, QRRenderer
from assettrack.services.qr_service import FrameDecoder

log = logging.getLogger("assettrack")


@asynccontextmanager
async def lifespan(app: FastAPI):
    engine = app.state.engine
    try:
        init_db(engine)
        if test_db_connection(engine):
            log.info("✅ Database initialized")
    except Exception as e:
        log.error(f"❌ Database error: {e}")
    yield
    engine.dispose()


def create_app(
    settings: Optional[Settings] = None,
    renderer: Optional[QRRenderer] = None,
    frame_decoder: Optional[FrameDecoder] = None,
    configure_logging: bool = True,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Runtime settings (environment defaults when omitted)
        renderer: QR renderer (qrcode/Pillow PNG when omitted)
        frame_decoder: Decoder for /api/qr-codes/scan uploads; the
            endpoint answers 501 without one
        configure_logging: Install console/file log handlers
    """
    settings = settings or Settings()

    if configure_logging:
        setup_logging(level=settings.LOG_LEVEL, log_dir=settings.LOG_DIR)

    log.info("=" * 80)
    log.info("🚀 Application starting")
    log.info("=" * 80)

    app = FastAPI(
        title="AssetTrack API",
        description="Asset tracking with QR code generation and lookup",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    engine = create_db_engine(settings.DATABASE_URL)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.jwt_auth = JWTAuth(settings.JWT_SECRET_KEY, settings.JWT_ALGORITHM)
    app.state.qr_renderer = renderer or PillowQRRenderer()
    app.state.frame_decoder = frame_decoder

    # ────────────────────────────────────────────
    # CORS Configuration
    # ────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        max_age=86400,
    )

    # Include API routes
    app.include_router(api_router, prefix="/api")

    # ────────────────────────────────────────────
    # Public routes
    # ────────────────────────────────────────────

    @app.get("/healthz", tags=["System"])
    def health(request: Request):
        """Health check endpoint"""
        db_ok = test_db_connection(request.app.state.engine)
        return {
            "status": "ok" if db_ok else "degraded",
            "database_ok": db_ok,
            "jwt_enabled": bool(settings.JWT_SECRET_KEY),
            "frame_decoder": request.app.state.frame_decoder is not None,
            "app_base_url": settings.APP_BASE_URL,
        }

    # ────────────────────────────────────────────
    # Exception Handlers
    # ────────────────────────────────────────────

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        """Log unexpected errors and answer with a generic 500"""
        log.exception(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("assettrack.main:create_app", factory=True, host="0.0.0.0", port=8000)
