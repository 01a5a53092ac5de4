# assettrack/core/config.py
"""
Application configuration - loads from environment variables.
Module constants hold the environment defaults; Settings carries the
values an app instance actually runs with.
"""
import os
from typing import Optional
from urllib.parse import quote_plus
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables FIRST
BASE_DIR = Path(__file__).resolve().parent.parent.parent
env_path = BASE_DIR / '.env'
load_dotenv(dotenv_path=env_path)

# ────────────────────────────────────────────
# Application
# ────────────────────────────────────────────
APP_NAME: str = os.getenv("APP_NAME", "assettrack")
APP_BASE_URL: str = os.getenv("APP_BASE_URL", "http://localhost:3000")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR: str = os.getenv("LOG_DIR", str(BASE_DIR / "logs"))

# ────────────────────────────────────────────
# QR Code Defaults
# ────────────────────────────────────────────
QR_DEFAULT_SIZE: int = int(os.getenv("QR_DEFAULT_SIZE", "200"))
QR_DEFAULT_MARGIN: int = int(os.getenv("QR_DEFAULT_MARGIN", "2"))
QR_DEFAULT_ERROR_CORRECTION: str = os.getenv("QR_DEFAULT_ERROR_CORRECTION", "M").upper()
QR_BULK_MAX_WORKERS: int = int(os.getenv("QR_BULK_MAX_WORKERS", "8"))
QR_BULK_MAX_ITEMS: int = int(os.getenv("QR_BULK_MAX_ITEMS", "200"))

# ────────────────────────────────────────────
# Database Configuration
# ────────────────────────────────────────────
DB_USER = os.getenv("DB_USER", "postgres")
DB_PASSWORD = os.getenv("DB_PASSWORD", "")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME", "assettrack_db")
DATABASE_URL = os.getenv("DATABASE_URL")

# Build DATABASE_URL
if not DATABASE_URL:
    encoded_password = quote_plus(DB_PASSWORD)
    DATABASE_URL = f"postgresql://{DB_USER}:{encoded_password}@{DB_HOST}:{DB_PORT}/{DB_NAME}"

# ────────────────────────────────────────────
# JWT Configuration
# ────────────────────────────────────────────
JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "")
JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")

if not JWT_SECRET_KEY:
    import warnings
    warnings.warn("JWT_SECRET_KEY not set!")

# ────────────────────────────────────────────
# CORS
# ────────────────────────────────────────────
ALLOWED_ORIGINS = [
    o.strip()
    for o in os.getenv("API_CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if o.strip()
]


# ────────────────────────────────────────────
# Settings Class
# ────────────────────────────────────────────
class Settings:
    """
    Runtime settings for one application instance.

    Defaults come from the environment; any field can be overridden by
    keyword, which is how tests build isolated apps:

        Settings(database_url="sqlite://", jwt_secret_key="test")
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        app_base_url: Optional[str] = None,
        jwt_secret_key: Optional[str] = None,
        jwt_algorithm: Optional[str] = None,
        log_level: Optional[str] = None,
        log_dir: Optional[str] = None,
        qr_default_size: Optional[int] = None,
        qr_default_margin: Optional[int] = None,
        qr_default_error_correction: Optional[str] = None,
        qr_bulk_max_workers: Optional[int] = None,
        qr_bulk_max_items: Optional[int] = None,
        allowed_origins: Optional[list] = None,
    ):
        self.DATABASE_URL: str = database_url or DATABASE_URL
        self.APP_BASE_URL: str = (app_base_url or APP_BASE_URL).rstrip("/")
        self.JWT_SECRET_KEY: str = jwt_secret_key if jwt_secret_key is not None else JWT_SECRET_KEY
        self.JWT_ALGORITHM: str = jwt_algorithm or JWT_ALGORITHM
        self.LOG_LEVEL: str = log_level or LOG_LEVEL
        self.LOG_DIR: str = log_dir or LOG_DIR
        self.QR_DEFAULT_SIZE: int = qr_default_size or QR_DEFAULT_SIZE
        self.QR_DEFAULT_MARGIN: int = qr_default_margin if qr_default_margin is not None else QR_DEFAULT_MARGIN
        self.QR_DEFAULT_ERROR_CORRECTION: str = (qr_default_error_correction or QR_DEFAULT_ERROR_CORRECTION).upper()
        self.QR_BULK_MAX_WORKERS: int = qr_bulk_max_workers or QR_BULK_MAX_WORKERS
        self.QR_BULK_MAX_ITEMS: int = qr_bulk_max_items or QR_BULK_MAX_ITEMS
        self.ALLOWED_ORIGINS: list = allowed_origins if allowed_origins is not None else list(ALLOWED_ORIGINS)

    def asset_url(self, asset_id: str) -> str:
        """Canonical deep link to an asset's detail view"""
        return f"{self.APP_BASE_URL}/asset/{asset_id}"
