# assettrack/core/logging_config.py
"""
Logging configuration for assettrack.
Console output plus rotating log files, with a dedicated file for QR
generation and lookup traffic.
"""
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Union

from assettrack.core.config import LOG_DIR

QR_LOGGER_NAME = "qr_api"


class ColoredFormatter(logging.Formatter):
    """Colored console formatter for better readability"""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'
    }

    def format(self, record):
        # Work on a copy so file handlers still see the plain level name
        record = logging.makeLogRecord(record.__dict__)
        log_color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        record.levelname = f"{log_color}{record.levelname}{self.COLORS['RESET']}"
        return super().format(record)


def setup_logging(
    app_name: str = "assettrack",
    level: str = "INFO",
    log_dir: Optional[Union[str, Path]] = None,
):
    """
    Setup logging with console and file handlers.

    Creates three log files under log_dir:
    - error.log: Only ERROR and CRITICAL messages
    - debug.log: All DEBUG and above messages
    - qr_api.log: QR generation / lookup operations
    """
    logs_dir = Path(log_dir or LOG_DIR)
    logs_dir.mkdir(parents=True, exist_ok=True)

    error_log_file = logs_dir / "error.log"
    debug_log_file = logs_dir / "debug.log"
    qr_log_file = logs_dir / "qr_api.log"

    # Root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # ═══════════════════════════════════════════════════════════
    # Console Handler - with colors
    # ═══════════════════════════════════════════════════════════
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
    console_handler.setFormatter(ColoredFormatter('%(levelname)s | %(name)s | %(message)s'))
    root_logger.addHandler(console_handler)

    # ═══════════════════════════════════════════════════════════
    # ERROR Log File - Rotating, only errors
    # ═══════════════════════════════════════════════════════════
    error_handler = logging.handlers.RotatingFileHandler(
        error_log_file,
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
        encoding='utf-8'
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)s | %(name)s | %(filename)s:%(lineno)d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    root_logger.addHandler(error_handler)

    # ═══════════════════════════════════════════════════════════
    # DEBUG Log File - Rotating, all messages
    # ═══════════════════════════════════════════════════════════
    debug_handler = logging.handlers.RotatingFileHandler(
        debug_log_file,
        maxBytes=20 * 1024 * 1024,  # 20 MB
        backupCount=5,
        encoding='utf-8'
    )
    debug_handler.setLevel(logging.DEBUG)
    debug_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(name)-30s | %(filename)s:%(lineno)d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    root_logger.addHandler(debug_handler)

    # ═══════════════════════════════════════════════════════════
    # QR API Log File - generation and lookup traffic
    # ═══════════════════════════════════════════════════════════
    qr_handler = logging.handlers.RotatingFileHandler(
        qr_log_file,
        maxBytes=20 * 1024 * 1024,  # 20 MB
        backupCount=5,
        encoding='utf-8'
    )
    qr_handler.setLevel(logging.DEBUG)
    qr_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))

    qr_logger = get_qr_logger()
    for handler in qr_logger.handlers[:]:
        qr_logger.removeHandler(handler)
    qr_logger.addHandler(qr_handler)
    qr_logger.setLevel(logging.DEBUG)
    qr_logger.propagate = True  # Also send to root handlers

    logger = logging.getLogger(__name__)
    logger.info(f"{'='*60}")
    logger.info(f"Logging initialized for {app_name}")
    logger.info(f"Log directory: {logs_dir}")
    logger.info(f"{'='*60}")

    return root_logger


def get_qr_logger():
    """Get logger specifically for QR code operations"""
    return logging.getLogger(QR_LOGGER_NAME)
