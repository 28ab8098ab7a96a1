"""
Perception Backend: FastAPI Server

This is the HTTP front for MeaningMaker that:
1. Loads artifacts embedded in the configured host page on startup
2. Indexes HTML pages and JSON-LD artifact sitemaps on request
3. Turns marker / image / geolocation events into found / lost deltas
4. Enriches found content with metadata from the pages it links to
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pythonjsonlogger import jsonlogger

from .meaning_maker import MeaningMaker
from .routes import get_meaning_maker, router as detection_router, set_meaning_maker
from .settings import VERSION, Settings, get_settings

# ============================================================================
# LOGGING CONFIGURATION
# ============================================================================

class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for different log levels."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'
    BOLD = '\033[1m'

    def format(self, record):
        # Work on a copy so other handlers see the uncoloured record
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{color}{self.BOLD}{record.levelname}{self.RESET}"
        record.msg = f"{color}{record.getMessage()}{self.RESET}"
        record.args = None
        return super().format(record)


def setup_logging(log_file: Optional[str] = None):
    """Setup console and JSON file logging for the service and the perception_backend package."""

    logger = logging.getLogger("perception-backend")
    package_logger = logging.getLogger("perception_backend")

    for lg in (logger, package_logger):
        lg.setLevel(logging.DEBUG)
        lg.handlers = []

    # Console handler with colors for readability during development
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(ColoredFormatter(
        '%(asctime)s | %(levelname)s | [%(name)s] %(message)s',
        datefmt='%H:%M:%S'
    ))
    handlers = [console_handler]

    # Rotating file handler for structured JSON logs
    # Rotates daily, keeps 7 days of logs.
    if log_file:
        file_handler = TimedRotatingFileHandler(
            log_file, when="midnight", interval=1, backupCount=7, encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(jsonlogger.JsonFormatter(
            '%(asctime)s %(name)s %(levelname)s %(message)s %(lineno)d %(funcName)s',
            rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
        ))
        handlers.append(file_handler)

    for lg in (logger, package_logger):
        for handler in handlers:
            lg.addHandler(handler)

    return logger


logger = setup_logging(get_settings().log_file)


# ============================================================================
# FASTAPI APPLICATION
# ============================================================================

def create_app(settings: Optional[Settings] = None, maker: Optional[MeaningMaker] = None) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        settings: Configuration (defaults to the environment)
        maker: Pre-built MeaningMaker; when given it is used as-is and not closed on shutdown
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("=" * 60)
        logger.info("  PERCEPTION BACKEND STARTING")
        logger.info("=" * 60)

        owned = maker is None
        active = maker or MeaningMaker(settings=settings)
        set_meaning_maker(active)
        if owned:
            artifacts = await active.init()
            logger.info(f"Host page artifacts: {len(artifacts)}")
        logger.info(f"Origin: {settings.origin or '(none, on-demand fetching disabled by default)'}")
        logger.info("Waiting for detection events...")
        try:
            yield
        finally:
            set_meaning_maker(None)
            if owned:
                await active.aclose()
            logger.info("=" * 60)
            logger.info("  PERCEPTION BACKEND SHUTTING DOWN")
            logger.info("=" * 60)

    app = FastAPI(
        title="Perception Backend",
        description="Turns marker, image and geolocation detections into artifact content",
        version=VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(detection_router)

    @app.get("/")
    async def root():
        """Service status."""
        return {
            "service": "Perception Backend",
            "status": "running",
            "version": VERSION,
            "origin": settings.origin or None,
        }

    @app.get("/health")
    async def health():
        return {"status": "healthy", "timestamp": datetime.now().isoformat()}

    @app.get("/stats")
    async def stats():
        """MeaningMaker statistics (catalog size, cache and fetch counters)."""
        return get_meaning_maker().stats()

    return app


app = create_app()
