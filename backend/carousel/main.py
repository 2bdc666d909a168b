"""FastAPI app with the carousel API routes"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from carousel.config import get_settings
from carousel.routes import router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Check assets on startup."""
    logger.info(f"Starting {settings.app_name}...")
    if not Path(settings.fonts_path).exists():
        logger.warning(f"Fonts not found at {settings.fonts_path}, run setup_assets.py; using default font")
    Path(settings.output_dir).mkdir(parents=True, exist_ok=True)

    yield

    logger.info("Shutting down...")


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api")
