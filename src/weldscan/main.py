"""WeldScan – FastAPI application entry-point."""

from contextlib import asynccontextmanager
import logging
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.cors import CORSMiddleware

from src.weldscan.config import IMAGE_DIR, STATIC_DIR, settings
from src.weldscan.router import health, inspection, proxy
from src.weldscan.services.analysis_service import AnalysisSession
from src.weldscan.services.camera_service import CameraSession, OpenCVMediaDevices
from src.weldscan.services.image_store import TemporaryImageStore
from src.weldscan.services.station import InspectionStation

# Configure logging from settings
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def build_station() -> InspectionStation:
    return InspectionStation(
        images=TemporaryImageStore(IMAGE_DIR),
        camera=CameraSession(
            OpenCVMediaDevices(settings.camera_indices),
            jpeg_quality=settings.capture_jpeg_quality,
        ),
        analysis=AnalysisSession(),
    )


# ──────────────────────────────────────────────
# Lifespan: create the station on startup, release it on shutdown
# ──────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("🚀 Starting inspection station (upstream: %s)", settings.upstream_url)
    app.state.station = build_station()
    yield
    logger.info("🛑 Shutting down – releasing camera and images …")
    app.state.station.close()


# ──────────────────────────────────────────────
# Application factory
# ──────────────────────────────────────────────
app = FastAPI(
    title="WeldScan",
    description="Detect welding defects by relaying images to an inference service.",
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS middleware (configured from environment variables) ──
app.add_middleware(
    middleware_class=CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_methods_list,
    allow_headers=settings.cors_headers_list,
)

logger.info("CORS configured with origins: %s", settings.cors_origins_list)

# ── register routers ──
app.get("/", include_in_schema=False)(lambda: FileResponse(STATIC_DIR / "index.html"))
app.include_router(health.router)
app.include_router(proxy.router)
app.include_router(inspection.router)

# ── serve the page assets statically ──
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
