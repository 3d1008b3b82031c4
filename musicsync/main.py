from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from musicsync.api.v1 import room, websocket
from musicsync.config import get_settings
from musicsync.core.logging import setup_logging, get_logger
from musicsync.schemas.health import HealthResponse

# Configure logging before anything else
setup_logging()
logger = get_logger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Application startup ({settings.environment}), allowed origins: {settings.allowed_cors_origins}")

    yield

    # Rooms are in-memory only and do not outlive the process
    logger.info("Application shutdown: live rooms are discarded")


app = FastAPI(
    title="MusicSync Server",
    description="Shared chat and synchronized playback rooms",
    version="1.0.0",
    debug=settings.debug,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan
)

# CORS middleware for the browser client
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# Include routers
app.include_router(room.router, prefix=f"{settings.api_v1_prefix}/rooms", tags=["Rooms"])
app.include_router(websocket.router, tags=["WebSocket"])


@app.get("/")
async def root():
    return {"message": "Welcome to MusicSync Server!", "status": "running"}


@app.get("/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(status="OK", timestamp=datetime.now(timezone.utc))
