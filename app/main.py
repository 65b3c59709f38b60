# app/main.py
"""
FastAPI application entry point.
Includes security middleware, global error handlers, and all routers.
The reservation coordinator and credential store are created once here and
shared by every request through app.state.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from app.routers import vehicles, trips, bookings, password_reset, health
from app.database import create_tables
from app.config import settings
from app.services.credential_store import EphemeralCredentialStore
from app.services.reservation_service import ReservationCoordinator
from app.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Vehicle scheduling, seat admission control and reset credentials.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.state.coordinator = ReservationCoordinator()
app.state.credentials = EphemeralCredentialStore()

# ── CORS ─────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to dashboard origin in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key auth for everything except health and docs.
    Set API_KEY in .env. Leave empty to disable auth.
    """
    async def dispatch(self, request: Request, call_next):
        open_paths = {"/api/v1/health", "/docs", "/redoc", "/openapi.json"}
        if request.url.path in open_paths or not settings.API_KEY:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


if settings.API_KEY:
    app.add_middleware(APIKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(vehicles.router,       prefix="/api/v1", tags=["Vehicles"])
app.include_router(trips.router,          prefix="/api/v1", tags=["Trips"])
app.include_router(bookings.router,       prefix="/api/v1", tags=["Bookings"])
app.include_router(password_reset.router, prefix="/api/v1", tags=["Password reset"])
app.include_router(health.router,         prefix="/api/v1", tags=["Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info(f"{settings.APP_NAME} starting up...")
    create_tables()
    logger.info("Database tables ready")
    logger.info(f"Reset credentials valid for {settings.RESET_TOKEN_VALIDITY_MINUTES} min")
    logger.info(f"Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")


@app.on_event("shutdown")
async def shutdown():
    logger.info(f"{settings.APP_NAME} shutting down...")
