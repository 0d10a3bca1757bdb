from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from contextlib import asynccontextmanager
from slowapi.errors import RateLimitExceeded
import logging
import time
import uuid

from .config import settings
from .database import create_tables, SessionLocal
from .utils.logging_config import setup_logging, get_logger, set_request_context, clear_request_context
from .utils.rate_limiter import limiter

from .routers import catalog, extranet_prices, rate_plans, room_types, inventory, health

setup_logging(level=settings.log_level, json_format=settings.log_json)
logger = get_logger("extranet")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    print("🚀 Starting extranet pricing service...")
    print(f"📍 Environment: {settings.environment}")
    print(f"🗓️  Write window: today-{settings.write_window_past_days}d .. today+{settings.write_window_future_days}d ({settings.pricing_timezone})")

    create_tables()

    if settings.seed_demo_data:
        from .seed import seed_demo_property
        db = SessionLocal()
        try:
            seed_demo_property(db)
        finally:
            db.close()

    if not settings.extranet_write_token:
        print("⚠️  EXTRANET_WRITE_TOKEN not set, all partner writes will be refused")

    print("✅ Database ready")
    yield
    print("👋 Shutting down extranet pricing service...")


app = FastAPI(
    title="Extranet Pricing API",
    description="Hotel extranet: partner price management and catalog price reads",
    version="1.0.0",
    lifespan=lifespan
)

# Rate limiter state
app.state.limiter = limiter


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


# Request ID Middleware
class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4())[:8])
        request.state.request_id = request_id
        set_request_context(request_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            logger.api_request(
                request.method, request.url.path, response.status_code,
                round((time.perf_counter() - start) * 1000, 2)
            )
            return response
        finally:
            clear_request_context()


app.add_middleware(RequestIdMiddleware)


# Rate limit handler
@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests, try again later"}
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logging.getLogger("extranet").exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Include routers
app.include_router(health.router)
app.include_router(catalog.router)
app.include_router(extranet_prices.router)
app.include_router(rate_plans.router)
app.include_router(room_types.router)
app.include_router(inventory.router)


@app.get("/")
async def root():
    return {
        "message": "Extranet Pricing API",
        "version": "1.0.0",
        "docs": "/docs",
        "status": "running"
    }
