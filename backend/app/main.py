"""
Sakina Payments — FastAPI Application Entry Point

Aggregates all routers, configures middleware and error rendering,
and initializes the database on startup.
"""
import time

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.config import get_settings
from app.logging_config import configure_logging, mask

settings = get_settings()
# Module-level loggers bind on import, so configure before loading services
configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)

from app.database import init_db, SessionLocal  # noqa: E402
from app.exceptions import PaymentError  # noqa: E402
from app.routes import payment_router, admin_router, notification_router  # noqa: E402

logger = structlog.get_logger().bind(component="api")

# ─── Application Instance ───────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=(
        "Storefront payment lifecycle against Alif Bank: payment initiation, "
        "gateway callback reconciliation, confirmed-order creation and staff SMS."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
)

# ─── Startup ─────────────────────────────────────────────────────────
BOOT_TIME = time.time()


@app.on_event("startup")
def on_startup():
    """Initialize database tables and log boot info."""
    init_db()
    logger.info(
        "startup",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        merchant_id=mask(settings.ALIF_MERCHANT_ID),
        secret_key="SET" if settings.ALIF_SECRET_KEY else "MISSING",
        gateway=settings.ALIF_API_URL,
        callback_url=settings.callback_url,
        require_callback_token=settings.ALIF_REQUIRE_CALLBACK_TOKEN,
        sms_api_key="SET" if settings.SMS_API_KEY else "MISSING",
        debug=settings.DEBUG,
    )


# ─── Middleware ──────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every API request with timing."""
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 1)

    if request.url.path.startswith("/api"):
        logger.info(
            "request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=duration,
        )

    return response


# ─── Error Rendering ─────────────────────────────────────────────────
@app.exception_handler(PaymentError)
async def payment_error_handler(request: Request, exc: PaymentError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"success": False, "error": "Invalid request body", "detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error", path=request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


# ─── API Routers ─────────────────────────────────────────────────────
app.include_router(payment_router)
app.include_router(notification_router)
app.include_router(admin_router)


@app.get("/health", tags=["Health"])
def deep_health():
    """Detailed health check including dependency statuses."""
    db_ok = False
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except Exception as exc:
        logger.warning("health_db_unavailable", error=str(exc))
    finally:
        db.close()

    return {
        "status": "healthy" if db_ok else "degraded",
        "database": "connected" if db_ok else "disconnected",
        "gateway_configured": bool(settings.ALIF_MERCHANT_ID and settings.ALIF_SECRET_KEY),
        "sms_configured": bool(settings.SMS_API_KEY),
        "uptime_seconds": round(time.time() - BOOT_TIME, 1),
        "version": settings.APP_VERSION,
    }
