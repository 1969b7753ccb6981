# Essential imports
import asyncio
import time
import traceback
from contextlib import asynccontextmanager, suppress
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from routers import auth, cart, csrf, customers, admins, categories, products, orders

# Import all models for SQLAlchemy relationship resolution
import models  # This triggers the imports in models/__init__.py
from core.database import Base, engine

# Security middleware
from middleware import RequestIDMiddleware, get_request_id
from middleware.rate_limiter import limiter, API_LIMIT
import middleware.csrf as csrf_middleware

# Logging imports
from core.logging_config import setup_logging
from core.config import settings
from utils.logger import get_logger, log_request

# CORS imports
from fastapi.middleware.cors import CORSMiddleware

setup_logging(
    log_level=settings.LOG_LEVEL,
    log_dir=settings.LOG_DIR
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)

    sweeper = asyncio.create_task(
        csrf_middleware.csrf_guard.run_sweeper(settings.CSRF_SWEEP_INTERVAL_SECONDS)
    )
    logger.info("Application startup complete", extra={"event": "startup", "env": settings.ENV})
    yield

    sweeper.cancel()
    with suppress(asyncio.CancelledError):
        await sweeper
    logger.info("Application shutting down", extra={"event": "shutdown"})


app = FastAPI(
    title="Storefront API",
    description="Storefront and back-office API: catalogue, carts, orders, customers and admins",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)


# Middleware (the last one added runs first)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-CSRF-Token", "X-Request-ID"],
    expose_headers=["Content-Length", "X-CSRF-Token", "X-Request-ID", "Retry-After"],
)

app.middleware("http")(limiter.middleware(API_LIMIT))


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    log_request(
        logger,
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=(time.time() - start_time) * 1000,
        client_ip=request.client.host if request.client else None
    )

    return response


app.add_middleware(RequestIDMiddleware)


# Error responses are always {"error": ...}
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {"error": exc.detail}

    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", "Invalid value")
        }
        for error in exc.errors()
    ]

    logger.info(
        "Request validation failed",
        extra={"path": request.url.path, "method": request.method, "errors": details}
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation failed", "details": details}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled exception: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "request_id": get_request_id(request)
        },
        exc_info=True
    )

    content = {"error": "Internal server error"}
    if settings.ENV == "development":
        content["stack"] = traceback.format_exception(type(exc), exc, exc.__traceback__)

    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


# Health check
@app.get("/health")
async def health_check():
    logger.debug("Health check requested")
    return {"status": "Healthy"}


# Including routers
app.include_router(auth.router)
app.include_router(csrf.router)
app.include_router(cart.router)
app.include_router(customers.router)
app.include_router(admins.router)
app.include_router(categories.router)
app.include_router(products.router)
app.include_router(orders.router)
