"""
TAI Test sync backend

Receives results uploaded by devices, keeps per-user stats and the sync-event
ledger. Devices stay the source of truth; this service is a best-effort copy.
"""
from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from uuid import uuid4
import logging
import time

from tai_test.config import settings
from tai_test.database import init_db
from tai_test.api import blocks, results, stats, sync
from tai_test.schemas.question import BLOCKS
from tai_test.utils.rate_limiter import rate_limiter

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Never rate limited
UNLIMITED_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Result uploads, statistics and device sync ledger for TAI exam practice",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH"],
    allow_headers=["Authorization", "Content-Type"],
)


def error_body(error: str, message, status_code: int, detail=None) -> dict:
    body = {"error": error, "message": message, "status_code": status_code}
    if detail is not None:
        body["detail"] = detail
    return body


@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    """Reject callers over their per-minute or per-hour budget"""
    if request.url.path not in UNLIMITED_PATHS:
        try:
            await rate_limiter.check_rate_limit(request)
        except HTTPException as e:
            return JSONResponse(status_code=e.status_code, content=e.detail)
    return await call_next(request)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Tag each request with an id and log it with its timing"""
    request_id = request.headers.get("X-Request-ID") or uuid4().hex[:12]
    started = time.perf_counter()

    response = await call_next(request)

    elapsed_ms = (time.perf_counter() - started) * 1000
    response.headers["X-Request-ID"] = request_id
    logger.info(
        f"[{request_id}] {request.method} {request.url.path} "
        f"-> {response.status_code} ({elapsed_ms:.1f}ms)"
    )
    return response


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=error_body(
            "internal_server_error",
            "An unexpected error occurred. Please try again later.",
            500,
            detail=str(exc) if settings.DEBUG else None
        )
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body("http_error", exc.detail, exc.status_code)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Rejected payload on {request.url.path}: {len(exc.errors())} error(s)")
    return JSONResponse(
        status_code=422,
        content=error_body(
            "validation_error",
            "Request payload is invalid",
            422,
            detail=[{"loc": list(e["loc"]), "msg": e["msg"]} for e in exc.errors()]
        )
    )


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": time.time()
    }


@app.get("/")
async def root():
    """Service index"""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "blocks": list(BLOCKS),
        "endpoints": ["/api/blocks", "/api/tests", "/api/stats", "/api/sync/log"],
        "docs": "/docs"
    }


app.include_router(blocks.router)
app.include_router(results.router)
app.include_router(stats.router)
app.include_router(sync.router)


@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    try:
        init_db()
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        raise
    logger.info(f"Serving {len(BLOCKS)} blocks, rate limit {settings.RATE_LIMIT_PER_MINUTE}/min")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "tai_test.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
