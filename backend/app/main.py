import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.photo_edit import router as photo_edit_router
from app.core.config import get_settings
from app.core.dependencies import engine
from app.models.audit import Base
from app.services.ai.common.errors import AIResponseError, ImagePayloadError
from app.utils.rate_limit import get_client_ip, rate_limiter

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(_app: FastAPI):
    if engine is not None:
        Base.metadata.create_all(engine)
        logger.info("Audit tables ready")
    yield


app = FastAPI(
    title="Photo Studio AI API",
    version="0.4.0",
    docs_url="/docs" if settings.docs_enabled else None,
    openapi_url="/openapi.json" if settings.openapi_enabled else None,
    lifespan=_lifespan,
)


if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

app.include_router(photo_edit_router, prefix="/api/v1", tags=["photo-edit"])


@app.get("/health")
def health():
    return {"status": "ok"}


@app.exception_handler(AIResponseError)
async def _ai_response_error_handler(request: Request, exc: AIResponseError):
    return JSONResponse(status_code=422, content={"error": exc.kind, "detail": exc.message})


@app.exception_handler(ImagePayloadError)
async def _image_payload_error_handler(request: Request, exc: ImagePayloadError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(httpx.HTTPError)
async def _upstream_error_handler(request: Request, exc: httpx.HTTPError):
    logger.warning("Upstream image service call failed: %s", exc)
    detail = "Image service is unavailable, please try again"
    if get_settings().expose_error_details:
        detail = str(exc)
    return JSONResponse(status_code=502, content={"detail": detail})


@app.exception_handler(StarletteHTTPException)
async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Hide internal details for 5xx unless explicitly enabled.
    if exc.status_code >= 500 and not get_settings().expose_error_details:
        return JSONResponse(status_code=exc.status_code, content={"detail": "Internal server error"})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception")
    if get_settings().expose_error_details:
        return JSONResponse(status_code=500, content={"detail": str(exc)})
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.middleware("http")
async def ai_rate_limit_middleware(request: Request, call_next):
    if request.method != "POST" or not request.url.path.startswith("/api/v1/images"):
        return await call_next(request)

    current = get_settings()
    if not current.rate_limit_ai_enabled:
        return await call_next(request)

    ip = get_client_ip(request) or "unknown"
    allowed, _ = rate_limiter.allow(f"ai:ip:{ip}", current.rate_limit_ai_per_min, 60)
    if not allowed:
        logger.warning("AI rate limit exceeded for %s", ip)
        return JSONResponse(status_code=429, content={"detail": "Too many requests, slow down"})
    return await call_next(request)
