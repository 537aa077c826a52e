from fastapi import FastAPI, Depends, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from ..config.settings import Settings, get_settings
from ..exceptions import ConfigurationError, FoodScanError, InternalServerError, RateLimitExceeded
from ..models.scan import ImageSubmission
from ..services.rate_limiter import RateLimiter
from ..services.scan_service import FoodScanService
from .cors import (
    HEALTH_METHODS,
    SCAN_METHODS,
    cors_headers,
    error_response,
    method_not_allowed,
    preflight_response,
)
from .dependencies import get_client_id, get_rate_limiter, get_scan_service

_settings = get_settings()
logging.basicConfig(level=_settings.LOG_LEVEL.upper())
logger = logging.getLogger(__name__)

HEALTH_PATH = "/api/food-scan/health"
SCAN_PATH = "/api/food-scan"

# Create FastAPI app
app = FastAPI(
    title=_settings.APP_NAME,
    description=_settings.APP_DESCRIPTION,
    version=_settings.APP_VERSION
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Routing errors (405 for any unserved method, 404) still carry the CORS headers"""
    settings = request.app.dependency_overrides.get(get_settings, get_settings)()
    methods = HEALTH_METHODS if request.url.path == HEALTH_PATH else SCAN_METHODS
    headers = cors_headers(settings, methods)
    if exc.status_code == 405:
        return method_not_allowed(headers, methods)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers={**headers, **(exc.headers or {})},
    )


# ------------------------------------------------------------------
# Health

@app.options(HEALTH_PATH, include_in_schema=False)
async def health_preflight(settings: Settings = Depends(get_settings)):
    return preflight_response(cors_headers(settings, HEALTH_METHODS))


@app.get(HEALTH_PATH)
async def health(settings: Settings = Depends(get_settings)):
    """Report whether the Gemini credential is configured"""
    return JSONResponse(
        content={"ok": True, "provider": "gemini", "configured": settings.is_configured},
        headers=cors_headers(settings, HEALTH_METHODS),
    )


# ------------------------------------------------------------------
# Scan

@app.options(SCAN_PATH, include_in_schema=False)
async def scan_preflight(settings: Settings = Depends(get_settings)):
    return preflight_response(cors_headers(settings, SCAN_METHODS))


@app.post(SCAN_PATH)
async def scan_food(
    request: Request,
    settings: Settings = Depends(get_settings),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    scan_service: FoodScanService = Depends(get_scan_service),
):
    """Detect food in a base64 image and return estimated nutrition"""
    headers = cors_headers(settings, SCAN_METHODS)
    try:
        if not settings.is_configured:
            raise ConfigurationError("GEMINI_API_KEY environment variable is not set")

        client_id = get_client_id(request)
        if await rate_limiter.hit(client_id):
            logger.info("Rate limit exceeded for %s", client_id)
            raise RateLimitExceeded(rate_limiter.max_requests, rate_limiter.window_seconds)

        try:
            payload = await request.json()
        except ValueError:
            payload = {}

        result = await scan_service.scan(ImageSubmission.from_payload(payload))
        return JSONResponse(content=result.to_response(), headers=headers)

    except FoodScanError as e:
        return error_response(e, headers)
    except Exception:
        logger.exception("Error processing food scan")
        return error_response(InternalServerError(), headers)

