from typing import Dict

from fastapi import Response
from fastapi.responses import JSONResponse

from ..config.settings import Settings
from ..exceptions import FoodScanError

HEALTH_METHODS = ("GET", "OPTIONS")
SCAN_METHODS = ("POST", "OPTIONS")
ALLOWED_HEADERS = "Content-Type, Authorization"


def cors_headers(settings: Settings, methods) -> Dict[str, str]:
    """Headers sent on every response, errors included"""
    return {
        "Access-Control-Allow-Origin": settings.ALLOWED_ORIGIN,
        "Access-Control-Allow-Methods": ", ".join(methods),
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
        "Vary": "Origin",
    }


def preflight_response(headers: Dict[str, str]) -> Response:
    return Response(status_code=200, headers=headers)


def method_not_allowed(headers: Dict[str, str], methods) -> JSONResponse:
    return JSONResponse(
        status_code=405,
        content={"error": "Method not allowed"},
        headers={**headers, "Allow": ", ".join(methods)},
    )


def error_response(error: FoodScanError, headers: Dict[str, str]) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_dict(),
        headers={**headers, **error.headers},
    )
