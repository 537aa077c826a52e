from fastapi import Depends, Request
from functools import lru_cache

from ..config.settings import Settings, get_settings
from ..services.gemini_client import GeminiVisionClient
from ..services.rate_limiter import RateLimiter, create_rate_limiter
from ..services.scan_service import FoodScanService

UNKNOWN_CLIENT = "unknown"


def get_client_id(request: Request) -> str:
    """Rate-limit key: first X-Forwarded-For hop, then X-Real-IP, then the peer address"""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    if request.client and request.client.host:
        return request.client.host

    return UNKNOWN_CLIENT


# One table per process, shared by every request
@lru_cache()
def get_rate_limiter() -> RateLimiter:
    return create_rate_limiter(get_settings())


def get_vision_client(settings: Settings = Depends(get_settings)) -> GeminiVisionClient:
    return GeminiVisionClient(settings)


def get_scan_service(
    settings: Settings = Depends(get_settings),
    vision_client: GeminiVisionClient = Depends(get_vision_client),
) -> FoodScanService:
    return FoodScanService(settings, vision_client)
