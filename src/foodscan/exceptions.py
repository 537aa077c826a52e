from typing import Dict, List, Optional


class FoodScanError(Exception):
    """Base error rendered as a JSON body by the API layer.

    ``error`` is the short label clients switch on; ``message`` and
    ``details`` are optional human-readable context.
    """

    status_code: int = 500
    error: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[List[str]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message or self.error)
        self.message = message
        self.details = details
        self.headers = headers or {}

    def to_dict(self) -> Dict:
        body: Dict = {"error": self.error}
        if self.message is not None:
            body["message"] = self.message
        if self.details is not None:
            body["details"] = self.details
        return body


class ConfigurationError(FoodScanError):
    status_code = 500
    error = "API not configured"


class RateLimitExceeded(FoodScanError):
    status_code = 429
    error = "Rate limit exceeded"

    def __init__(self, max_requests: int, retry_after: int):
        super().__init__(
            f"Maximum {max_requests} requests per minute allowed",
            headers={"Retry-After": str(retry_after)},
        )


class ImageValidationError(FoodScanError):
    status_code = 400
    error = "Invalid request"

    def __init__(self, errors: List[str]):
        super().__init__(details=list(errors))
        self.errors = list(errors)


class UpstreamError(FoodScanError):
    """Gemini answered with a non-success status."""

    status_code = 502
    error = "External API error"

    def __init__(self, upstream_status: int, excerpt: str):
        super().__init__(f"Gemini API error ({upstream_status}): {excerpt}")
        self.upstream_status = upstream_status


class NetworkError(FoodScanError):
    """Gemini could not be reached at all."""

    status_code = 500
    error = "Network error"

    def __init__(self, message: str = "Failed to connect to Gemini API"):
        super().__init__(message)


class ResponseShapeError(FoodScanError):
    """Gemini's reply did not have the expected shape.

    Always absorbed into a fallback ScanResult; never rendered as a response.
    """

    error = "Malformed upstream response"


class InternalServerError(FoodScanError):
    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str = "An unexpected error occurred"):
        super().__init__(message)
