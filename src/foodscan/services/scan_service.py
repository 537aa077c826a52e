import logging

from ..config.settings import Settings
from ..exceptions import ImageValidationError, ResponseShapeError
from ..models.scan import ImageSubmission, ScanResult
from .gemini_client import GeminiVisionClient
from .image_validation import strip_data_url_prefix, validate_submission
from .response_parser import parse_gemini_response

logger = logging.getLogger(__name__)


class FoodScanService:
    """Validate a submission, ask Gemini about it and normalize the answer."""

    def __init__(self, settings: Settings, vision_client: GeminiVisionClient):
        self.settings = settings
        self.vision_client = vision_client

    def validate(self, submission: ImageSubmission) -> str:
        """Return the bare base64 payload, or raise ImageValidationError with every problem found"""
        errors = validate_submission(submission, self.settings.max_image_size_bytes)
        if errors:
            logger.info("Rejected scan request: %s", "; ".join(errors))
            raise ImageValidationError(errors)
        return strip_data_url_prefix(submission.image_base64)

    async def scan(self, submission: ImageSubmission) -> ScanResult:
        image_base64 = self.validate(submission)
        try:
            gemini_response = await self.vision_client.generate(image_base64, submission.mime_type)
        except ResponseShapeError as e:
            logger.warning("Falling back to default scan result: %s", e)
            return ScanResult.fallback(str(e))
        return parse_gemini_response(gemini_response)
