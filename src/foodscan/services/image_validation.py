import re
from typing import List

from ..models.scan import ALLOWED_MIME_TYPES, ImageSubmission

# "data:image/jpeg;base64,...." as produced by FileReader.readAsDataURL
_DATA_URL_PREFIX = re.compile(r"^data:image/[a-zA-Z+]+;base64,(.+)$", re.DOTALL)


def strip_data_url_prefix(image_base64: str) -> str:
    """Return only the base64 payload of a data URL; other input is returned as-is."""
    if not image_base64:
        return ""
    match = _DATA_URL_PREFIX.match(image_base64)
    if match:
        return match.group(1)
    return image_base64


def estimate_decoded_size(clean_base64: str) -> float:
    """Rough decoded size in bytes; base64 is ~4/3 of the original."""
    return len(clean_base64) * 3 / 4


def validate_submission(submission: ImageSubmission, max_size_bytes: int) -> List[str]:
    """
    Check mime type, presence and estimated size of the image.

    Returns list of validation error messages (empty if valid).
    """
    errors = []

    if submission.mime_type not in ALLOWED_MIME_TYPES:
        errors.append(f"Invalid mimeType. Allowed: {', '.join(ALLOWED_MIME_TYPES)}")

    if not submission.image_base64:
        errors.append("imageBase64 is required")

    clean_base64 = strip_data_url_prefix(submission.image_base64)
    if estimate_decoded_size(clean_base64) > max_size_bytes:
        errors.append(f"Image too large. Max size: {max_size_bytes // (1024 * 1024)}MB")

    return errors
