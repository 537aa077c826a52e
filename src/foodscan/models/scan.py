import math

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Optional

ALLOWED_MIME_TYPES = ("image/jpeg", "image/png")

FALLBACK_NOTES = "Model returned non-JSON output; please confirm manually."


def _lenient_number(value: Any) -> Optional[float]:
    """Model estimates sometimes come back as "150 kcal" or "n/a"; keep what parses."""
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (int, float)):
        value = str(value).strip()
    try:
        number = float(value)
    except (ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return number


class ImageSubmission(BaseModel):
    """Scan request body"""
    image_base64: str = Field(default="", alias="imageBase64")
    mime_type: Optional[str] = Field(default=None, alias="mimeType")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_payload(cls, payload: Any) -> "ImageSubmission":
        """Build a submission from an arbitrary decoded JSON body.

        Anything that is not a string is treated as missing so the validator
        reports it, instead of pydantic rejecting the request outright.
        """
        if not isinstance(payload, dict):
            payload = {}
        image = payload.get("imageBase64")
        mime = payload.get("mimeType")
        return cls(
            imageBase64=image if isinstance(image, str) else "",
            mimeType=mime if isinstance(mime, str) else None,
        )


class NutritionTotals(BaseModel):
    """Aggregate nutrition across all detected items"""
    calories: Optional[float] = None
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None

    model_config = ConfigDict(extra="allow")

    @field_validator("calories", "protein", "carbs", "fat", mode="before")
    @classmethod
    def _numbers(cls, value):
        return _lenient_number(value)


class FoodItem(NutritionTotals):
    """Individual detected food item"""
    name: Optional[str] = None
    quantity: Optional[str] = Field(default=None, description="Free-text amount, e.g. '2 slices'")
    confidence: Optional[float] = Field(default=None, description="Detection confidence, 0-100")

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence(cls, value):
        return _lenient_number(value)

    @field_validator("name", "quantity", mode="before")
    @classmethod
    def _text(cls, value):
        if value is None:
            return None
        return str(value)


class ScanResult(BaseModel):
    """Scan response body"""
    detected: bool = True
    items: List[FoodItem] = Field(default_factory=list)
    totals: Optional[NutritionTotals] = None
    notes: Optional[str] = None
    parse_error: Optional[str] = Field(default=None, alias="parseError")

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @classmethod
    def fallback(cls, reason: str) -> "ScanResult":
        """Safe default when the model output could not be understood"""
        return cls(detected=True, items=[], notes=FALLBACK_NOTES, parseError=reason)

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
