import aiohttp
import asyncio
import json
import logging
from typing import Any, Dict

from ..config.settings import Settings
from ..exceptions import NetworkError, ResponseShapeError, UpstreamError

logger = logging.getLogger(__name__)

ERROR_EXCERPT_LENGTH = 200

GENERATION_CONFIG = {
    "temperature": 0.4,
    "topK": 32,
    "topP": 1,
    "maxOutputTokens": 2048,
}

FOOD_SCAN_PROMPT = """Analyze this food image and return ONLY a valid JSON object (no markdown, no code blocks).

Detect ALL food items visible in the image. For each item provide:
- name: food item name
- quantity: estimated amount (e.g., "1 cup", "2 slices", "100g")
- confidence: detection confidence (0-100)
- calories: estimated calories (best effort)
- protein: grams of protein (best effort)
- carbs: grams of carbohydrates (best effort)
- fat: grams of fat (best effort)

Return the JSON in this exact structure:
{
  "detected": true or false,
  "items": [
    {
      "name": "food name",
      "quantity": "amount",
      "confidence": 85,
      "calories": 150,
      "protein": 5,
      "carbs": 20,
      "fat": 6
    }
  ],
  "totals": {
    "calories": sum of all items,
    "protein": sum,
    "carbs": sum,
    "fat": sum
  },
  "notes": "any relevant observations or uncertainties"
}

If you are uncertain about nutritional values, provide your best estimate and note the uncertainty in "notes".
Only set "detected" to false if you are confident there is NO food in the image.
If you see food but are uncertain about details, still set "detected" to true with low confidence values."""


class GeminiVisionClient:
    """Thin REST client for Gemini's generateContent endpoint."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.url = f"{settings.GEMINI_API_BASE}/{settings.GEMINI_MODEL}:generateContent"

    def build_payload(self, image_base64: str, mime_type: str) -> Dict[str, Any]:
        """Instruction prompt plus the inline image, with fixed generation parameters"""
        return {
            "contents": [
                {
                    "parts": [
                        {"text": FOOD_SCAN_PROMPT},
                        {"inlineData": {"mimeType": mime_type, "data": image_base64}},
                    ]
                }
            ],
            "generationConfig": dict(GENERATION_CONFIG),
        }

    async def generate(self, image_base64: str, mime_type: str) -> Any:
        """Send one image to Gemini and return the decoded JSON reply.

        Raises UpstreamError on a non-success status, NetworkError when the
        API cannot be reached and ResponseShapeError when a successful reply
        is not JSON.
        """
        payload = self.build_payload(image_base64, mime_type)
        # The key travels as a query parameter; keep it out of logs.
        params = {"key": self.settings.GEMINI_API_KEY or ""}
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.url, params=params, json=payload) as resp:
                    body = await resp.text()
                    status = resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.exception("Failed to reach Gemini at %s", self.url)
            raise NetworkError() from e

        if status < 200 or status >= 300:
            logger.warning("Gemini returned %s for %s", status, self.url)
            raise UpstreamError(status, body[:ERROR_EXCERPT_LENGTH])

        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise ResponseShapeError(f"Gemini reply is not JSON: {e}") from e
