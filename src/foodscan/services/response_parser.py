import json
import logging
from typing import Any, Dict

from ..exceptions import ResponseShapeError
from ..models.scan import ScanResult

logger = logging.getLogger(__name__)


def extract_text(gemini_response: Any) -> str:
    """First text part of the first candidate"""
    candidates = gemini_response.get("candidates") if isinstance(gemini_response, dict) else None
    if not candidates:
        raise ResponseShapeError("No candidates in Gemini response")

    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not parts:
        raise ResponseShapeError("No parts in Gemini response")

    text = parts[0].get("text") if isinstance(parts[0], dict) else None
    return text or ""


def strip_code_fences(text: str) -> str:
    return text.replace("```json", "").replace("```", "")


def _reject_constant(name: str):
    raise ResponseShapeError(f"Non-standard JSON literal {name} in response")


def extract_json_object(text: str) -> Dict[str, Any]:
    """Parse the span between the first '{' and the last '}'"""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise ResponseShapeError("No JSON object found in response")
    parsed = json.loads(text[start:end + 1], parse_constant=_reject_constant)
    if not isinstance(parsed, dict):
        raise ResponseShapeError("Response JSON is not an object")
    return parsed


def _fix_response_structure(result: Dict[str, Any]) -> Dict[str, Any]:
    """Fill in the defaults the frontend relies on"""
    if result.get("detected") is None:
        result["detected"] = True
    if isinstance(result.get("items"), list):
        result["items"] = [item for item in result["items"] if isinstance(item, dict)]
    else:
        result["items"] = []
    if "totals" in result and not isinstance(result["totals"], dict):
        result["totals"] = None
    return result


def parse_gemini_response(gemini_response: Any) -> ScanResult:
    """Turn a raw generateContent reply into a ScanResult.

    The model is asked for JSON but nothing guarantees it, so extraction is
    lenient: code fences are dropped and the outermost brace span is parsed.
    Whatever goes wrong, a fallback result carrying ``parseError`` is
    returned instead of raising.
    """
    try:
        text = strip_code_fences(extract_text(gemini_response))
        result = _fix_response_structure(extract_json_object(text))
        scan_result = ScanResult.model_validate(result)
        # Pass-through keys may still hold values strict JSON cannot carry
        json.dumps(scan_result.to_response(), allow_nan=False)
        return scan_result
    except Exception as e:
        logger.warning("Falling back to default scan result: %s", e)
        return ScanResult.fallback(str(e) or e.__class__.__name__)
