from foodscan.models.scan import FALLBACK_NOTES
from foodscan.services.response_parser import parse_gemini_response, strip_code_fences


def test_parses_plain_json(make_gemini_reply):
    result = parse_gemini_response(make_gemini_reply(
        '{"detected": true, "items": [{"name": "rice", "quantity": "1 cup", "confidence": 80, '
        '"calories": 205, "protein": 4.3, "carbs": 45, "fat": 0.4}], '
        '"totals": {"calories": 205, "protein": 4.3, "carbs": 45, "fat": 0.4}, "notes": "white rice"}'
    ))
    body = result.to_response()
    assert body["detected"] is True
    assert body["items"][0]["name"] == "rice"
    assert body["items"][0]["calories"] == 205
    assert body["totals"]["carbs"] == 45
    assert body["notes"] == "white rice"
    assert "parseError" not in body


def test_strips_markdown_fences_and_surrounding_text(make_gemini_reply):
    text = 'Here you go:\n```json\n{"detected": false, "items": [], "notes": "no food"}\n```\nThanks!'
    body = parse_gemini_response(make_gemini_reply(text)).to_response()
    assert body == {"detected": False, "items": [], "notes": "no food"}


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '\n{"a": 1}\n'


def test_defaults_detected_and_items(make_gemini_reply):
    body = parse_gemini_response(make_gemini_reply('{"items": "apple", "notes": "odd"}')).to_response()
    assert body["detected"] is True
    assert body["items"] == []


def test_extra_fields_pass_through(make_gemini_reply):
    body = parse_gemini_response(make_gemini_reply(
        '{"detected": true, "items": [{"name": "egg", "calories": "78 kcal", "cooked": true}], "mealType": "breakfast"}'
    )).to_response()
    assert body["mealType"] == "breakfast"
    assert body["items"][0]["cooked"] is True
    # unreadable numbers are dropped rather than failing the whole result
    assert "calories" not in body["items"][0]


def test_numeric_strings_are_coerced(make_gemini_reply):
    body = parse_gemini_response(make_gemini_reply(
        '{"items": [{"name": "toast", "quantity": 2, "confidence": "70", "fat": " 1.5 "}]}'
    )).to_response()
    item = body["items"][0]
    assert item["quantity"] == "2"
    assert item["confidence"] == 70
    assert item["fat"] == 1.5


def test_non_json_text_falls_back(make_gemini_reply):
    body = parse_gemini_response(make_gemini_reply("I see a sandwich with ham.")).to_response()
    assert body["detected"] is True
    assert body["items"] == []
    assert body["notes"] == FALLBACK_NOTES
    assert body["parseError"] == "No JSON object found in response"


def test_broken_json_falls_back(make_gemini_reply):
    body = parse_gemini_response(make_gemini_reply('{"detected": true, "items": [}')).to_response()
    assert body["items"] == []
    assert body["parseError"]


def test_missing_candidates_falls_back():
    for reply in ({}, {"candidates": []}, None, "text", {"promptFeedback": {"blockReason": "SAFETY"}}):
        body = parse_gemini_response(reply).to_response()
        assert body["parseError"] == "No candidates in Gemini response"


def test_missing_parts_falls_back():
    body = parse_gemini_response({"candidates": [{"content": {}, "finishReason": "SAFETY"}]}).to_response()
    assert body["parseError"] == "No parts in Gemini response"


def test_invalid_detected_value_falls_back(make_gemini_reply):
    body = parse_gemini_response(make_gemini_reply('{"detected": "maybe", "items": []}')).to_response()
    assert body["notes"] == FALLBACK_NOTES
    assert body["parseError"]


def test_non_standard_json_literals_fall_back(make_gemini_reply):
    for literal in ("NaN", "Infinity", "-Infinity"):
        reply = make_gemini_reply('{"detected": true, "items": [{"name": "x", "calories": %s}]}' % literal)
        body = parse_gemini_response(reply).to_response()
        assert body["items"] == []
        assert body["notes"] == FALLBACK_NOTES
        assert literal.lstrip("-") in body["parseError"]


def test_non_finite_number_strings_are_dropped(make_gemini_reply):
    body = parse_gemini_response(make_gemini_reply(
        '{"items": [{"name": "x", "fat": "inf", "carbs": "nan", "protein": "-Infinity", "calories": 1e400}], '
        '"totals": {"fat": "inf", "calories": 12}}'
    )).to_response()
    item = body["items"][0]
    assert item == {"name": "x"}
    assert body["totals"] == {"calories": 12}


def test_overflowing_extra_field_falls_back(make_gemini_reply):
    body = parse_gemini_response(make_gemini_reply('{"items": [], "score": 1e400}')).to_response()
    assert "score" not in body
    assert body["parseError"]
