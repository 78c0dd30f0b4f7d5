import json

from models.generation_models import GenerationResult
from services.gemini.response_parser import ParseFailure, ParsedResult, parse_generation_response

from fakes import gemini_body


def _text_body(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def test_well_formed_response_yields_exact_result() -> None:
    outcome = parse_generation_response(gemini_body())

    assert isinstance(outcome, ParsedResult)
    assert outcome.result == GenerationResult(title="Sunset", keywords=["sky", "orange"])


def test_missing_candidates_is_a_failure() -> None:
    assert isinstance(parse_generation_response({"promptFeedback": {"blockReason": "SAFETY"}}), ParseFailure)
    assert isinstance(parse_generation_response({"candidates": []}), ParseFailure)


def test_missing_parts_is_a_failure() -> None:
    body = {"candidates": [{"content": {"role": "model"}, "finishReason": "SAFETY"}]}
    outcome = parse_generation_response(body)
    assert isinstance(outcome, ParseFailure)
    assert "parts" in outcome.detail


def test_invalid_inner_json_is_a_failure() -> None:
    outcome = parse_generation_response(_text_body("{title: Sunset"))
    assert isinstance(outcome, ParseFailure)
    assert "not valid JSON" in outcome.detail


def test_non_object_json_is_a_failure() -> None:
    assert isinstance(parse_generation_response(_text_body(json.dumps(["sky"]))), ParseFailure)


def test_body_that_is_not_an_object_is_a_failure() -> None:
    assert isinstance(parse_generation_response("oops"), ParseFailure)


def test_missing_fields_are_coerced_to_empty_values() -> None:
    outcome = parse_generation_response(_text_body("{}"))
    assert outcome == ParsedResult(GenerationResult(title="", keywords=[]))


def test_non_list_keywords_become_empty() -> None:
    outcome = parse_generation_response(gemini_body(title="Lake", keywords="water, blue"))
    assert outcome == ParsedResult(GenerationResult(title="Lake", keywords=[]))


def test_keywords_are_stripped_and_non_strings_dropped() -> None:
    outcome = parse_generation_response(gemini_body(keywords=[" sky ", 7, "", None, "golden hour"]))
    assert isinstance(outcome, ParsedResult)
    assert outcome.result.keywords == ["sky", "golden hour"]
