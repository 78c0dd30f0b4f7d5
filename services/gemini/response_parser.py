"""Validate generateContent responses and extract the structured result."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from models.generation_models import GenerationResult

LOGGER = logging.getLogger(__name__)


class _Part(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: str


class _Content(BaseModel):
    model_config = ConfigDict(extra="ignore")

    parts: List[_Part] = Field(min_length=1)


class _Candidate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: _Content


class GenerateContentResponse(BaseModel):
    """Subset of the generateContent response envelope this client relies on."""

    model_config = ConfigDict(extra="ignore")

    candidates: List[_Candidate] = Field(min_length=1)


@dataclass(frozen=True)
class ParsedResult:
    result: GenerationResult


@dataclass(frozen=True)
class ParseFailure:
    detail: str


ParseOutcome = Union[ParsedResult, ParseFailure]


def _coerce_title(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _coerce_keywords(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    keywords = [item.strip() for item in value if isinstance(item, str) and item.strip()]
    multi_word = [kw for kw in keywords if len(kw.split()) > 1]
    if multi_word:
        LOGGER.warning("Model returned %d multi-word keywords, e.g. %r", len(multi_word), multi_word[0])
    return keywords


def extract_text(body: Any) -> str:
    """Return the text of the first part of the first candidate.

    Raises:
        pydantic.ValidationError: If the envelope does not match the expected shape.
    """
    envelope = GenerateContentResponse.model_validate(body)
    return envelope.candidates[0].content.parts[0].text


def parse_generation_response(body: Any) -> ParseOutcome:
    """Turn a decoded response body into a tagged outcome.

    A missing `title` becomes an empty string and a missing or non-list
    `keywords` becomes an empty list; anything structurally wrong with the
    envelope or the inner JSON text is a `ParseFailure`.
    """
    try:
        text = extract_text(body)
    except PydanticValidationError as exc:
        return ParseFailure(detail=f"response envelope invalid ({exc.error_count()} errors): {_first_error(exc)}")

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        return ParseFailure(detail=f"candidate text is not valid JSON: {exc.msg}")

    if not isinstance(payload, dict):
        return ParseFailure(detail=f"candidate JSON is a {type(payload).__name__}, expected an object")

    return ParsedResult(
        result=GenerationResult(
            title=_coerce_title(payload.get("title")),
            keywords=_coerce_keywords(payload.get("keywords")),
        )
    )


def _first_error(exc: PydanticValidationError) -> Optional[str]:
    errors = exc.errors()
    if not errors:
        return None
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location or '<root>'}: {first.get('msg')}"
