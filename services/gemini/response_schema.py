"""Structured output schema for the title/keyword generation request."""

from typing import Any, Dict

RESPONSE_MIME_TYPE = "application/json"

RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING"},
        "keywords": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
        },
    },
    "propertyOrdering": ["title", "keywords"],
}


def generation_config() -> Dict[str, Any]:
    """Return the `generationConfig` block constraining the model output."""
    return {
        "responseMimeType": RESPONSE_MIME_TYPE,
        "responseSchema": RESPONSE_SCHEMA,
    }
