"""Utilities to build the multimodal generateContent request body."""

from typing import Any, Dict, List

from models.generation_models import EncodedImage
from services.gemini.response_schema import generation_config


def build_parts(instruction: str, image: EncodedImage) -> List[Dict[str, Any]]:
    """Compose the text instruction followed by the inline image."""
    return [
        {"text": instruction},
        {"inlineData": {"mimeType": image.mime_type, "data": image.b64}},
    ]


def build_payload(instruction: str, image: EncodedImage) -> Dict[str, Any]:
    """Build the full request body for a single-turn user request."""
    return {
        "contents": [{"role": "user", "parts": build_parts(instruction, image)}],
        "generationConfig": generation_config(),
    }
