"""Title and keyword generation against the Gemini generateContent endpoint."""

import logging
import time
from typing import Any, Dict, Optional

import httpx

from models.generation_models import EncodedImage, GenerationResult
from services.gemini.media_inputs import build_payload
from services.gemini.prompts import build_instruction
from services.gemini.response_parser import ParseFailure, parse_generation_response
from utils.app_config import DEFAULT_GEMINI_BASE_URL, DEFAULT_GEMINI_MODEL
from utils.errors import ConfigurationError, SchemaViolation, TransportError

LOGGER = logging.getLogger(__name__)


class GenerationClient:
    """Send one image to the generation service and return its title and keywords."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: Optional[str],
        *,
        model: str = DEFAULT_GEMINI_MODEL,
        base_url: str = DEFAULT_GEMINI_BASE_URL,
    ) -> None:
        """Initialize the client.

        Args:
            http_client: Shared async HTTP client; owned by the caller.
            api_key: Generation service credential, sent as the `key` query parameter.
            model: Model name in the request path.
            base_url: API root, e.g. `https://generativelanguage.googleapis.com/v1beta`.
        """
        if http_client is None:
            raise ValueError("An httpx.AsyncClient must be provided.")
        self.http_client = http_client
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.instruction = build_instruction()

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    async def generate(self, image: EncodedImage) -> GenerationResult:
        """Request a title and keywords for `image`.

        Raises:
            ConfigurationError: If no credential is configured; no request is sent.
            TransportError: On network failure or a non-2xx status.
            SchemaViolation: If the body is not the expected JSON structure.
        """
        if not self.api_key:
            raise ConfigurationError("Generation service credential is not set.")

        start_time = time.time()
        body = await self._post(build_payload(self.instruction, image))
        outcome = parse_generation_response(body)
        if isinstance(outcome, ParseFailure):
            LOGGER.error("Generation response rejected: %s", outcome.detail)
            LOGGER.debug("Full generation response body: %r", body)
            raise SchemaViolation(outcome.detail)

        LOGGER.info(
            "Generated title with %d keywords in %.2fs",
            len(outcome.result.keywords),
            time.time() - start_time,
        )
        return outcome.result

    async def _post(self, payload: Dict[str, Any]) -> Any:
        """Send the request and return the decoded JSON body."""
        try:
            response = await self.http_client.post(
                self.endpoint,
                params={"key": self.api_key},
                json=payload,
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            LOGGER.error(
                "Generation request failed with status %s: %s",
                exc.response.status_code,
                exc.response.text[:500],
            )
            raise TransportError(f"Generation service returned HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            LOGGER.error("Error during generation request: %s", exc.__class__.__name__)
            raise TransportError("Could not reach the generation service") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise SchemaViolation("response body is not JSON") from exc
