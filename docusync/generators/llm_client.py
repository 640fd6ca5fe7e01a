"""Gemini API client performing a single generateContent request.

Builds the request payload, sends it with httpx, and extracts the
generated text from the response. Retrying is left to the invoker in
``docusync.generators.invoker``; this module only classifies each
attempt as a success or a failure.
"""

import json
import logging
import re
from typing import Any, Optional

import httpx

from docusync.utils.config import APIConfig

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^```markdown\n")
_TRAILING_FENCE = re.compile(r"\n```\Z")


class LLMError(Exception):
    """Base class for failed generation attempts."""


class APIStatusError(LLMError):
    """The endpoint answered with a non-success HTTP status.

    Attributes:
        status_code: HTTP status code of the response.
        details: The ``error`` object of the response body, if any.
    """

    def __init__(self, status_code: int, details: Any = None) -> None:
        self.status_code = status_code
        self.details = details
        super().__init__(
            f"API Error: {status_code}. Details: {json.dumps(details)}"
        )


class MalformedResponseError(LLMError):
    """The response body did not contain the generated text."""

    def __init__(self, message: str = "Invalid response structure from API.") -> None:
        super().__init__(message)


def build_payload(prompt: str) -> dict:
    """Build the generateContent request body for a prompt."""
    return {"contents": [{"parts": [{"text": prompt}]}]}


def extract_text(payload: Any) -> str:
    """Read ``candidates[0].content.parts[0].text`` from a response body.

    Args:
        payload: Decoded JSON response body.

    Returns:
        The generated text.

    Raises:
        MalformedResponseError: If the path is missing or the text is
            empty or not a string.
    """
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise MalformedResponseError() from e
    if not isinstance(text, str) or not text:
        raise MalformedResponseError()
    return text


def strip_markdown_fence(text: str) -> str:
    """Remove a wrapping markdown code fence from generated text.

    The opening "```markdown" line and the closing "```" line are
    stripped independently, each only if present.
    """
    text = _LEADING_FENCE.sub("", text, count=1)
    return _TRAILING_FENCE.sub("", text, count=1)


class GeminiClient:
    """Async client for the Gemini generateContent endpoint.

    The credential is passed as the ``key`` query parameter. An
    ``httpx.AsyncClient`` may be injected, otherwise one is created per
    request.
    """

    def __init__(
        self,
        config: Optional[APIConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize the Gemini client.

        Args:
            config: API configuration. Uses defaults if not provided.
            http_client: Optional shared HTTP client, mainly for tests.
        """
        self.config = config or APIConfig()
        self._http_client = http_client

    @property
    def is_configured(self) -> bool:
        """Whether an API key is available."""
        return bool(self.config.api_key)

    async def generate_content(self, prompt: str) -> str:
        """Send one generateContent request and return the generated text.

        Args:
            prompt: The full prompt text.

        Returns:
            The generated text with any ```markdown fence stripped.

        Raises:
            APIStatusError: If the endpoint returns a non-success status.
            MalformedResponseError: If the body lacks the generated text.
            httpx.HTTPError: If the request fails at the transport level.
        """
        if self._http_client is not None:
            response = await self._post(self._http_client, prompt)
        else:
            async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                response = await self._post(client, prompt)

        if not response.is_success:
            raise APIStatusError(response.status_code, _error_details(response))

        try:
            body = response.json()
        except ValueError as e:
            raise MalformedResponseError() from e

        text = extract_text(body)
        logger.debug("Received %d characters of generated text", len(text))
        return strip_markdown_fence(text)

    async def _post(self, client: httpx.AsyncClient, prompt: str) -> httpx.Response:
        return await client.post(
            self.config.endpoint,
            params={"key": self.config.api_key},
            json=build_payload(prompt),
            headers={"Content-Type": "application/json"},
            timeout=self.config.timeout,
        )


def _error_details(response: httpx.Response) -> Any:
    """Return the ``error`` object of a failed response, or None."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("error")
    return None
