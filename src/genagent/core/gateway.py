"""Client for the generateContent endpoint of the Gemini API.

The gateway sends a transcript and returns the reply text, or raises one of the GatewayError subclasses.
It never retries; see ``genagent.core.runner`` for a retrying caller.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

import requests

from .exceptions import BackendError, BlockedError, EmptyResponseError, MalformedResponseError, NetworkError
from ..types_.core import GenerationParams, Transcript
from ..types_.gemini import ErrorResponse, GenerateContentResponse

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"


def _retry_after(response: requests.Response) -> float | None:
    value = response.headers.get("Retry-After")
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        logger.debug(f"Ignoring non-numeric Retry-After header {value!r}")
        return None


def backend_error(response: requests.Response) -> BackendError:
    """Build a BackendError from a non-success response, preferring the backend's own message."""
    message = None
    try:
        detail = ErrorResponse.model_validate(response.json()).error
        message = detail.message if detail else None
    except (ValueError, PydanticValidationError):
        logger.debug("Error response body is not a JSON error object")

    if not message:
        message = response.text.strip() or f"Gemini API request failed with status {response.status_code}"

    return BackendError(message, status_code=response.status_code, retry_after=_retry_after(response))


def reply_text(data: Any) -> str:
    """Extract the reply text from a decoded generateContent response.

    Raises
    ------
    BlockedError
        If there are no candidates because the prompt was blocked.
    EmptyResponseError
        If there are no candidates.
    MalformedResponseError
        If the first candidate has no text.
    """
    try:
        response = GenerateContentResponse.model_validate(data)
    except PydanticValidationError as e:
        raise MalformedResponseError(f"Unexpected response shape: {e}") from e

    if not response.candidates:
        if response.block_reason:
            raise BlockedError(response.block_reason)
        raise EmptyResponseError("API returned no candidates")

    content = response.candidates[0].content
    if content is None or not content.parts:
        raise MalformedResponseError("API response missing content")

    text = content.parts[0].text
    if not text:
        raise MalformedResponseError("API response missing text")
    return text


class ModelGateway:
    """Send transcripts to a Gemini model.

    Parameters
    ----------
    api_key : str
        Key for the Gemini API.
    api_base : str
        Base URL of the API, without trailing slash.
    timeout : float
        Request timeout in seconds.
    session : requests.Session | None
        Session to send requests with; a new one is created if not provided.

    Examples
    --------
    >>> gateway = ModelGateway(api_key="...")  # doctest: +SKIP
    >>> transcript = Transcript()
    >>> transcript.append_user("Say hello")  # doctest: +SKIP
    >>> gateway.send("gemini-2.5-flash-lite", transcript)  # doctest: +SKIP
    'Hello!'
    """

    def __init__(
        self,
        api_key: str,
        api_base: str = DEFAULT_API_BASE,
        timeout: float = 60,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings=None) -> ModelGateway:
        """Create a gateway configured from GenAgentSettings (or the environment)."""
        from ..config import GenAgentSettings

        settings = settings or GenAgentSettings()
        return cls(
            api_key=settings.api_key.get_secret_value(),
            api_base=settings.api_base,
            timeout=settings.request_timeout,
        )

    def url(self, model: str) -> str:
        return f"{self.api_base}/models/{model}:generateContent"

    def request_body(self, transcript: Transcript, params: GenerationParams) -> dict[str, Any]:
        return {"contents": transcript.to_contents(), "generationConfig": params.to_wire()}

    def send(self, model: str, transcript: Transcript, params: GenerationParams | None = None) -> str:
        """Send the full transcript and return the reply text.

        Raises
        ------
        NetworkError
            If the backend could not be reached.
        BackendError
            If the backend answered with a non-success status.
        EmptyResponseError
            If the backend returned no candidate (BlockedError for safety blocks).
        MalformedResponseError
            If the reply has no extractable text.
        """
        params = params or GenerationParams()
        logger.debug(f"Sending {len(transcript)} turn(s) to {model}")
        try:
            response = self.session.post(
                self.url(model),
                headers={"x-goog-api-key": self.api_key},
                json=self.request_body(transcript, params),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Could not reach the Gemini API: {e}") from e

        if not response.ok:
            raise backend_error(response)

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError("API response is not valid JSON") from e

        text = reply_text(data)
        logger.debug(f"Received reply of {len(text)} characters")
        return text
