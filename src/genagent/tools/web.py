import json
import logging
from typing import Any

import requests

from ..core.exceptions import ToolExecutionError
from ..core.tool import tool

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
_BODY_METHODS = {"POST", "PUT", "PATCH"}


@tool
def api_caller(
    url: str,
    method: str = "GET",
    headers: dict | None = None,
    body: dict | None = None,
) -> dict:
    """Make HTTP requests to external APIs.

    Args:
        url: The API endpoint URL
        method: HTTP method: 'GET', 'POST', 'PUT', 'DELETE'
        headers: Request headers as key-value pairs
        body: Request body (for POST/PUT requests)
    """
    method = (method or "GET").upper()
    request_headers = {"Content-Type": "application/json", **(headers or {})}

    data: Any = None
    if body is not None and method in _BODY_METHODS:
        data = body if isinstance(body, str) else json.dumps(body)

    try:
        logger.debug(f"{method} {url}")
        response = requests.request(method, url, headers=request_headers, data=data, timeout=DEFAULT_TIMEOUT)
    except requests.exceptions.RequestException as e:
        logger.warning(f"API call to {url} failed: {e}")
        raise ToolExecutionError(f"API call failed: {e}") from e

    try:
        payload = response.json()
    except ValueError:
        payload = response.text

    return {
        "success": True,
        "status": response.status_code,
        "status_text": response.reason,
        "headers": dict(response.headers),
        "data": payload,
    }
