# core/http.py
import logging

import requests

from .config import REQUEST_TIMEOUT
from .errors import AuthError, HttpError, ShapeError
from .models import truncate

logger = logging.getLogger("ai_usage.http")


def http_get(url: str, headers: dict, timeout: float = None):
    """
    GET a provider endpoint and return (status_code, body).

    body is the decoded JSON when the response parses, otherwise the raw
    response text so callers can surface it as a hint. Network failures and
    timeouts raise HttpError; HTTP error statuses do not raise.
    """
    headers = {"Accept": "application/json", **headers}
    try:
        response = requests.get(url, headers=headers, timeout=timeout or REQUEST_TIMEOUT)
    except requests.Timeout as e:
        raise HttpError("Request timed out", hint=str(e)) from e
    except requests.RequestException as e:
        raise HttpError("Network error", hint=str(e)) from e

    try:
        body = response.json()
    except ValueError:
        body = response.text

    logger.debug(f"GET {url} -> {response.status_code}")
    return response.status_code, body


def body_hint(body, default: str = None):
    """Raw-text bodies (non-JSON responses) make a better hint than our default."""
    if isinstance(body, str) and body.strip():
        return truncate(body)
    return default


def check_response(status: int, body, hint: str, auth_message: str = "Invalid API key") -> dict:
    """
    Turn a (status, body) pair into the JSON object a normalizer can read.

    Raises AuthError on 401/403, HttpError on any other non-200 status and
    ShapeError when a 200 body is not a JSON object.
    """
    if status in (401, 403):
        raise AuthError(auth_message, hint=hint)
    if status != 200:
        raise HttpError(f"HTTP {status}", hint=body_hint(body, hint), status=status)
    if not isinstance(body, dict):
        raise ShapeError("Unexpected response", hint=body_hint(body, hint))
    return body
