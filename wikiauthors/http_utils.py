from __future__ import annotations

import json
from functools import wraps
from typing import Any, Callable, Dict, TypeVar

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import (
    HTTP_BACKOFF_INITIAL,
    HTTP_MAX_RETRIES,
    HTTP_RETRY_STATUS_CODES,
    HTTP_TIMEOUT_DEFAULT,
    USER_AGENT,
)
from .exceptions import DECODE_ERRORS, NETWORK_ERRORS, RemoteSourceError

T = TypeVar('T')

# Standard HTTP headers for API requests
DEFAULT_JSON_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "application/json",
}

# Global session for connection pooling and cookies across the run
_SESSION = requests.Session()

_RETRY_STRATEGY = Retry(
    total=HTTP_MAX_RETRIES,
    backoff_factor=HTTP_BACKOFF_INITIAL,
    status_forcelist=HTTP_RETRY_STATUS_CODES,
    allowed_methods=["GET"],
    raise_on_status=False,
)
_ADAPTER = HTTPAdapter(max_retries=_RETRY_STRATEGY)
_SESSION.mount("https://", _ADAPTER)
_SESSION.mount("http://", _ADAPTER)


def raise_remote_errors(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator that turns transport and decoding failures into RemoteSourceError
    so callers only need to handle the tool's own exception hierarchy. Nothing
    is swallowed: a failed request always ends the run.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except NETWORK_ERRORS as e:
            raise RemoteSourceError(f"HTTP request failed: {e}") from e
        except DECODE_ERRORS as e:
            raise RemoteSourceError(f"Cannot decode response: {e}") from e
    return wrapper


def http_fetch_bytes(url: str, headers: Dict[str, str], timeout: float) -> bytes:
    """
    Perform an HTTP GET request through the shared session and return the
    response body as raw bytes, raising for non-2xx status codes.
    """
    resp = _SESSION.get(url, headers=headers, timeout=timeout)
    resp.raise_for_status()
    return resp.content


def _decode_json_bytes(raw: bytes, url: str) -> Dict[str, Any]:
    """
    Decode a UTF-8 JSON response and parse it into a Python object, including a
    short preview of invalid data in error messages.
    """
    try:
        return json.loads(raw.decode("utf-8"))
    except json.JSONDecodeError as ex:
        preview = raw[:256].decode("utf-8", errors="replace")
        raise RemoteSourceError(
            f"Invalid JSON from {url!r}: {ex.msg} at pos {ex.pos}; preview={preview!r}"
        ) from ex


@raise_remote_errors
def http_get_json(url: str, timeout: float = HTTP_TIMEOUT_DEFAULT) -> Dict[str, Any]:
    """
    Fetch JSON from a URL with the tool's User-Agent and return the parsed
    response. Any failure raises RemoteSourceError.
    """
    headers = DEFAULT_JSON_HEADERS.copy()
    raw = http_fetch_bytes(url, headers, timeout)
    data = _decode_json_bytes(raw, url)
    if not isinstance(data, dict):
        raise RemoteSourceError(f"Unexpected JSON payload from {url!r}: {type(data).__name__}")
    return data
