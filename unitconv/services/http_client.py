from __future__ import annotations

"""Lightweight HTTP client util with retry.

Uses stdlib urllib; the only remote call in the project is a single GET
returning JSON. Transport failures are retried with exponential backoff;
HTTP 4xx responses (bad credentials, unknown endpoint) are not.
"""
import json
import logging
import time
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger("unitconv.http")


class HttpError(Exception):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


def _redact(url: str) -> str:
    parts = urllib.parse.urlsplit(url)
    return urllib.parse.urlunsplit(parts._replace(query=""))


def get_json(
    url: str,
    *,
    params: Optional[Mapping[str, str]] = None,
    timeout: float = 10.0,
    retries: int = 2,
    backoff: float = 0.5,
) -> Dict[str, Any]:
    if params:
        url = f"{url}?{urllib.parse.urlencode(params)}"
    # Query strings carry the API key; keep them out of errors and logs.
    shown = _redact(url)
    last_err: Optional[Exception] = None
    for attempt in range(retries + 1):
        try:
            with urllib.request.urlopen(url, timeout=timeout) as resp:  # nosec B310
                data = json.loads(resp.read().decode("utf-8"))
                if not isinstance(data, dict):
                    raise ValueError("expected a JSON object")
                return data
        except urllib.error.HTTPError as e:
            if 400 <= e.code < 500:
                raise HttpError(f"HTTP {e.code} for {shown}", status=e.code) from e
            last_err = e
        except (urllib.error.URLError, TimeoutError, ValueError) as e:  # ValueError for JSON decode
            last_err = e
        if attempt == retries:
            break
        logger.debug("GET %s failed (attempt %d): %s", shown, attempt + 1, last_err)
        time.sleep(backoff * (2**attempt))
    raise HttpError(f"Failed to fetch JSON from {shown}: {last_err}")
