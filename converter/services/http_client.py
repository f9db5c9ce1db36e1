from __future__ import annotations

"""Lightweight HTTP client util for upstream rate sources.

Uses stdlib urllib; one attempt per call, no retries. Every failure mode
(non-success status, network error, undecodable body) surfaces as
UpstreamError so callers have a single exception to translate.
"""
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger("converter.http")


class UpstreamError(Exception):
    def __init__(
        self, message: str, *, status: Optional[int] = None, url: Optional[str] = None
    ):
        super().__init__(message)
        self.status = status
        self.url = url


def build_url(base: str, params: Mapping[str, str]) -> str:
    # Keep commas readable in id lists (ids=bitcoin,ethereum)
    return f"{base}?{urllib.parse.urlencode(params, safe=',')}"


def get_json(
    url: str,
    *,
    headers: Optional[Mapping[str, str]] = None,
    timeout: float = 5.0,
) -> Dict[str, Any]:
    request = urllib.request.Request(url, headers=dict(headers or {}))
    logger.debug("GET %s", url)
    try:
        with urllib.request.urlopen(request, timeout=timeout) as resp:  # nosec B310
            if resp.status >= 400:
                raise UpstreamError(
                    f"API responded with status: {resp.status}",
                    status=resp.status,
                    url=url,
                )
            data = resp.read()
    except urllib.error.HTTPError as e:
        raise UpstreamError(
            f"API responded with status: {e.code}", status=e.code, url=url
        ) from e
    except (urllib.error.URLError, TimeoutError) as e:
        raise UpstreamError(f"Failed to reach {url}: {e}", url=url) from e
    try:
        payload = json.loads(data.decode("utf-8"))
    except ValueError as e:  # JSON / unicode decode
        raise UpstreamError(f"Invalid JSON from {url}", url=url) from e
    if not isinstance(payload, dict):
        raise UpstreamError(f"Unexpected payload type from {url}", url=url)
    return payload
