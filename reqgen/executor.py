# reqgen/executor.py
"""
Request Executor: one blocking HTTP call per StructuredRequest.

- Relaxed TLS verification by default (test environments use self-signed certs)
- Optional outbound proxy, fixed for the lifetime of the executor
- Session cookies configured up front are sent with every call; cookies set
  by a response are dropped before the next call
- No retries, no redirect following, bounded by a per-request timeout
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import httpx

from reqgen.errors import TransportError
from reqgen.types import HttpMethod, ResponseOutcome, StructuredRequest

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SEC = 30.0

_SENSITIVE_KEYS = {
    "authorization", "x-api-key", "api_key", "apikey", "token",
    "access_token", "cookie", "x-auth-token", "x-access-token",
    "bearer", "session", "csrf", "jwt"
}


def _redact_sensitive(data: Any) -> Any:
    """Recursively redact sensitive information"""
    if isinstance(data, dict):
        return {
            k: "[REDACTED]" if k.lower() in _SENSITIVE_KEYS else _redact_sensitive(v)
            for k, v in data.items()
        }
    elif isinstance(data, list):
        return [_redact_sensitive(item) for item in data]
    return data


def status_line_of(resp: httpx.Response) -> str:
    """'404 Not Found' style status line."""
    return f"{resp.status_code} {resp.reason_phrase}".strip()


class RequestExecutor:
    """
    Dispatches StructuredRequests over a single httpx.Client.

    Use as a context manager, or call close() when done.
    """

    def __init__(
        self,
        proxy: Optional[str] = None,
        cookies: Optional[Dict[str, str]] = None,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        verify_ssl: bool = False,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.proxy = proxy
        self.cookies = dict(cookies or {})
        self.timeout_sec = timeout_sec
        self.verify_ssl = verify_ssl

        self._client = httpx.Client(
            proxy=proxy,
            timeout=httpx.Timeout(timeout_sec),
            verify=verify_ssl,
            follow_redirects=False,
            transport=transport,
        )

        if proxy:
            logger.info(f"🌐 Routing requests through proxy {proxy}")
        if not verify_ssl:
            logger.debug("TLS certificate verification disabled")

    # ==================== Public API ====================

    def execute(self, req: StructuredRequest) -> ResponseOutcome:
        """Perform exactly one HTTP call and normalize the response."""
        logger.debug(
            f"➡️ {req.method.value} {req.url} headers={_redact_sensitive(req.headers)} "
            f"body_len={len(req.body)}"
        )

        # Each call starts from the configured cookies only.
        self._client.cookies = httpx.Cookies(self.cookies)

        t0 = time.perf_counter()
        try:
            resp = self._dispatch(req)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"🔌 {req.method.value} {req.url}: {type(e).__name__}: {e}")
            raise TransportError(req.method.value, req.url, e) from e
        elapsed_ms = (time.perf_counter() - t0) * 1000

        outcome = ResponseOutcome(
            status_code=resp.status_code,
            status_line=status_line_of(resp),
            body_text=resp.text,
        )
        logger.debug(f"⬅️ {outcome.status_line} ({elapsed_ms:.0f}ms, {len(resp.content)} bytes)")
        return outcome

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RequestExecutor":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ==================== Internals ====================

    def _dispatch(self, req: StructuredRequest) -> httpx.Response:
        headers = req.headers or None

        if req.method is HttpMethod.GET:
            return self._client.get(req.url, headers=headers)
        elif req.method is HttpMethod.POST:
            return self._client.post(req.url, content=req.body, headers=headers)
        elif req.method is HttpMethod.PUT:
            return self._client.put(req.url, content=req.body, headers=headers)
        elif req.method is HttpMethod.DELETE:
            return self._client.delete(req.url, headers=headers)
        raise ValueError(f"Unsupported HTTP method: {req.method}")
