"""Upstream HTTP transport for the two T-Soft protocol styles.

REST1 (legacy): form-urlencoded POST, token duplicated as a form field,
a bearer header and an ``X-Auth-Token`` header.
V3 (modern): JSON GET/POST with a bearer header only.

Transport errors never escape: a failed call is a ``RawResponse`` with
``success=False``. There are no retries here; trying the next endpoint
candidate is the retry strategy.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from backoffice.config import settings

logger = logging.getLogger(__name__)

# Transport errors that count as a failed candidate
TRANSPORT_EXC = (
    httpx.HTTPError,
    httpx.InvalidURL,
)

FORM_ACCEPT = "application/json, text/plain, */*"
JSON_ACCEPT = "application/json"


class ConfigurationError(RuntimeError):
    """Raised when required upstream configuration is missing."""
    pass


@dataclass(frozen=True)
class RawResponse:
    """Outcome of a single transport call."""

    success: bool
    body: str
    status: int

    @classmethod
    def failed(cls) -> RawResponse:
        return cls(success=False, body="", status=0)


def _truncate(text: str, limit: int = 500) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


class UpstreamTransport:
    """
    Sends requests to the T-Soft API.

    Features:
    - Lazily created, reused httpx.AsyncClient (or an injected one)
    - Fixed per-call timeout
    - Form (REST1) and JSON (V3) request styles
    """

    def __init__(
        self,
        token: str,
        base_url: str,
        timeout: Optional[float] = None,
        debug: bool = False,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the transport.

        Args:
            token: API token (required)
            base_url: API base URL, trailing slash ignored
            timeout: Per-call timeout in seconds (defaults to config)
            debug: Log request forms and truncated response bodies
            client: Optional pre-built client (tests inject a MockTransport here)

        Raises:
            ConfigurationError: If the token is empty
        """
        if not token:
            raise ConfigurationError("T-Soft API token is not configured")

        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else settings.upstream_timeout_seconds
        self.debug = debug
        self._http_client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
            )
        return self._http_client

    async def close(self):
        """Close HTTP client if this transport created it."""
        if self._http_client and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    def build_url(self, path: str) -> str:
        return self.base_url + ("" if path.startswith("/") else "/") + path

    async def _send(self, method: str, url: str, **kwargs) -> RawResponse:
        client = await self._get_client()
        resp = await client.request(method, url, timeout=self.timeout, **kwargs)
        body = resp.text
        if self.debug:
            logger.debug(f"Response: {resp.status_code} {_truncate(body)}")
        return RawResponse(success=resp.is_success, body=body, status=resp.status_code)

    async def form_post(self, path: str, form: Optional[dict[str, str]] = None) -> RawResponse:
        """
        POST a REST1 form request.

        Args:
            path: Endpoint path, e.g. "/product/getProducts"
            form: Business parameters; the token field is added here

        Returns:
            RawResponse; ``success`` is True only for 2xx statuses
        """
        url = self.build_url(path)
        data = dict(form or {})
        data["token"] = self.token
        headers = {
            "Authorization": f"Bearer {self.token}",
            "X-Auth-Token": self.token,
            "Accept": FORM_ACCEPT,
            "Content-Type": "application/x-www-form-urlencoded; charset=UTF-8",
        }

        if self.debug:
            masked = {k: ("***" if k == "token" else v) for k, v in data.items()}
            logger.debug(f"POST {url} Form: {masked}")

        try:
            return await self._send("POST", url, data=data, headers=headers)
        except TRANSPORT_EXC as e:
            logger.warning(f"REST1 POST failed: {path} ({type(e).__name__}: {e})")
            return RawResponse.failed()

    async def json_get(self, path: str, query: Optional[dict[str, str]] = None) -> RawResponse:
        """GET a V3 endpoint with query-string parameters."""
        url = self.build_url(path)
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": JSON_ACCEPT,
        }

        if self.debug:
            logger.debug(f"GET {url} Query: {query or {}}")

        try:
            return await self._send("GET", url, params=query or None, headers=headers)
        except TRANSPORT_EXC as e:
            logger.warning(f"V3 GET failed: {path} ({type(e).__name__}: {e})")
            return RawResponse.failed()

    async def json_post(self, path: str, body: Any) -> RawResponse:
        """POST a JSON body to a V3 endpoint."""
        url = self.build_url(path)
        payload = json.dumps(body, default=str)
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": JSON_ACCEPT,
            "Content-Type": "application/json; charset=utf-8",
        }

        if self.debug:
            logger.debug(f"POST {url} JSON: {payload}")

        try:
            return await self._send("POST", url, content=payload.encode("utf-8"), headers=headers)
        except TRANSPORT_EXC as e:
            logger.warning(f"V3 POST failed: {path} ({type(e).__name__}: {e})")
            return RawResponse.failed()
