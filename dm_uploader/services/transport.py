"""HTTP adapter for authenticated API requests."""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import httpx

from ..models import ApiResult, Credentials

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def _describe_errors(errors: Any) -> str:
    if isinstance(errors, list):
        parts = []
        for item in errors:
            if isinstance(item, dict):
                parts.append(f"{item.get('code', '?')}: {item.get('message', item)}")
            else:
                parts.append(str(item))
        return "; ".join(parts)
    return str(errors)


class AuthenticatedTransport:
    """
    HTTP client adapter that attaches session credentials.

    Implements ITransport protocol. API errors come back as failed
    ApiResult values; only httpx transport faults are raised.
    """

    def __init__(
        self,
        credentials: Credentials,
        timeout: float = 60,
        user_agent: str = DEFAULT_USER_AGENT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._credentials = credentials
        self._timeout = timeout
        self._user_agent = user_agent
        self._client: Optional[httpx.AsyncClient] = client
        self._owns_client = client is None

    async def __aenter__(self):
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self

    async def __aexit__(self, *args):
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    def auth_headers(self) -> dict:
        """Headers derived from the current credentials."""
        creds = self._credentials
        headers = {
            "authorization": f"Bearer {creds.bearer_token}",
            "user-agent": self._user_agent,
            "x-twitter-active-user": "yes",
            "x-twitter-client-language": "en",
        }
        if creds.csrf_token:
            headers["x-csrf-token"] = creds.csrf_token
        if creds.is_logged_in:
            headers["x-twitter-auth-type"] = "OAuth2Session"
        if creds.cookies:
            headers["cookie"] = "; ".join(f"{k}={v}" for k, v in creds.cookies.items())
        return headers

    async def send(
        self,
        url: str,
        method: str = "GET",
        *,
        params: Optional[Mapping[str, str]] = None,
        content: Optional[bytes] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> ApiResult:
        if not self._client:
            raise RuntimeError("AuthenticatedTransport not initialized. Use 'async with' context.")

        merged = self.auth_headers()
        if headers:
            merged.update({k.lower(): v for k, v in headers.items()})

        logger.debug("%s %s params=%s", method, url, dict(params or {}))
        response = await self._client.request(
            method,
            url,
            params=params,
            content=content,
            headers=merged,
        )
        return self._to_result(method, url, response)

    @staticmethod
    def _to_result(method: str, url: str, response: httpx.Response) -> ApiResult:
        status = response.status_code
        data: Any = None
        if response.content:
            try:
                data = response.json()
            except ValueError:
                data = response.text

        if status >= 400:
            detail = data
            if isinstance(data, dict) and "errors" in data:
                detail = _describe_errors(data["errors"])
            logger.debug("API error %s on %s %s: %s", status, method, url, detail)
            return ApiResult.fail(status, str(detail or response.reason_phrase))

        if isinstance(data, dict) and data.get("errors") and not data.get("data"):
            return ApiResult.fail(status, _describe_errors(data["errors"]))

        return ApiResult.ok(status, data)
