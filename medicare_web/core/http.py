"""
Thin async wrapper around httpx used for every backend call.

The current auth token is injected as a header on each request, and non-2xx
responses are turned into the exception taxonomy in ``core.exceptions`` with
the server's own message preserved.
"""

from typing import Any, Optional
import logging

import httpx

from .config import settings
from .exceptions import ApiError, AuthError, NetworkError

logger = logging.getLogger(__name__)


def payload_message(payload: Any) -> Optional[str]:
    """The message field of a backend error payload, None when it has none."""
    if isinstance(payload, dict):
        for field in ("message", "detail", "error"):
            value = payload.get(field)
            if isinstance(value, str) and value:
                return value
    return None


def error_message(response: httpx.Response, default: str) -> str:
    """Pull the human readable message out of a backend error payload."""
    try:
        payload = response.json()
    except ValueError:
        return response.text.strip() or default

    return payload_message(payload) or default


class ApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        auth_header: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self.auth_header = auth_header or settings.AUTH_HEADER
        self.token: Optional[str] = None
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
        )

    def set_token(self, token: Optional[str]) -> None:
        self.token = token

    def clear_token(self) -> None:
        self.token = None

    def _headers(self) -> dict:
        if self.token:
            return {self.auth_header: self.token}
        return {}

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json: Any = None,
        files: Optional[dict] = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (None when empty)."""
        url = path if path.startswith("/") else f"/{path}"
        try:
            response = await self._client.request(
                method.upper(),
                url,
                params=params,
                json=json,
                files=files,
                headers=self._headers(),
            )
        except httpx.TimeoutException as e:
            logger.warning(f"{method.upper()} {url} timed out after {self.timeout}s")
            raise NetworkError(f"Request timed out: {e}")
        except httpx.HTTPError as e:
            logger.warning(f"{method.upper()} {url} failed: {e}")
            raise NetworkError(f"Request failed: {e}")

        if response.is_error:
            message = error_message(response, response.reason_phrase or "Request failed")
            payload = _safe_json(response)
            logger.info(f"{method.upper()} {url} - Status: {response.status_code} - {message}")
            if response.status_code == 401:
                raise AuthError(message, payload=payload)
            raise ApiError(message, response.status_code, payload)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    async def get(self, path: str, params: Optional[dict] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None, files: Optional[dict] = None) -> Any:
        return await self.request("POST", path, json=json, files=files)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def patch(self, path: str, json: Any = None) -> Any:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def aclose(self) -> None:
        await self._client.aclose()


def _safe_json(response: httpx.Response) -> Optional[dict]:
    try:
        payload = response.json()
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None
