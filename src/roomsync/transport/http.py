"""
REST HTTP client for a Matrix homeserver — client-server API.
"""

import logging
from typing import Any, Optional

import httpx

from roomsync.errors import TransportError
from roomsync.models.session import Server

logger = logging.getLogger(__name__)

CLIENT_API_PREFIX = "/_matrix/client/v3"
DEFAULT_HTTP_TIMEOUT_S = 60.0


class HttpClient:
    def __init__(
        self,
        server: Server,
        token: Optional[str] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._server = server
        self._token = token
        self._client = httpx.AsyncClient(
            base_url=f"{server.base_url}{CLIENT_API_PREFIX}",
            headers={"User-Agent": "roomsync/0.1.0", "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @property
    def server(self) -> Server:
        return self._server

    def set_token(self, token: str) -> None:
        self._token = token

    def _auth_headers(self, authenticated: bool) -> dict[str, str]:
        headers: dict[str, str] = {}
        if authenticated and self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    @staticmethod
    def _decode(resp: httpx.Response) -> Any:
        """Decode a JSON response, raising TransportError with the Matrix errcode on failure."""
        try:
            body = resp.json()
        except ValueError:
            body = None
        if resp.status_code >= 400:
            errcode = body.get("errcode") if isinstance(body, dict) else None
            error = body.get("error") if isinstance(body, dict) else resp.text[:200]
            detail = " ".join(part for part in (errcode, error) if part)
            raise TransportError(
                f"HTTP {resp.status_code}: {detail}",
                status_code=resp.status_code,
                errcode=errcode,
            )
        if body is None:
            raise TransportError(f"Undecodable response body: {resp.text[:200]}", status_code=resp.status_code)
        return body

    @staticmethod
    def _query(params: Optional[dict[str, Any]]) -> Optional[dict[str, str]]:
        if params is None:
            return None
        query: dict[str, str] = {}
        for key, value in params.items():
            if value is None:
                continue
            query[key] = ("true" if value else "false") if isinstance(value, bool) else str(value)
        return query

    async def get(self, path: str, params: Optional[dict[str, Any]] = None, authenticated: bool = True) -> Any:
        logger.debug("GET %s %s", path, {k: v for k, v in (params or {}).items() if k != "since"})
        resp = await self._client.get(path, params=self._query(params), headers=self._auth_headers(authenticated))
        return self._decode(resp)

    async def put(self, path: str, body: Optional[dict[str, Any]] = None, authenticated: bool = True) -> Any:
        resp = await self._client.put(path, json=body, headers=self._auth_headers(authenticated))
        return self._decode(resp)

    async def close(self) -> None:
        await self._client.aclose()
