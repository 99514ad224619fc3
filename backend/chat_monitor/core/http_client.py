from typing import Optional, Dict, Any, Tuple
import httpx
from loguru import logger


class HttpClient:
    """Thin async wrapper around httpx.AsyncClient shared by the outbound lookups.

    One instance holds one connection pool; open it with ``async with`` for the
    lifetime of a batch so every lookup in that batch reuses the pool.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 30.0,
        auth: Optional[Tuple[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.headers = headers or {}
        self.timeout = timeout
        self.auth = auth
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        kwargs: Dict[str, Any] = {"headers": self.headers, "timeout": self.timeout}
        if self.base_url:
            kwargs["base_url"] = self.base_url
        if self.auth:
            kwargs["auth"] = httpx.BasicAuth(*self.auth)
        if self.transport is not None:
            kwargs["transport"] = self.transport
        self._client = httpx.AsyncClient(**kwargs)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        if not self._client:
            raise RuntimeError("HttpClient not initialized. Use 'async with HttpClient(...)' context manager.")
        logger.debug(f"HTTP {method} {url} | params={kwargs.get('params')}")
        response = await self._client.request(method, url, **kwargs)
        logger.debug(f"HTTP {method} {url} -> {response.status_code}")
        response.raise_for_status()
        return response

    async def get(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("GET", url, **kwargs)
