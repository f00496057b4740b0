# src/vrchat_relay/upstream.py

import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional

import httpx

from .config import Settings, settings
from .errors import TransportError
from .session_data import Session

logger = logging.getLogger(__name__)


@dataclass
class UpstreamResponse:
    status_code: int
    set_cookies: List[str] = field(default_factory=list)
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: bytes = b""

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class UpstreamClient:
    """
    Thin wrapper over httpx.AsyncClient for the VRChat API.

    Every call carries the relay's User-Agent and the browser's Cookie header.
    Bodies are returned undecoded; callers pick the shape they expect.
    """

    def __init__(
        self,
        base_url: str,
        user_agent: str,
        timeout: float,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.user_agent = user_agent
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(
        cls, config: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "UpstreamClient":
        return cls(
            base_url=config.VRCHAT_API_BASE_URL,
            user_agent=config.VRCHAT_USER_AGENT,
            timeout=config.UPSTREAM_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def __aenter__(self) -> "UpstreamClient":
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        method: str,
        path: str,
        session: Session,
        json: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> UpstreamResponse:
        if self._client is None:
            raise RuntimeError("UpstreamClient must be used as an async context manager.")

        outbound_headers: Dict[str, str] = {"User-Agent": self.user_agent}
        if headers:
            outbound_headers.update(headers)
        if session.cookie_header:
            outbound_headers["Cookie"] = session.cookie_header

        try:
            logger.debug("UPSTREAM: %s %s", method, path)
            response = await self._client.request(
                method, path, headers=outbound_headers, json=json, params=params
            )
        except httpx.RequestError as e:
            logger.warning("UPSTREAM: Request error for %s %s: %s", method, path, e)
            raise TransportError(f"Could not reach the VRChat API: {e.__class__.__name__}")

        logger.info("UPSTREAM: %s %s -> %s", method, path, response.status_code)
        return UpstreamResponse(
            status_code=response.status_code,
            set_cookies=response.headers.get_list("set-cookie"),
            headers=response.headers,
            body=response.content,
        )


async def get_upstream_client() -> AsyncIterator[UpstreamClient]:
    async with UpstreamClient.from_settings(settings) as client:
        yield client
