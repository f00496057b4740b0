# src/vrchat_relay/session_relay.py

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from fastapi import status
from fastapi.responses import RedirectResponse
from starlette.responses import Response

from .config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RelayCookie:
    """A cookie minted (or cleared, when value is None) by the relay itself."""
    name: str
    value: Optional[str]
    max_age: Optional[int] = None


def relay_set_cookies(response: Response, set_cookies: Iterable[str]) -> None:
    """Copy upstream Set-Cookie values onto the browser response, untouched."""
    count = 0
    for raw in set_cookies:
        response.headers.append("set-cookie", raw)
        count += 1
    if count:
        logger.debug("RELAY: Relayed %d upstream cookie(s) to the browser.", count)


def apply_relay_cookies(response: Response, cookies: Iterable[RelayCookie]) -> None:
    for cookie in cookies:
        if cookie.value is None:
            response.delete_cookie(cookie.name, path="/")
            continue
        response.set_cookie(
            cookie.name,
            cookie.value,
            max_age=cookie.max_age,
            expires=cookie.max_age,
            path="/",
            secure=settings.COOKIE_SECURE,
            httponly=True,
            samesite="lax",
        )


def build_redirect(
    url: str,
    set_cookies: Iterable[str] = (),
    relay_cookies: Iterable[RelayCookie] = (),
) -> RedirectResponse:
    response = RedirectResponse(url=url, status_code=status.HTTP_303_SEE_OTHER)
    relay_set_cookies(response, set_cookies)
    apply_relay_cookies(response, relay_cookies)
    return response
