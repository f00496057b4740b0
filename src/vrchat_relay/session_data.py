# src/vrchat_relay/session_data.py

from typing import Dict, Optional

from fastapi import Request
from pydantic import BaseModel

from .models import AuthChallenge

TWO_FACTOR_COOKIE_NAME = "2fa_type"
USER_ID_COOKIE_NAME = "user_id"


class Session(BaseModel):
    """
    Represents the session state the browser round-trips to the relay.
    Nothing is stored server-side: the upstream's own cookies are the source
    of truth, and the relay only reads its two cookies back out of them.
    """
    cookie_header: Optional[str] = None  # Forwarded verbatim to the upstream
    cookies: Dict[str, str] = {}
    pending_challenge: Optional[AuthChallenge] = None

    @classmethod
    def from_request(cls, request: Request) -> "Session":
        cookies = dict(request.cookies)
        method = cookies.get(TWO_FACTOR_COOKIE_NAME)
        return cls(
            cookie_header=request.headers.get("cookie"),
            cookies=cookies,
            pending_challenge=AuthChallenge(method=method) if method else None,
        )

    @property
    def user_id(self) -> Optional[str]:
        return self.cookies.get(USER_ID_COOKIE_NAME) or None

    def has_cookie(self, name: str) -> bool:
        return bool(self.cookies.get(name))
