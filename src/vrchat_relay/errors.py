# src/vrchat_relay/errors.py

from typing import List, Optional, Sequence

from fastapi import status


class RelayError(Exception):
    """
    Base class for failures that terminate the current browser request.
    Upstream Set-Cookie values collected before the failure travel with the
    error so they still reach the browser.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        detail: str,
        status_code: Optional[int] = None,
        set_cookies: Sequence[str] = (),
    ):
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code
        self.set_cookies: List[str] = list(set_cookies)


class TransportError(RelayError):
    """The upstream could not be reached (DNS, TCP, TLS, timeout)."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class DecodeError(RelayError):
    """An upstream body did not match the expected shape."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class MissingSessionError(RelayError):
    """A page was requested without the cookie it depends on."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ChallengeMismatchError(RelayError):
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidChallengeError(RelayError):
    status_code = status.HTTP_400_BAD_REQUEST


class UpstreamStatusError(RelayError):
    """A protected fetch got a non-success status from the upstream."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, detail: str, upstream_status: int, set_cookies: Sequence[str] = ()):
        super().__init__(detail, set_cookies=set_cookies)
        self.upstream_status = upstream_status
