# src/vrchat_relay/auth_utils.py
import base64
import enum
import logging
import re
from dataclasses import dataclass, field
from typing import List, Union
from urllib.parse import quote_plus

from pydantic import ValidationError

from .config import settings
from .errors import ChallengeMismatchError, DecodeError, InvalidChallengeError, MissingSessionError
from .models import AuthChallenge, Credentials, CurrentUser, TwoFactorAuthRequest, TwoFactorRequired, TwoFactorVerifyResult
from .session_data import TWO_FACTOR_COOKIE_NAME, USER_ID_COOKIE_NAME, Session
from .session_relay import RelayCookie
from .upstream import UpstreamClient

logger = logging.getLogger(__name__)

CURRENT_USER_PATH = "auth/user"
VERIFY_PATH_TEMPLATE = "auth/twofactorauth/{method}/verify"

LOGIN_PAGE = "/login"
CHALLENGE_PAGE = "/2fa"
DASHBOARD_PAGE = "/"

# Challenge methods end up in an upstream URL path
_CHALLENGE_METHOD_RE = re.compile(r"^[A-Za-z0-9]+$")


class AuthState(str, enum.Enum):
    ANONYMOUS = "anonymous"
    CHALLENGED = "challenged"
    AUTHENTICATED = "authenticated"


@dataclass
class AuthOutcome:
    """Where the browser goes next and which cookies travel with it."""
    state: AuthState
    redirect_to: str
    set_cookies: List[str] = field(default_factory=list)  # From the upstream, verbatim
    relay_cookies: List[RelayCookie] = field(default_factory=list)


# --- Credential encoding ---

def encode_basic_auth(username: str, password: str) -> str:
    """
    Builds the Basic-Auth token the VRChat API expects. Both parts are
    query-escaped first, so a ':' in either cannot shift the separator.
    """
    raw = f"{quote_plus(username)}:{quote_plus(password)}"
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


# --- Speculative challenge decode ---

@dataclass(frozen=True)
class NotMatched:
    pass


@dataclass(frozen=True)
class Matched:
    challenge: AuthChallenge


ChallengeDecode = Union[Matched, NotMatched]


def decode_challenge(body: bytes) -> ChallengeDecode:
    try:
        shape = TwoFactorRequired.model_validate_json(body)
    except ValidationError:
        return NotMatched()
    if not shape.requiresTwoFactorAuth:
        return NotMatched()
    return Matched(AuthChallenge(method=shape.requiresTwoFactorAuth[0]))


def decode_current_user(body: bytes, set_cookies: List[str]) -> CurrentUser:
    try:
        return CurrentUser.model_validate_json(body)
    except ValidationError as e:
        logger.warning("AUTH: Login response is neither a challenge nor a user record (%d error(s)).", e.error_count())
        raise DecodeError("Error parsing JSON response", set_cookies=set_cookies)


# --- State transitions ---

async def login(upstream: UpstreamClient, credentials: Credentials, session: Session) -> AuthOutcome:
    """Anonymous -> Challenged | Authenticated."""
    token = encode_basic_auth(credentials.username, credentials.password)
    response = await upstream.request(
        "GET", CURRENT_USER_PATH, session, headers={"Authorization": f"Basic {token}"}
    )

    decoded = decode_challenge(response.body)
    if isinstance(decoded, Matched):
        method = decoded.challenge.method
        logger.info("AUTH: Upstream requires two-factor auth (%s). Redirecting to %s.", method, CHALLENGE_PAGE)
        return AuthOutcome(
            state=AuthState.CHALLENGED,
            redirect_to=CHALLENGE_PAGE,
            set_cookies=response.set_cookies,
            relay_cookies=[RelayCookie(TWO_FACTOR_COOKIE_NAME, method)],
        )

    user = decode_current_user(response.body, response.set_cookies)
    logger.info("AUTH: Login succeeded for user %s.", user.id)
    relay_cookies = [RelayCookie(USER_ID_COOKIE_NAME, user.id, max_age=settings.USER_ID_COOKIE_MAX_AGE)]
    if session.pending_challenge is not None:
        relay_cookies.append(RelayCookie(TWO_FACTOR_COOKIE_NAME, None))
    return AuthOutcome(
        state=AuthState.AUTHENTICATED,
        redirect_to=DASHBOARD_PAGE,
        set_cookies=response.set_cookies,
        relay_cookies=relay_cookies,
    )


def check_challenge_method(method: str, session: Session) -> None:
    pending = session.pending_challenge
    if pending is None:
        raise MissingSessionError("No 2FA type specified", status_code=400)
    if method != pending.method:
        logger.warning("AUTH: Submitted 2FA type %r does not match pending %r.", method, pending.method)
        raise ChallengeMismatchError("2FA type does not match the pending challenge")
    if not _CHALLENGE_METHOD_RE.match(method):
        raise InvalidChallengeError("Invalid 2FA type")


def verification_succeeded(status_code: int, body: bytes) -> bool:
    if not 200 <= status_code < 300:
        return False
    try:
        return TwoFactorVerifyResult.model_validate_json(body).verified
    except ValidationError:
        # Non-JSON success bodies count as verified
        return True


async def verify_challenge(upstream: UpstreamClient, method: str, code: str, session: Session) -> AuthOutcome:
    """Challenged -> Authenticated, or stays Challenged when the code is refused."""
    check_challenge_method(method, session)

    payload = TwoFactorAuthRequest(code=code)
    response = await upstream.request(
        "POST",
        VERIFY_PATH_TEMPLATE.format(method=method),
        session,
        json=payload.model_dump(),
    )

    if not verification_succeeded(response.status_code, response.body):
        logger.info("AUTH: 2FA verification (%s) was refused with status %s.", method, response.status_code)
        return AuthOutcome(
            state=AuthState.CHALLENGED,
            redirect_to=CHALLENGE_PAGE,
            set_cookies=response.set_cookies,
        )

    logger.info("AUTH: 2FA verification (%s) accepted.", method)
    return AuthOutcome(
        state=AuthState.AUTHENTICATED,
        redirect_to=DASHBOARD_PAGE,
        set_cookies=response.set_cookies,
        relay_cookies=[RelayCookie(TWO_FACTOR_COOKIE_NAME, None)],
    )
