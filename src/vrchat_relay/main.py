# src/vrchat_relay/main.py

import logging

from fastapi import Depends, FastAPI, Form, Request, status
from fastapi.responses import HTMLResponse, PlainTextResponse

from . import auth_utils, views
from .config import settings
from .errors import MissingSessionError, RelayError, UpstreamStatusError
from .models import Credentials
from .session_data import Session
from .session_relay import build_redirect, relay_set_cookies
from .upstream import UpstreamClient, get_upstream_client

logger = logging.getLogger(__name__)

app = FastAPI(
    title="VRChat Relay",
    description="Backend-For-Frontend relaying a VRChat session to the browser and rendering friends and group instances.",
    version="0.1.0",
)

templates = views.templates


def get_session(request: Request) -> Session:
    return Session.from_request(request)


def require_upstream_session(session: Session = Depends(get_session)) -> Session:
    if not session.has_cookie(settings.UPSTREAM_SESSION_COOKIE):
        raise MissingSessionError("Not logged in to VRChat", status_code=status.HTTP_401_UNAUTHORIZED)
    return session


# --- Error handling ---
@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError):
    if isinstance(exc, UpstreamStatusError) and exc.upstream_status in (
        status.HTTP_401_UNAUTHORIZED,
        status.HTTP_403_FORBIDDEN,
    ):
        logger.info("MAIN: Upstream rejected the session on %s. Redirecting to login.", request.url.path)
        return build_redirect(auth_utils.LOGIN_PAGE, exc.set_cookies)

    logger.warning(
        "MAIN: %s on %s -> %s: %s", exc.__class__.__name__, request.url.path, exc.status_code, exc.detail
    )
    response = PlainTextResponse(exc.detail, status_code=exc.status_code)
    # Cookies the upstream already issued still reach the browser
    relay_set_cookies(response, exc.set_cookies)
    return response


# --- Authentication Routes ---
@app.get("/login", response_class=HTMLResponse)
async def login_form(request: Request):
    return templates.TemplateResponse(request, "login.html", {})


@app.post("/auth")
async def auth(
    username: str = Form(""),
    password: str = Form(""),
    session: Session = Depends(get_session),
    upstream: UpstreamClient = Depends(get_upstream_client),
):
    logger.info("MAIN: /auth route hit.")
    outcome = await auth_utils.login(upstream, Credentials(username=username, password=password), session)
    return build_redirect(outcome.redirect_to, outcome.set_cookies, outcome.relay_cookies)


@app.get("/2fa", response_class=HTMLResponse)
async def two_factor_form(request: Request, session: Session = Depends(get_session)):
    if session.pending_challenge is None:
        raise MissingSessionError("No 2FA type specified", status_code=status.HTTP_400_BAD_REQUEST)
    return templates.TemplateResponse(
        request, "two_factor.html", {"method": session.pending_challenge.method}
    )


@app.post("/verify2fa")
async def verify_two_factor(
    challenge_type: str = Form("", alias="type"),
    code: str = Form(""),
    session: Session = Depends(get_session),
    upstream: UpstreamClient = Depends(get_upstream_client),
):
    logger.info("MAIN: /verify2fa route hit for type %s.", challenge_type)
    outcome = await auth_utils.verify_challenge(upstream, challenge_type, code, session)
    return build_redirect(outcome.redirect_to, outcome.set_cookies, outcome.relay_cookies)


# --- Pages ---
@app.get("/", response_class=HTMLResponse)
async def dashboard(request: Request, session: Session = Depends(get_session)):
    if not session.has_cookie(settings.UPSTREAM_SESSION_COOKIE):
        return build_redirect(auth_utils.LOGIN_PAGE)
    return templates.TemplateResponse(request, "dashboard.html", {"user_id": session.user_id})


@app.get("/friends", response_class=HTMLResponse)
async def friends(
    request: Request,
    session: Session = Depends(require_upstream_session),
    upstream: UpstreamClient = Depends(get_upstream_client),
):
    response = await views.fetch_friends(upstream, session)
    friend_list = views.decode_friends(response)
    logger.info("MAIN: /friends rendering %d friend(s).", len(friend_list))
    page = templates.TemplateResponse(
        request, "friends.html", {"friends": views.visible_friends(friend_list)}
    )
    relay_set_cookies(page, response.set_cookies)
    return page


@app.get("/groups", response_class=HTMLResponse)
async def groups(
    request: Request,
    session: Session = Depends(get_session),
    upstream: UpstreamClient = Depends(get_upstream_client),
):
    user_id = session.user_id
    if not user_id:
        raise MissingSessionError("Error no user id cookie stored", status_code=status.HTTP_401_UNAUTHORIZED)

    response = await views.fetch_group_instances(upstream, user_id, session)
    instances = views.decode_group_instances(response)
    logger.info("MAIN: /groups rendering %d instance(s).", len(instances.instances))
    page = templates.TemplateResponse(request, "groups.html", {"data": instances})
    relay_set_cookies(page, response.set_cookies)
    return page


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}
