# src/vrchat_relay/views.py

import logging
from pathlib import Path
from typing import Dict, List, Type, TypeVar
from urllib.parse import quote

from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, TypeAdapter, ValidationError

from .config import settings
from .errors import DecodeError, UpstreamStatusError
from .models import Friend, GroupInstances
from .session_data import Session
from .upstream import UpstreamClient, UpstreamResponse

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

# Built once at import; requests only pass render data.
templates = Jinja2Templates(directory=TEMPLATES_DIR)

FRIENDS_PATH = "auth/user/friends"
GROUP_INSTANCES_PATH_TEMPLATE = "users/{user_id}/instances/groups/"

STATUS_ORDER: Dict[str, int] = {
    "join me": 0,
    "active": 1,
    "ask me": 2,
    "busy": 3,
}
UNKNOWN_STATUS_RANK = 99

STATUS_ICONS: Dict[str, str] = {
    "busy": "🔴",
    "ask me": "🟠",
    "join me": "🔵",
    "active": "🟢",
}
UNKNOWN_STATUS_ICON = "⚪"

OFFLINE_LOCATION = "offline"

templates.env.globals["status_icon"] = lambda s: STATUS_ICONS.get(s, UNKNOWN_STATUS_ICON)

T = TypeVar("T", bound=BaseModel)

_friends_adapter = TypeAdapter(List[Friend])


def status_rank(status: str) -> int:
    return STATUS_ORDER.get(status.lower(), UNKNOWN_STATUS_RANK)


def sort_friends(friends: List[Friend]) -> List[Friend]:
    # sorted() is stable, so equal ranks keep the upstream order
    return sorted(friends, key=lambda f: status_rank(f.status))


def visible_friends(friends: List[Friend]) -> List[Friend]:
    return [f for f in friends if f.location != OFFLINE_LOCATION]


def _ensure_success(response: UpstreamResponse, what: str) -> None:
    if response.is_success:
        return
    logger.warning("VIEWS: Upstream answered %s for %s.", response.status_code, what)
    raise UpstreamStatusError(
        f"VRChat API returned {response.status_code} for {what}",
        upstream_status=response.status_code,
        set_cookies=response.set_cookies,
    )


def _decode(model: Type[T], response: UpstreamResponse, what: str) -> T:
    try:
        return model.model_validate_json(response.body)
    except ValidationError:
        raise DecodeError(f"Error parsing JSON for {what}", set_cookies=response.set_cookies)


async def fetch_friends(upstream: UpstreamClient, session: Session) -> UpstreamResponse:
    return await upstream.request(
        "GET", FRIENDS_PATH, session, params={"n": settings.FRIENDS_PAGE_SIZE}
    )


def decode_friends(response: UpstreamResponse) -> List[Friend]:
    _ensure_success(response, "friends")
    try:
        friends = _friends_adapter.validate_json(response.body)
    except ValidationError:
        raise DecodeError("Error parsing JSON for friends", set_cookies=response.set_cookies)
    return sort_friends(friends)


async def fetch_group_instances(upstream: UpstreamClient, user_id: str, session: Session) -> UpstreamResponse:
    return await upstream.request(
        "GET", GROUP_INSTANCES_PATH_TEMPLATE.format(user_id=quote(user_id, safe="")), session
    )


def decode_group_instances(response: UpstreamResponse) -> GroupInstances:
    _ensure_success(response, "group instances")
    return _decode(GroupInstances, response, "group instances")
