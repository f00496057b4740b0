from __future__ import annotations

import httpx

from conftest import FakeUpstream, json_response
from vrchat_relay.models import Friend
from vrchat_relay.views import sort_friends, status_rank, visible_friends


def _friend(name: str, status: str, location: str = "wrld_1:1") -> dict:
    return {
        "id": f"usr_{name}",
        "displayName": name,
        "status": status,
        "statusDescription": f"{name} says hi",
        "location": location,
        "currentAvatarThumbnailImageUrl": f"https://img.example/{name}.png",
    }


def test_sort_friends_orders_by_status() -> None:
    friends = [Friend(**_friend(s.replace(" ", "_"), s)) for s in ["busy", "join me", "active", "ask me", "unknown"]]
    ordered = [f.status for f in sort_friends(friends)]
    assert ordered == ["join me", "active", "ask me", "busy", "unknown"]


def test_sort_friends_is_stable_and_case_insensitive() -> None:
    friends = [
        Friend(displayName="a", status="offline"),
        Friend(displayName="b", status="Active"),
        Friend(displayName="c", status="weird"),
        Friend(displayName="d", status="active"),
    ]
    assert [f.displayName for f in sort_friends(friends)] == ["b", "d", "a", "c"]
    assert status_rank("JOIN ME") == 0


def test_visible_friends_hides_offline() -> None:
    friends = [Friend(displayName="on", location="private"), Friend(displayName="off", location="offline")]
    assert [f.displayName for f in visible_friends(friends)] == ["on"]


def test_thumbnail_prefers_profile_override() -> None:
    f = Friend(currentAvatarThumbnailImageUrl="avatar.png", profilePicOverrideThumbnail="override.png")
    assert f.thumbnail_url == "override.png"
    assert Friend(currentAvatarThumbnailImageUrl="avatar.png").thumbnail_url == "avatar.png"


def test_friends_requires_session(client, upstream: FakeUpstream) -> None:
    r = client.get("/friends", follow_redirects=False)
    assert r.status_code == 401
    assert upstream.requests == []


def test_friends_page_renders_sorted(client, upstream: FakeUpstream) -> None:
    upstream.add(
        "GET",
        "auth/user/friends",
        json_response(
            [
                _friend("Busy", "busy"),
                _friend("Joiner", "join me"),
                _friend("Ghost", "active", location="offline"),
                _friend("Active", "active"),
                _friend("Asker", "ask me"),
            ],
            set_cookies=("auth=refreshed; Path=/; HttpOnly",),
        ),
    )
    client.cookies.set("auth", "authcookie_0123")

    r = client.get("/friends")

    assert r.status_code == 200
    sent = upstream.requests[0]
    assert sent.url.params["n"] == "100"
    assert "auth=authcookie_0123" in sent.headers["cookie"]

    positions = [r.text.index(name) for name in ["Joiner", "Active", "Asker", "Busy"]]
    assert positions == sorted(positions)
    assert "Ghost" not in r.text
    assert "🔵" in r.text and "🔴" in r.text
    assert "auth=refreshed; Path=/; HttpOnly" in r.headers.get_list("set-cookie")


def test_friends_expired_session_redirects_to_login(client, upstream: FakeUpstream) -> None:
    upstream.add("GET", "auth/user/friends", json_response({"error": {"message": "Missing Credentials"}}, status_code=401))
    client.cookies.set("auth", "stale")

    r = client.get("/friends", follow_redirects=False)

    assert r.status_code == 303
    assert r.headers["location"] == "/login"


def test_friends_bad_body_is_decode_error(client, upstream: FakeUpstream) -> None:
    upstream.add("GET", "auth/user/friends", json_response({"not": "a list"}))
    client.cookies.set("auth", "authcookie_0123")

    r = client.get("/friends")

    assert r.status_code == 500


def test_friends_transport_failure_is_503(client, upstream: FakeUpstream) -> None:
    def _fail(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    upstream.add("GET", "auth/user/friends", _fail)
    client.cookies.set("auth", "authcookie_0123")

    r = client.get("/friends")

    assert r.status_code == 503


def test_groups_requires_user_id(client, upstream: FakeUpstream) -> None:
    client.cookies.set("auth", "authcookie_0123")

    r = client.get("/groups")

    assert r.status_code == 401
    assert upstream.requests == []


def test_groups_page_renders_instances(client, upstream: FakeUpstream) -> None:
    upstream.add(
        "GET",
        "users/usr_42/instances/groups/",
        json_response(
            {
                "fetchedAt": "2026-10-18T12:00:00.000Z",
                "instances": [
                    {
                        "id": "wrld_1:12345~group(grp_1)",
                        "ownerId": "grp_1",
                        "worldId": "wrld_1",
                        "groupAccessType": "public",
                        "userCount": 7,
                        "capacity": 32,
                        "photonRegion": "eu",
                        "world": {
                            "name": "The Great Pug",
                            "authorName": "owner",
                            "description": "A cozy bar",
                            "thumbnailImageUrl": "https://img.example/pug.png",
                        },
                    }
                ],
            }
        ),
    )
    client.cookies.set("user_id", "usr_42")

    r = client.get("/groups")

    assert r.status_code == 200
    assert "The Great Pug @ eu" in r.text
    assert "7 / 32" in r.text
    assert upstream.requests[0].url.path == "/api/1/users/usr_42/instances/groups/"


def test_groups_upstream_error_is_bad_gateway(client, upstream: FakeUpstream) -> None:
    client.cookies.set("user_id", "usr_42")

    r = client.get("/groups")

    assert r.status_code == 502


def test_friend_null_fields_fall_back_to_defaults() -> None:
    f = Friend.model_validate(
        {"displayName": "n", "statusDescription": None, "profilePicOverrideThumbnail": None,
         "currentAvatarThumbnailImageUrl": "avatar.png", "bioLinks": None}
    )
    assert f.statusDescription == ""
    assert f.bioLinks == []
    assert f.thumbnail_url == "avatar.png"


def test_friends_page_tolerates_null_fields(client, upstream: FakeUpstream) -> None:
    sparse = _friend("Sparse", "active")
    sparse.update({"statusDescription": None, "userIcon": None, "profilePicOverrideThumbnail": None, "bio": None})
    upstream.add("GET", "auth/user/friends", json_response([_friend("Busy", "busy"), sparse]))
    client.cookies.set("auth", "authcookie_0123")

    r = client.get("/friends")

    assert r.status_code == 200
    assert r.text.index("Sparse") < r.text.index("Busy")
    assert "https://img.example/Sparse.png" in r.text


def test_groups_page_tolerates_null_fields(client, upstream: FakeUpstream) -> None:
    upstream.add(
        "GET",
        "users/usr_42/instances/groups/",
        json_response(
            {
                "fetchedAt": None,
                "instances": [
                    {"ownerId": "grp_1", "photonRegion": None, "tags": None, "userCount": None, "world": None},
                    {"ownerId": "grp_2", "world": {"name": "Lobby", "description": None}},
                ],
            }
        ),
    )
    client.cookies.set("user_id", "usr_42")

    r = client.get("/groups")

    assert r.status_code == 200
    assert "grp_1" in r.text
    assert "Lobby @ " in r.text
