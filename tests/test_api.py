from __future__ import annotations

import uuid

from auth_service.security.rate_limiter import SlidingWindowRateLimiter
from auth_service.security.tokens import decode_session_token

from conftest import TEST_SECRET

ALICE = {"username": "alice", "email": "alice@example.com", "password": "correct-horse"}


def sign_up(client, **overrides):
    return client.post("/auth/signup", json={**ALICE, **overrides})


def sign_in(client, email="alice@example.com", password="correct-horse"):
    return client.post("/auth/signin", json={"email": email, "password": password})


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def test_full_lifecycle(api_client):
    client, _ = api_client

    created = sign_up(client)
    assert created.status_code == 201
    body = created.json()
    assert body["message"] == "user registered"
    account_id = body["id"]

    signed_in = sign_in(client)
    assert signed_in.status_code == 200
    token = signed_in.json()["token"]
    assert decode_session_token(token, TEST_SECRET).account_id == uuid.UUID(account_id)
    cookie_header = signed_in.headers["set-cookie"].lower()
    assert cookie_header.startswith("token=")
    assert "httponly" in cookie_header
    assert "max-age=3600" in cookie_header

    profile = client.get("/user/me")
    assert profile.status_code == 200
    assert profile.json()["id"] == account_id
    assert profile.json()["username"] == "alice"
    assert "password_hash" not in profile.json()

    logged_out = client.post("/auth/logout")
    assert logged_out.status_code == 200
    assert logged_out.json() == {"message": "successfully logged out"}
    assert "max-age=0" in logged_out.headers["set-cookie"].lower()


def test_signup_conflicts(api_client):
    client, _ = api_client
    assert sign_up(client).status_code == 201

    duplicate_username = sign_up(client, email="other@example.com")
    assert duplicate_username.status_code == 409
    assert duplicate_username.json() == {"detail": "username already taken"}

    duplicate_email = sign_up(client, username="bob")
    assert duplicate_email.status_code == 409
    assert duplicate_email.json() == {"detail": "email already taken"}


def test_signup_validation(api_client):
    client, _ = api_client

    assert sign_up(client, username="a").status_code == 422
    assert sign_up(client, username="x" * 51).status_code == 422
    assert sign_up(client, email="not-an-email").status_code == 422
    assert sign_up(client, email="user@example.c").status_code == 422
    assert sign_up(client, password="short").status_code == 422
    assert sign_up(client, password="p" * 73).status_code == 422


def test_email_longer_than_column_is_rejected_not_stored(api_client):
    client, _ = api_client
    too_long = "a" * 60 + "@" + "b" * 36 + ".com"

    assert sign_up(client, email=too_long).status_code == 422

    sign_up(client)
    headers = auth_header(sign_in(client).json()["token"])
    client.cookies.clear()
    changed = client.patch("/user/me/email", json={"new_email": too_long}, headers=headers)
    assert changed.status_code == 422
    assert client.get("/user/me", headers=headers).json()["email"] == "alice@example.com"


def test_signin_failures_are_identical(api_client):
    client, _ = api_client
    sign_up(client)

    wrong_password = sign_in(client, password="wrong-password")
    unknown_email = sign_in(client, email="nobody@example.com")

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"detail": "invalid credentials"}
    assert "set-cookie" not in wrong_password.headers


def test_signin_is_rate_limited(api_client):
    client, app = api_client
    app.state.rate_limiter = SlidingWindowRateLimiter(max_requests=2, window_seconds=60)
    sign_up(client)

    assert sign_in(client).status_code == 200
    assert sign_in(client).status_code == 200
    third = sign_in(client)
    assert third.status_code == 429
    assert third.json() == {"detail": "rate limited"}


def test_protected_routes_require_session(api_client):
    client, _ = api_client

    for method, path in [
        ("get", "/user/me"),
        ("get", "/user"),
        ("patch", "/user/me/profile"),
        ("delete", "/user/me"),
    ]:
        response = getattr(client, method)(path)
        assert response.status_code == 401, path
        assert response.json() == {"detail": "authorization required"}


def test_change_profile_and_email(api_client):
    client, _ = api_client
    sign_up(client)
    sign_up(client, username="bob", email="bob@example.com")
    token = sign_in(client).json()["token"]
    client.cookies.clear()
    headers = auth_header(token)

    assert client.patch("/user/me/profile", json={"new_username": "alicia"}, headers=headers).status_code == 200
    taken = client.patch("/user/me/profile", json={"new_username": "bob"}, headers=headers)
    assert taken.status_code == 409
    assert taken.json() == {"detail": "username already taken"}
    assert client.patch("/user/me/profile", json={"new_username": "a"}, headers=headers).status_code == 422

    assert client.patch("/user/me/email", json={"new_email": "alicia@example.com"}, headers=headers).status_code == 200
    taken = client.patch("/user/me/email", json={"new_email": "bob@example.com"}, headers=headers)
    assert taken.status_code == 409
    assert taken.json() == {"detail": "email already taken"}

    profile = client.get("/user/me", headers=headers).json()
    assert profile["username"] == "alicia"
    assert profile["email"] == "alicia@example.com"


def test_change_password(api_client):
    client, _ = api_client
    sign_up(client)
    headers = auth_header(sign_in(client).json()["token"])
    client.cookies.clear()

    wrong = client.patch(
        "/user/me/password",
        json={"old_password": "not-it", "new_password": "battery-staple"},
        headers=headers,
    )
    assert wrong.status_code == 401
    assert wrong.json() == {"detail": "invalid old password"}

    ok = client.patch(
        "/user/me/password",
        json={"old_password": "correct-horse", "new_password": "battery-staple"},
        headers=headers,
    )
    assert ok.status_code == 200
    assert sign_in(client, password="battery-staple").status_code == 200
    assert sign_in(client).status_code == 401


def test_delete_account_then_token_points_nowhere(api_client):
    client, _ = api_client
    sign_up(client)
    headers = auth_header(sign_in(client).json()["token"])
    client.cookies.clear()

    assert client.delete("/user/me", headers=headers).status_code == 200
    second = client.delete("/user/me", headers=headers)
    assert second.status_code == 404
    assert second.json() == {"detail": "user not found"}
    assert client.get("/user/me", headers=headers).status_code == 404


def test_lookup_routes(api_client):
    client, _ = api_client
    account_id = sign_up(client).json()["id"]
    headers = auth_header(sign_in(client).json()["token"])

    by_id = client.get(f"/user/{account_id}", headers=headers)
    assert by_id.status_code == 200
    assert by_id.json()["email"] == "alice@example.com"

    assert client.get(f"/user/{uuid.uuid4()}", headers=headers).status_code == 404
    bad_id = client.get("/user/not-a-uuid", headers=headers)
    assert bad_id.status_code == 400
    assert bad_id.json() == {"detail": "invalid user id format"}

    found = client.get("/user/search", params={"email": "alice@example.com"}, headers=headers)
    assert found.status_code == 200
    assert found.json()["id"] == account_id
    assert client.get("/user/search", params={"email": "ghost@example.com"}, headers=headers).status_code == 404
    assert client.get("/user/search", headers=headers).status_code == 400


def test_list_users_pagination(api_client):
    client, _ = api_client
    for name in ("first", "second", "third"):
        sign_up(client, username=name, email=f"{name}@example.com")
    headers = auth_header(sign_in(client, email="first@example.com").json()["token"])

    page = client.get("/user", params={"limit": 2, "offset": 0}, headers=headers)
    assert [u["username"] for u in page.json()] == ["third", "second"]

    rest = client.get("/user", params={"limit": 2, "offset": 2}, headers=headers)
    assert [u["username"] for u in rest.json()] == ["first"]

    beyond = client.get("/user", params={"limit": 2, "offset": 50}, headers=headers)
    assert beyond.status_code == 200
    assert beyond.json() == []

    defaulted = client.get("/user", params={"limit": -4, "offset": -1}, headers=headers)
    assert len(defaulted.json()) == 3


def test_timestamps_use_day_first_format(api_client):
    client, _ = api_client
    sign_up(client)
    headers = auth_header(sign_in(client).json()["token"])

    profile = client.get("/user/me", headers=headers).json()
    # FakeRepository's clock starts at 2026-01-01T00:00:00Z
    assert profile["created_at"] == "01.01.2026 00:00:01"
