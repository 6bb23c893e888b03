"""End-to-end tests of the HTTP API."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from backend.api.utils import create_access_token
from backend.database.config.config import settings
from backend.database.core import auth, users
from backend.database.daos.venue_dao import VenueDao
from backend.main import app
from tests.conftest import DESCRIPTION, REVIEW_TEXT, venue_data

API = "/api/v1"


@pytest.fixture
def client():
    return TestClient(app)


def bearer(user: dict) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user['id'])}"}


@pytest.fixture
def owner():
    return users.create_user(name="Olga", email="olga@mail.com", password="secret123", role="owner")


@pytest.fixture
def admin():
    return users.create_user(name="Adam", email="adam@mail.com", password="secret123", role="admin")


@pytest.fixture
def reviewer():
    return users.create_user(name="Rita", email="rita@mail.com", password="secret123")


@pytest.fixture
def venue(client, owner):
    response = client.post(f"{API}/venues", json=venue_data("Blue Door"), headers=bearer(owner))
    assert response.status_code == 201
    return response.json()["data"]["venue"]


def post_review(client, venue_id, user, rating):
    return client.post(
        f"{API}/venues/{venue_id}/reviews",
        json={"review": REVIEW_TEXT, "rating": rating},
        headers=bearer(user),
    )


# -----------------------
# Auth
# -----------------------

def test_signup_sets_cookie_and_returns_token(client):
    response = client.post(
        f"{API}/auth/signup",
        json={"name": "Ana", "email": "ana@mail.com", "password": "secret123", "password_confirm": "secret123"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "success"
    assert body["token"]
    assert body["data"]["user"]["role"] == "user"
    assert "password" not in body["data"]["user"]
    assert "token" in response.cookies

    me = client.get(f"{API}/auth/me")
    assert me.json()["data"]["user"]["email"] == "ana@mail.com"


def test_signup_rejects_admin_role(client):
    response = client.post(
        f"{API}/auth/signup",
        json={
            "name": "Eve",
            "email": "eve@mail.com",
            "password": "secret123",
            "password_confirm": "secret123",
            "role": "admin",
        },
    )

    assert response.status_code == 422
    assert response.json()["status"] == "error"


def test_signup_password_mismatch(client):
    response = client.post(
        f"{API}/auth/signup",
        json={"name": "Ana", "email": "ana@mail.com", "password": "secret123", "password_confirm": "secret321"},
    )

    assert response.status_code == 400
    assert response.json() == {"status": "error", "message": "Passwords do not match"}


def test_duplicate_email_conflicts(client, reviewer):
    response = client.post(
        f"{API}/auth/signup",
        json={"name": "Rita", "email": "RITA@mail.com", "password": "secret123", "password_confirm": "secret123"},
    )

    assert response.status_code == 409


def test_login(client, reviewer):
    ok = client.post(f"{API}/auth/login", json={"email": "rita@mail.com", "password": "secret123"})
    bad = client.post(f"{API}/auth/login", json={"email": "rita@mail.com", "password": "wrong-one"})

    assert ok.status_code == 200
    assert ok.json()["data"]["user"]["id"] == str(reviewer["id"])
    assert bad.status_code == 401
    assert bad.json()["message"] == "Incorrect email or password"


def test_protected_route_requires_token(client):
    response = client.get(f"{API}/auth/me")

    assert response.status_code == 401
    assert response.json() == {"status": "error", "message": "You are not logged in"}


def test_garbage_token_is_rejected(client):
    response = client.get(f"{API}/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_token_issued_before_password_change_is_rejected(client, reviewer):
    issued_at = int((datetime.now(timezone.utc) - timedelta(minutes=5)).timestamp())
    old_token = jwt.encode(
        {"sub": str(reviewer["id"]), "iat": issued_at, "exp": issued_at + 3600},
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )
    headers = {"Authorization": f"Bearer {old_token}"}
    assert client.get(f"{API}/auth/me", headers=headers).status_code == 200

    response = client.patch(
        f"{API}/auth/me/password",
        json={"current_password": "secret123", "password": "better456", "password_confirm": "better456"},
        headers=headers,
    )
    assert response.status_code == 200
    new_token = response.json()["token"]

    assert client.get(f"{API}/auth/me", headers=headers).status_code == 401
    assert client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {new_token}"}).status_code == 200


def test_update_me_rejects_role_changes(client, reviewer):
    response = client.patch(f"{API}/auth/me", json={"role": "admin"}, headers=bearer(reviewer))

    assert response.status_code == 422


def test_update_me(client, reviewer):
    response = client.patch(f"{API}/auth/me", json={"name": "Rita R."}, headers=bearer(reviewer))

    assert response.status_code == 200
    assert response.json()["data"]["user"]["name"] == "Rita R."


def test_forgot_and_reset_password(client, reviewer, monkeypatch):
    sent = {}

    def capture(email, token):
        sent.update(email=email, token=token)

    monkeypatch.setattr(auth, "send_password_reset_email", capture)

    response = client.post(f"{API}/auth/forgot-password", json={"email": "rita@mail.com"})
    assert response.status_code == 200
    assert sent["email"] == "rita@mail.com"

    bad = client.patch(
        f"{API}/auth/reset-password/{'0' * 64}",
        json={"password": "fresh789", "password_confirm": "fresh789"},
    )
    assert bad.status_code == 400

    reset = client.patch(
        f"{API}/auth/reset-password/{sent['token']}",
        json={"password": "fresh789", "password_confirm": "fresh789"},
    )
    assert reset.status_code == 200
    assert client.post(f"{API}/auth/login", json={"email": "rita@mail.com", "password": "fresh789"}).status_code == 200

    reused = client.patch(
        f"{API}/auth/reset-password/{sent['token']}",
        json={"password": "other000", "password_confirm": "other000"},
    )
    assert reused.status_code == 400


def test_forgot_password_unknown_email(client):
    response = client.post(f"{API}/auth/forgot-password", json={"email": "nobody@mail.com"})

    assert response.status_code == 404


def test_delete_me_deactivates(client, reviewer):
    headers = bearer(reviewer)

    assert client.delete(f"{API}/auth/me", headers=headers).status_code == 204
    assert client.get(f"{API}/auth/me", headers=headers).status_code == 401
    assert client.post(f"{API}/auth/login", json={"email": "rita@mail.com", "password": "secret123"}).status_code == 401


# -----------------------
# Venues
# -----------------------

def test_list_envelope(client, venue):
    body = client.get(f"{API}/venues").json()

    assert body["status"] == "success"
    assert body["results"] == 1
    assert body["data"]["venues"][0]["name"] == "Blue Door"
    assert body["data"]["venues"][0]["average_rating"] == 4.5


def test_create_venue_requires_owner_or_admin(client, reviewer):
    response = client.post(f"{API}/venues", json=venue_data("Green Door"), headers=bearer(reviewer))

    assert response.status_code == 403


def test_create_venue_rejects_summary_fields(client, owner):
    response = client.post(
        f"{API}/venues", json=venue_data("Green Door", average_rating=5, banned=True), headers=bearer(owner)
    )

    assert response.status_code == 422


def test_create_venue_validates_fields(client, owner):
    short = client.post(
        f"{API}/venues", json=venue_data("Green Door", description="Too short."), headers=bearer(owner)
    )
    long_name = client.post(f"{API}/venues", json=venue_data("N" * 26), headers=bearer(owner))

    assert short.status_code == 422
    assert long_name.status_code == 422
    assert short.json()["message"].startswith("Validation failed")


def test_duplicate_venue_name_conflicts(client, owner, venue):
    response = client.post(f"{API}/venues", json=venue_data("Blue Door"), headers=bearer(owner))

    assert response.status_code == 409


def test_update_venue_forbids_rating_fields(client, owner, venue):
    response = client.patch(
        f"{API}/venues/{venue['id']}", json={"ratings_qty": 100}, headers=bearer(owner)
    )

    assert response.status_code == 422


def test_update_and_delete_venue(client, owner, venue):
    updated = client.patch(
        f"{API}/venues/{venue['id']}", json={"description": DESCRIPTION + " Now open late."}, headers=bearer(owner)
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["venue"]["description"].endswith("open late.")

    assert client.delete(f"{API}/venues/{venue['id']}", headers=bearer(owner)).status_code == 204
    assert client.get(f"{API}/venues/{venue['id']}").status_code == 404


def test_unknown_venue(client):
    response = client.get(f"{API}/venues/00000000-0000-0000-0000-000000000000")

    assert response.status_code == 404
    assert response.json()["status"] == "error"


def test_invalid_query_is_a_client_error(client, venue):
    assert client.get(f"{API}/venues", params={"average_rating[ne]": "3"}).status_code == 400
    assert client.get(f"{API}/venues", params={"password": "x"}).status_code == 400
    assert client.get(f"{API}/venues", params={"page": "abc"}).status_code == 200


def test_query_parameters_reach_the_listing(client, owner, venue):
    client.post(
        f"{API}/venues", json=venue_data("Green Door", affordability="expensive"), headers=bearer(owner)
    )

    body = client.get(f"{API}/venues", params={"affordability": "expensive", "fields": "name"}).json()

    assert body["data"]["venues"] == [{"id": body["data"]["venues"][0]["id"], "name": "Green Door"}]


def test_stats_endpoint(client, venue):
    body = client.get(f"{API}/venues/stats").json()

    assert body["results"] == 1
    assert body["data"]["stats"][0]["affordability"] == "regular"
    assert body["data"]["stats"][0]["num_venues"] == 1


def test_ban_hides_venue(client, admin, reviewer, venue):
    headers = bearer(admin)

    banned = client.patch(f"{API}/admin/venues/{venue['id']}/ban", headers=headers)
    assert banned.status_code == 200
    assert banned.json()["data"]["venue"]["banned"] is True

    assert client.get(f"{API}/venues").json()["results"] == 0
    assert client.get(f"{API}/venues/{venue['id']}").status_code == 404
    assert client.get(f"{API}/venues/{venue['id']}/reviews").status_code == 404
    assert post_review(client, venue["id"], reviewer, 4).status_code == 404

    client.patch(f"{API}/admin/venues/{venue['id']}/unban", headers=headers)
    assert client.get(f"{API}/venues/{venue['id']}").status_code == 200


def test_update_venue_rejects_null_for_required_fields(client, owner, venue):
    response = client.patch(f"{API}/venues/{venue['id']}", json={"name": None}, headers=bearer(owner))

    assert response.status_code == 422
    assert client.get(f"{API}/venues/{venue['id']}").json()["data"]["venue"]["name"] == "Blue Door"


def test_admin_routes_require_admin(client, owner, venue):
    response = client.patch(f"{API}/admin/venues/{venue['id']}/ban", headers=bearer(owner))

    assert response.status_code == 403


# -----------------------
# Reviews
# -----------------------

def test_review_lifecycle_updates_rating(client, venue, reviewer, make_user):
    others = [make_user(), make_user()]

    first = post_review(client, venue["id"], reviewer, 5)
    assert first.status_code == 201
    post_review(client, venue["id"], others[0], 3)
    post_review(client, venue["id"], others[1], 4)

    shown = client.get(f"{API}/venues/{venue['id']}").json()["data"]["venue"]
    assert (shown["average_rating"], shown["ratings_qty"]) == (4.0, 3)

    review_id = first.json()["data"]["review"]["id"]
    edited = client.patch(f"{API}/reviews/{review_id}", json={"rating": 2}, headers=bearer(reviewer))
    assert edited.status_code == 200
    shown = client.get(f"{API}/venues/{venue['id']}").json()["data"]["venue"]
    assert shown["average_rating"] == 3.0

    assert client.delete(f"{API}/reviews/{review_id}", headers=bearer(reviewer)).status_code == 204
    shown = client.get(f"{API}/venues/{venue['id']}").json()["data"]["venue"]
    assert (shown["average_rating"], shown["ratings_qty"]) == (3.5, 2)


def test_review_embeds_author_and_venue(client, venue, reviewer):
    review = post_review(client, venue["id"], reviewer, 4).json()["data"]["review"]

    assert review["user"] == {"id": str(reviewer["id"]), "name": "Rita"}
    assert review["venue"] == {"id": venue["id"], "name": "Blue Door"}


def test_review_hides_banned_venue_and_inactive_author(client, admin, venue, reviewer):
    review_id = post_review(client, venue["id"], reviewer, 4).json()["data"]["review"]["id"]
    headers = bearer(admin)

    client.patch(f"{API}/admin/venues/{venue['id']}/ban", headers=headers)
    client.patch(f"{API}/admin/users/{reviewer['id']}/deactivate", headers=headers)

    listed = client.get(f"{API}/reviews").json()["data"]["reviews"]
    assert [(item["venue"], item["user"]) for item in listed] == [(None, None)]
    shown = client.get(f"{API}/reviews/{review_id}").json()["data"]["review"]
    assert (shown["venue"], shown["user"]) == (None, None)

    client.patch(f"{API}/admin/venues/{venue['id']}/unban", headers=headers)
    shown = client.get(f"{API}/reviews/{review_id}").json()["data"]["review"]
    assert shown["venue"] == {"id": venue["id"], "name": "Blue Door"}
    assert shown["user"] is None


def test_update_review_rejects_null_rating(client, venue, reviewer):
    review_id = post_review(client, venue["id"], reviewer, 4).json()["data"]["review"]["id"]

    response = client.patch(f"{API}/reviews/{review_id}", json={"rating": None}, headers=bearer(reviewer))

    assert response.status_code == 422
    assert client.get(f"{API}/reviews/{review_id}").json()["data"]["review"]["rating"] == 4
    shown = client.get(f"{API}/venues/{venue['id']}").json()["data"]["venue"]
    assert (shown["average_rating"], shown["ratings_qty"]) == (4.0, 1)


def test_second_review_by_same_author_conflicts(client, venue, reviewer):
    assert post_review(client, venue["id"], reviewer, 5).status_code == 201

    second = post_review(client, venue["id"], reviewer, 1)

    assert second.status_code == 409
    shown = client.get(f"{API}/venues/{venue['id']}").json()["data"]["venue"]
    assert (shown["average_rating"], shown["ratings_qty"]) == (5.0, 1)


def test_review_validation(client, venue, reviewer):
    short = client.post(
        f"{API}/venues/{venue['id']}/reviews", json={"review": "Nice.", "rating": 4}, headers=bearer(reviewer)
    )
    out_of_range = post_review(client, venue["id"], reviewer, 6)

    assert short.status_code == 422
    assert out_of_range.status_code == 422


def test_owner_cannot_write_reviews(client, venue, owner):
    assert post_review(client, venue["id"], owner, 4).status_code == 403


def test_other_users_cannot_edit_a_review(client, venue, reviewer, make_user):
    review_id = post_review(client, venue["id"], reviewer, 4).json()["data"]["review"]["id"]
    stranger = make_user()

    response = client.patch(f"{API}/reviews/{review_id}", json={"rating": 1}, headers=bearer(stranger))

    assert response.status_code == 403


def test_venue_reviews_are_scoped(client, owner, venue, reviewer):
    other = client.post(f"{API}/venues", json=venue_data("Green Door"), headers=bearer(owner)).json()["data"]["venue"]
    post_review(client, venue["id"], reviewer, 4)
    post_review(client, other["id"], reviewer, 2)

    scoped = client.get(f"{API}/venues/{venue['id']}/reviews").json()
    everything = client.get(f"{API}/reviews").json()

    assert scoped["results"] == 1
    assert scoped["data"]["reviews"][0]["rating"] == 4
    assert everything["results"] == 2
    assert client.get(f"{API}/reviews", params={"rating[gte]": "3"}).json()["results"] == 1


def test_failed_rating_update_is_repaired_in_background(client, venue, reviewer, monkeypatch):
    def fail(*args, **kwargs):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(VenueDao, "applyRatingDelta", fail)

    response = post_review(client, venue["id"], reviewer, 2)

    assert response.status_code == 201
    shown = client.get(f"{API}/venues/{venue['id']}").json()["data"]["venue"]
    assert (shown["average_rating"], shown["ratings_qty"]) == (2.0, 1)


def test_admin_recount(client, admin, venue, reviewer):
    post_review(client, venue["id"], reviewer, 3)

    response = client.post(f"{API}/admin/venues/{venue['id']}/recalculate-rating", headers=bearer(admin))

    assert response.status_code == 200
    assert response.json()["data"]["rating"] == {"average_rating": 3.0, "ratings_qty": 1}
    missing = client.post(
        f"{API}/admin/venues/00000000-0000-0000-0000-000000000000/recalculate-rating", headers=bearer(admin)
    )
    assert missing.status_code == 404


# -----------------------
# Users (admin)
# -----------------------

def test_user_admin_crud(client, admin):
    headers = bearer(admin)

    created = client.post(
        f"{API}/users",
        json={"name": "Bob", "email": "bob@mail.com", "password": "secret123", "role": "owner"},
        headers=headers,
    )
    assert created.status_code == 201
    bob = created.json()["data"]["user"]

    listed = client.get(f"{API}/users", params={"role": "owner"}, headers=headers).json()
    assert [user["email"] for user in listed["data"]["users"]] == ["bob@mail.com"]

    updated = client.patch(f"{API}/users/{bob['id']}", json={"role": "user"}, headers=headers)
    assert updated.json()["data"]["user"]["role"] == "user"

    client.patch(f"{API}/admin/users/{bob['id']}/deactivate", headers=headers)
    assert client.get(f"{API}/users/{bob['id']}", headers=headers).status_code == 404
    client.patch(f"{API}/admin/users/{bob['id']}/activate", headers=headers)
    assert client.get(f"{API}/users/{bob['id']}", headers=headers).status_code == 200

    assert client.delete(f"{API}/users/{bob['id']}", headers=headers).status_code == 204
    assert client.get(f"{API}/users/{bob['id']}", headers=headers).status_code == 404


def test_user_routes_require_admin(client, reviewer):
    assert client.get(f"{API}/users", headers=bearer(reviewer)).status_code == 403
