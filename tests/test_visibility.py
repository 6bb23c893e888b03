"""Tests for the visibility filter: banned venues and inactive users stay hidden."""

import uuid

import pytest

from backend.database.core import auth, users, venues
from backend.database.core.exceptions import AuthenticationError, ConflictError, NotFoundError
from backend.database.daos.visibility import VisibleDao
from backend.database.entities.venue import Venue
from backend.database.query.descriptor import QueryDescriptor
from backend.database.query.pipeline import match


class RecordingDao:
    model = Venue

    def __init__(self):
        self.calls = []

    def find(self, session, query, *criteria):
        self.calls.append(("find", criteria))
        return []

    def findOne(self, session, *criteria):
        self.calls.append(("findOne", criteria))
        return None

    def aggregate(self, session, pipeline):
        self.calls.append(("aggregate", tuple(pipeline)))
        return []


def test_visible_criterion_comes_first():
    visible = Venue.banned.is_(False)
    extra = Venue.name == "Blue Door"
    dao = RecordingDao()
    wrapped = VisibleDao(dao, visible)

    wrapped.find(None, QueryDescriptor(), extra)
    wrapped.findOne(None, extra)
    wrapped.findById(None, "some-id")

    for _, criteria in dao.calls:
        assert criteria[0] is visible
    assert dao.calls[0][1][1] is extra


def test_aggregate_prepends_a_match_stage():
    dao = RecordingDao()
    stage = match(Venue.vegan_friendly.is_(True))

    VisibleDao(dao, Venue.banned.is_(False)).aggregate(None, [stage])

    _, pipeline = dao.calls[0]
    assert len(pipeline) == 2
    assert pipeline[1] is stage


def test_hidden_entity_is_none_for_writes():
    wrapped = VisibleDao(RecordingDao(), Venue.banned.is_(False))

    assert wrapped.updateById(None, "some-id", {"name": "x"}) is None
    assert wrapped.deleteById(None, "some-id") is None


def test_banned_venue_is_hidden_everywhere(make_venue):
    kept = make_venue("Open Kitchen")
    banned = make_venue("Closed Kitchen")

    venues.ban_venue(banned["id"])

    assert [venue["id"] for venue in venues.list_venues({})] == [kept["id"]]
    with pytest.raises(NotFoundError):
        venues.get_venue(banned["id"])
    with pytest.raises(NotFoundError):
        venues.update_venue(banned["id"], {"address": "Somewhere"})
    with pytest.raises(NotFoundError):
        venues.remove_venue(banned["id"])


def test_banned_venue_is_excluded_from_stats(make_venue):
    make_venue("Cheap Eats", affordability="affordable", average_dish_price=8.0)
    banned = make_venue("Gone Cheap", affordability="affordable", average_dish_price=2.0)
    make_venue("Fine Dining", affordability="expensive", average_dish_price=60.0)

    venues.ban_venue(banned["id"])
    stats = {row["affordability"]: row for row in venues.venue_stats()}

    assert set(stats) == {"affordable", "expensive"}
    assert stats["affordable"]["num_venues"] == 1
    assert stats["affordable"]["min_dish_price"] == 8.0


def test_unban_restores_visibility(make_venue):
    venue = make_venue("Phoenix")

    assert venues.ban_venue(venue["id"]) == {"id": venue["id"], "banned": True}
    assert venues.unban_venue(venue["id"]) == {"id": venue["id"], "banned": False}
    assert venues.get_venue(venue["id"])["name"] == "Phoenix"


def test_ban_unknown_venue_is_not_found():
    with pytest.raises(NotFoundError):
        venues.ban_venue(uuid.uuid4())


def test_banned_name_is_still_taken(make_venue):
    venue = make_venue("Reserved Name")
    venues.ban_venue(venue["id"])

    with pytest.raises(ConflictError):
        make_venue("Reserved Name")


def test_inactive_user_is_hidden(make_user):
    active = make_user()
    inactive = make_user()

    users.deactivate_user(inactive["id"])

    assert [user["id"] for user in users.list_users({})] == [active["id"]]
    with pytest.raises(NotFoundError):
        users.get_user(inactive["id"])
    with pytest.raises(AuthenticationError):
        auth.resolve_token_user(inactive["id"], 0)

    users.activate_user(inactive["id"])
    assert users.get_user(inactive["id"])["id"] == inactive["id"]


def test_inactive_user_cannot_log_in():
    user = users.create_user(name="Ana", email="ana@mail.com", password="secret123")
    assert auth.authenticate_user(email="ANA@mail.com ", password="secret123")["id"] == user["id"]

    auth.deactivate_me(user["id"])

    with pytest.raises(AuthenticationError):
        auth.authenticate_user(email="ana@mail.com", password="secret123")
