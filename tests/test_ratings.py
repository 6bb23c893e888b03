"""Tests for keeping a venue's rating summary in step with its reviews."""

import random
import uuid

import pytest

from backend.database.core import ratings, reviews, users, venues
from backend.database.core.exceptions import DuplicateReviewError, NotFoundError, PermissionDeniedError
from backend.database.daos.venue_dao import VenueDao
from tests.conftest import REVIEW_TEXT


def review_data(rating: int) -> dict:
    return {"review": REVIEW_TEXT, "rating": rating}


def summary(venue_id) -> tuple[float, int]:
    venue = venues.get_venue(venue_id)
    return venue["average_rating"], venue["ratings_qty"]


def test_new_venue_starts_at_default(make_venue):
    venue = make_venue()

    assert (venue["average_rating"], venue["ratings_qty"]) == (4.5, 0)


def test_create_update_delete_sequence(make_venue, make_user):
    venue = make_venue()
    authors = [make_user() for _ in range(3)]

    created = [
        reviews.add_review(venue["id"], author["id"], review_data(rating))[0]
        for author, rating in zip(authors, (5, 3, 4))
    ]
    assert summary(venue["id"]) == (4.0, 3)

    removed, synced = reviews.remove_review(created[1]["id"], authors[1])
    assert synced is True
    assert removed["rating"] == 3
    assert summary(venue["id"]) == (4.5, 2)

    reviews.edit_review(created[0]["id"], authors[0], {"rating": 1})
    assert summary(venue["id"]) == (2.5, 2)

    reviews.remove_review(created[0]["id"], authors[0])
    reviews.remove_review(created[2]["id"], authors[2])
    assert summary(venue["id"]) == (4.5, 0)


def test_text_only_edit_keeps_summary(make_venue, make_user):
    venue = make_venue()
    author = make_user()
    review, _ = reviews.add_review(venue["id"], author["id"], review_data(2))

    edited, synced = reviews.edit_review(review["id"], author, {"review": REVIEW_TEXT + " Updated."})

    assert synced is True
    assert edited["review"].endswith("Updated.")
    assert summary(venue["id"]) == (2.0, 1)


def test_duplicate_review_leaves_summary_unchanged(make_venue, make_user):
    venue = make_venue()
    author = make_user()
    reviews.add_review(venue["id"], author["id"], review_data(5))

    with pytest.raises(DuplicateReviewError):
        reviews.add_review(venue["id"], author["id"], review_data(1))

    assert summary(venue["id"]) == (5.0, 1)
    assert len(reviews.list_reviews({}, venue_id=venue["id"])) == 1


def test_review_of_unknown_or_banned_venue_is_rejected(make_venue, make_user):
    author = make_user()
    venue = make_venue()
    venues.ban_venue(venue["id"])

    with pytest.raises(NotFoundError):
        reviews.add_review(uuid.uuid4(), author["id"], review_data(4))
    with pytest.raises(NotFoundError):
        reviews.add_review(venue["id"], author["id"], review_data(4))


def test_only_author_or_admin_may_change_a_review(make_venue, make_user):
    venue = make_venue()
    author, stranger, admin = make_user(), make_user(), make_user(role="admin")
    review, _ = reviews.add_review(venue["id"], author["id"], review_data(4))

    with pytest.raises(PermissionDeniedError):
        reviews.edit_review(review["id"], stranger, {"rating": 1})
    with pytest.raises(PermissionDeniedError):
        reviews.remove_review(review["id"], stranger)
    assert summary(venue["id"]) == (4.0, 1)

    reviews.remove_review(review["id"], admin)
    assert summary(venue["id"]) == (4.5, 0)


def test_failed_rating_update_keeps_the_review(make_venue, make_user, monkeypatch):
    venue = make_venue()
    author = make_user()

    def fail(*args, **kwargs):
        raise RuntimeError("database unavailable")

    with monkeypatch.context() as patch:
        patch.setattr(VenueDao, "applyRatingDelta", fail)
        review, synced = reviews.add_review(venue["id"], author["id"], review_data(2))

    assert synced is False
    assert reviews.get_review(review["id"])["rating"] == 2
    assert summary(venue["id"]) == (4.5, 0)

    assert ratings.recalculate_venue_rating(venue["id"]) == {"average_rating": 2.0, "ratings_qty": 1}
    assert summary(venue["id"]) == (2.0, 1)


def test_recount_repairs_a_drifted_summary(make_venue, make_user):
    venue = make_venue()
    for rating in (1, 2):
        reviews.add_review(venue["id"], make_user()["id"], review_data(rating))
    ratings.apply_rating_change(venue["id"], 10, 3)

    ratings.recalculate_venue_rating_safely(venue["id"])

    assert summary(venue["id"]) == (1.5, 2)


def test_recount_of_unknown_venue_returns_none():
    assert ratings.recalculate_venue_rating(uuid.uuid4()) is None


def test_banned_venue_summary_stays_current(make_venue, make_user):
    venue = make_venue()
    author = make_user()
    review, _ = reviews.add_review(venue["id"], author["id"], review_data(3))
    venues.ban_venue(venue["id"])

    reviews.remove_review(review["id"], author)
    venues.unban_venue(venue["id"])

    assert summary(venue["id"]) == (4.5, 0)


def test_deleting_a_user_recounts_their_venues(make_venue, make_user):
    first, second = make_venue(), make_venue()
    leaving, staying = make_user(), make_user()
    reviews.add_review(first["id"], leaving["id"], review_data(1))
    reviews.add_review(second["id"], leaving["id"], review_data(2))
    reviews.add_review(first["id"], staying["id"], review_data(5))

    users.remove_user(leaving["id"])

    assert summary(first["id"]) == (5.0, 1)
    assert summary(second["id"]) == (4.5, 0)
    assert len(reviews.list_reviews({})) == 1


def test_deleting_a_venue_removes_its_reviews(make_venue, make_user):
    venue = make_venue()
    reviews.add_review(venue["id"], make_user()["id"], review_data(4))

    venues.remove_venue(venue["id"])

    assert reviews.list_reviews({}) == []


def test_random_mutations_keep_summary_consistent(make_venue, make_user):
    rng = random.Random(7)
    venue = make_venue()
    authors = [make_user() for _ in range(6)]
    live = {}

    for _ in range(30):
        author = rng.choice(authors)
        mine = live.get(author["id"])
        if mine is None:
            review, _ = reviews.add_review(venue["id"], author["id"], review_data(rng.randint(1, 5)))
            live[author["id"]] = review
        elif rng.random() < 0.5:
            review, _ = reviews.edit_review(mine["id"], author, {"rating": rng.randint(1, 5)})
            live[author["id"]] = review
        else:
            reviews.remove_review(mine["id"], author)
            del live[author["id"]]

        current = [review["rating"] for review in live.values()]
        average, quantity = summary(venue["id"])
        assert quantity == len(current)
        if current:
            assert average == pytest.approx(sum(current) / len(current))
        else:
            assert average == 4.5
