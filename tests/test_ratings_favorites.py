import pytest

from wingfinder.services import favorites, ratings
from wingfinder.services.enrichment import get_item_enrichment
from wingfinder.services.errors import (
    ItemNotFoundError,
    NotAuthenticatedError,
    RatingValidationError,
)


# ── Validation ───────────────────────────────────────────────────────────────


@pytest.mark.parametrize("value", [1, 3, 5, 4.0])
def test_validate_rating_accepts_whole_numbers(value):
    assert ratings.validate_rating(value) == int(value)


@pytest.mark.parametrize("value", [0, 6, -1, 3.5, "4", None, True])
def test_validate_rating_rejects(value):
    with pytest.raises(RatingValidationError):
        ratings.validate_rating(value)


# ── Ratings ──────────────────────────────────────────────────────────────────


async def test_set_rating_requires_user(db, stored_item):
    with pytest.raises(NotAuthenticatedError):
        await ratings.set_rating(db, None, stored_item.id, 4)


async def test_set_rating_unknown_item(db):
    with pytest.raises(ItemNotFoundError):
        await ratings.set_rating(db, "user-1", 999, 4)


async def test_resubmitting_updates_in_place(db, stored_item):
    first = await ratings.set_rating(db, "user-1", stored_item.id, 2, review="meh")
    second = await ratings.set_rating(db, "user-1", stored_item.id, 5)

    assert first.id == second.id
    assert second.rating == 5
    assert second.review is None
    assert len(await ratings.get_item_ratings(db, stored_item.id)) == 1


async def test_rating_stats(db, stored_item):
    empty = await ratings.get_item_rating_stats(db, stored_item.id)
    assert (empty.average_rating, empty.rating_count) == (0.0, 0)

    for user, value in (("a", 5), ("b", 4), ("c", 4)):
        await ratings.set_rating(db, user, stored_item.id, value)

    stats = await ratings.get_item_rating_stats(db, stored_item.id, user_id="b")
    assert stats.average_rating == 4.3
    assert stats.rating_count == 3
    assert stats.user_rating == 4


async def test_batch_ratings_cover_every_requested_id(db, stored_item):
    await ratings.set_rating(db, "a", stored_item.id, 3)
    batch = await ratings.get_batch_item_ratings(db, [stored_item.id, 12345], user_id="a")

    assert batch[stored_item.id].average_rating == 3.0
    assert batch[stored_item.id].user_rating == 3
    assert batch[12345].rating_count == 0
    assert batch[12345].user_rating is None


async def test_delete_rating(db, stored_item):
    await ratings.set_rating(db, "a", stored_item.id, 3)
    assert await ratings.delete_rating(db, "a", stored_item.id) is True
    assert await ratings.delete_rating(db, "a", stored_item.id) is False
    assert await ratings.get_user_rating(db, "a", stored_item.id) is None


async def test_anonymous_reads_are_empty(db, stored_item):
    await ratings.set_rating(db, "a", stored_item.id, 3)
    assert await ratings.get_user_rating(db, None, stored_item.id) is None
    assert await ratings.get_user_ratings(db, None) == []
    assert len(await ratings.get_user_ratings(db, "a")) == 1


# ── Favorites ────────────────────────────────────────────────────────────────


async def test_toggle_alternates(db, stored_item):
    assert await favorites.toggle_favorite(db, "a", stored_item.id) is True
    assert await favorites.is_favorited(db, "a", stored_item.id) is True
    assert await favorites.get_favorite_item_ids(db, "a") == {str(stored_item.id)}

    assert await favorites.toggle_favorite(db, "a", stored_item.id) is False
    assert await favorites.is_favorited(db, "a", stored_item.id) is False
    assert await favorites.get_favorites(db, "a") == []


async def test_toggle_errors(db, stored_item):
    with pytest.raises(NotAuthenticatedError):
        await favorites.toggle_favorite(db, "", stored_item.id)
    with pytest.raises(ItemNotFoundError):
        await favorites.toggle_favorite(db, "a", 999)


async def test_favorited_items_join_location(db, stored_item):
    await favorites.toggle_favorite(db, "a", stored_item.id)

    items = await favorites.get_favorited_items(db, "a")
    assert len(items) == 1
    assert items[0].item_name == "Buffalo Wings"
    assert items[0].restaurant_name == "Wing Stop"
    assert await favorites.get_favorited_items(db, None) == []


async def test_batch_favorites(db, stored_item):
    await favorites.toggle_favorite(db, "a", stored_item.id)
    assert await favorites.get_batch_favorites(db, "a", [stored_item.id, 5]) == {
        stored_item.id: True,
        5: False,
    }


# ── Enrichment lookup ────────────────────────────────────────────────────────


async def test_enrichment_by_item_key(db, stored_item):
    await ratings.set_rating(db, "a", stored_item.id, 5)
    await ratings.set_rating(db, "b", stored_item.id, 2)
    await favorites.toggle_favorite(db, "a", stored_item.id)

    anonymous = await get_item_enrichment(db, ["abc123def456", "missing"])
    assert set(anonymous) == {"abc123def456"}
    facts = anonymous["abc123def456"]
    assert facts.item_id == str(stored_item.id)
    assert facts.average_rating == 3.5
    assert facts.rating_count == 2
    assert facts.user_rating is None
    assert facts.is_favorited is False

    mine = (await get_item_enrichment(db, ["abc123def456"], user_id="a"))["abc123def456"]
    assert mine.user_rating == 5
    assert mine.is_favorited is True


async def test_enrichment_unrated_item_has_no_average(db, stored_item):
    facts = (await get_item_enrichment(db, ["abc123def456"]))["abc123def456"]
    assert facts.average_rating is None
    assert facts.rating_count == 0
    assert await get_item_enrichment(db, []) == {}
