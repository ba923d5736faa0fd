import pytest

from core.errors import ValidationFailedError
from models.rating_stats import RatingStats
from services.stats import (
    MIN_RATINGS_FOR_VISIBILITY,
    confidence_level,
    increment_ratings_given,
    percentile_of,
    recalculate_user_rating,
    refresh_percentiles,
    snapshot_ratings,
    weighted_mean,
)
from utils.snapshot import main as snapshot_main

from conftest import fetch_stats


def test_weighted_mean_uses_rater_power():
    assert weighted_mean([(4.0, 1.0), (6.0, 1.0), (8.0, 2.0)]) == 6.5


def test_weighted_mean_without_weight_is_none():
    assert weighted_mean([]) is None
    assert weighted_mean([(7.0, 0.0)]) is None


def test_percentile_counts_values_at_or_below():
    values = [3.0, 5.0, 5.0, 9.0]
    assert percentile_of(5.0, values) == 75.0
    assert percentile_of(9.0, values) == 100.0
    assert percentile_of(3.0, values) == 25.0
    assert percentile_of(1.0, []) is None


def test_confidence_levels():
    assert confidence_level(0).level == "early"
    assert confidence_level(MIN_RATINGS_FOR_VISIBILITY - 1).level == "early"
    assert confidence_level(MIN_RATINGS_FOR_VISIBILITY).level == "emerging"
    assert confidence_level(70).level == "stable"


@pytest.mark.asyncio
async def test_recalculate_weighted_rating(db, make_user, make_photo, add_rating):
    target = await make_user()
    photo = await make_photo(target)
    for score, power in [(4.0, 1.0), (6.0, 1.0), (8.0, 2.0)]:
        rater = await make_user()
        await add_rating(rater, target, photo, score, power)

    stats = await recalculate_user_rating(db, target)
    await db.commit()

    assert stats.current_rating == 6.5
    assert stats.ratings_received_count == 3
    assert stats.is_rating_visible is False
    assert stats.percentile is None


@pytest.mark.asyncio
async def test_recalculate_is_idempotent(db, make_user, make_photo, add_rating):
    target = await make_user()
    photo = await make_photo(target)
    for score in (3.0, 7.5, 9.0):
        await add_rating(await make_user(), target, photo, score)

    first = (await recalculate_user_rating(db, target)).current_rating
    await db.commit()
    second = (await recalculate_user_rating(db, target)).current_rating
    await db.commit()

    assert first == second == pytest.approx(6.5)


@pytest.mark.asyncio
async def test_visibility_threshold_is_inclusive(db, make_user, make_photo, add_rating):
    target = await make_user()
    photo = await make_photo(target)
    for _ in range(MIN_RATINGS_FOR_VISIBILITY - 1):
        await add_rating(await make_user(), target, photo, 6.0)

    stats = await recalculate_user_rating(db, target)
    await db.commit()
    assert stats.ratings_received_count == MIN_RATINGS_FOR_VISIBILITY - 1
    assert stats.is_rating_visible is False

    await add_rating(await make_user(), target, photo, 8.0)
    stats = await recalculate_user_rating(db, target)
    await db.commit()
    assert stats.ratings_received_count == MIN_RATINGS_FOR_VISIBILITY
    assert stats.is_rating_visible is True
    # единственный видимый пользователь — на вершине
    assert stats.percentile == 100.0


@pytest.mark.asyncio
async def test_increment_ratings_given_creates_and_increments(db, make_user):
    user = await make_user()

    await increment_ratings_given(db, user)
    await db.commit()
    assert (await fetch_stats(db, user)).ratings_given_count == 1

    await increment_ratings_given(db, user)
    await db.commit()
    assert (await fetch_stats(db, user)).ratings_given_count == 2


@pytest.mark.asyncio
async def test_snapshot_overwrites_single_point(db, make_user):
    user = await make_user()
    db.add(RatingStats(user_id=user, current_rating=5.0))
    await db.commit()

    assert await snapshot_ratings(db, "7d") == 1
    stats = await fetch_stats(db, user)
    assert stats.rating_7d_ago == 5.0
    assert stats.rating_30d_ago is None

    stats.current_rating = 7.25
    await db.commit()
    await snapshot_ratings(db, "7d")
    assert (await fetch_stats(db, user)).rating_7d_ago == 7.25


@pytest.mark.asyncio
async def test_snapshot_rejects_unknown_horizon(db):
    with pytest.raises(ValidationFailedError):
        await snapshot_ratings(db, "1y")


@pytest.mark.asyncio
async def test_refresh_percentiles_ranks_visible_users_only(db, make_user):
    ratings = {}
    for value in (4.0, 6.0, 8.0):
        ratings[await make_user()] = value
    hidden = await make_user()
    for user_id, value in ratings.items():
        db.add(RatingStats(user_id=user_id, current_rating=value, is_rating_visible=True))
    db.add(RatingStats(user_id=hidden, current_rating=9.5, is_rating_visible=False))
    await db.commit()

    assert await refresh_percentiles(db) == 3

    by_rating = {}
    for user_id, value in ratings.items():
        by_rating[value] = (await fetch_stats(db, user_id)).percentile
    assert by_rating == {4.0: pytest.approx(33.33), 6.0: pytest.approx(66.67), 8.0: 100.0}
    assert (await fetch_stats(db, hidden)).percentile is None


def test_snapshot_command_rejects_unknown_horizon():
    assert snapshot_main([]) == 2
    assert snapshot_main(["90d"]) == 2
