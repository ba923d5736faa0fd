from datetime import date

import pytest
from sqlalchemy import update

from core.errors import ConflictError, NoCandidatesError
from models.photo import Photo
from models.rating_queue import QueueState, RatingQueue
from services import selector
from services.queue import generate_queue
from services.selector import select_next, skip_target
from services.submitter import submit_rating

from conftest import fetch_queue


@pytest.mark.asyncio
async def test_select_next_returns_highest_priority_and_marks_shown(db, make_user, make_photo):
    rater = await make_user()
    for _ in range(3):
        await make_photo(await make_user())
    await generate_queue(db, rater)
    top = (await fetch_queue(db, rater))[0]
    top_id, top_photo = top.id, top.photo_id

    target = await select_next(db, rater)

    assert target.queue_id == top_id
    assert target.photo_id == top_photo
    assert target.photo_url.startswith("http://localhost:9000/photos/photos/")
    rows = {row.id: row.state for row in await fetch_queue(db, rater)}
    assert rows[top_id] == QueueState.shown
    assert list(rows.values()).count(QueueState.pending) == 2


@pytest.mark.asyncio
async def test_select_next_generates_queue_once(db, make_user, make_photo):
    rater = await make_user()
    owner = await make_user(birth_year=date.today().year - 27, country="RU")
    photo = await make_photo(owner)

    target = await select_next(db, rater)

    assert target.photo_id == photo
    assert target.target_user_id == owner
    assert target.age_range == "25-29"
    assert target.country == "RU"


@pytest.mark.asyncio
async def test_select_next_without_candidates(db, make_user, make_photo):
    rater = await make_user()
    await make_photo(rater)

    with pytest.raises(NoCandidatesError):
        await select_next(db, rater)


@pytest.mark.asyncio
async def test_shown_row_is_offered_again_until_resolved(db, make_user, make_photo):
    rater = await make_user()
    for _ in range(2):
        await make_photo(await make_user())

    first = await select_next(db, rater)
    again = await select_next(db, rater)

    assert again.queue_id == first.queue_id


@pytest.mark.asyncio
async def test_terminal_rows_never_returned(db, make_user, make_photo):
    rater = await make_user()
    for _ in range(2):
        await make_photo(await make_user())

    first = await select_next(db, rater)
    await skip_target(db, rater, first.queue_id)

    second = await select_next(db, rater)
    assert second.queue_id != first.queue_id
    await submit_rating(
        db,
        rater_id=rater,
        target_user_id=second.target_user_id,
        photo_id=second.photo_id,
        score=6.0,
    )

    # пропущенное и оценённое не возвращаются и не попадают в очередь заново
    with pytest.raises(NoCandidatesError):
        await select_next(db, rater)
    states = {row.id: row.state for row in await fetch_queue(db, rater)}
    assert states == {first.queue_id: QueueState.skipped, second.queue_id: QueueState.rated}


@pytest.mark.asyncio
async def test_stale_row_is_dropped(db, make_user, make_photo):
    rater = await make_user()
    stale_photo = await make_photo(await make_user())
    await generate_queue(db, rater)
    fresh_photo = await make_photo(await make_user())
    await generate_queue(db, rater, limit=5)

    photo = await db.get(Photo, stale_photo)
    photo.is_active = False
    await db.commit()

    target = await select_next(db, rater)

    assert target.photo_id == fresh_photo
    assert [row.photo_id for row in await fetch_queue(db, rater)] == [fresh_photo]


@pytest.mark.asyncio
async def test_skip_is_idempotent(db, make_user, make_photo):
    rater = await make_user()
    await make_photo(await make_user())
    target = await select_next(db, rater)

    await skip_target(db, rater, target.queue_id)
    await skip_target(db, rater, target.queue_id)

    assert (await fetch_queue(db, rater))[0].state == QueueState.skipped


@pytest.mark.asyncio
async def test_skip_rated_row_conflicts(db, make_user, make_photo):
    rater = await make_user()
    await make_photo(await make_user())
    target = await select_next(db, rater)
    await submit_rating(
        db,
        rater_id=rater,
        target_user_id=target.target_user_id,
        photo_id=target.photo_id,
        score=9.0,
    )

    with pytest.raises(ConflictError):
        await skip_target(db, rater, target.queue_id)


@pytest.mark.asyncio
async def test_skip_foreign_row_not_found(db, make_user, make_photo):
    rater = await make_user()
    other = await make_user()
    await make_photo(await make_user())
    target = await select_next(db, rater)

    with pytest.raises(NoCandidatesError):
        await skip_target(db, other, target.queue_id)


@pytest.mark.asyncio
async def test_lost_claim_moves_on(db, session_factory, make_user, make_photo, monkeypatch):
    rater = await make_user()
    for _ in range(2):
        await make_photo(await make_user())
    await generate_queue(db, rater)
    top_id = (await fetch_queue(db, rater))[0].id

    assemble = selector._assemble
    claim = selector._claim
    claims = []

    async def assemble_while_other_tab_claims(session, row):
        if row.id == top_id and not claims:
            # вторая вкладка того же оценщика забирает строку раньше нас
            async with session_factory() as other:
                await other.execute(
                    update(RatingQueue)
                    .where(RatingQueue.id == top_id, RatingQueue.state == QueueState.pending)
                    .values(state=QueueState.shown)
                )
                await other.commit()
        return await assemble(session, row)

    async def recording_claim(session, queue_id):
        claimed = await claim(session, queue_id)
        claims.append((queue_id, claimed))
        return claimed

    monkeypatch.setattr(selector, "_assemble", assemble_while_other_tab_claims)
    monkeypatch.setattr(selector, "_claim", recording_claim)

    target = await select_next(db, rater)

    assert claims == [(top_id, False)]
    # строку уже показали в другой вкладке, она и возвращается
    assert target.queue_id == top_id
    states = sorted(row.state.value for row in await fetch_queue(db, rater))
    assert states == ["pending", "shown"]
