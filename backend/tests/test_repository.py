import pytest
from sqlalchemy import text

from db.models import JourneyStepModel
from db.repository import (
    count_journey_steps,
    create_journey_step,
    delete_journey_step,
    get_journey_step,
    list_journey_steps,
    update_journey_step,
)
from db.seed import CANONICAL_STEPS, seed_if_empty


def _columns(**overrides) -> dict:
    columns = dict(CANONICAL_STEPS[0])
    columns.update(overrides)
    return columns


@pytest.mark.asyncio
async def test_create_journey_step(session_scope):
    async with session_scope() as db:
        step = await create_journey_step(db, _columns())
    assert isinstance(step, JourneyStepModel)
    assert step.id is not None
    assert step.created_at is not None
    assert step.updated_at is not None


@pytest.mark.asyncio
async def test_list_orders_by_step_order(session_scope):
    async with session_scope() as db:
        await create_journey_step(db, _columns(phase="third", step_order=30))
        await create_journey_step(db, _columns(phase="first", step_order=10))
        await create_journey_step(db, _columns(phase="second", step_order=20))
    async with session_scope() as db:
        steps = await list_journey_steps(db)
    assert [s.phase for s in steps] == ["first", "second", "third"]


@pytest.mark.asyncio
async def test_get_journey_step_nonexistent(session_scope):
    async with session_scope() as db:
        assert await get_journey_step(db, 9999) is None


@pytest.mark.asyncio
async def test_update_journey_step_refreshes_updated_at(session_scope):
    async with session_scope() as db:
        step = await create_journey_step(db, _columns())
    first_updated = step.updated_at
    async with session_scope() as db:
        updated = await update_journey_step(db, step.id, _columns(caption="edited"))
    assert updated.caption == "edited"
    assert updated.updated_at >= first_updated
    assert updated.created_at == step.created_at


@pytest.mark.asyncio
async def test_update_journey_step_nonexistent(session_scope):
    async with session_scope() as db:
        assert await update_journey_step(db, 9999, _columns()) is None


@pytest.mark.asyncio
async def test_delete_journey_step(session_scope):
    async with session_scope() as db:
        step = await create_journey_step(db, _columns())
    async with session_scope() as db:
        assert await delete_journey_step(db, step.id) is True
    async with session_scope() as db:
        assert await delete_journey_step(db, step.id) is False
        assert await count_journey_steps(db) == 0


@pytest.mark.asyncio
async def test_seed_if_empty_only_seeds_once(session_scope):
    async with session_scope() as db:
        assert await seed_if_empty(db) == len(CANONICAL_STEPS)
    async with session_scope() as db:
        assert await seed_if_empty(db) == 0
        assert await count_journey_steps(db) == len(CANONICAL_STEPS)


@pytest.mark.asyncio
async def test_seed_if_empty_keeps_existing_rows(session_scope):
    async with session_scope() as db:
        await create_journey_step(db, _columns(phase="mine", step_order=42))
    async with session_scope() as db:
        assert await seed_if_empty(db) == 0
        steps = await list_journey_steps(db)
    assert [s.phase for s in steps] == ["mine"]


@pytest.mark.asyncio
async def test_timestamps_default_on_the_server(session_scope):
    async with session_scope() as db:
        await db.execute(
            text(
                "INSERT INTO journey_steps (phase, date, image_public_id, caption, "
                "theme_background, theme_text, theme_accent, step_order) "
                "VALUES ('raw', 'd', 'journey/raw', 'c', '#fff', '#000', '#f00', 77)"
            )
        )
    async with session_scope() as db:
        [step] = await list_journey_steps(db)
    assert step.created_at is not None
    assert step.updated_at is not None
    assert JourneyStepModel.__table__.c.created_at.server_default is not None
