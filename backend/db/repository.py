from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import JourneyStepModel, utcnow

STEP_COLUMNS = (
    "phase",
    "date",
    "image_public_id",
    "caption",
    "theme_background",
    "theme_text",
    "theme_accent",
    "step_order",
)


async def list_journey_steps(db: AsyncSession) -> list[JourneyStepModel]:
    result = await db.execute(
        select(JourneyStepModel).order_by(JourneyStepModel.step_order, JourneyStepModel.id)
    )
    return list(result.scalars().all())


async def get_journey_step(db: AsyncSession, step_id: int) -> JourneyStepModel | None:
    return await db.get(JourneyStepModel, step_id)


async def count_journey_steps(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(JourneyStepModel))
    return result.scalar_one()


async def create_journey_step(db: AsyncSession, columns: dict) -> JourneyStepModel:
    step = JourneyStepModel(**{k: columns[k] for k in STEP_COLUMNS})
    db.add(step)
    await db.flush()
    return step


async def create_journey_steps(db: AsyncSession, rows: list[dict]) -> list[JourneyStepModel]:
    steps = [JourneyStepModel(**{k: row[k] for k in STEP_COLUMNS}) for row in rows]
    db.add_all(steps)
    await db.flush()
    return steps


async def update_journey_step(
    db: AsyncSession, step_id: int, columns: dict
) -> JourneyStepModel | None:
    step = await db.get(JourneyStepModel, step_id)
    if step is None:
        return None
    for key in STEP_COLUMNS:
        setattr(step, key, columns[key])
    step.updated_at = utcnow()
    await db.flush()
    return step


async def delete_journey_step(db: AsyncSession, step_id: int) -> bool:
    step = await db.get(JourneyStepModel, step_id)
    if step is None:
        return False
    await db.delete(step)
    await db.flush()
    return True
