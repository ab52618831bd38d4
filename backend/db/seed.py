"""Create the schema and insert the starter timeline.

Usage: python -m db.seed
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from db import repository

logger = logging.getLogger(__name__)

TEXT_COLOR = "#2d3436"

CANONICAL_STEPS: list[dict] = [
    {
        "phase": "The Spark",
        "date": "November 1, 2025",
        "image_public_id": "journey/step_1",
        "caption": "The day we met...",
        "theme_background": "#FFF5F7",
        "theme_text": TEXT_COLOR,
        "theme_accent": "#fab1a0",
        "step_order": 1,
    },
    {
        "phase": "Getting Closer",
        "date": "November 15, 2025",
        "image_public_id": "journey/step_2",
        "caption": "Late night conversations that made my heart race...",
        "theme_background": "#FFF0F5",
        "theme_text": TEXT_COLOR,
        "theme_accent": "#fd79a8",
        "step_order": 2,
    },
    {
        "phase": "The Crush",
        "date": "December 1, 2025",
        "image_public_id": "journey/step_3",
        "caption": "I couldn't stop thinking about you...",
        "theme_background": "#FFE6F0",
        "theme_text": TEXT_COLOR,
        "theme_accent": "#e84393",
        "step_order": 3,
    },
    {
        "phase": "First Date",
        "date": "December 15, 2025",
        "image_public_id": "journey/step_4",
        "caption": "The moment everything changed...",
        "theme_background": "#F3E5F5",
        "theme_text": TEXT_COLOR,
        "theme_accent": "#a29bfe",
        "step_order": 4,
    },
    {
        "phase": "Together",
        "date": "January 1, 2026",
        "image_public_id": "journey/step_5",
        "caption": "You said yes, and my world became complete...",
        "theme_background": "#E8F5E9",
        "theme_text": TEXT_COLOR,
        "theme_accent": "#55efc4",
        "step_order": 5,
    },
]


async def seed_if_empty(db: AsyncSession) -> int:
    """Insert the canonical steps unless the table already has rows."""
    if await repository.count_journey_steps(db) > 0:
        return 0
    steps = await repository.create_journey_steps(db, CANONICAL_STEPS)
    return len(steps)


async def main() -> None:
    from db.store import DatabaseJourneyStepStore

    inserted = await DatabaseJourneyStepStore().bootstrap()
    logger.info("Database setup complete (%d rows inserted)", inserted)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
