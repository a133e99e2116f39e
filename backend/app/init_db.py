"""
Création des tables.
Usage : python -m app.init_db
"""

import asyncio
import logging

import app.models  # noqa: F401 — enregistre tous les modèles dans Base.metadata
from app.database import Base, engine

logger = logging.getLogger(__name__)


async def create_tables() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(create_tables())
    logger.info("Tables créées.")
