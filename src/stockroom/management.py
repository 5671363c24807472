"""Creating the store tables."""
from __future__ import annotations

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from . import models  # noqa: F401  registers the tables on Base.metadata
from .config import configure_logging
from .database import Base, engine

logger = logging.getLogger(__name__)


async def init_database(db_engine: AsyncEngine | None = None) -> None:
    """Create the ``stock_items`` and ``export_records`` tables if missing."""

    engine_to_use = db_engine or engine
    async with engine_to_use.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Store tables ready at %s", engine_to_use.url.render_as_string(hide_password=True))


def cli_init_database() -> None:
    """Console script wrapper for ``stockroom-init-db``."""

    configure_logging()
    asyncio.run(init_database())


if __name__ == "__main__":
    cli_init_database()
