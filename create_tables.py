"""
create_tables.py
----------------
One-shot script to create the tickets / invites / users / properties /
landlord_profiles tables. Use this for quick setup and local development;
production schemas should be managed with migrations.

Usage:
    python create_tables.py            # create missing tables
    python create_tables.py --reset    # drop everything first (destroys data)
"""

import argparse
import asyncio

from upkeep.core.logging import configure_logging, get_logger
from upkeep.db.session import engine
from upkeep.models import Base  # Imports all models so metadata is populated

logger = get_logger(__name__)


async def create_all_tables(reset: bool = False) -> None:
    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
            logger.warning("All tables dropped")
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    logger.info("Tables ready", tables=sorted(Base.metadata.tables))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.split("\n\n")[0])
    parser.add_argument("--reset", action="store_true", help="drop all tables before creating them")
    args = parser.parse_args()

    configure_logging()
    asyncio.run(create_all_tables(reset=args.reset))
