"""
classify_pending.py
-------------------
One-shot script that re-delivers the "ticket created" event for every
ticket still in pending_classification (e.g. after a worker crash lost
the background task). Tickets that have moved on are skipped.

Usage:
    python classify_pending.py            # up to 100 tickets
    python classify_pending.py 500
"""

import asyncio
import sys

from upkeep.core.logging import configure_logging
from upkeep.db.session import engine
from upkeep.services.classification_service import classify_pending


async def main(limit: int) -> None:
    configure_logging()
    try:
        count = await classify_pending(limit=limit)
    finally:
        await engine.dispose()
    print(f"Re-delivered {count} pending ticket(s).")


if __name__ == "__main__":
    asyncio.run(main(int(sys.argv[1]) if len(sys.argv) > 1 else 100))
