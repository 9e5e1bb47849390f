#!/usr/bin/env python3
import argparse
import asyncio

from matchlog.database import database
from matchlog.logic.aggregates.physical import recompute_all_deck_aggregates
from matchlog.store.postgres import PostgresDocumentStore
from matchlog.utils.logging import logger


async def async_main() -> None:
    argparse.ArgumentParser(
        description=(
            "Recompute every physical deck aggregate from the logged events. "
            "Decks that fail are logged and skipped."
        )
    ).parse_args()

    await database.connect()
    try:
        processed = await recompute_all_deck_aggregates(PostgresDocumentStore(database))
    finally:
        await database.disconnect()

    logger.info("Recomputed %s deck aggregates", len(processed))


if __name__ == "__main__":
    asyncio.run(async_main())
