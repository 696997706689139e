#!/usr/bin/env python3
"""
Block until the TennisMate database answers a query.

Connection details come from the same settings the API uses (POSTGRES_* or
DATABASE_URL_OVERRIDE in the environment or .env). A sqlite override needs no
waiting and returns immediately. Run before ``alembic upgrade head`` in the
container entrypoint.
"""

import asyncio
import logging
import os
import sys

import asyncpg

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from tennismate.core.config import settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("wait-for-db")


async def ping_postgres() -> None:
    conn = await asyncpg.connect(
        host=settings.postgres_host,
        port=settings.postgres_port,
        user=settings.postgres_user,
        password=settings.postgres_password,
        database=settings.postgres_db,
        timeout=5.0,
    )
    try:
        await conn.fetchval("SELECT 1")
    finally:
        await conn.close()


async def wait_for_database(attempts: int, interval: float) -> bool:
    target = f"{settings.postgres_host}:{settings.postgres_port}/{settings.postgres_db}"
    for attempt in range(1, attempts + 1):
        try:
            await ping_postgres()
            logger.info(f"{target} is ready after {attempt} attempt(s)")
            return True
        except (OSError, asyncio.TimeoutError, asyncpg.PostgresError) as e:
            logger.info(f"{target} not ready ({attempt}/{attempts}): {e}")
        if attempt < attempts:
            await asyncio.sleep(interval)
    return False


async def main():
    if settings.database_url.startswith("sqlite"):
        logger.info("sqlite database configured, nothing to wait for")
        return

    attempts = int(os.getenv("DB_WAIT_RETRIES", "30"))
    interval = float(os.getenv("DB_WAIT_INTERVAL", "2.0"))
    if not await wait_for_database(attempts, interval):
        logger.error(f"Database still unreachable after {attempts} attempts")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
