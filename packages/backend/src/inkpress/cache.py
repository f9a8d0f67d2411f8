"""Redis connection — backs the rate limiter.

Learn: One connection pool per app, opened in the lifespan and kept on
app.state.redis. When Redis can't be reached the app keeps serving and
the rate limiter steps aside.
"""

import redis.asyncio as aioredis

from inkpress.config import Settings


async def init_redis(settings: Settings) -> aioredis.Redis:
    """Open the Redis connection pool and check it answers."""
    client = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    try:
        await client.ping()
    except Exception:
        await client.aclose()
        raise
    return client


async def close_redis(client: aioredis.Redis | None) -> None:
    """Close the Redis connection pool."""
    if client is not None:
        await client.aclose()
