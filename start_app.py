#!/usr/bin/env python3
"""
Application Startup Script

Checks that the configured Redis (if any) is reachable, then starts the
gallery API under uvicorn. An unreachable Redis is reported but does not
block startup: the cache falls back to the memory tier.

Usage:
    python start_app.py
"""

import asyncio
import sys

import redis.asyncio as redis
import uvicorn
from redis.exceptions import RedisError

from gallery_cache.core.config.settings import get_settings


async def check_redis(url: str, timeout: float) -> bool:
    """Ping Redis once."""
    client = redis.Redis.from_url(url, socket_connect_timeout=timeout, socket_timeout=timeout)
    try:
        await asyncio.wait_for(client.ping(), timeout=timeout)
        return True
    except (RedisError, OSError, asyncio.TimeoutError):
        return False
    finally:
        await client.aclose()


def main():
    """Start the application after a distributed cache check."""
    settings = get_settings()

    print("=" * 60)
    print(f"{settings.app.APP_NAME} - Startup")
    print("=" * 60)
    print()

    print("Step 1: Checking distributed cache...")
    if not settings.distributed_enabled:
        print("[--] Redis tier disabled, serving from the memory cache only")
    elif asyncio.run(check_redis(settings.redis.REDIS_URL, timeout=2.0)):
        print("[OK] Redis reachable")
    else:
        print("[!!] Redis unreachable, the memory cache will carry the load")

    print("\nStep 2: Starting FastAPI application...")
    print("=" * 60)
    print()

    try:
        uvicorn.run(
            "gallery_cache.application.app:app",
            host=settings.app.API_HOST,
            port=settings.app.API_PORT,
            reload=settings.app.ENVIRONMENT == "development",
            log_level=settings.logging.LOG_LEVEL.lower()
        )
    except KeyboardInterrupt:
        print("\n\nShutting down...")
        sys.exit(0)


if __name__ == "__main__":
    main()
