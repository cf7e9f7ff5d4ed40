"""Redis connection factory for the shared ledger.

Supports standalone Redis (development, docker-compose) and Redis Sentinel
(HA deployments) without code changes. Connections are verified with the
startup retry policy before they are handed to RedisLedger.

Environment Variables:
    REDIS_URL: Full redis:// URL, takes precedence over host/port (standalone only)
    REDIS_MODE: "standalone" (default) or "sentinel"
    REDIS_HOST / REDIS_PORT / REDIS_DB / REDIS_PASSWORD: standalone settings
    REDIS_SENTINEL_HOSTS: Comma-separated "host:port" pairs (sentinel mode)
    REDIS_MASTER_SET: Sentinel master set name (default: "mymaster")
"""

import logging
import os
from typing import List, Optional, Tuple

from redis.asyncio import Redis
from redis.asyncio.sentinel import Sentinel

from cc_core_lib.utils import service_startup_retry

logger = logging.getLogger(__name__)

DEFAULT_SENTINEL_PORT = 26379


def parse_sentinel_hosts(hosts_str: str) -> List[Tuple[str, int]]:
    """Parse "host1:26379,host2" into [("host1", 26379), ("host2", 26379)]"""
    sentinels = []
    for item in hosts_str.split(","):
        item = item.strip()
        if not item:
            continue
        host, _, port = item.rpartition(":") if ":" in item else (item, "", "")
        sentinels.append((host, int(port) if port else DEFAULT_SENTINEL_PORT))
    return sentinels


@service_startup_retry
async def _verify_redis_connection(client: Redis) -> None:
    await client.ping()
    logger.info("Redis connection verified")


def _sentinel_master(
    sentinel_hosts: str, master_set: str, db: int, password: Optional[str], **options
) -> Redis:
    sentinels = parse_sentinel_hosts(sentinel_hosts)
    if not sentinels:
        raise ValueError(f"No valid sentinel hosts found in: {sentinel_hosts!r}")

    logger.info(f"Connecting to Redis Sentinel: master={master_set}, sentinels={sentinels}")
    sentinel = Sentinel(
        sentinels,
        sentinel_kwargs={"password": password} if password else {},
        socket_keepalive=options.get("socket_keepalive", True),
    )
    return sentinel.master_for(master_set, db=db, password=password, **options)


async def get_redis_client(
    mode: Optional[str] = None,
    url: Optional[str] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
    db: Optional[int] = None,
    password: Optional[str] = None,
    sentinel_hosts: Optional[str] = None,
    master_set: Optional[str] = None,
    health_check_interval: int = 30,
) -> Redis:
    """Create and verify an async Redis client for RedisLedger.

    Explicit arguments win over environment variables. Responses are always
    decoded to str since the ledger stores JSON and integer strings.

    Example:
        ```python
        # docker-compose
        REDIS_HOST=redis

        # Kubernetes with Sentinel
        REDIS_MODE=sentinel
        REDIS_SENTINEL_HOSTS=redis-node-0.redis-headless:26379,redis-node-1.redis-headless:26379
        REDIS_PASSWORD=secret-password

        redis_client = await get_redis_client()
        ledger = RedisLedger(redis_client)
        ```

    Raises:
        ValueError: Sentinel mode without any sentinel hosts
        redis.exceptions.ConnectionError: Redis unreachable after startup retries
    """
    mode = (mode or os.getenv("REDIS_MODE", "standalone")).lower()
    db_index = db if db is not None else int(os.getenv("REDIS_DB", "0"))
    password = password or os.getenv("REDIS_PASSWORD")
    options = {
        "decode_responses": True,
        "socket_keepalive": True,
        "health_check_interval": health_check_interval,
    }

    if mode == "sentinel":
        hosts = sentinel_hosts or os.getenv("REDIS_SENTINEL_HOSTS", "")
        if not hosts:
            raise ValueError("REDIS_SENTINEL_HOSTS environment variable is required for Sentinel mode")
        master_name = master_set or os.getenv("REDIS_MASTER_SET", "mymaster")
        client = _sentinel_master(hosts, master_name, db_index, password, **options)
        target = f"sentinel master={master_name}, db={db_index}"
    else:
        url = url or os.getenv("REDIS_URL")
        if url:
            client = Redis.from_url(url, **options)
            target = url.split("@")[-1]
        else:
            redis_host = host or os.getenv("REDIS_HOST", "localhost")
            redis_port = port if port is not None else int(os.getenv("REDIS_PORT", "6379"))
            client = Redis(
                host=redis_host,
                port=redis_port,
                db=db_index,
                password=password,
                socket_connect_timeout=5,
                **options,
            )
            target = f"{redis_host}:{redis_port}/{db_index}"

    logger.info(f"Connecting to Redis ({mode}): {target}")
    await _verify_redis_connection(client)
    logger.info(f"Redis connection established: {target}")
    return client
