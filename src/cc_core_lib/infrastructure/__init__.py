"""Infrastructure Module

Redis connection factory and the Redis-backed ledger.
"""

from cc_core_lib.infrastructure.redis_ledger import RedisLedger
from cc_core_lib.infrastructure.redis_setup import get_redis_client, parse_sentinel_hosts

__all__ = [
    "RedisLedger",
    "get_redis_client",
    "parse_sentinel_hosts",
]
