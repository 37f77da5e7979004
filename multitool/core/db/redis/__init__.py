from .client import RedisPool, create_redis_pool
from .config import DirectUrl, Endpoint, RedisConfig, StructuredEndpoint

__all__ = [
    "RedisPool",
    "create_redis_pool",
    "RedisConfig",
    "Endpoint",
    "DirectUrl",
    "StructuredEndpoint",
]
