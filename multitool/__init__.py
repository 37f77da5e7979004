from .core.db.redis import RedisConfig, RedisPool, create_redis_pool
from .core.db.relational import RelationalDBConfig, RelationalPool, create_relational_pool
from .core.errors import ConfigurationError, MultitoolError, ParseError, StoreConnectionError
from .core.logging import LogLevel, init_logger
from .core.settings import MultitoolSettings, load_settings

__version__ = "0.1.3"

__all__ = [
    # 关系型数据库
    "RelationalDBConfig",
    "RelationalPool",
    "create_relational_pool",
    # Redis
    "RedisConfig",
    "RedisPool",
    "create_redis_pool",
    # 日志
    "LogLevel",
    "init_logger",
    # 配置加载
    "MultitoolSettings",
    "load_settings",
    # 异常
    "MultitoolError",
    "ConfigurationError",
    "StoreConnectionError",
    "ParseError",
]
