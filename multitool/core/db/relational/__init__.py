from .config import RelationalDBConfig
from .pool import RelationalPool, create_relational_pool


__all__ = [
    "RelationalDBConfig",
    "RelationalPool",
    "create_relational_pool",
]
