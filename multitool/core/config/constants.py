from __future__ import annotations

from typing import Final

# ========== 配置加载相关常量 ==========

# 默认配置文件名称，约定放在当前工作目录下
SETTINGS_FILE_NAME: Final[str] = "settings.toml"

# 默认运行环境类型（开发环境），适用于未显式指定环境变量时的回退值
DEFAULT_ENV_TYPE: Final[str] = "dev"

# 运行环境类型的环境变量名（例如：dev / test / prod）
RUN_ENV_TYPE_VAR: Final[str] = "MULTITOOL_RUN_ENV"

# Dynaconf 会自动读取带有此前缀的环境变量并合并到配置中
# 例如：MULTITOOL_REDIS__HOST 会覆盖 settings.toml 中 [redis] 节的 host
ENVVAR_PREFIX: Final[str] = "MULTITOOL"

# ========== 配置节名称 ==========

SECTION_LOGGING: Final[str] = "logging"
SECTION_DATABASE: Final[str] = "database"
SECTION_REDIS: Final[str] = "redis"

# ========== 存储协议 ==========

# Redis 连接串协议头
REDIS_URL_SCHEME: Final[str] = "redis"

# SQLAlchemy 驱动名：PostgreSQL + asyncpg 异步驱动
POSTGRES_DRIVER_NAME: Final[str] = "postgresql+asyncpg"

# ========== 敏感信息关键词（用于日志脱敏） ==========

# 字段名包含以下任意关键词即视为敏感字段，输出配置时会被掩码
SENSITIVE_KEYWORDS: Final[frozenset[str]] = frozenset(
    {
        "password",
        "passwd",
        "pwd",
        "secret",
        "token",
        "credential",
        "auth",
        "api_key",
        "private_key",
    }
)
