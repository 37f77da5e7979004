from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, Optional, Sequence
from urllib.parse import urlsplit, urlunsplit

from dynaconf import Dynaconf
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .config.constants import (
    DEFAULT_ENV_TYPE,
    ENVVAR_PREFIX,
    RUN_ENV_TYPE_VAR,
    SECTION_DATABASE,
    SECTION_LOGGING,
    SECTION_REDIS,
    SENSITIVE_KEYWORDS,
    SETTINGS_FILE_NAME,
)
from .db.redis.config import RedisConfig
from .db.relational.config import RelationalDBConfig
from .errors import ConfigurationError
from .logging.logger import COMPACT_LOG_FORMAT, LoggingConfig, LogLevel


class LoggingSettings(BaseModel):
    """日志配置节

    Attributes:
        level (LogLevel): 日志级别（大小写不敏感）。默认为 info
        enqueue (bool): 是否启用异步日志队列。默认为 False
        backtrace (bool): 是否在异常日志中包含完整堆栈追踪。默认为 False
        diagnose (bool): 是否启用诊断模式（显示变量值）。默认为 False
        format_str (Optional[str]): 自定义日志格式字符串。默认为 None（使用紧凑单行格式）
    """
    model_config = ConfigDict(extra="forbid")

    level: LogLevel = LogLevel.INFO
    enqueue: bool = False
    backtrace: bool = False
    diagnose: bool = False
    format_str: Optional[str] = None

    @field_validator("level", mode="before")
    @classmethod
    def parse_level(cls, v: Any) -> Any:
        # ParseError 继承自 ValueError，会被 Pydantic 转换为 ValidationError
        if isinstance(v, str):
            return LogLevel.parse(v)
        return v

    def to_logging_config(self) -> LoggingConfig:
        """转换为运行时配置，可直接传给 init_logger()"""
        return LoggingConfig(
            level=self.level,
            format_str=self.format_str or COMPACT_LOG_FORMAT,
            enqueue=self.enqueue,
            backtrace=self.backtrace,
            diagnose=self.diagnose,
        )


class MultitoolSettings(BaseModel):
    """从配置文件和环境变量加载的完整配置

    三个配置节相互独立，宿主程序按需取用：database 和 redis 缺省时为 None

    Attributes:
        env (str): 当前运行环境标识（dev/test/prod...）
        logging (LoggingSettings): 日志配置
        database (Optional[RelationalDBConfig]): 关系型数据库配置
        redis (Optional[RedisConfig]): Redis 配置

    Methods:
        model_dump_safe: 返回脱敏后的配置字典（用于日志输出）
    """
    model_config = ConfigDict(extra="ignore")

    env: str = Field(default=DEFAULT_ENV_TYPE, description="当前运行环境标识")
    logging: LoggingSettings = Field(default_factory=LoggingSettings, description="日志配置")
    database: Optional[RelationalDBConfig] = Field(default=None, description="关系型数据库配置")
    redis: Optional[RedisConfig] = Field(default=None, description="Redis 配置")

    def _mask_value(self, key: str, value: Any) -> Any:
        """对敏感字段值进行脱敏处理

        - 字段名包含敏感关键词：短字符串（<= 6）全部掩盖，长字符串保留首尾各 2 位
        - 带认证信息的 URL：仅掩盖其中的密码部分
        """
        if isinstance(value, dict):
            return {k: self._mask_value(k, v) for k, v in value.items()}

        if value is None:
            return None

        if any(keyword in key.lower() for keyword in SENSITIVE_KEYWORDS):
            if isinstance(value, str) and value:
                if len(value) <= 6:
                    return "******"
                return f"{value[:2]}****{value[-2:]}"
            return "*****"

        if isinstance(value, str) and "://" in value:
            return _mask_url_password(value)

        return value

    def model_dump_safe(self) -> Dict[str, Any]:
        """返回脱敏后的配置字典（用于日志输出）"""
        raw = self.model_dump(mode="json")
        return {k: self._mask_value(k, v) for k, v in raw.items()}

    def __repr__(self) -> str:
        return f"MultitoolSettings({self.model_dump_safe()})"


def _mask_url_password(url: str) -> str:
    parts = urlsplit(url)
    if parts.password is None:
        return url

    # 只替换 netloc 中的密码部分，主机段（含 IPv6 方括号）保持原样
    userinfo, _, hostinfo = parts.netloc.rpartition("@")
    username = userinfo.partition(":")[0]
    return urlunsplit(parts._replace(netloc=f"{username}:******@{hostinfo}"))


def _normalize(value: Any) -> Any:
    """将 Dynaconf 的 Box 对象递归转换为普通字典，并统一小写键名

    环境变量覆盖（如 MULTITOOL_REDIS__PORT）写入的嵌套键会保留大小写，统一小写后才能与模型字段对齐
    """
    if isinstance(value, Mapping):
        return {str(k).lower(): _normalize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_normalize(v) for v in value]
    return value


def _create_dynaconf(settings_files: Sequence[str | Path], env: str) -> Dynaconf:
    """创建 Dynaconf 实例

    配置加载优先级（从高到低）：
    1. 环境变量（带 ENVVAR_PREFIX 前缀，嵌套键用双下划线，如 MULTITOOL_REDIS__HOST）
    2. 配置文件中的环境特定配置（如 [dev]、[prod]）
    3. 配置文件中的 [default] 配置

    Note:
        settings_files 支持 TOML、YAML、JSON 等 Dynaconf 支持的所有格式
    """
    # environments=True: 启用多环境支持
    # merge_enabled=True: 允许多层配置合并（默认配置 + 环境特定配置 + 环境变量）
    return Dynaconf(
        env=env,
        environments=True,
        settings_files=[str(path) for path in settings_files],
        load_dotenv=False,
        merge_enabled=True,
        envvar_prefix=ENVVAR_PREFIX,
    )


def load_settings(
        settings_files: Sequence[str | Path] | None = None,
        *,
        env: str | None = None
) -> MultitoolSettings:
    """加载配置文件和环境变量并生成强类型配置对象

    Args:
        settings_files (Sequence[str | Path] | None): 配置文件列表。默认为当前目录下的 settings.toml
        env (str | None): 运行环境。默认读取环境变量 MULTITOOL_RUN_ENV，未设置时为 "dev"

    Returns:
        MultitoolSettings: 强类型配置对象

    Raises:
        ConfigurationError: 配置节字段缺失或不合法
    """
    files = list(settings_files) if settings_files is not None else [Path.cwd() / SETTINGS_FILE_NAME]
    current_env = env or os.getenv(RUN_ENV_TYPE_VAR, DEFAULT_ENV_TYPE)

    dynaconf = _create_dynaconf(files, current_env)

    data: Dict[str, Any] = {"env": current_env}
    for section in (SECTION_LOGGING, SECTION_DATABASE, SECTION_REDIS):
        value = dynaconf.get(section)
        if value is not None:
            data[section] = _normalize(value)

    try:
        settings = MultitoolSettings(**data)
    except ValidationError as exc:
        logger.error(f"配置校验失败: {exc}")
        raise ConfigurationError(f"配置校验失败: {exc}") from exc

    logger.debug(f"配置加载完成: {settings.model_dump_safe()}")
    return settings
