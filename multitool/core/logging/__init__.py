from __future__ import annotations

from .logger import (
    LogLevel,
    LoggingConfig,
    COMPACT_LOG_FORMAT,
    configure_loguru_logger,
    init_logger,
    add_log_level_argument,
    intercept_loggers,
    restore_loggers,
)

__all__ = [
    # 基础类型
    "LogLevel",
    "LoggingConfig",
    "COMPACT_LOG_FORMAT",
    # 核心 API
    "configure_loguru_logger",
    "init_logger",
    "add_log_level_argument",
    "intercept_loggers",
    "restore_loggers",
]
