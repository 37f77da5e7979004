from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable

from typing_extensions import override

from loguru import logger as loguru_logger

from ..errors import ParseError


class LogLevel(str, Enum):
    """日志级别枚举

    取值与命令行、配置文件中使用的小写名称一致；str() 渲染为规范的小写名称，与 parse() 互为逆操作
    """

    INFO = "info"
    TRACE = "trace"
    DEBUG = "debug"
    WARN = "warn"
    ERROR = "error"

    @classmethod
    def parse(cls, value: str) -> LogLevel:
        """解析日志级别字符串（大小写不敏感，精确匹配）

        Args:
            value (str): 日志级别字符串（如 "info"、"DEBUG"、"Warn"）

        Returns:
            LogLevel: 对应的日志级别枚举

        Raises:
            ParseError: 输入不是五个合法名称之一（错误信息包含原始输入和所有有效选项）
        """
        if isinstance(value, str):
            try:
                return cls(value.lower())
            except ValueError:
                pass

        valid = ", ".join(level.value for level in cls)
        raise ParseError(f"无效的日志级别: {value!r}. 有效选项: {valid}")

    @property
    def loguru_level(self) -> str:
        """对应的 Loguru 级别名称"""
        return _LOGLEVEL_TO_LOGURU[self]

    @override
    def __str__(self) -> str:
        return self.value


# 日志级别到 Loguru 级别的映射表（Loguru 原生支持 TRACE）
_LOGLEVEL_TO_LOGURU: Dict[LogLevel, str] = {
    LogLevel.TRACE: "TRACE",
    LogLevel.DEBUG: "DEBUG",
    LogLevel.INFO: "INFO",
    LogLevel.WARN: "WARNING",
    LogLevel.ERROR: "ERROR",
}


# 紧凑单行格式（Loguru 模板语法）
# 格式说明：
#   - {time}: 时间戳（毫秒精度）
#   - {level}: 日志级别（自动着色）
#   - {thread.name} / {thread.id}: 线程名称与线程 ID
#   - {name}: 日志来源（模块名）
#   - {message}: 日志消息
COMPACT_LOG_FORMAT: str = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> "
    "<level>{level: <7}</level> "
    "<cyan>{thread.name}</cyan> <magenta>ThreadId({thread.id})</magenta> "
    "<cyan>{name}</cyan>: <level>{message}</level>"
)


@dataclass
class LoggingConfig:
    """日志运行时配置

    Attributes:
        level (LogLevel): 最低输出级别，低于此级别的日志会被丢弃。默认值：INFO
        format_str (str): 日志格式字符串。默认值：COMPACT_LOG_FORMAT
        enqueue (bool): 是否启用异步队列（多进程写同一 Sink 时开启）。默认值：False
        backtrace (bool): 异常时是否显示完整调用链。默认值：False
        diagnose (bool): 异常时是否显示变量值。默认值：False

    Warning:
        diagnose=True 会在异常日志中输出局部变量（可能包含密码），生产环境禁止启用
    """

    level: LogLevel = LogLevel.INFO
    format_str: str = COMPACT_LOG_FORMAT
    enqueue: bool = False
    backtrace: bool = False
    diagnose: bool = False


# 标准库 logging 级别到 Loguru 级别的映射表
_LOGGING_TO_LOGURU_LEVEL: Dict[int, str] = {
    logging.CRITICAL: "CRITICAL",
    logging.ERROR: "ERROR",
    logging.WARNING: "WARNING",
    logging.INFO: "INFO",
    logging.DEBUG: "DEBUG",
    logging.NOTSET: "DEBUG",
}

# 备份被拦截 logger 的原始配置（handlers, propagate, level），用于 restore_loggers 恢复
_INTERCEPT_ORIGINAL_CONFIG: Dict[str, tuple[list[logging.Handler], bool, int]] = {}


class _InterceptHandler(logging.Handler):
    """标准库 logging.Handler 适配器（将日志重定向到 Loguru）

    用于拦截第三方库（如 SQLAlchemy）的标准库日志，统一由 Loguru 的 Sink 输出

    Note:
        Loguru 通过栈帧定位日志的调用位置，拦截后需要跳过 logging 模块内部的栈帧（opt(depth=...)）
    """

    @override
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = _LOGGING_TO_LOGURU_LEVEL.get(record.levelno, "INFO")

            # 向上追溯栈帧，跳过 logging 模块内部的帧，最多 20 层
            frame = logging.currentframe()
            depth = 2
            while frame and frame.f_code.co_filename == logging.__file__:
                frame = frame.f_back
                depth += 1
                if depth > 20:
                    break

            loguru_logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())

        except Exception:
            self.handleError(record)


def intercept_loggers(logger_names: Iterable[str]) -> None:
    """拦截标准库 logger 并重定向到 Loguru

    多次调用是幂等的：原始配置只在第一次拦截时备份

    Args:
        logger_names (Iterable[str]): 需要拦截的 logger 名称列表，例如 `["sqlalchemy.engine", "sqlalchemy.pool"]`
    """
    handler = _InterceptHandler()

    for name in logger_names:
        lg = logging.getLogger(name)

        if name not in _INTERCEPT_ORIGINAL_CONFIG:
            _INTERCEPT_ORIGINAL_CONFIG[name] = (lg.handlers[:], lg.propagate, lg.level)

        # 仅保留单个 handler，并禁止向父 logger 传播（避免重复输出）
        lg.handlers = [handler]
        lg.propagate = False


def restore_loggers(logger_names: Iterable[str]) -> None:
    """恢复被拦截 logger 的原始配置（未被拦截的名称直接跳过）"""
    for name in logger_names:
        if name not in _INTERCEPT_ORIGINAL_CONFIG:
            continue

        handlers, propagate, level = _INTERCEPT_ORIGINAL_CONFIG.pop(name)
        lg = logging.getLogger(name)
        lg.handlers = handlers
        lg.propagate = propagate
        lg.setLevel(level)


def configure_loguru_logger(cfg: LoggingConfig, sink: Any = sys.stdout) -> Any:
    """按配置重建 Loguru 的全局 Sink

    执行以下步骤：
        1. 移除所有已有 Sink（包括 Loguru 默认的 stderr Sink）
        2. 以 cfg 中的级别和格式注册唯一的 Sink

    Args:
        cfg (LoggingConfig): 日志运行时配置
        sink (Any): 输出目标（文件对象、路径或可调用对象）。默认值：sys.stdout

    Returns:
        Any: Loguru logger 实例（全局单例）
    """
    loguru_logger.remove()
    loguru_logger.add(
        sink,
        level=cfg.level.loguru_level,
        format=cfg.format_str,
        enqueue=cfg.enqueue,
        backtrace=cfg.backtrace,
        diagnose=cfg.diagnose,
    )
    return loguru_logger


# 一次性初始化标记，防止重复初始化覆盖宿主已安装的 Sink
_LOGGER_INITIALIZED = False


def init_logger(
        level: LogLevel | str | LoggingConfig = LogLevel.INFO,
        *,
        sink: Any = sys.stdout,
        force: bool = False
) -> Any:
    """初始化进程级日志输出（应用入口函数）

    将日志级别映射为最低输出级别，并安装一个紧凑单行格式的全局 Sink，输出内容包含级别、来源模块、线程 ID 和线程名称

    Args:
        level (LogLevel | str | LoggingConfig): 日志级别，也可以是可解析的字符串（大小写不敏感）。默认值：INFO
            传入 LoggingConfig 时按其中的级别、格式、enqueue/backtrace/diagnose 安装 Sink
        sink (Any): 输出目标。默认值：sys.stdout
        force (bool): 是否强制重新初始化（默认 False）
            - False: 如果已初始化，直接返回现有 logger，不修改已安装的 Sink
            - True: 即使已初始化，也重新安装 Sink（测试场景）

    Returns:
        Any: Loguru logger 实例，调用方可将其作为依赖注入下游组件

    Raises:
        ParseError: level 是无法解析的字符串

    Example:
        ```python
        from multitool.core.logging import LogLevel, init_logger

        log = init_logger(LogLevel.INFO)
        log.info("Hello, world!")
        ```
    """
    global _LOGGER_INITIALIZED

    if _LOGGER_INITIALIZED and not force:
        return loguru_logger

    if isinstance(level, LoggingConfig):
        cfg = level
    else:
        cfg = LoggingConfig(level=level if isinstance(level, LogLevel) else LogLevel.parse(level))
    logger_obj = configure_loguru_logger(cfg, sink)

    _LOGGER_INITIALIZED = True
    return logger_obj


def add_log_level_argument(
        parser: argparse.ArgumentParser,
        *flags: str,
        default: LogLevel = LogLevel.INFO
) -> argparse.Action:
    """向宿主程序的 argparse 解析器注册日志级别参数

    Args:
        parser (argparse.ArgumentParser): 宿主程序的命令行解析器
        *flags (str): 参数名。默认值：("--log-level",)
        default (LogLevel): 默认级别。默认值：INFO

    Returns:
        argparse.Action: 注册后的参数对象
    """
    return parser.add_argument(
        *(flags or ("--log-level",)),
        type=LogLevel.parse,
        choices=list(LogLevel),
        default=default,
        metavar="{" + ",".join(level.value for level in LogLevel) + "}",
        help=f"日志级别（默认: {default}）",
    )
