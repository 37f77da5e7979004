from __future__ import annotations

import logging
import time
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, AsyncIterator

from loguru import logger
from sqlalchemy import event, exc, text
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)

from .config import RelationalDBConfig
from ...errors import StoreConnectionError
from ...health import HealthStatus, PoolHealth
from ...logging.logger import intercept_loggers

# SQLAlchemy 日志记录器名称常量，会被拦截并路由到 loguru
# 引擎层日志（SQL 语句、连接事件等）
LOGGER_SA_ENGINE = "sqlalchemy.engine"
# 连接池日志（连接获取、释放、回收等）
LOGGER_SA_POOL = "sqlalchemy.pool"

# SQL 健康检查查询语句，SELECT 1 是最轻量级的查询，用于验证连接可用性
SQL_PING_QUERY = "SELECT 1"

# 健康检查结果中使用的连接池名称
POOL_NAME = "postgres"

# 连接归还时间戳在 ConnectionRecord.info 中的键名
_CHECKED_IN_AT_KEY = "multitool.checked_in_at"


def _configure_sqlalchemy_logging(echo: bool) -> None:
    """拦截 SQLAlchemy 的标准库日志记录器，并根据 echo 调整级别

    Args:
        echo (bool): True 时输出 SQL 语句和连接池事件（INFO），False 时仅输出警告和错误
    """
    intercept_loggers([LOGGER_SA_ENGINE, LOGGER_SA_POOL])

    level = logging.INFO if echo else logging.WARNING
    logging.getLogger(LOGGER_SA_ENGINE).setLevel(level)
    logging.getLogger(LOGGER_SA_POOL).setLevel(level)


def _install_idle_timeout(engine: AsyncEngine, idle_timeout: float) -> None:
    """为连接池挂载空闲超时策略

    SQLAlchemy 的 QueuePool 没有后台回收空闲连接的能力，因此在连接归还（checkin）时记录时间戳，
    在下一次借出（checkout）时检查空闲时长。超时则抛出 DisconnectionError，连接池会丢弃该连接并透明地重新建连

    Args:
        engine (AsyncEngine): 目标引擎
        idle_timeout (float): 空闲超时时间（秒），小于等于 0 表示不限制
    """
    if idle_timeout <= 0:
        return

    pool = engine.sync_engine.pool

    @event.listens_for(pool, "checkin")
    def _on_checkin(_dbapi_connection: Any, connection_record: Any) -> None:
        connection_record.info[_CHECKED_IN_AT_KEY] = time.monotonic()

    @event.listens_for(pool, "checkout")
    def _on_checkout(_dbapi_connection: Any, connection_record: Any, _connection_proxy: Any) -> None:
        checked_in_at = connection_record.info.pop(_CHECKED_IN_AT_KEY, None)
        if checked_in_at is None:
            return

        idle_for = time.monotonic() - checked_in_at
        if idle_for > idle_timeout:
            raise exc.DisconnectionError(f"连接空闲 {idle_for:.1f}s，超过 idle_timeout，丢弃重建")


class RelationalPool:
    """关系型数据库连接池句柄（基于 SQLAlchemy 异步引擎 + asyncpg）

    配置到连接池参数的映射：

    | 配置字段             | 连接池行为                                    |
    |---------------------|----------------------------------------------|
    | max_open_cons       | pool_size（max_overflow=0，总连接数硬上限）    |
    | min_idle_cons       | 创建时预热并归还到池中的连接数                   |
    | connection_timeout  | pool_timeout（获取连接超时）+ asyncpg 建连超时  |
    | conn_max_lifetime   | pool_recycle（连接最大存活时间）                |
    | idle_timeout        | checkin/checkout 事件（空闲超时丢弃）           |

    Attributes:
        engine (AsyncEngine): 持有连接池的异步引擎
        session_maker (async_sessionmaker): 异步会话工厂，业务代码通过 `async with pool.session_maker() as session` 使用

    Note:
        - 该句柄可被多个协程并发使用，连接获取的排队由 QueuePool 负责
        - 句柄不持有配置对象，配置仅在 create() 期间使用
    """

    def __init__(self, engine: AsyncEngine):
        """请使用 RelationalPool.create() 或 create_relational_pool() 构造实例"""
        self._engine = engine
        self._session_maker = async_sessionmaker(
            bind=engine,
            expire_on_commit=False,
            autoflush=False,
        )
        self._closed = False

    @classmethod
    async def create(cls, config: RelationalDBConfig) -> RelationalPool:
        """根据配置创建连接池，并在返回前完成预热

        执行以下步骤：
        1. 校验字段约束（ConfigurationError，不发生网络 I/O）
        2. 构造连接 URL 和引擎参数
        3. 创建异步引擎并挂载空闲超时策略
        4. 预热 max(min_idle_cons, 1) 个连接（每个执行 SELECT 1），随后归还连接池

        Args:
            config (RelationalDBConfig): 数据库配置对象

        Returns:
            RelationalPool: 已验证连通性的连接池句柄

        Raises:
            ConfigurationError: 配置约束不满足
            StoreConnectionError: 建连失败、认证失败、超时或连接池参数冲突
        """
        config.check()

        url = config.url()
        logger.info(f"正在创建数据库连接池: {url.render_as_string(hide_password=True)}")

        _configure_sqlalchemy_logging(config.echo)

        timeout = config.connection_timeout.total_seconds()
        lifetime = config.conn_max_lifetime.total_seconds()

        # 初始化引擎变量，用于异常处理时的资源清理
        engine: AsyncEngine | None = None
        try:
            engine = create_async_engine(
                url,
                # 禁用 SQL 语句回显（通过日志级别控制）
                echo=False,
                pool_size=config.max_open_cons,
                max_overflow=0,
                pool_timeout=timeout,
                # -1 表示不按存活时间回收
                pool_recycle=lifetime if lifetime > 0 else -1,
                pool_pre_ping=True,
                # asyncpg 建连超时，保证不可达的主机在有限时间内失败
                connect_args={"timeout": timeout},
            )
            _install_idle_timeout(engine, config.idle_timeout.total_seconds())

            await _warm_up(engine, max(config.min_idle_cons, 1))

        except Exception as e:
            logger.error(f"创建数据库连接池失败: {e}")

            # 引擎已创建但预热失败，需要手动释放已建立的连接
            if engine is not None:
                await engine.dispose()

            raise StoreConnectionError(f"无法建立数据库连接池: {e}") from e

        logger.success("关系型数据库连接池创建成功。")
        return cls(engine)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def session_maker(self) -> async_sessionmaker:
        return self._session_maker

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[AsyncConnection]:
        """从连接池借出一个连接，退出上下文时归还

        获取连接最多等待 connection_timeout，超时抛出 sqlalchemy.exc.TimeoutError
        """
        async with self._engine.connect() as conn:
            yield conn

    async def health_check(self) -> PoolHealth:
        """执行一次 SELECT 1 并返回连接池健康状态（不抛出异常）"""
        if self._closed:
            return PoolHealth(name=POOL_NAME, status=HealthStatus.CLOSED)

        try:
            start_time = time.perf_counter()
            async with self._engine.connect() as conn:
                await conn.execute(text(SQL_PING_QUERY))
            latency = (time.perf_counter() - start_time) * 1000

            pool = self._engine.pool
            return PoolHealth(
                name=POOL_NAME,
                status=HealthStatus.HEALTHY,
                details={
                    "latency_ms": round(latency, 2),
                    "pool_size": pool.size(),
                    "checked_out": pool.checkedout(),
                },
            )
        except Exception as e:
            return PoolHealth(name=POOL_NAME, status=HealthStatus.UNHEALTHY, last_error=str(e))

    async def close(self) -> None:
        """关闭连接池并释放所有连接（可重复调用）"""
        if self._closed:
            return
        self._closed = True

        # dispose() 会关闭连接池中的所有连接
        await self._engine.dispose()
        logger.debug("数据库连接池已关闭。")

    async def __aenter__(self) -> RelationalPool:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


async def _warm_up(engine: AsyncEngine, count: int) -> None:
    """同时持有 count 个连接并逐个执行 SELECT 1，退出时全部归还连接池"""
    async with AsyncExitStack() as stack:
        for _ in range(count):
            conn = await stack.enter_async_context(engine.connect())
            await conn.execute(text(SQL_PING_QUERY))


async def create_relational_pool(config: RelationalDBConfig) -> RelationalPool:
    """根据配置建立关系型数据库连接池，等价于 RelationalPool.create(config)"""
    return await RelationalPool.create(config)
