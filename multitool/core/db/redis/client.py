from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import redis.asyncio as redis
from loguru import logger
from redis.asyncio.connection import BlockingConnectionPool, parse_url
from redis.asyncio.retry import Retry
from redis.backoff import NoBackoff

from .config import RedisConfig
from ...errors import StoreConnectionError
from ...health import HealthStatus, PoolHealth

# 健康检查结果中使用的连接池名称
POOL_NAME = "redis"


def _safe_endpoint(url: str) -> str:
    """从 URL 中提取不含认证信息的 host:port/db，用于日志输出"""
    try:
        options = parse_url(url)
    except Exception:
        return "[Invalid URL]"
    return f"{options.get('host')}:{options.get('port')}/{options.get('db', 0)}"


class RedisPool:
    """Redis 连接池句柄，基于 redis-py 的异步客户端实现

    该类对外只暴露少量常用操作（get / set），更复杂的命令可通过 connection() 借出一个原始连接自行执行
    连接的排队、超时和复用全部由 redis-py 的 BlockingConnectionPool 负责：
    - 池中最多 connection_pool_size 个连接
    - 连接耗尽时，获取方最多阻塞 connection_timeout，超时抛出 redis.exceptions.ConnectionError

    生命周期：

    ```
    RedisConfig
    ↓
    check()              ← 地址校验（ConfigurationError）
    ↓
    connection_string()  ← 拼接 DSN
    ↓
    BlockingConnectionPool.from_url()
    ↓
    PING                 ← 验证连通性（StoreConnectionError）
    ↓
    RedisPool            ← 在宿主进程生命周期内共享
    ```

    Note:
        - 该句柄可被多个协程并发使用，无需额外加锁
        - 构造失败时不会返回半初始化的连接池，已创建的连接会被断开
        - 命令执行阶段的错误（如 ResponseError）原样向上抛出
    """

    def __init__(self, client: redis.Redis, pool: BlockingConnectionPool):
        """请使用 RedisPool.create() 或 create_redis_pool() 构造实例"""
        self._client = client
        self._pool = pool
        self._closed = False

    @classmethod
    async def create(cls, config: RedisConfig) -> RedisPool:
        """根据配置校验地址、拼接连接串并建立连接池

        Args:
            config (RedisConfig): Redis 配置对象（仅在构造期间使用，不会被连接池持有）

        Returns:
            RedisPool: 已验证连通性的连接池句柄

        Raises:
            ConfigurationError: 地址配置不完整（不会发生任何网络 I/O）
            StoreConnectionError: URL 无法解析、建连失败、认证失败或超时
        """
        # 1. 校验并拼接连接串，配置错误在这里直接抛出
        url = config.connection_string()
        timeout = config.connection_timeout.total_seconds()

        logger.info(f"正在创建 Redis 连接池: {_safe_endpoint(url)}")

        # 2. 构造连接池（此时尚未建立任何连接）
        try:
            pool = BlockingConnectionPool.from_url(
                url,
                max_connections=config.connection_pool_size,
                timeout=timeout,
                socket_connect_timeout=timeout,
                decode_responses=True,
                # 不做内部重试：一次建连失败即整体失败，重试策略由调用方决定
                retry=Retry(NoBackoff(), 0),
            )
        except (ValueError, TypeError) as exc:
            logger.error(f"Redis 连接串无效: {exc}")
            raise StoreConnectionError(f"Redis 连接串无效: {exc}") from exc

        client = redis.Redis(connection_pool=pool)

        # 3. 发送 PING 验证连通性，失败时断开已建立的连接，不返回半初始化的连接池
        # 建连加首次 PING 整体受 connection_timeout 约束，服务端接受 TCP 但不应答时同样按时失败
        try:
            async with asyncio.timeout(timeout or None):
                await client.ping()
        except Exception as exc:
            logger.error(f"连接/认证 Redis 失败: {exc!r}")
            try:
                await client.aclose()
            except Exception as close_exc:
                logger.warning(f"关闭 Redis 客户端失败: {close_exc!r}")
            finally:
                await pool.disconnect()
            raise StoreConnectionError(f"无法建立 Redis 连接池: {exc!r}") from exc

        logger.success("Redis 连接池创建成功。")
        return cls(client, pool)

    async def get(self, key: str) -> Optional[str]:
        """读取字符串值

        Returns:
            Optional[str]: 键存在时返回值，不存在时返回 None（不存在不是错误）
        """
        return await self._client.get(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """写入字符串值

        Args:
            key (str): 键名
            value (str): 值
            ttl (Optional[int]): 过期时间（秒）。为 None 时键永不过期；否则使用 SET ... EX 原子地写入并设置过期时间
        """
        await self._client.set(key, value, ex=ttl)

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[redis.Redis]:
        """从连接池借出一个原始连接

        返回的客户端绑定在单个连接上，适合执行 get/set 之外的任意命令（del、expire、incr、事务等）
        退出上下文时连接归还连接池

        Example:
            ```python
            async with pool.connection() as conn:
                await conn.delete("key_to_delete")
                await conn.expire("key_with_ttl", 120)
                value = await conn.incr("counter_key", 1)
            ```
        """
        async with self._client.client() as conn:
            yield conn

    async def health_check(self) -> PoolHealth:
        """执行一次 PING 并返回连接池健康状态（不抛出异常）"""
        if self._closed:
            return PoolHealth(name=POOL_NAME, status=HealthStatus.CLOSED)

        try:
            start_time = time.perf_counter()
            await self._client.ping()
            latency = (time.perf_counter() - start_time) * 1000

            return PoolHealth(
                name=POOL_NAME,
                status=HealthStatus.HEALTHY,
                details={
                    "latency_ms": round(latency, 2),
                    "max_connections": self._pool.max_connections,
                },
            )
        except Exception as exc:
            return PoolHealth(name=POOL_NAME, status=HealthStatus.UNHEALTHY, last_error=str(exc))

    async def close(self) -> None:
        """关闭连接池，断开所有连接（可重复调用）"""
        if self._closed:
            return
        self._closed = True

        await self._client.aclose()
        await self._pool.disconnect()
        logger.debug("Redis 连接池已关闭。")

    async def __aenter__(self) -> RedisPool:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


async def create_redis_pool(config: RedisConfig) -> RedisPool:
    """根据配置建立 Redis 连接池，等价于 RedisPool.create(config)"""
    return await RedisPool.create(config)
