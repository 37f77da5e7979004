from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class HealthStatus(str, Enum):
    """连接池健康状态

    - HEALTHY: 探测命令（PING / SELECT 1）执行成功
    - UNHEALTHY: 探测失败，last_error 中记录了失败原因
    - CLOSED: 连接池已被关闭，不再接受请求
    """
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    CLOSED = "closed"

    @property
    def is_healthy(self) -> bool:
        return self is HealthStatus.HEALTHY


@dataclass(slots=True)
class PoolHealth:
    """连接池健康检查结果快照

    Attributes:
        name (str): 连接池名称（如 "redis"、"postgres"），用于日志和监控分组
        status (HealthStatus): 当前健康状态
        last_error (str | None): 最后一次错误的详细信息（仅在状态异常时有值）
        details (dict[str, Any]): 额外的上下文信息（如延迟、连接池容量）
        checked_at (float): 检查时间戳

    Note:
        checked_at 使用 monotonic 时钟，避免系统时间调整（如 NTP 同步）导致的时间倒退
    """
    name: str
    status: HealthStatus
    last_error: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    checked_at: float = field(default_factory=time.monotonic)
