from __future__ import annotations

from collections.abc import Mapping
from datetime import timedelta
from typing import Annotated, Any

from pydantic import AfterValidator, BeforeValidator

# serde 风格时长映射允许出现的键
_SERDE_DURATION_KEYS = frozenset({"secs", "nanos"})


def _coerce_serde_duration(value: Any) -> Any:
    """兼容 serde 风格的时长映射

    旧版 YAML 配置中的时长字段形如：

    ```yaml
    connection_timeout:
      secs: 15
      nanos: 0
    ```

    该函数将其转换为 timedelta，其余输入（秒数、ISO 8601、HH:MM:SS、timedelta）原样交给 Pydantic 处理

    Args:
        value (Any): 原始配置值

    Returns:
        Any: timedelta 或原始值

    Raises:
        ValueError: 映射中出现 secs/nanos 之外的键，或缺少 secs
    """
    if not isinstance(value, Mapping):
        return value

    unknown = set(value) - _SERDE_DURATION_KEYS
    if unknown or "secs" not in value:
        raise ValueError(f"无效的时长映射: {dict(value)!r}，仅支持 secs/nanos 两个键且 secs 必填")

    # nanos 精度超出 timedelta（微秒），按微秒截断
    return timedelta(seconds=int(value["secs"]), microseconds=int(value.get("nanos", 0)) // 1000)


def _ensure_non_negative(value: timedelta) -> timedelta:
    if value < timedelta(0):
        raise ValueError("时长不能为负数")
    return value


# 时长类型：接受秒数、ISO 8601 字符串、HH:MM:SS、timedelta 以及 serde 映射
Duration = Annotated[
    timedelta,
    BeforeValidator(_coerce_serde_duration),
    AfterValidator(_ensure_non_negative),
]
