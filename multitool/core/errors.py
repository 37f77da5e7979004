from __future__ import annotations


class MultitoolError(Exception):
    """multitool 所有异常的基类

    调用方可通过捕获该基类统一处理本库抛出的错误，也可按需捕获具体子类

    Note:
        - 各子类同时继承对应的内置异常（ValueError、ConnectionError），保证与只认识内置异常的调用方兼容
        - 异常不携带错误码，仅携带描述信息；底层异常通过 `raise ... from exc` 保存在 __cause__ 中
    """


class ConfigurationError(MultitoolError, ValueError):
    """配置校验失败（在任何网络 I/O 之前抛出）

    例如 Redis 配置既没有 connection_url，也没有完整的 host/port/db
    """


class StoreConnectionError(MultitoolError, ConnectionError):
    """连接池建立失败

    涵盖连接管理器构造、DNS 解析、认证被拒、建连超时、连接池参数冲突等所有情况，不再细分子类
    """


class ParseError(MultitoolError, ValueError):
    """字符串解析失败（如无效的日志级别）"""
