"""Pytest 公共夹具"""

import sys
from datetime import timedelta

import pytest
from loguru import logger

from multitool.core.logging import logger as logger_module


@pytest.fixture(autouse=True)
def reset_logger():
    """每个测试前清除日志初始化标记，测试后恢复 Loguru 默认的 stderr Sink"""
    logger_module._LOGGER_INITIALIZED = False
    yield
    logger_module._LOGGER_INITIALIZED = False
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def redis_kwargs():
    """结构化 Redis 配置（不含 connection_url）"""
    return {
        "host": "localhost",
        "port": 6379,
        "db": 0,
        "connection_timeout": timedelta(seconds=5),
        "connection_pool_size": 4,
    }


@pytest.fixture
def db_kwargs():
    """关系型数据库配置"""
    return {
        "host": "localhost",
        "port": 5432,
        "username": "user",
        "password": "password",
        "database": "test",
        "max_open_cons": 10,
        "min_idle_cons": 5,
        "conn_max_lifetime": timedelta(seconds=900),
        "connection_timeout": timedelta(seconds=15),
        "idle_timeout": timedelta(seconds=3600),
    }
