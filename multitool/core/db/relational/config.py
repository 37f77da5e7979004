from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.engine import URL

from ...config.constants import POSTGRES_DRIVER_NAME
from ...config.types import Duration
from ...errors import ConfigurationError


class RelationalDBConfig(BaseModel):
    """关系型数据库（PostgreSQL）连接与连接池配置模型（严格模式）

    严格模式设计哲学：
        - 除 echo 外所有字段均无默认值，必须由外部配置显式提供
        - 通过 Pydantic 验证确保字段类型和取值范围正确，启动时即可发现配置问题
        - 字段之间的约束（如 min_idle_cons <= max_open_cons）在 check() 中校验，先于任何网络 I/O

    示例（YAML）：

    ```yaml
    host: localhost
    port: 5432
    username: user
    password: password
    database: test
    max_open_cons: 10
    min_idle_cons: 5
    conn_max_lifetime: 900
    connection_timeout: 15
    idle_timeout: 3600
    ```

    时长字段同时兼容旧格式 `{secs: 900, nanos: 0}`

    Attributes:
        host (str): 数据库地址
        port (int): 数据库端口（PostgreSQL 默认 5432）
        username (str): 用户名
        password (str): 密码
        database (str): 数据库名
        max_open_cons (int): 连接池最大连接数
        min_idle_cons (int): 连接池创建时预热、并常驻的最小连接数
        conn_max_lifetime (timedelta): 单个连接的最大存活时间，超时后回收重建
        connection_timeout (timedelta): 从连接池获取连接的最长等待时间，同时用作建连超时
        idle_timeout (timedelta): 连接在池中空闲超过该时长后，下次借出前会被丢弃重建
        echo (bool): 是否将 SQL 语句和连接池事件以 INFO 级别输出到日志（仅开发环境推荐）
    """
    # 禁止额外字段：如果配置中出现未定义的字段，Pydantic 会抛出 ValidationError
    model_config = ConfigDict(extra="forbid", frozen=True)

    host: str = Field(..., description="数据库地址")
    port: int = Field(..., ge=0, le=65535, description="数据库端口")
    username: str = Field(..., description="用户名")
    password: str = Field(..., repr=False, description="密码")
    database: str = Field(..., description="数据库名")

    max_open_cons: int = Field(..., ge=0, description="最大连接数")
    min_idle_cons: int = Field(..., ge=0, description="最小空闲连接数")

    conn_max_lifetime: Duration = Field(..., description="连接最大存活时间")
    connection_timeout: Duration = Field(..., description="获取连接的超时时间")
    idle_timeout: Duration = Field(..., description="空闲连接超时时间")

    echo: bool = Field(default=False, description="启用SQL调试日志输出")

    def check(self) -> None:
        """校验字段之间的约束

        Raises:
            ConfigurationError: max_open_cons 为 0，或 min_idle_cons 大于 max_open_cons
        """
        if self.max_open_cons < 1:
            raise ConfigurationError("max_open_cons 必须大于等于 1")

        if self.min_idle_cons > self.max_open_cons:
            raise ConfigurationError(
                f"min_idle_cons ({self.min_idle_cons}) 不能大于 max_open_cons ({self.max_open_cons})"
            )

    def url(self) -> URL:
        """构造 SQLAlchemy 连接 URL（主机、端口和凭据原样传入，不做额外校验）"""
        return URL.create(
            drivername=POSTGRES_DRIVER_NAME,
            username=self.username,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
        )
