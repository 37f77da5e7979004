from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field

from ...config.constants import REDIS_URL_SCHEME
from ...config.types import Duration
from ...errors import ConfigurationError

# 校验失败时的提示信息，直接点名两种合法的配置方式
ENDPOINT_REQUIREMENT = "必须提供 connection_url，或者同时设置 host/port/db"


@dataclass(frozen=True, slots=True)
class DirectUrl:
    """直接给出的 Redis 连接串（优先级最高，忽略其他地址字段）"""
    url: str


@dataclass(frozen=True, slots=True)
class StructuredEndpoint:
    """由 host/port/db 及可选认证信息组成的结构化地址"""
    host: str
    port: int
    db: int
    username: str | None = None
    password: str | None = None

    def auth_segment(self) -> str:
        """渲染 URL 中的认证片段（不含末尾的 @）

        - 有 username：`username` 或 `username:password`
        - 仅有 password：`:password`
        - 都没有：空字符串

        用户名和密码会做百分号编码，避免其中的 `@`、`:`、`/` 破坏 URL 结构
        """
        password_part = f":{quote(self.password, safe='')}" if self.password is not None else ""
        if self.username is not None:
            return f"{quote(self.username, safe='')}{password_part}"
        return password_part

    def to_url(self) -> str:
        auth = self.auth_segment()
        auth_part = f"{auth}@" if auth else ""
        return f"{REDIS_URL_SCHEME}://{auth_part}{self.host}:{self.port}/{self.db}"


# 配置校验后的地址，二者必居其一
Endpoint = DirectUrl | StructuredEndpoint


class RedisConfig(BaseModel):
    """Redis 连接与连接池配置模型

    支持两种配置方式：
    1. 直接提供 connection_url（DSN），其余地址字段全部忽略
    2. 提供 host/port/db（以及可选的 username/password），由 connection_string() 拼出 DSN

    只给出结构化字段、不含 connection_url 的旧版配置，等价于 connection_url=None 的情形

    示例（YAML）：

    ```yaml
    host: localhost
    port: 6379
    username: username
    password: top_secret_password
    db: 0
    connection_timeout: 60
    connection_pool_size: 10
    ```

    Attributes:
        connection_url (str | None): Redis 连接 URL，格式 redis://[[username]:[password]@]host:port/db
        host (str | None): Redis 服务地址
        port (int | None): Redis 端口
        username (str | None): 用户名（Redis 6+ ACL）
        password (str | None): 密码
        db (int | None): 数据库编号
        connection_timeout (timedelta): 从连接池获取连接的最长等待时间，同时用作建连超时
        connection_pool_size (int): 连接池最大连接数

    Note:
        字段格式在反序列化时校验（Pydantic），地址完整性在 check() 中校验，两者都发生在任何网络 I/O 之前
    """
    # 禁止额外字段，防止配置拼写错误导致的静默失败；配置加载后只读
    model_config = ConfigDict(extra="forbid", frozen=True)

    connection_url: str | None = Field(default=None, description="Redis 连接 URL (DSN 格式)")

    host: str | None = Field(default=None, description="Redis 服务地址")
    port: int | None = Field(default=None, ge=0, le=65535, description="Redis 端口")
    username: str | None = Field(default=None, description="用户名（ACL）")

    # repr=False：打印配置对象时不泄露密码
    password: str | None = Field(default=None, repr=False, description="密码")

    db: int | None = Field(default=None, ge=0, description="数据库编号")

    connection_timeout: Duration = Field(..., description="获取连接的超时时间")
    connection_pool_size: int = Field(..., ge=1, description="连接池最大连接数")

    def check(self) -> Endpoint:
        """校验地址配置并返回解析后的 Endpoint

        Returns:
            Endpoint: DirectUrl（提供了 connection_url）或 StructuredEndpoint

        Raises:
            ConfigurationError: connection_url 缺失，且 host/port/db 不完整
        """
        if self.connection_url is not None:
            return DirectUrl(self.connection_url)

        if self.host is None or self.port is None or self.db is None:
            raise ConfigurationError(ENDPOINT_REQUIREMENT)

        return StructuredEndpoint(
            host=self.host,
            port=self.port,
            db=self.db,
            username=self.username,
            password=self.password,
        )

    def connection_string(self) -> str:
        """返回最终用于建连的 Redis URL

        Raises:
            ConfigurationError: 地址配置不完整
        """
        match self.check():
            case DirectUrl(url=url):
                return url
            case StructuredEndpoint() as endpoint:
                return endpoint.to_url()
