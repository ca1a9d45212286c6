"""测试邮箱连接命令"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class TestMailboxConnectionCommand:
    """
    测试邮箱连接命令（不保存任何数据）

    Attributes:
        host: IMAP 服务器地址
        port: 端口
        username: 登录用户名
        password: 密码
        use_ssl: 是否使用 SSL/TLS
    """

    __test__ = False

    host: str
    port: int
    username: str
    password: str
    use_ssl: bool = True


@dataclass
class TestMailboxConnectionResult:
    """连接测试结果"""

    __test__ = False

    success: bool
    error: Optional[str] = None
