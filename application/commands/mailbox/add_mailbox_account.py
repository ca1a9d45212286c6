"""添加邮箱账号命令"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class AddMailboxAccountCommand:
    """
    添加邮箱账号命令

    Attributes:
        user_id: 调用者（账号所属用户）
        email: 邮箱地址
        password: IMAP 密码（明文，将被加密存储）
        imap_server: IMAP 服务器地址
        imap_port: IMAP 服务器端口，默认 993
        use_ssl: 是否使用 SSL/TLS，默认 True
        username: 登录用户名，默认与邮箱地址相同
        name: 显示名称
    """

    user_id: str
    email: str
    password: str
    imap_server: str
    imap_port: int = 993
    use_ssl: bool = True
    username: Optional[str] = None
    name: Optional[str] = None
