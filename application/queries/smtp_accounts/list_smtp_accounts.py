"""查询 SMTP 账号的 Query"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class ListSmtpAccountsQuery:
    user_id: str


@dataclass
class SmtpAccountItem:
    """SMTP 账号视图（不含密码）"""

    id: str
    name: str
    email: str
    alias: Optional[str]
    host: str
    port: int
    username: str
    use_ssl: bool
    is_default: bool
    created_at: str


@dataclass
class ListSmtpAccountsResult:
    success: bool
    data: List[SmtpAccountItem] = field(default_factory=list)
    message: str = ""
