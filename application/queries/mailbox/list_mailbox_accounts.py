"""查询邮箱账号列表"""

from dataclasses import dataclass, field
from typing import Optional, List


@dataclass
class ListMailboxAccountsQuery:
    """
    查询调用者的邮箱账号列表

    Attributes:
        user_id: 调用者
    """

    user_id: str


@dataclass
class MailboxAccountItem:
    """
    邮箱账号列表项

    不包含敏感信息（密码）
    """

    id: str
    name: str
    email: str
    username: str
    imap_server: str
    imap_port: int
    use_ssl: bool
    is_syncing: bool
    sync_progress: Optional[int]
    sync_status: Optional[str]
    last_synced_at: Optional[str]
    created_at: str


@dataclass
class ListMailboxAccountsResult:
    """
    查询邮箱账号列表结果

    Attributes:
        success: 是否成功
        data: 邮箱账号列表
        total: 总数
        message: 消息
        error_code: 错误码（失败时）
    """

    success: bool
    data: List[MailboxAccountItem] = field(default_factory=list)
    total: int = 0
    message: str = ""
    error_code: Optional[str] = None
