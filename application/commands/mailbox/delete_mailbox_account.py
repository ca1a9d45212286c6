"""删除邮箱账号命令"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class DeleteMailboxAccountCommand:
    """
    删除邮箱账号命令

    Attributes:
        user_id: 调用者
        account_id: 要删除的邮箱账号 ID (UUID 字符串)
    """

    user_id: str
    account_id: str


@dataclass
class DeleteMailboxAccountResult:
    """
    删除邮箱账号结果

    Attributes:
        success: 是否成功
        account_id: 被删除的邮箱 ID
        email: 被删除的邮箱地址
        message: 消息
        error_code: 错误码（失败时）
            - ACCOUNT_NOT_FOUND: 账号不存在或不属于调用者
            - SYNC_IN_PROGRESS: 同步进行中，无法删除
    """

    success: bool
    account_id: str = ""
    email: str = ""
    message: str = ""
    error_code: Optional[str] = None
