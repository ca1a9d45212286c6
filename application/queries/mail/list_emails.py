"""查询邮件列表"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class ListEmailsQuery:
    """
    查询邮件列表

    Attributes:
        user_id: 调用者
        account_id: 只看某个账号（必须属于调用者），None 表示全部账号
        folder: 文件夹筛选 (INBOX/SENT/DRAFTS/TRASH/SPAM/ARCHIVE，不区分大小写)
        is_read: 已读筛选
        is_starred: 星标筛选
        limit: 每页数量
        offset: 偏移
    """

    user_id: str
    account_id: Optional[str] = None
    folder: Optional[str] = None
    is_read: Optional[bool] = None
    is_starred: Optional[bool] = None
    limit: int = 50
    offset: int = 0


@dataclass
class EmailItem:
    """邮件列表项"""

    id: str
    account_id: str
    message_id: str
    folder: str
    from_address: str
    from_name: Optional[str]
    to_addresses: List[str]
    subject: str
    received_at: str
    is_read: bool
    is_starred: bool
    is_draft: bool
    thread_id: Optional[str]
    tag_ids: List[str]


@dataclass
class ListEmailsResult:
    """
    查询邮件列表结果

    Attributes:
        success: 是否成功
        data: 邮件列表（按接收时间倒序）
        total: 满足条件的总数
        sync_triggered: 本次读取触发后台同步的账号数
        message: 消息
        error_code: 错误码
            - ACCOUNT_NOT_FOUND
            - INVALID_FOLDER
    """

    success: bool
    data: List[EmailItem] = field(default_factory=list)
    total: int = 0
    sync_triggered: int = 0
    message: str = ""
    error_code: Optional[str] = None
