"""删除邮件命令"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class DeleteEmailsCommand:
    """
    删除邮件（单封或批量）

    不在回收站的移入回收站，已在回收站的彻底删除。

    Attributes:
        user_id: 调用者
        email_ids: 邮件 ID 列表 (UUID 字符串)
    """

    user_id: str
    email_ids: List[str]


@dataclass
class DeleteEmailsResult:
    """
    删除邮件结果

    Attributes:
        success: 是否成功
        moved: 移入回收站的数量
        destroyed: 彻底删除的数量
        errors: 附件清理等非致命错误
        message: 消息
        error_code: 错误码
            - EMAIL_NOT_FOUND: 没有一封属于调用者
            - INVALID_EMAIL_ID
    """

    success: bool
    moved: int = 0
    destroyed: int = 0
    errors: List[str] = field(default_factory=list)
    message: str = ""
    error_code: Optional[str] = None
