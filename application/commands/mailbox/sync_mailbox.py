"""同步邮箱命令"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class SyncMailboxCommand:
    """
    同步单个邮箱账号

    Attributes:
        user_id: 调用者
        account_id: 邮箱账号 ID (UUID 字符串)
    """

    user_id: str
    account_id: str


@dataclass
class SyncAllMailboxesCommand:
    """同步调用者的全部邮箱账号"""

    user_id: str


@dataclass
class SyncMailboxResult:
    """
    同步结果

    Attributes:
        success: 是否成功（部分邮件失败仍算成功）
        account_id: 邮箱账号 ID
        synced: 新入库邮件数
        skipped: 跳过的邮件数
        errors: 错误列表
        in_progress: 已有同步在进行
        message: 消息
        error_code: 错误码
            - ACCOUNT_NOT_FOUND
            - SYNC_NOT_ALLOWED: 计费检查未通过
            - SYNC_FAILED: 本轮中止，或收取到的邮件全部入库失败
    """

    success: bool
    account_id: str = ""
    synced: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)
    in_progress: bool = False
    message: str = ""
    error_code: Optional[str] = None


@dataclass
class SyncAllMailboxesResult:
    """全部账号的同步结果"""

    success: bool
    results: List[SyncMailboxResult] = field(default_factory=list)
    message: str = ""
    error_code: Optional[str] = None

    @property
    def total_synced(self) -> int:
        return sum(r.synced for r in self.results)
