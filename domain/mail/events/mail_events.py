"""邮箱同步事件

由 SyncCoordinator 在同步开始、结束和失败时发布，
通过 MailboxUpdatePublisher 推送给前端订阅者。
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from domain.common.base_event import DomainEvent


class MailboxUpdateType(str, Enum):
    """邮箱更新事件类型"""

    SYNC_STARTED = "SYNC_STARTED"
    SYNC_COMPLETED = "SYNC_COMPLETED"
    ERROR = "ERROR"


@dataclass(frozen=True)
class MailboxUpdated(DomainEvent):
    """
    邮箱更新事件

    Attributes:
        aggregate_id: 邮箱账号 ID
        user_id: 账号所属用户（订阅频道）
        update_type: 事件类型
        synced: 本次新增邮件数（仅 SYNC_COMPLETED）
        message: 附加说明（失败原因等）
    """

    user_id: str = ""
    update_type: MailboxUpdateType = MailboxUpdateType.SYNC_STARTED
    synced: Optional[int] = None
    message: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        """转换为推送载荷"""
        payload: Dict[str, Any] = {
            "type": self.update_type.value,
            "emailAccountId": str(self.aggregate_id),
            "userId": self.user_id,
            "occurredAt": self.occurred_at.isoformat(),
        }
        if self.synced is not None:
            payload["synced"] = self.synced
        if self.message:
            payload["message"] = self.message
        return payload
