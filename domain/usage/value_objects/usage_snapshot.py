"""用户用量快照"""

from dataclasses import dataclass
from datetime import datetime

from domain.common.base_value_object import BaseValueObject
from domain.common.exceptions import InvalidValueObjectException


@dataclass(frozen=True)
class UsageSnapshot(BaseValueObject):
    """
    用户存储用量快照

    Attributes:
        user_id: 用户 ID
        account_count: 邮箱账号数
        email_count: 邮件数
        attachment_count: 附件数
        total_body_size_bytes: 正文总字节
        total_attachment_size_bytes: 附件总字节
        refreshed_at: 计算时间
    """

    user_id: str
    account_count: int
    email_count: int
    attachment_count: int
    total_body_size_bytes: int
    total_attachment_size_bytes: int
    refreshed_at: datetime

    def validate(self) -> None:
        counts = (
            self.account_count,
            self.email_count,
            self.attachment_count,
            self.total_body_size_bytes,
            self.total_attachment_size_bytes,
        )
        if any(c < 0 for c in counts):
            raise InvalidValueObjectException(
                value_object_type="UsageSnapshot",
                value=counts,
                reason="Usage counters cannot be negative"
            )

    @property
    def total_storage_bytes(self) -> int:
        return self.total_body_size_bytes + self.total_attachment_size_bytes
