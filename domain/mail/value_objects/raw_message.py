"""远程原始邮件值对象"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, Optional, Tuple

from domain.common.base_value_object import BaseValueObject
from domain.mail.value_objects.email_content import EmailContent


@dataclass(frozen=True)
class RawAttachment(BaseValueObject):
    """
    原始附件部分

    Attributes:
        filename: 文件名（可能为空）
        mime_type: MIME 类型（可能为空）
        content: 附件字节
        content_id: Content-ID（内联图片引用）
        content_disposition: inline / attachment
    """

    filename: Optional[str] = None
    mime_type: Optional[str] = None
    content: bytes = b""
    content_id: Optional[str] = None
    content_disposition: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class RawMessage(BaseValueObject):
    """
    MailboxFetcher 产出的原始邮件

    字段保持服务器上报的原样，规范化由 MessageIngester 完成。

    Attributes:
        uid: 服务器 UID
        message_id: Message-ID 头
        folder: 远程文件夹名
        from_address: 发件人地址
        from_name: 发件人显示名
        to_addresses / cc_addresses / bcc_addresses: 收件人列表
        subject: 主题
        content: 正文
        received_at: 日期
        flags: IMAP 标志（如 \\Seen、\\Flagged）
        in_reply_to: In-Reply-To 头
        references: References 头拆分后的列表
        attachments: 附件部分
    """

    uid: Optional[str] = None
    message_id: Optional[str] = None
    folder: Optional[str] = None
    from_address: Optional[str] = None
    from_name: Optional[str] = None
    to_addresses: Tuple[str, ...] = ()
    cc_addresses: Tuple[str, ...] = ()
    bcc_addresses: Tuple[str, ...] = ()
    subject: Optional[str] = None
    content: EmailContent = field(default_factory=EmailContent)
    received_at: Optional[datetime] = None
    flags: FrozenSet[str] = frozenset()
    in_reply_to: Optional[str] = None
    references: Tuple[str, ...] = ()
    attachments: Tuple[RawAttachment, ...] = ()

    def has_flag(self, flag: str) -> bool:
        """是否带有某个 IMAP 标志（不区分大小写）"""
        wanted = flag.lower()
        return any(f.lower() == wanted for f in self.flags)

    @property
    def is_seen(self) -> bool:
        return self.has_flag("\\Seen")

    @property
    def is_flagged(self) -> bool:
        return self.has_flag("\\Flagged")

    @property
    def is_draft(self) -> bool:
        return self.has_flag("\\Draft")
