"""规范化邮件实体"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from domain.common.base_entity import BaseEntity, utc_now
from domain.common.exceptions import InvalidOperationException
from domain.mail.value_objects.email_content import EmailContent
from domain.mail.value_objects.email_folder import EmailFolder


@dataclass(eq=False)
class Email(BaseEntity):
    """
    规范化邮件（Canonical Message）

    一封远程邮件在本地的去重表示，(account_id, message_id) 唯一。
    由 MessageIngester 创建，之后由用户操作和规则引擎修改。

    Attributes:
        account_id: 所属邮箱账号 ID
        message_id: 远程 Message-ID（仅在账号内唯一）
        folder: 本地文件夹
        from_address: 发件人地址（保留原始大小写）
        from_name: 发件人显示名
        to_addresses / cc_addresses / bcc_addresses: 收件人列表
        subject: 主题
        body_text / body_html: 正文
        received_at: 接收时间
        is_read / is_starred / is_draft: 本地标志
        in_reply_to / references / thread_id: 会话线索
        tag_ids: 本地标签
    """

    account_id: UUID = field(default=None)  # type: ignore
    message_id: str = field(default="")
    folder: EmailFolder = field(default=EmailFolder.INBOX)
    from_address: str = field(default="")
    from_name: Optional[str] = field(default=None)
    to_addresses: List[str] = field(default_factory=list)
    cc_addresses: List[str] = field(default_factory=list)
    bcc_addresses: List[str] = field(default_factory=list)
    subject: str = field(default="")
    body_text: Optional[str] = field(default=None)
    body_html: Optional[str] = field(default=None)
    received_at: datetime = field(default_factory=utc_now)
    is_read: bool = field(default=False)
    is_starred: bool = field(default=False)
    is_draft: bool = field(default=False)
    in_reply_to: Optional[str] = field(default=None)
    references: List[str] = field(default_factory=list)
    thread_id: Optional[str] = field(default=None)
    tag_ids: List[UUID] = field(default_factory=list)

    def __post_init__(self) -> None:
        """初始化后验证"""
        self._validate()
        if self.thread_id is None:
            self.thread_id = self.derive_thread_id(self.message_id, self.in_reply_to, self.references)

    def _validate(self) -> None:
        if self.account_id is None:
            raise InvalidOperationException(
                operation="create_email",
                reason="Account ID cannot be None"
            )

        if not self.message_id:
            raise InvalidOperationException(
                operation="create_email",
                reason="Message ID cannot be empty"
            )

    @staticmethod
    def derive_thread_id(message_id: str, in_reply_to: Optional[str], references: List[str]) -> str:
        """首个 References，其次 In-Reply-To，最后自身 Message-ID"""
        if references:
            return references[0]
        if in_reply_to:
            return in_reply_to
        return message_id

    @property
    def content(self) -> EmailContent:
        return EmailContent(text=self.body_text, html=self.body_html)

    @property
    def is_in_trash(self) -> bool:
        return self.folder == EmailFolder.TRASH

    def mark_read(self) -> None:
        if not self.is_read:
            self.is_read = True
            self.update_timestamp()

    def star(self) -> None:
        if not self.is_starred:
            self.is_starred = True
            self.update_timestamp()

    def move_to(self, folder: EmailFolder) -> None:
        """移动到指定文件夹"""
        if self.folder != folder:
            self.folder = folder
            self.update_timestamp()

    def archive(self) -> None:
        self.move_to(EmailFolder.ARCHIVE)

    def move_to_trash(self) -> None:
        """
        软删除：移入回收站

        Raises:
            InvalidOperationException: 邮件已在回收站（应改为彻底删除）
        """
        if self.is_in_trash:
            raise InvalidOperationException(
                operation="move_to_trash",
                reason="Email is already in trash"
            )
        self.move_to(EmailFolder.TRASH)

    def fill_threading(self, in_reply_to: Optional[str], references: List[str]) -> bool:
        """
        补全缺失的会话线索（不覆盖已有值）

        Returns:
            是否有字段被修改
        """
        changed = False
        if not self.in_reply_to and in_reply_to:
            self.in_reply_to = in_reply_to
            changed = True
        if not self.references and references:
            self.references = list(references)
            changed = True
        if changed:
            self.thread_id = self.derive_thread_id(self.message_id, self.in_reply_to, self.references)
            self.update_timestamp()
        return changed
